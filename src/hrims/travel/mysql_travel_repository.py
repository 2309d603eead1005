from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..core.enums import AccommodationType, TransportMode, TravelStatus, TravelType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, build_where, db_cursor, fetchall, fetchone
from .model import TravelCosts, TravelRate, TravelRequest
from .repository import TravelRateRepository, TravelRequestRepository

_RATE_FIELDS = (
    "grade_code",
    "travel_type",
    "currency",
    "per_diem_rate",
    "accommodation_rate",
    "transport_rate",
    "communication_rate",
    "incidentals_rate",
    "max_days",
    "advance_percentage",
    "is_active",
    "created_by",
)
_RATE_COLUMNS = "rate_id, " + ", ".join(_RATE_FIELDS) + ", created_at"

_REQUEST_FIELDS = (
    "travel_reference",
    "employee_id",
    "purpose",
    "travel_type",
    "destination_city",
    "destination_country",
    "departure_date",
    "return_date",
    "number_of_days",
    "accommodation_type",
    "transport_mode",
    "per_diem_amount",
    "accommodation_cost",
    "transport_cost",
    "communication_cost",
    "incidentals_cost",
    "total_estimated_cost",
    "currency",
    "advance_amount",
    "status",
    "comments",
    "rejection_reason",
    "approved_by",
    "approved_at",
    "completed_at",
    "created_by",
)
_REQUEST_COLUMNS = "request_id, " + ", ".join(_REQUEST_FIELDS) + ", created_at"


def _row_to_rate(row: dict) -> TravelRate:
    return TravelRate(
        rate_id=int(row["rate_id"]),
        grade_code=row["grade_code"],
        travel_type=TravelType(row["travel_type"]),
        currency=row["currency"],
        per_diem_rate=as_float(row["per_diem_rate"]),
        accommodation_rate=as_float(row["accommodation_rate"]),
        transport_rate=as_float(row["transport_rate"]),
        communication_rate=as_float(row["communication_rate"]),
        incidentals_rate=as_float(row["incidentals_rate"]),
        max_days=int(row["max_days"]),
        advance_percentage=as_float(row["advance_percentage"]),
        is_active=bool(row.get("is_active", True)),
        created_by=row.get("created_by"),
        created_at=row.get("created_at"),
    )


def _rate_params(r: TravelRate) -> tuple:
    return (
        r.grade_code,
        r.travel_type.value,
        r.currency,
        r.per_diem_rate,
        r.accommodation_rate,
        r.transport_rate,
        r.communication_rate,
        r.incidentals_rate,
        r.max_days,
        r.advance_percentage,
        r.is_active,
        r.created_by,
    )


def _row_to_request(row: dict) -> TravelRequest:
    return TravelRequest(
        request_id=int(row["request_id"]),
        travel_reference=row["travel_reference"],
        employee_id=int(row["employee_id"]),
        purpose=row["purpose"],
        travel_type=TravelType(row["travel_type"]),
        destination_city=row["destination_city"],
        destination_country=row["destination_country"],
        departure_date=row["departure_date"],
        return_date=row["return_date"],
        number_of_days=int(row["number_of_days"]),
        accommodation_type=AccommodationType(row["accommodation_type"]),
        transport_mode=TransportMode(row["transport_mode"]),
        costs=TravelCosts(
            per_diem_amount=as_float(row["per_diem_amount"]),
            accommodation_cost=as_float(row["accommodation_cost"]),
            transport_cost=as_float(row["transport_cost"]),
            communication_cost=as_float(row["communication_cost"]),
            incidentals_cost=as_float(row["incidentals_cost"]),
            total_estimated_cost=as_float(row["total_estimated_cost"]),
            currency=row["currency"],
        ),
        advance_amount=as_float(row.get("advance_amount")),
        status=TravelStatus(row["status"]),
        comments=row.get("comments"),
        rejection_reason=row.get("rejection_reason"),
        approved_by=row.get("approved_by"),
        approved_at=row.get("approved_at"),
        completed_at=row.get("completed_at"),
        created_by=row.get("created_by"),
        created_at=row.get("created_at"),
    )


def _request_params(t: TravelRequest) -> tuple:
    c = t.costs
    return (
        t.travel_reference,
        t.employee_id,
        t.purpose,
        t.travel_type.value,
        t.destination_city,
        t.destination_country,
        t.departure_date,
        t.return_date,
        t.number_of_days,
        t.accommodation_type.value,
        t.transport_mode.value,
        c.per_diem_amount,
        c.accommodation_cost,
        c.transport_cost,
        c.communication_cost,
        c.incidentals_cost,
        c.total_estimated_cost,
        c.currency,
        t.advance_amount,
        t.status.value,
        t.comments,
        t.rejection_reason,
        t.approved_by,
        t.approved_at,
        t.completed_at,
        t.created_by,
    )


class MySQLTravelRateRepository(TravelRateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, rate_id: int) -> Optional[TravelRate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_RATE_COLUMNS} FROM travel_rates WHERE rate_id=%s", (rate_id,))
            row = fetchone(cur)
            return _row_to_rate(row) if row else None

    def get_active(self, *, grade_code: str, travel_type: TravelType) -> Optional[TravelRate]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RATE_COLUMNS} FROM travel_rates
                WHERE grade_code=%s AND travel_type=%s AND is_active=1
                ORDER BY rate_id DESC LIMIT 1
                """,
                (grade_code, travel_type.value),
            )
            row = fetchone(cur)
            return _row_to_rate(row) if row else None

    def list_rates(self, *, travel_type: Optional[TravelType] = None, active_only: bool = True) -> Sequence[TravelRate]:
        clauses = []
        if travel_type is not None:
            clauses.append(("travel_type=%s", (travel_type.value,)))
        if active_only:
            clauses.append(("is_active=1", ()))
        where, params = build_where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RATE_COLUMNS} FROM travel_rates {where} ORDER BY travel_type, grade_code",
                tuple(params),
            )
            return [_row_to_rate(r) for r in fetchall(cur)]

    def deactivate(self, *, grade_code: str, travel_type: TravelType) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE travel_rates SET is_active=0 WHERE grade_code=%s AND travel_type=%s AND is_active=1",
                (grade_code, travel_type.value),
            )
            return cur.rowcount

    def create(self, rate: TravelRate) -> int:
        placeholders = ",".join(["%s"] * len(_RATE_FIELDS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO travel_rates({', '.join(_RATE_FIELDS)}) VALUES({placeholders})",
                _rate_params(rate),
            )
            return int(cur.lastrowid)


class MySQLTravelRequestRepository(TravelRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[TravelRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_REQUEST_COLUMNS} FROM travel_requests WHERE request_id=%s", (request_id,))
            row = fetchone(cur)
            return _row_to_request(row) if row else None

    def list_requests(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[TravelStatus] = None,
        departure_from: Optional[date] = None,
        return_to: Optional[date] = None,
    ) -> Sequence[TravelRequest]:
        clauses = []
        if employee_id is not None:
            clauses.append(("employee_id=%s", (employee_id,)))
        if status is not None:
            clauses.append(("status=%s", (status.value,)))
        if departure_from is not None:
            clauses.append(("departure_date>=%s", (departure_from,)))
        if return_to is not None:
            clauses.append(("return_date<=%s", (return_to,)))
        where, params = build_where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM travel_requests {where} ORDER BY departure_date DESC, request_id DESC",
                tuple(params),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_references(self, *, prefix: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT travel_reference FROM travel_requests WHERE travel_reference LIKE %s", (f"{prefix}%",))
            return [r["travel_reference"] for r in fetchall(cur)]

    def create(self, travel_request: TravelRequest) -> int:
        placeholders = ",".join(["%s"] * len(_REQUEST_FIELDS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO travel_requests({', '.join(_REQUEST_FIELDS)}) VALUES({placeholders})",
                _request_params(travel_request),
            )
            return int(cur.lastrowid)

    def update(self, travel_request: TravelRequest) -> bool:
        assignments = ", ".join(f"{name}=%s" for name in _REQUEST_FIELDS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE travel_requests SET {assignments} WHERE request_id=%s",
                _request_params(travel_request) + (travel_request.request_id,),
            )
            return cur.rowcount > 0
