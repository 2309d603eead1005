from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..core.enums import LoanStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    as_float,
    build_where,
    db_cursor,
    dump_json_list,
    fetchall,
    fetchone,
    load_json_list,
)
from .model import LoanApplication, LoanType
from .repository import LoanApplicationRepository, LoanTypeRepository

_TYPE_FIELDS = (
    "code",
    "name",
    "description",
    "min_amount",
    "max_amount",
    "min_repayment_period",
    "max_repayment_period",
    "interest_rate",
    "processing_fee",
    "eligible_grades",
    "required_documents",
    "is_active",
)
_TYPE_COLUMNS = "loan_type_id, " + ", ".join(_TYPE_FIELDS)

_APP_FIELDS = (
    "application_number",
    "employee_id",
    "loan_type_code",
    "amount",
    "repayment_period",
    "interest_rate",
    "monthly_repayment",
    "total_repayment",
    "total_interest",
    "status",
    "purpose",
    "currency",
    "approved_amount",
    "approved_interest_rate",
    "approved_repayment_period",
    "approval_date",
    "rejection_reason",
    "disbursement_date",
    "disbursed_by",
    "created_by",
)
_APP_COLUMNS = "application_id, " + ", ".join(_APP_FIELDS) + ", created_at, updated_at"


def _row_to_type(row: dict) -> LoanType:
    return LoanType(
        loan_type_id=int(row["loan_type_id"]),
        code=row["code"],
        name=row["name"],
        description=row.get("description"),
        min_amount=as_float(row["min_amount"]),
        max_amount=as_float(row["max_amount"]),
        min_repayment_period=int(row["min_repayment_period"]),
        max_repayment_period=int(row["max_repayment_period"]),
        interest_rate=as_float(row["interest_rate"]),
        processing_fee=as_float(row.get("processing_fee")),
        eligible_grades=load_json_list(row.get("eligible_grades")),
        required_documents=load_json_list(row.get("required_documents")),
        is_active=bool(row.get("is_active", True)),
    )


def _type_params(t: LoanType) -> tuple:
    return (
        t.code,
        t.name,
        t.description,
        t.min_amount,
        t.max_amount,
        t.min_repayment_period,
        t.max_repayment_period,
        t.interest_rate,
        t.processing_fee,
        dump_json_list(t.eligible_grades),
        dump_json_list(t.required_documents),
        int(t.is_active),
    )


def _optional_float(value) -> Optional[float]:
    return float(value) if value is not None else None


def _row_to_application(row: dict) -> LoanApplication:
    return LoanApplication(
        application_id=int(row["application_id"]),
        application_number=row["application_number"],
        employee_id=int(row["employee_id"]),
        loan_type_code=row["loan_type_code"],
        amount=as_float(row["amount"]),
        repayment_period=int(row["repayment_period"]),
        interest_rate=as_float(row["interest_rate"]),
        monthly_repayment=as_float(row["monthly_repayment"]),
        total_repayment=as_float(row["total_repayment"]),
        total_interest=as_float(row["total_interest"]),
        status=LoanStatus(row["status"]),
        purpose=row.get("purpose"),
        currency=row.get("currency") or "MWK",
        approved_amount=_optional_float(row.get("approved_amount")),
        approved_interest_rate=_optional_float(row.get("approved_interest_rate")),
        approved_repayment_period=row.get("approved_repayment_period"),
        approval_date=row.get("approval_date"),
        rejection_reason=row.get("rejection_reason"),
        disbursement_date=row.get("disbursement_date"),
        disbursed_by=row.get("disbursed_by"),
        created_by=row.get("created_by"),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def _application_params(a: LoanApplication) -> tuple:
    return (
        a.application_number,
        a.employee_id,
        a.loan_type_code,
        a.amount,
        a.repayment_period,
        a.interest_rate,
        a.monthly_repayment,
        a.total_repayment,
        a.total_interest,
        a.status.value,
        a.purpose,
        a.currency,
        a.approved_amount,
        a.approved_interest_rate,
        a.approved_repayment_period,
        a.approval_date,
        a.rejection_reason,
        a.disbursement_date,
        a.disbursed_by,
        a.created_by,
    )


class MySQLLoanTypeRepository(LoanTypeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _get_one(self, column: str, value) -> Optional[LoanType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TYPE_COLUMNS} FROM loan_types WHERE {column}=%s", (value,))
            row = fetchone(cur)
            return _row_to_type(row) if row else None

    def get_by_id(self, loan_type_id: int) -> Optional[LoanType]:
        return self._get_one("loan_type_id", loan_type_id)

    def get_by_code(self, code: str) -> Optional[LoanType]:
        return self._get_one("code", code)

    def list_types(self, *, active_only: bool = False) -> Sequence[LoanType]:
        where = "WHERE is_active=1" if active_only else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TYPE_COLUMNS} FROM loan_types {where} ORDER BY name ASC")
            return [_row_to_type(r) for r in fetchall(cur)]

    def create(self, loan_type: LoanType) -> int:
        placeholders = ",".join(["%s"] * len(_TYPE_FIELDS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO loan_types({', '.join(_TYPE_FIELDS)}) VALUES({placeholders})",
                _type_params(loan_type),
            )
            return int(cur.lastrowid)

    def update(self, loan_type: LoanType) -> bool:
        assignments = ", ".join(f"{name}=%s" for name in _TYPE_FIELDS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE loan_types SET {assignments} WHERE loan_type_id=%s",
                _type_params(loan_type) + (loan_type.loan_type_id,),
            )
            return cur.rowcount > 0


class MySQLLoanApplicationRepository(LoanApplicationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, application_id: int) -> Optional[LoanApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_APP_COLUMNS} FROM loan_applications WHERE application_id=%s", (application_id,))
            row = fetchone(cur)
            return _row_to_application(row) if row else None

    def list_applications(
        self,
        *,
        employee_id: Optional[int] = None,
        status: Optional[LoanStatus] = None,
    ) -> Sequence[LoanApplication]:
        clauses = []
        if employee_id is not None:
            clauses.append(("employee_id=%s", (employee_id,)))
        if status is not None:
            clauses.append(("status=%s", (status.value,)))
        where, params = build_where(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_APP_COLUMNS} FROM loan_applications {where} ORDER BY created_at DESC, application_id DESC",
                tuple(params),
            )
            return [_row_to_application(r) for r in fetchall(cur)]

    def count_for_employee(self, *, employee_id: int, statuses: Iterable[LoanStatus]) -> int:
        values = [s.value for s in statuses]
        if not values:
            return 0
        placeholders = ",".join(["%s"] * len(values))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS c FROM loan_applications WHERE employee_id=%s AND status IN ({placeholders})",
                (employee_id, *values),
            )
            row = fetchone(cur)
            return int(row["c"]) if row else 0

    def list_application_numbers(self, *, prefix: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT application_number FROM loan_applications WHERE application_number LIKE %s",
                (f"{prefix}%",),
            )
            return [r["application_number"] for r in fetchall(cur)]

    def create(self, application: LoanApplication) -> int:
        placeholders = ",".join(["%s"] * len(_APP_FIELDS))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"INSERT INTO loan_applications({', '.join(_APP_FIELDS)}) VALUES({placeholders})",
                _application_params(application),
            )
            return int(cur.lastrowid)

    def update(self, application: LoanApplication) -> bool:
        assignments = ", ".join(f"{name}=%s" for name in _APP_FIELDS)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE loan_applications SET {assignments} WHERE application_id=%s",
                _application_params(application) + (application.application_id,),
            )
            return cur.rowcount > 0
