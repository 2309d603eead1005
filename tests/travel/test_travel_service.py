from datetime import date

import pytest

from fakes import make_employee, make_travel_rate
from hrims.core.enums import AccommodationType, EmploymentStatus, TransportMode, TravelStatus, TravelType
from hrims.core.exceptions import NotFoundError, ValidationError
from hrims.travel.service import calculate_costs, number_of_days


@pytest.fixture
def travel(container, employees_repo):
    employees_repo.add(make_employee())
    return container.travel_request_service


def _create(travel, **kw):
    data = dict(
        employee_id=1,
        purpose="Client audit",
        travel_type=TravelType.LOCAL,
        destination_city="Blantyre",
        destination_country="Malawi",
        departure_date=date(2026, 3, 16),
        return_date=date(2026, 3, 18),
        accommodation_type=AccommodationType.FULLY_PAID,
        transport_mode=TransportMode.COMPANY_VEHICLE,
    )
    data.update(kw)
    return travel.create(**data)


def test_number_of_days_counts_both_ends():
    assert number_of_days(date(2026, 3, 16), date(2026, 3, 18)) == 3
    assert number_of_days(date(2026, 3, 16), date(2026, 3, 16)) == 1


def test_costs_follow_accommodation_and_transport_rules():
    rate = make_travel_rate()

    fully_paid = calculate_costs(rate, 3, AccommodationType.FULLY_PAID, TransportMode.COMPANY_VEHICLE)
    assert fully_paid.per_diem_amount == 36000
    assert fully_paid.accommodation_cost == 105000
    assert fully_paid.transport_cost == 60000
    assert fully_paid.total_estimated_cost == 237000

    per_diem_only = calculate_costs(rate, 3, AccommodationType.PER_DIEM_ONLY, TransportMode.FLIGHT)
    assert per_diem_only.accommodation_cost == 18000
    assert per_diem_only.transport_cost == 40000

    assert calculate_costs(rate, 3, AccommodationType.OUT_OF_POCKET, TransportMode.TAXI).accommodation_cost == 0


def test_create_prices_request_from_grade_rate(travel):
    request = _create(travel)

    assert request.travel_reference == "TRV-2026-0001"
    assert request.status == TravelStatus.PENDING_APPROVAL
    assert request.number_of_days == 3
    assert request.costs.total_estimated_cost == 237000
    assert request.costs.currency == "MWK"
    assert _create(travel).travel_reference == "TRV-2026-0002"


def test_international_rate_is_separate(travel):
    request = _create(travel, travel_type=TravelType.INTERNATIONAL, transport_mode=TransportMode.FLIGHT)

    assert request.costs.currency == "USD"
    assert request.costs.transport_cost == 1400


def test_missing_rate_is_not_found(travel):
    with pytest.raises(NotFoundError):
        _create(travel, travel_type=TravelType.DOMESTIC)


def test_return_before_departure_is_refused(travel):
    with pytest.raises(ValidationError):
        _create(travel, return_date=date(2026, 3, 15))


def test_trip_longer_than_grade_limit_is_refused(travel):
    with pytest.raises(ValidationError, match="30 days"):
        _create(travel, return_date=date(2026, 4, 30))


def test_inactive_employee_cannot_travel(container, employees_repo):
    employees_repo.add(make_employee(2, employment_status=EmploymentStatus.SUSPENDED))

    with pytest.raises(ValidationError):
        _create(container.travel_request_service, employee_id=2)


def test_advance_is_capped_by_rate_percentage(travel):
    assert _create(travel, advance_amount=189600).advance_amount == 189600

    with pytest.raises(ValidationError, match="80%"):
        _create(travel, advance_amount=189601)


def test_approve_then_complete_once(travel):
    request = _create(travel)

    approved = travel.update_status(request.request_id, TravelStatus.APPROVED, decided_by=7)
    assert approved.approved_by == 7
    assert approved.approved_at is not None

    completed = travel.complete(request.request_id)
    assert completed.status == TravelStatus.COMPLETED
    assert completed.completed_at is not None

    with pytest.raises(ValidationError, match="already completed"):
        travel.complete(request.request_id)


def test_only_approved_requests_complete(travel):
    request = _create(travel)

    with pytest.raises(ValidationError):
        travel.complete(request.request_id)


def test_reject_needs_reason_and_pending_status(travel):
    request = _create(travel)

    with pytest.raises(ValidationError):
        travel.update_status(request.request_id, TravelStatus.REJECTED, rejection_reason=" ")

    rejected = travel.update_status(request.request_id, TravelStatus.REJECTED, rejection_reason="Budget")
    assert rejected.rejection_reason == "Budget"

    with pytest.raises(ValidationError):
        travel.update_status(request.request_id, TravelStatus.APPROVED)


def test_status_update_only_decides(travel):
    request = _create(travel)

    with pytest.raises(ValidationError):
        travel.update_status(request.request_id, TravelStatus.COMPLETED)


def test_cancel_pending_but_not_approved(travel):
    pending = _create(travel)
    assert travel.cancel(pending.request_id, reason="Trip moved").status == TravelStatus.CANCELLED

    approved = travel.update_status(_create(travel).request_id, TravelStatus.APPROVED)
    with pytest.raises(ValidationError):
        travel.cancel(approved.request_id)


def test_statistics_group_by_status_and_type(travel):
    first = _create(travel)
    _create(travel)
    travel.update_status(first.request_id, TravelStatus.APPROVED)

    stats = travel.statistics()

    assert stats.total_requests == 2
    assert stats.approved_requests == 1
    assert stats.pending_approvals == 1
    assert stats.total_approved_cost == 237000
    assert stats.by_travel_type["LOCAL"] == {"count": 2, "totalCost": 474000.0}


def test_new_rate_retires_previous_one(container, travel_rates_repo):
    rates = container.travel_rate_service

    created = rates.create_rate(make_travel_rate(0, "m5", per_diem_rate=15000.0))

    assert created.grade_code == "M5"
    assert rates.rate_for("M5", TravelType.LOCAL).rate_id == created.rate_id
    assert not travel_rates_repo.get_by_id(1).is_active


def test_rate_validation(container):
    with pytest.raises(ValidationError):
        container.travel_rate_service.create_rate(make_travel_rate(0, per_diem_rate=-1.0))
    with pytest.raises(ValidationError):
        container.travel_rate_service.create_rate(make_travel_rate(0, advance_percentage=120.0))
