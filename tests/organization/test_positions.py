from dataclasses import replace

import pytest

from hrims.core.exceptions import ConflictError, NotFoundError, ValidationError
from hrims.positions.model import Position
from hrims.positions.service import PositionService


@pytest.fixture
def service(positions_repo, departments_repo, grades_repo):
    return PositionService(positions_repo, departments_repo, grades_repo)


def _position(**kw):
    data = dict(position_id=0, title="Clerk", code="fin-clk", department_id=2, grade_id=1)
    data.update(kw)
    return Position(**data)


def test_available_positions_is_number_minus_filled():
    assert _position(number_of_positions=3, currently_filled=1).available_positions == 2


def test_available_positions_never_negative():
    p = _position(number_of_positions=1, currently_filled=3)

    assert p.available_positions == 0
    assert p.is_full


def test_create_position_normalizes_code_and_starts_empty(service):
    p = service.create_position(_position(currently_filled=5, number_of_positions=6))

    assert p.code == "FIN-CLK"
    assert p.currently_filled == 0
    assert p.position_id == 3


def test_create_position_requires_known_department(service):
    with pytest.raises(NotFoundError):
        service.create_position(_position(department_id=99))


def test_create_position_rejects_duplicate_code(service):
    with pytest.raises(ConflictError):
        service.create_position(_position(code="fin-acc"))


def test_capacity_below_filled_is_rejected(service, positions_repo):
    positions_repo.increment_filled(1)
    positions_repo.increment_filled(1)

    with pytest.raises(ValidationError):
        service.update_position(replace(positions_repo.get_by_id(1), number_of_positions=1))


def _take_seat_during_update(positions_repo, monkeypatch):
    original = positions_repo.update

    def update(item):
        positions_repo.increment_filled(item.position_id)
        return original(item)

    monkeypatch.setattr(positions_repo, "update", update)


def test_update_keeps_seat_taken_meanwhile(service, positions_repo, monkeypatch):
    _take_seat_during_update(positions_repo, monkeypatch)

    updated = service.update_position(replace(positions_repo.get_by_id(1), title="Senior Accountant"))

    assert updated.title == "Senior Accountant"
    assert updated.currently_filled == 1
    assert positions_repo.get_by_id(1).currently_filled == 1


def test_capacity_cut_refused_when_seat_taken_meanwhile(service, positions_repo, monkeypatch):
    service.increment_filled(1)
    _take_seat_during_update(positions_repo, monkeypatch)

    with pytest.raises(ValidationError, match="2 already filled"):
        service.update_position(replace(positions_repo.get_by_id(1), number_of_positions=1))

    stored = positions_repo.get_by_id(1)
    assert stored.number_of_positions == 2
    assert stored.currently_filled == 2


def test_increment_until_full_then_conflict(service):
    service.increment_filled(1)
    p = service.increment_filled(1)
    assert p.available_positions == 0

    with pytest.raises(ConflictError):
        service.increment_filled(1)


def test_decrement_never_goes_below_zero(service):
    assert service.decrement_filled(1).currently_filled == 0


def test_reporting_cycle_is_rejected(service, positions_repo):
    positions_repo.update(replace(positions_repo.get_by_id(1), reports_to_id=2))

    with pytest.raises(ValidationError):
        service.update_position(replace(positions_repo.get_by_id(2), reports_to_id=1))


def test_filled_position_cannot_be_deleted(service):
    service.increment_filled(1)

    with pytest.raises(ConflictError):
        service.delete_position(1)


def test_delete_deactivates(service, positions_repo):
    service.delete_position(2)

    assert positions_repo.get_by_id(2).is_active is False
