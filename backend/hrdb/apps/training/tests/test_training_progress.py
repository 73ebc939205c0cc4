from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from hrdb.apps.employees import models as employee_models
from hrdb.apps.training import models as training_models
from hrdb.apps.training import services as training_services

Status = training_models.TrainingAssignmentStatus
NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _create_employee(db_session, code: str = "E-100") -> employee_models.Employee:
    employee = employee_models.Employee(employee_code=code, first_name="Ada", last_name="Mwangi")
    db_session.add(employee)
    db_session.commit()
    return employee


def _create_module(db_session, *, duration=60, title="Fire safety") -> training_models.TrainingModule:
    module = training_models.TrainingModule(title=title, duration=duration, active=True)
    db_session.add(module)
    db_session.commit()
    return module


def _create_assignment(db_session, employee, module, status: Status, **kwargs) -> training_models.TrainingAssignment:
    assignment = training_models.TrainingAssignment(
        employee_id=employee.id,
        module_id=module.id,
        status=status,
        assigned_at=NOW - timedelta(days=7),
        **kwargs,
    )
    db_session.add(assignment)
    db_session.commit()
    return assignment


def _add_progress(db_session, assignment, minutes: int, *, active: bool = False) -> training_models.TrainingProgress:
    progress = training_models.TrainingProgress(
        assignment_id=assignment.id,
        employee_id=assignment.employee_id,
        module_id=assignment.module_id,
        time_spent_minutes=minutes,
        started_at=NOW - timedelta(hours=1),
        is_active=active,
    )
    db_session.add(progress)
    db_session.commit()
    return progress


def test_completed_assignment_is_always_full_progress(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session)
    assignment = _create_assignment(db_session, employee, module, Status.COMPLETED)
    _add_progress(db_session, assignment, 3)

    assert training_services.calculate_progress(db_session, assignment) == 100


@pytest.mark.parametrize(
    "status, expected",
    [
        (Status.UNLOCKED, 5),
        (Status.IN_PROGRESS, 15),
        (Status.ASSIGNED, 0),
        (Status.OVERDUE, 0),
    ],
)
def test_progress_without_sessions_uses_status_floor(db_session, status, expected):
    employee = _create_employee(db_session)
    module = _create_module(db_session)
    assignment = _create_assignment(db_session, employee, module, status)

    assert training_services.calculate_progress(db_session, assignment) == expected


def test_in_progress_half_way_maps_to_95_scale(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session, duration=60)
    assignment = _create_assignment(db_session, employee, module, Status.IN_PROGRESS)
    _add_progress(db_session, assignment, 30)

    # 30 / 60 * 95 = 47.5, rounded half-up
    assert training_services.calculate_progress(db_session, assignment) == 48


def test_progress_sums_all_sessions_and_caps_at_95(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session, duration=60)
    assignment = _create_assignment(db_session, employee, module, Status.IN_PROGRESS)
    _add_progress(db_session, assignment, 50)
    _add_progress(db_session, assignment, 40)

    assert training_services.calculate_progress(db_session, assignment) == 95


def test_small_amount_of_time_is_lifted_to_status_floor(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session, duration=600)
    in_progress = _create_assignment(db_session, employee, module, Status.IN_PROGRESS)
    _add_progress(db_session, in_progress, 6)

    # 6 / 600 * 95 = 0.95 -> 1, below the in_progress floor
    assert training_services.calculate_progress(db_session, in_progress) == 15


def test_sessions_without_duration_show_minimal_indicator(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session, duration=None)
    unlocked = _create_assignment(db_session, employee, module, Status.UNLOCKED)
    _add_progress(db_session, unlocked, 25)
    assert training_services.calculate_progress(db_session, unlocked) == 5

    other_module = _create_module(db_session, duration=0, title="Ergonomics")
    in_progress = _create_assignment(db_session, employee, other_module, Status.IN_PROGRESS)
    _add_progress(db_session, in_progress, 25)
    assert training_services.calculate_progress(db_session, in_progress) == 15


def test_zero_minute_session_on_assigned_row_shows_five(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session, duration=60)
    assignment = _create_assignment(db_session, employee, module, Status.ASSIGNED)
    _add_progress(db_session, assignment, 0)

    assert training_services.calculate_progress(db_session, assignment) == 5


def test_is_overdue_requires_past_due_date_and_open_status(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session)
    assignment = _create_assignment(
        db_session,
        employee,
        module,
        Status.IN_PROGRESS,
        due_date=NOW - timedelta(days=1),
    )
    assert training_services.is_overdue(assignment, NOW) is True

    assignment.status = Status.COMPLETED
    assert training_services.is_overdue(assignment, NOW) is False

    assignment.status = Status.IN_PROGRESS
    assignment.due_date = NOW + timedelta(days=1)
    assert training_services.is_overdue(assignment, NOW) is False

    assignment.due_date = None
    assert training_services.is_overdue(assignment, NOW) is False


def test_is_overdue_handles_naive_timestamps_from_storage(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session)
    assignment = _create_assignment(
        db_session,
        employee,
        module,
        Status.ASSIGNED,
        due_date=NOW - timedelta(hours=2),
    )
    db_session.refresh(assignment)

    assert training_services.is_overdue(assignment, NOW) is True


@pytest.mark.parametrize(
    "status, expected",
    [
        (Status.ASSIGNED, True),
        (Status.OVERDUE, True),
        (Status.UNLOCKED, False),
        (Status.IN_PROGRESS, False),
        (Status.COMPLETED, False),
        (Status.REMOVED, False),
    ],
)
def test_can_unlock_checks_stored_status_only(status, expected):
    assignment = training_models.TrainingAssignment(status=status)

    assert training_services.can_unlock(assignment) is expected


def test_assigned_row_past_due_is_overdue_but_status_unchanged(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session, duration=60)
    assignment = _create_assignment(
        db_session,
        employee,
        module,
        Status.ASSIGNED,
        due_date=NOW - timedelta(days=1),
    )

    assert training_services.is_overdue(assignment, NOW) is True
    assert training_services.can_unlock(assignment) is True
    assert training_services.calculate_progress(db_session, assignment) == 0
    assert assignment.status == Status.ASSIGNED


def test_employee_stats_average_progress(db_session):
    employee = _create_employee(db_session)
    completed = _create_assignment(db_session, employee, _create_module(db_session, title="A"), Status.COMPLETED)
    in_progress = _create_assignment(db_session, employee, _create_module(db_session, title="B"), Status.IN_PROGRESS)
    _add_progress(db_session, in_progress, 30)
    assigned = _create_assignment(db_session, employee, _create_module(db_session, title="C"), Status.ASSIGNED)
    overdue = _create_assignment(db_session, employee, _create_module(db_session, title="D"), Status.OVERDUE)

    stats = training_services.calculate_employee_stats(
        db_session, [completed, in_progress, assigned, overdue]
    )

    assert stats == {
        "total_assigned": 4,
        "completed": 1,
        "in_progress": 1,
        "overdue": 1,
        "assigned": 1,
        # (100 + 48 + 0 + 0) / 4
        "completion_rate": 37.0,
    }


def test_employee_stats_round_to_one_decimal(db_session):
    employee = _create_employee(db_session)
    completed = _create_assignment(db_session, employee, _create_module(db_session, title="A"), Status.COMPLETED)
    unlocked = _create_assignment(db_session, employee, _create_module(db_session, title="B"), Status.UNLOCKED)
    assigned = _create_assignment(db_session, employee, _create_module(db_session, title="C"), Status.ASSIGNED)

    stats = training_services.calculate_employee_stats(db_session, [completed, unlocked, assigned])

    # (100 + 5 + 0) / 3 = 35.0
    assert stats["completion_rate"] == 35.0
    assert stats["total_assigned"] == 3


def test_employee_stats_empty(db_session):
    stats = training_services.calculate_employee_stats(db_session, [])

    assert stats["total_assigned"] == 0
    assert stats["completion_rate"] == 0


def test_end_session_uses_elapsed_minutes_or_override(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session)
    assignment = _create_assignment(db_session, employee, module, Status.IN_PROGRESS)
    progress = _add_progress(db_session, assignment, 0, active=True)

    progress.end_session(now=NOW)
    assert progress.is_active is False
    assert progress.time_spent_minutes == 60
    assert progress.ended_at == NOW

    progress.end_session(12, now=NOW)
    assert progress.time_spent_minutes == 12


def test_update_progress_merges_metadata(db_session):
    employee = _create_employee(db_session)
    module = _create_module(db_session)
    assignment = _create_assignment(db_session, employee, module, Status.IN_PROGRESS)
    progress = _add_progress(db_session, assignment, 0, active=True)
    progress.progress_data = {"training_started": True}

    progress.update_progress({"score": 90})
    db_session.commit()
    db_session.refresh(progress)

    assert progress.progress_data == {"training_started": True, "score": 90}
