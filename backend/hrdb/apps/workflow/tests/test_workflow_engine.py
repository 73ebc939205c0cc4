from __future__ import annotations

import pytest

from hrdb.apps.audit import models as audit_models
from hrdb.apps.workflow import TransitionError, apply_transition, is_transition_allowed


def test_apply_transition_allows_unlock_and_writes_audit_event(db_session):
    apply_transition(
        db_session,
        actor_employee_id=None,
        entity_type="training_assignment",
        entity_id="TA-1",
        from_state="assigned",
        to_state="unlocked",
        before_obj={"unlocked_at": None},
        after_obj={"unlocked_at": "2026-03-02T09:00:00+00:00"},
        critical=True,
    )

    event = (
        db_session.query(audit_models.AuditEvent)
        .filter(
            audit_models.AuditEvent.entity_type == "training_assignment",
            audit_models.AuditEvent.action == "transition",
        )
        .first()
    )
    assert event is not None
    assert event.before == {"status": "assigned", "unlocked_at": None}
    assert event.after == {"status": "unlocked", "unlocked_at": "2026-03-02T09:00:00+00:00"}
    assert event.metadata_json == {"workflow": "training_assignment"}


def test_apply_transition_rejects_missing_unlock_timestamp(db_session):
    with pytest.raises(TransitionError) as excinfo:
        apply_transition(
            db_session,
            actor_employee_id=None,
            entity_type="training_assignment",
            entity_id="TA-2",
            from_state="overdue",
            to_state="unlocked",
            before_obj={},
            after_obj={"unlocked_at": None},
        )

    assert excinfo.value.code == "missing_requirements"
    assert {item["field"] for item in excinfo.value.detail} == {"unlocked_at"}
    assert db_session.query(audit_models.AuditEvent).count() == 0


def test_apply_transition_rejects_invalid_transition(db_session):
    with pytest.raises(TransitionError) as excinfo:
        apply_transition(
            db_session,
            actor_employee_id=None,
            entity_type="training_assignment",
            entity_id="TA-3",
            from_state="completed",
            to_state="in_progress",
            before_obj={},
            after_obj={"started_at": "2026-03-02T09:00:00+00:00"},
        )

    assert excinfo.value.code == "invalid_transition"
    assert "Cannot transition from completed to in_progress" in str(excinfo.value)


def test_apply_transition_rejects_unknown_workflow(db_session):
    with pytest.raises(TransitionError) as excinfo:
        apply_transition(
            db_session,
            actor_employee_id=None,
            entity_type="payroll_run",
            entity_id="PR-1",
            from_state="draft",
            to_state="posted",
            before_obj=None,
            after_obj=None,
        )

    assert excinfo.value.code == "invalid_transition"
    assert excinfo.value.detail[0]["field"] == "entity_type"


@pytest.mark.parametrize(
    "from_state, to_state, expected",
    [
        ("assigned", "unlocked", True),
        ("overdue", "unlocked", True),
        ("unlocked", "in_progress", True),
        ("unlocked", "completed", True),
        ("in_progress", "completed", True),
        ("completed", "removed", True),
        ("assigned", "completed", False),
        ("in_progress", "unlocked", False),
        ("removed", "assigned", False),
    ],
)
def test_training_assignment_transition_table(from_state, to_state, expected):
    assert is_transition_allowed("training_assignment", from_state, to_state) is expected
