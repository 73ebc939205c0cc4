from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterator, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from hrdb.apps.audit import services as audit_services
from hrdb.apps.employees import services as employee_services
from hrdb.apps.workflow import apply_transition

from . import models, qr

logger = logging.getLogger(__name__)

Status = models.TrainingAssignmentStatus

ACCESSIBLE_STATUSES = (Status.UNLOCKED, Status.IN_PROGRESS, Status.COMPLETED)
COMPLETABLE_STATUSES = (Status.UNLOCKED, Status.IN_PROGRESS)
UNLOCKABLE_STATUSES = (Status.ASSIGNED, Status.OVERDUE)

# The last 5% is only granted by the explicit completion action.
PROGRESS_CAP = 95
_PROGRESS_FLOOR = {Status.IN_PROGRESS: 15, Status.UNLOCKED: 5}

WORKFLOW_ENTITY = "training_assignment"


@dataclass
class TrainingServiceError(Exception):
    """
    Raised for every failed training operation.

    `code` is one of: not_found, access_denied, invalid_state.
    """

    code: str
    message: str

    def __str__(self) -> str:
        return self.message


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    value = models.as_utc(value)
    return value.isoformat() if value else None


def _json_map(data: Optional[dict]) -> dict:
    """Copy of an open metadata map with datetime values as ISO strings."""
    return {
        key: _iso(value) if isinstance(value, datetime) else value
        for key, value in (data or {}).items()
    }


def _round_half_up(value: float, places: int = 0) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)


@contextmanager
def _atomic(db: Session) -> Iterator[None]:
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


# ---------------------------------------------------------------------------
# LOOKUPS
# ---------------------------------------------------------------------------


def _require_employee(db: Session, employee_id: str):
    employee = employee_services.find_employee(db, employee_id)
    if employee is None:
        raise TrainingServiceError("not_found", "Employee not found")
    return employee


def _active_module(db: Session, module_id: str) -> Optional[models.TrainingModule]:
    return (
        db.query(models.TrainingModule)
        .filter(
            models.TrainingModule.id == module_id,
            models.TrainingModule.active.is_(True),
        )
        .first()
    )


def _visible_assignments_query(db: Session, employee_id: str):
    """Non-removed assignments of the employee whose module is active."""
    return (
        db.query(models.TrainingAssignment)
        .join(models.TrainingModule, models.TrainingAssignment.module_id == models.TrainingModule.id)
        .filter(
            models.TrainingAssignment.employee_id == employee_id,
            models.TrainingModule.active.is_(True),
            models.TrainingAssignment.status != Status.REMOVED,
        )
    )


def _active_sessions(db: Session, *, assignment_id: str, employee_id: str) -> List[models.TrainingProgress]:
    return (
        db.query(models.TrainingProgress)
        .filter(
            models.TrainingProgress.assignment_id == assignment_id,
            models.TrainingProgress.employee_id == employee_id,
            models.TrainingProgress.is_active.is_(True),
        )
        .order_by(models.TrainingProgress.started_at.asc())
        .all()
    )


def _start_session(
    db: Session,
    *,
    assignment: models.TrainingAssignment,
    employee_id: str,
    metadata: dict,
    now: datetime,
) -> models.TrainingProgress:
    progress = models.TrainingProgress(
        assignment_id=assignment.id,
        employee_id=employee_id,
        module_id=assignment.module_id,
        time_spent_minutes=0,
        started_at=now,
        is_active=True,
        progress_data=metadata,
    )
    db.add(progress)
    db.flush()
    return progress


def _transition(
    db: Session,
    assignment: models.TrainingAssignment,
    *,
    to_status: Status,
    actor_employee_id: Optional[str],
    changes: Dict[str, object],
) -> None:
    from_status = Status(assignment.status)
    apply_transition(
        db,
        actor_employee_id=actor_employee_id,
        entity_type=WORKFLOW_ENTITY,
        entity_id=assignment.id,
        from_state=from_status.value,
        to_state=to_status.value,
        before_obj={
            "unlocked_at": _iso(assignment.unlocked_at),
            "started_at": _iso(assignment.started_at),
        },
        after_obj={key: _iso(value) for key, value in changes.items() if isinstance(value, datetime)},
    )
    assignment.status = to_status
    for field, value in changes.items():
        setattr(assignment, field, value)
    db.add(assignment)
    logger.info(
        "Training assignment %s moved %s -> %s",
        assignment.id,
        from_status.value,
        to_status.value,
    )


# ---------------------------------------------------------------------------
# DERIVED VALUES
# ---------------------------------------------------------------------------


def calculate_progress(db: Session, assignment: models.TrainingAssignment) -> int:
    """
    Percentage complete (0-100) derived from the recorded progress sessions.

    - completed: 100
    - minutes recorded and module duration known: minutes / duration scaled
      to 95, never below the status floor (in_progress 15, unlocked 5)
    - sessions exist but no usable minutes/duration: 15 if in_progress else 5
    - no sessions: the status floor (0 for assigned/overdue)
    """
    status = assignment.status
    if status == Status.COMPLETED:
        return 100

    total_minutes = (
        db.query(func.coalesce(func.sum(models.TrainingProgress.time_spent_minutes), 0))
        .filter(models.TrainingProgress.assignment_id == assignment.id)
        .scalar()
    ) or 0
    module = assignment.module
    duration = int(module.duration or 0) if module is not None else 0
    floor = _PROGRESS_FLOOR.get(status, 0)

    if duration > 0 and total_minutes > 0:
        percent = int(_round_half_up(min(PROGRESS_CAP, total_minutes / duration * PROGRESS_CAP)))
        return max(percent, floor)

    has_progress = (
        db.query(models.TrainingProgress.id)
        .filter(models.TrainingProgress.assignment_id == assignment.id)
        .first()
        is not None
    )
    if has_progress:
        return 15 if status == Status.IN_PROGRESS else 5

    return floor


def is_overdue(assignment: models.TrainingAssignment, now: Optional[datetime] = None) -> bool:
    due_date = models.as_utc(assignment.due_date)
    if due_date is None:
        return False
    now = models.as_utc(now) or _utcnow()
    return due_date < now and assignment.status != Status.COMPLETED


def can_unlock(assignment: models.TrainingAssignment) -> bool:
    # Literal stored status only; a passed due date does not make an
    # "assigned" row count as overdue here.
    return assignment.status in UNLOCKABLE_STATUSES


def calculate_employee_stats(db: Session, assignments: Sequence[models.TrainingAssignment]) -> dict:
    total = len(assignments)
    counts = {status: 0 for status in Status}
    progress_sum = 0
    for assignment in assignments:
        counts[Status(assignment.status)] += 1
        progress_sum += calculate_progress(db, assignment)

    completion_rate = float(_round_half_up(progress_sum / total, 1)) if total else 0.0

    return {
        "total_assigned": total,
        "completed": counts[Status.COMPLETED],
        "in_progress": counts[Status.IN_PROGRESS],
        "overdue": counts[Status.OVERDUE],
        "assigned": counts[Status.ASSIGNED],
        "completion_rate": completion_rate,
    }


# ---------------------------------------------------------------------------
# FORMATTERS
# ---------------------------------------------------------------------------


def _module_summary(module: models.TrainingModule) -> dict:
    return {
        "id": module.id,
        "title": module.title,
        "description": module.description,
        "category": module.category,
        "duration": module.duration,
        "video_url": module.video_url,
        "qr_code": module.qr_code,
    }


def _module_content(module: models.TrainingModule) -> dict:
    return {
        "id": module.id,
        "title": module.title,
        "description": module.description,
        "content": module.content,
        "video_url": module.video_url,
        "duration": module.duration,
        "category": module.category,
    }


def _format_assignment(db: Session, assignment: models.TrainingAssignment, *, now: datetime) -> dict:
    return {
        "id": assignment.id,
        "module": _module_summary(assignment.module),
        "status": Status(assignment.status).value,
        "assigned_at": _iso(assignment.assigned_at),
        "due_date": _iso(assignment.due_date),
        "unlocked_at": _iso(assignment.unlocked_at),
        "started_at": _iso(assignment.started_at),
        "completed_at": _iso(assignment.completed_at),
        "progress": calculate_progress(db, assignment),
        "is_overdue": is_overdue(assignment, now),
        "can_unlock": can_unlock(assignment),
        "notes": assignment.notes,
    }


def _format_module_listing(
    db: Session,
    module: models.TrainingModule,
    assignment: Optional[models.TrainingAssignment],
    *,
    now: datetime,
) -> dict:
    item = _module_summary(module)
    item["content"] = module.content
    if assignment is None:
        item.update(
            {
                "assignment_id": None,
                "assignment_status": "not_assigned",
                "assigned_at": None,
                "unlocked_at": None,
                "started_at": None,
                "completed_at": None,
                "progress": 0,
                "is_overdue": False,
                "can_unlock": False,
            }
        )
        return item
    item.update(
        {
            "assignment_id": assignment.id,
            "assignment_status": Status(assignment.status).value,
            "assigned_at": _iso(assignment.assigned_at),
            "unlocked_at": _iso(assignment.unlocked_at),
            "started_at": _iso(assignment.started_at),
            "completed_at": _iso(assignment.completed_at),
            "progress": calculate_progress(db, assignment),
            "is_overdue": is_overdue(assignment, now),
            "can_unlock": can_unlock(assignment),
        }
    )
    return item


# ---------------------------------------------------------------------------
# EMPLOYEE OPERATIONS
# ---------------------------------------------------------------------------


def get_assigned_training_modules(
    db: Session,
    *,
    employee_id: str,
    now: Optional[datetime] = None,
) -> dict:
    now = now or _utcnow()
    _require_employee(db, employee_id)

    assignments = (
        _visible_assignments_query(db, employee_id)
        .order_by(models.TrainingAssignment.assigned_at.desc())
        .all()
    )
    formatted = [_format_assignment(db, assignment, now=now) for assignment in assignments]
    stats = calculate_employee_stats(db, assignments)

    by_module: Dict[str, models.TrainingAssignment] = {}
    for assignment in assignments:
        by_module.setdefault(assignment.module_id, assignment)

    modules = (
        db.query(models.TrainingModule)
        .filter(models.TrainingModule.active.is_(True))
        .order_by(models.TrainingModule.display_order.asc(), models.TrainingModule.title.asc())
        .all()
    )
    listing = [
        _format_module_listing(db, module, by_module.get(module.id), now=now)
        for module in modules
    ]

    return {
        "assignments": formatted,
        "modules": listing,
        "stats": stats,
        "statistics": stats,
    }


def unlock_training_via_qr(
    db: Session,
    *,
    employee_id: str,
    qr_code: str,
    now: Optional[datetime] = None,
) -> dict:
    now = now or _utcnow()
    _require_employee(db, employee_id)

    module = (
        db.query(models.TrainingModule)
        .filter(
            models.TrainingModule.qr_code == qr_code,
            models.TrainingModule.active.is_(True),
        )
        .first()
    )
    if module is None:
        raise TrainingServiceError("not_found", "Invalid QR code or training module not found")

    assignment = (
        db.query(models.TrainingAssignment)
        .filter(
            models.TrainingAssignment.employee_id == employee_id,
            models.TrainingAssignment.module_id == module.id,
            models.TrainingAssignment.status.notin_([Status.REMOVED, Status.COMPLETED]),
        )
        .first()
    )
    if assignment is None:
        raise TrainingServiceError("not_found", "Training module not assigned to this employee")

    if assignment.status in (Status.UNLOCKED, Status.IN_PROGRESS):
        return {
            "message": "Training module already unlocked",
            "assignment": _format_assignment(db, assignment, now=now),
            "module_content": _module_content(module),
        }

    with _atomic(db):
        _transition(
            db,
            assignment,
            to_status=Status.UNLOCKED,
            actor_employee_id=employee_id,
            changes={"unlocked_at": now},
        )
    db.refresh(assignment)

    return {
        "message": "Training module successfully unlocked",
        "assignment": _format_assignment(db, assignment, now=now),
        "module_content": _module_content(module),
    }


def get_module_content(
    db: Session,
    *,
    employee_id: str,
    module_id: str,
    now: Optional[datetime] = None,
) -> dict:
    now = now or _utcnow()
    _require_employee(db, employee_id)

    module = _active_module(db, module_id)
    if module is None:
        raise TrainingServiceError("not_found", "Training module not found")

    assignment = (
        db.query(models.TrainingAssignment)
        .filter(
            models.TrainingAssignment.employee_id == employee_id,
            models.TrainingAssignment.module_id == module_id,
            models.TrainingAssignment.status.in_(ACCESSIBLE_STATUSES),
        )
        .first()
    )
    if assignment is None:
        raise TrainingServiceError(
            "access_denied",
            "Access denied. Training module must be unlocked first.",
        )

    with _atomic(db):
        if assignment.status == Status.UNLOCKED:
            _transition(
                db,
                assignment,
                to_status=Status.IN_PROGRESS,
                actor_employee_id=employee_id,
                changes={"started_at": now},
            )
        if not _active_sessions(db, assignment_id=assignment.id, employee_id=employee_id):
            _start_session(
                db,
                assignment=assignment,
                employee_id=employee_id,
                metadata={"training_started": True, "access_time": _iso(now)},
                now=now,
            )
    db.refresh(assignment)

    return {
        "assignment": _format_assignment(db, assignment, now=now),
        "module_content": _module_content(module),
    }


def complete_training(
    db: Session,
    *,
    employee_id: str,
    module_id: str,
    completion_data: Optional[dict] = None,
    now: Optional[datetime] = None,
) -> dict:
    now = now or _utcnow()
    completion_data = _json_map(completion_data)
    _require_employee(db, employee_id)

    module = _active_module(db, module_id)
    if module is None:
        raise TrainingServiceError("not_found", "Training module not found or inactive")

    assignment = (
        db.query(models.TrainingAssignment)
        .filter(
            models.TrainingAssignment.employee_id == employee_id,
            models.TrainingAssignment.module_id == module_id,
            models.TrainingAssignment.status.in_(COMPLETABLE_STATUSES),
        )
        .first()
    )
    if assignment is None:
        raise TrainingServiceError("invalid_state", "Training assignment not found or not in progress")

    with _atomic(db):
        _transition(
            db,
            assignment,
            to_status=Status.COMPLETED,
            actor_employee_id=employee_id,
            changes={"completed_at": now, "completion_data": completion_data},
        )

        sessions = _active_sessions(db, assignment_id=assignment.id, employee_id=employee_id)
        if not sessions:
            sessions = [
                _start_session(
                    db,
                    assignment=assignment,
                    employee_id=employee_id,
                    metadata={**completion_data, "created_on_completion": True},
                    now=now,
                )
            ]

        minutes = completion_data.get("time_spent_minutes")
        for progress in sessions:
            progress.end_session(minutes, now=now)
            progress.update_progress({**completion_data, "completion_time": _iso(now)})
            db.add(progress)
    db.refresh(assignment)

    return {
        "message": "Training completed successfully",
        "assignment": _format_assignment(db, assignment, now=now),
    }


def get_employee_training_stats(db: Session, *, employee_id: str) -> dict:
    assignments = _visible_assignments_query(db, employee_id).all()
    return calculate_employee_stats(db, assignments)


# ---------------------------------------------------------------------------
# ADMINISTRATION
# ---------------------------------------------------------------------------


def _generate_unique_qr_code(db: Session) -> str:
    while True:
        code = qr.generate_code()
        taken = (
            db.query(models.TrainingModule.id)
            .filter(models.TrainingModule.qr_code == code)
            .first()
        )
        if taken is None:
            return code


def generate_training_qr(
    db: Session,
    *,
    module_id: str,
    now: Optional[datetime] = None,
    renderer: Optional[qr.QRRenderer] = None,
) -> qr.TrainingQRCode:
    now = now or _utcnow()
    module = db.query(models.TrainingModule).filter(models.TrainingModule.id == module_id).first()
    if module is None:
        raise TrainingServiceError("not_found", "Training module not found")

    if not module.qr_code:
        with _atomic(db):
            module.qr_code = _generate_unique_qr_code(db)
            db.add(module)
        logger.info("Issued QR code %s for training module %s", module.qr_code, module.id)

    payload = qr.build_qr_payload(
        module_id=module.id,
        qr_code=module.qr_code,
        title=module.title,
        timestamp=now,
    )
    render = renderer or qr.render_qr_svg
    return qr.TrainingQRCode(
        module_id=module.id,
        qr_code=module.qr_code,
        payload=payload,
        image=render(payload),
    )


def assign_training_module(
    db: Session,
    *,
    employee_id: str,
    module_id: str,
    due_date: Optional[datetime] = None,
    notes: Optional[str] = None,
    assigned_by_employee_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> models.TrainingAssignment:
    """
    Create the single active assignment for (employee, module).
    """
    now = now or _utcnow()
    _require_employee(db, employee_id)

    module = _active_module(db, module_id)
    if module is None:
        raise TrainingServiceError("not_found", "Training module not found")

    existing = (
        db.query(models.TrainingAssignment.id)
        .filter(
            models.TrainingAssignment.employee_id == employee_id,
            models.TrainingAssignment.module_id == module_id,
            models.TrainingAssignment.status != Status.REMOVED,
        )
        .first()
    )
    if existing is not None:
        raise TrainingServiceError("invalid_state", "Training module already assigned to this employee")

    with _atomic(db):
        assignment = models.TrainingAssignment(
            employee_id=employee_id,
            module_id=module_id,
            status=Status.ASSIGNED,
            assigned_at=now,
            due_date=due_date,
            notes=notes,
        )
        db.add(assignment)
        db.flush()
        audit_services.log_event(
            db,
            actor_employee_id=assigned_by_employee_id,
            entity_type=WORKFLOW_ENTITY,
            entity_id=assignment.id,
            action="assign",
            after={
                "employee_id": employee_id,
                "module_id": module_id,
                "status": Status.ASSIGNED.value,
                "due_date": _iso(due_date),
            },
        )
    return assignment


def remove_training_assignment(
    db: Session,
    *,
    assignment_id: str,
    removed_by_employee_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> models.TrainingAssignment:
    """
    Soft-delete an assignment; its history stays, and the pair can be
    assigned again. Open progress sessions are closed.
    """
    now = now or _utcnow()
    assignment = (
        db.query(models.TrainingAssignment)
        .filter(
            models.TrainingAssignment.id == assignment_id,
            models.TrainingAssignment.status != Status.REMOVED,
        )
        .first()
    )
    if assignment is None:
        raise TrainingServiceError("not_found", "Training assignment not found")

    with _atomic(db):
        _transition(
            db,
            assignment,
            to_status=Status.REMOVED,
            actor_employee_id=removed_by_employee_id,
            changes={},
        )
        open_sessions = (
            db.query(models.TrainingProgress)
            .filter(
                models.TrainingProgress.assignment_id == assignment.id,
                models.TrainingProgress.is_active.is_(True),
            )
            .all()
        )
        for progress in open_sessions:
            progress.end_session(now=now)
            db.add(progress)
    return assignment
