from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from hrdb.apps.audit import services as audit_services
from hrdb.apps.employees import services as employee_services

from . import models

logger = logging.getLogger(__name__)

Status = models.OnboardingProgressStatus


class OnboardingError(LookupError):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _progress_for(db: Session, *, page_id: str, employee_id: str) -> Optional[models.EmployeeOnboardingProgress]:
    return (
        db.query(models.EmployeeOnboardingProgress)
        .filter(
            models.EmployeeOnboardingProgress.page_id == page_id,
            models.EmployeeOnboardingProgress.employee_id == employee_id,
        )
        .first()
    )


def get_completion_status_for(db: Session, *, page_id: str, employee_id: str) -> str:
    progress = _progress_for(db, page_id=page_id, employee_id=employee_id)
    return Status(progress.status).value if progress else Status.NOT_STARTED.value


def is_completed_by(db: Session, *, page_id: str, employee_id: str) -> bool:
    return (
        db.query(models.EmployeeOnboardingProgress.id)
        .filter(
            models.EmployeeOnboardingProgress.page_id == page_id,
            models.EmployeeOnboardingProgress.employee_id == employee_id,
            models.EmployeeOnboardingProgress.status == Status.COMPLETED,
        )
        .first()
        is not None
    )


def list_onboarding_pages(db: Session, *, employee_id: str) -> dict:
    if employee_services.find_employee(db, employee_id) is None:
        raise OnboardingError("Employee not found")

    pages = (
        db.query(models.OnboardingPage)
        .filter(models.OnboardingPage.active.is_(True))
        .order_by(models.OnboardingPage.display_order.asc())
        .all()
    )
    progress_by_page = {
        row.page_id: row
        for row in db.query(models.EmployeeOnboardingProgress)
        .filter(models.EmployeeOnboardingProgress.employee_id == employee_id)
        .all()
    }

    items = []
    for page in pages:
        progress = progress_by_page.get(page.id)
        status = Status(progress.status) if progress else Status.NOT_STARTED
        items.append(
            {
                "id": page.id,
                "title": page.title,
                "content": page.content,
                "icon": page.icon,
                "order": page.display_order,
                "status": status.value,
                "completed": status == Status.COMPLETED,
                "completed_at": progress.completed_at if progress else None,
            }
        )

    total = len(items)
    completed = sum(1 for item in items if item["completed"])
    return {
        "pages": items,
        "summary": {
            "total": total,
            "completed": completed,
            "completion_rate": round(completed / total * 100, 1) if total else 0.0,
        },
    }


def mark_page_completed(
    db: Session,
    *,
    employee_id: str,
    page_id: str,
    now: Optional[datetime] = None,
) -> models.EmployeeOnboardingProgress:
    now = now or _utcnow()
    if employee_services.find_employee(db, employee_id) is None:
        raise OnboardingError("Employee not found")
    page = (
        db.query(models.OnboardingPage)
        .filter(models.OnboardingPage.id == page_id, models.OnboardingPage.active.is_(True))
        .first()
    )
    if page is None:
        raise OnboardingError("Onboarding page not found")

    progress = _progress_for(db, page_id=page_id, employee_id=employee_id)
    if progress is not None and progress.status == Status.COMPLETED:
        return progress

    if progress is None:
        progress = models.EmployeeOnboardingProgress(
            employee_id=employee_id,
            page_id=page_id,
            started_at=now,
        )
    progress.status = Status.COMPLETED
    progress.completed_at = now
    if progress.started_at is None:
        progress.started_at = now
    db.add(progress)
    db.flush()
    audit_services.log_event(
        db,
        actor_employee_id=employee_id,
        entity_type="onboarding_page",
        entity_id=page_id,
        action="complete",
        after={"status": Status.COMPLETED.value, "completed_at": now.isoformat()},
        metadata={"module": "onboarding"},
    )
    db.commit()
    logger.info("Onboarding page %s completed by employee %s", page_id, employee_id)
    return progress
