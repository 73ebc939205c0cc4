from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from hrdb.database import get_db

from . import schemas, services

router = APIRouter(prefix="/onboarding", tags=["onboarding"])


@router.get("/employees/{employee_id}/pages", response_model=schemas.OnboardingPagesResponse)
def list_pages(employee_id: str, db: Session = Depends(get_db)):
    try:
        return services.list_onboarding_pages(db, employee_id=employee_id)
    except services.OnboardingError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post("/employees/{employee_id}/pages/{page_id}/complete")
def complete_page(employee_id: str, page_id: str, db: Session = Depends(get_db)):
    try:
        progress = services.mark_page_completed(db, employee_id=employee_id, page_id=page_id)
    except services.OnboardingError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return {
        "page_id": progress.page_id,
        "status": services.Status(progress.status).value,
        "completed_at": progress.completed_at,
    }
