from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from hrdb.database import get_db

from . import schemas, services

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("/{employee_id}", response_model=schemas.EmployeeRead)
def get_employee(employee_id: str, db: Session = Depends(get_db)):
    try:
        return services.get_employee(db, employee_id)
    except services.EmployeeNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.patch("/{employee_id}/personal-info", response_model=schemas.EmployeeRead)
def update_personal_info(
    employee_id: str,
    payload: schemas.EmployeePersonalInfoUpdate,
    db: Session = Depends(get_db),
):
    try:
        return services.update_personal_info(db, employee_id=employee_id, data=payload)
    except services.EmployeeNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
