from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from . import models, schemas

logger = logging.getLogger(__name__)


class EmployeeNotFoundError(LookupError):
    def __init__(self, employee_id: str):
        super().__init__("Employee not found")
        self.employee_id = employee_id


def find_employee(db: Session, employee_id: str):
    return db.query(models.Employee).filter(models.Employee.id == employee_id).first()


def get_employee(db: Session, employee_id: str) -> models.Employee:
    employee = find_employee(db, employee_id)
    if employee is None:
        raise EmployeeNotFoundError(employee_id)
    return employee


def update_personal_info(
    db: Session,
    *,
    employee_id: str,
    data: schemas.EmployeePersonalInfoUpdate,
) -> models.Employee:
    employee = get_employee(db, employee_id)
    changes = data.changes()
    for field, value in changes.items():
        setattr(employee, field, value)
    db.add(employee)
    db.commit()
    db.refresh(employee)
    logger.info(
        "Employee personal info updated",
        extra={"employee_id": employee_id, "fields": sorted(changes)},
    )
    return employee
