# backend/hrdb/apps/employees/models.py

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from hrdb.database import Base
from hrdb.user_id import generate_employee_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Employee(Base):
    """
    An employee of the organisation.

    Training and onboarding only need the identity (id); the personal
    information columns are maintained by the employee through the
    personal-info endpoint.
    """

    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=generate_employee_id)
    employee_code = Column(String(32), unique=True, nullable=False, index=True)

    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=True, index=True)

    phone = Column(String(20), nullable=True)
    mailing_address = Column(String(500), nullable=True)
    requested_hours = Column(
        Integer,
        nullable=True,
        doc="Requested working hours per week (1-40).",
    )
    emergency_contact = Column(String(255), nullable=True)
    emergency_phone = Column(String(20), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Employee id={self.id} code={self.employee_code}>"
