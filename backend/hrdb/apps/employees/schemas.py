# backend/hrdb/apps/employees/schemas.py

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"

# Fields that may be omitted but, once sent, must carry a value.
_REQUIRED_WHEN_PRESENT = {
    "first_name": "First name is required",
    "last_name": "Last name is required",
    "mailing_address": "Mailing address is required",
    "requested_hours": "Requested hours per week is required",
}


class EmployeePersonalInfoUpdate(BaseModel):
    """
    Partial update of an employee's own personal information.

    Only the fields present in the request body are applied.
    """

    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=20, pattern=PHONE_PATTERN)
    mailing_address: Optional[str] = Field(None, min_length=1, max_length=500)
    requested_hours: Optional[int] = Field(
        None,
        ge=1,
        le=40,
        description="Requested hours per week; between 1 and 40.",
    )
    emergency_contact: Optional[str] = Field(None, max_length=255)
    emergency_phone: Optional[str] = Field(None, max_length=20, pattern=PHONE_PATTERN)

    @model_validator(mode="after")
    def _check_required_when_present(self) -> "EmployeePersonalInfoUpdate":
        for field, message in _REQUIRED_WHEN_PRESENT.items():
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(message)
        return self

    def changes(self) -> dict:
        return self.model_dump(include=self.model_fields_set)


class EmployeeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    employee_code: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    mailing_address: Optional[str] = None
    requested_hours: Optional[int] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
