from __future__ import annotations

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from hrdb.apps.employees import models as employee_models
from hrdb.apps.employees import router as employee_router
from hrdb.apps.employees import schemas as employee_schemas
from hrdb.apps.employees import services as employee_services


def _create_employee(db_session) -> employee_models.Employee:
    employee = employee_models.Employee(
        employee_code="E-400",
        first_name="Wanjiru",
        last_name="Achieng",
        phone="+254700000001",
        mailing_address="PO Box 1, Nairobi",
        requested_hours=40,
    )
    db_session.add(employee)
    db_session.commit()
    return employee


def test_update_personal_info_applies_only_sent_fields(db_session):
    employee = _create_employee(db_session)

    updated = employee_services.update_personal_info(
        db_session,
        employee_id=employee.id,
        data=employee_schemas.EmployeePersonalInfoUpdate(requested_hours=24, emergency_contact="Peter Achieng"),
    )

    assert updated.requested_hours == 24
    assert updated.emergency_contact == "Peter Achieng"
    assert updated.first_name == "Wanjiru"
    assert updated.phone == "+254700000001"


def test_optional_fields_can_be_cleared(db_session):
    employee = _create_employee(db_session)

    updated = employee_services.update_personal_info(
        db_session,
        employee_id=employee.id,
        data=employee_schemas.EmployeePersonalInfoUpdate(phone=None),
    )

    assert updated.phone is None


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"first_name": None}, "First name is required"),
        ({"last_name": None}, "Last name is required"),
        ({"mailing_address": None}, "Mailing address is required"),
        ({"requested_hours": None}, "Requested hours per week is required"),
    ],
)
def test_required_fields_cannot_be_blanked(payload, message):
    with pytest.raises(ValidationError) as excinfo:
        employee_schemas.EmployeePersonalInfoUpdate(**payload)

    assert message in str(excinfo.value)


@pytest.mark.parametrize(
    "payload",
    [
        {"requested_hours": 0},
        {"requested_hours": 41},
        {"phone": "0712345678"},
        {"emergency_phone": "+12-34"},
        {"first_name": ""},
    ],
)
def test_invalid_values_are_rejected(payload):
    with pytest.raises(ValidationError):
        employee_schemas.EmployeePersonalInfoUpdate(**payload)


def test_valid_phone_numbers_are_accepted():
    data = employee_schemas.EmployeePersonalInfoUpdate(phone="+14155550123", emergency_phone="254700000002")

    assert data.changes() == {"phone": "+14155550123", "emergency_phone": "254700000002"}


def test_unknown_employee(db_session):
    with pytest.raises(employee_services.EmployeeNotFoundError):
        employee_services.get_employee(db_session, "EMP-MISSING")

    with pytest.raises(HTTPException) as excinfo:
        employee_router.update_personal_info(
            "EMP-MISSING",
            employee_schemas.EmployeePersonalInfoUpdate(requested_hours=10),
            db=db_session,
        )
    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "Employee not found"


def test_employee_read_schema_from_model(db_session):
    employee = _create_employee(db_session)

    read = employee_schemas.EmployeeRead.model_validate(employee)

    assert read.id == employee.id
    assert read.id.startswith("EMP-")
    assert read.is_active is True
    assert employee.full_name == "Wanjiru Achieng"
