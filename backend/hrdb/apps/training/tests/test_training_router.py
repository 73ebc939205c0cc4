from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException

from hrdb.apps.employees import models as employee_models
from hrdb.apps.training import models as training_models
from hrdb.apps.training import router as training_router
from hrdb.apps.training import schemas as training_schemas
from hrdb.apps.training import services as training_services
from hrdb.apps.workflow import TransitionError

Status = training_models.TrainingAssignmentStatus


def _create_employee(db_session) -> employee_models.Employee:
    employee = employee_models.Employee(employee_code="E-300", first_name="Amina", last_name="Njeri")
    db_session.add(employee)
    db_session.commit()
    return employee


def _create_assignment(db_session, employee, status: Status, *, qr_code=None):
    module = training_models.TrainingModule(title="Data protection", duration=30, qr_code=qr_code)
    db_session.add(module)
    db_session.commit()
    assignment = training_models.TrainingAssignment(
        employee_id=employee.id,
        module_id=module.id,
        status=status,
        assigned_at=datetime.now(timezone.utc) - timedelta(days=1),
    )
    db_session.add(assignment)
    db_session.commit()
    return module, assignment


def test_router_has_expected_routes():
    def _has(method: str, path: str) -> bool:
        return any(
            route.path == path and method in (route.methods or [])
            for route in training_router.router.routes
        )

    assert _has("GET", "/training/employees/{employee_id}/modules")
    assert _has("POST", "/training/employees/{employee_id}/unlock")
    assert _has("GET", "/training/employees/{employee_id}/modules/{module_id}/content")
    assert _has("POST", "/training/employees/{employee_id}/modules/{module_id}/complete")
    assert _has("GET", "/training/employees/{employee_id}/stats")
    assert _has("GET", "/training/modules/{module_id}/qr")


def test_app_mounts_training_router():
    from hrdb.main import app

    paths = set(app.openapi()["paths"])
    assert "/training/employees/{employee_id}/modules" in paths
    assert "/onboarding/employees/{employee_id}/pages" in paths
    assert "/employees/{employee_id}/personal-info" in paths


def test_list_modules_unknown_employee_is_404(db_session):
    with pytest.raises(HTTPException) as excinfo:
        training_router.list_employee_modules("EMP-MISSING", db=db_session)

    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "Employee not found"


def test_unlock_with_unknown_code_is_404(db_session):
    employee = _create_employee(db_session)

    with pytest.raises(HTTPException) as excinfo:
        training_router.unlock_training(
            employee.id,
            training_schemas.UnlockTrainingRequest(qr_code="TRN-NOTREAL0"),
            db=db_session,
        )

    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == "Invalid QR code or training module not found"


def test_unlock_endpoint_returns_service_payload(db_session):
    employee = _create_employee(db_session)
    _create_assignment(db_session, employee, Status.ASSIGNED, qr_code="TRN-ROUTER00")

    result = training_router.unlock_training(
        employee.id,
        training_schemas.UnlockTrainingRequest(qr_code="TRN-ROUTER00"),
        db=db_session,
    )

    response = training_schemas.UnlockTrainingResponse.model_validate(result)
    assert response.message == "Training module successfully unlocked"
    assert response.assignment.status == "unlocked"


def test_content_before_unlock_is_403(db_session):
    employee = _create_employee(db_session)
    module, _ = _create_assignment(db_session, employee, Status.ASSIGNED)

    with pytest.raises(HTTPException) as excinfo:
        training_router.get_module_content(employee.id, module.id, db=db_session)

    assert excinfo.value.status_code == 403


def test_complete_when_not_started_is_409(db_session):
    employee = _create_employee(db_session)
    module, _ = _create_assignment(db_session, employee, Status.ASSIGNED)

    with pytest.raises(HTTPException) as excinfo:
        training_router.complete_training(
            employee.id,
            module.id,
            training_schemas.TrainingCompletionRequest(time_spent_minutes=10),
            db=db_session,
        )

    assert excinfo.value.status_code == 409
    assert excinfo.value.detail == "Training assignment not found or not in progress"


def test_complete_endpoint_passes_extra_fields_through(db_session):
    employee = _create_employee(db_session)
    module, assignment = _create_assignment(db_session, employee, Status.UNLOCKED)
    assignment.unlocked_at = datetime.now(timezone.utc)
    db_session.commit()

    payload = training_schemas.TrainingCompletionRequest.model_validate({"time_spent_minutes": 25, "score": 88})
    result = training_router.complete_training(employee.id, module.id, payload, db=db_session)

    assert result["assignment"]["status"] == "completed"
    db_session.refresh(assignment)
    assert assignment.completion_data == {"time_spent_minutes": 25, "score": 88}


def test_stats_endpoint(db_session):
    employee = _create_employee(db_session)
    _create_assignment(db_session, employee, Status.COMPLETED)

    stats = training_router.employee_stats(employee.id, db=db_session)

    assert training_schemas.TrainingStats.model_validate(stats).completion_rate == 100.0


def test_qr_unknown_module_is_404(db_session):
    with pytest.raises(HTTPException) as excinfo:
        training_router.training_module_qr("TM-MISSING", db=db_session)

    assert excinfo.value.status_code == 404


def test_qr_endpoint_returns_svg_response(db_session, monkeypatch):
    employee = _create_employee(db_session)
    module, _ = _create_assignment(db_session, employee, Status.ASSIGNED, qr_code="TRN-SVGMOD00")
    monkeypatch.setattr(training_services.qr, "render_qr_svg", lambda payload: "<svg></svg>")

    response = training_router.training_module_qr(module.id, db=db_session)

    assert response.media_type == "image/svg+xml"
    assert response.body == b"<svg></svg>"
    assert response.headers["x-training-qr-code"] == "TRN-SVGMOD00"


def test_transition_errors_map_to_conflict():
    exc = TransitionError(code="invalid_transition", detail=[{"field": "status", "reason": "nope"}])

    with pytest.raises(HTTPException) as excinfo:
        training_router._raise_http(exc)

    assert excinfo.value.status_code == 409
    assert excinfo.value.detail["code"] == "invalid_transition"
