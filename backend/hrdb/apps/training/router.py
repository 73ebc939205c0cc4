from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from hrdb.apps.workflow import TransitionError
from hrdb.database import get_db

from . import schemas, services

router = APIRouter(prefix="/training", tags=["training"])

_ERROR_STATUS = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "access_denied": status.HTTP_403_FORBIDDEN,
    "invalid_state": status.HTTP_409_CONFLICT,
}


def _raise_http(exc: Exception) -> NoReturn:
    if isinstance(exc, services.TrainingServiceError):
        code = _ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
        raise HTTPException(status_code=code, detail=exc.message) from exc
    if isinstance(exc, TransitionError):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": exc.code, "errors": exc.detail},
        ) from exc
    raise exc


@router.get(
    "/employees/{employee_id}/modules",
    response_model=schemas.AssignedTrainingModulesResponse,
)
def list_employee_modules(employee_id: str, db: Session = Depends(get_db)):
    try:
        return services.get_assigned_training_modules(db, employee_id=employee_id)
    except services.TrainingServiceError as exc:
        _raise_http(exc)


@router.post(
    "/employees/{employee_id}/unlock",
    response_model=schemas.UnlockTrainingResponse,
)
def unlock_training(
    employee_id: str,
    payload: schemas.UnlockTrainingRequest,
    db: Session = Depends(get_db),
):
    try:
        return services.unlock_training_via_qr(db, employee_id=employee_id, qr_code=payload.qr_code)
    except (services.TrainingServiceError, TransitionError) as exc:
        _raise_http(exc)


@router.get(
    "/employees/{employee_id}/modules/{module_id}/content",
    response_model=schemas.ModuleContentResponse,
)
def get_module_content(employee_id: str, module_id: str, db: Session = Depends(get_db)):
    try:
        return services.get_module_content(db, employee_id=employee_id, module_id=module_id)
    except (services.TrainingServiceError, TransitionError) as exc:
        _raise_http(exc)


@router.post(
    "/employees/{employee_id}/modules/{module_id}/complete",
    response_model=schemas.CompleteTrainingResponse,
)
def complete_training(
    employee_id: str,
    module_id: str,
    payload: schemas.TrainingCompletionRequest,
    db: Session = Depends(get_db),
):
    try:
        return services.complete_training(
            db,
            employee_id=employee_id,
            module_id=module_id,
            completion_data=payload.completion_data(),
        )
    except (services.TrainingServiceError, TransitionError) as exc:
        _raise_http(exc)


@router.get("/employees/{employee_id}/stats", response_model=schemas.TrainingStats)
def employee_stats(employee_id: str, db: Session = Depends(get_db)):
    return services.get_employee_training_stats(db, employee_id=employee_id)


@router.get("/modules/{module_id}/qr", response_class=Response)
def training_module_qr(module_id: str, db: Session = Depends(get_db)):
    try:
        qr_image = services.generate_training_qr(db, module_id=module_id)
    except services.TrainingServiceError as exc:
        _raise_http(exc)
    return Response(
        content=qr_image.image,
        media_type=qr_image.media_type,
        headers={"X-Training-QR-Code": qr_image.qr_code},
    )
