# backend/hrdb/apps/training/schemas.py

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# REQUESTS
# ---------------------------------------------------------------------------


class UnlockTrainingRequest(BaseModel):
    qr_code: str = Field(..., min_length=1, max_length=64, description="Code printed on the module's QR sheet.")


class TrainingCompletionRequest(BaseModel):
    """
    Completion payload. Only `time_spent_minutes` has a fixed meaning
    (it overrides the measured session time); any other keys, such as a
    quiz score or feedback, are stored as-is with the completion.
    """

    model_config = ConfigDict(extra="allow")

    time_spent_minutes: Optional[int] = Field(None, ge=0)

    def completion_data(self) -> dict:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# RESPONSES
# ---------------------------------------------------------------------------


class TrainingModuleSummary(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    duration: Optional[int] = None
    video_url: Optional[str] = None
    qr_code: Optional[str] = None


class TrainingModuleContent(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    content: Optional[str] = None
    video_url: Optional[str] = None
    duration: Optional[int] = None
    category: Optional[str] = None


class TrainingAssignmentRead(BaseModel):
    id: str
    module: TrainingModuleSummary
    status: str
    assigned_at: Optional[str] = None
    due_date: Optional[str] = None
    unlocked_at: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    progress: int = Field(..., ge=0, le=100)
    is_overdue: bool
    can_unlock: bool
    notes: Optional[str] = None


class TrainingModuleListItem(TrainingModuleSummary):
    """An active module with the employee's assignment, if any."""

    content: Optional[str] = None
    assignment_id: Optional[str] = None
    assignment_status: str = Field(..., description="Assignment status or 'not_assigned'.")
    assigned_at: Optional[str] = None
    unlocked_at: Optional[str] = None
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    progress: int = 0
    is_overdue: bool = False
    can_unlock: bool = False


class TrainingStats(BaseModel):
    total_assigned: int
    completed: int
    in_progress: int
    overdue: int
    assigned: int
    completion_rate: float = Field(..., description="Mean progress percentage across assignments.")


class AssignedTrainingModulesResponse(BaseModel):
    assignments: List[TrainingAssignmentRead]
    modules: List[TrainingModuleListItem]
    stats: TrainingStats
    statistics: TrainingStats


class UnlockTrainingResponse(BaseModel):
    message: str
    assignment: TrainingAssignmentRead
    module_content: TrainingModuleContent


class ModuleContentResponse(BaseModel):
    assignment: TrainingAssignmentRead
    module_content: TrainingModuleContent


class CompleteTrainingResponse(BaseModel):
    message: str
    assignment: TrainingAssignmentRead
