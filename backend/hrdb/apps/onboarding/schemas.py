from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class OnboardingPageStatus(BaseModel):
    id: str
    title: str
    content: Optional[str] = None
    icon: Optional[str] = None
    order: int
    status: str
    completed: bool
    completed_at: Optional[datetime] = None


class OnboardingSummary(BaseModel):
    total: int
    completed: int
    completion_rate: float


class OnboardingPagesResponse(BaseModel):
    pages: List[OnboardingPageStatus]
    summary: OnboardingSummary
