# backend/hrdb/apps/onboarding/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from hrdb.database import Base
from hrdb.user_id import generate_user_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _page_id() -> str:
    return generate_user_id("OBP")


class OnboardingProgressStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class OnboardingPage(Base):
    """
    One page of the new-hire onboarding walkthrough (welcome, policies,
    benefits, ...), shown in `display_order`.
    """

    __tablename__ = "onboarding_pages"

    id = Column(String(36), primary_key=True, default=_page_id)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    icon = Column(String(64), nullable=True)
    display_order = Column(Integer, nullable=False, default=0, index=True)
    active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    employee_progress = relationship(
        "EmployeeOnboardingProgress",
        back_populates="page",
        cascade="all, delete-orphan",
    )


class EmployeeOnboardingProgress(Base):
    __tablename__ = "employee_onboarding_progress"
    __table_args__ = (
        UniqueConstraint("employee_id", "page_id", name="uq_onboarding_progress_employee_page"),
    )

    id = Column(String(36), primary_key=True, default=generate_user_id)
    employee_id = Column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    page_id = Column(
        String(36),
        ForeignKey("onboarding_pages.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status = Column(
        Enum(
            OnboardingProgressStatus,
            name="onboarding_progress_status_enum",
            native_enum=False,
        ),
        nullable=False,
        default=OnboardingProgressStatus.NOT_STARTED,
    )
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    page = relationship("OnboardingPage", back_populates="employee_progress")
