# backend/hrdb/apps/training/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    text,
)
from sqlalchemy.orm import relationship

from hrdb.database import Base
from hrdb.user_id import generate_user_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes (SQLite drops the offset on read).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _module_id() -> str:
    return generate_user_id("TM")


def _assignment_id() -> str:
    return generate_user_id("TA")


def _progress_id() -> str:
    return generate_user_id("TP")


# ---------------------------------------------------------------------------
# ENUMS
# ---------------------------------------------------------------------------


class TrainingAssignmentStatus(str, enum.Enum):
    ASSIGNED = "assigned"
    UNLOCKED = "unlocked"
    IN_PROGRESS = "in_progress"
    OVERDUE = "overdue"
    COMPLETED = "completed"
    REMOVED = "removed"


# ---------------------------------------------------------------------------
# TRAINING MODULE MASTER
# ---------------------------------------------------------------------------


class TrainingModule(Base):
    """
    A unit of training content (text and/or video) that can be assigned to
    employees and unlocked by scanning its QR code.

    Inactive modules stay in the table so assignment history is kept, but
    are hidden from every employee-facing query.
    """

    __tablename__ = "training_modules"
    __table_args__ = (
        Index("idx_training_modules_active_order", "active", "display_order"),
    )

    id = Column(String(36), primary_key=True, default=_module_id)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(64), nullable=True, index=True)
    duration = Column(
        Integer,
        nullable=True,
        doc="Expected duration in minutes; drives the progress estimate.",
    )
    video_url = Column(String(1024), nullable=True)
    qr_code = Column(
        String(32),
        unique=True,
        nullable=True,
        index=True,
        doc="Code like 'TRN-7KQ2M9XA'; generated on first QR request.",
    )
    content = Column(Text, nullable=True)

    active = Column(Boolean, nullable=False, default=True, index=True)
    display_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    assignments = relationship("TrainingAssignment", back_populates="module")

    def __repr__(self) -> str:
        return f"<TrainingModule id={self.id} title={self.title!r}>"


# ---------------------------------------------------------------------------
# ASSIGNMENTS
# ---------------------------------------------------------------------------


class TrainingAssignment(Base):
    """
    Link between one employee and one training module.

    At most one non-removed assignment may exist per (employee, module);
    the partial unique index below enforces it on PostgreSQL and SQLite.
    """

    __tablename__ = "training_assignments"
    __table_args__ = (
        Index(
            "uq_training_assignments_active_pair",
            "employee_id",
            "module_id",
            unique=True,
            sqlite_where=text("status != 'REMOVED'"),
            postgresql_where=text("status != 'REMOVED'"),
        ),
        Index("idx_training_assignments_employee_status", "employee_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=_assignment_id)

    employee_id = Column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    module_id = Column(
        String(36),
        ForeignKey("training_modules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    status = Column(
        Enum(
            TrainingAssignmentStatus,
            name="training_assignment_status_enum",
            native_enum=False,
        ),
        nullable=False,
        default=TrainingAssignmentStatus.ASSIGNED,
    )

    assigned_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    due_date = Column(DateTime(timezone=True), nullable=True)
    unlocked_at = Column(DateTime(timezone=True), nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    completion_data = Column(JSON, nullable=True)
    notes = Column(Text, nullable=True)

    module = relationship("TrainingModule", back_populates="assignments", lazy="joined")
    progress_records = relationship(
        "TrainingProgress",
        back_populates="assignment",
        cascade="all, delete-orphan",
        order_by="TrainingProgress.started_at",
    )

    def __repr__(self) -> str:
        return (
            f"<TrainingAssignment id={self.id} employee={self.employee_id} "
            f"module={self.module_id} status={self.status}>"
        )


# ---------------------------------------------------------------------------
# PROGRESS SESSIONS
# ---------------------------------------------------------------------------


class TrainingProgress(Base):
    """
    One time-tracking session of an employee working through a module.

    A session is opened when the content is first accessed and closed when
    the training is completed.
    """

    __tablename__ = "training_progress"
    __table_args__ = (
        Index("idx_training_progress_assignment_active", "assignment_id", "is_active"),
    )

    id = Column(String(36), primary_key=True, default=_progress_id)

    assignment_id = Column(
        String(36),
        ForeignKey("training_assignments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    employee_id = Column(
        String(36),
        ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    module_id = Column(
        String(36),
        ForeignKey("training_modules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    time_spent_minutes = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    progress_data = Column(JSON, nullable=True)

    assignment = relationship("TrainingAssignment", back_populates="progress_records")

    def end_session(
        self,
        time_spent_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Close the session. Without an explicit minute count the elapsed
        wall-clock time since `started_at` is used (whole minutes).
        """
        now = now or _utcnow()
        self.ended_at = now
        self.is_active = False
        if time_spent_minutes is not None:
            self.time_spent_minutes = max(0, int(time_spent_minutes))
            return
        started = as_utc(self.started_at)
        if started is None:
            return
        elapsed = int((as_utc(now) - started).total_seconds() // 60)
        self.time_spent_minutes = max(0, elapsed)

    def update_progress(self, data: dict) -> None:
        # Reassign so SQLAlchemy notices the JSON change.
        merged = dict(self.progress_data or {})
        merged.update(data)
        self.progress_data = merged

    def __repr__(self) -> str:
        return f"<TrainingProgress id={self.id} assignment={self.assignment_id} active={self.is_active}>"
