"""Sales sequence models — Sequences, Steps, Enrollments, Executions, Analytics."""

from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import Base

SEQUENCE_STATUSES = ("draft", "active", "paused", "archived")
STEP_TYPES = ("email", "task", "call", "linkedin_message")
ENROLLMENT_STATUSES = ("active", "paused", "completed", "unenrolled")
EXECUTION_STATUSES = ("pending", "sent", "completed", "skipped", "failed")


class Sequence(Base):
    """Multi-step outreach cadence. total_steps mirrors len(steps)."""

    __tablename__ = "sequences"
    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    status = Column(String(20), default="draft")
    automation = Column(Integer, default=100)  # percent of steps automated
    total_steps = Column(Integer, default=0)
    duration_days = Column(Integer, default=0)
    settings = Column(JSON)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    owner = relationship("User", foreign_keys=[user_id])
    steps = relationship(
        "SequenceStep",
        back_populates="sequence",
        cascade="all, delete-orphan",
        order_by="SequenceStep.position",
    )
    enrollments = relationship(
        "SequenceEnrollment", back_populates="sequence", cascade="all, delete-orphan"
    )
    analytics = relationship(
        "SequenceAnalytics", back_populates="sequence", cascade="all, delete-orphan"
    )


class SequenceStep(Base):
    __tablename__ = "sequence_steps"
    id = Column(Integer, primary_key=True)
    sequence_id = Column(
        Integer, ForeignKey("sequences.id", ondelete="CASCADE"), nullable=False
    )
    type = Column(String(30), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text)
    delay_days = Column(Integer, default=1)
    delay_hours = Column(Integer, default=0)
    delay_minutes = Column(Integer, default=0)
    position = Column(Integer, nullable=False)  # 1-based
    settings = Column(JSON)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    sequence = relationship("Sequence", back_populates="steps")

    __table_args__ = (Index("ix_sequence_steps_seq_pos", "sequence_id", "position"),)


class SequenceEnrollment(Base):
    """A contact (or lead) working through a sequence."""

    __tablename__ = "sequence_enrollments"
    id = Column(Integer, primary_key=True)
    sequence_id = Column(
        Integer, ForeignKey("sequences.id", ondelete="CASCADE"), nullable=False
    )
    contact_id = Column(Integer, ForeignKey("contacts.id", ondelete="CASCADE"))
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="CASCADE"))
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="SET NULL"))
    enrolled_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    status = Column(String(20), default="active")
    current_step = Column(Integer, default=1)
    enrolled_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    completed_at = Column(DateTime)
    unenrolled_at = Column(DateTime)

    sequence = relationship("Sequence", back_populates="enrollments")
    contact = relationship("Contact", foreign_keys=[contact_id])
    lead = relationship("Lead", foreign_keys=[lead_id])
    executions = relationship(
        "SequenceStepExecution",
        back_populates="enrollment",
        cascade="all, delete-orphan",
        order_by="SequenceStepExecution.scheduled_at",
    )

    __table_args__ = (
        Index("ix_sequence_enrollments_seq_status", "sequence_id", "status"),
        Index("ix_sequence_enrollments_contact", "contact_id"),
    )


class SequenceStepExecution(Base):
    __tablename__ = "sequence_step_executions"
    id = Column(Integer, primary_key=True)
    enrollment_id = Column(
        Integer,
        ForeignKey("sequence_enrollments.id", ondelete="CASCADE"),
        nullable=False,
    )
    step_id = Column(
        Integer, ForeignKey("sequence_steps.id", ondelete="CASCADE"), nullable=False
    )
    status = Column(String(20), default="pending")
    scheduled_at = Column(DateTime, nullable=False)
    executed_at = Column(DateTime)
    outcome = Column(String(50))  # opened, replied, bounced, ...
    notes = Column(Text)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    enrollment = relationship("SequenceEnrollment", back_populates="executions")
    step = relationship("SequenceStep")

    __table_args__ = (
        Index("ix_sequence_executions_status_sched", "status", "scheduled_at"),
    )


class SequenceAnalytics(Base):
    """Daily rollup row for a sequence."""

    __tablename__ = "sequence_analytics"
    id = Column(Integer, primary_key=True)
    sequence_id = Column(
        Integer, ForeignKey("sequences.id", ondelete="CASCADE"), nullable=False
    )
    date = Column(Date, nullable=False)
    total_enrollments = Column(Integer, default=0)
    active_enrollments = Column(Integer, default=0)
    completed_enrollments = Column(Integer, default=0)
    response_rate = Column(Numeric(5, 2), default=0)
    open_rate = Column(Numeric(5, 2), default=0)
    click_rate = Column(Numeric(5, 2), default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    sequence = relationship("Sequence", back_populates="analytics")
