"""
sequence_service.py — Sales sequence builder and execution engine

A Sequence is an ordered list of steps (email, task, call, linkedin_message)
separated by delays. Enrolling a contact schedules one pending execution per
step; the scheduler tick (run_due_steps) marks due executions as sent and
notifies the user who enrolled the contact. No outbound email is sent.

Business Rules:
- Step positions are 1-based and contiguous; total_steps == len(steps)
- duration_days is the sum of step delay_days
- Enrollment is refused for archived sequences or ones without steps
- One active enrollment per (sequence, contact) or (sequence, lead)
- Execution i is scheduled at enrolled_at + Σ delays of steps 1..i
- Only active enrollments in active sequences are executed
- An enrollment completes once its last execution is sent
- Unenrolling marks remaining pending executions as skipped
- Deleting a step drops its executions; an active enrollment left with
  nothing pending is completed

Called by: routers/sequences.py, scheduler.py
Depends on: models, notification_service
"""

from datetime import datetime, timedelta, timezone

from loguru import logger
from sqlalchemy.orm import Session

from ..models import (
    Contact,
    Lead,
    Sequence,
    SequenceEnrollment,
    SequenceStep,
    SequenceStepExecution,
)
from .notification_service import notify

OUTCOMES = ("opened", "clicked", "replied", "bounced")


class EnrollmentError(ValueError):
    """Sequence cannot accept enrollments (archived or no steps)."""


class DuplicateEnrollmentError(ValueError):
    """Entity already holds an active enrollment in the sequence."""


def _utc(dt: datetime | None) -> datetime | None:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def ordered_steps(sequence: Sequence) -> list[SequenceStep]:
    return sorted(sequence.steps, key=lambda s: s.position)


def step_delay(step: SequenceStep) -> timedelta:
    return timedelta(
        days=step.delay_days or 0,
        hours=step.delay_hours or 0,
        minutes=step.delay_minutes or 0,
    )


# ── Steps ────────────────────────────────────────────────────────────


def _sync_counters(sequence: Sequence) -> None:
    steps = ordered_steps(sequence)
    for index, step in enumerate(steps, start=1):
        step.position = index
    sequence.total_steps = len(steps)
    sequence.duration_days = sum(s.delay_days or 0 for s in steps)


def add_step(db: Session, sequence: Sequence, **fields) -> SequenceStep:
    """Append a step at the end of the sequence."""
    step = SequenceStep(position=len(sequence.steps) + 1, **fields)
    sequence.steps.append(step)
    _sync_counters(sequence)
    db.commit()
    return step


def delete_step(db: Session, sequence: Sequence, step: SequenceStep, now: datetime | None = None) -> None:
    """Remove a step; enrollments left with nothing pending are completed."""
    now = now or datetime.now(timezone.utc)
    for enrollment in sequence.enrollments:
        for execution in [e for e in enrollment.executions if e.step_id == step.id]:
            enrollment.executions.remove(execution)
    sequence.steps.remove(step)
    db.delete(step)
    _sync_counters(sequence)
    _settle_enrollments(sequence, now)
    db.commit()


def _settle_enrollments(sequence: Sequence, now: datetime) -> None:
    for enrollment in sequence.enrollments:
        if enrollment.status != "active":
            continue
        pending = [e for e in enrollment.executions if e.status == "pending"]
        if pending:
            enrollment.current_step = min(e.step.position for e in pending)
            continue
        enrollment.status = "completed"
        enrollment.completed_at = now
        enrollment.current_step = sequence.total_steps
        logger.info("Enrollment completed after step removal", enrollment_id=enrollment.id)


def reorder_steps(db: Session, sequence: Sequence, step_ids: list[int]) -> list[SequenceStep]:
    """Reorder steps; step_ids must list every step of the sequence exactly once."""
    by_id = {s.id: s for s in sequence.steps}
    if sorted(step_ids) != sorted(by_id):
        raise ValueError("step_ids must contain every step of the sequence exactly once")
    for index, step_id in enumerate(step_ids, start=1):
        by_id[step_id].position = index
    _sync_counters(sequence)
    db.commit()
    return ordered_steps(sequence)


# ── Enrollment ───────────────────────────────────────────────────────


def enroll(
    db: Session,
    sequence: Sequence,
    *,
    contact_id: int,
    contact_type: str,
    enrolled_by: int | None,
    now: datetime | None = None,
) -> SequenceEnrollment:
    """Enroll a company contact or a lead and schedule its executions."""
    if sequence.status == "archived":
        raise EnrollmentError("Cannot enroll into an archived sequence")
    steps = ordered_steps(sequence)
    if not steps:
        raise EnrollmentError("Sequence has no steps")

    if contact_type == "lead":
        target = db.get(Lead, contact_id)
        filter_col = SequenceEnrollment.lead_id
    else:
        target = db.get(Contact, contact_id)
        filter_col = SequenceEnrollment.contact_id
    if target is None:
        raise LookupError(f"{contact_type} {contact_id} not found")

    existing = (
        db.query(SequenceEnrollment.id)
        .filter(
            SequenceEnrollment.sequence_id == sequence.id,
            filter_col == contact_id,
            SequenceEnrollment.status == "active",
        )
        .first()
    )
    if existing is not None:
        raise DuplicateEnrollmentError("Already actively enrolled in this sequence")

    now = now or datetime.now(timezone.utc)
    enrollment = SequenceEnrollment(
        sequence_id=sequence.id,
        contact_id=contact_id if contact_type != "lead" else None,
        lead_id=contact_id if contact_type == "lead" else None,
        company_id=getattr(target, "company_id", None),
        enrolled_by=enrolled_by,
        status="active",
        current_step=1,
        enrolled_at=now,
    )
    scheduled = now
    for step in steps:
        scheduled = scheduled + step_delay(step)
        enrollment.executions.append(
            SequenceStepExecution(step_id=step.id, status="pending", scheduled_at=scheduled)
        )
    sequence.enrollments.append(enrollment)
    db.commit()
    logger.info(
        "Enrolled in sequence",
        sequence_id=sequence.id,
        enrollment_id=enrollment.id,
        contact_type=contact_type,
        steps=len(steps),
    )
    return enrollment


def unenroll(db: Session, enrollment: SequenceEnrollment) -> SequenceEnrollment:
    if enrollment.status in ("completed", "unenrolled"):
        return enrollment
    enrollment.status = "unenrolled"
    enrollment.unenrolled_at = datetime.now(timezone.utc)
    for execution in enrollment.executions:
        if execution.status == "pending":
            execution.status = "skipped"
    db.commit()
    return enrollment


# ── Execution engine ─────────────────────────────────────────────────


def _target_name(enrollment: SequenceEnrollment) -> str:
    if enrollment.contact is not None:
        return enrollment.contact.full_name
    if enrollment.lead is not None:
        return f"{enrollment.lead.first_name} {enrollment.lead.last_name}".strip()
    return f"enrollment #{enrollment.id}"


def run_due_steps(db: Session, now: datetime | None = None) -> int:
    """Execute every pending step whose scheduled time has passed.

    Returns the number of executions marked sent. Caller owns the session.
    """
    now = now or datetime.now(timezone.utc)
    due = (
        db.query(SequenceStepExecution)
        .join(SequenceEnrollment, SequenceStepExecution.enrollment_id == SequenceEnrollment.id)
        .join(Sequence, SequenceEnrollment.sequence_id == Sequence.id)
        .filter(
            SequenceStepExecution.status == "pending",
            SequenceStepExecution.scheduled_at <= now,
            SequenceEnrollment.status == "active",
            Sequence.status == "active",
        )
        .order_by(SequenceStepExecution.scheduled_at, SequenceStepExecution.id)
        .all()
    )
    executed = 0
    for execution in due:
        enrollment = execution.enrollment
        step = execution.step
        execution.status = "sent"
        execution.executed_at = now
        executed += 1

        if enrollment.enrolled_by:
            notify(
                db,
                recipient_id=enrollment.enrolled_by,
                type="sequence_step",
                title=f"{enrollment.sequence.name}: {step.title}",
                message=f"{step.type.replace('_', ' ').title()} step due for {_target_name(enrollment)}",
            )

        remaining = [e for e in enrollment.executions if e.status == "pending"]
        if remaining:
            enrollment.current_step = min(
                (e.step.position for e in remaining), default=step.position + 1
            )
        else:
            enrollment.current_step = step.position
            enrollment.status = "completed"
            enrollment.completed_at = now
    if executed:
        db.commit()
        logger.info("Sequence steps executed", count=executed)
    return executed


# ── Analytics ────────────────────────────────────────────────────────


def analytics_summary(db: Session, sequence: Sequence) -> dict:
    """Computed counts over enrollments and executions of a sequence."""
    enrollments = sequence.enrollments
    by_status = {s: 0 for s in ("active", "paused", "completed", "unenrolled")}
    for e in enrollments:
        by_status[e.status] = by_status.get(e.status, 0) + 1

    executions = [x for e in enrollments for x in e.executions]
    sent = sum(1 for x in executions if x.status in ("sent", "completed"))
    outcomes = {o: sum(1 for x in executions if x.outcome == o) for o in OUTCOMES}

    def rate(n: int) -> float:
        return round(n / sent * 100, 2) if sent else 0.0

    return {
        "total_enrollments": len(enrollments),
        "active_enrollments": by_status["active"],
        "completed_enrollments": by_status["completed"],
        "unenrolled": by_status["unenrolled"],
        "steps_sent": sent,
        "steps_pending": sum(1 for x in executions if x.status == "pending"),
        **outcomes,
        "open_rate": rate(outcomes["opened"]),
        "click_rate": rate(outcomes["clicked"]),
        "response_rate": rate(outcomes["replied"]),
    }


# ── Serialization ────────────────────────────────────────────────────


def step_to_dict(s: SequenceStep) -> dict:
    return {
        "id": s.id,
        "sequence_id": s.sequence_id,
        "type": s.type,
        "title": s.title,
        "content": s.content,
        "delay_days": s.delay_days,
        "delay_hours": s.delay_hours,
        "delay_minutes": s.delay_minutes,
        "position": s.position,
        "settings": s.settings or {},
    }


def sequence_to_dict(s: Sequence, include_steps: bool = False) -> dict:
    d = {
        "id": s.id,
        "name": s.name,
        "description": s.description,
        "user_id": s.user_id,
        "status": s.status,
        "automation": s.automation,
        "total_steps": s.total_steps or 0,
        "duration_days": s.duration_days or 0,
        "settings": s.settings or {},
        "created_at": s.created_at.isoformat() if s.created_at else None,
        "updated_at": s.updated_at.isoformat() if s.updated_at else None,
    }
    if include_steps:
        d["steps"] = [step_to_dict(step) for step in ordered_steps(s)]
    return d


def enrollment_to_dict(e: SequenceEnrollment) -> dict:
    return {
        "id": e.id,
        "sequence_id": e.sequence_id,
        "contact_id": e.contact_id,
        "lead_id": e.lead_id,
        "contact_type": "lead" if e.lead_id else "company",
        "contact_name": _target_name(e),
        "status": e.status,
        "current_step": e.current_step,
        "enrolled_by": e.enrolled_by,
        "enrolled_at": _utc(e.enrolled_at).isoformat() if e.enrolled_at else None,
        "completed_at": _utc(e.completed_at).isoformat() if e.completed_at else None,
        "executions": [
            {
                "id": x.id,
                "step_id": x.step_id,
                "status": x.status,
                "scheduled_at": _utc(x.scheduled_at).isoformat() if x.scheduled_at else None,
                "executed_at": _utc(x.executed_at).isoformat() if x.executed_at else None,
                "outcome": x.outcome,
            }
            for x in e.executions
        ],
    }
