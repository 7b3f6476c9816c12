"""
routers/sequences.py — Sequence Builder Routes (Sequences, Steps, Enrollments, Analytics)

Business Rules:
- Steps are appended; delete and reorder keep positions 1..n and total_steps in sync
- Enrollment: 400 for archived sequences or ones without steps, 409 for a
  duplicate active enrollment, 404 for an unknown contact/lead
- Analytics returns stored daily rows plus a computed summary

Called by: main.py (router mount)
Depends on: models, dependencies, services.sequence_service
"""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_user
from ..models import (
    Sequence,
    SequenceAnalytics,
    SequenceEnrollment,
    SequenceStep,
    User,
)
from ..schemas.sequences import (
    AnalyticsCreate,
    EnrollmentCreate,
    SequenceCreate,
    SequenceUpdate,
    StepCreate,
    StepReorder,
    StepUpdate,
)
from ..services.activity_service import log_activity
from ..services.sequence_service import (
    DuplicateEnrollmentError,
    EnrollmentError,
    add_step,
    analytics_summary,
    delete_step,
    enroll,
    enrollment_to_dict,
    ordered_steps,
    reorder_steps,
    sequence_to_dict,
    step_to_dict,
    unenroll,
)

router = APIRouter()


def _get_sequence(db: Session, sequence_id: int) -> Sequence:
    sequence = db.get(Sequence, sequence_id)
    if not sequence:
        raise HTTPException(404, "Sequence not found")
    return sequence


def _get_step(sequence: Sequence, step_id: int) -> SequenceStep:
    for step in sequence.steps:
        if step.id == step_id:
            return step
    raise HTTPException(404, "Step not found")


# ── Sequences ────────────────────────────────────────────────────────────


@router.get("/api/sequences")
async def list_sequences(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    rows = db.query(Sequence).order_by(Sequence.created_at.desc(), Sequence.id.desc()).all()
    return [sequence_to_dict(s) for s in rows]


@router.post("/api/sequences", status_code=201)
async def create_sequence(
    payload: SequenceCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    sequence = Sequence(**payload.model_dump(), user_id=user.id, total_steps=0, duration_days=0)
    db.add(sequence)
    db.flush()
    log_activity(
        db,
        user_id=user.id,
        entity_type="sequence",
        entity_id=sequence.id,
        action="created",
        description=f"Created sequence {sequence.name}",
    )
    db.commit()
    return sequence_to_dict(sequence, include_steps=True)


@router.get("/api/sequences/{sequence_id}")
async def get_sequence(
    sequence_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return sequence_to_dict(_get_sequence(db, sequence_id), include_steps=True)


@router.put("/api/sequences/{sequence_id}")
async def update_sequence(
    sequence_id: int,
    payload: SequenceUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    sequence = _get_sequence(db, sequence_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(sequence, field, value)
    db.commit()
    return sequence_to_dict(sequence, include_steps=True)


@router.delete("/api/sequences/{sequence_id}", status_code=204)
async def delete_sequence(
    sequence_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    db.delete(_get_sequence(db, sequence_id))
    db.commit()
    return Response(status_code=204)


# ── Steps ────────────────────────────────────────────────────────────────


@router.get("/api/sequences/{sequence_id}/steps")
async def list_steps(
    sequence_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return [step_to_dict(s) for s in ordered_steps(_get_sequence(db, sequence_id))]


@router.post("/api/sequences/{sequence_id}/steps", status_code=201)
async def create_step(
    sequence_id: int,
    payload: StepCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    sequence = _get_sequence(db, sequence_id)
    step = add_step(db, sequence, **payload.model_dump())
    return step_to_dict(step)


@router.post("/api/sequences/{sequence_id}/steps/reorder")
async def reorder(
    sequence_id: int,
    payload: StepReorder,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    sequence = _get_sequence(db, sequence_id)
    try:
        steps = reorder_steps(db, sequence, payload.step_ids)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return [step_to_dict(s) for s in steps]


@router.patch("/api/sequences/{sequence_id}/steps/{step_id}")
async def update_step(
    sequence_id: int,
    step_id: int,
    payload: StepUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    sequence = _get_sequence(db, sequence_id)
    step = _get_step(sequence, step_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(step, field, value)
    sequence.duration_days = sum(s.delay_days or 0 for s in sequence.steps)
    db.commit()
    return step_to_dict(step)


@router.delete("/api/sequences/{sequence_id}/steps/{step_id}", status_code=204)
async def remove_step(
    sequence_id: int,
    step_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    sequence = _get_sequence(db, sequence_id)
    delete_step(db, sequence, _get_step(sequence, step_id))
    return Response(status_code=204)


# ── Enrollments ──────────────────────────────────────────────────────────


@router.get("/api/sequence-enrollments")
async def list_enrollments(
    sequence_id: int | None = None,
    status: str | None = None,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    query = db.query(SequenceEnrollment)
    if sequence_id is not None:
        query = query.filter(SequenceEnrollment.sequence_id == sequence_id)
    if status:
        query = query.filter(SequenceEnrollment.status == status)
    rows = query.order_by(SequenceEnrollment.enrolled_at.desc(), SequenceEnrollment.id.desc()).all()
    return [enrollment_to_dict(e) for e in rows]


@router.post("/api/sequence-enrollments", status_code=201)
async def create_enrollment(
    payload: EnrollmentCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    sequence = _get_sequence(db, payload.sequence_id)
    try:
        enrollment = enroll(
            db,
            sequence,
            contact_id=payload.contact_id,
            contact_type=payload.contact_type,
            enrolled_by=user.id,
        )
    except EnrollmentError as e:
        raise HTTPException(400, str(e))
    except DuplicateEnrollmentError as e:
        raise HTTPException(409, str(e))
    except LookupError as e:
        raise HTTPException(404, str(e))
    return enrollment_to_dict(enrollment)


@router.post("/api/sequence-enrollments/{enrollment_id}/unenroll")
async def unenroll_contact(
    enrollment_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    enrollment = db.get(SequenceEnrollment, enrollment_id)
    if not enrollment:
        raise HTTPException(404, "Enrollment not found")
    return enrollment_to_dict(unenroll(db, enrollment))


# ── Analytics ────────────────────────────────────────────────────────────


@router.get("/api/sequences/{sequence_id}/analytics")
async def get_analytics(
    sequence_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    sequence = _get_sequence(db, sequence_id)
    rows = (
        db.query(SequenceAnalytics)
        .filter(SequenceAnalytics.sequence_id == sequence.id)
        .order_by(SequenceAnalytics.date)
        .all()
    )
    return {
        "summary": analytics_summary(db, sequence),
        "daily": [
            {
                "date": r.date.isoformat(),
                "total_enrollments": r.total_enrollments,
                "active_enrollments": r.active_enrollments,
                "completed_enrollments": r.completed_enrollments,
                "response_rate": float(r.response_rate or 0),
                "open_rate": float(r.open_rate or 0),
                "click_rate": float(r.click_rate or 0),
            }
            for r in rows
        ],
    }


@router.post("/api/sequences/{sequence_id}/analytics", status_code=201)
async def record_analytics(
    sequence_id: int,
    payload: AnalyticsCreate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    sequence = _get_sequence(db, sequence_id)
    row = SequenceAnalytics(sequence_id=sequence.id, **payload.model_dump())
    db.add(row)
    db.commit()
    return {"id": row.id, "sequence_id": sequence.id, "date": row.date.isoformat()}
