"""
test_sequences.py — Tests for routers/sequences.py and services/sequence_service.py

Covers step position bookkeeping (append, reorder, delete), counters,
enrollment guards, cumulative scheduling, the execution engine, unenroll,
and the analytics summary/daily rows.

Called by: pytest
Depends on: routers/sequences.py, services/sequence_service.py, conftest.py
"""

from datetime import datetime, timedelta, timezone

import pytest

from swagsuite.models import Lead, Notification, Sequence, SequenceEnrollment
from swagsuite.services.sequence_service import (
    DuplicateEnrollmentError,
    EnrollmentError,
    _utc,
    add_step,
    delete_step,
    enroll,
    ordered_steps,
    run_due_steps,
)


@pytest.fixture()
def sequence(db_session, test_user):
    seq = Sequence(name="Q4 Outreach", status="active", user_id=test_user.id, total_steps=0, duration_days=0)
    db_session.add(seq)
    db_session.commit()
    add_step(db_session, seq, type="email", title="Intro", delay_days=0)
    add_step(db_session, seq, type="call", title="Follow-up call", delay_days=2)
    add_step(db_session, seq, type="task", title="Send samples", delay_days=3, delay_hours=4)
    return seq


@pytest.fixture()
def lead(db_session):
    row = Lead(first_name="Sam", last_name="Rivera", email="sam@prospect.test")
    db_session.add(row)
    db_session.commit()
    return row


def _titles(client, sequence_id):
    steps = client.get(f"/api/sequences/{sequence_id}/steps").json()
    return [(s["title"], s["position"]) for s in steps]


# ── Sequences & steps ────────────────────────────────────────────────


class TestSequenceSteps:
    def test_create_sequence(self, client, test_user):
        resp = client.post("/api/sequences", json={"name": "Welcome"})
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "draft"
        assert data["user_id"] == test_user.id
        assert data["total_steps"] == 0
        assert data["steps"] == []

    def test_blank_name_422(self, client):
        assert client.post("/api/sequences", json={"name": "  "}).status_code == 422

    def test_steps_append_contiguously(self, client):
        seq = client.post("/api/sequences", json={"name": "Welcome"}).json()
        for title in ("A", "B", "C"):
            resp = client.post(f"/api/sequences/{seq['id']}/steps", json={"type": "email", "title": title})
            assert resp.status_code == 201
        assert _titles(client, seq["id"]) == [("A", 1), ("B", 2), ("C", 3)]

    def test_counters(self, client, sequence):
        data = client.get(f"/api/sequences/{sequence.id}").json()
        assert data["total_steps"] == 3
        assert data["duration_days"] == 5

    def test_invalid_step_type_422(self, client, sequence):
        resp = client.post(f"/api/sequences/{sequence.id}/steps", json={"type": "fax", "title": "X"})
        assert resp.status_code == 422

    def test_reorder(self, client, sequence):
        ids = [s.id for s in sequence.steps]
        resp = client.post(
            f"/api/sequences/{sequence.id}/steps/reorder", json={"step_ids": [ids[2], ids[0], ids[1]]}
        )
        assert resp.status_code == 200
        assert [(s["title"], s["position"]) for s in resp.json()] == [
            ("Send samples", 1),
            ("Intro", 2),
            ("Follow-up call", 3),
        ]

    def test_reorder_requires_every_step(self, client, sequence):
        ids = [s.id for s in sequence.steps]
        resp = client.post(f"/api/sequences/{sequence.id}/steps/reorder", json={"step_ids": ids[:2]})
        assert resp.status_code == 400
        resp = client.post(f"/api/sequences/{sequence.id}/steps/reorder", json={"step_ids": ids + [999]})
        assert resp.status_code == 400

    def test_delete_step_renumbers(self, client, sequence):
        middle = next(s for s in sequence.steps if s.position == 2)
        assert client.delete(f"/api/sequences/{sequence.id}/steps/{middle.id}").status_code == 204
        assert _titles(client, sequence.id) == [("Intro", 1), ("Send samples", 2)]
        data = client.get(f"/api/sequences/{sequence.id}").json()
        assert data["total_steps"] == 2
        assert data["duration_days"] == 3

    def test_update_step_delay_updates_duration(self, client, sequence):
        first = next(s for s in sequence.steps if s.position == 1)
        resp = client.patch(f"/api/sequences/{sequence.id}/steps/{first.id}", json={"delay_days": 4})
        assert resp.status_code == 200
        assert client.get(f"/api/sequences/{sequence.id}").json()["duration_days"] == 9

    def test_unknown_step_404(self, client, sequence):
        assert client.delete(f"/api/sequences/{sequence.id}/steps/999").status_code == 404

    def test_unknown_sequence_404(self, client):
        assert client.get("/api/sequences/999").status_code == 404


# ── Enrollment ───────────────────────────────────────────────────────


class TestEnrollment:
    def test_schedules_cumulative_delays(self, db_session, sequence, test_contact, test_user):
        now = datetime(2031, 1, 1, 9, 0, tzinfo=timezone.utc)
        enrollment = enroll(
            db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=test_user.id, now=now
        )
        scheduled = [x.scheduled_at.replace(tzinfo=timezone.utc) for x in enrollment.executions]
        assert scheduled == [
            now,
            now + timedelta(days=2),
            now + timedelta(days=5, hours=4),
        ]
        assert all(x.status == "pending" for x in enrollment.executions)
        assert enrollment.company_id == test_contact.company_id

    def test_enroll_via_api(self, client, sequence, test_contact, test_user):
        resp = client.post(
            "/api/sequence-enrollments", json={"sequence_id": sequence.id, "contact_id": test_contact.id}
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["status"] == "active"
        assert data["contact_type"] == "company"
        assert data["enrolled_by"] == test_user.id
        assert len(data["executions"]) == 3

    def test_duplicate_active_enrollment_409(self, client, sequence, test_contact):
        body = {"sequence_id": sequence.id, "contact_id": test_contact.id}
        assert client.post("/api/sequence-enrollments", json=body).status_code == 201
        assert client.post("/api/sequence-enrollments", json=body).status_code == 409

    def test_reenroll_after_unenroll(self, db_session, sequence, test_contact):
        first = enroll(db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None)
        first.status = "unenrolled"
        db_session.commit()
        second = enroll(db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None)
        assert second.id != first.id

    def test_archived_sequence_rejected(self, client, db_session, sequence, test_contact):
        sequence.status = "archived"
        db_session.commit()
        resp = client.post(
            "/api/sequence-enrollments", json={"sequence_id": sequence.id, "contact_id": test_contact.id}
        )
        assert resp.status_code == 400

    def test_empty_sequence_rejected(self, db_session, test_user, test_contact):
        seq = Sequence(name="Empty", status="active", user_id=test_user.id)
        db_session.add(seq)
        db_session.commit()
        with pytest.raises(EnrollmentError):
            enroll(db_session, seq, contact_id=test_contact.id, contact_type="company", enrolled_by=None)

    def test_unknown_contact_404(self, client, sequence):
        resp = client.post("/api/sequence-enrollments", json={"sequence_id": sequence.id, "contact_id": 999})
        assert resp.status_code == 404

    def test_lead_enrollment(self, client, sequence, lead):
        resp = client.post(
            "/api/sequence-enrollments",
            json={"sequence_id": sequence.id, "contact_id": lead.id, "contact_type": "lead"},
        )
        assert resp.status_code == 201
        data = resp.json()
        assert data["contact_type"] == "lead"
        assert data["lead_id"] == lead.id
        assert data["contact_id"] is None
        assert data["contact_name"] == "Sam Rivera"

    def test_duplicate_lead_raises(self, db_session, sequence, lead):
        enroll(db_session, sequence, contact_id=lead.id, contact_type="lead", enrolled_by=None)
        with pytest.raises(DuplicateEnrollmentError):
            enroll(db_session, sequence, contact_id=lead.id, contact_type="lead", enrolled_by=None)

    def test_unenroll_skips_pending(self, client, sequence, test_contact):
        created = client.post(
            "/api/sequence-enrollments", json={"sequence_id": sequence.id, "contact_id": test_contact.id}
        ).json()
        resp = client.post(f"/api/sequence-enrollments/{created['id']}/unenroll")
        assert resp.status_code == 200
        assert resp.json()["status"] == "unenrolled"
        assert {x["status"] for x in resp.json()["executions"]} == {"skipped"}

    def test_list_filters(self, client, sequence, test_contact):
        client.post("/api/sequence-enrollments", json={"sequence_id": sequence.id, "contact_id": test_contact.id})
        assert len(client.get("/api/sequence-enrollments", params={"sequence_id": sequence.id}).json()) == 1
        assert client.get("/api/sequence-enrollments", params={"status": "completed"}).json() == []


# ── Execution engine ─────────────────────────────────────────────────


class TestRunDueSteps:
    def test_only_due_steps_run(self, db_session, sequence, test_contact, test_user):
        start = datetime(2031, 1, 1, tzinfo=timezone.utc)
        enrollment = enroll(
            db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=test_user.id, now=start
        )
        assert run_due_steps(db_session, now=start + timedelta(days=1)) == 1
        assert [x.status for x in enrollment.executions] == ["sent", "pending", "pending"]
        assert enrollment.current_step == 2
        assert enrollment.status == "active"
        note = db_session.query(Notification).filter_by(type="sequence_step").one()
        assert note.recipient_id == test_user.id

    def test_completes_after_last_step(self, db_session, sequence, test_contact):
        start = datetime(2031, 1, 1, tzinfo=timezone.utc)
        enrollment = enroll(
            db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None, now=start
        )
        assert run_due_steps(db_session, now=start + timedelta(days=30)) == 3
        assert enrollment.status == "completed"
        assert enrollment.completed_at is not None
        assert db_session.query(Notification).count() == 0

    def test_paused_sequence_not_executed(self, db_session, sequence, test_contact):
        start = datetime(2031, 1, 1, tzinfo=timezone.utc)
        enroll(db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None, now=start)
        sequence.status = "paused"
        db_session.commit()
        assert run_due_steps(db_session, now=start + timedelta(days=30)) == 0

    def test_unenrolled_not_executed(self, db_session, sequence, test_contact):
        start = datetime(2031, 1, 1, tzinfo=timezone.utc)
        enrollment = enroll(
            db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None, now=start
        )
        enrollment.status = "unenrolled"
        db_session.commit()
        assert run_due_steps(db_session, now=start + timedelta(days=30)) == 0

    def test_deleting_remaining_step_completes_enrollment(self, client, db_session, sequence, test_contact):
        start = datetime(2031, 1, 1, tzinfo=timezone.utc)
        enrollment = enroll(
            db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None, now=start
        )
        assert run_due_steps(db_session, now=start + timedelta(days=3)) == 2
        last = ordered_steps(sequence)[-1]
        assert client.delete(f"/api/sequences/{sequence.id}/steps/{last.id}").status_code == 204
        db_session.refresh(enrollment)
        assert enrollment.status == "completed"
        assert enrollment.completed_at is not None
        assert [x.status for x in enrollment.executions] == ["sent", "sent"]
        assert run_due_steps(db_session, now=start + timedelta(days=30)) == 0
        again = enroll(
            db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None, now=start
        )
        assert again.status == "active"

    def test_deleting_pending_step_moves_current_step(self, db_session, sequence, test_contact):
        start = datetime(2031, 1, 1, tzinfo=timezone.utc)
        enrollment = enroll(
            db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None, now=start
        )
        run_due_steps(db_session, now=start + timedelta(days=1))
        middle = ordered_steps(sequence)[1]
        delete_step(db_session, sequence, middle)
        assert enrollment.status == "active"
        assert enrollment.current_step == 2
        assert [x.status for x in enrollment.executions] == ["sent", "pending"]


# ── Analytics ────────────────────────────────────────────────────────


class TestAnalytics:
    def test_summary(self, client, db_session, sequence, test_contact):
        start = datetime(2031, 1, 1, tzinfo=timezone.utc)
        enrollment = enroll(
            db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None, now=start
        )
        run_due_steps(db_session, now=start + timedelta(days=2, minutes=1))
        enrollment.executions[0].outcome = "opened"
        db_session.commit()

        summary = client.get(f"/api/sequences/{sequence.id}/analytics").json()["summary"]
        assert summary["total_enrollments"] == 1
        assert summary["active_enrollments"] == 1
        assert summary["steps_sent"] == 2
        assert summary["steps_pending"] == 1
        assert summary["opened"] == 1
        assert summary["open_rate"] == 50.0
        assert summary["response_rate"] == 0.0

    def test_daily_rows(self, client, sequence):
        url = f"/api/sequences/{sequence.id}/analytics"
        resp = client.post(url, json={"date": "2031-01-02", "total_enrollments": 5, "open_rate": "42.5"})
        assert resp.status_code == 201
        client.post(url, json={"date": "2031-01-01", "total_enrollments": 3})
        daily = client.get(url).json()["daily"]
        assert [d["date"] for d in daily] == ["2031-01-01", "2031-01-02"]
        assert daily[1]["open_rate"] == 42.5

    def test_rate_out_of_range_422(self, client, sequence):
        resp = client.post(f"/api/sequences/{sequence.id}/analytics", json={"date": "2031-01-01", "open_rate": 120})
        assert resp.status_code == 422

    def test_delete_sequence_cascades(self, client, db_session, sequence, test_contact):
        enroll(db_session, sequence, contact_id=test_contact.id, contact_type="company", enrolled_by=None)
        assert client.delete(f"/api/sequences/{sequence.id}").status_code == 204
        assert db_session.query(SequenceEnrollment).count() == 0


# ── _utc() ───────────────────────────────────────────────────────────


def test_utc_helper():
    assert _utc(datetime(2031, 1, 15, 12, 0)).tzinfo == timezone.utc
    tz5 = timezone(timedelta(hours=5))
    assert _utc(datetime(2031, 1, 15, tzinfo=tz5)).tzinfo == tz5
    assert _utc(None) is None
