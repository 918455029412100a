"""Unit tests for check-in / check-out toggling."""
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from rollcall.core.exceptions import ConflictError, NotFoundError, StorageError
from rollcall.core.utils import new_id, to_utc
from rollcall.db.base import Base
from rollcall.db.models import AuditLog, CheckinSession, Participant
from rollcall.services.attendance import (
    AttendanceStatus,
    current_status,
    get_attendance,
    get_sessions,
    session_duration,
    toggle_checkin,
    total_attended,
)

T0 = datetime(2026, 7, 1, 9, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestToggleCheckin:
    """Test the IN/OUT state machine."""

    def test_first_toggle_checks_in(self, db_session, make_participant):
        participant = make_participant()

        result = toggle_checkin(db_session, participant.id, "Gate A", now=T0)

        assert result.status == AttendanceStatus.IN
        assert result.action.value == "check_in"
        assert result.check_in_time == T0
        assert result.check_out_time is None

        sessions = get_sessions(db_session, participant.id)
        assert len(sessions) == 1
        assert to_utc(sessions[0].check_in_time) == T0
        assert sessions[0].check_out_time is None
        assert current_status(sessions) == AttendanceStatus.IN

    def test_second_toggle_closes_same_session(self, db_session, make_participant):
        participant = make_participant()
        first = toggle_checkin(db_session, participant.id, "Gate A", now=T0)
        second = toggle_checkin(db_session, participant.id, "Gate A", now=T0 + timedelta(hours=2))

        assert second.session_id == first.session_id
        assert second.status == AttendanceStatus.OUT
        assert second.action.value == "check_out"
        assert second.check_out_time == T0 + timedelta(hours=2)

        db_session.expire_all()
        sessions = get_sessions(db_session, participant.id)
        assert len(sessions) == 1
        assert current_status(sessions) == AttendanceStatus.OUT
        assert session_duration(sessions[0]) == timedelta(hours=2)

    def test_three_toggles(self, db_session, make_participant):
        """[toggle, toggle, toggle] leaves one closed and one open session."""
        participant = make_participant()
        for minutes in (0, 30, 60):
            toggle_checkin(db_session, participant.id, "Gate A", now=T0 + timedelta(minutes=minutes))

        db_session.expire_all()
        sessions = get_sessions(db_session, participant.id)
        assert len(sessions) == 2
        assert sum(1 for s in sessions if s.check_out_time is None) == 1
        assert current_status(sessions) == AttendanceStatus.IN
        assert total_attended(sessions) == timedelta(minutes=30)

    def test_unknown_participant(self, db_session):
        with pytest.raises(NotFoundError):
            toggle_checkin(db_session, "missing", "Gate A")

    def test_toggle_is_audited(self, db_session, make_participant):
        participant = make_participant()
        toggle_checkin(db_session, participant.id, "Gate A", now=T0)
        toggle_checkin(db_session, participant.id, None, now=T0 + timedelta(minutes=5))

        entries = db_session.query(AuditLog).order_by(AuditLog.id).all()
        assert [e.action for e in entries] == ["check_in", "check_out"]
        assert entries[0].actor_name == "Gate A"
        assert entries[1].actor_name == "Unknown"
        assert entries[0].target_id == participant.id
        assert entries[0].target_name == participant.name

    def test_audit_failure_does_not_fail_toggle(self, db_session, make_participant, monkeypatch):
        """A broken audit write is swallowed; the toggle still commits."""
        from sqlalchemy.exc import OperationalError

        participant = make_participant()
        original_commit = db_session.commit
        calls = {"n": 0}

        def flaky_commit():
            calls["n"] += 1
            # First commit is the toggle, second is the audit entry
            if calls["n"] == 2:
                raise OperationalError("INSERT", {}, Exception("disk full"))
            return original_commit()

        monkeypatch.setattr(db_session, "commit", flaky_commit)
        result = toggle_checkin(db_session, participant.id, "Gate A", now=T0)
        monkeypatch.setattr(db_session, "commit", original_commit)

        assert result.status == AttendanceStatus.IN
        assert db_session.query(CheckinSession).count() == 1
        assert db_session.query(AuditLog).count() == 0

    def test_open_session_index_rejects_second_open(self, db_session, make_participant):
        """The database refuses a second open session for one participant."""
        from sqlalchemy.exc import IntegrityError

        participant = make_participant()
        db_session.add(CheckinSession(id=new_id(), participant_id=participant.id, check_in_time=T0))
        db_session.commit()
        db_session.add(CheckinSession(id=new_id(), participant_id=participant.id, check_in_time=T0))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


@pytest.mark.unit
class TestDerivedAttendance:
    def test_empty_history(self):
        assert current_status([]) == AttendanceStatus.OUT
        assert total_attended([]) == timedelta()

    def test_open_session_has_no_duration(self):
        session = CheckinSession(check_in_time=T0, check_out_time=None)
        assert session_duration(session) is None

    def test_open_session_counts_up_to_now(self):
        closed = CheckinSession(check_in_time=T0, check_out_time=T0 + timedelta(hours=1))
        active = CheckinSession(check_in_time=T0 + timedelta(hours=2), check_out_time=None)

        assert total_attended([closed, active]) == timedelta(hours=1)
        assert total_attended([closed, active], now=T0 + timedelta(hours=3)) == timedelta(hours=2)

    def test_get_attendance(self, db_session, make_participant):
        participant = make_participant()
        toggle_checkin(db_session, participant.id, "Gate A", now=T0)
        toggle_checkin(db_session, participant.id, "Gate A", now=T0 + timedelta(minutes=45))
        toggle_checkin(db_session, participant.id, "Gate A", now=T0 + timedelta(hours=1))
        db_session.expire_all()

        attendance = get_attendance(db_session, participant.id)

        assert attendance.participant.id == participant.id
        assert attendance.status == AttendanceStatus.IN
        assert [to_utc(s.check_in_time) for s in attendance.sessions] == [T0, T0 + timedelta(hours=1)]
        assert attendance.total == timedelta(minutes=45)

    def test_get_attendance_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            get_attendance(db_session, "missing")


@pytest.mark.unit
def test_concurrent_toggles_keep_one_open_session(tmp_path):
    """Simultaneous toggles from many stations never open two sessions."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'toggle.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    participant_id = new_id()
    with SessionLocal() as setup:
        now = datetime.now(timezone.utc)
        setup.add(Participant(id=participant_id, name="Race Tester", created_at=now, updated_at=now))
        setup.commit()

    workers = 8
    barrier = threading.Barrier(workers)

    def worker(n):
        barrier.wait()
        with SessionLocal() as db:
            try:
                return toggle_checkin(db, participant_id, f"Station {n}")
            except (ConflictError, StorageError) as e:
                return e

    with ThreadPoolExecutor(max_workers=workers) as pool:
        outcomes = list(pool.map(worker, range(workers)))

    successes = [o for o in outcomes if not isinstance(o, Exception)]
    assert successes

    with SessionLocal() as db:
        sessions = db.query(CheckinSession).filter(CheckinSession.participant_id == participant_id).all()
        open_sessions = [s for s in sessions if s.check_out_time is None]
        assert len(open_sessions) <= 1
        # Every successful check-in opened one session
        assert len(sessions) == sum(1 for s in successes if s.action.value == "check_in")

    engine.dispose()
