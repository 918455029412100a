"""Check-in / check-out business logic.

A participant is either OUT (no open session) or IN (exactly one session
without a check-out time). ``toggle_checkin`` flips the state. The
read-modify-write runs under a row lock on the participant where the
database supports it, closes sessions with a conditional UPDATE, and relies
on the partial unique index ``uq_checkin_sessions_open`` as the final
arbiter: a toggle that lost a race fails with ConflictError instead of
opening a second session.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rollcall.core.exceptions import ConflictError, NotFoundError
from rollcall.core.logging_config import get_logger
from rollcall.core.utils import new_id, to_optional_utc, to_utc, utcnow
from rollcall.db.models import AuditAction, AuditTargetType, CheckinSession, Participant
from rollcall.db.session import storage_guard
from rollcall.services.audit import record_audit

logger = get_logger(__name__)


class AttendanceStatus(str, enum.Enum):
    IN = "in"
    OUT = "out"


@dataclass
class ToggleResult:
    participant_id: str
    session_id: str
    action: AuditAction
    status: AttendanceStatus
    check_in_time: datetime
    check_out_time: Optional[datetime]


def current_status(sessions: Iterable[CheckinSession]) -> AttendanceStatus:
    """IN iff any session has no check-out time."""
    if any(s.check_out_time is None for s in sessions):
        return AttendanceStatus.IN
    return AttendanceStatus.OUT


def session_duration(session: CheckinSession) -> Optional[timedelta]:
    """Length of a closed session; None while the session is still active."""
    if session.check_out_time is None:
        return None
    return to_utc(session.check_out_time) - to_utc(session.check_in_time)


def total_attended(sessions: Iterable[CheckinSession], now: Optional[datetime] = None) -> timedelta:
    """
    Sum of closed-session durations.

    With ``now``, an open session also counts up to that instant.
    """
    total = timedelta()
    for s in sessions:
        duration = session_duration(s)
        if duration is not None:
            total += duration
        elif now is not None:
            total += max(to_utc(now) - to_utc(s.check_in_time), timedelta())
    return total


def get_participant(db: Session, participant_id: str) -> Participant:
    """Load a participant or raise NotFoundError."""
    with storage_guard(db, "get_participant"):
        participant = db.get(Participant, participant_id)
    if participant is None:
        raise NotFoundError("Participant not found")
    return participant


def get_sessions(db: Session, participant_id: str) -> List[CheckinSession]:
    return get_participant(db, participant_id).check_ins


@dataclass
class Attendance:
    participant: Participant
    sessions: List[CheckinSession]
    status: AttendanceStatus
    total: timedelta


def get_attendance(db: Session, participant_id: str, now: Optional[datetime] = None) -> Attendance:
    """Participant with its sessions, derived status and closed-session total."""
    participant = get_participant(db, participant_id)
    sessions = sorted(participant.check_ins, key=lambda s: to_utc(s.check_in_time))
    return Attendance(
        participant=participant,
        sessions=sessions,
        status=current_status(sessions),
        total=total_attended(sessions, now=now),
    )


def toggle_checkin(
    db: Session,
    participant_id: str,
    actor: Optional[str],
    now: Optional[datetime] = None,
) -> ToggleResult:
    """
    Check a participant in if they are out, or out if they are in.

    Args:
        db: Database session
        participant_id: Participant to toggle
        actor: Staff member name recorded in the audit log
        now: Override for the transition timestamp (tests)

    Raises:
        NotFoundError: Unknown participant
        ConflictError: A concurrent toggle changed the state first
        StorageError: Transient database failure
    """
    now = to_utc(now) if now else utcnow()

    with storage_guard(db, "toggle_checkin"):
        participant = (
            db.query(Participant)
            .filter(Participant.id == participant_id)
            .with_for_update()
            .first()
        )
        if participant is None:
            db.rollback()
            raise NotFoundError("Participant not found")

        participant_name = participant.name
        active = (
            db.query(CheckinSession)
            .filter(
                CheckinSession.participant_id == participant_id,
                CheckinSession.check_out_time.is_(None),
            )
            .first()
        )

        if active is not None:
            result = db.execute(
                update(CheckinSession)
                .where(CheckinSession.id == active.id, CheckinSession.check_out_time.is_(None))
                .values(check_out_time=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                raise ConflictError("Check-in state changed concurrently; reload and retry")
            session_id = active.id
            check_in_time = to_utc(active.check_in_time)
            check_out_time: Optional[datetime] = now
            action = AuditAction.CHECK_OUT
            status = AttendanceStatus.OUT
        else:
            session_id = new_id()
            db.add(CheckinSession(id=session_id, participant_id=participant_id, check_in_time=now))
            check_in_time = now
            check_out_time = None
            action = AuditAction.CHECK_IN
            status = AttendanceStatus.IN

        participant.updated_at = now
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Participant already has an open check-in session")

    logger.info("checkin_toggled", participant_id=participant_id, action=action.value, session_id=session_id)
    record_audit(db, actor, action, AuditTargetType.PARTICIPANT, participant_id, participant_name, now=now)

    return ToggleResult(
        participant_id=participant_id,
        session_id=session_id,
        action=action,
        status=status,
        check_in_time=check_in_time,
        check_out_time=to_optional_utc(check_out_time),
    )
