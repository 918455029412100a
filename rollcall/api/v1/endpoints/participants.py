"""Participant endpoints (admin only)."""
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from rollcall.api.deps import get_actor, get_db, verify_admin_token
from rollcall.core.rate_limit import limiter, RATE_LIMITS
from rollcall.core.utils import to_optional_utc, to_utc
from rollcall.schemas import (
    AttendanceDetail,
    ParticipantCreate,
    ParticipantResponse,
    ParticipantUpdate,
    ParticipantUpdateResponse,
    SessionDetail,
    ToggleResponse,
)
from rollcall.services.attendance import get_attendance, get_participant, session_duration, toggle_checkin
from rollcall.services.participants import create_participant, update_participant
from rollcall.services.qr import render_participant_qr

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.post("", response_model=ParticipantResponse, status_code=201)
@limiter.limit(RATE_LIMITS["admin_write"])
def create_participant_endpoint(
    request: Request,
    body: ParticipantCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
):
    """Create a participant; the lookup key is derived when a birth date is given."""
    return create_participant(db, body.model_dump(exclude_none=True), actor)


@router.patch("/{participant_id}", response_model=ParticipantUpdateResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
def update_participant_endpoint(
    request: Request,
    participant_id: str,
    body: ParticipantUpdate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
):
    """
    Apply a partial edit.

    Only fields present in the request body are applied; send ``null`` for
    an assignment field to clear it.
    """
    participant, changes = update_participant(db, participant_id, body.model_dump(exclude_unset=True), actor)
    return ParticipantUpdateResponse(
        participant=ParticipantResponse.model_validate(participant),
        changes=changes,
    )


@router.get("/{participant_id}", response_model=AttendanceDetail)
@limiter.limit(RATE_LIMITS["admin_read"])
def get_attendance_endpoint(request: Request, participant_id: str, db: Session = Depends(get_db)):
    """Current status, session history and total attended time."""
    attendance = get_attendance(db, participant_id)
    participant = attendance.participant
    details = []
    for s in attendance.sessions:
        duration = session_duration(s)
        details.append(SessionDetail(
            id=s.id,
            check_in_time=to_utc(s.check_in_time),
            check_out_time=to_optional_utc(s.check_out_time),
            duration_seconds=duration.total_seconds() if duration is not None else None,
        ))
    return AttendanceDetail(
        participant_id=participant.id,
        name=participant.name,
        status=attendance.status.value,
        lookup_key=participant.lookup_key,
        sessions=details,
        total_attended_seconds=attendance.total.total_seconds(),
    )


@router.post("/{participant_id}/toggle", response_model=ToggleResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
def toggle_endpoint(
    request: Request,
    participant_id: str,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
):
    """
    Check the participant in if they are out, or out if they are in.

    Responses:
        200: New state
        404: Unknown participant
        409: Another station toggled the same participant at the same moment
    """
    result = toggle_checkin(db, participant_id, actor)
    return ToggleResponse(
        participant_id=result.participant_id,
        session_id=result.session_id,
        action=result.action.value,
        status=result.status.value,
        check_in_time=result.check_in_time,
        check_out_time=result.check_out_time,
    )


@router.get("/{participant_id}/qr.svg")
@limiter.limit(RATE_LIMITS["admin_read"])
def participant_qr_endpoint(request: Request, participant_id: str, db: Session = Depends(get_db)):
    """Badge QR code for a participant."""
    participant = get_participant(db, participant_id)
    return Response(content=render_participant_qr(participant.id), media_type="image/svg+xml")
