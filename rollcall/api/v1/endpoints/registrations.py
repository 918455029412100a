"""Public registration endpoints.

Each route has a coarse slowapi ceiling per minute; the persisted
per-client admission rules are applied inside the services.
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from rollcall.api.deps import client_ip, get_db
from rollcall.core.rate_limit import limiter, RATE_LIMITS
from rollcall.schemas import (
    CodeLookupRequest,
    RegistrationDetail,
    RegistrationEdit,
    RegistrationSubmit,
    RegistrationSubmitResponse,
    SendCodeRequest,
    SuccessResponse,
)
from rollcall.services.registration import (
    lookup_by_code,
    send_code_by_email,
    submit_registration,
    update_registration,
)

router = APIRouter()


@router.post("/lookup", response_model=RegistrationDetail)
@limiter.limit(RATE_LIMITS["code_lookup"])
def lookup_endpoint(
    request: Request,
    body: CodeLookupRequest,
    db: Session = Depends(get_db),
    ip: str = Depends(client_ip),
):
    """Find a registration by personal code."""
    return lookup_by_code(db, body.code, ip, survey_id=body.survey_id)


@router.post("/send-code", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["email_code"])
def send_code_endpoint(
    request: Request,
    body: SendCodeRequest,
    db: Session = Depends(get_db),
    ip: str = Depends(client_ip),
):
    """
    Email the personal code for a registration.

    The response is identical whether or not the address is registered.
    """
    send_code_by_email(db, body.email, body.survey_id, ip)
    return SuccessResponse(
        success=True,
        message="If a registration exists for this address, its code has been sent.",
    )


@router.post("/{survey_id}", response_model=RegistrationSubmitResponse, status_code=201)
@limiter.limit(RATE_LIMITS["registration"])
def submit_endpoint(
    request: Request,
    survey_id: str,
    body: RegistrationSubmit,
    db: Session = Depends(get_db),
    ip: str = Depends(client_ip),
):
    """Submit a registration; the response carries the personal code."""
    result = submit_registration(
        db,
        survey_id,
        body.form_data,
        body.participant.model_dump(exclude_none=True),
        ip,
    )
    return RegistrationSubmitResponse(
        personal_code=result.personal_code,
        response_id=result.response_id,
        participant_id=result.participant_id,
    )


@router.put("/{survey_id}/{code}", response_model=RegistrationSubmitResponse)
@limiter.limit(RATE_LIMITS["registration"])
def edit_endpoint(
    request: Request,
    survey_id: str,
    code: str,
    body: RegistrationEdit,
    db: Session = Depends(get_db),
    ip: str = Depends(client_ip),
):
    """Edit a registration in place using its personal code."""
    result = update_registration(
        db,
        survey_id,
        code,
        body.form_data,
        body.participant.model_dump(exclude_unset=True),
        ip,
    )
    return RegistrationSubmitResponse(
        personal_code=result.personal_code,
        response_id=result.response_id,
        participant_id=result.participant_id,
    )
