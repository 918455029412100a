"""Scan endpoint: resolve a scanned payload to a participant."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from rollcall.api.deps import get_db, verify_admin_token
from rollcall.core.rate_limit import limiter, RATE_LIMITS
from rollcall.schemas import ScanRequest, ScanResponse
from rollcall.services.attendance import current_status
from rollcall.services.identity import resolve_identity

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.post("/scan", response_model=ScanResponse)
@limiter.limit(RATE_LIMITS["admin_read"])
def scan_endpoint(request: Request, body: ScanRequest, db: Session = Depends(get_db)) -> ScanResponse:
    """
    Decode a scanned or typed payload and return who it names.

    Responses:
        200: Participant found
        404: Payload well formed but matches nobody
        422: Payload is not a recognised format ("Invalid QR code")
    """
    participant = resolve_identity(db, body.payload)
    return ScanResponse(
        participant_id=participant.id,
        name=participant.name,
        status=current_status(participant.check_ins).value,
    )
