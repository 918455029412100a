"""Key derivation and key QR endpoints for staff tooling."""
from fastapi import APIRouter, Depends, Request, Response

from rollcall.api.deps import verify_admin_token
from rollcall.core.exceptions import ValidationError
from rollcall.core.keys import derive_key_from_name
from rollcall.core.rate_limit import limiter, RATE_LIMITS
from rollcall.schemas import DeriveKeyRequest, DeriveKeyResponse
from rollcall.services.identity import encode_key_payload
from rollcall.services.qr import render_key_qr

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.post("/derive", response_model=DeriveKeyResponse)
@limiter.limit(RATE_LIMITS["admin_read"])
async def derive_key_endpoint(request: Request, body: DeriveKeyRequest) -> DeriveKeyResponse:
    """
    Derive the lookup key for a name and birth date.

    The secret never leaves the server; staff get the key and the ``KEY:``
    payload to print.
    """
    key = derive_key_from_name(body.name, body.birth_date)
    if key is None:
        raise ValidationError("Name and birth date are required")
    return DeriveKeyResponse(key=key, payload=encode_key_payload(key))


@router.get("/{key}/qr.svg")
@limiter.limit(RATE_LIMITS["admin_read"])
async def key_qr_endpoint(request: Request, key: str) -> Response:
    """Printable ``KEY:`` QR code for a derived key."""
    return Response(content=render_key_qr(key), media_type="image/svg+xml")
