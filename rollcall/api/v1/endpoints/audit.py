"""Audit log endpoints (admin only)."""
from typing import Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from rollcall.api.deps import get_actor, get_db, verify_admin_token
from rollcall.core.constants import AUDIT_DEFAULT_PAGE_SIZE, AUDIT_MAX_PAGE_SIZE
from rollcall.core.exceptions import NotFoundError, StorageError
from rollcall.core.rate_limit import limiter, RATE_LIMITS
from rollcall.schemas import AuditClearResponse, AuditEntryCreate, AuditEntryResponse, AuditPageResponse
from rollcall.services.audit import clear_audit_log, get_audit_entry, read_audit_page, record_audit

router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.post("/audit-logs", response_model=AuditEntryResponse, status_code=201)
@limiter.limit(RATE_LIMITS["admin_write"])
def create_audit_entry_endpoint(
    request: Request,
    body: AuditEntryCreate,
    db: Session = Depends(get_db),
    actor: str = Depends(get_actor),
):
    """
    Record an entry for a change made elsewhere (bulk import, a correction).

    Corrections set ``amends_id``; the amended entry itself is never edited.
    """
    if body.amends_id is not None and get_audit_entry(db, body.amends_id) is None:
        raise NotFoundError("Amended audit entry not found")

    entry = record_audit(
        db,
        actor,
        body.action,
        body.target_type,
        body.target_id,
        body.target_name,
        changes=body.changes,
        amends_id=body.amends_id,
    )
    if entry is None:
        raise StorageError("The audit entry could not be written. Please retry.")
    return entry


@router.get("/audit-logs", response_model=AuditPageResponse)
@limiter.limit(RATE_LIMITS["admin_read"])
def read_audit_logs_endpoint(
    request: Request,
    page_size: int = Query(AUDIT_DEFAULT_PAGE_SIZE, ge=1, le=AUDIT_MAX_PAGE_SIZE),
    cursor: Optional[str] = Query(None, max_length=200),
    db: Session = Depends(get_db),
):
    """Newest entries first; pass ``next_cursor`` back as ``cursor`` for the next page."""
    page = read_audit_page(db, page_size=page_size, cursor=cursor)
    return AuditPageResponse(
        entries=[AuditEntryResponse.model_validate(e) for e in page.entries],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.delete("/audit-logs", response_model=AuditClearResponse)
@limiter.limit(RATE_LIMITS["admin_write"])
def clear_audit_logs_endpoint(request: Request, db: Session = Depends(get_db)):
    """Delete the whole log. This action is not itself logged."""
    return AuditClearResponse(deleted=clear_audit_log(db))
