"""Audit log business logic.

The audit log is append-only: entries are never edited, a correction is a
new entry whose ``amends_id`` points at the entry it corrects, and the only
deletion is the admin "clear everything" action, which is not itself logged.

Writing an entry must never fail the operation being audited, so
``record_audit`` swallows its own failures after logging them.
"""
import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rollcall.core.constants import (
    AUDIT_DEFAULT_PAGE_SIZE,
    AUDIT_DELETE_BATCH_SIZE,
    AUDIT_MAX_PAGE_SIZE,
    DEFAULT_ACTOR_NAME,
)
from rollcall.core.exceptions import ValidationError
from rollcall.core.logging_config import get_logger
from rollcall.core.utils import to_utc, utcnow
from rollcall.db.models import AuditAction, AuditLog, AuditTargetType
from rollcall.db.session import storage_guard

logger = get_logger(__name__)

Changes = Dict[str, Dict[str, Any]]


@dataclass
class AuditPage:
    entries: List[AuditLog]
    next_cursor: Optional[str]
    has_more: bool


def diff_fields(before: Dict[str, Any], after: Dict[str, Any]) -> Changes:
    """Return ``{field: {"from": old, "to": new}}`` for fields whose value changed."""
    changes: Changes = {}
    for field, new_value in after.items():
        old_value = before.get(field)
        if old_value != new_value:
            changes[field] = {"from": old_value, "to": new_value}
    return changes


def record_audit(
    db: Session,
    actor: Optional[str],
    action: Union[AuditAction, str],
    target_type: Union[AuditTargetType, str],
    target_id: str,
    target_name: str,
    changes: Optional[Changes] = None,
    amends_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Optional[AuditLog]:
    """
    Append one audit entry.

    Call this after the audited change has been committed. Returns the new
    entry, or None if it could not be written; the failure is logged and
    never raised.
    """
    try:
        entry = AuditLog(
            timestamp=to_utc(now) if now else utcnow(),
            actor_name=(actor or DEFAULT_ACTOR_NAME)[:100],
            action=AuditAction(action).value,
            target_type=AuditTargetType(target_type).value,
            target_id=str(target_id),
            target_name=str(target_name)[:200],
            changes=changes or None,
            amends_id=amends_id,
        )
        db.add(entry)
        db.commit()
        return entry
    except (ValueError, SQLAlchemyError):
        db.rollback()
        logger.exception(
            "audit_write_failed",
            actor=actor,
            action=str(action),
            target_type=str(target_type),
            target_id=str(target_id),
        )
        return None


def get_audit_entry(db: Session, entry_id: int) -> Optional[AuditLog]:
    return db.get(AuditLog, entry_id)


def _encode_cursor(entry: AuditLog) -> str:
    raw = json.dumps([to_utc(entry.timestamp).isoformat(), entry.id])
    return base64.urlsafe_b64encode(raw.encode()).decode().rstrip("=")


def _decode_cursor(cursor: str) -> Tuple[datetime, int]:
    padded = cursor + "=" * (-len(cursor) % 4)
    try:
        timestamp, entry_id = json.loads(base64.urlsafe_b64decode(padded.encode()))
        return to_utc(datetime.fromisoformat(timestamp)), int(entry_id)
    except (ValueError, TypeError, binascii.Error):
        raise ValidationError("Invalid pagination cursor")


def read_audit_page(
    db: Session,
    page_size: int = AUDIT_DEFAULT_PAGE_SIZE,
    cursor: Optional[str] = None,
) -> AuditPage:
    """
    Read one page of the log, newest first.

    Fetches ``page_size + 1`` rows to learn whether another page exists.
    Ordering is (timestamp DESC, id DESC) so entries sharing a timestamp
    still page deterministically. ``next_cursor`` is opaque to callers.
    """
    if page_size < 1 or page_size > AUDIT_MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must be between 1 and {AUDIT_MAX_PAGE_SIZE}")

    with storage_guard(db, "read_audit_page"):
        query = db.query(AuditLog)
        if cursor:
            after_ts, after_id = _decode_cursor(cursor)
            query = query.filter(
                or_(
                    AuditLog.timestamp < after_ts,
                    and_(AuditLog.timestamp == after_ts, AuditLog.id < after_id),
                )
            )
        rows = (
            query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc())
            .limit(page_size + 1)
            .all()
        )

    has_more = len(rows) > page_size
    entries = rows[:page_size]
    next_cursor = _encode_cursor(entries[-1]) if has_more else None
    return AuditPage(entries=entries, next_cursor=next_cursor, has_more=has_more)


def clear_audit_log(db: Session, batch_size: int = AUDIT_DELETE_BATCH_SIZE) -> int:
    """
    Delete every audit entry, committing in batches of at most 500 rows.

    Returns the number of entries deleted. Clearing is not itself audited.
    """
    batch_size = max(1, min(batch_size, AUDIT_DELETE_BATCH_SIZE))
    deleted = 0

    with storage_guard(db, "clear_audit_log"):
        while True:
            ids = [
                row[0]
                for row in db.query(AuditLog.id).order_by(AuditLog.id).limit(batch_size).all()
            ]
            if not ids:
                break
            db.query(AuditLog).filter(AuditLog.id.in_(ids)).delete(synchronize_session=False)
            db.commit()
            deleted += len(ids)

    logger.info("audit_log_cleared", deleted=deleted)
    return deleted
