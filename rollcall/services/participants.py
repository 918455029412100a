"""Participant create/update business logic.

Edits are diffed field by field and recorded in the audit log. A change
that only touches group, room or bus assignment is recorded as ``assign``;
anything else is ``update``. The derived lookup key follows the name and
birth date: changing either re-derives it and drops cached key mappings.
"""
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from rollcall.core.exceptions import ValidationError
from rollcall.core.keys import derive_key_from_name, validate_birth_date
from rollcall.core.logging_config import get_logger
from rollcall.core.sanitization import (
    MAX_MEMO_LENGTH,
    MAX_TEXT_LENGTH,
    sanitize_email,
    sanitize_name,
    sanitize_text,
)
from rollcall.core.utils import new_id, to_utc, utcnow
from rollcall.db.models import AuditAction, AuditTargetType, Participant
from rollcall.db.session import storage_guard
from rollcall.services.attendance import get_participant
from rollcall.services.audit import Changes, diff_fields, record_audit
from rollcall.services.identity import invalidate_key

logger = get_logger(__name__)

PROFILE_FIELDS = (
    "name",
    "email",
    "phone_number",
    "gender",
    "age",
    "stake",
    "ward",
    "birth_date",
    "is_paid",
    "memo",
)
ASSIGNMENT_FIELDS = (
    "group_id",
    "group_name",
    "room_id",
    "room_number",
    "bus_id",
    "bus_name",
)
EDITABLE_FIELDS = PROFILE_FIELDS + ASSIGNMENT_FIELDS
KEY_SOURCE_FIELDS = ("name", "birth_date")


def _clean_optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    cleaned = sanitize_text(str(value), max_length=MAX_TEXT_LENGTH)
    return cleaned or None


def normalize_fields(fields: Mapping[str, Any], allowed: Tuple[str, ...] = EDITABLE_FIELDS) -> Dict[str, Any]:
    """
    Validate and normalize raw participant fields.

    Raises:
        ValidationError: Unknown field or invalid value
    """
    unknown = set(fields) - set(allowed)
    if unknown:
        raise ValidationError(f"Unknown participant fields: {', '.join(sorted(unknown))}")

    cleaned: Dict[str, Any] = {}
    try:
        for field, value in fields.items():
            if field == "name":
                cleaned[field] = sanitize_name(value or "")
            elif field == "email":
                cleaned[field] = sanitize_email(value) if value else ""
            elif field == "birth_date":
                cleaned[field] = validate_birth_date(value) if value and value.strip() else None
            elif field == "is_paid":
                cleaned[field] = bool(value)
            elif field == "memo":
                memo = (value or "").strip()
                if len(memo) > MAX_MEMO_LENGTH:
                    raise ValueError(f"Memo exceeds maximum length of {MAX_MEMO_LENGTH} characters")
                cleaned[field] = memo
            elif field in ASSIGNMENT_FIELDS:
                cleaned[field] = _clean_optional_text(value)
            else:
                cleaned[field] = sanitize_text(str(value or ""), max_length=MAX_TEXT_LENGTH)
    except ValueError as e:
        raise ValidationError(str(e))

    return cleaned


def snapshot(participant: Participant, fields=EDITABLE_FIELDS) -> Dict[str, Any]:
    return {field: getattr(participant, field) for field in fields}


def build_participant(fields: Mapping[str, Any], now: Optional[datetime] = None) -> Participant:
    """
    Build an unsaved participant from normalized fields.

    The id is assigned up front so related rows can reference it before flush.
    """
    if not fields.get("name"):
        raise ValidationError("Name is required")

    now = to_utc(now) if now else utcnow()
    participant = Participant(id=new_id(), created_at=now, updated_at=now)
    for field, value in fields.items():
        setattr(participant, field, value)
    participant.lookup_key = derive_key_from_name(participant.name, participant.birth_date)
    return participant


def apply_fields(participant: Participant, fields: Mapping[str, Any], now: Optional[datetime] = None) -> Changes:
    """
    Apply normalized fields to a loaded participant without committing.

    Returns the field-level diff; an empty diff leaves the row untouched.
    """
    before = snapshot(participant, tuple(fields))
    changes = diff_fields(before, dict(fields))
    if not changes:
        return changes

    for field in changes:
        setattr(participant, field, fields[field])

    if any(field in changes for field in KEY_SOURCE_FIELDS):
        old_key = participant.lookup_key
        participant.lookup_key = derive_key_from_name(participant.name, participant.birth_date)
        if participant.lookup_key != old_key:
            invalidate_key(old_key)
            invalidate_key(participant.lookup_key)

    participant.updated_at = to_utc(now) if now else utcnow()
    return changes


def edit_action(changes: Changes) -> AuditAction:
    """``assign`` when only assignment fields changed, ``update`` otherwise."""
    if changes and all(field in ASSIGNMENT_FIELDS for field in changes):
        return AuditAction.ASSIGN
    return AuditAction.UPDATE


def create_participant(
    db: Session,
    fields: Mapping[str, Any],
    actor: Optional[str],
    now: Optional[datetime] = None,
) -> Participant:
    """
    Create a participant and record a ``create`` audit entry.

    Raises:
        ValidationError: Missing name or invalid field
        StorageError: Transient database failure
    """
    cleaned = normalize_fields(fields)
    participant = build_participant(cleaned, now)

    with storage_guard(db, "create_participant"):
        db.add(participant)
        db.commit()
        db.refresh(participant)

    logger.info("participant_created", participant_id=participant.id)
    record_audit(
        db,
        actor,
        AuditAction.CREATE,
        AuditTargetType.PARTICIPANT,
        participant.id,
        participant.name,
        changes=diff_fields({}, {k: v for k, v in cleaned.items() if v not in (None, "", False)}),
        now=now,
    )
    return participant


def update_participant(
    db: Session,
    participant_id: str,
    fields: Mapping[str, Any],
    actor: Optional[str],
    now: Optional[datetime] = None,
) -> Tuple[Participant, Changes]:
    """
    Apply an edit to a participant.

    Returns the participant and the applied diff. An edit that changes
    nothing commits nothing and records nothing.

    Raises:
        NotFoundError: Unknown participant
        ValidationError: Unknown field or invalid value
        StorageError: Transient database failure
    """
    cleaned = normalize_fields(fields)
    if "name" in fields and not cleaned.get("name"):
        raise ValidationError("Name is required")

    participant = get_participant(db, participant_id)

    with storage_guard(db, "update_participant"):
        changes = apply_fields(participant, cleaned, now)
        if not changes:
            return participant, changes
        db.commit()
        db.refresh(participant)

    action = edit_action(changes)
    logger.info("participant_updated", participant_id=participant_id, action=action.value, fields=sorted(changes))
    record_audit(
        db,
        actor,
        action,
        AuditTargetType.PARTICIPANT,
        participant.id,
        participant.name,
        changes=changes,
        now=now,
    )
    return participant, changes
