from .admission import check_rate, get_rate_rules
from .attendance import (
    current_status,
    get_attendance,
    get_participant,
    get_sessions,
    toggle_checkin,
    total_attended,
)
from .audit import clear_audit_log, read_audit_page, record_audit
from .identity import decode_identity, resolve_identity
from .participants import create_participant, update_participant
from .qr import render_key_qr, render_participant_qr
from .registration import (
    lookup_by_code,
    send_code_by_email,
    submit_registration,
    update_registration,
)

__all__ = [
    # admission
    "check_rate",
    "get_rate_rules",
    # attendance
    "current_status",
    "get_attendance",
    "get_participant",
    "get_sessions",
    "toggle_checkin",
    "total_attended",
    # audit
    "clear_audit_log",
    "read_audit_page",
    "record_audit",
    # identity
    "decode_identity",
    "resolve_identity",
    # participants
    "create_participant",
    "update_participant",
    # qr
    "render_key_qr",
    "render_participant_qr",
    # registration
    "lookup_by_code",
    "send_code_by_email",
    "submit_registration",
    "update_registration",
]
