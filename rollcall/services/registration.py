"""Public registration business logic.

Every public operation passes admission control before it touches any
registration data. Submitting creates the participant and the survey
response in one transaction and hands back a random personal code, which
is the only credential a registrant has for looking up or editing their
response later.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rollcall.core.constants import (
    OPERATION_CODE_LOOKUP,
    OPERATION_EMAIL_CODE,
    OPERATION_REGISTRATION,
    PERSONAL_CODE_MAX_ATTEMPTS,
    REGISTRATION_ACTOR_NAME,
)
from rollcall.core.exceptions import NotFoundError, StorageError, ValidationError
from rollcall.core.keys import generate_personal_code
from rollcall.core.logging_config import get_logger
from rollcall.core.sanitization import sanitize_email, sanitize_personal_code
from rollcall.core.utils import new_id, to_utc, utcnow
from rollcall.db.models import AuditAction, AuditTargetType, RegistrationResponse, Survey
from rollcall.db.session import storage_guard
from rollcall.services.admission import check_rate
from rollcall.services.audit import diff_fields, record_audit
from rollcall.services.mailer import MailerError, get_mailer, personal_code_message
from rollcall.services.participants import PROFILE_FIELDS, apply_fields, build_participant, normalize_fields

logger = get_logger(__name__)

# Registrants may fill in their own profile but never their assignments
REGISTRANT_FIELDS = tuple(f for f in PROFILE_FIELDS if f not in ("is_paid", "memo"))


@dataclass
class SubmissionResult:
    personal_code: str
    response_id: str
    participant_id: str


def get_active_survey(db: Session, survey_id: str) -> Survey:
    """Load a survey that is accepting responses, or raise NotFoundError."""
    with storage_guard(db, "get_active_survey"):
        survey = db.get(Survey, survey_id)
    if survey is None or not survey.is_active:
        raise NotFoundError("Survey not found or no longer accepting responses")
    return survey


def _clean_form_data(form_data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if form_data is None:
        return {}
    if not isinstance(form_data, Mapping):
        raise ValidationError("Form data must be an object")
    return dict(form_data)


def _clean_code(code: str) -> str:
    try:
        return sanitize_personal_code(code)
    except ValueError as e:
        raise ValidationError(str(e))


def submit_registration(
    db: Session,
    survey_id: str,
    form_data: Optional[Mapping[str, Any]],
    participant_fields: Mapping[str, Any],
    client_ip: str,
    now: Optional[datetime] = None,
) -> SubmissionResult:
    """
    Register a participant through a public survey.

    Order matters: the survey is checked first, then the caller is admitted,
    and only then are records written, all in one commit.

    Raises:
        NotFoundError: Survey missing or inactive
        ValidationError: Invalid form or participant fields
        RateLimitedError: Caller not admitted
        StorageError: Transient failure, or no unused personal code found
    """
    now = to_utc(now) if now else utcnow()
    get_active_survey(db, survey_id)
    data = _clean_form_data(form_data)
    fields = normalize_fields(participant_fields, allowed=REGISTRANT_FIELDS)
    if not fields.get("name"):
        raise ValidationError("Name is required")

    check_rate(db, OPERATION_REGISTRATION, client_ip, now=now)

    with storage_guard(db, "submit_registration"):
        for attempt in range(1, PERSONAL_CODE_MAX_ATTEMPTS + 1):
            participant = build_participant(fields, now)
            participant.registration_survey_id = survey_id
            response = RegistrationResponse(
                id=new_id(),
                survey_id=survey_id,
                personal_code=generate_personal_code(),
                participant_id=participant.id,
                email=participant.email or "",
                submitted_data=data,
                created_at=now,
                updated_at=now,
            )
            db.add_all([participant, response])
            try:
                db.commit()
            except IntegrityError:
                # Personal code already taken in this survey
                db.rollback()
                logger.warning("personal_code_collision", survey_id=survey_id, attempt=attempt)
                continue

            logger.info(
                "registration_submitted",
                survey_id=survey_id,
                response_id=response.id,
                participant_id=participant.id,
            )
            result = SubmissionResult(
                personal_code=response.personal_code,
                response_id=response.id,
                participant_id=participant.id,
            )
            record_audit(
                db,
                REGISTRATION_ACTOR_NAME,
                AuditAction.CREATE,
                AuditTargetType.PARTICIPANT,
                participant.id,
                participant.name,
                changes=diff_fields({}, {k: v for k, v in fields.items() if v not in (None, "")}),
                now=now,
            )
            return result

    logger.error("personal_code_exhausted", survey_id=survey_id)
    raise StorageError("Could not allocate a personal code. Please retry.")


def lookup_by_code(
    db: Session,
    code: str,
    client_ip: str,
    survey_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> RegistrationResponse:
    """
    Find a registration by personal code.

    Raises:
        ValidationError: Malformed code
        RateLimitedError: Caller not admitted
        NotFoundError: No response carries this code
    """
    code = _clean_code(code)
    check_rate(db, OPERATION_CODE_LOOKUP, client_ip, now=now)

    with storage_guard(db, "lookup_by_code"):
        query = db.query(RegistrationResponse).filter(RegistrationResponse.personal_code == code)
        if survey_id:
            query = query.filter(RegistrationResponse.survey_id == survey_id)
        response = query.order_by(RegistrationResponse.created_at.desc()).first()

    if response is None:
        raise NotFoundError("No registration found for this code")
    return response


def update_registration(
    db: Session,
    survey_id: str,
    code: str,
    form_data: Optional[Mapping[str, Any]],
    participant_fields: Mapping[str, Any],
    client_ip: str,
    now: Optional[datetime] = None,
) -> SubmissionResult:
    """
    Edit an existing registration in place, authorized by its personal code.

    The response and its participant are updated in one commit; nothing is
    ever re-created, so the participant keeps its id and check-in history.
    Stored form answers are replaced only when ``form_data`` is given;
    ``None`` leaves them as they are.

    Raises:
        NotFoundError: Survey missing/inactive, or no response with this code
        ValidationError: Malformed code or fields
        RateLimitedError: Caller not admitted
        StorageError: Transient database failure
    """
    now = to_utc(now) if now else utcnow()
    get_active_survey(db, survey_id)
    code = _clean_code(code)
    data = None if form_data is None else _clean_form_data(form_data)
    fields = normalize_fields(participant_fields, allowed=REGISTRANT_FIELDS)
    if "name" in participant_fields and not fields.get("name"):
        raise ValidationError("Name is required")

    check_rate(db, OPERATION_REGISTRATION, client_ip, now=now)

    with storage_guard(db, "update_registration"):
        response = (
            db.query(RegistrationResponse)
            .filter(
                RegistrationResponse.survey_id == survey_id,
                RegistrationResponse.personal_code == code,
            )
            .first()
        )
        if response is None:
            db.rollback()
            raise NotFoundError("No registration found for this code")

        participant = response.participant
        changes = apply_fields(participant, fields, now)
        if data is not None and data != response.submitted_data:
            changes["submitted_data"] = {"from": response.submitted_data, "to": data}
            response.submitted_data = data
        response.email = participant.email or ""
        response.updated_at = now
        db.commit()

        result = SubmissionResult(
            personal_code=response.personal_code,
            response_id=response.id,
            participant_id=participant.id,
        )
        participant_name = participant.name

    logger.info(
        "registration_updated",
        survey_id=survey_id,
        response_id=result.response_id,
        fields=sorted(changes),
    )
    if changes:
        record_audit(
            db,
            REGISTRATION_ACTOR_NAME,
            AuditAction.UPDATE,
            AuditTargetType.PARTICIPANT,
            result.participant_id,
            participant_name,
            changes=changes,
            now=now,
        )
    return result


def send_code_by_email(
    db: Session,
    email: str,
    survey_id: str,
    client_ip: str,
    mailer=None,
    now: Optional[datetime] = None,
) -> None:
    """
    Mail the personal code registered under ``email`` for a survey.

    The outcome is the same whether or not a registration matches, so the
    endpoint cannot be used to discover who registered. Transport failures
    are logged and never reported to the caller.

    Raises:
        ValidationError: Malformed email address
        RateLimitedError: Caller not admitted
        StorageError: Transient database failure
    """
    try:
        email = sanitize_email(email)
    except ValueError as e:
        raise ValidationError(str(e))
    if not survey_id:
        raise ValidationError("Survey id is required")

    check_rate(db, OPERATION_EMAIL_CODE, client_ip, now=now)

    with storage_guard(db, "send_code_by_email"):
        survey = db.get(Survey, survey_id)
        response = None
        if survey is not None:
            response = (
                db.query(RegistrationResponse)
                .filter(
                    RegistrationResponse.survey_id == survey_id,
                    RegistrationResponse.email == email,
                )
                .order_by(RegistrationResponse.created_at.desc())
                .first()
            )

    if response is None:
        logger.info("personal_code_email_no_match", survey_id=survey_id)
        return

    subject, body = personal_code_message(response.personal_code, survey.title)
    mailer = mailer or get_mailer()
    try:
        mailer.send(email, subject, body)
    except MailerError as e:
        logger.error("personal_code_email_failed", survey_id=survey_id, error=str(e))
        return

    logger.info("personal_code_emailed", survey_id=survey_id, response_id=response.id)
