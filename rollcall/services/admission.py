"""Per-client admission control for public endpoints.

Each (operation, client IP) pair owns one ``RateLimitCounter`` row holding
the time of the last admitted request, the number admitted today and the
local midnight the count belongs to. A request is admitted when the cooldown
since the last admitted request has passed and today's count is below the
daily cap. Day rollover is evaluated lazily from the stored timestamps.

Concurrency: the first request for a key inserts the row and relies on the
primary key to detect a racing insert. Later requests update through the
ORM's version counter, so the UPDATE only applies if nobody else admitted a
request since our read; the loser re-reads and is judged again (and will
normally hit the cooldown).
"""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from rollcall.core import config
from rollcall.core.constants import (
    ADMISSION_MAX_ATTEMPTS,
    OPERATION_CODE_LOOKUP,
    OPERATION_EMAIL_CODE,
    OPERATION_REGISTRATION,
)
from rollcall.core.exceptions import RateLimitedError, ValidationError
from rollcall.core.logging_config import get_logger
from rollcall.core.utils import start_of_day, start_of_next_day, to_utc, utcnow
from rollcall.db.models import RateLimitCounter
from rollcall.db.session import storage_guard

logger = get_logger(__name__)


@dataclass(frozen=True)
class RateRule:
    max_per_day: int
    cooldown_ms: int


@dataclass
class AdmissionResult:
    key: str
    daily_count: int
    remaining_today: int


def get_rate_rules() -> Dict[str, RateRule]:
    """Admission rules per operation, read from settings on each call."""
    s = config.settings
    return {
        OPERATION_EMAIL_CODE: RateRule(s.EMAIL_CODE_MAX_PER_DAY, s.EMAIL_CODE_COOLDOWN_MS),
        OPERATION_CODE_LOOKUP: RateRule(s.CODE_LOOKUP_MAX_PER_DAY, s.CODE_LOOKUP_COOLDOWN_MS),
        OPERATION_REGISTRATION: RateRule(s.REGISTRATION_MAX_PER_DAY, s.REGISTRATION_COOLDOWN_MS),
    }


def counter_key(operation: str, client_ip: str) -> str:
    return f"{operation}:{client_ip}"


def check_rate(
    db: Session,
    operation: str,
    client_ip: str,
    now: Optional[datetime] = None,
    tz: Optional[ZoneInfo] = None,
    rule: Optional[RateRule] = None,
) -> AdmissionResult:
    """
    Admit or reject one request for ``operation`` from ``client_ip``.

    Args:
        db: Database session (committed on admission)
        operation: One of the configured operation prefixes
        client_ip: Caller address used in the counter key
        now: Override for the current time (tests)
        tz: Zone whose midnight resets the daily count (default: settings)
        rule: Override for the configured rule

    Raises:
        RateLimitedError: Cooldown not elapsed or daily cap reached
        ValidationError: Unknown operation
        StorageError: Transient database failure
    """
    if rule is None:
        rule = get_rate_rules().get(operation)
        if rule is None:
            raise ValidationError(f"Unknown admission operation: {operation}")

    now = to_utc(now) if now else utcnow()
    tz = tz or config.settings.tz
    today_start = start_of_day(now, tz)
    key = counter_key(operation, client_ip)

    with storage_guard(db, "check_rate"):
        for _ in range(ADMISSION_MAX_ATTEMPTS):
            counter = db.get(RateLimitCounter, key, populate_existing=True)

            if counter is None:
                db.add(RateLimitCounter(
                    key=key,
                    operation=operation,
                    last_sent_at=now,
                    daily_count=1,
                    daily_reset_at=today_start,
                ))
                try:
                    db.commit()
                except IntegrityError:
                    # Another request created the row first; judge against it
                    db.rollback()
                    continue
                return AdmissionResult(key=key, daily_count=1, remaining_today=max(rule.max_per_day - 1, 0))

            elapsed_ms = (now - to_utc(counter.last_sent_at)).total_seconds() * 1000
            if elapsed_ms < rule.cooldown_ms:
                db.rollback()
                wait_seconds = math.ceil((rule.cooldown_ms - elapsed_ms) / 1000)
                logger.info("rate_limited", key=key, reason="cooldown", wait_seconds=wait_seconds)
                raise RateLimitedError(
                    f"Please wait {wait_seconds} seconds before requesting again.",
                    retry_after=wait_seconds,
                )

            is_new_day = to_utc(counter.daily_reset_at) < today_start
            current_count = 0 if is_new_day else counter.daily_count

            if current_count >= rule.max_per_day:
                db.rollback()
                retry_after = math.ceil((start_of_next_day(now, tz) - now).total_seconds())
                logger.info("rate_limited", key=key, reason="daily_limit", daily_count=current_count)
                raise RateLimitedError(
                    "Daily limit reached. Please try again tomorrow.",
                    retry_after=retry_after,
                )

            counter.last_sent_at = now
            counter.daily_count = current_count + 1
            if is_new_day:
                counter.daily_reset_at = today_start
            try:
                db.commit()
            except StaleDataError:
                # A concurrent request was admitted after our read
                db.rollback()
                continue
            return AdmissionResult(
                key=key,
                daily_count=current_count + 1,
                remaining_today=max(rule.max_per_day - current_count - 1, 0),
            )

    logger.warning("rate_limit_contention", key=key)
    raise RateLimitedError("Too many simultaneous requests. Please retry.", retry_after=1)
