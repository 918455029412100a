"""Participant identity keys and personal codes.

A participant key is an 8-character ``A-Z0-9`` token derived from a person's
name and birth date plus a shared server-side secret. The same inputs always
give the same key, so staff can regenerate it offline (``derive_key.py``) and
look the participant up by scanning or typing it. It is a lookup key, not a
credential.

Personal codes use the same alphabet mapping but are seeded from the OS
random source and carry no information about the submitter.
"""
import hashlib
import re
import secrets
from datetime import date
from typing import Optional, Tuple

from rollcall.core import config
from rollcall.core.constants import (
    KEY_ALPHABET,
    KEY_FIELD_SEPARATOR,
    KEY_LENGTH,
    KEY_PATTERN,
)
from rollcall.core.exceptions import ValidationError

_KEY_RE = re.compile(KEY_PATTERN)


def bytes_to_code(data: bytes, length: int = KEY_LENGTH) -> str:
    """Map each of the first ``length`` bytes onto the 36-symbol alphabet."""
    if len(data) < length:
        raise ValueError(f"Need at least {length} bytes, got {len(data)}")
    return "".join(KEY_ALPHABET[b % len(KEY_ALPHABET)] for b in data[:length])


def split_name(full_name: str) -> Tuple[str, str]:
    """
    Split a full name into (family name, given name).

    Multi-word names are read in Western order: the last word is the family
    name. Single-word names follow the initial-surname convention: the first
    character is the family name and the rest the given name.
    """
    trimmed = full_name.strip()
    parts = trimmed.split()
    if len(parts) >= 2:
        return parts[-1], " ".join(parts[:-1])
    if len(trimmed) >= 2:
        return trimmed[0], trimmed[1:]
    return trimmed, ""


def validate_birth_date(birth_date: str) -> str:
    """Return the trimmed birth date if it is an ISO ``YYYY-MM-DD`` date."""
    value = birth_date.strip()
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        raise ValidationError("Birth date must be a valid YYYY-MM-DD date")
    # fromisoformat accepts other ISO spellings on newer Pythons
    if parsed.isoformat() != value:
        raise ValidationError("Birth date must be a valid YYYY-MM-DD date")
    return value


def derive_key(last_name: str, first_name: str, birth_date: str, secret: str) -> str:
    """Derive the 8-character key for one person. Pure, no I/O."""
    material = KEY_FIELD_SEPARATOR.join([
        last_name.strip().lower(),
        first_name.strip().lower(),
        birth_date.strip(),
        secret,
    ])
    digest = hashlib.sha256(material.encode("utf-8")).digest()
    return bytes_to_code(digest)


def derive_key_from_name(
    full_name: Optional[str],
    birth_date: Optional[str],
    secret: Optional[str] = None,
) -> Optional[str]:
    """
    Derive a participant key from a full name and ISO birth date.

    Returns None when either input is missing; a key is never derived from
    partial data. A birth date that is present but malformed raises
    ValidationError.
    """
    if not full_name or not full_name.strip() or not birth_date or not birth_date.strip():
        return None

    last_name, first_name = split_name(full_name)
    if secret is None:
        secret = config.settings.PARTICIPANT_KEY_SECRET
    return derive_key(last_name, first_name, validate_birth_date(birth_date), secret)


def is_valid_key(text: str) -> bool:
    """True if ``text`` has the exact 8-character key shape."""
    return bool(_KEY_RE.fullmatch(text))


def generate_personal_code() -> str:
    """Generate a random 8-character personal code."""
    return bytes_to_code(secrets.token_bytes(KEY_LENGTH))
