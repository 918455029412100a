"""Scannable identity payloads.

Four payload formats are accepted, tried in this order; the first decoder
that recognises the text wins:

1. ``{"type": "checkin", "id": "<participant id>", "v": 1}``  -> participant id
2. ``CHECKIN:<participant id>``                                -> participant id
3. ``KEY:<8-char key>``                                        -> lookup key
4. ``<8-char key>``                                            -> lookup key

Anything else is an invalid payload, which is reported differently from a
well-formed payload that matches nobody.
"""
import json
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from sqlalchemy.orm import Session

from rollcall.core.cache import TTLCache, get_or_fetch, key_index_cache
from rollcall.core.constants import (
    KEY_PREFIX,
    PARTICIPANT_ID_PREFIX,
    QR_PAYLOAD_TYPE,
    QR_PAYLOAD_VERSION,
)
from rollcall.core.exceptions import NotFoundError, ValidationError
from rollcall.core.keys import is_valid_key
from rollcall.db.models import Participant
from rollcall.db.session import storage_guard


@dataclass(frozen=True)
class ParticipantRef:
    participant_id: str


@dataclass(frozen=True)
class KeyRef:
    key: str


DecodedIdentity = Union[ParticipantRef, KeyRef]
Decoder = Callable[[str], Optional[DecodedIdentity]]


def _decode_structured(text: str) -> Optional[DecodedIdentity]:
    try:
        payload = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if not isinstance(payload, dict) or payload.get("type") != QR_PAYLOAD_TYPE:
        return None
    participant_id = payload.get("id")
    if not participant_id or isinstance(participant_id, bool) or not isinstance(participant_id, (str, int)):
        return None
    return ParticipantRef(str(participant_id))


def _decode_id_prefix(text: str) -> Optional[DecodedIdentity]:
    if not text.startswith(PARTICIPANT_ID_PREFIX):
        return None
    participant_id = text[len(PARTICIPANT_ID_PREFIX):]
    return ParticipantRef(participant_id) if participant_id else None


def _decode_key_prefix(text: str) -> Optional[DecodedIdentity]:
    if not text.startswith(KEY_PREFIX):
        return None
    key = text[len(KEY_PREFIX):]
    return KeyRef(key) if is_valid_key(key) else None


def _decode_bare_key(text: str) -> Optional[DecodedIdentity]:
    return KeyRef(text) if is_valid_key(text) else None


DECODERS: Tuple[Decoder, ...] = (
    _decode_structured,
    _decode_id_prefix,
    _decode_key_prefix,
    _decode_bare_key,
)


def decode_identity(raw_text: str) -> Optional[DecodedIdentity]:
    """Classify a scanned or typed payload; None means invalid."""
    if not isinstance(raw_text, str) or not raw_text:
        return None
    for decoder in DECODERS:
        result = decoder(raw_text)
        if result is not None:
            return result
    return None


def encode_participant_payload(participant_id: str) -> str:
    """Structured payload printed on participant QR badges."""
    return json.dumps({"type": QR_PAYLOAD_TYPE, "id": participant_id, "v": QR_PAYLOAD_VERSION})


def encode_key_payload(key: str) -> str:
    if not is_valid_key(key):
        raise ValidationError("Key must be 8 uppercase letters or digits")
    return f"{KEY_PREFIX}{key}"


def find_participant_by_key(
    db: Session,
    key: str,
    cache: TTLCache = key_index_cache,
) -> Optional[Participant]:
    """
    Resolve a derived lookup key to a participant.

    The key -> id mapping is cached; a cached id whose row has disappeared
    is dropped and the index is queried again.
    """
    cache_key = f"participant_key:{key}"

    def fetch_id() -> Optional[str]:
        row = (
            db.query(Participant.id)
            .filter(Participant.lookup_key == key)
            .order_by(Participant.created_at, Participant.id)
            .first()
        )
        return row[0] if row else None

    participant_id = get_or_fetch(cache, cache_key, fetch_id)
    if participant_id is None:
        return None

    participant = db.get(Participant, participant_id)
    if participant is None or participant.lookup_key != key:
        cache.invalidate(cache_key)
        participant_id = fetch_id()
        if participant_id is None:
            return None
        cache.set(cache_key, participant_id)
        participant = db.get(Participant, participant_id)
    return participant


def resolve_identity(db: Session, raw_text: str) -> Participant:
    """
    Decode a payload and load the participant it names.

    Id payloads go through the session identity map before the database;
    key payloads use the indexed ``lookup_key`` column, first match wins.

    Raises:
        ValidationError: The payload matches none of the accepted formats
        NotFoundError: The payload is well formed but matches no participant
    """
    decoded = decode_identity(raw_text)
    if decoded is None:
        raise ValidationError("Invalid QR code")

    with storage_guard(db, "resolve_identity"):
        if isinstance(decoded, ParticipantRef):
            participant = db.get(Participant, decoded.participant_id)
        else:
            participant = find_participant_by_key(db, decoded.key)

    if participant is None:
        raise NotFoundError("Participant not found")
    return participant


def invalidate_key(key: Optional[str]) -> None:
    """Drop a cached key mapping after a participant's key changed."""
    if key:
        key_index_cache.invalidate(f"participant_key:{key}")
