"""Input sanitization utilities."""
import re
from typing import Optional

from rollcall.core.keys import is_valid_key


# Maximum length constraints for security
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 254
MAX_TEXT_LENGTH = 200
MAX_MEMO_LENGTH = 2000
MAX_PAYLOAD_LENGTH = 512   # Longest scannable payload we will try to decode

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def sanitize_text(text: str, max_length: Optional[int] = None, strip_html: bool = True) -> str:
    """
    Sanitize text input to prevent XSS attacks.

    Strips HTML tags and normalizes whitespace. Entities are not escaped
    because the frontend escapes on output.

    Args:
        text: The input text to sanitize
        max_length: Optional maximum length to enforce
        strip_html: Whether to strip HTML tags (default True)

    Returns:
        Sanitized text with HTML tags removed and whitespace normalized

    Raises:
        ValueError: If text exceeds max_length or contains dangerous patterns
    """
    if not isinstance(text, str):
        raise ValueError("Input must be a string")

    sanitized = text.strip()

    if max_length and len(sanitized) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    if strip_html:
        sanitized = re.sub(r'<[^>]*>', '', sanitized)

    # Malformed tags or encoded attacks that survived stripping
    if '<' in sanitized or '>' in sanitized:
        raise ValueError("Input contains invalid HTML-like patterns")

    sanitized = re.sub(r'\s+', ' ', sanitized)

    return sanitized


def sanitize_name(name: str) -> str:
    """Sanitize a person's display name."""
    sanitized = sanitize_text(name, max_length=MAX_NAME_LENGTH)
    if not sanitized:
        raise ValueError("Name cannot be empty")
    return sanitized


def sanitize_email(email: str) -> str:
    """
    Normalize an email address for storage and lookup.

    Returns:
        Trimmed, lowercased address

    Raises:
        ValueError: If the address is empty, too long or malformed
    """
    if not isinstance(email, str):
        raise ValueError("Email must be a string")

    sanitized = email.strip().lower()

    if not sanitized:
        raise ValueError("Email cannot be empty")

    if len(sanitized) > MAX_EMAIL_LENGTH:
        raise ValueError(f"Email exceeds maximum length of {MAX_EMAIL_LENGTH} characters")

    if not _EMAIL_RE.match(sanitized):
        raise ValueError("Email address is invalid")

    return sanitized


def sanitize_personal_code(code: str) -> str:
    """
    Normalize a personal code typed by a registrant.

    Codes are case-insensitive on input; stored codes are uppercase.

    Raises:
        ValueError: If the code does not have the 8-character shape
    """
    if not isinstance(code, str):
        raise ValueError("Personal code must be a string")

    sanitized = code.strip().upper()

    if not is_valid_key(sanitized):
        raise ValueError("Personal code must be 8 letters or digits")

    return sanitized


def validate_payload_length(payload: str) -> str:
    """Reject oversized scan payloads before decoding them."""
    if not isinstance(payload, str):
        raise ValueError("Payload must be a string")

    if not payload:
        raise ValueError("Payload cannot be empty")

    if len(payload) > MAX_PAYLOAD_LENGTH:
        raise ValueError(f"Payload exceeds maximum length of {MAX_PAYLOAD_LENGTH} characters")

    return payload
