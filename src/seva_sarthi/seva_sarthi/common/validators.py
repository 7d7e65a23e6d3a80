from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.constants import (
    ALLOWED_PHOTO_TYPES,
    DANGEROUS_EXTENSIONS,
    MAX_PHOTO_BYTES,
    MAX_TEXT_LENGTH,
    STRONG_PASSWORD_MIN_LENGTH,
    STRONG_PASSWORD_MIN_SCORE,
)
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_PHONE_RE = re.compile(r"^\+?[\d\s\-\(\)]{10,15}$")
_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$", re.IGNORECASE)
_TAG_RE = re.compile(r"</?[A-Za-z][^>]*>")
_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)
_INLINE_HANDLER_RE = re.compile(r"\bon\w+\s*=", re.IGNORECASE)
_SYMBOL_RE = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters long")
    return value


def sanitize_text(value: Optional[str]) -> str:
    """Strip markup from user supplied text.

    Script blocks are removed with their content and other tags are dropped.
    `javascript:` and inline `on*=` handlers are neutralised. Line breaks and
    bare `<` / `>` in plain text are kept.
    """
    if not isinstance(value, str):
        return ""
    cleaned = _SCRIPT_RE.sub("", value)
    cleaned = _TAG_RE.sub("", cleaned)
    cleaned = _JS_PROTOCOL_RE.sub("", cleaned)
    cleaned = _INLINE_HANDLER_RE.sub("", cleaned)
    return cleaned.strip()


def validate_text(value: Optional[str], field_name: str, *, max_length: int = MAX_TEXT_LENGTH) -> str:
    value = require_non_empty(value, field_name)
    if len(value) > max_length:
        raise ValidationError(f"{field_name} exceeds maximum length of {max_length} characters")
    return sanitize_text(value)


def optional_text(value: Optional[str], field_name: str, *, max_length: int = MAX_TEXT_LENGTH) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return validate_text(str(value), field_name, max_length=max_length)


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and len(value) <= 254 and bool(_EMAIL_RE.match(value))


def validate_email(value: Optional[str], field_name: str = "Email") -> str:
    value = require_non_empty(value, field_name)
    if not is_valid_email(value):
        raise ValidationError("Invalid email format")
    return value.lower()


def is_valid_phone(value: Optional[str]) -> bool:
    return bool(value) and bool(_PHONE_RE.match(value))


def validate_phone(value: Optional[str], field_name: str = "Phone number") -> str:
    value = require_non_empty(value, field_name)
    if not is_valid_phone(value):
        raise ValidationError("Invalid phone number format")
    return value


def is_valid_uuid(value: Optional[str]) -> bool:
    return bool(value) and bool(_UUID_RE.match(value))


def validate_uuid(value: Optional[str], field_name: str) -> str:
    if not is_valid_uuid(value):
        raise ValidationError(f"{field_name} is not a valid id")
    return str(value).lower()


@dataclass(frozen=True)
class PasswordCheck:
    valid: bool
    score: int
    error: Optional[str] = None


def check_password_strength(password: Optional[str]) -> PasswordCheck:
    """Score a password 0..5 (length, upper, lower, digit, symbol); 3 is the pass mark."""

    if not password:
        return PasswordCheck(valid=False, score=0, error="Password is required")

    checks = (
        len(password) >= STRONG_PASSWORD_MIN_LENGTH,
        bool(re.search(r"[A-Z]", password)),
        bool(re.search(r"[a-z]", password)),
        bool(re.search(r"\d", password)),
        bool(_SYMBOL_RE.search(password)),
    )
    score = sum(1 for c in checks if c)
    if score < STRONG_PASSWORD_MIN_SCORE:
        return PasswordCheck(
            valid=False,
            score=score,
            error="Password must be at least 8 characters with uppercase, lowercase, numbers, and symbols",
        )
    return PasswordCheck(valid=True, score=score)


def validate_password(password: Optional[str]) -> str:
    result = check_password_strength(password)
    if not result.valid:
        raise ValidationError(result.error or "Invalid password")
    return str(password)


def validate_file(
    *,
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    allowed_types: Sequence[str] = ALLOWED_PHOTO_TYPES,
    max_size: int = MAX_PHOTO_BYTES,
) -> None:
    if not filename:
        raise ValidationError("File is required")
    if size > max_size:
        raise ValidationError(f"File size exceeds {max_size // (1024 * 1024)}MB limit")
    if allowed_types and (content_type or "").lower() not in allowed_types:
        raise ValidationError(f"File type {content_type} is not allowed")

    dot = filename.rfind(".")
    extension = filename[dot:].lower() if dot >= 0 else ""
    if extension in DANGEROUS_EXTENSIONS:
        raise ValidationError("File type is not allowed for security reasons")
