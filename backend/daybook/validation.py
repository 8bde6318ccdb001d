from __future__ import annotations

import re
from typing import Any

# Maximum drawer amount: Rs. 9,999,999.99 (999,999,999 minor units)
# This prevents database overflow issues and nonsensical counts
MAX_AMOUNT_CENTS = 999_999_999

MAX_TEXT_LENGTH = 255

_PLAIN_INTEGER = re.compile(r"[+-]?[0-9]+")


class DrawerError(Exception):
    """Base class for cash drawer errors returned to callers."""

    status_code = 400
    code = "DRAWER_ERROR"


class ValidationError(DrawerError, ValueError):
    """400-level input problem (malformed amount, empty reason)."""

    status_code = 400
    code = "VALIDATION_ERROR"


class InvalidStateError(DrawerError):
    """409-level: action not permitted in the drawer's current status."""

    status_code = 409
    code = "INVALID_STATE"


class UnauthorizedError(DrawerError):
    """403-level: role check failed, or actor could not be resolved."""

    status_code = 403
    code = "UNAUTHORIZED"


class NotFoundError(DrawerError):
    """404-level: explicit query for a date that has no drawer record."""

    status_code = 404
    code = "NOT_FOUND"


class ConcurrencyError(DrawerError):
    """
    409-level: lost the race on a per-date mutation.

    The caller should re-read the drawer and retry.
    """

    status_code = 409
    code = "CONCURRENT_MODIFICATION"
    retryable = True


class ImmutableRecordError(Exception):
    """Attempted to update or delete a record that is append-only."""


def coerce_cents(value: Any, field: str) -> int:
    """
    Strict integer parsing for minor-unit amounts.

    Accepts ints and plain digit strings. Rejects booleans, floats,
    decimals and scientific notation so that rounding never happens here.
    """
    if value is None:
        raise ValidationError(f"{field} is required")

    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        result = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer number of minor units (no decimals)")
        # Reject digit separators and non-ASCII digits that int() would accept
        if not _PLAIN_INTEGER.fullmatch(stripped):
            raise ValidationError(f"{field} must be an integer")
        try:
            result = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if abs(result) > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} exceeds maximum of {MAX_AMOUNT_CENTS}")
    return result


def require_non_negative(value: Any, field: str) -> int:
    amount = coerce_cents(value, field)
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    return amount


def require_positive(value: Any, field: str) -> int:
    amount = coerce_cents(value, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be positive")
    return amount


def clean_text(value: Any, field: str, *, required: bool = False, max_length: int = MAX_TEXT_LENGTH) -> str | None:
    """Strip free text; blank becomes None (or an error when required)."""
    if value is None:
        text = ""
    elif isinstance(value, str):
        text = value.strip()
    else:
        raise ValidationError(f"{field} must be a string")

    if not text:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if len(text) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return text
