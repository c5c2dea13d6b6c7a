"""Parsing helpers for catalog values, quantities and identities."""

import math
from uuid import uuid4

from nutrition_planner.errors import ValidationError

TEMPORARY_ID_PREFIX = "new-"
MAX_ENTRY_GRAMS = 5000.0


def parse_locale_number(value: object) -> float:
    """Parse a number that may use a comma as decimal separator.

    ``"1,5"`` -> 1.5, ``"100"`` -> 100.0, ``None`` / ``""`` / garbage -> 0.0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        return float(value)
    if value is None:
        return 0.0
    text = str(value).strip().replace(",", ".", 1)
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return _leading_number(text)


def parse_optional_number(value: object) -> float | None:
    """Parse a locale number, keeping blank input as ``None``."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_locale_number(value)


def parse_grams(value: object) -> float | None:
    """Parse an entry quantity in grams.

    Blank input means "not entered yet". Negative or absurd quantities are
    rejected.
    """
    grams = parse_optional_number(value)
    if grams is None:
        return None
    if grams < 0 or grams > MAX_ENTRY_GRAMS:
        raise ValidationError(
            f"Quantity must be between 0 and {MAX_ENTRY_GRAMS:.0f} g", field="quantity"
        )
    return grams


def format_grams(grams: float | None) -> str:
    """Render canonical grams for storage, dropping a trailing ``.0``."""
    if grams is None:
        return ""
    if float(grams).is_integer():
        return str(int(grams))
    return f"{grams:g}"


def new_temporary_id() -> str:
    """Return a fresh in-memory identity."""
    return f"{TEMPORARY_ID_PREFIX}{uuid4().hex}"


def is_temporary_id(identity: str) -> bool:
    """Return True for identities that were never persisted."""
    return identity.startswith(TEMPORARY_ID_PREFIX)


def _leading_number(text: str) -> float:
    """Mimic ``parseFloat``: read the longest numeric prefix."""
    end = 0
    seen_dot = False
    for index, char in enumerate(text):
        if char.isdigit():
            end = index + 1
        elif char == "." and not seen_dot:
            seen_dot = True
        elif char in "+-" and index == 0:
            continue
        else:
            break
    if end == 0:
        return 0.0
    try:
        return float(text[:end])
    except ValueError:
        return 0.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def require_durable_id(identity: str, resource: str) -> str:
    """Refuse identities that only exist in memory as store targets."""
    if not identity or is_temporary_id(identity):
        raise ValueError(f"{resource} '{identity}' has not been saved yet")
    return identity
