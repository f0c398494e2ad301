"""Phone number canonicalization.

Free-form phone input (country code, separators, leading 8) is reduced to the
organization's trunk-canonical form: 10 digits starting with "9". The same
rules are applied to stored personnel phones before comparison.
"""

import re

from hrbot.services.errors import ValidationError

# Digits, spaces, hyphens, parentheses, optional leading "+"
PHONE_INPUT_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")

_NON_DIGITS = re.compile(r"\D")


def normalize_phone(raw: str | None) -> str:
    """Normalize a phone number to its 10-digit trunk-canonical form.

    Args:
        raw: Phone in any format ("+7 900 111-22-33", "89001112233", ...)

    Returns:
        Canonical 10-digit string, or the bare digits if no rule matches
        (callers must check with is_canonical_phone)

    Example:
        >>> normalize_phone("+7 900 111-22-33")
        '9001112233'
    """
    digits = _NON_DIGITS.sub("", raw or "")

    if len(digits) == 11 and digits[0] in ("7", "8"):
        return digits[1:]
    if len(digits) == 10 and digits.startswith("9"):
        return digits
    if len(digits) == 10 and digits.startswith("8"):
        return "9" + digits[1:]
    if len(digits) == 9:
        return "9" + digits
    return digits


def is_canonical_phone(digits: str) -> bool:
    """Check that digits are exactly 10 long and start with "9"."""
    return len(digits) == 10 and digits.isdigit() and digits.startswith("9")


def validate_phone_input(text: str) -> str:
    """Validate user phone input and return it normalized.

    Raises:
        ValidationError: If the input has foreign characters or does not
            normalize to a canonical number
    """
    candidate = (text or "").strip()
    if not PHONE_INPUT_PATTERN.match(candidate):
        raise ValidationError("errors.invalid_phone")

    normalized = normalize_phone(candidate)
    if not is_canonical_phone(normalized):
        raise ValidationError("errors.invalid_phone")
    return normalized


__all__ = ["PHONE_INPUT_PATTERN", "normalize_phone", "is_canonical_phone", "validate_phone_input"]
