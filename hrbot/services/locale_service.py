"""Locale-aware date formatting for user-facing messages.

Uses babel. Times are shown in the system timezone unless a fixed organization
offset is passed.

Configuration:
    LOCALE env var (default: ru_RU) - determines date formatting
"""

import logging
import os
from datetime import datetime, timedelta, timezone, tzinfo

from babel import Locale, UnknownLocaleError
from babel.dates import LOCALTZ
from babel.dates import format_datetime as babel_format_datetime

logger = logging.getLogger(__name__)

# Default locale if LOCALE env var is invalid or missing
DEFAULT_LOCALE = "ru_RU"


def _get_locale() -> str:
    """Get locale from environment with validation and fallback."""
    locale_str = os.getenv("LOCALE", DEFAULT_LOCALE)
    try:
        Locale.parse(locale_str)
        return locale_str
    except (UnknownLocaleError, ValueError) as e:
        logger.warning("Invalid LOCALE '%s': %s. Falling back to '%s'", locale_str, e, DEFAULT_LOCALE)
        return DEFAULT_LOCALE


LOCALE = _get_locale()


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on round-trip)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def fixed_offset(hours: int) -> timezone:
    return timezone(timedelta(hours=hours))


def format_local_datetime(
    dt: datetime, format: str = "medium", tz: tzinfo | None = None
) -> str:
    """Format datetime in local timezone according to locale.

    Args:
        dt: Datetime object (naive values are treated as UTC)
        format: One of 'full', 'long', 'medium', 'short' or custom pattern
        tz: Target timezone, system timezone when None

    Returns:
        Formatted datetime string in local timezone

    Example:
        >>> format_local_datetime(datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc), tz=fixed_offset(3))
        '19 окт. 2026 г., 12:00:00'
    """
    return babel_format_datetime(ensure_utc(dt), format=format, tzinfo=tz or LOCALTZ, locale=LOCALE)


__all__ = ["LOCALE", "ensure_utc", "fixed_offset", "format_local_datetime"]
