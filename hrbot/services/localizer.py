"""User-facing text lookup.

All messages live in static/translations.json, grouped by area
(registration, verification, claims, admin, buttons, errors) and addressed
with dotted keys:

    from hrbot.services.localizer import t

    t("registration.prompt_phone")
    t("verification.invite_line", url=link.url, expires_at=expires)
"""

import json
import logging
from functools import reduce
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TRANSLATIONS_PATH = Path(__file__).resolve().parent.parent / "static" / "translations.json"


def _load(path: Path) -> dict[str, Any]:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Cannot load translations from %s: %s", path, e)
        return {}


_TRANSLATIONS = _load(TRANSLATIONS_PATH)


def _resolve(key: str) -> Any:
    def step(node: Any, part: str) -> Any:
        return node.get(part) if isinstance(node, dict) else None

    return reduce(step, key.split("."), _TRANSLATIONS)


def t(key: str, **kwargs: Any) -> str:
    """Text for a dotted key with {placeholders} filled from kwargs.

    An unknown key yields the key itself; a missing placeholder yields the
    unformatted template. Both are logged as warnings.
    """
    template = _resolve(key)
    if not isinstance(template, str):
        logger.warning("Translation key not found: %s", key)
        return key

    if not kwargs:
        return template
    try:
        return template.format(**kwargs)
    except KeyError as e:
        logger.warning("Missing placeholder %s for key: %s", e, key)
        return template


__all__ = ["t", "TRANSLATIONS_PATH"]
