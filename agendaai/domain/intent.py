"""
Normalisation of language-model output into domain values.

The model is asked for JSON, but nothing guarantees the shape of what comes
back. These helpers turn whatever arrived into safe defaults.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

import pendulum
from pendulum import DateTime

from .models import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES, UnderstoodRequest

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Parse a JSON object from raw model output.

    Markdown code fences are stripped. Returns None when the text is not a
    JSON object.
    """
    if not text:
        return None

    cleaned = _FENCE_PATTERN.sub("", text.strip())

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Model returned malformed JSON: %r", text[:200])
        return None

    if not isinstance(data, dict):
        logger.warning("Model returned JSON that is not an object: %r", text[:200])
        return None

    return data


def normalize_language(raw: Any) -> str:
    """
    Reduce a language identification result to a supported language code.

    Accepts either ``{"language": "PT"}`` or a bare code. Anything
    unrecognised becomes the default language.
    """
    value = raw.get("language") if isinstance(raw, dict) else raw

    if isinstance(value, str):
        code = value.strip().lower()
        if code in SUPPORTED_LANGUAGES:
            return code

    return DEFAULT_LANGUAGE


def normalize_understanding(raw: Any) -> UnderstoodRequest:
    """
    Build an UnderstoodRequest from model output.

    ``understood`` must be a real boolean, otherwise the request counts as not
    understood. Optional fields are dropped individually when invalid.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("understood"), bool):
        return UnderstoodRequest(understood=False)

    return UnderstoodRequest(
        understood=raw["understood"],
        date_time=_parse_instant(raw.get("dateTime")),
        duration_minutes=_parse_duration(raw.get("duration")),
        subject=_parse_subject(raw.get("subject")),
    )


def _parse_instant(value: Any) -> Optional[DateTime]:
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = pendulum.parse(value.strip())
    except ValueError:
        logger.warning("Ignoring unparsable dateTime from model: %r", value)
        return None

    if not isinstance(parsed, DateTime):
        logger.warning("Ignoring dateTime that is not an instant: %r", value)
        return None

    return parsed


def _parse_duration(value: Any) -> Optional[int]:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if value <= 0:
        return None
    return int(value)


def _parse_subject(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    return value.strip() or None
