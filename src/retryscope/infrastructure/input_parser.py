"""Parsing of string-valued input fields into a backoff config mapping.

Unparseable numbers become NaN so the config validator reports them like any
other out-of-range value; a blank cap means "uncapped".
"""

import logging
import math
from typing import Any, Dict, Mapping

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = ("initialDelayMs", "maxRetries", "maxDelayMs", "factor", "incrementMs")
CHOICE_FIELDS = ("strategy", "jitter")


def parse_number(text: Any) -> float:
    """Parse a number from text, returning NaN for anything unparseable

    Args:
        text: Raw field value

    Returns:
        Parsed number (int when the text is integral) or NaN
    """
    if not isinstance(text, str):
        return math.nan
    stripped = text.strip()
    if not stripped:
        return math.nan
    try:
        value = float(stripped)
    except ValueError:
        logger.debug(f"Unparseable number: {text!r}")
        return math.nan
    if value.is_integer() and stripped.lstrip("+-").isdigit():
        return int(stripped)
    return value


def parse_config_fields(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Convert string fields to a config mapping

    Args:
        fields: Mapping of camelCase field name to raw string value

    Returns:
        Config mapping containing only the fields present in the input
    """
    config: Dict[str, Any] = {}
    for name in CHOICE_FIELDS:
        if fields.get(name) is not None:
            config[name] = str(fields[name]).strip()

    for name in NUMERIC_FIELDS:
        if fields.get(name) is None:
            continue
        raw = fields[name]
        if name == "maxDelayMs" and isinstance(raw, str) and not raw.strip():
            config[name] = None
        else:
            config[name] = parse_number(raw)
    return config
