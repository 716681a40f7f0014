"""Best-effort JSON extraction from free-text model output."""

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# First "{" through last "}", across newlines.
_OBJECT_SPAN = re.compile(r"\{.*\}", re.DOTALL)


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse the outermost ``{...}`` span embedded in *text*.

    Args:
        text: Model output that may wrap a JSON object in prose or
            code fences.

    Returns:
        The parsed object, or ``None`` if no span exists or it is not
        valid JSON for an object.
    """
    if not text:
        return None
    match = _OBJECT_SPAN.search(text)
    if match is None:
        return None
    try:
        parsed = json.loads(match.group(0))
    except ValueError:
        logger.debug("Embedded JSON could not be parsed", extra={"length": len(text)})
        return None
    return parsed if isinstance(parsed, dict) else None


def strip_quotes(text: str) -> str:
    """Trim whitespace and one pair of surrounding quote characters."""
    return re.sub(r"^[\"']|[\"']$", "", text.strip())
