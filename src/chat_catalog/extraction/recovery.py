"""Best-effort recovery of a JSON object from free-text model output."""

from __future__ import annotations

import json
import logging
from typing import Any

from chat_catalog.exceptions import ParseError

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {name}")


def _loads_strict(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def recover(text: str) -> Any:
    """Parse ``text`` as JSON, falling back to the outermost ``{...}`` slice.

    The fallback takes everything between the first ``{`` and the last ``}``.
    It does not track nesting, so prose around the object that itself
    contains braces will defeat it.

    Raises:
        ParseError: If neither attempt yields valid JSON.
    """
    try:
        return _loads_strict(text)
    except ValueError:
        pass

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        try:
            candidate = _loads_strict(text[start : end + 1])
        except ValueError:
            pass
        else:
            logger.debug("recovered JSON object from chars %d..%d of model output", start, end)
            return candidate

    raise ParseError("Failed to parse JSON from model output", text)
