"""Reading and cleanup of uploaded transcript files."""

from __future__ import annotations

import logging
from pathlib import Path

from chat_catalog.exceptions import TranscriptError

logger = logging.getLogger(__name__)


def read_transcript(path: str | Path) -> str:
    """Read a whole transcript file as UTF-8 text.

    Raises:
        TranscriptError: If the file is missing or not valid UTF-8
    """
    path = Path(path)
    if not path.exists():
        raise TranscriptError(f"Transcript file not found: {path}")
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise TranscriptError(f"Transcript is not valid UTF-8 text: {path}") from e
    except OSError as e:
        raise TranscriptError(f"Failed to read transcript: {e}") from e


def discard_transcript(path: str | Path) -> None:
    """Delete a temporary transcript file; failures are logged, never raised."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError:
        logger.warning("could not remove temporary transcript %s", path, exc_info=True)
