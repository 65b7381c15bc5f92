"""Publish/reject decision for validated model responses."""

from __future__ import annotations

from chat_catalog.schema import Decision, Invalid, Publish, Reject, ValidNote, Verdict

DEFAULT_LOW_CONFIDENCE_NOTE = "Model indicated low confidence and did not return a catalogue."


def decide(verdict: Verdict, threshold: float) -> Decision:
    """Decide whether a verdict may be persisted.

    A note always rejects, whatever its confidence. A catalogue is published
    only when its confidence reaches ``threshold``.
    """
    if isinstance(verdict, Invalid):
        return Reject(reason="invalid_schema", detail=list(verdict.errors))
    if isinstance(verdict, ValidNote):
        return Reject(reason="low_confidence", detail=verdict.note or DEFAULT_LOW_CONFIDENCE_NOTE)
    if verdict.low_confidence or verdict.confidence < threshold:
        return Reject(reason="low_confidence", detail=DEFAULT_LOW_CONFIDENCE_NOTE)
    return Publish(catalog=verdict.catalog)
