"""Extraction pipeline stages: recovery, validation, gating, persistence mapping."""

from chat_catalog.extraction.gate import DEFAULT_LOW_CONFIDENCE_NOTE, decide
from chat_catalog.extraction.mapper import map_items, persist_catalog
from chat_catalog.extraction.recovery import recover
from chat_catalog.extraction.validator import normalize_price, validate

__all__ = [
    "DEFAULT_LOW_CONFIDENCE_NOTE",
    "decide",
    "map_items",
    "normalize_price",
    "persist_catalog",
    "recover",
    "validate",
]
