"""Mapping of normalized catalogues onto storage records."""

from __future__ import annotations

import json
import logging
from typing import Any

from chat_catalog.schema import NormalizedCatalog, PersistedCatalog, PersistedItem
from chat_catalog.storage import CatalogStore

logger = logging.getLogger(__name__)


def map_items(catalog: NormalizedCatalog, catalog_id: int) -> list[PersistedItem]:
    """Flatten a catalogue into item records for ``catalog_id``.

    Items are deduplicated by name within their category only; the first
    occurrence wins. The same name under two categories yields two records.
    """
    records: list[PersistedItem] = []
    for category in catalog.categories:
        seen: set[str] = set()
        for item in category.items:
            if item.name in seen:
                continue
            seen.add(item.name)
            records.append(
                PersistedItem(
                    catalog_id=catalog_id,
                    category=category.name,
                    name=item.name,
                    description=item.description or None,
                    price=item.price,
                    tags=list(item.tags) or None,
                    extra=json.dumps(item.extra, ensure_ascii=False) if item.extra is not None else None,
                )
            )
    return records


def persist_catalog(
    store: CatalogStore,
    catalog: NormalizedCatalog,
    *,
    source_text: str,
    meta: dict[str, Any] | None = None,
) -> PersistedCatalog:
    """Write a catalogue and its deduplicated items in one writer session.

    Returns:
        PersistedCatalog whose ``items`` are the records actually written.
    """
    with store.writer() as writer:
        catalog_id = writer.insert_catalog(catalog.title, catalog.description, source_text, meta or {})
        written: list[PersistedItem] = []
        for record in map_items(catalog, catalog_id):
            item_id = writer.insert_item(
                record.catalog_id,
                record.category,
                record.name,
                record.description,
                record.price,
                record.tags,
                record.extra,
            )
            written.append(record.model_copy(update={"item_id": item_id}))

    logger.debug("stored catalogue %s with %d item(s)", catalog_id, len(written))
    return PersistedCatalog(catalog_id=catalog_id, items=written)
