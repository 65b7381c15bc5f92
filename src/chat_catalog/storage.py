"""Catalogue storage backends."""

from __future__ import annotations

import itertools
import json
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from datetime import datetime, timezone
from typing import Any

import psycopg
from psycopg.rows import dict_row

from chat_catalog.exceptions import StorageError

DEFAULT_CATEGORY = "General"
DEFAULT_LIST_LIMIT = 200


class CatalogWriter(ABC):
    """Write side of one catalogue upload."""

    @abstractmethod
    def insert_catalog(
        self,
        title: str,
        description: str | None,
        source_text: str,
        meta: dict[str, Any],
    ) -> int:
        """Insert a catalogue row and return its id."""
        pass

    @abstractmethod
    def insert_item(
        self,
        catalog_id: int,
        category: str,
        name: str,
        description: str | None,
        price: float | None,
        tags: list[str] | None,
        extra: str | None,
    ) -> int:
        """Insert an item row and return its id."""
        pass


class CatalogStore(ABC):
    """Abstract base class for catalogue stores."""

    @abstractmethod
    def writer(self) -> AbstractContextManager[CatalogWriter]:
        """Context manager yielding a writer; rows become visible on clean exit."""
        pass

    @abstractmethod
    def list_catalogs(self, limit: int = DEFAULT_LIST_LIMIT) -> list[dict[str, Any]]:
        """Return catalogue summaries with item counts, newest first."""
        pass

    @abstractmethod
    def get_catalog(self, catalog_id: int) -> dict[str, Any] | None:
        """Return a catalogue with its items grouped by category."""
        pass


def group_by_category(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    grouped: dict[str, list[dict[str, Any]]] = {}
    for item in items:
        grouped.setdefault(item.get("category") or DEFAULT_CATEGORY, []).append(item)
    return [{"name": name, "items": rows} for name, rows in grouped.items()]


class _MemoryWriter(CatalogWriter):
    def __init__(self, store: "MemoryCatalogStore"):
        self._store = store
        self.catalogs: list[dict[str, Any]] = []
        self.items: list[dict[str, Any]] = []

    def insert_catalog(self, title, description, source_text, meta) -> int:
        catalog_id = self._store._next_id("catalog")
        self.catalogs.append(
            {
                "id": catalog_id,
                "title": title,
                "description": description,
                "source_text": source_text,
                "meta": dict(meta),
                "created_at": datetime.now(timezone.utc),
            }
        )
        return catalog_id

    def insert_item(self, catalog_id, category, name, description, price, tags, extra) -> int:
        item_id = self._store._next_id("item")
        self.items.append(
            {
                "id": item_id,
                "catalog_id": catalog_id,
                "category": category,
                "name": name,
                "description": description,
                "price": price,
                "tags": list(tags) if tags is not None else None,
                "extra": json.loads(extra) if extra is not None else None,
                "created_at": datetime.now(timezone.utc),
            }
        )
        return item_id


class MemoryCatalogStore(CatalogStore):
    """Process-local store, used when no database is configured."""

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = {"catalog": itertools.count(1), "item": itertools.count(1)}
        self.catalogs: list[dict[str, Any]] = []
        self.items: list[dict[str, Any]] = []

    def _next_id(self, kind: str) -> int:
        with self._lock:
            return next(self._ids[kind])

    @contextmanager
    def writer(self) -> Iterator[CatalogWriter]:
        session = _MemoryWriter(self)
        yield session
        with self._lock:
            self.catalogs.extend(session.catalogs)
            self.items.extend(session.items)

    def list_catalogs(self, limit: int = DEFAULT_LIST_LIMIT) -> list[dict[str, Any]]:
        with self._lock:
            catalogs = list(self.catalogs)
            items = list(self.items)
        summaries = [
            {
                "id": catalog["id"],
                "title": catalog["title"],
                "description": catalog["description"],
                "created_at": catalog["created_at"],
                "item_count": sum(1 for item in items if item["catalog_id"] == catalog["id"]),
            }
            for catalog in catalogs
        ]
        summaries.sort(key=lambda row: (row["created_at"], row["id"]), reverse=True)
        return summaries[:limit]

    def get_catalog(self, catalog_id: int) -> dict[str, Any] | None:
        with self._lock:
            catalog = next((row for row in self.catalogs if row["id"] == catalog_id), None)
            items = [dict(row) for row in self.items if row["catalog_id"] == catalog_id]
        if catalog is None:
            return None
        items.sort(key=lambda row: row["id"])
        return {**catalog, "categories": group_by_category(items)}


class _PostgresWriter(CatalogWriter):
    def __init__(self, cursor: psycopg.Cursor):
        self._cur = cursor

    def insert_catalog(self, title, description, source_text, meta) -> int:
        self._cur.execute(
            """
            insert into catalogs (title, description, source_text, meta)
            values (%s, %s, %s, %s::jsonb)
            returning id
            """,
            (title, description, source_text, json.dumps(meta, ensure_ascii=False)),
        )
        return _returned_id(self._cur.fetchone())

    def insert_item(self, catalog_id, category, name, description, price, tags, extra) -> int:
        self._cur.execute(
            """
            insert into items (catalog_id, category, name, description, price, tags, extra)
            values (%s, %s, %s, %s, %s, %s, %s::jsonb)
            returning id
            """,
            (catalog_id, category, name, description, price, tags, extra),
        )
        return _returned_id(self._cur.fetchone())


class PostgresCatalogStore(CatalogStore):
    """PostgreSQL-backed store; one connection and transaction per writer."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self._db_ready = False

    def _conn(self) -> psycopg.Connection:
        return psycopg.connect(self.database_url, row_factory=dict_row)

    def _init_db(self, cur: psycopg.Cursor) -> None:
        if self._db_ready:
            return
        cur.execute(
            """
            create table if not exists catalogs (
              id bigserial primary key,
              title text not null,
              description text null,
              source_text text null,
              meta jsonb not null default '{}'::jsonb,
              created_at timestamptz not null default now()
            )
            """
        )
        cur.execute(
            """
            create table if not exists items (
              id bigserial primary key,
              catalog_id bigint not null references catalogs(id) on delete cascade,
              category text null,
              name text not null,
              description text null,
              price double precision null,
              tags text[] null,
              extra jsonb null,
              created_at timestamptz not null default now()
            )
            """
        )
        cur.execute("create index if not exists idx_items_catalog_id on items(catalog_id)")
        self._db_ready = True

    @contextmanager
    def writer(self) -> Iterator[CatalogWriter]:
        try:
            with self._conn() as conn:
                with conn.cursor() as cur:
                    self._init_db(cur)
                    yield _PostgresWriter(cur)
        except psycopg.Error as exc:
            raise StorageError(f"Failed to store catalogue: {exc}") from exc

    def list_catalogs(self, limit: int = DEFAULT_LIST_LIMIT) -> list[dict[str, Any]]:
        try:
            with self._conn() as conn:
                with conn.cursor() as cur:
                    self._init_db(cur)
                    cur.execute(
                        """
                        select c.id, c.title, c.description, c.created_at, count(i.id)::int as item_count
                        from catalogs c
                        left join items i on i.catalog_id = c.id
                        group by c.id
                        order by c.created_at desc
                        limit %s
                        """,
                        (limit,),
                    )
                    return list(cur.fetchall())
        except psycopg.Error as exc:
            raise StorageError(f"Failed to list catalogues: {exc}") from exc

    def get_catalog(self, catalog_id: int) -> dict[str, Any] | None:
        try:
            with self._conn() as conn:
                with conn.cursor() as cur:
                    self._init_db(cur)
                    cur.execute(
                        """
                        select id, title, description, source_text, meta, created_at
                        from catalogs
                        where id = %s
                        """,
                        (catalog_id,),
                    )
                    catalog = cur.fetchone()
                    if catalog is None:
                        return None
                    cur.execute(
                        """
                        select id, category, name, description, price, tags, extra, created_at
                        from items
                        where catalog_id = %s
                        order by id
                        """,
                        (catalog_id,),
                    )
                    items = list(cur.fetchall())
        except psycopg.Error as exc:
            raise StorageError(f"Failed to load catalogue {catalog_id}: {exc}") from exc

        return {**catalog, "categories": group_by_category(items)}


def _returned_id(row: dict[str, Any] | None) -> int:
    if not row or row.get("id") is None:
        raise StorageError("insert did not return an id")
    return int(row["id"])


def build_store(database_url: str | None) -> CatalogStore:
    if database_url:
        return PostgresCatalogStore(database_url)
    return MemoryCatalogStore()
