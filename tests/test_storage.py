"""Tests for catalogue stores."""

import json
from datetime import datetime, timezone

import psycopg
import pytest

from chat_catalog.exceptions import StorageError
from chat_catalog.extraction import persist_catalog
from chat_catalog.schema import NormalizedCatalog, NormalizedCategory, NormalizedItem
from chat_catalog.storage import MemoryCatalogStore, PostgresCatalogStore, build_store, group_by_category


def _catalog():
    return NormalizedCatalog(
        title="Bakery",
        description="Weekend bakes",
        categories=[
            NormalizedCategory(
                name="Bread",
                items=[
                    NormalizedItem(name="Sourdough", price=250.0, tags=["fresh"]),
                    NormalizedItem(name="Focaccia", extra={"slices": 8}),
                ],
            )
        ],
    )


def _mock_connection(mocker, *, fetchone=None, fetchall=None):
    cur = mocker.MagicMock()
    cur.fetchone.side_effect = fetchone
    cur.fetchall.side_effect = fetchall
    conn = mocker.MagicMock()
    conn.__enter__.return_value = conn
    conn.__exit__.return_value = False
    conn.cursor.return_value.__enter__.return_value = cur
    conn.cursor.return_value.__exit__.return_value = False
    connect = mocker.patch("chat_catalog.storage.psycopg.connect", return_value=conn)
    return connect, cur


def test_build_store_selects_backend():
    assert isinstance(build_store(None), MemoryCatalogStore)
    assert isinstance(build_store("postgresql://localhost/catalog"), PostgresCatalogStore)


def test_group_by_category_defaults_to_general():
    grouped = group_by_category(
        [
            {"name": "a", "category": "Drinks"},
            {"name": "b", "category": None},
            {"name": "c", "category": "Drinks"},
        ]
    )

    assert grouped == [
        {"name": "Drinks", "items": [{"name": "a", "category": "Drinks"}, {"name": "c", "category": "Drinks"}]},
        {"name": "General", "items": [{"name": "b", "category": None}]},
    ]


def test_memory_writer_discards_rows_on_error():
    store = MemoryCatalogStore()

    with pytest.raises(RuntimeError):
        with store.writer() as writer:
            catalog_id = writer.insert_catalog("Bakery", None, "src", {})
            writer.insert_item(catalog_id, "Bread", "Bun", None, None, None, None)
            raise RuntimeError("boom")

    assert store.catalogs == []
    assert store.items == []


def test_memory_list_and_get():
    store = MemoryCatalogStore()
    first = persist_catalog(store, _catalog(), source_text="one")
    second = persist_catalog(store, NormalizedCatalog(title="Empty"), source_text="two")

    summaries = store.list_catalogs()

    assert [row["id"] for row in summaries] == [second.catalog_id, first.catalog_id]
    assert [row["item_count"] for row in summaries] == [0, 2]
    assert store.list_catalogs(limit=1)[0]["id"] == second.catalog_id

    catalog = store.get_catalog(first.catalog_id)
    assert catalog["title"] == "Bakery"
    assert catalog["categories"][0]["name"] == "Bread"
    assert [item["name"] for item in catalog["categories"][0]["items"]] == ["Sourdough", "Focaccia"]
    assert catalog["categories"][0]["items"][1]["extra"] == {"slices": 8}
    assert store.get_catalog(999) is None


def test_postgres_persist_runs_inserts(mocker):
    connect, cur = _mock_connection(mocker, fetchone=[{"id": 7}, {"id": 70}, {"id": 71}])
    store = PostgresCatalogStore("postgresql://localhost/catalog")

    stored = persist_catalog(store, _catalog(), source_text="chat", meta={"confidence": 0.9})

    assert stored.catalog_id == 7
    assert [item.item_id for item in stored.items] == [70, 71]
    connect.assert_called_once()
    insert_calls = [c for c in cur.execute.call_args_list if "insert into" in c.args[0]]
    assert len(insert_calls) == 3
    catalog_params = insert_calls[0].args[1]
    assert catalog_params[:3] == ("Bakery", "Weekend bakes", "chat")
    assert json.loads(catalog_params[3]) == {"confidence": 0.9}
    assert insert_calls[1].args[1] == (7, "Bread", "Sourdough", None, 250.0, ["fresh"], None)
    assert insert_calls[2].args[1] == (7, "Bread", "Focaccia", None, None, None, '{"slices": 8}')


def test_postgres_creates_schema_once(mocker):
    _, cur = _mock_connection(mocker, fetchone=[{"id": 1}, {"id": 2}])
    store = PostgresCatalogStore("postgresql://localhost/catalog")

    persist_catalog(store, NormalizedCatalog(title="A"), source_text="")
    persist_catalog(store, NormalizedCatalog(title="B"), source_text="")

    create_calls = [c for c in cur.execute.call_args_list if "create table" in c.args[0]]
    assert len(create_calls) == 2


def test_postgres_missing_returned_id_raises(mocker):
    _mock_connection(mocker, fetchone=[None])
    store = PostgresCatalogStore("postgresql://localhost/catalog")

    with pytest.raises(StorageError):
        persist_catalog(store, _catalog(), source_text="")


def test_postgres_connection_error_raises_storage_error(mocker):
    mocker.patch(
        "chat_catalog.storage.psycopg.connect",
        side_effect=psycopg.OperationalError("connection refused"),
    )
    store = PostgresCatalogStore("postgresql://localhost/catalog")

    with pytest.raises(StorageError):
        store.list_catalogs()
    with pytest.raises(StorageError):
        persist_catalog(store, _catalog(), source_text="")


def test_postgres_get_catalog_groups_items(mocker):
    created = datetime(2026, 1, 5, tzinfo=timezone.utc)
    _mock_connection(
        mocker,
        fetchone=[{"id": 3, "title": "Bakery", "description": None, "source_text": "", "meta": {}, "created_at": created}],
        fetchall=[
            [
                {"id": 1, "category": "Bread", "name": "Bun"},
                {"id": 2, "category": None, "name": "Gift card"},
            ]
        ],
    )
    store = PostgresCatalogStore("postgresql://localhost/catalog")

    catalog = store.get_catalog(3)

    assert catalog["title"] == "Bakery"
    assert [category["name"] for category in catalog["categories"]] == ["Bread", "General"]


def test_postgres_get_catalog_missing(mocker):
    _mock_connection(mocker, fetchone=[None])
    store = PostgresCatalogStore("postgresql://localhost/catalog")

    assert store.get_catalog(42) is None
