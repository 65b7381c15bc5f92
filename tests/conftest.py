"""Shared fixtures for chat-catalog tests."""

import json

import pytest

from chat_catalog.config import PipelineConfig
from chat_catalog.core import CatalogPipeline
from chat_catalog.providers.base import BaseProvider
from chat_catalog.storage import MemoryCatalogStore


class StaticProvider(BaseProvider):
    """Provider that replays a fixed response, or raises a fixed error."""

    def __init__(self, response: str = "", error: Exception | None = None):
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response

    def get_extraction_metadata(self) -> dict[str, str]:
        return {"provider": "static", "model": "replay"}


@pytest.fixture
def static_provider():
    return StaticProvider


@pytest.fixture
def store():
    return MemoryCatalogStore()


@pytest.fixture
def make_pipeline(store):
    def _make(response="", *, error=None, threshold=0.75):
        provider = StaticProvider(response, error=error)
        return CatalogPipeline(
            provider=provider,
            store=store,
            config=PipelineConfig(confidence_threshold=threshold),
        )

    return _make


@pytest.fixture
def shop_response():
    """Model response with a Drinks and a Snacks category."""
    return json.dumps(
        {
            "confidence": 0.9,
            "catalog": {
                "title": "Corner Shop",
                "description": "Snacks and drinks sold in the building chat",
                "categories": [
                    {"name": "Drinks", "items": [{"name": "Masala Chai"}]},
                    {"name": "Snacks", "items": [{"name": "Samosa", "price": "₹40"}]},
                ],
            },
        },
        ensure_ascii=False,
    )
