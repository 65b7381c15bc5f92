"""Providers for chat-catalog."""

from chat_catalog.providers.base import BaseProvider
from chat_catalog.providers.gemini import GeminiProvider

__all__ = ["BaseProvider", "GeminiProvider"]
