"""Gemini provider implementation."""

import logging
import os

from google import genai
from google.genai import errors, types

from chat_catalog.config import DEFAULT_MODEL
from chat_catalog.exceptions import AuthenticationError, ModelCallError, RateLimitError
from chat_catalog.providers.base import BaseProvider

logger = logging.getLogger(__name__)


class GeminiProvider(BaseProvider):
    """Gemini text generation provider."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        *,
        client=None,
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Gemini API key. Falls back to GEMINI_API_KEY env var.
            model: Model name to use.
            client: Preconfigured ``genai.Client``; skips key lookup.

        Raises:
            AuthenticationError: If no API key is provided or found.
        """
        self.model = model
        if client is not None:
            self.client = client
            return

        self.api_key = api_key or os.environ.get("GEMINI_API_KEY")
        if not self.api_key:
            raise AuthenticationError(
                "No API key provided. Set GEMINI_API_KEY environment variable "
                "or pass api_key parameter."
            )
        self.client = genai.Client(api_key=self.api_key)

    def generate(self, prompt: str) -> str:
        """Generate a catalogue response for ``prompt``.

        Raises:
            RateLimitError: If API rate limit is exceeded
            AuthenticationError: If API key is invalid
            ModelCallError: For any other failed call
        """
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=[prompt],
                config=types.GenerateContentConfig(
                    temperature=0.0,
                    response_mime_type="application/json",
                ),
            )
        except errors.APIError as e:
            message = str(e).lower()
            if "rate" in message or "quota" in message:
                raise RateLimitError(f"API rate limit exceeded: {e}") from e
            if "auth" in message or "key" in message or "permission" in message:
                raise AuthenticationError(f"Invalid API key: {e}") from e
            raise ModelCallError(f"Gemini request failed: {e}") from e
        except Exception as e:
            raise ModelCallError(f"Gemini request failed: {e}") from e

        text = response.text or ""
        if not text:
            logger.warning("gemini returned an empty response for model %s", self.model)
        return text

    def get_extraction_metadata(self) -> dict[str, str]:
        return {"provider": "gemini", "model": self.model}
