"""Base provider interface."""

from abc import ABC, abstractmethod


class BaseProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Send a prompt to the model and return its raw text response.

        Args:
            prompt: Full prompt text, transcript included

        Returns:
            Raw model output, which may or may not be valid JSON

        Raises:
            ModelCallError: If the call itself fails
        """
        pass

    def get_extraction_metadata(self) -> dict[str, str]:
        """Return provider-specific extraction metadata."""
        return {}
