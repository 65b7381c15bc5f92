"""Core extraction pipeline."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from chat_catalog.config import PipelineConfig
from chat_catalog.exceptions import ModelCallError, ParseError
from chat_catalog.extraction import decide, persist_catalog, recover, validate
from chat_catalog.prompt import build_prompt
from chat_catalog.providers.base import BaseProvider
from chat_catalog.schema import Invalid, Outcome, Published, Reject, Rejected, Verdict
from chat_catalog.storage import CatalogStore, build_store
from chat_catalog.transcript import discard_transcript, read_transcript

logger = logging.getLogger(__name__)


def _build_gemini_provider(api_key: str | None, model: str) -> BaseProvider:
    from chat_catalog.providers.gemini import GeminiProvider

    return GeminiProvider(api_key=api_key, model=model)


class CatalogPipeline:
    """Transcript to catalogue: model call, recovery, validation, gate, storage."""

    def __init__(
        self,
        provider: BaseProvider,
        store: CatalogStore,
        config: PipelineConfig | None = None,
    ):
        self.provider = provider
        self.store = store
        self.config = config or PipelineConfig()

    def process(self, transcript_text: str, confidence_threshold: float | None = None) -> Outcome:
        """Extract a catalogue from a transcript and persist it when trusted.

        Args:
            transcript_text: Raw chat transcript.
            confidence_threshold: Overrides the configured threshold.

        Returns:
            Published when the catalogue was stored, Rejected otherwise.

        Raises:
            ModelCallError: If the outbound model call fails.
        """
        threshold = self.config.with_threshold(confidence_threshold).confidence_threshold
        raw_output = self._generate(build_prompt(transcript_text, threshold))

        try:
            candidate = recover(raw_output)
        except ParseError as e:
            logger.warning("model output could not be parsed as JSON (%d chars)", len(raw_output))
            return Rejected(reason="parse_error", errors=[str(e)], raw_model_output=raw_output)

        verdict = validate(candidate, threshold)
        decision = decide(verdict, threshold)
        if isinstance(decision, Reject):
            return _rejected(verdict, decision, raw_output)

        stored = persist_catalog(
            self.store,
            decision.catalog,
            source_text=transcript_text,
            meta={"rawModelOutput": raw_output, "confidence": verdict.confidence},
        )
        logger.info(
            "published catalogue %s (%d item(s), confidence %.2f)",
            stored.catalog_id,
            len(stored.items),
            verdict.confidence,
        )
        return Published(
            catalog_id=stored.catalog_id,
            stored_item_count=len(stored.items),
            confidence=verdict.confidence,
            catalog=decision.catalog,
        )

    def process_file(self, path: str | Path, confidence_threshold: float | None = None) -> Outcome:
        """Process a temporary transcript file, removing it once read."""
        try:
            transcript_text = read_transcript(path)
        finally:
            discard_transcript(path)
        return self.process(transcript_text, confidence_threshold)

    def _generate(self, prompt: str) -> str:
        try:
            return self.provider.generate(prompt)
        except ModelCallError:
            raise
        except Exception as e:
            raise ModelCallError(f"Model call failed: {e}") from e


def _rejected(verdict: Verdict, decision: Reject, raw_output: str) -> Rejected:
    if isinstance(verdict, Invalid):
        logger.info("rejected model output: %d schema error(s)", len(verdict.errors))
        return Rejected(reason="invalid_schema", errors=list(verdict.errors), raw_model_output=raw_output)

    logger.info("rejected model output: %s at confidence %.2f", decision.reason, verdict.confidence)
    return Rejected(
        reason=decision.reason,
        confidence=verdict.confidence,
        note=decision.detail if isinstance(decision.detail, str) else None,
        raw_model_output=raw_output,
    )


def build_pipeline(
    config: PipelineConfig | None = None,
    *,
    provider: BaseProvider | None = None,
    store: CatalogStore | None = None,
) -> CatalogPipeline:
    """Build a pipeline from configuration, defaulting to Gemini and the configured store."""
    config = config or PipelineConfig.from_env()
    return CatalogPipeline(
        provider=provider or _build_gemini_provider(config.api_key, config.model),
        store=store or build_store(config.database_url),
        config=config,
    )


def process(
    transcript_text: str,
    *,
    confidence_threshold: float | None = None,
    api_key: str | None = None,
    store: CatalogStore | None = None,
) -> Outcome:
    """Extract and store a catalogue from a chat transcript.

    Args:
        transcript_text: Raw chat transcript.
        confidence_threshold: Minimum confidence to publish. Defaults to
            `CONFIDENCE_THRESHOLD` env var, then 0.75.
        api_key: Gemini API key. Falls back to GEMINI_API_KEY env var.
        store: Catalogue store. Defaults to PostgreSQL when `DATABASE_URL`
            is set, otherwise an in-memory store.

    Returns:
        Published or Rejected outcome.
    """
    config = PipelineConfig.from_env()
    if api_key:
        config = replace(config, api_key=api_key)
    pipeline = build_pipeline(config, store=store)
    return pipeline.process(transcript_text, confidence_threshold)
