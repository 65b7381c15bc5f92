"""Best-effort upload audit logging."""

from __future__ import annotations

import hashlib
import json
import logging
import os
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import psycopg

from chat_catalog.schema import Outcome, Published

MAX_RAW_OUTPUT_CHARS = 20000

logger = logging.getLogger(__name__)


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class UploadLoggingConfig:
    enabled: bool = False
    database_url: str | None = None
    table: str = "upload_logs"
    save_transcript_on_reject: bool = False

    @classmethod
    def from_env(cls) -> "UploadLoggingConfig":
        return cls(
            enabled=_parse_bool(os.getenv("SAVE_UPLOAD_LOG"), False),
            database_url=os.getenv("UPLOAD_LOG_DATABASE_URL") or os.getenv("DATABASE_URL"),
            table=os.getenv("UPLOAD_LOG_TABLE", "upload_logs"),
            save_transcript_on_reject=_parse_bool(os.getenv("SAVE_TRANSCRIPT_ON_REJECT"), False),
        )


class UploadLogger:
    def __init__(self, config: UploadLoggingConfig):
        self.config = config
        self._db_ready = False

    def should_log(self) -> bool:
        return self.config.enabled and bool(self.config.database_url)

    def new_request_id(self) -> str:
        return str(uuid.uuid4())

    def transcript_sha256(self, transcript: bytes) -> str:
        return hashlib.sha256(transcript).hexdigest()

    def log_outcome(
        self,
        *,
        request_id: str,
        transcript: bytes,
        outcome: Outcome,
        metadata: dict,
    ) -> None:
        if not self.should_log():
            return

        published = isinstance(outcome, Published)
        row = {
            "request_id": request_id,
            "created_at": _utc_now_iso(),
            "provider": metadata.get("provider"),
            "model": metadata.get("model"),
            "transcript_sha256": self.transcript_sha256(transcript),
            "transcript_size_bytes": len(transcript),
            "outcome": "published" if published else "rejected",
            "reason": None if published else outcome.reason,
            "confidence": outcome.confidence,
            "catalog_id": outcome.catalog_id if published else None,
            "stored_item_count": outcome.stored_item_count if published else None,
            "errors_json": [] if published else (outcome.errors or []),
            "raw_model_output": None if published else outcome.raw_model_output[:MAX_RAW_OUTPUT_CHARS],
            "transcript_text": (
                transcript.decode("utf-8", errors="replace")
                if not published and self.config.save_transcript_on_reject
                else None
            ),
            "error_detail": None,
        }
        self._insert_row(row)

    def log_error(
        self,
        *,
        request_id: str,
        transcript: bytes | None,
        metadata: dict | None,
        error_detail: str,
    ) -> None:
        if not self.should_log():
            return

        row = {
            "request_id": request_id,
            "created_at": _utc_now_iso(),
            "provider": (metadata or {}).get("provider"),
            "model": (metadata or {}).get("model"),
            "transcript_sha256": self.transcript_sha256(transcript) if transcript else None,
            "transcript_size_bytes": len(transcript) if transcript else None,
            "outcome": "error",
            "reason": None,
            "confidence": None,
            "catalog_id": None,
            "stored_item_count": None,
            "errors_json": [],
            "raw_model_output": None,
            "transcript_text": None,
            "error_detail": error_detail[:2000],
        }
        self._insert_row(row)

    def _insert_row(self, row: dict) -> None:
        if not self.config.database_url:
            return

        table = self.config.table
        create_sql = f"""
            create table if not exists {table} (
              id bigserial primary key,
              request_id text not null unique,
              created_at timestamptz not null default now(),
              provider text null,
              model text null,
              transcript_sha256 text null,
              transcript_size_bytes integer null,
              outcome text not null,
              reason text null,
              confidence double precision null,
              catalog_id bigint null,
              stored_item_count integer null,
              errors_json jsonb not null default '[]'::jsonb,
              raw_model_output text null,
              transcript_text text null,
              error_detail text null
            )
        """
        insert_sql = f"""
            insert into {table} (
              request_id, created_at, provider, model, transcript_sha256, transcript_size_bytes,
              outcome, reason, confidence, catalog_id, stored_item_count, errors_json,
              raw_model_output, transcript_text, error_detail
            ) values (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            on conflict (request_id) do nothing
        """
        try:
            with psycopg.connect(self.config.database_url) as conn:
                with conn.cursor() as cur:
                    if not self._db_ready:
                        cur.execute(create_sql)
                        self._db_ready = True
                    cur.execute(
                        insert_sql,
                        (
                            row.get("request_id"),
                            row.get("created_at"),
                            row.get("provider"),
                            row.get("model"),
                            row.get("transcript_sha256"),
                            row.get("transcript_size_bytes"),
                            row.get("outcome"),
                            row.get("reason"),
                            row.get("confidence"),
                            row.get("catalog_id"),
                            row.get("stored_item_count"),
                            json.dumps(row.get("errors_json") or [], ensure_ascii=False),
                            row.get("raw_model_output"),
                            row.get("transcript_text"),
                            row.get("error_detail"),
                        ),
                    )
                conn.commit()
        except Exception:
            # Audit logging should never break the upload API.
            logger.warning("upload log insert failed for %s", row.get("request_id"), exc_info=True)
