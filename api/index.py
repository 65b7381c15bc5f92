from datetime import datetime
from functools import lru_cache
import logging
import os
import re
from pathlib import Path
import sys
import tempfile
from typing import Any

from fastapi import Depends, FastAPI, File, HTTPException, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

# Ensure local src package is importable in serverless runtime.
ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from api.upload_logging import UploadLogger, UploadLoggingConfig  # noqa: E402
from chat_catalog.config import PipelineConfig  # noqa: E402
from chat_catalog.core import CatalogPipeline  # noqa: E402
from chat_catalog.exceptions import (  # noqa: E402
    AuthenticationError,
    ModelCallError,
    RateLimitError,
    StorageError,
    TranscriptError,
)
from chat_catalog.providers.base import BaseProvider  # noqa: E402
from chat_catalog.providers.gemini import GeminiProvider  # noqa: E402
from chat_catalog.schema import NormalizedCatalog, Published, RejectReason  # noqa: E402
from chat_catalog.storage import CatalogStore, build_store  # noqa: E402

app = FastAPI(title="chat-catalog API", version="1.0.0")
logger = logging.getLogger(__name__)
UPLOAD_LOGGER = UploadLogger(UploadLoggingConfig.from_env())

raw_origins = os.getenv("FRONTEND_ORIGINS", "*")
allow_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
MAX_TRANSCRIPT_BYTES = int(os.getenv("MAX_TRANSCRIPT_BYTES", str(10 * 1024 * 1024)))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_config() -> PipelineConfig:
    return PipelineConfig.from_env()


@lru_cache(maxsize=1)
def get_store() -> CatalogStore:
    return build_store(get_config().database_url)


@lru_cache(maxsize=1)
def _gemini_provider() -> BaseProvider:
    config = get_config()
    return GeminiProvider(api_key=config.api_key, model=config.model)


def get_provider() -> BaseProvider:
    try:
        return _gemini_provider()
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


def get_pipeline(
    provider: BaseProvider = Depends(get_provider),
    store: CatalogStore = Depends(get_store),
) -> CatalogPipeline:
    return CatalogPipeline(provider=provider, store=store, config=get_config())


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


class UploadPublishedResponse(BaseModel):
    ok: bool = True
    catalogId: int
    storedItemsCount: int
    confidence: float
    parsedCatalogue: NormalizedCatalog


class UploadRejectedResponse(BaseModel):
    ok: bool = False
    reason: RejectReason
    confidence: float | None = None
    note: str | None = None
    errors: list[str] = Field(default_factory=list)
    rawModelOutput: str


class CatalogSummary(BaseModel):
    id: int
    title: str
    description: str | None = None
    created_at: datetime
    item_count: int


class CatalogListResponse(BaseModel):
    catalogs: list[CatalogSummary]


def _spool_to_tempfile(payload: bytes) -> str:
    with tempfile.NamedTemporaryFile(prefix="chat-", suffix=".txt", delete=False) as handle:
        handle.write(payload)
        return handle.name


@app.post("/upload", response_model=UploadPublishedResponse | UploadRejectedResponse)
async def upload_transcript(
    file: UploadFile | None = File(default=None),
    pipeline: CatalogPipeline = Depends(get_pipeline),
) -> UploadPublishedResponse | UploadRejectedResponse:
    request_id = UPLOAD_LOGGER.new_request_id()
    metadata = pipeline.provider.get_extraction_metadata() or {}

    if file is None:
        raise HTTPException(
            status_code=400,
            detail="No file uploaded. Make sure the upload field name is 'file' and a .txt transcript is attached.",
        )
    payload = await file.read()
    if not payload:
        raise HTTPException(status_code=400, detail="empty file")
    if len(payload) > MAX_TRANSCRIPT_BYTES:
        raise HTTPException(status_code=413, detail="transcript too large")

    temp_path = _spool_to_tempfile(payload)
    try:
        outcome = await run_in_threadpool(pipeline.process_file, temp_path)
    except TranscriptError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except RateLimitError as exc:
        raise HTTPException(status_code=429, detail=str(exc)) from exc
    except ModelCallError as exc:
        UPLOAD_LOGGER.log_error(
            request_id=request_id,
            transcript=payload,
            metadata=metadata,
            error_detail=str(exc),
        )
        logger.exception("model call failed")
        raise HTTPException(status_code=502, detail="model_call_failed") from exc
    except StorageError as exc:
        UPLOAD_LOGGER.log_error(
            request_id=request_id,
            transcript=payload,
            metadata=metadata,
            error_detail=str(exc),
        )
        logger.exception("catalogue storage failed")
        raise HTTPException(status_code=500, detail="internal_error") from exc
    except Exception as exc:
        UPLOAD_LOGGER.log_error(
            request_id=request_id,
            transcript=payload,
            metadata=metadata,
            error_detail=str(exc),
        )
        logger.exception("upload failed")
        raise HTTPException(status_code=500, detail="internal_error") from exc

    UPLOAD_LOGGER.log_outcome(
        request_id=request_id,
        transcript=payload,
        outcome=outcome,
        metadata=metadata,
    )
    if isinstance(outcome, Published):
        return UploadPublishedResponse(
            catalogId=outcome.catalog_id,
            storedItemsCount=outcome.stored_item_count,
            confidence=outcome.confidence,
            parsedCatalogue=outcome.catalog,
        )
    return UploadRejectedResponse(
        reason=outcome.reason,
        confidence=outcome.confidence,
        note=outcome.note,
        errors=outcome.errors or [],
        rawModelOutput=outcome.raw_model_output,
    )


@app.get("/catalogs", response_model=CatalogListResponse)
def list_catalogs(store: CatalogStore = Depends(get_store)) -> CatalogListResponse:
    try:
        rows = store.list_catalogs()
    except StorageError as exc:
        logger.exception("listing catalogues failed")
        raise HTTPException(status_code=500, detail="internal_error") from exc
    return CatalogListResponse(catalogs=[CatalogSummary(**row) for row in rows])


@app.get("/catalogs/{catalog_id}")
def get_catalog(catalog_id: int, store: CatalogStore = Depends(get_store)) -> dict[str, Any]:
    try:
        catalog = store.get_catalog(catalog_id)
    except StorageError as exc:
        logger.exception("loading catalogue %s failed", catalog_id)
        raise HTTPException(status_code=500, detail="internal_error") from exc
    if catalog is None:
        raise HTTPException(status_code=404, detail="Not found")

    items_count = sum(len(category["items"]) for category in catalog["categories"])
    return {"catalog": catalog, "itemsCount": items_count}


def _download_filename(title: str | None, catalog_id: int) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (title or "catalog").lower()) or "catalog"
    return f"{slug}-{catalog_id}.txt"


@app.get("/catalogs/{catalog_id}/download")
def download_transcript(catalog_id: int, store: CatalogStore = Depends(get_store)) -> Response:
    try:
        catalog = store.get_catalog(catalog_id)
    except StorageError as exc:
        logger.exception("loading catalogue %s failed", catalog_id)
        raise HTTPException(status_code=500, detail="internal_error") from exc
    if catalog is None:
        raise HTTPException(status_code=404, detail="Not found")

    filename = _download_filename(catalog.get("title"), catalog_id)
    return Response(
        content=catalog.get("source_text") or "",
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
