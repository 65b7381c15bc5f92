"""chat-catalog: Extract structured catalogues from group-chat transcripts."""

from chat_catalog.config import PipelineConfig
from chat_catalog.core import CatalogPipeline, build_pipeline, process
from chat_catalog.schema import (
    NormalizedCatalog,
    NormalizedCategory,
    NormalizedItem,
    Published,
    Rejected,
)

__version__ = "0.1.0"

__all__ = [
    "process",
    "build_pipeline",
    "CatalogPipeline",
    "PipelineConfig",
    "NormalizedCatalog",
    "NormalizedCategory",
    "NormalizedItem",
    "Published",
    "Rejected",
    "__version__",
]
