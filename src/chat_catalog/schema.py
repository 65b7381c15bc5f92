"""Data models for chat-catalog."""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

RejectReason = Literal["low_confidence", "invalid_schema", "parse_error"]


class NormalizedItem(BaseModel):
    """A single catalogue entry after trimming and price coercion."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None = None
    price: float | None = None
    tags: list[str] = Field(default_factory=list)
    extra: dict[str, Any] | None = None


class NormalizedCategory(BaseModel):
    """Named group of items, in the order the model listed them."""

    model_config = ConfigDict(frozen=True)

    name: str
    items: list[NormalizedItem] = Field(default_factory=list)


class NormalizedCatalog(BaseModel):
    """Structured catalogue extracted from a chat transcript."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str | None = None
    categories: list[NormalizedCategory] = Field(default_factory=list)


class ValidCatalog(BaseModel):
    kind: Literal["catalog"] = "catalog"
    confidence: float
    low_confidence: bool
    catalog: NormalizedCatalog


class ValidNote(BaseModel):
    kind: Literal["note"] = "note"
    confidence: float
    note: str


class Invalid(BaseModel):
    kind: Literal["invalid"] = "invalid"
    errors: list[str]


Verdict = Annotated[ValidCatalog | ValidNote | Invalid, Field(discriminator="kind")]


class Publish(BaseModel):
    kind: Literal["publish"] = "publish"
    catalog: NormalizedCatalog


class Reject(BaseModel):
    kind: Literal["reject"] = "reject"
    reason: RejectReason
    detail: str | list[str]


Decision = Annotated[Publish | Reject, Field(discriminator="kind")]


class PersistedItem(BaseModel):
    """Storage-facing item record."""

    catalog_id: int
    category: str
    name: str
    description: str | None = None
    price: float | None = None
    tags: list[str] | None = None
    extra: str | None = None
    item_id: int | None = None


class PersistedCatalog(BaseModel):
    """A stored catalogue and the item records written with it."""

    catalog_id: int
    items: list[PersistedItem] = Field(default_factory=list)


class Published(BaseModel):
    ok: Literal[True] = True
    catalog_id: int
    stored_item_count: int
    confidence: float
    catalog: NormalizedCatalog


class Rejected(BaseModel):
    ok: Literal[False] = False
    reason: RejectReason
    confidence: float | None = None
    note: str | None = None
    errors: list[str] | None = None
    raw_model_output: str


Outcome = Published | Rejected
