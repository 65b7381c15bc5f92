"""Schema validation and normalization of recovered model responses."""

from __future__ import annotations

import math
import re
from typing import Annotated, Any

from pydantic import BaseModel, Field, StringConstraints, ValidationError, field_validator

from chat_catalog.schema import (
    Invalid,
    NormalizedCatalog,
    NormalizedCategory,
    NormalizedItem,
    ValidCatalog,
    ValidNote,
    Verdict,
)

NonEmptyStr = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]
StrictText = Annotated[str, StringConstraints(strict=True)]

_PRICE_NOISE = re.compile(r"[^0-9.\-]")
_LEADING_FLOAT = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


class ConfidencePayload(BaseModel):
    confidence: float = Field(ge=0.0, le=1.0, allow_inf_nan=False)

    @field_validator("confidence", mode="before")
    @classmethod
    def _require_number(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("confidence must be a number")
        return value


class NotePayload(BaseModel):
    note: StrictText


class ItemPayload(BaseModel):
    name: NonEmptyStr
    description: StrictText | None = None
    price: Any = None
    tags: list[StrictText] | None = None
    extra: dict[str, Any] | None = None

    @field_validator("price")
    @classmethod
    def _check_price(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("price must be a number or a string")
        try:
            price = float(value)
        except OverflowError:
            raise ValueError("price must be a non-negative finite number") from None
        if not math.isfinite(price) or price < 0:
            raise ValueError("price must be a non-negative finite number")
        return value


class CategoryPayload(BaseModel):
    name: NonEmptyStr
    items: list[ItemPayload]


class CatalogPayload(BaseModel):
    title: NonEmptyStr
    description: StrictText | None = None
    categories: list[CategoryPayload]


def normalize_price(value: Any) -> float | None:
    """Coerce a raw price into a non-negative float, or None.

    Strings lose every character other than digits, ``.`` and ``-`` and the
    leading number is read from what remains, so ``"₹1,200.50"`` becomes
    ``1200.5`` and ``"--"`` becomes None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            price = float(value)
        except OverflowError:
            return None
    elif isinstance(value, str):
        match = _LEADING_FLOAT.match(_PRICE_NOISE.sub("", value))
        if not match:
            return None
        price = float(match.group())
    else:
        return None
    if not math.isfinite(price) or price < 0:
        return None
    return price


def validate(candidate: Any, threshold: float) -> Verdict:
    """Validate a recovered response and normalize its catalogue.

    Top-level problems (wrong shape, bad confidence, catalog/note ambiguity)
    stop validation immediately. Inside the catalogue every violation is
    collected before returning ``Invalid``.
    """
    if not isinstance(candidate, dict):
        return Invalid(errors=["response: Input should be a JSON object"])

    try:
        confidence = ConfidencePayload.model_validate(candidate).confidence
    except ValidationError as exc:
        return Invalid(errors=_format_errors(exc))

    has_catalog = candidate.get("catalog") is not None
    has_note = candidate.get("note") not in (None, "")
    if has_catalog == has_note:
        return Invalid(errors=["response: exactly one of 'catalog' or 'note' must be present"])

    if has_note:
        try:
            note = NotePayload.model_validate(candidate).note
        except ValidationError as exc:
            return Invalid(errors=_format_errors(exc))
        return ValidNote(confidence=confidence, note=note)

    try:
        payload = CatalogPayload.model_validate(candidate["catalog"])
    except ValidationError as exc:
        return Invalid(errors=_format_errors(exc, prefix=("catalog",)))

    return ValidCatalog(
        confidence=confidence,
        low_confidence=confidence < threshold,
        catalog=_normalize_catalog(payload),
    )


def _normalize_catalog(payload: CatalogPayload) -> NormalizedCatalog:
    return NormalizedCatalog(
        title=payload.title,
        description=_optional_text(payload.description),
        categories=[
            NormalizedCategory(
                name=category.name,
                items=[_normalize_item(item) for item in category.items],
            )
            for category in payload.categories
        ],
    )


def _normalize_item(item: ItemPayload) -> NormalizedItem:
    return NormalizedItem(
        name=item.name,
        description=_optional_text(item.description),
        price=normalize_price(item.price),
        tags=[tag.strip() for tag in item.tags or []],
        extra=item.extra,
    )


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _format_errors(exc: ValidationError, prefix: tuple[str, ...] = ()) -> list[str]:
    errors: list[str] = []
    for err in exc.errors():
        path = ".".join(str(part) for part in (*prefix, *err["loc"]))
        errors.append(f"{path}: {err['msg']}" if path else err["msg"])
    return errors
