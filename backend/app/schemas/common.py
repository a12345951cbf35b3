from __future__ import annotations

import math
from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

# Monetary values go over the wire as JSON numbers, not strings
Money = Annotated[
    Decimal,
    PlainSerializer(lambda v: float(v), return_type=float, when_used="json"),
]


class RequestModel(BaseModel):
    """Request bodies accept camelCase keys (and snake_case)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> Pagination:
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class MessageResponse(BaseModel):
    message: str


def page_payload(
    items: list[Any], page: int, limit: int, total: int, **extra: Any
) -> dict[str, Any]:
    """Standard list envelope: ``{data, pagination, ...extra}``."""
    return {
        "data": items,
        "pagination": Pagination.build(page, limit, total),
        **extra,
    }
