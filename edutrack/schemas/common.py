"""Shared schemas: camelCase base model, principal and response envelopes."""

import math
from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from edutrack.models.identity import UserType

T = TypeVar("T")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Principal(CamelModel):
    """The authenticated identity every operation runs as."""

    id: str
    role: UserType
    name: str
    school_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserType.ADMIN


class Pagination(CamelModel):
    current: int
    pages: int
    count: int
    total: int
    has_next: bool
    has_prev: bool
    next: Optional[int] = None
    prev: Optional[int] = None

    @classmethod
    def build(cls, page: int, limit: int, total: int, count: int) -> "Pagination":
        pages = math.ceil(total / limit) if limit else 0
        has_next = page < pages
        has_prev = page > 1
        return cls(
            current=page,
            pages=pages,
            count=count,
            total=total,
            has_next=has_next,
            has_prev=has_prev,
            next=page + 1 if has_next else None,
            prev=page - 1 if has_prev else None,
        )


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str = "Success"
    data: Optional[T] = None
    timestamp: str = Field(default_factory=_now_iso)


class PaginatedResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str = "Success"
    data: List[T]
    pagination: Pagination
    timestamp: str = Field(default_factory=_now_iso)

    @classmethod
    def build(
        cls, items: List[Any], page: int, limit: int, total: int, message: str = "Success"
    ) -> "PaginatedResponse":
        return cls(
            message=message,
            data=items,
            pagination=Pagination.build(page, limit, total, len(items)),
        )


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
    errors: Optional[Any] = None
    timestamp: str = Field(default_factory=_now_iso)


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit
