"""Common schemas used across the application."""

import math
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str = Field(..., description="Error code (e.g., ALREADY_QUEUED)")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional error details")


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope: ``{success, data?, error?}``."""

    success: bool = True
    data: T | None = None
    error: ErrorDetail | None = None


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = False
    error: ErrorDetail
    trace_id: str = Field(..., alias="traceId", description="Request trace ID")


class PaginationMeta(BaseModel):
    """Pagination metadata in response."""

    page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, page: int, page_size: int, total_items: int) -> "PaginationMeta":
        total_pages = math.ceil(total_items / page_size) if page_size else 0
        return cls(
            page=page,
            page_size=page_size,
            total_items=total_items,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1,
        )


class PaginatedData(BaseModel, Generic[T]):
    """Generic paginated payload."""

    items: list[T]
    pagination: PaginationMeta


class MessageData(BaseModel):
    """Payload for operations that only report success."""

    message: str = "Operation completed successfully"
