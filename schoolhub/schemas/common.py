"""Common schemas used across the application."""

from typing import Generic, TypeVar, List, Sequence
from pydantic import BaseModel, Field


T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Paginated response schema."""

    items: List[T] = Field(..., description="List of items")
    total: int = Field(..., description="Total number of items")
    page: int = Field(..., description="Current page number", ge=1)
    page_size: int = Field(..., description="Number of items per page", ge=1)
    total_pages: int = Field(..., description="Total number of pages")

    @classmethod
    def build(
        cls, items: Sequence, total: int, page: int, page_size: int
    ) -> "PaginatedResponse[T]":
        """Assemble a page, deriving ``total_pages`` from ``total``."""
        return cls(
            items=list(items),
            total=total,
            page=page,
            page_size=page_size,
            total_pages=(total + page_size - 1) // page_size if total > 0 else 0,
        )


class HealthCheckResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(..., description="Service status", examples=["healthy"])
    version: str = Field(..., description="API version", examples=["1.0.0"])
    database: str = Field(..., description="Database status", examples=["connected"])
