"""Offset pagination envelope for listings."""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """One page of a listing and what a client needs to ask for the next."""

    items: list[T]
    total: int = Field(..., ge=0, description="Matching items across every page")
    limit: int = Field(..., ge=1, description="Page size")
    offset: int = Field(..., ge=0, description="Index of the first item on this page")
    has_more: bool = Field(..., description="True when offset + len(items) < total")
