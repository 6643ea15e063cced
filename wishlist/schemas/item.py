"""Pydantic schemas for wishlist items as seen by the assistant tools."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from wishlist.models.item import ItemPriority, ItemStatus
from wishlist.schemas.common import BaseSchema, CamelSchema


class ItemCreate(BaseSchema):
    """Fields for a new item. The owner comes from the bound store, never from input."""

    title: str = Field(..., min_length=1, max_length=500)
    category_id: UUID
    description: str | None = None
    location: str | None = None
    url: str | None = None
    target_date: str | None = None
    priority: ItemPriority | None = None
    note: str | None = None
    action_id: UUID | None = None


class ItemFilters(BaseSchema):
    """Filters applied by WishlistStore.query(). None means no filter."""

    category_id: UUID | None = None
    status: ItemStatus | None = None
    limit: int | None = Field(None, ge=1)


class ItemSummary(CamelSchema):
    """Compact item payload returned to the model and rendered by the client."""

    id: UUID
    title: str
    category_id: UUID
    action_id: UUID | None = None
    description: str | None = None
    location: str | None = None
    status: ItemStatus
    created_at: datetime


class SimilarItem(CamelSchema):
    """A candidate duplicate surfaced to the user for confirmation."""

    id: UUID
    title: str
