"""Pydantic schemas for categories."""

from uuid import UUID

from wishlist.models.category import CategoryType
from wishlist.schemas.common import BaseSchema


class CategoryResponse(BaseSchema):
    """A category as listed by the directory."""

    id: UUID
    name: str
    type: CategoryType
    display_order: int
