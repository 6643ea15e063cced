"""SQLAlchemy models."""

from wishlist.models.action import Action
from wishlist.models.base import Base
from wishlist.models.category import Category, CategoryType
from wishlist.models.item import Item, ItemPriority, ItemStatus

__all__ = [
    # Base
    "Base",
    # Actions
    "Action",
    # Categories
    "Category",
    "CategoryType",
    # Items
    "Item",
    "ItemPriority",
    "ItemStatus",
]
