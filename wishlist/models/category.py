"""Category model for grouping wishlist items."""

import enum
from typing import TYPE_CHECKING

from sqlalchemy import Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wishlist.models.base import Base

if TYPE_CHECKING:
    from wishlist.models.item import Item


class CategoryType(str, enum.Enum):
    """Whether a category ships with the app or was added by an admin."""

    DEFAULT = "default"
    CUSTOM = "custom"


class Category(Base):
    """A global category (Movies, Books, Places, ...) shared by all users."""

    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    type: Mapped[CategoryType] = mapped_column(
        Enum(CategoryType, name="category_type", values_callable=lambda x: [e.value for e in x]),
        default=CategoryType.DEFAULT,
        nullable=False,
    )
    display_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    items: Mapped[list["Item"]] = relationship(
        "Item",
        back_populates="category",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Category {self.name}>"
