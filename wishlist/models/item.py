"""Item model for individual wishlist entries."""

import enum
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from wishlist.models.base import Base

if TYPE_CHECKING:
    from wishlist.models.category import Category


class ItemStatus(str, enum.Enum):
    """Completion status of an item."""

    TODO = "todo"
    DONE = "done"

    @property
    def opposite(self) -> "ItemStatus":
        return ItemStatus.DONE if self is ItemStatus.TODO else ItemStatus.TODO


class ItemPriority(str, enum.Enum):
    """Optional priority level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Item(Base):
    """A thing a user wants to watch, read, visit or try.

    Items are owned by a single user. Every read and write goes through
    WishlistStore, which always filters on user_id.
    """

    __tablename__ = "items"

    # Owner (identity from the auth provider, no local users table)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False, index=True)

    category_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("categories.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Derived from the category when the item is created; None when no action matches
    action_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("actions.id", ondelete="SET NULL"),
        nullable=True,
    )

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[ItemStatus] = mapped_column(
        Enum(ItemStatus, name="item_status", values_callable=lambda x: [e.value for e in x]),
        default=ItemStatus.TODO,
        nullable=False,
    )
    priority: Mapped[ItemPriority | None] = mapped_column(
        Enum(ItemPriority, name="item_priority", values_callable=lambda x: [e.value for e in x]),
        nullable=True,
    )
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_date: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Relationships
    category: Mapped["Category"] = relationship(
        "Category",
        back_populates="items",
    )

    __table_args__ = (Index("ix_items_user_category_status", "user_id", "category_id", "status"),)

    def __repr__(self) -> str:
        return f"<Item {self.title} ({self.status.value})>"
