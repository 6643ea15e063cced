"""Per-caller persistence for wishlist items."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wishlist.core.exceptions import ItemNotFoundError, StoreError
from wishlist.models.item import Item, ItemStatus
from wishlist.schemas.item import ItemCreate, ItemFilters

logger = logging.getLogger(__name__)


class WishlistStore:
    """Reads and writes items owned by a single user.

    The owner is fixed at construction. Every query filters on it, so an id
    belonging to someone else behaves exactly like an id that does not exist.
    """

    def __init__(self, db: AsyncSession, user_id: UUID) -> None:
        self.db = db
        self.user_id = user_id

    async def insert(self, data: ItemCreate) -> Item:
        """Create a new todo item for the bound user.

        Args:
            data: Item fields. Status always starts as todo.

        Returns:
            The persisted item.

        Raises:
            StoreError: If the write fails.
        """
        item = Item(
            user_id=self.user_id,
            category_id=data.category_id,
            title=data.title,
            description=data.description,
            location=data.location,
            url=data.url,
            target_date=data.target_date,
            priority=data.priority,
            note=data.note,
            action_id=data.action_id,
            status=ItemStatus.TODO,
        )
        self.db.add(item)
        try:
            await self.db.commit()
            await self.db.refresh(item)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Failed to insert item: {e}") from e

        logger.info("Item created: user=%s item=%s", self.user_id, item.id)
        return item

    async def query(self, filters: ItemFilters | None = None) -> list[Item]:
        """List the bound user's items, newest first.

        Args:
            filters: Optional category, status and limit filters.

        Returns:
            Matching items ordered by creation time, descending.
        """
        filters = filters or ItemFilters()

        stmt = select(Item).where(Item.user_id == self.user_id)
        if filters.category_id is not None:
            stmt = stmt.where(Item.category_id == filters.category_id)
        if filters.status is not None:
            stmt = stmt.where(Item.status == filters.status)
        stmt = stmt.order_by(Item.created_at.desc())
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)

        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to query items: {e}") from e
        return list(result.scalars().all())

    async def get(self, item_id: UUID) -> Item:
        """Fetch one of the bound user's items.

        Raises:
            ItemNotFoundError: If no such item exists for this user.
        """
        try:
            result = await self.db.execute(
                select(Item).where(Item.id == item_id, Item.user_id == self.user_id)
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load item: {e}") from e

        item = result.scalar_one_or_none()
        if item is None:
            raise ItemNotFoundError(f"Item {item_id} not found")
        return item

    async def update_status(self, item_id: UUID, status: ItemStatus) -> Item:
        """Set an item's status.

        Raises:
            ItemNotFoundError: If the item is missing or owned by another user.
            StoreError: If the write fails.
        """
        item = await self.get(item_id)
        item.status = status
        try:
            await self.db.commit()
            await self.db.refresh(item)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Failed to update item: {e}") from e

        logger.info("Item status updated: user=%s item=%s status=%s", self.user_id, item.id, status.value)
        return item
