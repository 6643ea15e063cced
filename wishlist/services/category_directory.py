"""Read-only access to the shared category list and the actions items are filed under."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from wishlist.core.exceptions import StoreError
from wishlist.models.action import Action
from wishlist.models.category import Category
from wishlist.schemas.category import CategoryResponse

logger = logging.getLogger(__name__)

# Category name (lowercased) -> action name. Unlisted categories use their own name.
CATEGORY_ACTIONS: dict[str, str] = {
    "movies": "watch",
    "shows": "watch",
    "watch": "watch",
    "tv": "watch",
    "series": "watch",
    "books": "read",
    "read": "read",
    "reading": "read",
    "places": "visit",
    "travel": "visit",
    "visit": "visit",
    "destinations": "visit",
    "restaurants": "try",
    "food": "try",
    "try": "try",
    "experiences": "try",
}


def action_name_for_category(category_name: str) -> str:
    """Map a category name to its action verb, e.g. "Movies" -> "watch"."""
    lower = category_name.lower()
    return CATEGORY_ACTIONS.get(lower, lower)


class CategoryDirectory:
    """Lists categories in display order and resolves their actions."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list(self) -> list[CategoryResponse]:
        try:
            result = await self.db.execute(
                select(Category).order_by(Category.display_order, Category.name)
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to list categories: {e}") from e
        return [CategoryResponse.model_validate(c) for c in result.scalars().all()]

    async def action_id_for(self, category: CategoryResponse) -> UUID | None:
        """Id of the action matching ``category``, or None when no such action exists.

        Raises:
            StoreError: If the lookup fails.
        """
        name = action_name_for_category(category.name)
        try:
            action_id = await self.db.scalar(select(Action.id).where(Action.name == name))
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to look up action {name!r}: {e}") from e

        if action_id is None:
            logger.debug("No action %r for category %s", name, category.name)
        return action_id


def format_categories_for_prompt(categories: list[CategoryResponse]) -> str:
    """Render the directory as the model sees it, one category per line."""
    if not categories:
        return "Available categories:\n(none)"
    lines = [f"- {c.name} (ID: {c.id})" for c in categories]
    return "Available categories:\n" + "\n".join(lines)
