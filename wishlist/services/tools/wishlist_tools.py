"""Assistant tools for reading and changing a user's wishlist.

Tools are created per-request via create_wishlist_tools() so that each
registry is bound to exactly one caller: the store it closes over filters
every read and write on that caller's user id, and nothing in the model's
arguments can name a different owner.

The model sees three tools: createItem, queryItems and toggleItem. Their
arguments arrive as untrusted JSON and are validated into one of three
parameter models before anything touches the store.
"""

import logging
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from wishlist.core.config import Settings
from wishlist.core.exceptions import (
    DuplicateDetected,
    InvalidToolCall,
    ItemNotFoundError,
    NoMatchFound,
    StoreError,
)
from wishlist.models.item import Item, ItemPriority, ItemStatus
from wishlist.schemas.assistant import ToolName, ToolResult
from wishlist.schemas.category import CategoryResponse
from wishlist.schemas.item import ItemCreate, ItemFilters, ItemSummary, SimilarItem
from wishlist.services import similarity
from wishlist.services.category_directory import CategoryDirectory
from wishlist.services.wishlist_store import WishlistStore

logger = logging.getLogger(__name__)


# === Tool arguments ===


class _ToolArgs(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


class CreateItemArgs(_ToolArgs):
    """Input for adding an item."""

    title: str = Field(min_length=1, max_length=500, description="The item title")
    category_id: UUID = Field(description="Category ID for the item")
    description: str | None = Field(None, description="Item description")
    location: str | None = Field(None, description="Item location")
    url: str | None = Field(None, description="Item URL")
    target_date: str | None = Field(None, max_length=32, description="Target date for the item")
    priority: ItemPriority | None = Field(None, description="Priority level")
    note: str | None = Field(None, description="Additional notes")


class QueryItemsArgs(_ToolArgs):
    """Input for listing items."""

    category_id: UUID | None = Field(None, description="Filter by category ID")
    status: ItemStatus = Field(ItemStatus.TODO, description="Filter by status")
    query: str | None = Field(None, description="Search query")
    limit: int | None = Field(None, ge=1, description="Maximum items to return")


class ToggleItemArgs(_ToolArgs):
    """Input for marking an item done or todo."""

    identifier: str = Field(min_length=1, description="Item title or ID to toggle")
    new_status: ItemStatus | None = Field(None, description="Target status")


class CreateItemCall(BaseModel):
    tool_name: Literal["createItem"]
    args: CreateItemArgs


class QueryItemsCall(BaseModel):
    tool_name: Literal["queryItems"]
    args: QueryItemsArgs


class ToggleItemCall(BaseModel):
    tool_name: Literal["toggleItem"]
    args: ToggleItemArgs


ToolCall = Annotated[
    CreateItemCall | QueryItemsCall | ToggleItemCall,
    Field(discriminator="tool_name"),
]

_tool_call_adapter: TypeAdapter[ToolCall] = TypeAdapter(ToolCall)


def parse_tool_call(tool_name: str, args: Any) -> CreateItemCall | QueryItemsCall | ToggleItemCall:
    """Validate a raw tool call from the model.

    Raises:
        InvalidToolCall: Unknown tool name, unknown fields, wrong types or bad enum values.
    """
    if not isinstance(args, dict):
        raise InvalidToolCall(tool_name, "arguments must be a JSON object")
    try:
        return _tool_call_adapter.validate_python({"tool_name": tool_name, "args": args})
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'][1:]) or 'tool'}: {err['msg']}" for err in e.errors()
        )
        raise InvalidToolCall(tool_name, details) from e


# === Registry ===


class WishlistTools:
    """The three assistant tools, bound to one caller's store."""

    def __init__(
        self,
        store: WishlistStore,
        categories: list[CategoryResponse],
        *,
        directory: CategoryDirectory | None = None,
        duplicate_threshold: float = 0.8,
        match_threshold: float = 0.6,
        default_query_limit: int = 50,
        max_query_limit: int = 200,
    ) -> None:
        self.store = store
        self.categories = categories
        self.directory = directory
        self.duplicate_threshold = duplicate_threshold
        self.match_threshold = match_threshold
        self.default_query_limit = default_query_limit
        self.max_query_limit = max_query_limit
        self._categories_by_id = {c.id: c for c in categories}

    @property
    def user_id(self) -> UUID:
        return self.store.user_id

    async def execute(self, tool_name: str, args: Any) -> ToolResult:
        """Validate and run one tool call. Never raises for bad input.

        Args:
            tool_name: Name the model asked for.
            args: Decoded JSON arguments from the model.

        Returns:
            The tool's result. Invalid calls come back as a failed result.
        """
        try:
            call = parse_tool_call(tool_name, args)
            if isinstance(call, CreateItemCall):
                self._check_category(tool_name, call.args.category_id)
                return await self.create_item(call.args)
            if isinstance(call, QueryItemsCall):
                if call.args.category_id is not None:
                    self._check_category(tool_name, call.args.category_id)
                return await self.query_items(call.args)
            return await self.toggle_item(call.args)
        except InvalidToolCall as e:
            logger.warning("Invalid tool call rejected: %s", e)
            return ToolResult.fail(
                message="Sorry, I couldn't understand that request. Please try rephrasing it.",
                error=str(e),
            )

    def _check_category(self, tool_name: str, category_id: UUID) -> None:
        if category_id not in self._categories_by_id:
            raise InvalidToolCall(tool_name, f"unknown categoryId {category_id}")

    async def create_item(self, args: CreateItemArgs) -> ToolResult:
        """Add an item unless a near-duplicate todo item already exists in that category."""
        try:
            existing = await self.store.query(
                ItemFilters(category_id=args.category_id, status=ItemStatus.TODO)
            )
            similar = similarity.all_above_threshold(
                args.title, existing, self.duplicate_threshold, key=_title
            )
            if similar:
                raise DuplicateDetected(args.title, [i.title for i in similar])

            action_id = None
            if self.directory is not None:
                action_id = await self.directory.action_id_for(self._categories_by_id[args.category_id])

            item = await self.store.insert(
                ItemCreate(
                    title=args.title,
                    category_id=args.category_id,
                    description=args.description or None,
                    location=args.location or None,
                    url=args.url or None,
                    target_date=args.target_date or None,
                    priority=args.priority,
                    note=args.note or None,
                    action_id=action_id,
                )
            )
        except DuplicateDetected as e:
            quoted = ", ".join(f'"{t}"' for t in e.similar_titles)
            return ToolResult.fail(
                data={
                    "similarItems": [
                        SimilarItem.model_validate(i).model_dump(mode="json") for i in similar
                    ]
                },
                message=(
                    f"I found similar items already in your wishlist: {quoted}. "
                    "Did you mean one of these, or would you like to add this as a new item?"
                ),
                error="Potential duplicate detected",
            )
        except StoreError as e:
            logger.exception("createItem failed for user %s", self.user_id)
            return ToolResult.fail(
                message="Sorry, I encountered an error adding that item. Please try again.",
                error=str(e),
            )

        return ToolResult.ok(
            data={"itemId": str(item.id)},
            message=f'Added "{item.title}" to your wishlist!',
        )

    async def query_items(self, args: QueryItemsArgs) -> ToolResult:
        """List items, newest first, optionally narrowed by a text query."""
        limit = min(args.limit or self.default_query_limit, self.max_query_limit)
        status = args.status.value
        in_category = " in that category" if args.category_id else ""

        try:
            items = await self.store.query(
                ItemFilters(
                    category_id=args.category_id,
                    status=args.status,
                    # Text filtering happens in Python, so only limit at the database without a query
                    limit=None if args.query else limit,
                )
            )
        except StoreError as e:
            logger.exception("queryItems failed for user %s", self.user_id)
            return ToolResult.fail(
                message="Sorry, I encountered an error fetching your items. Please try again.",
                error=str(e),
            )

        if args.query:
            needle = args.query.lower()
            items = [i for i in items if _contains(i, needle)][:limit]

        if not items:
            return ToolResult.ok(
                data={"items": [], "count": 0},
                message=f"You don't have any {status} items{in_category} yet.",
            )

        formatted = [ItemSummary.model_validate(i).model_dump(mode="json") for i in items]
        plural = "" if len(formatted) == 1 else "s"
        return ToolResult.ok(
            data={"items": formatted, "count": len(formatted)},
            message=f"You have {len(formatted)} {status} item{plural}{in_category}.",
        )

    async def toggle_item(self, args: ToggleItemArgs) -> ToolResult:
        """Resolve an item by id or fuzzy title and flip (or set) its status."""
        try:
            items = await self.store.query()
            if not items:
                return ToolResult.fail(
                    message="Your wishlist is empty. Add some items first!",
                    error="No items found",
                )

            match = self._resolve(args.identifier, items)
            if match is None:
                raise NoMatchFound(args.identifier)

            target = args.new_status or match.status.opposite
            updated = await self.store.update_status(match.id, target)
        except NoMatchFound as e:
            return ToolResult.fail(
                message=(
                    f'I couldn\'t find an item matching "{e.identifier}". '
                    "Could you be more specific or check the title?"
                ),
                error=str(e),
            )
        except ItemNotFoundError as e:
            logger.warning("toggleItem target vanished for user %s: %s", self.user_id, e)
            return ToolResult.fail(
                message=f'I couldn\'t find an item matching "{args.identifier}". Please try again.',
                error=str(e),
            )
        except StoreError as e:
            logger.exception("toggleItem failed for user %s", self.user_id)
            return ToolResult.fail(
                message="Sorry, I encountered an error updating that item. Please try again.",
                error=str(e),
            )

        return ToolResult.ok(
            data={
                "itemId": str(updated.id),
                "newStatus": updated.status.value,
                "title": updated.title,
            },
            message=f'Marked "{updated.title}" as {updated.status.value}!',
        )

    def _resolve(self, identifier: str, items: list[Item]) -> Item | None:
        needle = identifier.strip().lower()
        for item in items:
            if str(item.id).lower() == needle:
                return item
        return similarity.best_match(
            identifier,
            items,
            self.match_threshold,
            key=lambda item: similarity.closest_span(identifier, item.title),
        )

    def tool_definitions(self) -> list[dict[str, Any]]:
        """OpenAI function schemas for bind_tools(), with categoryId limited to known categories."""
        category_ids = [str(c.id) for c in self.categories]
        category_id = {"type": "string", "description": "Category ID for the item"}
        if category_ids:
            category_id["enum"] = category_ids
        status = {"type": "string", "enum": [s.value for s in ItemStatus]}

        return [
            _function(
                "createItem",
                "Add a new item to the user's wishlist. Extract relevant details from natural "
                "language like title, category, location, dates, priority, etc.",
                {
                    "title": {"type": "string", "description": "The item title"},
                    "categoryId": category_id,
                    "description": {"type": "string", "description": "Item description"},
                    "location": {"type": "string", "description": "Item location"},
                    "url": {"type": "string", "description": "Item URL"},
                    "targetDate": {"type": "string", "description": "Target date for the item"},
                    "priority": {
                        "type": "string",
                        "enum": [p.value for p in ItemPriority],
                        "description": "Priority level",
                    },
                    "note": {"type": "string", "description": "Additional notes"},
                },
                required=["title", "categoryId"],
            ),
            _function(
                "queryItems",
                "List items from the user's wishlist. Can filter by category, status, or search query.",
                {
                    "categoryId": {**category_id, "description": "Filter by category ID"},
                    "status": {**status, "description": "Filter by status (default: todo)"},
                    "query": {"type": "string", "description": "Search query"},
                    "limit": {
                        "type": "integer",
                        "minimum": 1,
                        "description": "Maximum items to return",
                    },
                },
            ),
            _function(
                "toggleItem",
                "Toggle the completion status of a wishlist item. Uses fuzzy matching to find "
                "the item by title.",
                {
                    "identifier": {"type": "string", "description": "Item title or ID to toggle"},
                    "newStatus": {**status, "description": "Target status"},
                },
                required=["identifier"],
            ),
        ]


def _title(item: Item) -> str:
    return item.title


def _contains(item: Item, needle: str) -> bool:
    return any(
        field is not None and needle in field.lower()
        for field in (item.title, item.description, item.location)
    )


def _function(
    name: ToolName,
    description: str,
    properties: dict[str, Any],
    required: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required or [],
                "additionalProperties": False,
            },
        },
    }


def create_wishlist_tools(
    db: AsyncSession,
    user_id: UUID,
    categories: list[CategoryResponse],
    settings: Settings,
) -> WishlistTools:
    """Create the tool registry for one caller.

    The returned registry closes over a store bound to ``user_id``.
    """
    return WishlistTools(
        WishlistStore(db, user_id),
        categories,
        directory=CategoryDirectory(db),
        duplicate_threshold=settings.duplicate_threshold,
        match_threshold=settings.match_threshold,
        default_query_limit=settings.default_query_limit,
        max_query_limit=settings.max_query_limit,
    )
