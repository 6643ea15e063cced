"""Pydantic schemas for request/response validation."""

from wishlist.schemas.assistant import (
    ChatMessageIn,
    ChatRequest,
    Message,
    Suggestion,
    SuggestionRequest,
    SuggestionsResponse,
    ToolInvocation,
    ToolResult,
)
from wishlist.schemas.category import CategoryResponse
from wishlist.schemas.common import HealthResponse
from wishlist.schemas.item import ItemCreate, ItemFilters, ItemSummary, SimilarItem

__all__ = [
    # Common
    "HealthResponse",
    # Assistant
    "ChatMessageIn",
    "ChatRequest",
    "Message",
    "ToolInvocation",
    "ToolResult",
    # Suggestions
    "Suggestion",
    "SuggestionRequest",
    "SuggestionsResponse",
    # Categories
    "CategoryResponse",
    # Items
    "ItemCreate",
    "ItemFilters",
    "ItemSummary",
    "SimilarItem",
]
