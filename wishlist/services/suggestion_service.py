"""Generates "more like this" suggestions for a wishlist item."""

import json
import logging
import re
from typing import Any

from fastapi import HTTPException, status
from langchain_core.messages import HumanMessage
from langchain_openai import ChatOpenAI
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from wishlist.core.config import Settings, get_settings
from wishlist.schemas.assistant import Suggestion, SuggestionRequest
from wishlist.services.assistant.prompts import SUGGESTION_PROMPT

logger = logging.getLogger(__name__)

SUGGESTION_COUNT = 3

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
_suggestions_adapter = TypeAdapter(list[Suggestion])


def parse_suggestions(content: str) -> list[Suggestion]:
    """Pull the JSON array of suggestions out of a model reply.

    Raises:
        ValueError: If no valid array of suggestions can be found.
    """
    # Strip markdown code fences if present
    text = re.sub(r"^```(?:json)?\s*\n?", "", content.strip())
    text = re.sub(r"\n?```\s*$", "", text.strip())

    match = _JSON_ARRAY.search(text)
    raw = match.group(0) if match else text
    try:
        parsed: Any = json.loads(raw)
        suggestions = _suggestions_adapter.validate_python(parsed)
    except (json.JSONDecodeError, PydanticValidationError) as e:
        raise ValueError(f"Unparseable suggestions: {e}") from e

    if not suggestions:
        raise ValueError("Model returned no suggestions")
    return suggestions[:SUGGESTION_COUNT]


class SuggestionService:
    """Asks the chat model for items similar to one the user already has."""

    def __init__(self, settings: Settings | None = None, llm: Any = None) -> None:
        self.settings = settings or get_settings()
        self.llm = llm or ChatOpenAI(
            model=self.settings.suggestion_model,
            api_key=self.settings.openai_api_key,
            temperature=0.7,
        )

    async def suggest(self, request: SuggestionRequest) -> list[Suggestion]:
        """Generate suggestions similar to the given item.

        Args:
            request: The item's action verb, title and optional category.

        Returns:
            Up to three validated suggestions.

        Raises:
            HTTPException: 503 if the model call fails, 502 if its reply cannot be parsed.
        """
        prompt = SUGGESTION_PROMPT.format(
            action=request.action,
            title=request.title,
            category_line=f"Category: {request.category}" if request.category else "",
        )

        try:
            response = await self.llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.exception("Failed to generate suggestions: %s", e)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="AI service temporarily unavailable. Please try again.",
            ) from e

        content = response.content if isinstance(response.content, str) else ""
        try:
            suggestions = parse_suggestions(content)
        except ValueError:
            logger.warning("Failed to parse suggestions response: %s", content[:500])
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to parse AI suggestions",
            ) from None

        logger.info("Generated %d suggestions for %r", len(suggestions), request.title)
        return suggestions
