"""Exception taxonomy for the assistant core.

Tool-level failures (duplicates, unresolved identifiers, store errors) are
returned to the model as data and never escape the tool boundary. The
classes for them exist so the tool layer can raise internally and convert
in one place.
"""


class AssistantError(Exception):
    """Base class for assistant errors."""


class ValidationError(AssistantError):
    """A submission or tool call was malformed."""


class InvalidToolCall(ValidationError):
    """The model requested an unknown tool or passed arguments that fail the schema."""

    def __init__(self, tool_name: str, detail: str) -> None:
        super().__init__(f"Invalid call to {tool_name}: {detail}")
        self.tool_name = tool_name
        self.detail = detail


class DuplicateDetected(AssistantError):
    """An item close to the requested title already exists."""

    def __init__(self, title: str, similar_titles: list[str]) -> None:
        super().__init__(f"Potential duplicate of {similar_titles!r} for {title!r}")
        self.title = title
        self.similar_titles = similar_titles


class NoMatchFound(AssistantError):
    """No stored item resolves from a natural-language identifier."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f'No match found for "{identifier}"')
        self.identifier = identifier


class StoreError(AssistantError):
    """A persistence operation failed."""


class ItemNotFoundError(StoreError):
    """The item does not exist or belongs to another caller."""


class TransportError(AssistantError):
    """The model stream or the HTTP stream failed."""


class FrameDecodeError(TransportError):
    """A complete frame arrived but its payload could not be parsed."""


class SessionBusyError(AssistantError):
    """A submission was attempted while a turn is still in flight."""
