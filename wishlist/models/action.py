"""Action model: the verb attached to an item (watch, read, visit, try)."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from wishlist.models.base import Base


class Action(Base):
    """A global action shared by all users, looked up by name."""

    __tablename__ = "actions"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<Action {self.name}>"
