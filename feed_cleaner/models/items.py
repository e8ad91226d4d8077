"""Feed item and classification data structures."""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, field_validator

from ..document.base import ItemHandle

UNKNOWN_AUTHOR = "Unknown"


class ItemState(Enum):
    """Lifecycle of a feed item within one run."""
    DISCOVERED = "discovered"
    EXTRACTED = "extracted"
    MUTED = "muted"
    CLASSIFIED = "classified"
    HIDDEN = "hidden"
    BLURRED = "blurred"
    VISIBLE = "visible"


TERMINAL_STATES = frozenset({ItemState.HIDDEN, ItemState.BLURRED, ItemState.VISIBLE})


class Category(str, Enum):
    """Closed set of item categories."""
    PROMOTIONAL = "promotional"
    ENGAGEMENT_BAIT = "engagement_bait"
    ENTERTAINMENT = "entertainment"
    ACTIVITY = "activity"
    SUGGESTION = "suggestion"
    MUTED = "muted"
    NORMAL = "normal"

    @classmethod
    def parse(cls, value: object) -> "Category":
        """Map any oracle value onto the closed set, defaulting to NORMAL."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.NORMAL
        return cls.NORMAL


class ClassificationResult(BaseModel):
    """Informativeness score (0-10) and category for one item."""
    score: int
    category: Category = Category.NORMAL

    @field_validator("score")
    @classmethod
    def clamp_score(cls, v: int) -> int:
        return max(0, min(10, v))

    @field_validator("category", mode="before")
    @classmethod
    def parse_category(cls, v: object) -> Category:
        return Category.parse(v)


FALLBACK_RESULT = ClassificationResult(score=8, category=Category.NORMAL)
MUTED_RESULT = ClassificationResult(score=0, category=Category.MUTED)


@dataclass
class Author:
    """Author metadata pulled from the item's actor block."""
    name: str = ""
    role: str = ""
    avatar_ref: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or UNKNOWN_AUTHOR


class InvalidTransition(Exception):
    """An item tried to move backwards in its lifecycle."""
    pass


_ALLOWED_TRANSITIONS = {
    ItemState.DISCOVERED: {ItemState.EXTRACTED},
    ItemState.EXTRACTED: {ItemState.MUTED, ItemState.CLASSIFIED},
    ItemState.MUTED: {ItemState.HIDDEN, ItemState.BLURRED},
    ItemState.CLASSIFIED: {ItemState.HIDDEN, ItemState.BLURRED, ItemState.VISIBLE},
}


@dataclass
class ContentItem:
    """One logical feed item located during a scan.

    The handle is borrowed from the document tree and must not outlive the
    run that discovered the item.
    """
    identity: str
    handle: ItemHandle
    text: str = ""
    author: Author = field(default_factory=Author)
    state: ItemState = ItemState.DISCOVERED
    result: ClassificationResult | None = None

    @property
    def terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, state: ItemState) -> None:
        """Move to ``state``; only forward transitions are allowed."""
        if state not in _ALLOWED_TRANSITIONS.get(self.state, set()):
            raise InvalidTransition(f"{self.identity}: {self.state.value} -> {state.value}")
        self.state = state
