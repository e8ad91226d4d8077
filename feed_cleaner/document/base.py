"""Document tree capability surface used by the filter core."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Optional


MARKER_PREFIX = "feed-cleaner"
INDICATOR_CLASS = f"{MARKER_PREFIX}-indicator"
BADGE_CLASS = f"{MARKER_PREFIX}-score-badge"


class DocumentError(Exception):
    """Structural document operation failed."""
    pass


class Flag(Enum):
    """Boolean markers the filter writes onto item handles."""
    PROCESSED = "processed"
    HIDDEN = "hidden"
    COLLAPSED = "collapsed"
    BLURRED = "blurred"
    INDICATOR = "indicator"
    BADGE = "badge"


@dataclass(frozen=True)
class Geometry:
    """Rendered size of a node."""
    width: float
    height: float

    @property
    def visible(self) -> bool:
        return self.width > 0 and self.height > 0


class ItemHandle(ABC):
    """A borrowed reference to one node of the document tree."""

    @abstractmethod
    def query(self, selector: str) -> list["ItemHandle"]:
        """All descendants matching ``selector``, in document order."""

    def query_first(self, selector: str) -> Optional["ItemHandle"]:
        """First descendant matching ``selector``."""
        matches = self.query(selector)
        return matches[0] if matches else None

    @abstractmethod
    def closest(self, selector: str) -> Optional["ItemHandle"]:
        """Nearest ancestor-or-self matching ``selector``."""

    @abstractmethod
    def text(self) -> str:
        """Trimmed text content."""

    @abstractmethod
    def get_attribute(self, name: str) -> str | None:
        """Attribute value, or None when absent."""

    @abstractmethod
    def has_flag(self, flag: Flag) -> bool:
        """Whether ``flag`` is set."""

    @abstractmethod
    def set_flag(self, flag: Flag, value: bool = True) -> None:
        """Set or clear ``flag``."""

    @abstractmethod
    def is_displayed(self) -> bool:
        """Whether the node takes part in layout."""

    @abstractmethod
    def set_displayed(self, displayed: bool) -> None:
        """Toggle the node's display state."""

    @abstractmethod
    def geometry(self) -> Geometry:
        """Rendered size."""

    @abstractmethod
    def previous_sibling(self) -> Optional["ItemHandle"]:
        """Preceding element sibling."""

    @abstractmethod
    def insert_before(self, markup: str) -> "ItemHandle":
        """Insert ``markup`` as the preceding sibling and return its handle."""

    @abstractmethod
    def append(self, markup: str) -> "ItemHandle":
        """Append ``markup`` as the last child and return its handle."""

    @abstractmethod
    def remove(self) -> None:
        """Detach the node from the tree."""

    @abstractmethod
    def same_node(self, other: "ItemHandle") -> bool:
        """Whether both handles point at the same node."""


class DocumentTree(ABC):
    """The tree being filtered, with a mutation subscription."""

    @abstractmethod
    def query(self, selector: str) -> list[ItemHandle]:
        """All nodes matching ``selector``."""

    @abstractmethod
    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a child-list mutation callback; returns an unsubscribe function."""
