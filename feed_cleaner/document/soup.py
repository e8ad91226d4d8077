"""BeautifulSoup-backed document tree for static feed snapshots and fixtures."""

from collections.abc import Callable
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup, Tag

from ..logging import get_logger
from .base import (
    BADGE_CLASS,
    INDICATOR_CLASS,
    MARKER_PREFIX,
    DocumentError,
    DocumentTree,
    Flag,
    Geometry,
    ItemHandle,
)

logger = get_logger(__name__)

# Flags stored as data attributes
ATTRIBUTE_FLAGS = {
    Flag.PROCESSED: f"data-{MARKER_PREFIX}-processed",
    Flag.HIDDEN: f"data-{MARKER_PREFIX}-hidden",
}

# Inline style saved while an item is hidden, restored verbatim on show
SAVED_STYLE_ATTRIBUTE = f"data-{MARKER_PREFIX}-style"

# Flags stored as classes, so page styles can target them
CLASS_FLAGS = {
    Flag.COLLAPSED: f"{MARKER_PREFIX}-hidden",
    Flag.BLURRED: f"{MARKER_PREFIX}-blur",
    Flag.INDICATOR: INDICATOR_CLASS,
    Flag.BADGE: BADGE_CLASS,
}


def _parse_style(style: str) -> list[tuple[str, str]]:
    declarations = []
    for part in style.split(";"):
        if ":" not in part:
            continue
        prop, value = part.split(":", 1)
        declarations.append((prop.strip().lower(), value.strip()))
    return declarations


def _render_style(declarations: list[tuple[str, str]]) -> str:
    return "; ".join(f"{prop}: {value}" for prop, value in declarations)


def _fragment_tag(markup: str) -> Tag:
    fragment = BeautifulSoup(markup, "html.parser")
    for child in fragment.contents:
        if isinstance(child, Tag):
            return child.extract()
    raise DocumentError("Markup does not contain an element")


class SoupHandle(ItemHandle):
    """Handle over a single BeautifulSoup tag."""

    def __init__(self, tag: Tag, document: "SoupDocument"):
        self.tag = tag
        self.document = document

    def __eq__(self, other: object) -> bool:
        return isinstance(other, SoupHandle) and other.tag is self.tag

    def __hash__(self) -> int:
        return id(self.tag)

    def __repr__(self) -> str:
        return f"SoupHandle(<{self.tag.name}>)"

    def _wrap(self, tag: Tag | None) -> Optional["SoupHandle"]:
        return SoupHandle(tag, self.document) if tag is not None else None

    def query(self, selector: str) -> list[ItemHandle]:
        return [SoupHandle(tag, self.document) for tag in self.tag.select(selector)]

    def closest(self, selector: str) -> ItemHandle | None:
        return self._wrap(self.tag.css.closest(selector))

    def text(self) -> str:
        return self.tag.get_text().strip()

    def get_attribute(self, name: str) -> str | None:
        value = self.tag.get(name)
        if isinstance(value, list):
            return " ".join(value)
        return value

    def has_flag(self, flag: Flag) -> bool:
        if flag in ATTRIBUTE_FLAGS:
            return self.tag.get(ATTRIBUTE_FLAGS[flag]) == "1"
        return CLASS_FLAGS[flag] in (self.tag.get("class") or [])

    def set_flag(self, flag: Flag, value: bool = True) -> None:
        if flag in ATTRIBUTE_FLAGS:
            attr = ATTRIBUTE_FLAGS[flag]
            if value:
                self.tag[attr] = "1"
            elif attr in self.tag.attrs:
                del self.tag[attr]
            return

        classes = list(self.tag.get("class") or [])
        name = CLASS_FLAGS[flag]
        if value and name not in classes:
            classes.append(name)
        elif not value and name in classes:
            classes.remove(name)

        if classes:
            self.tag["class"] = classes
        elif "class" in self.tag.attrs:
            del self.tag["class"]

    def is_displayed(self) -> bool:
        for prop, value in _parse_style(self.tag.get("style", "")):
            if prop == "display" and value.lower() == "none":
                return False
        return True

    def set_displayed(self, displayed: bool) -> None:
        """Toggle display through the inline style.

        Hiding saves the original style attribute; showing puts it back
        unchanged, including any display value it carried.
        """
        if displayed:
            if SAVED_STYLE_ATTRIBUTE in self.tag.attrs:
                self._set_style(self.tag[SAVED_STYLE_ATTRIBUTE])
                del self.tag[SAVED_STYLE_ATTRIBUTE]
                return
            current = _parse_style(self.tag.get("style", ""))
            declarations = [
                (prop, value) for prop, value in current
                if not (prop == "display" and value.lower() == "none")
            ]
            if len(declarations) != len(current):
                self._set_style(_render_style(declarations))
            return

        if SAVED_STYLE_ATTRIBUTE not in self.tag.attrs:
            self.tag[SAVED_STYLE_ATTRIBUTE] = self.tag.get("style", "")
        declarations = [
            (prop, value) for prop, value in _parse_style(self.tag.get("style", ""))
            if prop != "display"
        ]
        declarations.append(("display", "none"))
        self._set_style(_render_style(declarations))

    def _set_style(self, style: str) -> None:
        if style:
            self.tag["style"] = style
        elif "style" in self.tag.attrs:
            del self.tag["style"]

    def geometry(self) -> Geometry:
        """Approximate geometry for a snapshot without a layout engine.

        Nodes that are hidden themselves or through an ancestor have no size;
        explicit ``data-width``/``data-height`` attributes win otherwise.
        """
        node: Tag | None = self.tag
        while isinstance(node, Tag) and node.name != "[document]":
            if node.has_attr("hidden") or not SoupHandle(node, self.document).is_displayed():
                return Geometry(0, 0)
            node = node.parent

        try:
            width = float(self.tag.get("data-width", 1))
            height = float(self.tag.get("data-height", 1))
        except ValueError:
            width = height = 1.0
        return Geometry(width, height)

    def previous_sibling(self) -> ItemHandle | None:
        for sibling in self.tag.previous_siblings:
            if isinstance(sibling, Tag):
                return SoupHandle(sibling, self.document)
        return None

    def insert_before(self, markup: str) -> ItemHandle:
        if self.tag.parent is None:
            raise DocumentError("Cannot insert before a detached node")
        new_tag = _fragment_tag(markup)
        self.tag.insert_before(new_tag)
        self.document.notify()
        return SoupHandle(new_tag, self.document)

    def append(self, markup: str) -> ItemHandle:
        new_tag = _fragment_tag(markup)
        self.tag.append(new_tag)
        self.document.notify()
        return SoupHandle(new_tag, self.document)

    def remove(self) -> None:
        if self.tag.parent is None:
            return
        self.tag.extract()
        self.document.notify()

    def same_node(self, other: ItemHandle) -> bool:
        return self == other


class SoupDocument(DocumentTree):
    """A parsed HTML feed that reports its own child-list mutations."""

    def __init__(self, markup: str):
        self.soup = BeautifulSoup(markup, "html.parser")
        self._subscribers: list[Callable[[], None]] = []

    @classmethod
    def from_file(cls, path: str | Path) -> "SoupDocument":
        with open(path, encoding="utf-8") as f:
            return cls(f.read())

    def query(self, selector: str) -> list[ItemHandle]:
        return [SoupHandle(tag, self) for tag in self.soup.select(selector)]

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def notify(self) -> None:
        """Deliver a child-list mutation notification to every subscriber."""
        for callback in list(self._subscribers):
            callback()

    def append_html(self, markup: str, container: str | None = None) -> None:
        """Append more feed content, as infinite scrolling would."""
        parent = self.soup.select_one(container) if container else (self.soup.body or self.soup)
        if parent is None:
            raise DocumentError(f"No container matches {container!r}")
        fragment = BeautifulSoup(markup, "html.parser")
        for child in list(fragment.contents):
            parent.append(child.extract())
        logger.debug("Feed content appended", container=container)
        self.notify()

    def to_html(self) -> str:
        return str(self.soup)
