"""Text and author extraction from located feed items."""

from ..document.base import ItemHandle
from ..models.items import Author, ContentItem, ItemState
from .selectors import DEFAULT_SELECTORS, FeedSelectors
from .text_utils import normalize_name, normalize_role

MIN_NAME_LENGTH = 1
MAX_NAME_LENGTH = 120


def extract_text(handle: ItemHandle, selectors: FeedSelectors = DEFAULT_SELECTORS) -> str:
    """Join the first match of every body-text selector, in priority order."""
    parts = []
    for selector in selectors.body_text:
        node = handle.query_first(selector)
        if node is not None:
            parts.append(node.text())
    return " ".join(parts).strip()


def actor_region(handle: ItemHandle, selectors: FeedSelectors = DEFAULT_SELECTORS) -> ItemHandle:
    return handle.query_first(selectors.actor) or handle


def extract_name(actor: ItemHandle, selectors: FeedSelectors = DEFAULT_SELECTORS) -> str:
    """Author name from the direct profile link, else the name selectors."""
    link = actor.query_first(selectors.name_link)
    if link is not None and link.text():
        return normalize_name(link.text())

    for selector in selectors.names:
        node = actor.query_first(selector)
        if node is None or not node.text():
            continue
        name = normalize_name(node.text())
        if MIN_NAME_LENGTH < len(name) < MAX_NAME_LENGTH:
            return name
    return ""


def extract_role(actor: ItemHandle, author_name: str, selectors: FeedSelectors = DEFAULT_SELECTORS) -> str:
    for selector in selectors.roles:
        node = actor.query_first(selector)
        if node is not None and node.text():
            return normalize_role(node.text(), author_name)
    return ""


def extract_avatar(actor: ItemHandle, selectors: FeedSelectors = DEFAULT_SELECTORS) -> str | None:
    for selector in selectors.avatars:
        image = actor.query_first(selector)
        if image is None:
            continue
        for attribute in selectors.avatar_attributes:
            source = image.get_attribute(attribute)
            if source:
                return source
    return None


def extract_author(handle: ItemHandle, selectors: FeedSelectors = DEFAULT_SELECTORS) -> Author:
    """Name, role and avatar. Missing pieces stay empty."""
    actor = actor_region(handle, selectors)
    name = extract_name(actor, selectors)
    return Author(
        name=name,
        role=extract_role(actor, name, selectors),
        avatar_ref=extract_avatar(actor, selectors)
    )


def extract_content(item: ContentItem, selectors: FeedSelectors = DEFAULT_SELECTORS) -> ContentItem:
    """Fill in the item's text and author and mark it extracted."""
    item.text = extract_text(item.handle, selectors)
    item.author = extract_author(item.handle, selectors)
    item.advance(ItemState.EXTRACTED)
    return item
