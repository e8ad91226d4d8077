"""Stable identities for feed items."""

from ..document.base import ItemHandle
from ..utils import collapse_whitespace, text_hash
from .selectors import DEFAULT_SELECTORS, FeedSelectors

HASH_PREFIX_LENGTH = 300


def _attribute_on_self_or_descendant(
    handle: ItemHandle,
    attribute: str,
    descendant_selector: str
) -> str | None:
    if handle.get_attribute(attribute):
        return handle.get_attribute(attribute)
    node = handle.query_first(descendant_selector)
    return node.get_attribute(attribute) if node is not None else None


def resolve_identity(handle: ItemHandle, selectors: FeedSelectors = DEFAULT_SELECTORS) -> str:
    """Derive a stable identifier for an item.

    Rules, first match wins:

    1. platform activity URN on the item or a descendant -> ``urn:<value>``
    2. data identifier on the item or a descendant -> ``dataid:<value>``
    3. hash of the first 300 characters of whitespace-collapsed text ->
       ``txt:<hash>``

    Two different items sharing the same 300-character text prefix collide
    under rule 3; that is a known limitation.
    """
    urn = _attribute_on_self_or_descendant(handle, selectors.urn_attribute, selectors.urn_descendant)
    if urn:
        return f"urn:{urn}"

    data_id = _attribute_on_self_or_descendant(
        handle, selectors.data_id_attribute, selectors.data_id_descendant
    )
    if data_id:
        return f"dataid:{data_id}"

    text = collapse_whitespace(handle.text())[:HASH_PREFIX_LENGTH]
    return f"txt:{text_hash(text)}"
