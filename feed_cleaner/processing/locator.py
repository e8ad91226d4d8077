"""Discovery of canonical, visible, unprocessed feed items."""

from ..document.base import DocumentTree, Flag, ItemHandle
from ..logging import get_logger, log_processing_stage
from ..models.items import ContentItem
from .identity import resolve_identity
from .selectors import DEFAULT_SELECTORS, FeedSelectors

logger = get_logger(__name__)


def canonical_item(handle: ItemHandle, selectors: FeedSelectors = DEFAULT_SELECTORS) -> ItemHandle:
    """Map a candidate to its outermost recognised container.

    The feed renders several nested wrappers per post; the canonical patterns
    are tried in priority order and the candidate itself is the fallback.
    """
    for pattern in selectors.canonical:
        container = handle.closest(pattern)
        if container is not None:
            return container
    return handle


def is_eligible(handle: ItemHandle) -> bool:
    """Visible, not hidden by us, and not already processed."""
    if handle.has_flag(Flag.HIDDEN) or handle.has_flag(Flag.PROCESSED):
        return False
    return handle.geometry().visible


def locate_items(
    document: DocumentTree,
    selectors: FeedSelectors = DEFAULT_SELECTORS
) -> list[ContentItem]:
    """Find the feed items that still need processing.

    Candidates are canonicalized, filtered for eligibility, and deduplicated
    by identity, keeping the last handle seen for each identity.
    """
    candidates: list[ItemHandle] = []
    for selector in selectors.candidates:
        candidates.extend(document.query(selector))

    by_identity: dict[str, ItemHandle] = {}
    eligible = 0
    for candidate in candidates:
        handle = canonical_item(candidate, selectors)
        if not is_eligible(handle):
            continue
        eligible += 1
        by_identity[resolve_identity(handle, selectors)] = handle

    logger.debug(
        "Items located",
        **log_processing_stage("locate", len(candidates), len(by_identity), eligible=eligible)
    )
    return [ContentItem(identity=identity, handle=handle) for identity, handle in by_identity.items()]
