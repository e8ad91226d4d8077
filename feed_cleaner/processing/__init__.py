"""Item discovery, extraction and normalization."""

from .extract import extract_author, extract_content, extract_text
from .identity import resolve_identity
from .locator import canonical_item, locate_items
from .mute import is_muted, matched_terms
from .selectors import DEFAULT_SELECTORS, FeedSelectors
from .text_utils import normalize_name, normalize_role

__all__ = [
    'DEFAULT_SELECTORS',
    'FeedSelectors',
    'canonical_item',
    'extract_author',
    'extract_content',
    'extract_text',
    'is_muted',
    'locate_items',
    'matched_terms',
    'normalize_name',
    'normalize_role',
    'resolve_identity',
]
