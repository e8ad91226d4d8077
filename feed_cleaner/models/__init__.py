"""Item models and the classification client."""

from .items import (
    FALLBACK_RESULT,
    MUTED_RESULT,
    UNKNOWN_AUTHOR,
    Author,
    Category,
    ClassificationResult,
    ContentItem,
    InvalidTransition,
    ItemState,
)
from .llm_client import ClassificationClient, ClassificationError

__all__ = [
    'Author',
    'Category',
    'ClassificationClient',
    'ClassificationError',
    'ClassificationResult',
    'ContentItem',
    'FALLBACK_RESULT',
    'InvalidTransition',
    'ItemState',
    'MUTED_RESULT',
    'UNKNOWN_AUTHOR',
]
