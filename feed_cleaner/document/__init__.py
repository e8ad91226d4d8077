"""Document tree adapters."""

from .base import DocumentError, DocumentTree, Flag, Geometry, ItemHandle
from .soup import SoupDocument, SoupHandle

__all__ = [
    'DocumentError',
    'DocumentTree',
    'Flag',
    'Geometry',
    'ItemHandle',
    'SoupDocument',
    'SoupHandle',
]
