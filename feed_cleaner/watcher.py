"""Processed-item bookkeeping and debounced re-scan triggering."""

from collections.abc import Callable, Iterator

from .document.base import DocumentTree
from .logging import get_logger
from .utils import Debouncer

logger = get_logger(__name__)


class ProcessedIndex:
    """Identities already claimed during this page lifetime.

    Entries are never removed; restoring a hidden item only changes its
    display state.
    """

    def __init__(self):
        self._identities: set[str] = set()

    def __contains__(self, identity: object) -> bool:
        return identity in self._identities

    def __len__(self) -> int:
        return len(self._identities)

    def __iter__(self) -> Iterator[str]:
        return iter(self._identities)

    def claim(self, identity: str) -> bool:
        """Insert ``identity``; False when it was already claimed."""
        if identity in self._identities:
            return False
        self._identities.add(identity)
        return True


class ChangeWatcher:
    """Turns document mutation notifications into debounced scans."""

    def __init__(self, document: DocumentTree, on_change: Callable[[], None], delay_ms: float = 300):
        self.document = document
        self.debouncer = Debouncer(delay_ms, on_change)
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def watching(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.document.subscribe(self._on_mutation)
            logger.debug("Watching document for changes")

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.debouncer.cancel()

    def _on_mutation(self) -> None:
        self.debouncer.trigger()
