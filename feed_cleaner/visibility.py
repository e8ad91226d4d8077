"""Reversible concealment and score annotation of feed items."""

from dataclasses import dataclass

from jinja2 import Environment, PackageLoader, select_autoescape

from .config import FilterMode
from .document.base import BADGE_CLASS, INDICATOR_CLASS, Flag, ItemHandle
from .logging import get_logger
from .models.items import ContentItem, ItemState
from .policy import Action, PolicyDecision
from .processing.selectors import DEFAULT_SELECTORS, FeedSelectors
from .utils import truncate_words

logger = get_logger(__name__)

PREVIEW_WORDS = 10


class IndicatorRenderer:
    """Jinja2 rendering of indicator and badge markup."""

    def __init__(self):
        self.jinja_env = Environment(
            loader=PackageLoader("feed_cleaner", "templates"),
            autoescape=select_autoescape(default=True),
            trim_blocks=True,
            lstrip_blocks=True
        )

    def indicator(self, item: ContentItem, decision: PolicyDecision, mode: FilterMode) -> str:
        template = self.jinja_env.get_template("indicator.html.j2")
        return template.render(
            indicator_class=INDICATOR_CLASS,
            identity=item.identity,
            mode=mode.value,
            author=item.author,
            preview=truncate_words(item.text, PREVIEW_WORDS),
            label=decision.label
        )

    def badge(self, score: int) -> str:
        template = self.jinja_env.get_template("badge.html.j2")
        return template.render(badge_class=BADGE_CLASS, score=score)


@dataclass
class Indicator:
    """The inserted notice standing in for a concealed item."""
    identity: str
    item: ItemHandle
    handle: ItemHandle
    mode: FilterMode

    def restore(self) -> None:
        """Undo the concealment and drop the notice.

        Processed-index membership is untouched; only display state changes.
        """
        if self.mode is FilterMode.BLUR:
            self.item.set_flag(Flag.BLURRED, False)
        else:
            self.item.set_displayed(True)
        self.handle.remove()
        self.item.set_flag(Flag.COLLAPSED, False)
        self.item.set_flag(Flag.HIDDEN, False)


class VisibilityController:
    """Applies policy decisions to item handles.

    The concealment mode is global for the controller: every hidden item is
    either collapsed out of layout or blurred in place.
    """

    def __init__(
        self,
        mode: FilterMode = FilterMode.HIDE,
        renderer: IndicatorRenderer | None = None,
        selectors: FeedSelectors = DEFAULT_SELECTORS
    ):
        self.mode = FilterMode(mode)
        self.renderer = renderer or IndicatorRenderer()
        self.selectors = selectors
        self.indicators: dict[str, Indicator] = {}

    def apply(self, item: ContentItem, decision: PolicyDecision) -> None:
        if decision.action is Action.HIDE:
            self.conceal(item, decision)
        else:
            self.badge(item, decision.score)

    def conceal(self, item: ContentItem, decision: PolicyDecision) -> Indicator | None:
        """Hide or blur an item and insert its indicator.

        The indicator is inserted before the item is touched, so a rendering
        or insertion failure leaves the item visible.

        Returns None when the item already has an indicator.
        """
        handle = item.handle
        concealed_state = ItemState.BLURRED if self.mode is FilterMode.BLUR else ItemState.HIDDEN

        previous = handle.previous_sibling()
        if previous is not None and previous.has_flag(Flag.INDICATOR):
            logger.debug("Indicator already present", identity=item.identity)
            item.advance(concealed_state)
            return None

        markup = self.renderer.indicator(item, decision, self.mode)
        notice = handle.insert_before(markup)
        notice.set_flag(Flag.INDICATOR)
        indicator = Indicator(item.identity, handle, notice, self.mode)
        self.indicators[item.identity] = indicator

        if self.mode is FilterMode.BLUR:
            handle.set_flag(Flag.BLURRED)
        else:
            handle.set_displayed(False)
            handle.set_flag(Flag.COLLAPSED)
        handle.set_flag(Flag.HIDDEN)
        item.advance(concealed_state)

        logger.info(
            "Item concealed",
            identity=item.identity,
            mode=self.mode.value,
            reason=decision.reason,
            score=decision.score
        )
        return indicator

    def restore(self, identity: str) -> bool:
        """Run the restore action of an item's indicator."""
        indicator = self.indicators.pop(identity, None)
        if indicator is None:
            return False
        indicator.restore()
        logger.info("Item restored", identity=identity)
        return True

    def badge(self, item: ContentItem, score: int) -> ItemHandle | None:
        """Annotate a visible item with its score, once."""
        handle = item.handle
        item.advance(ItemState.VISIBLE)
        if handle.query_first(f".{BADGE_CLASS}") is not None:
            return None

        target = handle.query_first(self.selectors.header) or handle
        badge = target.append(self.renderer.badge(score))
        badge.set_flag(Flag.BADGE)
        return badge
