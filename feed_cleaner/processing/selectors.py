"""Structural selectors for the feed markup."""

from dataclasses import dataclass

ACTIVITY_URN_PREFIX = "urn:li:activity:"


@dataclass(frozen=True)
class FeedSelectors:
    """CSS selectors describing where things live in a feed item.

    Every tuple is ordered by priority.
    """

    # Item discovery
    candidates: tuple[str, ...] = (
        ".occludable-update",
        f'article[data-urn^="{ACTIVITY_URN_PREFIX}"]',
        f'div[data-urn^="{ACTIVITY_URN_PREFIX}"]',
    )
    canonical: tuple[str, ...] = (
        ".occludable-update",
        f'article[data-urn^="{ACTIVITY_URN_PREFIX}"]',
        f'div[data-urn^="{ACTIVITY_URN_PREFIX}"]',
    )

    # Identity
    urn_attribute: str = "data-urn"
    urn_descendant: str = f'[data-urn^="{ACTIVITY_URN_PREFIX}"]'
    data_id_attribute: str = "data-id"
    data_id_descendant: str = f'[data-id*="{ACTIVITY_URN_PREFIX}"]'

    # Body text
    body_text: tuple[str, ...] = (
        ".feed-shared-text",
        ".attributed-text-segment-list__content",
        ".feed-shared-inline-show-more-text",
        ".feed-shared-text__text-view",
        ".update-components-text",
        '[data-test-id="main-feed-activity-card"] .attributed-text-segment-list__content',
    )

    # Author block
    actor: str = (
        ".update-components-actor, .feed-shared-actor, "
        ".update-components-actor__meta, header"
    )
    name_link: str = '.update-components-actor__name a, .feed-shared-actor__name a, a[href*="/in/"]'
    names: tuple[str, ...] = (
        ".update-components-actor__name",
        ".feed-shared-actor__name",
        "a.update-components-actor__meta-link",
        '[data-test-id="actor-name"]',
        "span.update-components-actor__name",
    )
    roles: tuple[str, ...] = (
        ".update-components-actor__sub-description",
        ".feed-shared-actor__sub-description",
    )
    avatars: tuple[str, ...] = (
        "img.update-components-actor__avatar-image",
        "img.feed-shared-actor__avatar-image",
        "img.entity-image",
        "img.ivm-view-attr__img--entity",
    )
    avatar_attributes: tuple[str, ...] = ("src", "data-delayed-url", "data-src")

    # Badge placement
    header: str = ".update-components-header, .feed-shared-actor, header"


DEFAULT_SELECTORS = FeedSelectors()
