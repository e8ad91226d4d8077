"""Pytest configuration and fixtures."""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Set test environment
os.environ["FEED_CLEANER_API_KEY"] = ""
os.environ["FEED_CLEANER_LOG_LEVEL"] = "DEBUG"
os.environ["FEED_CLEANER_JSON_LOGGING"] = "false"


def make_post(
    urn: str | None = "urn:li:activity:1",
    text: str = "Five steps to cut inference cost by 30 percent, with code and numbers.",
    name: str = "Jane Smith",
    role: str = "Staff Engineer at Example",
    avatar: str | None = "https://cdn.example.com/jane.png",
    extra_attrs: str = ""
) -> str:
    """Markup for one feed post, shaped like the real feed."""
    urn_attr = f' data-urn="{urn}"' if urn else ""
    avatar_html = (
        f'<img class="update-components-actor__avatar-image" src="{avatar}">'
        if avatar else ""
    )
    return f"""
<div class="occludable-update"{extra_attrs}>
  <div class="feed-shared-update-v2"{urn_attr}>
    <div class="update-components-actor">
      {avatar_html}
      <span class="update-components-actor__name"><span>{name}</span></span>
      <span class="update-components-actor__sub-description">{role}</span>
    </div>
    <div class="feed-shared-text"><span>{text}</span></div>
  </div>
</div>"""


def make_feed(*posts: str) -> str:
    return f'<html><body><main class="feed">{"".join(posts)}</main></body></html>'


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def settings():
    """Settings with a short debounce for watcher tests."""
    from feed_cleaner.config import Settings

    return Settings(debounce_ms=10, rate_limit=100, rate_window_ms=60_000)


@pytest.fixture
def preferences():
    from feed_cleaner.config import FilterPreferences

    return FilterPreferences(api_key="test-key", filter_mode="hide", mute_words=["crypto"])


@pytest.fixture
def sample_feed():
    """A feed with one informative post, one promotional post and one muted post."""
    from feed_cleaner.document.soup import SoupDocument

    return SoupDocument(make_feed(
        make_post(urn="urn:li:activity:1"),
        make_post(
            urn="urn:li:activity:2",
            text="We're hiring! Sign up for our webinar today, limited seats.",
            name="Acme Corp"
        ),
        make_post(
            urn="urn:li:activity:3",
            text="Check out my new Crypto project launching next week",
            name="Bob Jones"
        ),
    ))
