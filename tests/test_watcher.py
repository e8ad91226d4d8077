"""Tests for the processed index and the change watcher."""

import asyncio

import pytest
from conftest import make_post

from feed_cleaner.watcher import ChangeWatcher, ProcessedIndex


def test_processed_index_claims_once():
    index = ProcessedIndex()

    assert index.claim("urn:a")
    assert not index.claim("urn:a")
    assert "urn:a" in index
    assert "urn:b" not in index
    assert len(index) == 1
    assert list(index) == ["urn:a"]


class TestChangeWatcher:
    """Mutation notifications to debounced callbacks."""

    @pytest.mark.asyncio
    async def test_burst_of_mutations_fires_once(self, sample_feed):
        calls = []
        watcher = ChangeWatcher(sample_feed, lambda: calls.append(1), delay_ms=10)
        watcher.start()

        for n in range(4, 8):
            sample_feed.append_html(make_post(urn=f"urn:li:activity:{n}"))

        await asyncio.sleep(0.05)
        assert calls == [1]
        watcher.stop()

    @pytest.mark.asyncio
    async def test_stop_unsubscribes_and_cancels(self, sample_feed):
        calls = []
        watcher = ChangeWatcher(sample_feed, lambda: calls.append(1), delay_ms=10)
        watcher.start()
        assert watcher.watching

        sample_feed.append_html(make_post(urn="urn:li:activity:4"))
        watcher.stop()
        sample_feed.append_html(make_post(urn="urn:li:activity:5"))

        await asyncio.sleep(0.03)
        assert calls == []
        assert not watcher.watching

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, sample_feed):
        calls = []
        watcher = ChangeWatcher(sample_feed, lambda: calls.append(1), delay_ms=10)
        watcher.start()
        watcher.start()

        sample_feed.append_html(make_post(urn="urn:li:activity:4"))
        await asyncio.sleep(0.03)

        assert calls == [1]
        watcher.stop()
