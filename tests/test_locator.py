"""Tests for item discovery and identity resolution."""

from conftest import make_feed, make_post

from feed_cleaner.document.base import Flag
from feed_cleaner.document.soup import SoupDocument
from feed_cleaner.processing.identity import resolve_identity
from feed_cleaner.processing.locator import canonical_item, is_eligible, locate_items
from feed_cleaner.utils import collapse_whitespace, text_hash


class TestResolveIdentity:
    """Identity rules, first match wins."""

    def test_urn_on_descendant(self):
        doc = SoupDocument(make_feed(make_post(urn="urn:li:activity:42")))
        handle = doc.query(".occludable-update")[0]
        assert resolve_identity(handle) == "urn:urn:li:activity:42"

    def test_urn_on_item_itself(self):
        doc = SoupDocument(
            '<article data-urn="urn:li:activity:7"><div class="feed-shared-text">Hello world, long enough</div></article>'
        )
        assert resolve_identity(doc.query("article")[0]) == "urn:urn:li:activity:7"

    def test_data_id_when_no_urn(self):
        doc = SoupDocument(make_feed(make_post(urn=None, extra_attrs=' data-id="urn:li:activity:9"')))
        handle = doc.query(".occludable-update")[0]
        assert resolve_identity(handle) == "dataid:urn:li:activity:9"

    def test_urn_beats_data_id(self):
        doc = SoupDocument(make_feed(make_post(urn="urn:li:activity:1", extra_attrs=' data-id="urn:li:activity:9"')))
        handle = doc.query(".occludable-update")[0]
        assert resolve_identity(handle) == "urn:urn:li:activity:1"

    def test_text_hash_fallback(self):
        doc = SoupDocument(make_feed(make_post(urn=None)))
        handle = doc.query(".occludable-update")[0]
        expected = text_hash(collapse_whitespace(handle.text())[:300])
        assert resolve_identity(handle) == f"txt:{expected}"

    def test_text_hash_stable_across_parses(self):
        markup = make_feed(make_post(urn=None))
        first = SoupDocument(markup).query(".occludable-update")[0]
        second = SoupDocument(markup).query(".occludable-update")[0]
        assert resolve_identity(first) == resolve_identity(second)

    def test_text_hash_uses_prefix_only(self):
        shared = "a" * 300
        doc = SoupDocument(make_feed(
            make_post(urn=None, text=shared + " first tail", name="", role=""),
            make_post(urn=None, text=shared + " second tail", name="", role=""),
        ))
        first, second = doc.query(".occludable-update")
        # Different items with the same leading text collide
        assert first.text() != second.text()
        assert resolve_identity(first) == resolve_identity(second)


class TestCanonicalItem:
    def test_inner_wrapper_maps_to_outer_container(self):
        doc = SoupDocument(make_feed(make_post()))
        inner = doc.query('div[data-urn^="urn:li:activity:"]')[0]
        outer = doc.query(".occludable-update")[0]
        assert canonical_item(inner).same_node(outer)

    def test_candidate_is_its_own_fallback(self):
        doc = SoupDocument('<article data-urn="urn:li:activity:3"><p>text</p></article>')
        article = doc.query("article")[0]
        assert canonical_item(article).same_node(article)


class TestEligibility:
    def test_visible_item_is_eligible(self):
        doc = SoupDocument(make_feed(make_post()))
        assert is_eligible(doc.query(".occludable-update")[0])

    def test_processed_item_not_eligible(self):
        doc = SoupDocument(make_feed(make_post()))
        handle = doc.query(".occludable-update")[0]
        handle.set_flag(Flag.PROCESSED)
        assert not is_eligible(handle)

    def test_hidden_marker_not_eligible(self):
        doc = SoupDocument(make_feed(make_post()))
        handle = doc.query(".occludable-update")[0]
        handle.set_flag(Flag.HIDDEN)
        assert not is_eligible(handle)

    def test_zero_size_not_eligible(self):
        doc = SoupDocument(make_feed(make_post(extra_attrs=' data-height="0"')))
        assert not is_eligible(doc.query(".occludable-update")[0])

    def test_hidden_ancestor_not_eligible(self):
        doc = SoupDocument(
            '<html><body><main style="display: none">' + make_post() + "</main></body></html>"
        )
        assert not is_eligible(doc.query(".occludable-update")[0])


class TestLocateItems:
    """Discovery over a whole document."""

    def test_nested_wrappers_yield_one_item_each(self, sample_feed):
        items = locate_items(sample_feed)
        assert [item.identity for item in items] == [
            "urn:urn:li:activity:1",
            "urn:urn:li:activity:2",
            "urn:urn:li:activity:3",
        ]

    def test_items_point_at_canonical_container(self, sample_feed):
        items = locate_items(sample_feed)
        outers = sample_feed.query(".occludable-update")
        for item, outer in zip(items, outers):
            assert item.handle.same_node(outer)

    def test_skips_hidden_and_processed(self):
        doc = SoupDocument(make_feed(
            make_post(urn="urn:li:activity:1", extra_attrs=" hidden"),
            make_post(urn="urn:li:activity:2", extra_attrs=' data-feed-cleaner-processed="1"'),
            make_post(urn="urn:li:activity:3", extra_attrs=' data-feed-cleaner-hidden="1"'),
            make_post(urn="urn:li:activity:4"),
        ))
        assert [item.identity for item in locate_items(doc)] == ["urn:urn:li:activity:4"]

    def test_duplicate_identities_keep_last_handle(self):
        doc = SoupDocument(make_feed(make_post(urn=None), make_post(urn=None)))
        items = locate_items(doc)
        assert len(items) == 1
        assert items[0].handle.same_node(doc.query(".occludable-update")[1])

    def test_items_start_discovered(self, sample_feed):
        from feed_cleaner.models.items import ItemState

        assert all(item.state is ItemState.DISCOVERED for item in locate_items(sample_feed))

    def test_empty_document(self):
        assert locate_items(SoupDocument("<html><body></body></html>")) == []
