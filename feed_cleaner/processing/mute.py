"""User mute-list matching."""

from collections.abc import Iterable


def is_muted(text: str, mute_terms: Iterable[str]) -> bool:
    """True when any non-empty mute term occurs in the text, ignoring case.

    Terms are expected to be lowercased already.
    """
    haystack = (text or "").lower()
    return any(term and term in haystack for term in mute_terms)


def matched_terms(text: str, mute_terms: Iterable[str]) -> list[str]:
    """The mute terms found in ``text``, for diagnostics."""
    haystack = (text or "").lower()
    return [term for term in mute_terms if term and term in haystack]
