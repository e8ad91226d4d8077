"""Author name and role normalization.

Both normalizers are ordered rule lists. Each rule pairs a predicate with a
transform, so rules can be tested and reordered on their own.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from ..utils import truncate_text

BULLETS = "·•"
MAX_ROLE_LENGTH = 160

_MULTI_SPACE = re.compile(r"\s{2,}")
_TRAILING_BULLET = re.compile(r"\s*•.*$", re.DOTALL)
_CONNECTION_DEGREE = re.compile(r"\s+\d+(st|nd|rd|th)\b.*", re.DOTALL)
_DEGREE_MARKER = re.compile(r"\b\d+(st|nd|rd|th)\b", re.IGNORECASE)
_BULLET_RUN = re.compile(f"[{BULLETS}]+")
_ROLE_SEPARATOR = re.compile(rf"\s*[{BULLETS}|\-–—]+\s|\.(?=\s|[A-Z])")
_META_PHRASE = re.compile(
    r"(\b\d+\s*(h|hour|hours|d|day|days|w|week|weeks|mo|month|months|y|year|years)\b"
    r"|edited|visible to anyone|followers|connections)",
    re.IGNORECASE,
)
_GENERIC_TAG = re.compile(r"(^|\b)(premium|influencer|opentowork|open to work)($|\b)", re.IGNORECASE)


@dataclass(frozen=True)
class TextRule:
    """A named rewrite applied only when its predicate holds."""
    name: str
    applies: Callable[[str], bool]
    transform: Callable[[str], str]

    def __call__(self, text: str) -> str:
        return self.transform(text) if self.applies(text) else text


def apply_rules(text: str, rules: tuple[TextRule, ...]) -> str:
    """Run ``text`` through ``rules`` in order."""
    for rule in rules:
        text = rule(text)
    return text


def _always(text: str) -> bool:
    return True


def collapse_duplicate_tokens(text: str) -> str:
    """``"John Doe John Doe"`` -> ``"John Doe"``."""
    tokens = text.split()
    if not tokens or len(tokens) % 2:
        return text
    half = len(tokens) // 2
    first, second = " ".join(tokens[:half]), " ".join(tokens[half:])
    return first if first == second else text


def _is_self_concatenation(text: str) -> bool:
    compact = "".join(text.split())
    half = len(compact) // 2
    return bool(compact) and len(compact) % 2 == 0 and compact[:half] == compact[half:]


def collapse_self_concatenation(text: str) -> str:
    """``"John DoeJohn Doe"`` -> ``"John Doe"``.

    Works on the whitespace-stripped string and keeps the original spacing
    of the first copy.
    """
    if not _is_self_concatenation(text):
        return text
    wanted = len("".join(text.split())) // 2
    seen = 0
    for index, ch in enumerate(text):
        if not ch.isspace():
            seen += 1
            if seen == wanted:
                return text[:index + 1].strip()
    return text


def collapse_duplicate_halves(text: str) -> str:
    """``"Engineer Engineer"`` -> ``"Engineer"`` on raw characters.

    Odd lengths skip the middle character, which is usually the joining space.
    """
    mid = len(text) // 2
    first = text[:mid]
    second = text[mid if len(text) % 2 == 0 else mid + 1:]
    if first == second:
        return first.strip()
    return text


NAME_RULES: tuple[TextRule, ...] = (
    TextRule("trim", _always, str.strip),
    TextRule("trailing_bullet", lambda t: "•" in t, lambda t: _TRAILING_BULLET.sub("", t)),
    TextRule(
        "connection_degree",
        lambda t: bool(_CONNECTION_DEGREE.search(t)),
        lambda t: _CONNECTION_DEGREE.sub("", t, count=1)
    ),
    TextRule("collapse_spaces", _always, lambda t: _MULTI_SPACE.sub(" ", t).strip()),
    TextRule("duplicate_tokens", lambda t: len(t.split()) % 2 == 0, collapse_duplicate_tokens),
    TextRule("self_concatenation", _is_self_concatenation, collapse_self_concatenation),
)


def normalize_name(raw: str | None) -> str:
    """Clean an author name scraped from a feed item.

    Args:
        raw: Raw name text

    Returns:
        Normalized name, or an empty string
    """
    if not raw:
        return ""
    return apply_rules(str(raw), NAME_RULES).strip()


# Segment filters: (name, predicate(segment, author_name)) -> drop when True
SegmentFilter = tuple[str, Callable[[str, str], bool]]

ROLE_SEGMENT_FILTERS: tuple[SegmentFilter, ...] = (
    ("author_name", lambda seg, author: bool(author) and author.lower() in seg.lower()),
    ("connection_degree", lambda seg, author: bool(_DEGREE_MARKER.search(seg))),
    ("meta_phrase", lambda seg, author: bool(_META_PHRASE.search(seg))),
    ("generic_tag", lambda seg, author: bool(_GENERIC_TAG.search(seg))),
)

ROLE_PREPARE_RULES: tuple[TextRule, ...] = (
    TextRule("trim", _always, str.strip),
    TextRule("collapse_spaces", _always, lambda t: _MULTI_SPACE.sub(" ", t)),
    TextRule("normalize_bullets", lambda t: bool(_BULLET_RUN.search(t)), lambda t: _BULLET_RUN.sub(" • ", t)),
    TextRule("trim", _always, str.strip),
)

ROLE_SEGMENT_RULES: tuple[TextRule, ...] = (
    TextRule("collapse_spaces", _always, lambda t: _MULTI_SPACE.sub(" ", t).strip()),
    TextRule("duplicate_halves", _always, collapse_duplicate_halves),
)


def split_role_segments(text: str) -> list[str]:
    """Split on bullet, pipe and dash separators and on sentence ends."""
    return [s.strip() for s in _ROLE_SEPARATOR.split(text) if s and s.strip()]


def normalize_role(raw: str | None, author_name: str = "") -> str:
    """Clean an author headline into a short comma-separated role.

    Args:
        raw: Raw headline text
        author_name: Normalized author name, dropped from the headline

    Returns:
        Normalized role, at most 160 characters plus an ellipsis
    """
    if not raw:
        return ""

    text = apply_rules(str(raw), ROLE_PREPARE_RULES)

    seen: set[str] = set()
    cleaned: list[str] = []
    for segment in split_role_segments(text):
        if any(drop(segment, author_name) for _, drop in ROLE_SEGMENT_FILTERS):
            continue
        segment = apply_rules(segment, ROLE_SEGMENT_RULES)
        if not segment:
            continue
        key = segment.lower()
        if key in seen:
            continue
        seen.add(key)
        cleaned.append(segment)

    return truncate_text(", ".join(cleaned), MAX_ROLE_LENGTH)
