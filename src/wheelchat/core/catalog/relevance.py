"""Keyword relevance filter over raw catalog search results.

The catalog's own search is loose (it happily returns a front hub for
"rear hub", or a complete wheelset for "hub"), so results are re-ranked
and pruned here before being reported.  Rules, in order:

1. Tokens are lowercase words longer than two characters, minus
   stopwords.  The untouched query is kept for phrase matching.
2. A query naming exactly one of front/rear drops titles that lack it.
3. A query naming a component category ("hub", "rim", ...) drops
   candidates without the matching ``component:<category>`` tag.
4. Survivors score +50 for the full phrase in the title, +10 per token
   found in the title and +5 per token found in the tags.  With a
   non-empty token list, candidates matching no token are dropped.
5. Build context acts as a secondary signal: a known position or brake
   interface drops candidates whose title names only the opposing value,
   unless the query itself asks for that value; matching axle spacing,
   brake interface or position earns a bonus.
6. Results are sorted by score (catalog order breaks ties) and cut to
   ``top_n``; the pre-cut count is always reported.

Everything here is a pure function of its arguments.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from wheelchat.core.service.models.context import (
    BrakeInterface,
    BuildContext,
    Position,
)

from .models import ProductRecord

PHRASE_SCORE = 50
TITLE_TOKEN_SCORE = 10
TAG_TOKEN_SCORE = 5
AXLE_BONUS = 15
BRAKE_BONUS = 10
POSITION_BONUS = 5

MIN_TOKEN_LENGTH = 3
DEFAULT_TOP_N = 5

STOPWORDS = frozenset(
    {
        "stock",
        "available",
        "availability",
        "pair",
        "set",
        "the",
        "and",
        "for",
        "you",
        "any",
        "are",
        "have",
        "has",
        "what",
        "with",
        "does",
        "got",
        "need",
        "want",
        "check",
        "there",
        "options",
        "option",
        "too",
        "also",
        "please",
        "price",
        "lead",
        "time",
    }
)

CATEGORY_TAG_PREFIX = "component:"
CATEGORY_KEYWORDS = {
    "hub": "hub",
    "hubs": "hub",
    "rim": "rim",
    "rims": "rim",
    "spoke": "spoke",
    "spokes": "spoke",
    "nipple": "nipple",
    "nipples": "nipple",
    "valve": "valve",
    "valves": "valve",
    "tire": "tire",
    "tires": "tire",
    "tyre": "tire",
    "tyres": "tire",
}

_POSITIONS = {p.value: p for p in Position}

# Substrings that identify a brake interface in free text.
_BRAKE_MARKERS = {
    BrakeInterface.CENTERLOCK: ("centerlock", "center lock", "center-lock"),
    BrakeInterface.SIX_BOLT: ("6-bolt", "6 bolt", "six bolt", "6bolt"),
}

_WORD_RE = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*")
# Position and category words also count inside hyphenated words ("rear-148").
_PART_RE = re.compile(r"[a-z0-9]+")
_SPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ScoredProduct:
    product: ProductRecord
    score: int


@dataclass(frozen=True)
class RelevanceResult:
    """Ranked subset of a catalog search.

    ``total_candidates`` is what the catalog returned, ``total_matched``
    what survived filtering (before the ``top_n`` cut).
    """

    ranked: tuple[ScoredProduct, ...] = field(default_factory=tuple)
    total_matched: int = 0
    total_candidates: int = 0

    @property
    def products(self) -> list[ProductRecord]:
        return [item.product for item in self.ranked]

    @property
    def truncated(self) -> bool:
        return self.total_matched > len(self.ranked)


def words(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


def word_parts(text: str) -> list[str]:
    return _PART_RE.findall(text.lower())


def tokenize(query: str) -> list[str]:
    """Lowercase ranking tokens, stopwords removed, first occurrence kept."""
    seen: dict[str, None] = {}
    for word in words(query):
        if len(word) >= MIN_TOKEN_LENGTH and word not in STOPWORDS:
            seen.setdefault(word, None)
    return list(seen)


def query_positions(query: str) -> set[Position]:
    return {_POSITIONS[w] for w in word_parts(query) if w in _POSITIONS}


def query_categories(query: str) -> set[str]:
    return {CATEGORY_KEYWORDS[w] for w in word_parts(query) if w in CATEGORY_KEYWORDS}


def brake_interfaces_in(text: str) -> set[BrakeInterface]:
    lowered = text.lower()
    return {
        brake
        for brake, markers in _BRAKE_MARKERS.items()
        if any(marker in lowered for marker in markers)
    }


def _normalize_phrase(query: str) -> str:
    return _SPACE_RE.sub(" ", query.strip().lower())


def _searchable_text(product: ProductRecord) -> str:
    """Title, tags, variant titles and option values, lowercased."""
    parts = [product.title, *product.tags]
    for variant in product.variants:
        parts.append(variant.title)
        parts.extend(variant.selected_options.values())
    return " ".join(parts).lower()


def _excluded_by_position(
    title_positions: set[Position],
    asked: set[Position],
    context_position: Position | None,
) -> bool:
    if len(asked) == 1:
        (wanted,) = asked
        return wanted not in title_positions
    if asked or context_position is None:
        return False
    opposing = title_positions - {context_position}
    return bool(opposing) and context_position not in title_positions


def _excluded_by_brake(
    title_brakes: set[BrakeInterface],
    asked: set[BrakeInterface],
    context_brake: BrakeInterface | None,
) -> bool:
    wanted = asked or ({context_brake} if context_brake else set())
    if not wanted or not title_brakes:
        return False
    return not (title_brakes & wanted)


def _score(
    product: ProductRecord,
    phrase: str,
    tokens: list[str],
) -> tuple[int, int]:
    """Return (token score, phrase score)."""
    title = product.title.lower()
    tag_text = " ".join(product.lowered_tags)
    token_score = 0
    for token in tokens:
        if token in title:
            token_score += TITLE_TOKEN_SCORE
        if token in tag_text:
            token_score += TAG_TOKEN_SCORE
    phrase_score = PHRASE_SCORE if phrase and phrase in title else 0
    return token_score, phrase_score


def _context_bonus(
    product: ProductRecord,
    title_positions: set[Position],
    context: BuildContext,
) -> int:
    bonus = 0
    text = _searchable_text(product)
    if context.axle_spacing and context.axle_spacing in text:
        bonus += AXLE_BONUS
    if context.brake_interface and context.brake_interface in brake_interfaces_in(text):
        bonus += BRAKE_BONUS
    if context.position and context.position in title_positions:
        bonus += POSITION_BONUS
    return bonus


def filter_products(
    candidates: list[ProductRecord],
    query: str,
    context: BuildContext | None = None,
    top_n: int = DEFAULT_TOP_N,
) -> RelevanceResult:
    """Rank *candidates* against *query* and optional build *context*."""
    context = context or BuildContext()
    phrase = _normalize_phrase(query)
    tokens = tokenize(query)
    asked_positions = query_positions(query)
    asked_categories = query_categories(query)
    asked_brakes = brake_interfaces_in(query)

    scored: list[ScoredProduct] = []
    for product in candidates:
        title_positions = query_positions(product.title)
        if _excluded_by_position(title_positions, asked_positions, context.position):
            continue

        if asked_categories:
            tags = product.lowered_tags
            if not any(f"{CATEGORY_TAG_PREFIX}{c}" in tags for c in asked_categories):
                continue

        if _excluded_by_brake(
            brake_interfaces_in(product.title), asked_brakes, context.brake_interface
        ):
            continue

        token_score, phrase_score = _score(product, phrase, tokens)
        if tokens and token_score == 0 and phrase_score == 0:
            continue

        score = (
            token_score
            + phrase_score
            + _context_bonus(product, title_positions, context)
        )
        scored.append(ScoredProduct(product=product, score=score))

    # sorted() is stable, so equal scores keep catalog order.
    ranked = sorted(scored, key=lambda item: item.score, reverse=True)
    return RelevanceResult(
        ranked=tuple(ranked[: max(top_n, 0)]),
        total_matched=len(ranked),
        total_candidates=len(candidates),
    )
