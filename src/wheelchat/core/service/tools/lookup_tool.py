"""``lookup_product``: catalog search → relevance filter → stock report.

Before any network call the tool checks whether the query is
answerable at all: asking for a hub without saying front or rear (and
without a position in the build context) returns a clarification
outcome instead of searching.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from wheelchat.configs.system import CatalogConfig
from wheelchat.core.catalog.client import CatalogClient, CatalogError
from wheelchat.core.catalog.relevance import (
    RelevanceResult,
    brake_interfaces_in,
    filter_products,
    query_categories,
    query_positions,
    word_parts,
    words,
)
from wheelchat.core.catalog.stock import summarize_products
from wheelchat.core.service.metrics import CATALOG_LOOKUPS_TOTAL
from wheelchat.core.service.models import TOOL_LOOKUP_PRODUCT, BuildContext

from .model import BaseChatTool, Clarification, ToolOutcome

logger = logging.getLogger(__name__)

CLARIFY_FIELD_POSITION = "position"

# Categories sold separately for the front and rear wheel.
POSITIONAL_CATEGORIES = frozenset({"hub"})
# Words that settle the front/rear question on their own.
POSITION_RESOLVING_WORDS = frozenset(
    {"front", "rear", "pair", "set", "both", "wheelset"}
)

# Ranking-only words stripped from the text sent to catalog search.
SEARCH_NOISE_WORDS = frozenset(
    {
        "hub",
        "hubs",
        "front",
        "rear",
        "pair",
        "set",
        "stock",
        "in",
        "available",
        "availability",
        "is",
        "the",
        "a",
        "an",
        "do",
        "you",
        "have",
        "any",
        "check",
        "options",
        "too",
        "price",
        "lead",
        "time",
        "for",
    }
)

LOOKUP_OUTCOME_OK = "ok"
LOOKUP_OUTCOME_EMPTY = "empty"
LOOKUP_OUTCOME_FILTERED = "filtered_out"
LOOKUP_OUTCOME_ERROR = "error"
LOOKUP_OUTCOME_CLARIFY = "clarify"


class LookupProductArgs(BaseModel):
    query: str = Field(
        min_length=1,
        max_length=200,
        description=(
            "Product search text, e.g. 'Hope Pro 5 rear hub' or 'Reserve 30 SL rim'. "
            "Include front/rear when the customer said it."
        ),
    )


def needs_position(query: str, build: BuildContext) -> bool:
    """True when *query* names a front/rear-specific part and nothing resolves which."""
    if not (query_categories(query) & POSITIONAL_CATEGORIES):
        return False
    if build.position is not None:
        return False
    return not (set(word_parts(query)) & POSITION_RESOLVING_WORDS)


def clean_search_query(query: str) -> str:
    """Drop ranking-only words; fall back to the raw query when nothing is left."""
    kept = [w for w in words(query) if w not in SEARCH_NOISE_WORDS]
    return " ".join(kept) if kept else query.strip()


def describe_constraints(query: str, build: BuildContext) -> str:
    parts: list[str] = []
    positions = query_positions(query) or ({build.position} if build.position else set())
    if positions:
        parts.append("position " + "/".join(sorted(positions)))
    categories = query_categories(query)
    if categories:
        parts.append("component " + "/".join(sorted(categories)))
    brakes = brake_interfaces_in(query) or (
        {build.brake_interface} if build.brake_interface else set()
    )
    if brakes:
        parts.append("brake " + "/".join(sorted(brakes)))
    if build.axle_spacing:
        parts.append(f"axle {build.axle_spacing}")
    return ", ".join(parts) or "the requested specification"


def render_report(query: str, result: RelevanceResult, shop_build_days: int) -> str:
    shown = len(result.ranked)
    header = f"Found {result.total_matched} matching product(s) for '{query}'"
    if result.truncated:
        header += f", showing the top {shown}"
    return f"{header}:\n{summarize_products(result.products, shop_build_days)}"


class LookupProductTool(BaseChatTool):
    """Searches the catalog and reports stock for the best matches."""

    name = TOOL_LOOKUP_PRODUCT
    description = (
        "Look up live stock and lead time for products the store sells. "
        "Use it whenever the customer asks about availability, stock or lead "
        "time of a product that is not already in their build."
    )
    args_model = LookupProductArgs

    def __init__(
        self,
        catalog: CatalogClient,
        config: CatalogConfig,
        build: BuildContext,
    ) -> None:
        self._catalog = catalog
        self._config = config
        self._build = build

    async def execute(self, args: LookupProductArgs) -> ToolOutcome:
        query = args.query.strip()

        if needs_position(query, self._build):
            CATALOG_LOOKUPS_TOTAL.labels(outcome=LOOKUP_OUTCOME_CLARIFY).inc()
            logger.info("Holding back ambiguous lookup %r until position is known", query)
            return ToolOutcome.clarify(
                self.name,
                (
                    f"No search was run for '{query}': front or rear is unknown. "
                    "The customer must be asked which one they need."
                ),
                Clarification(field=CLARIFY_FIELD_POSITION, query=query),
            )

        search_text = clean_search_query(query)
        try:
            candidates = await self._catalog.search_products(search_text)
        except CatalogError:
            CATALOG_LOOKUPS_TOTAL.labels(outcome=LOOKUP_OUTCOME_ERROR).inc()
            logger.warning("Catalog lookup failed for %r", search_text, exc_info=True)
            return ToolOutcome.error(
                self.name,
                "I couldn't check the catalog right now. Tell the customer stock "
                "could not be verified at the moment and offer to follow up.",
            )

        if not candidates:
            CATALOG_LOOKUPS_TOTAL.labels(outcome=LOOKUP_OUTCOME_EMPTY).inc()
            return ToolOutcome(
                name=self.name,
                content=f"No products found in the catalog matching '{query}'.",
            )

        result = filter_products(candidates, query, self._build, top_n=self._config.top_n)
        logger.info(
            "Lookup %r: %d from catalog, %d matched, %d shown",
            query,
            result.total_candidates,
            result.total_matched,
            len(result.ranked),
        )

        if not result.ranked:
            CATALOG_LOOKUPS_TOTAL.labels(outcome=LOOKUP_OUTCOME_FILTERED).inc()
            return ToolOutcome(
                name=self.name,
                content=(
                    f"The catalog returned {result.total_candidates} result(s) for "
                    f"'{query}', but none match {describe_constraints(query, self._build)}. "
                    "Tell the customer explicitly that nothing matching that spec "
                    "was found."
                ),
            )

        CATALOG_LOOKUPS_TOTAL.labels(outcome=LOOKUP_OUTCOME_OK).inc()
        return ToolOutcome(
            name=self.name,
            content=render_report(query, result, self._config.shop_build_days),
        )
