"""Tests for the chat tools and the tool dispatcher."""

from unittest.mock import AsyncMock

import httpx
import pytest
from helpers import hope_catalog, make_product, variant

from wheelchat.core.catalog.client import CatalogClient, CatalogError
from wheelchat.core.service.models import (
    TOOL_CALCULATE_SPOKE_LENGTHS,
    TOOL_CHECK_LIVE_INVENTORY,
    TOOL_LOOKUP_PRODUCT,
    BuildContext,
)
from wheelchat.core.service.tools import (
    LiveInventoryTool,
    LookupProductArgs,
    LookupProductTool,
    SpokeLengthArgs,
    SpokeLengthTool,
    ToolDispatcher,
    build_dispatcher,
    needs_position,
)
from wheelchat.core.service.tools.lookup_tool import clean_search_query
from wheelchat.core.spoke import SpokeCalculationError, SpokeCalculator, SpokeLengths
from wheelchat.infra.http_utils import HttpClient

SPOKE_ARGS = {
    "erd": 600,
    "pcdLeft": 45,
    "pcdRight": 45,
    "flangeLeft": 18,
    "flangeRight": 18,
    "spokeCount": 32,
    "crossPattern": 3,
}


def _catalog(products=None, error: Exception | None = None) -> AsyncMock:
    catalog = AsyncMock(spec=CatalogClient)
    if error is not None:
        catalog.search_products.side_effect = error
        catalog.get_variant.side_effect = error
    else:
        catalog.search_products.return_value = products or []
    return catalog


def _spoke(lengths: SpokeLengths | None = None, error: Exception | None = None) -> AsyncMock:
    spoke = AsyncMock(spec=SpokeCalculator)
    if error is not None:
        spoke.calculate.side_effect = error
    else:
        spoke.calculate.return_value = lengths
    return spoke


# ---------------------------------------------------------------------------
# lookup_product
# ---------------------------------------------------------------------------


class TestPositionGate:
    @pytest.mark.parametrize(
        ("query", "build", "expected"),
        [
            ("Hope hub", BuildContext(), True),
            ("Hope hubs in stock?", BuildContext(), True),
            ("Hope rear hub", BuildContext(), False),
            ("Hope rear-wheel hub", BuildContext(), False),
            ("Hope hub pair", BuildContext(), False),
            ("Hope hub", BuildContext(position="front"), False),
            ("Reserve 30 rim", BuildContext(), False),
        ],
    )
    def test_needs_position(self, query, build, expected):
        assert needs_position(query, build) is expected

    def test_clean_search_query(self):
        assert clean_search_query("Hope rear hub") == "hope"
        assert clean_search_query("rear hub") == "rear hub"


class TestLookupProductTool:
    @pytest.mark.asyncio
    async def test_ambiguous_hub_query_asks_instead_of_searching(self, catalog_config):
        catalog = _catalog(hope_catalog())
        tool = LookupProductTool(catalog, catalog_config, BuildContext())

        outcome = await tool.execute(LookupProductArgs(query="Hope hub"))

        assert outcome.status == "clarify"
        assert outcome.clarification is not None
        assert outcome.clarification.field == "position"
        catalog.search_products.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_hope_rear_hub_reports_only_rear_stock(self, catalog_config):
        catalog = _catalog(hope_catalog())
        tool = LookupProductTool(catalog, catalog_config, BuildContext())

        outcome = await tool.execute(LookupProductArgs(query="Hope rear hub"))

        catalog.search_products.assert_awaited_once_with("hope")
        assert outcome.status == "completed"
        assert outcome.content == (
            "Found 1 matching product(s) for 'Hope rear hub':\n"
            "Hope Pro 5 Rear Hub: IN STOCK - Black / 148x12 Boost (3 available)"
        )
        assert "Front" not in outcome.content
        assert "Silver" not in outcome.content

    @pytest.mark.asyncio
    async def test_context_position_resolves_gate(self, catalog_config):
        catalog = _catalog(hope_catalog())
        tool = LookupProductTool(catalog, catalog_config, BuildContext(position="front"))

        outcome = await tool.execute(LookupProductArgs(query="Hope hub"))

        assert "Hope Pro 5 Front Hub: IN STOCK" in outcome.content
        assert "Rear" not in outcome.content

    @pytest.mark.asyncio
    async def test_zero_from_catalog(self, catalog_config):
        tool = LookupProductTool(_catalog([]), catalog_config, BuildContext())
        outcome = await tool.execute(LookupProductArgs(query="Onyx Vesper rear hub"))
        assert outcome.content == (
            "No products found in the catalog matching 'Onyx Vesper rear hub'."
        )

    @pytest.mark.asyncio
    async def test_zero_after_filtering_is_reported_as_spec_mismatch(self, catalog_config):
        catalog = _catalog([make_product("Hope Pro 5 Front Hub", tags=("component:hub",))])
        tool = LookupProductTool(catalog, catalog_config, BuildContext())

        outcome = await tool.execute(LookupProductArgs(query="Hope rear hub"))

        assert outcome.status == "completed"
        assert "returned 1 result(s)" in outcome.content
        assert "none match position rear, component hub" in outcome.content

    @pytest.mark.asyncio
    async def test_truncation_is_announced(self, catalog_config):
        products = [
            make_product(f"Reserve 30 Rim {i}", variant(qty=1), tags=("component:rim",))
            for i in range(7)
        ]
        tool = LookupProductTool(_catalog(products), catalog_config, BuildContext())

        outcome = await tool.execute(LookupProductArgs(query="reserve rim"))

        assert outcome.content.startswith(
            "Found 7 matching product(s) for 'reserve rim', showing the top 5:"
        )
        assert len(outcome.content.splitlines()) == 6

    @pytest.mark.asyncio
    async def test_catalog_failure_becomes_text(self, catalog_config):
        tool = LookupProductTool(
            _catalog(error=CatalogError("timeout")), catalog_config, BuildContext()
        )
        outcome = await tool.execute(LookupProductArgs(query="Hope rear hub"))
        assert outcome.status == "error"
        assert "couldn't check the catalog right now" in outcome.content


# ---------------------------------------------------------------------------
# calculate_spoke_lengths
# ---------------------------------------------------------------------------


class TestSpokeLengthTool:
    @pytest.mark.asyncio
    async def test_result_contains_both_lengths(self):
        spoke = _spoke(SpokeLengths(left=258, right=258))
        tool = SpokeLengthTool(spoke)

        outcome = await tool.execute(SpokeLengthArgs.model_validate(SPOKE_ARGS))

        spoke.calculate.assert_awaited_once_with(
            {k: float(v) for k, v in SPOKE_ARGS.items()}
        )
        assert outcome.content == (
            "Calculated Lengths: Left 258mm, Right 258mm. "
            "(Note: We handle final rounding during the build.)"
        )
        assert outcome.data == {"left": 258.0, "right": 258.0}

    @pytest.mark.asyncio
    async def test_service_failure_is_a_tool_error(self):
        tool = SpokeLengthTool(_spoke(error=SpokeCalculationError("down")))
        outcome = await tool.execute(SpokeLengthArgs.model_validate(SPOKE_ARGS))
        assert outcome.status == "error"
        assert "spoke calculator" in outcome.content


# ---------------------------------------------------------------------------
# check_live_inventory
# ---------------------------------------------------------------------------


class TestLiveInventoryTool:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("record", "expected"),
        [
            (variant("Black", qty=4), "In Stock: We have 4 units available right now."),
            (variant("Black", qty=0, oversell=True), "Special Order:"),
            (variant("Black", qty=0), "Sold Out:"),
        ],
    )
    async def test_statuses(self, record, expected):
        catalog = AsyncMock(spec=CatalogClient)
        catalog.get_variant.return_value = record
        tool = LiveInventoryTool(catalog)

        outcome = await tool.execute(tool.args_model.model_validate({"variantId": "123"}))

        assert outcome.content.startswith(expected)

    @pytest.mark.asyncio
    async def test_invalid_id_skips_network(self):
        catalog = AsyncMock(spec=CatalogClient)
        tool = LiveInventoryTool(catalog)
        outcome = await tool.execute(tool.args_model.model_validate({"variantId": "abc"}))
        assert outcome.status == "error"
        catalog.get_variant.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_catalog_failure_becomes_text(self):
        tool = LiveInventoryTool(_catalog(error=CatalogError("boom")))
        outcome = await tool.execute(tool.args_model.model_validate({"variantId": "9"}))
        assert outcome.status == "error"
        assert "could not verify" in outcome.content


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class TestToolDispatcher:
    def _dispatcher(self, catalog_config, catalog=None, spoke=None) -> ToolDispatcher:
        return build_dispatcher(
            BuildContext(), catalog or _catalog(), spoke or _spoke(), catalog_config
        )

    def test_definitions_use_wire_argument_names(self, catalog_config):
        definitions = {
            d["function"]["name"]: d["function"]
            for d in self._dispatcher(catalog_config).definitions()
        }
        assert set(definitions) == {
            TOOL_LOOKUP_PRODUCT,
            TOOL_CALCULATE_SPOKE_LENGTHS,
            TOOL_CHECK_LIVE_INVENTORY,
        }
        spoke = definitions[TOOL_CALCULATE_SPOKE_LENGTHS]["parameters"]
        assert spoke["type"] == "object"
        assert sorted(spoke["required"]) == sorted(SPOKE_ARGS)
        assert spoke["properties"]["pcdLeft"]["type"] == "number"
        assert definitions[TOOL_LOOKUP_PRODUCT]["parameters"]["required"] == ["query"]

    @pytest.mark.asyncio
    async def test_dispatches_by_name(self, catalog_config):
        spoke = _spoke(SpokeLengths(left=258, right=258))
        dispatcher = self._dispatcher(catalog_config, spoke=spoke)

        outcome = await dispatcher.dispatch(
            {"name": TOOL_CALCULATE_SPOKE_LENGTHS, "args": SPOKE_ARGS, "id": "c1"}
        )

        assert outcome.status == "completed"
        assert "Left 258mm, Right 258mm" in outcome.content

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "args",
        [
            {k: v for k, v in SPOKE_ARGS.items() if k != "erd"},
            {**SPOKE_ARGS, "spokeCount": 0},
            {**SPOKE_ARGS, "erd": -600},
            {**SPOKE_ARGS, "erd": "six hundred"},
        ],
    )
    async def test_invalid_arguments_never_reach_the_service(self, catalog_config, args):
        spoke = _spoke(SpokeLengths(left=1, right=1))
        dispatcher = self._dispatcher(catalog_config, spoke=spoke)

        outcome = await dispatcher.dispatch(
            {"name": TOOL_CALCULATE_SPOKE_LENGTHS, "args": args, "id": "c1"}
        )

        assert outcome.status == "error"
        assert outcome.content.startswith("Invalid arguments for calculate_spoke_lengths")
        spoke.calculate.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"data": {"products": {"edges": [{"node": None}]}}},
            {"data": {"products": {"edges": None}}},
        ],
    )
    async def test_wrongly_shaped_catalog_reply_becomes_text(self, catalog_config, body):
        catalog = CatalogClient(
            catalog_config,
            HttpClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body))
            ),
        )
        dispatcher = self._dispatcher(catalog_config, catalog=catalog)

        outcome = await dispatcher.dispatch(
            {"name": TOOL_LOOKUP_PRODUCT, "args": {"query": "Hope rear hub"}, "id": "c1"}
        )

        assert outcome.status == "error"
        assert "couldn't check the catalog right now" in outcome.content

    @pytest.mark.asyncio
    async def test_empty_query_is_rejected(self, catalog_config):
        catalog = _catalog()
        dispatcher = self._dispatcher(catalog_config, catalog=catalog)
        outcome = await dispatcher.dispatch(
            {"name": TOOL_LOOKUP_PRODUCT, "args": {"query": ""}, "id": "c1"}
        )
        assert outcome.status == "error"
        catalog.search_products.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_tool(self, catalog_config):
        dispatcher = self._dispatcher(catalog_config)
        outcome = await dispatcher.dispatch({"name": "delete_store", "args": {}, "id": "c1"})

        assert dispatcher.tool_names == [
            TOOL_LOOKUP_PRODUCT,
            TOOL_CHECK_LIVE_INVENTORY,
            TOOL_CALCULATE_SPOKE_LENGTHS,
        ]
        assert outcome.status == "error"
        assert "Unknown tool 'delete_store'" in outcome.content
        assert "lookup_product, check_live_inventory, calculate_spoke_lengths" in outcome.content

    def test_duplicate_names_rejected(self):
        tool = SpokeLengthTool(_spoke())
        with pytest.raises(ValueError, match="Duplicate"):
            ToolDispatcher([tool, tool])
