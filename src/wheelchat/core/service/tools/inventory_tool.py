"""``check_live_inventory``: live stock for one known variant ID."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from wheelchat.core.catalog.client import CatalogClient, CatalogError, normalize_variant_id
from wheelchat.core.catalog.stock import StockStatus, classify_variants
from wheelchat.core.service.models import TOOL_CHECK_LIVE_INVENTORY

from .model import BaseChatTool, ToolOutcome

logger = logging.getLogger(__name__)


class LiveInventoryArgs(BaseModel):
    variant_id: str = Field(
        alias="variantId",
        min_length=1,
        description="The variant ID (GID or numeric) to check.",
    )


class LiveInventoryTool(BaseChatTool):
    name = TOOL_CHECK_LIVE_INVENTORY
    description = (
        "Check the real-time stock quantity of a specific product variant "
        "when its variant ID is known, e.g. one already in the customer's build."
    )
    args_model = LiveInventoryArgs

    def __init__(self, catalog: CatalogClient) -> None:
        self._catalog = catalog

    async def execute(self, args: LiveInventoryArgs) -> ToolOutcome:
        try:
            normalize_variant_id(args.variant_id)
        except ValueError:
            return ToolOutcome.error(
                self.name, f"'{args.variant_id}' is not a valid variant ID."
            )

        try:
            variant = await self._catalog.get_variant(args.variant_id)
        except CatalogError:
            logger.warning("Live inventory check failed", exc_info=True)
            return ToolOutcome.error(
                self.name, "I could not verify the live inventory right now."
            )

        availability = classify_variants(variant.label, [variant], 0, 0)
        if availability.status is StockStatus.IN_STOCK:
            content = (
                f"In Stock: We have {variant.inventory_quantity} units "
                "available right now."
            )
        elif availability.status is StockStatus.SPECIAL_ORDER:
            content = "Special Order: Currently out of stock, but available for order."
        else:
            content = "Sold Out: Currently unavailable."
        return ToolOutcome(name=self.name, content=content)
