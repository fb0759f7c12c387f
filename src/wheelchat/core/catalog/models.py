"""Catalog records returned by the commerce admin API.

Records live for one tool invocation; nothing here is cached.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

INVENTORY_POLICY_CONTINUE = "continue"
DEFAULT_VARIANT_TITLE = "Default Title"


class VariantRecord(BaseModel):
    """One purchasable variant of a product."""

    title: str = ""
    inventory_quantity: int = 0
    oversell_allowed: bool = False
    selected_options: dict[str, str] = Field(default_factory=dict)

    @property
    def label(self) -> str:
        """Human label; single-variant products are labelled by their options."""
        if self.title and self.title != DEFAULT_VARIANT_TITLE:
            return self.title
        if self.selected_options:
            return " / ".join(self.selected_options.values())
        return "Standard"

    @classmethod
    def from_admin_node(cls, node: dict[str, Any]) -> VariantRecord:
        """Build from a GraphQL ``ProductVariant`` node."""
        options = {
            opt.get("name", ""): opt.get("value", "")
            for opt in node.get("selectedOptions") or []
        }
        policy = (node.get("inventoryPolicy") or "").lower()
        return cls(
            title=node.get("title") or "",
            inventory_quantity=node.get("inventoryQuantity") or 0,
            oversell_allowed=policy == INVENTORY_POLICY_CONTINUE,
            selected_options=options,
        )

    @classmethod
    def from_rest_variant(cls, data: dict[str, Any]) -> VariantRecord:
        """Build from a REST ``variant`` object (snake_case fields)."""
        policy = (data.get("inventory_policy") or "").lower()
        options = {
            f"option{i}": data[f"option{i}"]
            for i in (1, 2, 3)
            if data.get(f"option{i}")
        }
        return cls(
            title=data.get("title") or "",
            inventory_quantity=data.get("inventory_quantity") or 0,
            oversell_allowed=policy == INVENTORY_POLICY_CONTINUE,
            selected_options=options,
        )


class ProductRecord(BaseModel):
    """A product with its variants and manufacturer lead time."""

    title: str
    tags: frozenset[str] = Field(default_factory=frozenset)
    variants: list[VariantRecord] = Field(default_factory=list)
    lead_time_days: int = 0
    total_inventory: int = 0

    @property
    def lowered_tags(self) -> frozenset[str]:
        return frozenset(tag.lower() for tag in self.tags)

    @classmethod
    def from_admin_node(cls, node: dict[str, Any]) -> ProductRecord:
        """Build from a GraphQL ``Product`` node.

        The lead time metafield is aliased as ``leadTime`` in the query;
        a missing or non-numeric value counts as zero days.
        """
        variants = [
            VariantRecord.from_admin_node(edge.get("node") or {})
            for edge in (node.get("variants") or {}).get("edges") or []
        ]
        return cls(
            title=node.get("title") or "",
            tags=frozenset(node.get("tags") or []),
            variants=variants,
            lead_time_days=parse_lead_time(node.get("leadTime")),
            total_inventory=node.get("totalInventory") or 0,
        )


def parse_lead_time(metafield: dict[str, Any] | None) -> int:
    """Parse a ``{"value": "10"}`` metafield into whole days."""
    if not metafield:
        return 0
    raw = str(metafield.get("value") or "").strip()
    try:
        return max(int(float(raw)), 0)
    except ValueError:
        return 0
