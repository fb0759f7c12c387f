"""Availability report for filtered catalog products.

One line per product:

- ``IN STOCK`` when any variant has positive quantity; only those
  variants are listed, with their quantities.
- ``Special Order`` when nothing is on hand but a variant allows
  overselling.  The quoted lead time is always manufacturer days plus
  the configured shop build buffer (``CatalogConfig.shop_build_days``);
  a buffer of 0 quotes manufacturer time alone.
- ``Sold Out`` otherwise.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from .models import ProductRecord, VariantRecord


class StockStatus(StrEnum):
    IN_STOCK = "IN STOCK"
    SPECIAL_ORDER = "Special Order"
    SOLD_OUT = "Sold Out"


@dataclass(frozen=True)
class InStockVariant:
    label: str
    quantity: int


@dataclass(frozen=True)
class Availability:
    title: str
    status: StockStatus
    in_stock: tuple[InStockVariant, ...] = field(default_factory=tuple)
    manufacturer_days: int | None = None
    total_lead_days: int | None = None


def total_lead_time(manufacturer_days: int, shop_build_days: int) -> int:
    return manufacturer_days + shop_build_days


def classify_variants(
    title: str,
    variants: list[VariantRecord],
    manufacturer_days: int,
    shop_build_days: int,
) -> Availability:
    in_stock = tuple(
        InStockVariant(label=v.label, quantity=v.inventory_quantity)
        for v in variants
        if v.inventory_quantity > 0
    )
    if in_stock:
        return Availability(title=title, status=StockStatus.IN_STOCK, in_stock=in_stock)
    if any(v.oversell_allowed for v in variants):
        return Availability(
            title=title,
            status=StockStatus.SPECIAL_ORDER,
            manufacturer_days=manufacturer_days,
            total_lead_days=total_lead_time(manufacturer_days, shop_build_days),
        )
    return Availability(title=title, status=StockStatus.SOLD_OUT)


def classify_product(product: ProductRecord, shop_build_days: int) -> Availability:
    return classify_variants(
        product.title, product.variants, product.lead_time_days, shop_build_days
    )


def format_availability(availability: Availability, shop_build_days: int) -> str:
    head = f"{availability.title}: {availability.status}"
    if availability.status is StockStatus.IN_STOCK:
        listed = "; ".join(
            f"{v.label} ({v.quantity} available)" for v in availability.in_stock
        )
        return f"{head} - {listed}"
    if availability.status is StockStatus.SPECIAL_ORDER:
        if shop_build_days:
            return (
                f"{head} - manufacturer lead time {availability.manufacturer_days} days"
                f" + {shop_build_days} days shop build"
                f" = ~{availability.total_lead_days} days total"
            )
        return f"{head} - lead time ~{availability.total_lead_days} days"
    return head


def summarize_products(products: list[ProductRecord], shop_build_days: int) -> str:
    """Render the availability report, one line per product."""
    return "\n".join(
        format_availability(classify_product(p, shop_build_days), shop_build_days)
        for p in products
    )
