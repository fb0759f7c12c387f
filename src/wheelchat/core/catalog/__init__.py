"""Commerce catalog access, relevance filtering and stock reporting."""

from .client import CatalogClient, CatalogError
from .models import ProductRecord, VariantRecord
from .relevance import RelevanceResult, filter_products
from .stock import StockStatus, summarize_products

__all__ = [
    "CatalogClient",
    "CatalogError",
    "ProductRecord",
    "RelevanceResult",
    "StockStatus",
    "VariantRecord",
    "filter_products",
    "summarize_products",
]
