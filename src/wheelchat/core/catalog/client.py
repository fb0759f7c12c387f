"""Read-only client for the commerce platform admin API.

Two calls are used:

- GraphQL product search (``products(first: N, query: $query)``) for
  ``lookup_product``.
- REST variant fetch (``variants/<id>.json``) for ``check_live_inventory``.

Every failure (transport, non-2xx, undecodable body, GraphQL ``errors``,
wrongly shaped records) is raised as ``CatalogError`` so the tool layer
has a single exception to absorb.
"""

from __future__ import annotations

import logging
import re

import httpx
from pydantic import ValidationError

from wheelchat.configs.system import CatalogConfig
from wheelchat.infra.http_utils import HttpClient
from wheelchat.infra.telemetry import (
    ATTR_CATALOG_QUERY,
    ATTR_CATALOG_RESULT_COUNT,
    SPAN_CATALOG_SEARCH,
    SPAN_CATALOG_VARIANT,
    tracer,
)

from .models import ProductRecord, VariantRecord

logger = logging.getLogger(__name__)

ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"
VARIANT_GID_PREFIX = "gid://shopify/ProductVariant/"

_NUMERIC_ID = re.compile(r"^\d+$")

# Raised while building records from a decoded but wrongly shaped payload.
_MALFORMED_PAYLOAD = (KeyError, TypeError, AttributeError, ValidationError)

SEARCH_PRODUCTS_QUERY = """
query searchProducts($query: String!, $first: Int!, $variants: Int!) {
  products(first: $first, query: $query) {
    edges {
      node {
        title
        tags
        totalInventory
        leadTime: metafield(namespace: "%(namespace)s", key: "%(key)s") { value }
        variants(first: $variants) {
          edges {
            node {
              title
              inventoryPolicy
              inventoryQuantity
              selectedOptions { name value }
            }
          }
        }
      }
    }
  }
}
"""


class CatalogError(Exception):
    """The catalog could not be queried or returned an unusable payload."""


def normalize_variant_id(variant_id: str) -> str:
    """Accept ``gid://shopify/ProductVariant/123`` or ``123``; return ``123``."""
    numeric = variant_id.strip().removeprefix(VARIANT_GID_PREFIX)
    if not _NUMERIC_ID.match(numeric):
        raise ValueError(f"Not a variant ID: {variant_id!r}")
    return numeric


class CatalogClient:
    """Queries products and variants from the store admin API."""

    def __init__(self, config: CatalogConfig, http: HttpClient | None = None) -> None:
        self._config = config
        self._http = http or HttpClient()

    @property
    def _base_url(self) -> str:
        return f"https://{self._config.store_domain}/admin/api/{self._config.api_version}"

    @property
    def _headers(self) -> dict[str, str]:
        return {ACCESS_TOKEN_HEADER: self._config.access_token}

    @property
    def _timeout(self) -> float:
        return self._config.timeout.total_seconds()

    async def search_products(self, query: str) -> list[ProductRecord]:
        """Return up to ``search_limit`` products matching *query*."""
        gql = SEARCH_PRODUCTS_QUERY % {
            "namespace": self._config.lead_time_namespace,
            "key": self._config.lead_time_key,
        }
        payload = {
            "query": gql,
            "variables": {
                "query": query,
                "first": self._config.search_limit,
                "variants": self._config.variants_per_product,
            },
        }
        with tracer.start_as_current_span(SPAN_CATALOG_SEARCH) as span:
            span.set_attribute(ATTR_CATALOG_QUERY, query)
            try:
                data = await self._http.post_json(
                    f"{self._base_url}/graphql.json",
                    payload,
                    timeout=self._timeout,
                    headers=self._headers,
                )
            except (httpx.HTTPError, ValueError) as e:
                raise CatalogError(f"Catalog search failed: {e}") from e

            if not isinstance(data, dict) or data.get("errors"):
                raise CatalogError(f"Catalog search returned errors: {data!r:.300}")
            try:
                edges = data["data"]["products"]["edges"]
                products = [ProductRecord.from_admin_node(edge["node"]) for edge in edges]
            except _MALFORMED_PAYLOAD as e:
                raise CatalogError(f"Catalog search returned malformed product data: {e}") from e

            span.set_attribute(ATTR_CATALOG_RESULT_COUNT, len(products))
            logger.debug("Catalog search %r returned %d products", query, len(products))
            return products

    async def get_variant(self, variant_id: str) -> VariantRecord:
        """Fetch one variant's live stock by numeric or GID identifier."""
        numeric = normalize_variant_id(variant_id)
        with tracer.start_as_current_span(SPAN_CATALOG_VARIANT):
            try:
                data = await self._http.get_json(
                    f"{self._base_url}/variants/{numeric}.json",
                    timeout=self._timeout,
                    headers=self._headers,
                )
            except (httpx.HTTPError, ValueError) as e:
                raise CatalogError(f"Variant lookup failed: {e}") from e

            if not isinstance(data, dict) or not isinstance(data.get("variant"), dict):
                raise CatalogError("Variant lookup returned no variant data")
            try:
                return VariantRecord.from_rest_variant(data["variant"])
            except _MALFORMED_PAYLOAD as e:
                raise CatalogError(f"Variant lookup returned malformed data: {e}") from e
