"""Product catalog snapshot used by the sale screen for lookup and search."""

import logging
from typing import Dict, List, Optional, Sequence

from flask import current_app

from market_admin.services.cache_service import CATALOG_MODULE, get_cache
from market_admin.services.schemas import Product

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 10


class ProductCatalogCache:
    """Read-only product lookup built from one backend fetch."""

    def __init__(self, products: Sequence[Product]):
        self._products = tuple(products)
        self._by_id: Dict[str, Product] = {p.id: p for p in self._products}

    def __len__(self) -> int:
        return len(self._products)

    def search(self, query: str, limit: int = MAX_SUGGESTIONS) -> List[Product]:
        """Products whose name or SKU contains ``query`` (case-insensitive).

        An empty query returns nothing so that no suggestion list is shown.
        """
        needle = (query or '').lower()
        if not needle:
            return []
        matches = []
        for product in self._products:
            if needle in (product.name or '').lower() or needle in (product.sku or '').lower():
                matches.append(product)
                if len(matches) == limit:
                    break
        return matches

    def resolve(self, product_id: str) -> Optional[Product]:
        return self._by_id.get(product_id)


def load_catalog(client, scope: str, draft_id: str) -> ProductCatalogCache:
    """
    Catalog for one draft.

    Fetched once per draft and kept in Redis under the draft id; without
    Redis every call refetches, which only affects freshness.
    """
    limit = current_app.config.get('CATALOG_PAGE_SIZE', 1000)

    def _fetch():
        products = client.list_products(limit=limit)
        logger.info(f"[CATALOG] Loaded {len(products)} products for draft {draft_id}")
        return [p.model_dump(mode='json', by_alias=True) for p in products]

    raw = get_cache().memoize(
        scope, CATALOG_MODULE, draft_id, _fetch,
        ttl=current_app.config.get('CACHE_CATALOG_TTL', 3600)
    )
    return ProductCatalogCache([Product.model_validate(p) for p in raw])
