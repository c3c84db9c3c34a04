"""
Unit tests for the product catalog snapshot.
"""

from unittest.mock import MagicMock

from market_admin.services.catalog_service import ProductCatalogCache, load_catalog
from tests.fakes import PRODUCTS


class TestProductCatalogCache:
    """Tests for search and lookup."""

    def test_empty_query_returns_nothing(self):
        """Test no suggestions are produced for an empty query."""
        catalog = ProductCatalogCache(PRODUCTS)

        assert catalog.search('') == []
        assert catalog.search(None) == []

    def test_search_by_name_is_case_insensitive(self):
        catalog = ProductCatalogCache(PRODUCTS)

        assert [p.id for p in catalog.search('MILK')] == ['p-milk', 'p-choc']

    def test_search_by_sku(self):
        catalog = ProductCatalogCache(PRODUCTS)

        assert [p.id for p in catalog.search('brd')] == ['p-bread']

    def test_search_respects_limit(self):
        catalog = ProductCatalogCache(PRODUCTS)

        assert len(catalog.search('m', limit=1)) == 1

    def test_resolve(self):
        catalog = ProductCatalogCache(PRODUCTS)

        assert catalog.resolve('p-bread').name == 'Bread'
        assert catalog.resolve('p-gone') is None


class TestLoadCatalog:
    """Tests for fetching the catalog for a draft."""

    def test_fetches_with_configured_page_size(self, app):
        client = MagicMock()
        client.list_products.return_value = list(PRODUCTS)

        with app.app_context():
            catalog = load_catalog(client, 'u-cash', 'draft-1')

        client.list_products.assert_called_once_with(limit=app.config['CATALOG_PAGE_SIZE'])
        assert len(catalog) == 3
        assert catalog.resolve('p-choc').sku == 'CHO-010'
