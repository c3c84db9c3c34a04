"""
Role navigation model.

Declares which pages each role may open, the role's landing page and the
order of the navigation menu. The route guard and the menu both read from
here, so what is shown and what is allowed cannot drift apart.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from werkzeug.exceptions import NotFound
from werkzeug.routing import Map, RequestRedirect, Rule


class Role(str, Enum):
    ADMIN = "admin"
    CASHIER = "cashier"
    STOCK_MANAGER = "stock_manager"

    @classmethod
    def parse(cls, value) -> Optional['Role']:
        """Known role, matched exactly, or None for anything else."""
        if not isinstance(value, str):
            return value if isinstance(value, cls) else None
        try:
            return cls(value)
        except ValueError:
            return None


@dataclass(frozen=True)
class Page:
    """A top-level screen. The first pattern is the canonical path."""
    identity: str
    endpoint: str
    patterns: Tuple[str, ...]
    label: Optional[str] = None

    @property
    def path(self) -> str:
        return self.patterns[0]

    @property
    def in_menu(self) -> bool:
        return self.label is not None


PAGES: Dict[str, Page] = {p.identity: p for p in (
    Page('dashboard', 'pages.dashboard', ('/',), 'Dashboard'),
    Page('products-list', 'pages.products', ('/products',), 'Products'),
    Page('product-new', 'pages.product_new', ('/products/new',)),
    Page('product-edit', 'pages.product_edit', ('/products/<product_id>/edit',)),
    Page('sales-list', 'sales.list_sales', ('/sales',), 'Sales'),
    Page('sale-new', 'sales.new_sale', ('/sales/new',)),
    Page('sale-detail', 'sales.detail_sale', (
        '/sales/<sale_id>',
        '/sales/<sale_id>/receipt',
        '/sales/<sale_id>/receipt.pdf',
    )),
    Page('stock', 'pages.stock', ('/stock',), 'Stock'),
    Page('users', 'pages.users', ('/users',), 'Users'),
    Page('reports', 'pages.reports', ('/reports',), 'Reports'),
    Page('settings', 'pages.settings', ('/settings',), 'Settings'),
)}


def normalize_path(path: str) -> str:
    """'/sales/' -> '/sales'; the root stays '/'."""
    if not path:
        return '/'
    stripped = path.rstrip('/')
    return stripped or '/'


class RouteTable:
    """Ordered set of pages one role may render, plus its default page."""

    def __init__(self, name: str, identities: List[str], default: str):
        if default not in identities:
            raise ValueError(f"Default page {default!r} is not part of the {name} table")
        self.name = name
        self.pages: Tuple[Page, ...] = tuple(PAGES[i] for i in identities)
        self.default: Page = PAGES[default]
        self._urls = Map(
            [Rule(pattern, endpoint=page.identity) for page in self.pages for pattern in page.patterns],
            strict_slashes=False
        ).bind('localhost')

    def __contains__(self, identity: str) -> bool:
        return any(page.identity == identity for page in self.pages)

    def __repr__(self) -> str:
        return f"<RouteTable {self.name}: {[p.identity for p in self.pages]} default={self.default.identity}>"

    @property
    def default_path(self) -> str:
        return self.default.path

    def match(self, path: str) -> Optional[Page]:
        """Page rendered for ``path`` under this table, or None."""
        try:
            identity, _args = self._urls.match(normalize_path(path))
        except (NotFound, RequestRedirect):
            return None
        return PAGES[identity]

    def page(self, identity: str) -> Optional[Page]:
        for page in self.pages:
            if page.identity == identity:
                return page
        return None

    def menu(self) -> List[Page]:
        return [page for page in self.pages if page.in_menu]


_FULL_ACCESS = [
    'dashboard', 'products-list', 'product-new', 'product-edit',
    'sales-list', 'sale-new', 'sale-detail', 'stock', 'users', 'reports', 'settings',
]

CASHIER_ROUTES = RouteTable('cashier', ['sales-list', 'sale-new', 'sale-detail'], default='sales-list')

STOCK_MANAGER_ROUTES = RouteTable(
    'stock_manager',
    ['products-list', 'product-new', 'product-edit', 'stock', 'settings'],
    default='products-list'
)

ADMIN_ROUTES = RouteTable('admin', _FULL_ACCESS, default='dashboard')

# Unspecified roles get everything except user management
DEFAULT_ROUTES = RouteTable('default', [i for i in _FULL_ACCESS if i != 'users'], default='dashboard')

_TABLES = {
    Role.CASHIER: CASHIER_ROUTES,
    Role.STOCK_MANAGER: STOCK_MANAGER_ROUTES,
    Role.ADMIN: ADMIN_ROUTES,
}


def route_table_for(role) -> RouteTable:
    """Resolve the route table for a role name (or Role)."""
    return _TABLES.get(Role.parse(role), DEFAULT_ROUTES)
