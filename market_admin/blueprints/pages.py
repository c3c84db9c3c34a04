"""
Read-only secondary screens: dashboard, products, stock, users, reports and settings.

Each page fetches one backend resource and shows it as a table or a
summary; none of them edits anything.
"""
from flask import Blueprint, render_template, request, current_app, g
from typing import Any, Dict, List, Optional, Tuple
import logging

from market_admin.exceptions import BackendError
from market_admin.middleware import cache_scope
from market_admin.services.api_client import get_backend_client
from market_admin.services.sales_service import get_daily_stats

logger = logging.getLogger(__name__)

pages_bp = Blueprint('pages', __name__)

PAGE_SIZE = 20

PRODUCT_COLUMNS = [('name', 'Name'), ('sku', 'SKU'), ('price', 'Price'), ('stock', 'Stock')]
USER_COLUMNS = [('name', 'Name'), ('email', 'Email'), ('role', 'Role')]


def _fetch(path: str, params: Optional[Dict[str, Any]] = None) -> Tuple[Dict[str, Any], Optional[str]]:
    try:
        return get_backend_client().get_collection(path, params), None
    except BackendError as e:
        logger.warning(f"[PAGES] {path} unavailable: {e.message}")
        return {}, e.message


def _summary(data: Dict[str, Any]) -> Dict[str, Any]:
    """Top-level scalar figures of a report payload."""
    return {k: v for k, v in data.items() if isinstance(v, (int, float, str)) and not isinstance(v, bool)}


def _render_collection(title: str, key: str, columns: List[Tuple[str, str]], path: str) -> Tuple[str, int]:
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    data, error = _fetch(path, {'page': page, 'limit': PAGE_SIZE})
    return render_template(
        'pages/collection.html',
        title=title,
        rows=data.get(key) or [],
        columns=columns,
        summary={},
        pagination=data.get('pagination') or {},
        page=page,
        error=error,
    ), 200 if error is None else 502


def _render_summary(title: str, figures: Dict[str, Any], error: Optional[str]) -> Tuple[str, int]:
    return render_template(
        'pages/collection.html',
        title=title,
        rows=[],
        columns=[],
        summary=_summary(figures),
        pagination={},
        page=1,
        error=error,
    ), 200 if error is None else 502


@pages_bp.route('/')
def dashboard():
    error = None
    stats = None
    try:
        stats = get_daily_stats(get_backend_client(), cache_scope())
    except BackendError as e:
        logger.warning(f"[PAGES] Daily stats unavailable: {e.message}")
        error = e.message
    stock, stock_error = _fetch('/stocks/summary')
    return render_template(
        'pages/dashboard.html',
        stats=stats,
        stock_summary=_summary(stock),
        error=error or stock_error,
    )


@pages_bp.route('/products')
def products():
    return _render_collection('Products', 'products', PRODUCT_COLUMNS, '/products')


@pages_bp.route('/products/new')
def product_new():
    return render_template('pages/placeholder.html', title='New product',
                           message='Products are created from the back office.')


@pages_bp.route('/products/<product_id>/edit')
def product_edit(product_id: str):
    data, error = _fetch(f'/products/{product_id}')
    product = data.get('product') or {}
    return _render_summary(f"Product {product.get('name', product_id)}", product, error)


@pages_bp.route('/stock')
def stock():
    data, error = _fetch('/stocks/summary')
    return _render_summary('Stock', data, error)


@pages_bp.route('/users')
def users():
    return _render_collection('Users', 'users', USER_COLUMNS, '/users')


@pages_bp.route('/reports')
def reports():
    data, error = _fetch('/reports/sales', {'period': request.args.get('period', 'month')})
    return _render_summary('Reports', data.get('summary') or data, error)


@pages_bp.route('/settings')
def settings():
    return render_template(
        'pages/settings.html',
        business_name=current_app.config.get('BUSINESS_NAME'),
        currency=current_app.config.get('CURRENCY_LABEL'),
        user=g.user,
    )
