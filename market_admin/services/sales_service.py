"""Cached sale listings and daily stats shown by the sales and dashboard screens."""

import logging

from flask import current_app

from market_admin.services.cache_service import DAILY_STATS_MODULE, SALES_MODULE, get_cache
from market_admin.services.schemas import DailyStats, SalesPage

logger = logging.getLogger(__name__)


def get_sales_page(client, scope: str, page: int = 1) -> SalesPage:
    limit = current_app.config.get('SALES_PAGE_SIZE', 20)
    raw = get_cache().memoize(
        scope, SALES_MODULE, f'page:{page}:limit:{limit}',
        lambda: client.list_sales(page=page, limit=limit).model_dump(mode='json', by_alias=True),
        ttl=current_app.config.get('CACHE_SALES_TTL', 30)
    )
    return SalesPage.model_validate(raw)


def get_daily_stats(client, scope: str) -> DailyStats:
    raw = get_cache().memoize(
        scope, DAILY_STATS_MODULE, 'today',
        lambda: client.daily_stats().model_dump(mode='json', by_alias=True),
        ttl=current_app.config.get('CACHE_SALES_TTL', 30)
    )
    return DailyStats.model_validate(raw)


def invalidate_sales_caches(scope: str) -> int:
    """Drop cached sale listings and daily stats after a new sale."""
    cache = get_cache()
    deleted = cache.invalidate_module(scope, SALES_MODULE) + cache.invalidate_module(scope, DAILY_STATS_MODULE)
    logger.info(f"[SALE] Invalidated {deleted} cached sales entries for {scope}")
    return deleted
