"""Main blueprint with health check endpoints."""
from flask import Blueprint, jsonify

from market_admin.services.api_client import get_backend_client

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """
    Health check endpoint that validates the backend is reachable.

    Returns:
        200: Healthy (backend answered)
        503: Unhealthy (backend unreachable or failing)
    """
    if get_backend_client().ping():
        return jsonify({
            'status': 'healthy',
            'backend': 'connected',
            'message': 'Backend reachable'
        }), 200

    return jsonify({
        'status': 'unhealthy',
        'backend': 'disconnected',
        'message': 'Failed to reach the backend'
    }), 503


@main_bp.route('/health/cache')
def health_cache():
    """
    Cache health check endpoint.

    Never returns 500: without Redis the app keeps working uncached,
    so the status is reported as "degraded".
    """
    from market_admin.services.cache_service import get_cache
    cache = get_cache()

    if not cache.is_available():
        return jsonify({
            'status': 'degraded',
            'cache': 'unavailable',
            'redis': 'disconnected',
            'message': 'Cache disabled or Redis unavailable (app continues without cache)'
        }), 200

    cache.set('system', 'health', 'probe', {'test': 'ok'}, ttl=10)
    result = cache.get('system', 'health', 'probe')
    if result and result.get('test') == 'ok':
        return jsonify({
            'status': 'ok',
            'cache': 'connected',
            'redis': 'healthy',
            'message': 'Cache is working correctly'
        }), 200

    return jsonify({
        'status': 'degraded',
        'cache': 'error',
        'redis': 'connected_but_failing',
        'message': 'Redis connected but operations failing'
    }), 200
