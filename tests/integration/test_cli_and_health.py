"""
Integration tests for operator commands and health endpoints.
"""

from unittest.mock import patch


class TestCliCommands:
    """Test the flask CLI commands."""

    def test_routes_for_cashier(self, app):
        result = app.test_cli_runner().invoke(args=['routes-for-role', 'cashier'])

        assert result.exit_code == 0
        assert 'Route table: cashier' in result.output
        assert 'Default: /sales' in result.output
        assert 'sale-detail' in result.output
        assert 'products-list' not in result.output

    def test_routes_for_unknown_role(self, app):
        result = app.test_cli_runner().invoke(args=['routes-for-role', 'auditor'])

        assert 'Route table: default' in result.output
        assert 'users' not in result.output

    def test_check_backend(self, app):
        with patch('market_admin.cli_commands.BackendClient.ping', return_value=True):
            result = app.test_cli_runner().invoke(args=['check-backend'])

        assert result.exit_code == 0
        assert 'Backend reachable' in result.output

    def test_check_backend_down(self, app):
        with patch('market_admin.cli_commands.BackendClient.ping', return_value=False):
            result = app.test_cli_runner().invoke(args=['check-backend'])

        assert result.exit_code == 1
        assert 'NOT reachable' in result.output


class TestHealth:
    """Test health endpoints."""

    def test_backend_reachable(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.get_json()['backend'] == 'connected'

    def test_backend_unreachable(self, client, backend):
        backend.ping.return_value = False

        response = client.get('/health')

        assert response.status_code == 503

    def test_cache_degraded_without_redis(self, client):
        response = client.get('/health/cache')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'degraded'

    def test_metrics_count_submissions(self, client):
        response = client.get('/metrics')

        assert b'sale_submissions_total' in response.data
