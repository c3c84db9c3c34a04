"""
Integration tests for the route guard and the navigation shell.
"""

from flask import session as flask_session

from market_admin.navigation import NAV_INTENT_KEY


class TestUnauthenticated:
    """Requests without a signed-in user."""

    def test_protected_path_renders_login(self, client):
        """Test the login page is shown in place of the requested page."""
        response = client.get('/sales')

        assert response.status_code == 200
        assert b'Sign in' in response.data
        assert b'name="password"' in response.data

    def test_shell_dispatch_requires_login(self, client):
        response = client.get('/go/sales-list')

        assert response.status_code == 302
        assert response.location.endswith('/login')

    def test_health_and_metrics_are_open(self, client):
        assert client.get('/health').status_code == 200
        assert client.get('/metrics').status_code == 200


class TestNavigationIntent:
    """Signed-in sessions with and without the shell-entry flag."""

    def test_missing_flag_redirects_to_login(self, authenticated_client):
        client = authenticated_client('cashier', via_shell=False)

        for path in ('/sales', '/sales/new', '/products'):
            response = client.get(path)
            assert response.status_code == 302
            assert response.location.endswith('/login')

    def test_login_page_offers_continue(self, authenticated_client):
        """Test the login page links back into the app through the shell."""
        client = authenticated_client('cashier', via_shell=False)

        response = client.get('/login')

        assert response.status_code == 200
        assert b'/go/sales-list' in response.data

    def test_shell_entry_sets_flag(self, authenticated_client):
        client = authenticated_client('cashier', via_shell=False)

        with client:
            response = client.get('/go/sales-list')
            assert flask_session[NAV_INTENT_KEY] is True

        assert response.status_code == 302
        assert response.location.endswith('/sales')
        assert client.get('/sales').status_code == 200

    def test_shell_entry_outside_role_goes_to_default(self, authenticated_client):
        client = authenticated_client('cashier')

        response = client.get('/go/users')

        assert response.location.endswith('/sales')

    def test_shell_entry_missing_parameters_goes_to_default(self, authenticated_client):
        """Test a detail page without its id falls back to the landing page."""
        client = authenticated_client('cashier')

        response = client.get('/go/sale-detail')

        assert response.location.endswith('/sales')

    def test_shell_entry_forwards_parameters(self, authenticated_client):
        client = authenticated_client('cashier')

        response = client.get('/go/sale-detail?sale_id=sale-1')

        assert response.location.endswith('/sales/sale-1')


class TestRoleRouting:
    """Role tables applied to top-level requests."""

    def test_cashier_products_redirects_to_sales(self, authenticated_client):
        response = authenticated_client('cashier').get('/products')

        assert response.status_code == 302
        assert response.location.endswith('/sales')

    def test_stock_manager_root_redirects_to_products(self, authenticated_client):
        response = authenticated_client('stock_manager').get('/')

        assert response.status_code == 302
        assert response.location.endswith('/products')

    def test_stock_manager_cannot_post_sales(self, authenticated_client, backend):
        response = authenticated_client('stock_manager').post('/sales/new', data={'action': 'submit'})

        assert response.status_code == 302
        assert response.location.endswith('/products')
        backend.create_sale.assert_not_called()

    def test_unknown_path_redirects_to_default(self, authenticated_client):
        response = authenticated_client('admin').get('/definitely/not/here')

        assert response.status_code == 302
        assert response.location.endswith('/')

    def test_users_page_admin_only(self, authenticated_client):
        assert authenticated_client('auditor').get('/users').status_code == 302

    def test_admin_pages_render(self, authenticated_client):
        client = authenticated_client('admin')

        for path in ('/', '/products', '/stock', '/users', '/reports', '/settings', '/products/new'):
            assert client.get(path).status_code == 200, path


class TestMenu:
    """Navigation menu built from the same role tables."""

    def test_admin_menu(self, authenticated_client):
        response = authenticated_client('admin').get('/')

        for identity in (b'dashboard', b'products-list', b'sales-list', b'stock', b'users', b'reports', b'settings'):
            assert b'/go/' + identity in response.data

    def test_cashier_menu(self, authenticated_client):
        response = authenticated_client('cashier').get('/sales')

        assert b'/go/sales-list' in response.data
        assert b'/go/products-list' not in response.data
        assert b'/go/users' not in response.data

    def test_default_role_menu_has_no_users(self, authenticated_client):
        response = authenticated_client('auditor').get('/')

        assert b'/go/reports' in response.data
        assert b'/go/users' not in response.data
