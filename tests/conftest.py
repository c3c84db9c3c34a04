import pytest
from unittest.mock import MagicMock

from config import Config
from market_admin import create_app
from market_admin.navigation import NAV_INTENT_KEY
from market_admin.services.api_client import BackendClient
from market_admin.services.schemas import DailyStats, LoginResponse, SalesPage
from tests.fakes import PRODUCTS, USERS, make_sale


class TestingConfig(Config):
    TESTING = True
    WTF_CSRF_ENABLED = False
    CACHE_ENABLED = False
    BACKEND_API_URL = 'http://backend.test/api'
    SECRET_KEY = 'test-secret-key'
    SENTRY_DSN = None
    ENV = 'testing'


@pytest.fixture(scope='session')
def app():
    """Create application instance for testing."""
    app = create_app(TestingConfig)
    return app


@pytest.fixture(scope='function')
def backend(app):
    """Fake backend client handed to every view through the client factory."""
    fake = MagicMock(spec=BackendClient)
    fake.base_url = TestingConfig.BACKEND_API_URL
    fake.list_products.return_value = list(PRODUCTS)
    fake.create_sale.side_effect = lambda payload: make_sale(payload)
    fake.get_sale.return_value = make_sale()
    fake.list_sales.return_value = SalesPage(sales=[make_sale()], pagination={'page': 1, 'pages': 1, 'limit': 20, 'total': 1})
    fake.daily_stats.return_value = DailyStats.model_validate({'totalSales': 3, 'totalRevenue': 120, 'averageSale': 40})
    fake.get_collection.return_value = {}
    fake.ping.return_value = True
    fake.login.return_value = LoginResponse.model_validate({
        'token': 'jwt-cashier',
        'user': {'_id': 'u-cash', 'name': 'Carl Cashier', 'email': 'cashier@market.test', 'role': 'cashier'},
    })

    app.extensions['backend_client_factory'] = lambda token: fake
    yield fake
    app.extensions.pop('backend_client_factory', None)


@pytest.fixture(scope='function')
def client(app, backend):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def authenticated_client(client):
    """
    Factory: sign the test client in as one of USERS.

    ``via_shell=False`` leaves the navigation intent unset, as for a session
    restored without going through the menu.
    """
    def _login(role='admin', via_shell=True):
        with client.session_transaction() as sess:
            sess['token'] = f'jwt-{role}'
            sess['user'] = dict(USERS[role])
            if via_shell:
                sess[NAV_INTENT_KEY] = True
        return client
    return _login
