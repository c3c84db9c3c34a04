"""REST backend client for products, sales and authentication."""
import logging
from typing import Any, Dict, List, Optional

import requests
from flask import current_app, session

from market_admin.exceptions import BackendError, NetworkError, NotFoundError
from market_admin.services.schemas import (
    DailyStats, LoginResponse, Product, ProductsResponse, SaleResponse,
    SalesPage, SubmittedSale, parse_error, parse_response
)

logger = logging.getLogger(__name__)

GENERIC_FAILURE = 'Request to the backend failed'


class BackendClient:
    """Thin client around the backend REST API.

    All responses are decoded and parsed into schemas here; callers receive
    typed models or one of ``BackendError``/``NetworkError``/``NotFoundError``.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10):
        """
        Initialize backend client.

        Args:
            base_url: Root URL of the REST API (e.g. http://localhost:5000/api)
            token: Bearer token of the signed-in user, if any
            timeout: Transport timeout in seconds
        """
        if not base_url:
            raise ValueError("BACKEND_API_URL is required")

        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.headers = {'Content-Type': 'application/json'}
        if token:
            self.headers['Authorization'] = f'Bearer {token}'

    @classmethod
    def from_app(cls, token: Optional[str] = None) -> 'BackendClient':
        return cls(
            current_app.config['BACKEND_API_URL'],
            token=token,
            timeout=current_app.config.get('BACKEND_TIMEOUT', 10)
        )

    def _request(self, method: str, path: str, params: Optional[Dict[str, Any]] = None,
                 json: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(
                method, url, params=params, json=json,
                headers=self.headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"[API] {method} {path} unreachable: {e}")
            raise NetworkError() from e

        if response.ok:
            try:
                return response.json()
            except ValueError as e:
                logger.error(f"[API] {method} {path} returned a non-JSON body")
                raise BackendError('Unexpected response from backend') from e

        try:
            body = response.json()
        except ValueError:
            body = None
        error = parse_error(body)
        logger.error(f"[API] {method} {path} failed [{response.status_code}]: {error.message or response.text[:200]}")

        if response.status_code == 404:
            raise NotFoundError(error.message or 'Resource not found')
        raise BackendError(error.message or GENERIC_FAILURE, response.status_code, error.errors)

    # ----- auth -----

    def login(self, email: str, password: str) -> LoginResponse:
        data = self._request('POST', '/auth/login', json={'email': email, 'password': password})
        return parse_response(LoginResponse, data)

    # ----- products -----

    def list_products(self, limit: int = 1000) -> List[Product]:
        """Fetch the sellable product set in catalog order."""
        data = self._request('GET', '/products', params={'limit': limit})
        return list(parse_response(ProductsResponse, data).products)

    # ----- sales -----

    def create_sale(self, payload: Dict[str, Any]) -> SubmittedSale:
        data = self._request('POST', '/sales', json=payload)
        sale = parse_response(SaleResponse, data).sale
        logger.info(f"[API] Sale created: {sale.id} - {sale.sale_number}")
        return sale

    def get_sale(self, sale_id: str) -> SubmittedSale:
        data = self._request('GET', f'/sales/{sale_id}')
        return parse_response(SaleResponse, data).sale

    def list_sales(self, page: int = 1, limit: int = 20) -> SalesPage:
        params = {'page': page, 'limit': limit, 'sortBy': 'createdAt', 'sortOrder': 'desc'}
        return parse_response(SalesPage, self._request('GET', '/sales', params=params))

    def daily_stats(self) -> DailyStats:
        return parse_response(DailyStats, self._request('GET', '/sales/stats/daily'))

    # ----- secondary screens -----

    def get_collection(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Read-only listing used by the proxied secondary screens."""
        data = self._request('GET', path, params=params)
        if not isinstance(data, dict):
            raise BackendError('Unexpected response from backend')
        return data

    def ping(self) -> bool:
        try:
            self._request('GET', '/health')
            return True
        except BackendError:
            return False


def get_backend_client() -> BackendClient:
    """Client bound to the current session's token.

    Tests (and alternative transports) can register a factory under
    ``app.extensions['backend_client_factory']``.
    """
    token = session.get('token')
    factory = current_app.extensions.get('backend_client_factory')
    if factory is not None:
        return factory(token)
    return BackendClient.from_app(token)
