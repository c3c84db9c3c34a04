"""
Response schemas for the REST backend.

Every payload coming back from the backend is parsed here exactly once.
Views and services downstream work with these models and never re-check
for missing keys.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as SchemaError

from market_admin.exceptions import BackendError


class _BackendModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore', frozen=True)


# ===== PRODUCTS =====

class Product(_BackendModel):
    """Sellable product as listed by ``GET /products``."""
    id: str = Field(..., alias='_id')
    name: str = ''
    sku: Optional[str] = None
    price: Decimal = Decimal('0')
    image: Optional[str] = None

    @field_validator('price', mode='before')
    @classmethod
    def _missing_price_is_zero(cls, v):
        return Decimal('0') if v is None else v


class ProductsResponse(_BackendModel):
    products: List[Product] = Field(default_factory=list)


# ===== SALES =====

class ProductSnapshot(_BackendModel):
    """Product as embedded in a sale line (populated or bare id)."""
    id: Optional[str] = Field(None, alias='_id')
    name: str = ''
    sku: Optional[str] = None
    image: Optional[str] = None


class SaleItem(_BackendModel):
    product: ProductSnapshot = Field(default_factory=ProductSnapshot)
    quantity: Decimal
    unit_price: Decimal = Field(..., alias='unitPrice')
    discount: Decimal = Decimal('0')
    total_price: Decimal = Field(..., alias='totalPrice')

    @field_validator('product', mode='before')
    @classmethod
    def _bare_product_id(cls, v):
        # Unpopulated references come back as a plain id string
        if isinstance(v, str):
            return {'_id': v}
        return v if v is not None else {}


class PaymentDetails(_BackendModel):
    cash_received: Optional[Decimal] = Field(None, alias='cashReceived')
    change: Optional[Decimal] = None


class UserRef(_BackendModel):
    id: Optional[str] = Field(None, alias='_id')
    name: str = ''


class SubmittedSale(_BackendModel):
    """Sale as confirmed by the backend. Read-only on this side."""
    id: str = Field(..., alias='_id')
    sale_number: str = Field('', alias='saleNumber')
    created_at: datetime = Field(..., alias='createdAt')
    items: List[SaleItem] = Field(default_factory=list)
    subtotal: Decimal = Decimal('0')
    tax: Decimal = Decimal('0')
    total: Decimal = Decimal('0')
    payment_method: Optional[str] = Field(None, alias='paymentMethod')
    payment_details: PaymentDetails = Field(default_factory=PaymentDetails, alias='paymentDetails')
    status: Optional[str] = None
    cashier: Optional[UserRef] = None

    @field_validator('payment_details', mode='before')
    @classmethod
    def _empty_payment_details(cls, v):
        return {} if v is None else v

    @field_validator('cashier', mode='before')
    @classmethod
    def _bare_cashier_id(cls, v):
        if isinstance(v, str):
            return {'_id': v}
        return v

    @field_validator('tax', mode='before')
    @classmethod
    def _missing_tax_is_zero(cls, v):
        return Decimal('0') if v is None else v


class SaleResponse(_BackendModel):
    sale: SubmittedSale


class SalesPage(_BackendModel):
    sales: List[SubmittedSale] = Field(default_factory=list)
    pagination: Dict[str, Any] = Field(default_factory=dict)


class DailyStats(_BackendModel):
    """Figures shown on the dashboard and above the sales list."""
    model_config = ConfigDict(populate_by_name=True, extra='allow', frozen=True)

    total_sales: Decimal = Field(Decimal('0'), alias='totalSales')
    total_revenue: Decimal = Field(Decimal('0'), alias='totalRevenue')
    average_sale: Decimal = Field(Decimal('0'), alias='averageSale')


# ===== AUTH =====

class SessionUser(_BackendModel):
    id: str = Field(..., alias='_id')
    name: str = ''
    email: Optional[str] = None
    role: Optional[str] = None


class LoginResponse(_BackendModel):
    token: str
    user: SessionUser


# ===== ERRORS =====

class ErrorResponse(_BackendModel):
    message: Optional[str] = None
    errors: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('errors', mode='before')
    @classmethod
    def _errors_mapping(cls, v):
        # Some endpoints send a list of {field, message} objects
        if isinstance(v, list):
            return {str(e.get('field', i)): e.get('message', '') for i, e in enumerate(v) if isinstance(e, dict)}
        return v or {}


M = TypeVar('M', bound=BaseModel)


def parse_response(model: Type[M], data: Any) -> M:
    """Parse a decoded JSON body into ``model`` or fail with a BackendError."""
    try:
        return model.model_validate(data)
    except SchemaError as e:
        raise BackendError(f'Unexpected response from backend ({model.__name__}): {e.error_count()} invalid field(s)') from e


def parse_error(data: Any) -> ErrorResponse:
    """Best-effort parse of a failure body; never raises."""
    if not isinstance(data, dict):
        return ErrorResponse()
    try:
        return ErrorResponse.model_validate(data)
    except SchemaError:
        return ErrorResponse()
