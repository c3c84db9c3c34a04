"""Sale composer - in-progress sale draft and its derived totals."""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from market_admin.exceptions import ValidationError
from market_admin.utils.number_format import MAX_AMOUNT, ZERO, parse_amount, parse_non_negative


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    MOBILE = "mobile"
    MIXED = "mixed"

    @classmethod
    def parse(cls, value: Any, default: 'PaymentMethod' = None) -> 'PaymentMethod':
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default or cls.CASH


# Line predicates reported by validation
MISSING_PRODUCT = 'missing_product'
NON_POSITIVE_QUANTITY = 'non_positive_quantity'
NEGATIVE_UNIT_PRICE = 'negative_unit_price'
NO_ITEMS = 'no_items'
AMOUNT_TOO_LARGE = 'amount_too_large'

# Editable scalar fields, by form name and attribute name
EDITABLE_FIELDS = {
    'quantity': 'quantity',
    'unitPrice': 'unit_price',
    'unit_price': 'unit_price',
    'discount': 'discount',
    'displayName': 'display_name',
    'display_name': 'display_name',
}


@dataclass
class LineItem:
    """One product entry of a draft."""
    product_ref: Optional[str] = None
    display_name: str = ''
    quantity: Decimal = Decimal('1')
    unit_price: Decimal = ZERO
    discount: Decimal = ZERO
    image: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return max(ZERO, self.quantity * self.unit_price - self.discount)

    def problems(self) -> List[str]:
        found = []
        if not self.product_ref:
            found.append(MISSING_PRODUCT)
        if self.quantity <= 0:
            found.append(NON_POSITIVE_QUANTITY)
        if self.unit_price < 0:
            found.append(NEGATIVE_UNIT_PRICE)
        if max(abs(self.quantity), abs(self.unit_price), self.discount) > MAX_AMOUNT:
            found.append(AMOUNT_TOO_LARGE)
        return found

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_ref': self.product_ref,
            'display_name': self.display_name,
            'quantity': str(self.quantity),
            'unit_price': str(self.unit_price),
            'discount': str(self.discount),
            'image': self.image,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineItem':
        return cls(
            product_ref=data.get('product_ref') or None,
            display_name=data.get('display_name') or '',
            quantity=parse_amount(data.get('quantity')),
            unit_price=parse_amount(data.get('unit_price')),
            discount=parse_non_negative(data.get('discount')),
            image=data.get('image') or None,
        )


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    total: Decimal


@dataclass
class SaleDraft:
    """The unsaved sale being composed. Totals are never stored on it."""
    draft_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    items: List[LineItem] = field(default_factory=list)
    payment_method: PaymentMethod = PaymentMethod.CASH
    tax: Decimal = ZERO
    cash_received: Decimal = ZERO

    @classmethod
    def new(cls) -> 'SaleDraft':
        """Draft as created when the sale screen mounts: one empty line."""
        return cls(items=[LineItem()])

    def to_dict(self) -> Dict[str, Any]:
        return {
            'draft_id': self.draft_id,
            'items': [item.to_dict() for item in self.items],
            'payment_method': self.payment_method.value,
            'tax': str(self.tax),
            'cash_received': str(self.cash_received),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SaleDraft':
        return cls(
            draft_id=data.get('draft_id') or uuid.uuid4().hex,
            items=[LineItem.from_dict(item) for item in data.get('items', [])],
            payment_method=PaymentMethod.parse(data.get('payment_method')),
            tax=parse_non_negative(data.get('tax')),
            cash_received=parse_non_negative(data.get('cash_received')),
        )


def compute_totals(draft: SaleDraft) -> Totals:
    """Subtotal and total derived from the current items and tax."""
    subtotal = sum((item.line_total for item in draft.items), ZERO)
    return Totals(subtotal=subtotal, total=subtotal + draft.tax)


def validate_draft(draft: SaleDraft) -> None:
    """
    Raise ValidationError unless the draft is submit-eligible.

    Eligible iff there is at least one line and every line has a product,
    a positive quantity and a non-negative unit price. Discounts and the
    amount of cash received are not checked beyond MAX_AMOUNT, which bounds
    every amount on the draft.
    """
    line_errors: Dict[Optional[int], List[str]] = {}
    if not draft.items:
        line_errors[None] = [NO_ITEMS]
    for index, item in enumerate(draft.items):
        problems = item.problems()
        if problems:
            line_errors[index] = problems
    if max(draft.tax, draft.cash_received) > MAX_AMOUNT:
        line_errors.setdefault(None, []).append(AMOUNT_TOO_LARGE)
    if line_errors:
        raise ValidationError(line_errors)


class SaleComposer:
    """Structural edits on a draft's line items.

    Edits addressing a line that does not exist are ignored.
    """

    def __init__(self, draft: SaleDraft, catalog=None):
        self.draft = draft
        self.catalog = catalog

    @property
    def items(self) -> List[LineItem]:
        return self.draft.items

    def _line(self, index: int) -> Optional[LineItem]:
        if isinstance(index, int) and 0 <= index < len(self.draft.items):
            return self.draft.items[index]
        return None

    def add_line(self) -> LineItem:
        line = LineItem()
        self.draft.items.append(line)
        return line

    def remove_line(self, index: int) -> None:
        if self._line(index) is not None:
            del self.draft.items[index]

    def set_field(self, index: int, field_name: str, value: Any) -> None:
        line = self._line(index)
        attr = EDITABLE_FIELDS.get(field_name)
        if line is None or attr is None:
            return
        if attr == 'display_name':
            line.display_name = '' if value is None else str(value)
        elif attr == 'discount':
            line.discount = parse_non_negative(value)
        else:
            setattr(line, attr, parse_amount(value))

    def select_product(self, index: int, product_id: str) -> bool:
        """Fill a line from the catalog. Returns False when nothing changed."""
        line = self._line(index)
        if line is None or self.catalog is None:
            return False
        product = self.catalog.resolve(product_id)
        if product is None:
            return False
        line.product_ref = product.id
        line.display_name = product.name
        line.unit_price = product.price or ZERO
        line.image = product.image
        return True

    def set_tax(self, value: Any) -> None:
        self.draft.tax = parse_non_negative(value)

    def set_payment_method(self, value: Any) -> None:
        self.draft.payment_method = PaymentMethod.parse(value, default=self.draft.payment_method)

    def set_cash_received(self, value: Any) -> None:
        self.draft.cash_received = parse_non_negative(value)

    def compute_totals(self) -> Totals:
        return compute_totals(self.draft)

    def validate(self) -> None:
        validate_draft(self.draft)
