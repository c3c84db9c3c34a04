"""Payment settlement - cash change and the outgoing sale payload."""

from decimal import Decimal
from typing import Any, Dict, Optional

from market_admin.services.sale_composer import PaymentMethod, SaleDraft, compute_totals
from market_admin.utils.number_format import ZERO, to_json_number

CASH_TENDER_METHODS = frozenset({PaymentMethod.CASH, PaymentMethod.MIXED})


def tracks_cash(method: PaymentMethod) -> bool:
    """Whether cash received and change mean anything for this method."""
    return method in CASH_TENDER_METHODS


def change(draft: SaleDraft) -> Decimal:
    """Cash to hand back. Floors at zero when the customer underpays."""
    return max(ZERO, draft.cash_received - compute_totals(draft).total)


def payment_details(draft: SaleDraft) -> Optional[Dict[str, Any]]:
    if not tracks_cash(draft.payment_method):
        return None
    return {
        'cashReceived': to_json_number(draft.cash_received),
        'change': to_json_number(change(draft)),
    }


def build_sale_payload(draft: SaleDraft) -> Dict[str, Any]:
    """Request body for ``POST /sales``."""
    payload = {
        'items': [
            {
                'product': item.product_ref,
                'quantity': to_json_number(item.quantity),
                'unitPrice': to_json_number(item.unit_price),
                'discount': to_json_number(item.discount),
            }
            for item in draft.items
        ],
        'paymentMethod': draft.payment_method.value,
        'tax': to_json_number(draft.tax),
    }
    details = payment_details(draft)
    if details is not None:
        payload['paymentDetails'] = details
    return payload
