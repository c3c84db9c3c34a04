"""
Sale submission - validate, send to the backend, and hand off the result.

State machine per draft:
    IDLE -> SUBMITTING -> SUCCESS | FAILED
    FAILED -> IDLE on the next attempt (draft is left untouched)
    SUCCESS is terminal for the draft
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from market_admin.exceptions import BackendError, MarketAdminError, SubmissionInProgressError
from market_admin.services import payment_settlement
from market_admin.services.receipt_service import ReceiptDocument, render_receipt
from market_admin.services.sale_composer import SaleDraft, compute_totals, validate_draft
from market_admin.services.sales_service import invalidate_sales_caches
from market_admin.services.schemas import SubmittedSale

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class SubmissionOutcome:
    sale: SubmittedSale
    receipt: ReceiptDocument


class SaleSubmission:
    """Submission lifecycle of a single draft. At most one request in flight."""

    def __init__(self, draft_id: str):
        self.draft_id = draft_id
        self.state = SubmissionState.IDLE
        self.last_error: Optional[str] = None
        self.sale: Optional[SubmittedSale] = None
        self._lock = threading.Lock()

    @property
    def in_flight(self) -> bool:
        return self.state == SubmissionState.SUBMITTING

    def _begin(self, draft: SaleDraft) -> None:
        with self._lock:
            if self.state == SubmissionState.SUBMITTING:
                raise SubmissionInProgressError()
            if self.state == SubmissionState.SUCCESS:
                raise MarketAdminError('This sale was already submitted', 409)
            if self.state == SubmissionState.FAILED:
                self.state = SubmissionState.IDLE
            # Raises ValidationError; state stays IDLE and nothing is sent
            validate_draft(draft)
            self.state = SubmissionState.SUBMITTING

    def submit(self, draft: SaleDraft, client, scope: str) -> SubmissionOutcome:
        """
        Submit the draft through ``client``.

        Raises:
            ValidationError: draft not submit-eligible (no request made)
            SubmissionInProgressError: another submit of this draft is running
            BackendError: the backend rejected the sale or was unreachable
        """
        self._begin(draft)

        totals = compute_totals(draft)
        change = payment_settlement.change(draft)
        payload = payment_settlement.build_sale_payload(draft)
        logger.info(f"[SALE] Submitting draft {self.draft_id}: {len(draft.items)} line(s), "
                    f"method={draft.payment_method.value}, total={totals.total}")

        try:
            sale = client.create_sale(payload)
        except BackendError as e:
            self.state = SubmissionState.FAILED
            self.last_error = e.message
            logger.warning(f"[SALE] Draft {self.draft_id} failed: {e.message}")
            raise
        except Exception:
            self.state = SubmissionState.FAILED
            self.last_error = 'Unexpected error'
            logger.exception(f"[SALE] Draft {self.draft_id} failed unexpectedly")
            raise

        self.state = SubmissionState.SUCCESS
        self.sale = sale
        invalidate_sales_caches(scope)

        receipt = render_receipt(
            sale,
            subtotal=totals.subtotal,
            tax=draft.tax,
            total=totals.total,
            cash_received=draft.cash_received,
            change=change,
        )
        logger.info(f"[SALE] Draft {self.draft_id} confirmed as {sale.sale_number}")
        return SubmissionOutcome(sale=sale, receipt=receipt)


MAX_TRACKED_SUBMISSIONS = 1000

_submissions: Dict[str, SaleSubmission] = {}
_submissions_lock = threading.Lock()


def submission_for(draft_id: str) -> SaleSubmission:
    """Process-wide submission tracker for a draft."""
    with _submissions_lock:
        submission = _submissions.get(draft_id)
        if submission is None:
            submission = _submissions[draft_id] = SaleSubmission(draft_id)
            _prune()
        return submission


def _prune() -> None:
    # Oldest settled trackers go first; in-flight ones are kept
    excess = len(_submissions) - MAX_TRACKED_SUBMISSIONS
    for draft_id in list(_submissions):
        if excess <= 0:
            break
        if not _submissions[draft_id].in_flight:
            del _submissions[draft_id]
            excess -= 1


def discard_submission(draft_id: str) -> None:
    with _submissions_lock:
        _submissions.pop(draft_id, None)
