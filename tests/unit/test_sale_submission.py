"""
Unit tests for the sale submission lifecycle.
"""

import threading
import pytest
from decimal import Decimal
from unittest.mock import MagicMock, patch

from market_admin.exceptions import BackendError, MarketAdminError, SubmissionInProgressError, ValidationError
from market_admin.services import sale_submission
from market_admin.services.sale_composer import LineItem, PaymentMethod, SaleDraft
from market_admin.services.sale_submission import SaleSubmission, SubmissionState, discard_submission, submission_for
from tests.fakes import make_sale


def _valid_draft(cash='30'):
    return SaleDraft(
        items=[
            LineItem(product_ref='p-milk', display_name='Milk 1L', quantity=Decimal('2'), unit_price=Decimal('10')),
            LineItem(product_ref='p-bread', display_name='Bread', quantity=Decimal('1'), unit_price=Decimal('5'),
                     discount=Decimal('1')),
        ],
        tax=Decimal('2'),
        payment_method=PaymentMethod.CASH,
        cash_received=Decimal(cash),
    )


@pytest.fixture
def client():
    fake = MagicMock()
    fake.create_sale.side_effect = lambda payload: make_sale(payload)
    return fake


class TestSubmit:
    """Tests for SaleSubmission.submit."""

    def test_success_builds_receipt_from_client_totals(self, app, client):
        """Test the receipt carries the figures shown when submitting."""
        submission = SaleSubmission('d-success')

        with app.app_context():
            outcome = submission.submit(_valid_draft(), client, 'u-cash')

        assert submission.state == SubmissionState.SUCCESS
        assert outcome.sale.sale_number == 'SALE-0001'
        receipt = outcome.receipt
        assert receipt.subtotal == Decimal('24')
        assert receipt.total == Decimal('26')
        assert receipt.cash_received == Decimal('30')
        assert receipt.change == Decimal('4')
        assert [line.name for line in receipt.lines] == ['Milk 1L', 'Bread']

    def test_sends_payload_once(self, app, client):
        with app.app_context():
            SaleSubmission('d-payload').submit(_valid_draft(), client, 'u-cash')

        client.create_sale.assert_called_once()
        payload = client.create_sale.call_args[0][0]
        assert payload['paymentDetails'] == {'cashReceived': 30, 'change': 4}

    def test_underpayment_is_submitted(self, app, client):
        """Test cash short of the total does not block the sale."""
        with app.app_context():
            outcome = SaleSubmission('d-short').submit(_valid_draft(cash='20'), client, 'u-cash')

        assert outcome.receipt.change == Decimal('0')

    def test_invalid_draft_makes_no_request(self, app, client):
        """Test validation failures stay idle and never reach the backend."""
        submission = SaleSubmission('d-invalid')

        with pytest.raises(ValidationError):
            submission.submit(SaleDraft.new(), client, 'u-cash')

        assert submission.state == SubmissionState.IDLE
        client.create_sale.assert_not_called()

    def test_backend_failure_keeps_draft_and_allows_retry(self, app, client):
        """Test a rejected sale can be submitted again unchanged."""
        draft = _valid_draft()
        before = draft.to_dict()
        client.create_sale.side_effect = [
            BackendError('Insufficient stock for Milk 1L', 400),
            make_sale(),
        ]
        submission = SaleSubmission('d-retry')

        with app.app_context():
            with pytest.raises(BackendError):
                submission.submit(draft, client, 'u-cash')

            assert submission.state == SubmissionState.FAILED
            assert submission.last_error == 'Insufficient stock for Milk 1L'
            assert draft.to_dict() == before

            submission.submit(draft, client, 'u-cash')

        assert submission.state == SubmissionState.SUCCESS
        assert client.create_sale.call_count == 2

    def test_success_is_terminal(self, app, client):
        submission = SaleSubmission('d-done')
        with app.app_context():
            submission.submit(_valid_draft(), client, 'u-cash')

            with pytest.raises(MarketAdminError) as exc:
                submission.submit(_valid_draft(), client, 'u-cash')

        assert exc.value.status_code == 409
        client.create_sale.assert_called_once()

    def test_success_invalidates_sales_caches(self, app, client):
        with app.app_context():
            with patch.object(sale_submission, 'invalidate_sales_caches') as invalidate:
                SaleSubmission('d-cache').submit(_valid_draft(), client, 'u-cash')

        invalidate.assert_called_once_with('u-cash')

    def test_concurrent_submit_is_rejected(self, app):
        """Test a second submit while one is in flight fails without a request."""
        started = threading.Event()
        release = threading.Event()

        def slow_create(payload):
            started.set()
            release.wait(5)
            return make_sale(payload)

        client = MagicMock()
        client.create_sale.side_effect = slow_create
        submission = SaleSubmission('d-concurrent')
        draft = _valid_draft()

        def first():
            with app.app_context():
                submission.submit(draft, client, 'u-cash')

        worker = threading.Thread(target=first)
        worker.start()
        assert started.wait(5)
        try:
            assert submission.in_flight
            with pytest.raises(SubmissionInProgressError):
                submission.submit(draft, client, 'u-cash')
        finally:
            release.set()
            worker.join(5)

        assert client.create_sale.call_count == 1
        assert submission.state == SubmissionState.SUCCESS


class TestSubmissionRegistry:
    """Tests for the per-draft submission trackers."""

    def test_same_draft_same_tracker(self):
        assert submission_for('d-registry') is submission_for('d-registry')
        discard_submission('d-registry')

    def test_discard_forgets_tracker(self):
        first = submission_for('d-discard')
        discard_submission('d-discard')

        assert submission_for('d-discard') is not first

    def test_registry_is_bounded(self, monkeypatch):
        """Test settled trackers are pruned past the limit."""
        monkeypatch.setattr(sale_submission, 'MAX_TRACKED_SUBMISSIONS', 3)
        monkeypatch.setattr(sale_submission, '_submissions', {})

        for i in range(5):
            submission_for(f'd-bounded-{i}')

        assert len(sale_submission._submissions) == 3
        assert 'd-bounded-4' in sale_submission._submissions
