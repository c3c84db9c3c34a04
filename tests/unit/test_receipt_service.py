"""
Unit tests for receipt rendering.
"""

from decimal import Decimal

from market_admin.services.receipt_service import (
    ReceiptDocument, receipt_from_sale, receipt_html, receipt_pdf, render_receipt
)
from tests.fakes import make_sale

PAYLOAD = {
    'items': [
        {'product': 'p-milk', 'quantity': 2, 'unitPrice': 10, 'discount': 0},
        {'product': 'p-bread', 'quantity': 1, 'unitPrice': 5, 'discount': 1},
    ],
    'paymentMethod': 'cash',
    'tax': 2,
    'paymentDetails': {'cashReceived': 30, 'change': 4},
}


class TestRenderReceipt:
    """Tests for building the receipt document."""

    def test_lines_use_server_line_totals(self):
        sale = make_sale(PAYLOAD)

        receipt = render_receipt(sale, Decimal('24'), Decimal('2'), Decimal('26'), Decimal('30'), Decimal('4'))

        assert [(l.name, l.quantity, l.line_total) for l in receipt.lines] == [
            ('Milk 1L', Decimal('2'), Decimal('20')),
            ('Bread', Decimal('1'), Decimal('4')),
        ]
        assert receipt.sale_number == 'SALE-0001'
        assert receipt.total == Decimal('26')

    def test_reprint_uses_server_figures(self):
        receipt = receipt_from_sale(make_sale(PAYLOAD))

        assert receipt.subtotal == Decimal('24')
        assert receipt.total == Decimal('26')
        assert receipt.cash_received == Decimal('30')
        assert receipt.change == Decimal('4')

    def test_reprint_without_cash_details(self):
        receipt = receipt_from_sale(make_sale({'items': [], 'paymentMethod': 'card', 'tax': 0}))

        assert receipt.cash_received == Decimal('0')
        assert receipt.change == Decimal('0')

    def test_document_survives_session_storage(self):
        receipt = receipt_from_sale(make_sale(PAYLOAD))

        assert ReceiptDocument.from_dict(receipt.to_dict()) == receipt


class TestReceiptOutput:
    """Tests for the printable outputs."""

    def test_html_autoprints(self, app):
        receipt = receipt_from_sale(make_sale(PAYLOAD))

        with app.test_request_context('/sales/sale-1/receipt'):
            html = receipt_html(receipt)

        assert 'window.print()' in html
        assert 'SALE-0001' in html
        assert 'CFA 26.00' in html

    def test_html_without_autoprint(self, app):
        receipt = receipt_from_sale(make_sale(PAYLOAD))

        with app.test_request_context('/sales/sale-1/receipt'):
            html = receipt_html(receipt, autoprint=False)

        assert 'window.print()' not in html

    def test_empty_sale_renders_valid_table(self, app):
        """Test a sale without lines still renders the table header."""
        receipt = receipt_from_sale(make_sale())

        with app.test_request_context('/sales/sale-1/receipt'):
            html = receipt_html(receipt)

        assert '<thead>' in html
        assert 'CFA 0.00' in html

    def test_pdf(self):
        pdf = receipt_pdf(receipt_from_sale(make_sale(PAYLOAD)), 'Champion Market', 'CFA')

        assert pdf.getvalue().startswith(b'%PDF')

    def test_pdf_for_empty_sale(self):
        pdf = receipt_pdf(receipt_from_sale(make_sale()), 'Champion Market', 'CFA')

        assert pdf.getvalue().startswith(b'%PDF')
