"""Receipt rendering for submitted sales (printable HTML and PDF)."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import Any, Dict, Tuple

from flask import render_template
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A6
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from market_admin.services.schemas import SubmittedSale
from market_admin.utils.formatters import format_datetime, format_money, format_quantity
from market_admin.utils.number_format import ZERO, parse_amount


@dataclass(frozen=True)
class ReceiptLine:
    name: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class ReceiptDocument:
    sale_id: str
    sale_number: str
    created_at: datetime
    lines: Tuple[ReceiptLine, ...]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    cash_received: Decimal
    change: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sale_id': self.sale_id,
            'sale_number': self.sale_number,
            'created_at': self.created_at.isoformat(),
            'lines': [
                {'name': l.name, 'quantity': str(l.quantity),
                 'unit_price': str(l.unit_price), 'line_total': str(l.line_total)}
                for l in self.lines
            ],
            'subtotal': str(self.subtotal),
            'tax': str(self.tax),
            'total': str(self.total),
            'cash_received': str(self.cash_received),
            'change': str(self.change),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReceiptDocument':
        return cls(
            sale_id=data['sale_id'],
            sale_number=data.get('sale_number', ''),
            created_at=datetime.fromisoformat(data['created_at']),
            lines=tuple(
                ReceiptLine(l['name'], parse_amount(l['quantity']),
                            parse_amount(l['unit_price']), parse_amount(l['line_total']))
                for l in data.get('lines', [])
            ),
            subtotal=parse_amount(data.get('subtotal')),
            tax=parse_amount(data.get('tax')),
            total=parse_amount(data.get('total')),
            cash_received=parse_amount(data.get('cash_received')),
            change=parse_amount(data.get('change')),
        )


def render_receipt(sale: SubmittedSale, subtotal: Decimal, tax: Decimal, total: Decimal,
                   cash_received: Decimal, change: Decimal) -> ReceiptDocument:
    """
    Build the receipt for a sale the backend just confirmed.

    Line totals come from the server (``totalPrice``); the footer figures are
    the ones the cashier saw when submitting.
    """
    lines = tuple(
        ReceiptLine(
            name=item.product.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=item.total_price,
        )
        for item in sale.items
    )
    return ReceiptDocument(
        sale_id=sale.id,
        sale_number=sale.sale_number,
        created_at=sale.created_at,
        lines=lines,
        subtotal=subtotal,
        tax=tax,
        total=total,
        cash_received=cash_received,
        change=change,
    )


def receipt_from_sale(sale: SubmittedSale) -> ReceiptDocument:
    """Receipt for a reprint, using only server-confirmed figures."""
    details = sale.payment_details
    return render_receipt(
        sale,
        subtotal=sale.subtotal,
        tax=sale.tax,
        total=sale.total,
        cash_received=details.cash_received if details.cash_received is not None else ZERO,
        change=details.change if details.change is not None else ZERO,
    )


def receipt_html(receipt: ReceiptDocument, autoprint: bool = True) -> str:
    """Printable page; with ``autoprint`` the browser print dialog opens on load."""
    return render_template('sales/receipt.html', receipt=receipt, autoprint=autoprint)


def receipt_pdf(receipt: ReceiptDocument, business_name: str, currency: str) -> BytesIO:
    """Render the receipt as a small-format PDF."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A6,
        rightMargin=6*mm,
        leftMargin=6*mm,
        topMargin=6*mm,
        bottomMargin=6*mm,
        title=f"Receipt {receipt.sale_number}"
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'ReceiptTitle',
        parent=styles['Heading2'],
        fontSize=13,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=4,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )
    small_style = ParagraphStyle(
        'ReceiptSmall',
        parent=styles['Normal'],
        fontSize=7,
        alignment=TA_CENTER,
        textColor=colors.HexColor('#7F8C8D')
    )

    elements.append(Paragraph(business_name, title_style))
    elements.append(Paragraph(f"Receipt - {receipt.sale_number}", small_style))
    elements.append(Paragraph(f"Date: {format_datetime(receipt.created_at)}", small_style))
    elements.append(Spacer(1, 3*mm))

    # Header row stays even when there are no lines
    table_data = [['Product', 'Qty', 'Unit', f'Total ({currency})']]
    for line in receipt.lines:
        table_data.append([
            line.name,
            format_quantity(line.quantity),
            f"{line.unit_price:.2f}",
            f"{line.line_total:.2f}",
        ])

    items_table = Table(table_data, colWidths=[38*mm, 10*mm, 16*mm, 20*mm], repeatRows=1)
    items_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 7),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('LINEBELOW', (0, 0), (-1, -1), 0.25, colors.HexColor('#DDDDDD')),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 3*mm))

    footer_data = [
        ['Subtotal:', format_money(receipt.subtotal, currency)],
        ['Tax:', format_money(receipt.tax, currency)],
        ['Total:', format_money(receipt.total, currency)],
        ['Cash Received:', format_money(receipt.cash_received, currency)],
        ['Change:', format_money(receipt.change, currency)],
    ]
    footer_table = Table(footer_data, colWidths=[44*mm, 40*mm])
    footer_table.setStyle(TableStyle([
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('ALIGN', (1, 0), (1, -1), 'RIGHT'),
        ('FONTNAME', (0, 2), (-1, 2), 'Helvetica-Bold'),
    ]))
    elements.append(footer_table)
    elements.append(Spacer(1, 3*mm))
    elements.append(Paragraph("Thank you for your purchase.", small_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
