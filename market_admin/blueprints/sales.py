"""Sales blueprint: sales list, new sale screen, sale details and receipts."""
from flask import Blueprint, render_template, request, redirect, url_for, flash, session, send_file, current_app, Response
from typing import Dict, List, Optional, Tuple, Union
import logging

from market_admin.blueprints.metrics import record_submission
from market_admin.exceptions import BackendError, NotFoundError, SubmissionInProgressError, ValidationError
from market_admin.middleware import cache_scope
from market_admin.services import payment_settlement
from market_admin.services.api_client import get_backend_client
from market_admin.services.catalog_service import ProductCatalogCache, load_catalog
from market_admin.services.receipt_service import ReceiptDocument, receipt_from_sale, receipt_html, receipt_pdf
from market_admin.services.sale_composer import (
    AMOUNT_TOO_LARGE, MISSING_PRODUCT, NEGATIVE_UNIT_PRICE, NO_ITEMS, NON_POSITIVE_QUANTITY,
    PaymentMethod, SaleComposer, SaleDraft
)
from market_admin.services.sale_submission import discard_submission, submission_for
from market_admin.services.sales_service import get_daily_stats, get_sales_page
from market_admin.services.schemas import Product

logger = logging.getLogger(__name__)

sales_bp = Blueprint('sales', __name__, url_prefix='/sales')

DRAFT_KEY = 'sale_draft'
LAST_RECEIPT_KEY = 'last_receipt'

# Editable per-line inputs posted by the sale form as items-<index>-<field>
LINE_FIELDS = ('displayName', 'quantity', 'unitPrice', 'discount')

PROBLEM_MESSAGES = {
    MISSING_PRODUCT: 'Choose a product from the suggestions',
    NON_POSITIVE_QUANTITY: 'Quantity must be greater than 0',
    NEGATIVE_UNIT_PRICE: 'Unit price cannot be negative',
    NO_ITEMS: 'Add at least one item',
    AMOUNT_TOO_LARGE: 'Amount is too large',
}


# ===== DRAFT STORAGE =====

def _load_draft() -> Optional[SaleDraft]:
    data = session.get(DRAFT_KEY)
    return SaleDraft.from_dict(data) if data else None


def _save_draft(draft: SaleDraft) -> None:
    session[DRAFT_KEY] = draft.to_dict()


def _catalog_for(draft: SaleDraft) -> ProductCatalogCache:
    """Catalog of the draft; an unreachable backend leaves search empty."""
    try:
        return load_catalog(get_backend_client(), cache_scope(), draft.draft_id)
    except BackendError as e:
        logger.warning(f"[CATALOG] Could not load products for draft {draft.draft_id}: {e.message}")
        flash('Could not load products. Product search is unavailable.', 'warning')
        return ProductCatalogCache([])


def _parse_index(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _apply_form(composer: SaleComposer, form) -> None:
    """Copy posted inputs onto the draft. Absent inputs are left as they are."""
    for index in range(len(composer.items)):
        for field_name in LINE_FIELDS:
            key = f'items-{index}-{field_name}'
            if key in form:
                composer.set_field(index, field_name, form[key])
    if 'tax' in form:
        composer.set_tax(form['tax'])
    if 'paymentMethod' in form:
        composer.set_payment_method(form['paymentMethod'])
    if 'cashReceived' in form:
        composer.set_cash_received(form['cashReceived'])


def _suggestions(draft: SaleDraft, catalog: ProductCatalogCache) -> Dict[int, List[Product]]:
    """Search results per line, skipped for lines showing their selected product."""
    suggestions = {}
    for index, item in enumerate(draft.items):
        selected = catalog.resolve(item.product_ref) if item.product_ref else None
        if selected is not None and selected.name == item.display_name:
            continue
        matches = catalog.search(item.display_name)
        if matches:
            suggestions[index] = matches
    return suggestions


def _render_form(composer: SaleComposer, catalog: ProductCatalogCache,
                 line_errors: Optional[Dict] = None, server_errors: Optional[Dict] = None,
                 status: int = 200) -> Tuple[str, int]:
    draft = composer.draft
    line_messages = {
        index: [PROBLEM_MESSAGES.get(p, p) for p in problems]
        for index, problems in (line_errors or {}).items()
    }
    return render_template(
        'sales/new.html',
        draft=draft,
        totals=composer.compute_totals(),
        change=payment_settlement.change(draft),
        tracks_cash=payment_settlement.tracks_cash(draft.payment_method),
        payment_methods=list(PaymentMethod),
        suggestions=_suggestions(draft, catalog),
        line_errors=line_messages,
        server_errors=server_errors or {},
        in_flight=submission_for(draft.draft_id).in_flight,
        catalog_size=len(catalog),
    ), status


# ===== SALES LIST =====

@sales_bp.route('', strict_slashes=False)
def list_sales() -> Union[str, Tuple[str, int]]:
    """Paginated sales with today's stats. Opens the receipt of a sale just created."""
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    client = get_backend_client()
    scope = cache_scope()

    sales_page = None
    stats = None
    error = None
    try:
        sales_page = get_sales_page(client, scope, page)
        stats = get_daily_stats(client, scope)
    except BackendError as e:
        logger.warning(f"[SALE] Could not load sales page {page}: {e.message}")
        error = 'Failed to load sales'

    receipt_id = request.args.get('receipt')
    receipt_url = url_for('sales.receipt', sale_id=receipt_id) if receipt_id else None

    return render_template(
        'sales/list.html',
        sales_page=sales_page,
        stats=stats,
        page=page,
        error=error,
        receipt_url=receipt_url,
    ), 200 if error is None else 502


# ===== NEW SALE =====

@sales_bp.route('/new', methods=['GET'])
def new_sale() -> Tuple[str, int]:
    """Mount the sale screen with a fresh draft holding one empty line."""
    previous = _load_draft()
    if previous is not None and not submission_for(previous.draft_id).in_flight:
        discard_submission(previous.draft_id)

    draft = SaleDraft.new()
    _save_draft(draft)
    catalog = _catalog_for(draft)
    logger.debug(f"[SALE] New draft {draft.draft_id} with {len(catalog)} products")
    return _render_form(SaleComposer(draft, catalog), catalog)


@sales_bp.route('/new', methods=['POST'])
def update_sale() -> Union[Response, Tuple[str, int]]:
    """
    Apply one edit to the draft, or submit it.

    Actions: ``add_line``, ``remove_line:<i>``, ``select_product:<i>:<id>``,
    ``update`` (recompute only) and ``submit``.
    """
    draft = _load_draft()
    if draft is None:
        flash('The sale was reset. Please start again.', 'warning')
        return redirect(url_for('sales.new_sale'))

    catalog = _catalog_for(draft)
    composer = SaleComposer(draft, catalog)
    _apply_form(composer, request.form)

    action = request.form.get('action', 'update')
    if action == 'add_line':
        composer.add_line()
    elif action.startswith('remove_line:'):
        index = _parse_index(action.split(':', 1)[1])
        if index is not None:
            composer.remove_line(index)
    elif action.startswith('select_product:'):
        parts = action.split(':', 2)
        index = _parse_index(parts[1]) if len(parts) == 3 else None
        if index is not None and not composer.select_product(index, parts[2]):
            flash('That product is no longer available.', 'warning')
    elif action == 'submit':
        return _submit(composer, catalog)

    _save_draft(draft)
    return _render_form(composer, catalog)


def _submit(composer: SaleComposer, catalog: ProductCatalogCache) -> Union[Response, Tuple[str, int]]:
    draft = composer.draft
    _save_draft(draft)
    submission = submission_for(draft.draft_id)

    try:
        outcome = submission.submit(draft, get_backend_client(), cache_scope())
    except ValidationError as e:
        record_submission('invalid')
        flash(e.message, 'danger')
        return _render_form(composer, catalog, line_errors=e.line_errors, status=400)
    except SubmissionInProgressError as e:
        record_submission('duplicate')
        flash(e.message, 'warning')
        return _render_form(composer, catalog, status=409)
    except BackendError as e:
        record_submission('failed')
        flash(e.message, 'danger')
        return _render_form(composer, catalog, server_errors=e.errors,
                            status=e.status_code if e.status_code < 500 else 502)

    record_submission('success')
    session.pop(DRAFT_KEY, None)
    session[LAST_RECEIPT_KEY] = outcome.receipt.to_dict()
    flash(f'Sale {outcome.sale.sale_number} created successfully', 'success')
    return redirect(url_for('sales.list_sales', receipt=outcome.sale.id))


# ===== DETAILS AND RECEIPTS =====

def _load_failure(e: BackendError) -> Tuple[str, int]:
    logger.warning(f"[SALE] Failed to load sale: {e.message}")
    status = 404 if isinstance(e, NotFoundError) else 502
    return render_template('sales/detail.html', sale=None, error='Failed to load sale'), status


def _receipt_for(sale_id: str) -> ReceiptDocument:
    """Receipt captured at submit time when available, otherwise from the server."""
    stored = session.get(LAST_RECEIPT_KEY)
    if stored and stored.get('sale_id') == sale_id:
        return ReceiptDocument.from_dict(stored)
    return receipt_from_sale(get_backend_client().get_sale(sale_id))


@sales_bp.route('/<sale_id>')
def detail_sale(sale_id: str) -> Tuple[str, int]:
    try:
        sale = get_backend_client().get_sale(sale_id)
    except BackendError as e:
        return _load_failure(e)
    return render_template('sales/detail.html', sale=sale, error=None), 200


@sales_bp.route('/<sale_id>/receipt')
def receipt(sale_id: str) -> Union[str, Tuple[str, int]]:
    """Printable receipt; ``?print=0`` suppresses the print dialog."""
    try:
        document = _receipt_for(sale_id)
    except BackendError as e:
        return _load_failure(e)
    return receipt_html(document, autoprint=request.args.get('print', '1') != '0')


@sales_bp.route('/<sale_id>/receipt.pdf')
def receipt_download(sale_id: str) -> Union[Response, Tuple[str, int]]:
    try:
        document = _receipt_for(sale_id)
    except BackendError as e:
        return _load_failure(e)

    pdf = receipt_pdf(
        document,
        business_name=current_app.config.get('BUSINESS_NAME', ''),
        currency=current_app.config.get('CURRENCY_LABEL', 'CFA'),
    )
    return send_file(
        pdf,
        mimetype='application/pdf',
        as_attachment=False,
        download_name=f'receipt-{document.sale_number or document.sale_id}.pdf'
    )
