"""
Invoice service.

Invoices move DRAFT -> SENT -> PAID, with OVERDUE entered lazily once the
due date has passed and CANCELLED reachable from any unpaid state. An
invoice that went overdue as a draft can still be sent. Every
transition is a conditional UPDATE on the allowed source statuses, so a
concurrent overdue sweep and a payment can't overwrite each other.
"""

import secrets
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional
from uuid import UUID

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from apps.accounts.models import User
from apps.orders.services.calculator import calculate_totals
from apps.orders.services.exceptions import CalculationError
from config.logging import get_logger

from .exceptions import (
    InvalidInvoiceTransitionError,
    InvoiceNotFoundError,
    InvoiceValidationError,
)
from .models import Invoice, InvoiceItem, InvoiceStatus

logger = get_logger(__name__)

OVERDUE_SOURCE_STATUSES = (InvoiceStatus.DRAFT, InvoiceStatus.SENT)
NUMBER_ATTEMPTS = 5


def generate_invoice_number(today: Optional[date] = None) -> str:
    """``INV-<year>-<4 digits>``. Unique per owner, retried on collision."""
    today = today or timezone.localdate()
    return f"INV-{today.year}-{secrets.randbelow(10000):04d}"


def refresh_overdue_invoices(now: Optional[datetime] = None) -> int:
    """
    Mark draft and sent invoices overdue once their due date has passed.

    A due date of today is not overdue yet. Returns how many invoices changed.
    """
    today = timezone.localdate(now) if now else timezone.localdate()
    updated = Invoice.objects.filter(
        status__in=OVERDUE_SOURCE_STATUSES,
        due_date__lt=today,
    ).update(status=InvoiceStatus.OVERDUE, updated_at=timezone.now())
    if updated:
        logger.info("Marked {} invoice(s) overdue (before {})", updated, today)
    return updated


def _clean_items(items: Iterable[dict]) -> list:
    cleaned = []
    for item in items or []:
        if not isinstance(item, dict):
            raise InvoiceValidationError("Invoice items must be objects")
        name = (item.get('name') or '').strip()
        quantity = item.get('quantity')
        if not name:
            raise InvoiceValidationError("Every invoice item needs a name")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvoiceValidationError(f"Quantity for {name} must be a positive whole number")
        try:
            price = Decimal(str(item.get('price', 0)))
        except (InvalidOperation, TypeError, ValueError):
            raise InvoiceValidationError(f"Price for {name} must be a number")
        if not price.is_finite():
            raise InvoiceValidationError(f"Price for {name} must be a number")
        cleaned.append({'name': name, 'quantity': quantity, 'price': price})
    if not cleaned:
        raise InvoiceValidationError("An invoice needs at least one item")
    return cleaned


@transaction.atomic
def create_invoice(
    *,
    owner: User,
    customer_name: str,
    items: Iterable[dict],
    customer: Optional[User] = None,
    customer_email: str = "",
    customer_phone: str = "",
    tax_rate=Decimal('0'),
    discount=Decimal('0'),
    issue_date: Optional[date] = None,
    due_date: Optional[date] = None,
    payment_terms: str = "",
    notes: str = ""
) -> Invoice:
    """
    Create a draft invoice.

    Args:
        items: ``{'name', 'quantity', 'price'}`` entries
        due_date: Defaults to ``INVOICE_DEFAULT_TERMS_DAYS`` after issue

    Raises:
        InvoiceValidationError: Missing customer name or items, a due date
            before the issue date, or negative or non-numeric amounts
    """
    customer_name = (customer_name or (customer.get_display_name() if customer else '')).strip()
    if not customer_name:
        raise InvoiceValidationError("Customer name is required")

    cleaned = _clean_items(items)
    issue_date = issue_date or timezone.localdate()
    terms_days = settings.INVOICE_DEFAULT_TERMS_DAYS
    due_date = due_date or issue_date + timedelta(days=terms_days)
    if due_date < issue_date:
        raise InvoiceValidationError("Due date cannot be before the issue date")

    try:
        totals = calculate_totals(
            ((item['price'], item['quantity']) for item in cleaned),
            tax_rate,
            discount=discount,
        )
    except CalculationError as e:
        raise InvoiceValidationError(str(e))

    invoice = None
    for _ in range(NUMBER_ATTEMPTS):
        try:
            with transaction.atomic():
                invoice = Invoice.objects.create(
                    owner=owner,
                    number=generate_invoice_number(issue_date),
                    customer=customer,
                    customer_name=customer_name,
                    customer_email=customer_email or (customer.email if customer else ''),
                    customer_phone=customer_phone or (customer.phone if customer else ''),
                    tax_rate=tax_rate,
                    subtotal=totals.subtotal,
                    tax=totals.tax,
                    discount=totals.discount,
                    total=totals.total,
                    payment_terms=payment_terms or f"Net {terms_days}",
                    issue_date=issue_date,
                    due_date=due_date,
                    notes=notes,
                )
            break
        except IntegrityError:
            continue
    if invoice is None:
        raise InvoiceValidationError("Could not allocate an invoice number, please retry")

    InvoiceItem.objects.bulk_create([
        InvoiceItem(
            invoice=invoice,
            name=item['name'],
            quantity=item['quantity'],
            price=item['price'],
            line_total=item['price'] * item['quantity'],
            position=position,
        )
        for position, item in enumerate(cleaned)
    ])

    logger.info("Invoice {} created by {} for {} ({})", invoice.number, owner.id, customer_name, invoice.total)
    return invoice


def list_invoices(*, owner: User, status: Optional[str] = None) -> QuerySet[Invoice]:
    refresh_overdue_invoices()
    queryset = Invoice.objects.prefetch_related('items')
    if not owner.is_platform_admin:
        queryset = queryset.filter(owner=owner)
    if status:
        queryset = queryset.filter(status=status)
    return queryset


def get_invoice(*, actor: User, invoice_id: UUID) -> Invoice:
    """
    Raises:
        InvoiceNotFoundError: If the invoice doesn't exist or isn't the actor's
    """
    refresh_overdue_invoices()
    queryset = Invoice.objects.prefetch_related('items')
    if not actor.is_platform_admin:
        queryset = queryset.filter(owner=actor)
    try:
        return queryset.get(id=invoice_id)
    except Invoice.DoesNotExist:
        raise InvoiceNotFoundError()


def _transition(actor: User, invoice_id: UUID, sources, target: str, **changes) -> Invoice:
    invoice = get_invoice(actor=actor, invoice_id=invoice_id)
    allowed = sources if isinstance(sources, Q) else Q(status__in=sources)
    updated = Invoice.objects.filter(allowed, pk=invoice.pk).update(
        status=target,
        updated_at=timezone.now(),
        **changes
    )
    invoice.refresh_from_db()
    if not updated:
        raise InvalidInvoiceTransitionError(
            f"Invoice {invoice.number} is {invoice.get_status_display()} and cannot become "
            f"{InvoiceStatus(target).label}"
        )
    logger.info("Invoice {} -> {} by {}", invoice.number, target, actor.id)
    return invoice


def send_invoice(*, actor: User, invoice_id: UUID) -> Invoice:
    """
    Send a draft. A draft that went overdue before it was ever sent can
    still be sent; it reads as overdue again on the next sweep.
    """
    never_sent = Q(status=InvoiceStatus.DRAFT) | Q(status=InvoiceStatus.OVERDUE, sent_at__isnull=True)
    return _transition(actor, invoice_id, never_sent, InvoiceStatus.SENT, sent_at=timezone.now())


def mark_invoice_paid(*, actor: User, invoice_id: UUID) -> Invoice:
    return _transition(
        actor,
        invoice_id,
        (InvoiceStatus.SENT, InvoiceStatus.OVERDUE),
        InvoiceStatus.PAID,
        paid_at=timezone.now(),
    )


def cancel_invoice(*, actor: User, invoice_id: UUID) -> Invoice:
    return _transition(
        actor,
        invoice_id,
        (InvoiceStatus.DRAFT, InvoiceStatus.SENT, InvoiceStatus.OVERDUE),
        InvoiceStatus.CANCELLED,
    )
