from __future__ import annotations

import logging
from datetime import timezone as dt_timezone

from django.db.models import Q, QuerySet
from django.utils import timezone

from audit.models import AuditLogEntry
from audit.services import ledger
from core.errors import ErrorCode, NotFoundError
from payments.models import Invoice, Payment

logger = logging.getLogger(__name__)


def build_invoice_number(payment: Payment, *, issued_at=None) -> str:
    issued_at = (issued_at or timezone.now()).astimezone(dt_timezone.utc)
    return f"INV-{issued_at:%Y%m%d%H%M%S}-{payment.pk:06d}"


def describe_stay(booking) -> str:
    nights = booking.nights
    night_label = "night" if nights == 1 else "nights"
    return (
        f"Accommodation at {booking.property.name} "
        f"({booking.check_in:%Y-%m-%d} to {booking.check_out:%Y-%m-%d}, {nights} {night_label})"
    )


def issue_invoice(actor, payment: Payment) -> Invoice:
    """
    Create the invoice for a payment that has just been verified.

    Must run inside the verification transaction; the one-to-one link to the
    payment and the unique invoice number keep a second invoice from being
    stored for the same payment.
    """
    booking = payment.booking
    invoice = Invoice.objects.create(
        invoice_number=build_invoice_number(payment),
        payment=payment,
        booking=booking,
        payer_id=payment.payer_id,
        payee_id=payment.payee_id,
        amount=payment.amount,
        currency=payment.currency,
        line_items=[{"description": describe_stay(booking), "amount": payment.amount}],
        status=Invoice.PAID,
    )
    ledger.append(
        actor,
        AuditLogEntry.INVOICE_GENERATED,
        f"Invoice {invoice.invoice_number} generated for payment {payment.pk}",
        booking=booking,
        payment=payment,
    )
    logger.info("Invoice %s issued for payment %s", invoice.invoice_number, payment.pk)
    return invoice


def list_for_user(user) -> QuerySet:
    return (
        Invoice.objects.filter(Q(payer=user) | Q(payee=user))
        .select_related("booking", "booking__property", "payment")
        .order_by("-created_at", "-id")
    )


def get_for_user(user, invoice_id) -> Invoice:
    invoice = list_for_user(user).filter(pk=invoice_id).first()
    if invoice is None:
        raise NotFoundError(ErrorCode.INVOICE_NOT_FOUND, "Invoice not found.")
    return invoice
