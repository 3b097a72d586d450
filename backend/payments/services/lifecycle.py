"""
Payment Lifecycle Manager.

A payment moves AWAITING_PAYMENT -> AWAITING_OWNER_VERIFICATION -> VERIFIED or
REJECTED, and a verified payment may later be marked REFUNDED. Money moves
outside the system: the tenant declares that they paid and the owner decides
whether the money arrived.

Every status change is a compare-and-swap ``UPDATE ... WHERE status = <expected>``
whose affected-row count decides which request applied the change. A repeated
verification therefore never produces a second invoice.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote, urlencode

from django.conf import settings
from django.db import transaction
from django.db.models import Q, QuerySet
from django.utils import timezone

from accounts.models import PayoutAccount
from audit.models import AuditLogEntry
from audit.services import ledger
from bookings.models import Booking
from bookings.services import bookings as booking_service
from core.errors import ConflictError, ErrorCode, NotFoundError, StateError, ValidationFailed
from core.notifications import notify_after_commit
from payments.models import Invoice, Payment
from payments.services import emails, invoices
from properties.catalog import terms_for
from properties.pricing import format_minor_units, stay_amount_minor

logger = logging.getLogger(__name__)

VERIFY = "verify"
REJECT = "reject"
DECISIONS = (VERIFY, REJECT)


@dataclass(frozen=True)
class PayableDescriptor:
    """Payee-addressed payment instruction the tenant's banking app can act on."""

    payee_identifier: str
    payee_name: str
    amount: int
    currency: str
    reference: str

    def as_upi_uri(self) -> str:
        params = {
            "pa": self.payee_identifier,
            "pn": self.payee_name,
            "am": format_minor_units(self.amount),
            "cu": self.currency,
            "tn": self.reference,
        }
        query = urlencode(params, safe="@", quote_via=quote)
        return f"upi://pay?{query}"

    def as_dict(self) -> dict:
        return {
            "payee_identifier": self.payee_identifier,
            "payee_name": self.payee_name,
            "amount": self.amount,
            "currency": self.currency,
            "reference": self.reference,
            "uri": self.as_upi_uri(),
        }


@dataclass(frozen=True)
class PaymentIntent:
    payment: Payment
    payable: PayableDescriptor


@dataclass(frozen=True)
class VerificationResult:
    payment: Payment
    invoice: Optional[Invoice] = None
    booking: Optional[Booking] = None

    @property
    def status(self) -> str:
        return self.payment.status


def create_payment(*, tenant, booking_id, amount_override: Optional[int] = None) -> PaymentIntent:
    if amount_override is not None and (
        isinstance(amount_override, bool) or not isinstance(amount_override, int) or amount_override <= 0
    ):
        raise ValidationFailed(message="Amount override must be a positive integer in minor units.")

    with transaction.atomic():
        booking = (
            Booking.objects.select_for_update()
            .filter(pk=booking_id, tenant=tenant, status=Booking.PENDING)
            .first()
        )
        if booking is None:
            raise NotFoundError(ErrorCode.BOOKING_NOT_FOUND, "Booking not found or not awaiting payment.")

        if Payment.objects.filter(booking=booking).exclude(status=Payment.REJECTED).exists():
            raise ConflictError(ErrorCode.PAYMENT_EXISTS, "A payment for this booking is already in progress.")

        terms = terms_for(booking.property)
        if amount_override is not None:
            amount = amount_override
        else:
            amount = stay_amount_minor(terms.nightly_rate_minor, booking.check_in, booking.check_out)

        payout = PayoutAccount.objects.filter(owner_id=terms.owner_id).first()
        if payout is None:
            raise StateError(
                ErrorCode.PAYEE_NOT_CONFIGURED,
                "The property owner has not set up a payout account yet.",
            )

        payable = PayableDescriptor(
            payee_identifier=payout.payee_identifier,
            payee_name=payout.payee_name,
            amount=amount,
            currency=settings.PAYMENT_CURRENCY,
            reference=str(booking.pk),
        )
        payment = Payment.objects.create(
            booking=booking,
            payer=tenant,
            payee_id=terms.owner_id,
            amount=amount,
            currency=payable.currency,
            payable_uri=payable.as_upi_uri(),
            status=Payment.AWAITING_PAYMENT,
        )
        ledger.append(
            tenant,
            AuditLogEntry.PAYMENT_CREATED,
            f"Payment {payment.pk} created for {format_minor_units(amount)} {payment.currency}",
            booking=booking,
            payment=payment,
        )

    logger.info("Payment %s created for booking %s (amount=%s)", payment.pk, booking.pk, amount)
    return PaymentIntent(payment=payment, payable=payable)


def confirm_payment(*, tenant, payment_id, proof_reference: Optional[str] = None) -> Payment:
    """Record the tenant's declaration that the money has been sent."""
    with transaction.atomic():
        updated = Payment.objects.filter(
            pk=payment_id,
            payer=tenant,
            status=Payment.AWAITING_PAYMENT,
            booking__status=Booking.PENDING,
        ).update(
            status=Payment.AWAITING_OWNER_VERIFICATION,
            proof_reference=proof_reference or "",
            updated_at=timezone.now(),
        )
        if not updated:
            raise NotFoundError(
                ErrorCode.PAYMENT_NOT_FOUND,
                "Payment not found, already confirmed, or its booking is no longer pending.",
            )

        payment = Payment.objects.select_related("booking").get(pk=payment_id)
        details = f"Tenant confirmed payment {payment.pk}"
        if payment.proof_reference:
            details += f" (reference {payment.proof_reference})"
        ledger.append(tenant, AuditLogEntry.PAYMENT_CONFIRMED, details, payment=payment)
        notify_after_commit(emails.send_payment_awaiting_verification_email, payment_id=payment.pk)

    logger.info("Payment %s confirmed by tenant %s", payment.pk, tenant.pk)
    return payment


def _settled_result(payment: Payment) -> VerificationResult:
    if payment.status != Payment.VERIFIED:
        return VerificationResult(payment=payment)
    return VerificationResult(
        payment=payment,
        invoice=Invoice.objects.filter(payment=payment).first(),
        booking=payment.booking,
    )


def verify_payment(*, owner, payment_id, decision: str, note: Optional[str] = None) -> VerificationResult:
    """
    Apply the owner's decision to a payment awaiting verification.

    Calling this again for a payment that is already VERIFIED or REJECTED
    returns the settled outcome without side effects.
    """
    if decision not in DECISIONS:
        raise ValidationFailed(message="Decision must be 'verify' or 'reject'.")

    payment = Payment.objects.select_related("booking").filter(pk=payment_id, payee=owner).first()
    if payment is None:
        raise NotFoundError(ErrorCode.PAYMENT_NOT_FOUND, "Payment not found.")
    if payment.status in Payment.SETTLED_STATUSES:
        return _settled_result(payment)
    if payment.status != Payment.AWAITING_OWNER_VERIFICATION:
        raise StateError(ErrorCode.INVALID_STATE, f"Payment is {payment.status}; nothing to verify.")

    return apply_decision(owner=owner, payment=payment, decision=decision, note=note)


def apply_decision(*, owner, payment: Payment, decision: str, note: Optional[str] = None) -> VerificationResult:
    now = timezone.now()
    new_status = Payment.VERIFIED if decision == VERIFY else Payment.REJECTED

    with transaction.atomic():
        updated = Payment.objects.filter(
            pk=payment.pk,
            status=Payment.AWAITING_OWNER_VERIFICATION,
        ).update(
            status=new_status,
            verified_by=owner,
            verified_at=now,
            rejection_reason=(note or "") if new_status == Payment.REJECTED else "",
            updated_at=now,
        )
        if not updated:
            current = Payment.objects.select_related("booking").get(pk=payment.pk)
            logger.info("Payment %s already settled as %s; returning existing outcome", current.pk, current.status)
            if current.status in Payment.SETTLED_STATUSES:
                return _settled_result(current)
            raise StateError(ErrorCode.INVALID_STATE, f"Payment is {current.status}; nothing to verify.")

        payment.refresh_from_db()
        invoice = None
        booking = None
        if new_status == Payment.VERIFIED:
            ledger.append(owner, AuditLogEntry.PAYMENT_VERIFIED, f"Owner verified payment {payment.pk}", payment=payment)
            invoice = invoices.issue_invoice(owner, payment)
            booking = booking_service.transition_to_confirmed(actor=owner, booking_id=payment.booking_id)
        else:
            details = f"Owner rejected payment {payment.pk}"
            if note:
                details += f": {note}"
            ledger.append(owner, AuditLogEntry.PAYMENT_REJECTED, details, payment=payment)
        notify_after_commit(emails.send_payment_decision_email, payment_id=payment.pk)

    logger.info("Payment %s %s by owner %s", payment.pk, new_status, owner.pk)
    return VerificationResult(payment=payment, invoice=invoice, booking=booking)


def record_refund(*, actor, payment_id, note: Optional[str] = None) -> Payment:
    """Mark a verified payment as refunded once the money has been returned by other means."""
    with transaction.atomic():
        updated = Payment.objects.filter(pk=payment_id, status=Payment.VERIFIED).update(
            status=Payment.REFUNDED,
            updated_at=timezone.now(),
        )
        if not updated:
            if not Payment.objects.filter(pk=payment_id).exists():
                raise NotFoundError(ErrorCode.PAYMENT_NOT_FOUND, "Payment not found.")
            raise StateError(ErrorCode.INVALID_STATE, "Only verified payments can be refunded.")

        payment = Payment.objects.select_related("booking").get(pk=payment_id)
        details = f"Payment {payment.pk} refunded"
        if note:
            details += f": {note}"
        ledger.append(actor, AuditLogEntry.PAYMENT_REFUNDED, details, payment=payment)

    logger.info("Payment %s marked refunded by %s", payment.pk, actor.pk)
    return payment


def _participant_queryset() -> QuerySet:
    return Payment.objects.select_related("booking", "booking__property", "payer", "payee")


def list_pending_for_owner(owner) -> QuerySet:
    return (
        _participant_queryset()
        .filter(payee=owner, status=Payment.AWAITING_OWNER_VERIFICATION)
        .order_by("created_at", "id")
    )


def list_for_owner(owner) -> QuerySet:
    return _participant_queryset().filter(payee=owner).order_by("-created_at", "-id")


def list_for_tenant(tenant) -> QuerySet:
    return _participant_queryset().filter(payer=tenant).order_by("-created_at", "-id")


def get_for_participant(user, payment_id) -> Payment:
    payment = _participant_queryset().filter(Q(payer=user) | Q(payee=user), pk=payment_id).first()
    if payment is None:
        raise NotFoundError(ErrorCode.PAYMENT_NOT_FOUND, "Payment not found.")
    return payment
