from __future__ import annotations

from django.conf import settings

from core.notifications import send_notification
from payments.models import Payment
from properties.pricing import format_minor_units


def _load(payment_id) -> Payment:
    return Payment.objects.select_related("booking", "booking__property", "payer", "payee").get(pk=payment_id)


def _stay_line(payment: Payment) -> str:
    booking = payment.booking
    return (
        f"Stay: {booking.property.name}, "
        f"{booking.check_in:%B %d, %Y} to {booking.check_out:%B %d, %Y}."
    )


def send_payment_awaiting_verification_email(*, payment_id):
    payment = _load(payment_id)
    owner = payment.payee
    body_lines = [
        f"Hi {owner.get_display_name()},",
        "",
        f"{payment.payer.get_display_name()} says they have paid "
        f"{format_minor_units(payment.amount)} {payment.currency} for booking {payment.booking_id}.",
        _stay_line(payment),
    ]
    if payment.proof_reference:
        body_lines.append(f"Payment reference: {payment.proof_reference}")
    body_lines += [
        "",
        f"Review and verify it here: {settings.FRONTEND_URL.rstrip('/')}/owner/payments/pending",
        "",
        "The PGStay Team",
    ]
    send_notification(
        subject=f"Payment awaiting your verification (booking {payment.booking_id})",
        body_lines=body_lines,
        recipients=[owner.email],
    )


def send_payment_decision_email(*, payment_id):
    payment = _load(payment_id)
    tenant = payment.payer
    if payment.status == Payment.VERIFIED:
        subject = f"Your booking at {payment.booking.property.name} is confirmed"
        outcome = [
            f"Your payment of {format_minor_units(payment.amount)} {payment.currency} has been verified.",
            f"Invoice: {payment.invoice.invoice_number}",
        ]
    else:
        subject = f"Payment for booking {payment.booking_id} was rejected"
        outcome = ["The owner could not verify your payment."]
        if payment.rejection_reason:
            outcome.append(f"Reason: {payment.rejection_reason}")
        outcome.append("You can start a new payment for the booking from your dashboard.")

    body_lines = [
        f"Hi {tenant.get_display_name()},",
        "",
        _stay_line(payment),
        *outcome,
        "",
        "The PGStay Team",
    ]
    send_notification(subject=subject, body_lines=body_lines, recipients=[tenant.email])
