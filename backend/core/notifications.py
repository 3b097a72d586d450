from __future__ import annotations

import logging
from typing import Callable, Iterable

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

logger = logging.getLogger(__name__)


def _format_from_email() -> str:
    default_from = settings.DEFAULT_FROM_EMAIL
    email_addr = default_from
    if '<' in default_from and default_from.endswith('>'):
        email_addr = default_from.split('<', 1)[1].rstrip('>')
    return f"PGStay Payments <{email_addr}>"


def send_notification(*, subject: str, body_lines: Iterable[str], recipients: Iterable[str]) -> None:
    recipients = [email for email in recipients if email]
    if not recipients:
        return
    send_mail(
        subject,
        "\n".join(body_lines),
        _format_from_email(),
        recipients,
        fail_silently=False,
    )


def notify_after_commit(callback: Callable[..., None], **kwargs) -> None:
    """
    Run a notification callback once the surrounding transaction commits.

    Delivery is fire-and-forget: errors are logged and never reach the caller.
    """

    def _deliver():
        try:
            callback(**kwargs)
        except Exception:
            logger.exception("Notification %s failed", getattr(callback, "__name__", callback))

    transaction.on_commit(_deliver)
