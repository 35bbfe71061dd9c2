"""Outbound email through SendGrid.

Message bodies are Jinja templates under ``templates/email`` and are rendered
with Flask, so every function here needs an application context.
"""
from __future__ import annotations

import base64
import logging
from typing import Dict, Optional

from flask import current_app, render_template
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Attachment, Disposition, FileContent, FileName, FileType, Mail, ReplyTo

logger = logging.getLogger(__name__)


class MailerError(RuntimeError):
    """Sending an email failed or email is not configured."""


def _client() -> SendGridAPIClient:
    api_key = current_app.config.get("SENDGRID_API_KEY")
    if not api_key:
        raise MailerError("E-Mail-Versand ist nicht konfiguriert")
    return SendGridAPIClient(api_key)


def _pdf_attachment(pdf_bytes: bytes, filename: str) -> Attachment:
    return Attachment(
        FileContent(base64.b64encode(pdf_bytes).decode("ascii")),
        FileName(filename),
        FileType("application/pdf"),
        Disposition("attachment"),
    )


def _send(
    to_email: str,
    subject: str,
    html: str,
    from_email: str,
    reply_to: Optional[str] = None,
    attachment: Optional[Attachment] = None,
) -> None:
    message = Mail(from_email=from_email, to_emails=to_email, subject=subject, html_content=html)
    if reply_to:
        message.reply_to = ReplyTo(reply_to)
    if attachment is not None:
        message.attachment = attachment

    client = _client()
    try:
        response = client.send(message)
    except Exception as exc:
        logger.error("Sending %r to %s failed: %s", subject, to_email, exc)
        raise MailerError(f"E-Mail konnte nicht gesendet werden: {exc}") from exc

    if response.status_code >= 400:
        raise MailerError(f"E-Mail konnte nicht gesendet werden (Status {response.status_code})")
    logger.info("Sent %r to %s", subject, to_email)


def send_verification_code(email: str, code: str, valid_minutes: int) -> None:
    html = render_template("email/verification_code.html", code=code, valid_minutes=valid_minutes)
    _send(
        email,
        "Ihr Bestätigungscode für die DISG-Analyse",
        html,
        from_email=current_app.config["EMAIL_FROM_NOREPLY"],
    )


def results_filename(name: str) -> str:
    return f"power4-people-Kurzanalyse-{name.replace(' ', '_')}.pdf"


def send_results(email: str, name: str, pdf_bytes: bytes) -> None:
    html = render_template(
        "email/results.html", name=name, contact_address=current_app.config["CONTACT_ADDRESS"]
    )
    _send(
        email,
        "Ihre power4-people Kurzanalyse (PDF)",
        html,
        from_email=current_app.config["EMAIL_FROM_SUPPORT"],
        attachment=_pdf_attachment(pdf_bytes, results_filename(name)),
    )


def contact_filename(name: str) -> str:
    return f"Kontaktanfrage-{'_'.join(name.split())}.pdf"


def send_contact_notification(contact: Dict[str, str]) -> None:
    """Forward a contact request to the admin; replies go to the requester."""
    html = render_template("email/contact_notification.html", contact=contact)
    _send(
        current_app.config["EMAIL_ADMIN_RECIPIENT"],
        f"Neue Kontaktanfrage von {contact['name']}",
        html,
        from_email=current_app.config["EMAIL_FROM_SUPPORT"],
        reply_to=contact["email"],
    )


def send_contact_copy(contact: Dict[str, str], pdf_bytes: bytes) -> None:
    html = render_template("email/contact_copy.html", contact=contact)
    _send(
        contact["email"],
        "Bestätigung Ihrer Kontaktanfrage - Power4-people",
        html,
        from_email=current_app.config["EMAIL_FROM_SUPPORT"],
        attachment=_pdf_attachment(pdf_bytes, contact_filename(contact["name"])),
    )
