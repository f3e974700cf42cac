import logging
import smtplib
import uuid
from datetime import datetime, timezone
from email.message import EmailMessage
from email.utils import formataddr
from typing import Callable

import requests
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.email_log import EmailLog

logger = logging.getLogger(__name__)

EmailSubmitter = Callable[[str], None]


def submit_to_worker(email_id: str) -> None:
    """Hand a queued email to the Celery worker."""
    from app.tasks.jobs import deliver_email
    deliver_email.delay(email_id)


def queue_email(db: Session, to_email: str, subject: str, body: str, *, submit: EmailSubmitter | None = None,
                tenant_id: str = "", template: str = "", related_booking_ref: str = "",
                html_body: str | None = None, from_name: str = "") -> str:
    """Store the email in the outbox and submit it for background delivery.

    The row is committed before submission, so a failed submit leaves it
    `queued` for the periodic sweep to pick up.
    """
    eid = str(uuid.uuid4())
    db.add(
        EmailLog(
            id=eid,
            tenant_id=tenant_id,
            template=template,
            to_email=to_email,
            subject=subject,
            body=body,
            html_body=html_body,
            from_name=from_name,
            status="queued",
            related_booking_ref=related_booking_ref,
        )
    )
    db.commit()
    (submit or submit_to_worker)(eid)
    return eid


def deliver_queued_email(db: Session, email_id: str) -> str:
    """Send one outbox row now. Returns the resulting status."""
    log = db.get(EmailLog, email_id)
    if not log:
        return "missing"
    if log.status == "sent":
        return "sent"
    _attempt_send(log)
    db.commit()
    return log.status


def _attempt_send(log: EmailLog) -> None:
    log.attempts = (log.attempts or 0) + 1
    try:
        send_email(log.to_email, log.subject, log.body or "", html=log.html_body, from_name=log.from_name or None)
        log.status = "sent"
        log.sent_at = datetime.now(timezone.utc)
        log.last_error = None
    except Exception as e:
        logger.warning("email %s to %s failed (attempt %s): %s", log.id, log.to_email, log.attempts, e)
        log.status = "failed"
        log.last_error = str(e)[:1000]


def send_email(to_email: str, subject: str, body: str, html: str | None = None, from_name: str | None = None) -> None:
    """Send via SendGrid when an API key is set, otherwise SMTP (MailHog works locally)."""
    if settings.SENDGRID_API_KEY:
        _send_via_sendgrid(to_email, subject, body, html, from_name)
        return

    msg = EmailMessage()
    msg["From"] = formataddr((from_name, settings.SMTP_FROM)) if from_name else settings.SMTP_FROM
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    if html:
        msg.add_alternative(html, subtype="html")

    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(msg)


def _send_via_sendgrid(to_email: str, subject: str, body: str, html: str | None = None,
                       from_name: str | None = None) -> None:
    sender = {"email": settings.SENDGRID_FROM_EMAIL or settings.SMTP_FROM}
    if from_name:
        sender["name"] = from_name
    content = [{"type": "text/plain", "value": body}]
    if html:
        content.append({"type": "text/html", "value": html})
    r = requests.post(
        "https://api.sendgrid.com/v3/mail/send",
        json={
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": sender,
            "subject": subject,
            "content": content,
        },
        headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
        timeout=20,
    )
    if r.status_code >= 400:
        raise RuntimeError(f"SendGrid error {r.status_code}: {r.text}")


def process_pending_emails(db: Session, limit: int = 50) -> dict:
    """Retry up to `limit` queued or failed emails that still have attempts left. Returns counts."""
    pending = (
        db.query(EmailLog)
        .filter(
            EmailLog.status.in_(["queued", "failed"]),
            EmailLog.attempts < settings.EMAIL_MAX_ATTEMPTS,
            EmailLog.body.isnot(None),
            EmailLog.body != "",
        )
        .order_by(EmailLog.created_at.asc())
        .limit(limit)
        .all()
    )
    sent, failed = 0, 0
    for log in pending:
        _attempt_send(log)
        if log.status == "sent":
            sent += 1
        else:
            failed += 1
    if pending:
        db.commit()
    return {"processed": len(pending), "sent": sent, "failed": failed}
