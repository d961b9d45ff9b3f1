"""Daily low-stock summary email sent to staff who opted in."""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime, timezone
from email import policy
from email.message import EmailMessage
from ssl import create_default_context
from typing import Sequence

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from flask import current_app, render_template

from cafeops import repositories
from cafeops.models import InventoryRecord
from cafeops.services import preferences as preference_service
from cafeops.sheetdb import RecordStoreError
from cafeops.stock_status import StockStatus
from cafeops.utils.values import as_bool


logger = logging.getLogger(__name__)

SUMMARY_JOB_ID = "low-stock-summary"


@dataclass
class SMTPConfig:
    host: str
    port: int
    username: str | None
    password: str | None
    use_tls: bool
    use_ssl: bool
    sender: str | None


def load_smtp_config() -> SMTPConfig:
    """Build an SMTP configuration object from Flask settings."""

    host = current_app.config.get("SMTP_HOST") or ""
    if not host:
        raise RuntimeError("SMTP_HOST must be configured to send email")

    sender = current_app.config.get("SUMMARY_EMAIL_SENDER") or None
    username = current_app.config.get("SMTP_USERNAME") or None

    return SMTPConfig(
        host=host,
        port=int(current_app.config.get("SMTP_PORT", 587)),
        username=username,
        password=current_app.config.get("SMTP_PASSWORD") or None,
        use_tls=as_bool(current_app.config.get("SMTP_USE_TLS"), default=True),
        use_ssl=as_bool(current_app.config.get("SMTP_USE_SSL"), default=False),
        sender=sender or username,
    )


def items_needing_attention(records: Sequence[InventoryRecord]) -> dict[str, list[InventoryRecord]]:
    return {
        StockStatus.LOW: [r for r in records if r.status == StockStatus.LOW],
        StockStatus.OUT_OF_STOCK: [r for r in records if r.status == StockStatus.OUT_OF_STOCK],
    }


def build_summary_message(
    recipient: str,
    records: Sequence[InventoryRecord],
    *,
    sender: str | None = None,
) -> EmailMessage:
    sections = items_needing_attention(records)
    generated_at = datetime.now(timezone.utc)

    message = EmailMessage(policy=policy.default)
    message["Subject"] = (
        f"Cafe stock summary: {len(sections[StockStatus.LOW])} low, "
        f"{len(sections[StockStatus.OUT_OF_STOCK])} out of stock"
    )
    if sender:
        message["From"] = sender
    message["To"] = recipient

    lines = [f"Stock summary for {generated_at:%Y-%m-%d}", ""]
    for status, items in sections.items():
        lines.append(f"{StockStatus.LABELS[status]} ({len(items)})")
        for record in items:
            lines.append(
                f"  - {record.product_name}: {record.current_stock} on hand, minimum {record.min_level}"
            )
        lines.append("")
    message.set_content("\n".join(lines))

    html_body = render_template(
        "email/low_stock_summary.html",
        sections=sections,
        labels=StockStatus.LABELS,
        generated_at=generated_at,
    )
    message.add_alternative(html_body, subtype="html")
    return message


def send_email_via_smtp(message: EmailMessage, smtp_config: SMTPConfig | None = None) -> None:
    """Send the provided message using the configured SMTP server."""

    config = smtp_config or load_smtp_config()
    if not config.sender:
        raise RuntimeError("SUMMARY_EMAIL_SENDER or SMTP username must be configured for sending email")

    if "From" not in message:
        message["From"] = config.sender

    smtp_class = smtplib.SMTP_SSL if config.use_ssl else smtplib.SMTP
    with smtp_class(config.host, config.port, timeout=10) as client:
        client.ehlo()
        if config.use_tls and not config.use_ssl:
            client.starttls(context=create_default_context())
            client.ehlo()
        if config.username and config.password:
            client.login(config.username, config.password)
        client.send_message(message)


def send_low_stock_summary() -> int:
    """Email the summary to every opted-in user; returns the number of recipients."""

    recipients = preference_service.notification_recipients()
    if not recipients:
        logger.info("No staff opted in to the stock summary; nothing sent")
        return 0

    records = repositories.inventory.all()
    config = load_smtp_config()
    # Each recipient gets a separate message.
    for recipient in recipients:
        message = build_summary_message(recipient, records, sender=config.sender)
        send_email_via_smtp(message, config)
    logger.info("Stock summary sent to %d recipient(s)", len(recipients))
    return len(recipients)


def run_summary_job(app) -> None:
    with app.app_context():
        try:
            send_low_stock_summary()
        except (RecordStoreError, RuntimeError, smtplib.SMTPException, OSError):
            logger.exception("Daily stock summary failed")


def initialize_summary_scheduler(app) -> None:
    if app.extensions.get("summary_scheduler") is not None:
        return
    if app.config.get("TESTING"):
        return
    if not app.config.get("SMTP_HOST"):
        app.logger.info("SMTP_HOST is not set; daily stock summary disabled")
        return

    scheduler = BackgroundScheduler(timezone="UTC")
    app.extensions["summary_scheduler"] = scheduler
    scheduler.add_job(
        run_summary_job,
        trigger=CronTrigger(hour=app.config.get("SUMMARY_EMAIL_HOUR", 7), minute=0),
        id=SUMMARY_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        args=[app],
    )
    scheduler.start()
    app.logger.info(
        "Daily stock summary scheduled for %02d:00 UTC", app.config.get("SUMMARY_EMAIL_HOUR", 7)
    )
