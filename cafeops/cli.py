import smtplib

import click

from cafeops import repositories
from cafeops.services.summary_email import send_low_stock_summary
from cafeops.sheetdb import RecordStoreError


def register_cli(app):
    @app.cli.command("send-stock-summary")
    def send_stock_summary() -> None:
        """Send the low-stock summary email now instead of waiting for the schedule."""
        try:
            sent = send_low_stock_summary()
        except (RecordStoreError, RuntimeError, smtplib.SMTPException, OSError) as exc:
            click.echo(f"Stock summary not sent: {exc}")
            raise SystemExit(1)
        click.echo(f"Stock summary sent to {sent} recipient(s).")

    @app.cli.command("check-record-store")
    def check_record_store() -> None:
        """Read every sheet once and report how many rows each returned."""
        if not app.config.get("RECORD_STORE_AVAILABLE", True):
            click.echo(app.config.get("RECORD_STORE_ERROR"))
            raise SystemExit(1)

        failed = False
        for repository in (
            repositories.inventory,
            repositories.activity_log,
            repositories.vendors,
            repositories.orders,
            repositories.order_history,
            repositories.preferences,
        ):
            try:
                count = len(repository.all())
            except RecordStoreError as exc:
                click.echo(f"{repository.sheet}: FAILED ({exc})")
                failed = True
                continue
            click.echo(f"{repository.sheet}: {count} row(s)")
        if failed:
            raise SystemExit(1)
