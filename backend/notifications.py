from __future__ import annotations
from email.message import EmailMessage
from email.utils import formataddr
from html import escape

import aiosmtplib

from logging_config import get_logger
from schemas import StoreConfig
from settings import Settings

logger = get_logger("notifications")


class Mailer:
    """Sends HTML mail over SMTP with the Gmail credentials from the store config."""

    def __init__(self, host: str, port: int, sender_name: str):
        self.host = host
        self.port = port
        self.sender_name = sender_name

    @classmethod
    def from_settings(cls, env: Settings) -> "Mailer":
        return cls(env.SMTP_HOST, env.SMTP_PORT, env.MAIL_SENDER_NAME)

    def is_configured(self, config: StoreConfig) -> bool:
        return bool(config.gmail_user and config.gmail_pass)

    async def send(self, config: StoreConfig, to: str, subject: str, html: str) -> None:
        message = EmailMessage()
        message["From"] = formataddr((self.sender_name, config.gmail_user))
        message["To"] = to
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html, subtype="html")
        await aiosmtplib.send(
            message,
            hostname=self.host,
            port=self.port,
            username=config.gmail_user,
            password=config.gmail_pass,
            use_tls=True,
        )


async def send_order_emails(mailer: Mailer, config: StoreConfig, order: dict) -> bool:
    """Customer confirmation + operator alert. Failures are logged, never raised."""
    if not mailer.is_configured(config):
        logger.info("order_emails_skipped", order_id=order["id"], reason="mail not configured")
        return False

    name = escape(order["customer"]["name"])
    email = order["customer"]["email"]
    total = f"${order['total']:.2f}"
    try:
        if email:
            await mailer.send(
                config,
                to=email,
                subject="Order Confirmed!",
                html=(
                    f"<h2>Thank You, {name}!</h2>"
                    f"<p>Your order of {total} is confirmed.</p>"
                    f"<p>Order ID: {order['id']}</p>"
                ),
            )
        await mailer.send(
            config,
            to=config.gmail_user,
            subject="NEW ORDER!",
            html=f"<h3>New Order from {name} ({escape(email)}) - {total}</h3><p>ID: {order['id']}</p>",
        )
    except Exception:
        # The order is already stored; mail problems must not reach the buyer
        logger.exception("order_emails_failed", order_id=order["id"])
        return False
    logger.info("order_emails_sent", order_id=order["id"])
    return True
