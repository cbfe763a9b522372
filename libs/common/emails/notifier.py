"""
Transactional emails sent by the marketplace services.

Every public coroutine here is best effort: failures are logged and
swallowed so they never fail the operation that triggered them.
"""

from decimal import Decimal
from typing import Any, Optional, TypedDict

from libs.common.config import get_settings
from libs.common.emails.client import EmailClient, get_email_client
from libs.common.logging import get_logger

logger = get_logger(__name__)


class OrderConfirmation(TypedDict):
    order_id: str
    total: Decimal
    status: str


class EmailNotifier:
    """Render and send the marketplace's transactional messages."""

    def __init__(self, client: Optional[EmailClient] = None):
        self._client = client

    @property
    def client(self) -> EmailClient:
        return self._client or get_email_client()

    async def _deliver(self, to_email: str, subject: str, body: str, **kw: Any) -> bool:
        try:
            sent = await self.client.send(to_email, subject, body, **kw)
        except Exception:
            logger.exception("Email '%s' to %s failed", subject, to_email)
            return False
        if not sent:
            logger.warning("Email '%s' to %s was not delivered", subject, to_email)
        return sent

    async def send_order_confirmation(
        self, to_email: str, details: OrderConfirmation
    ) -> bool:
        subject = f"Order Confirmation - {details['order_id']}"
        body = (
            "Thank you for your order!\n\n"
            f"Order: {details['order_id']}\n"
            f"Total: ${details['total']:.2f}\n"
            f"Status: {details['status']}\n\n"
            "We'll let you know when it ships."
        )
        html_body = (
            "<h1>Thank you for your order!</h1>"
            f"<p>Order ID: <strong>{details['order_id']}</strong></p>"
            f"<p>Total: ${details['total']:.2f}</p>"
            f"<p>Status: {details['status']}</p>"
        )
        return await self._deliver(to_email, subject, body, html_body=html_body)

    async def send_verification_email(self, to_email: str, raw_token: str) -> bool:
        url = f"{get_settings().FRONTEND_URL}/verify-email/{raw_token}"
        body = (
            "Welcome! Please verify your email address by opening the link "
            f"below (valid for 24 hours):\n\n{url}"
        )
        return await self._deliver(to_email, "Verify your email", body)

    async def send_password_reset(self, to_email: str, raw_token: str) -> bool:
        url = f"{get_settings().FRONTEND_URL}/reset-password/{raw_token}"
        body = (
            "You requested a password reset. Open the link below within one "
            f"hour to choose a new password:\n\n{url}\n\n"
            "If you did not request this, you can ignore this email."
        )
        return await self._deliver(to_email, "Password reset request", body)

    async def send_seller_status(
        self, to_email: str, business_name: str, status: str, reason: Optional[str]
    ) -> bool:
        body = f"Your seller account '{business_name}' is now {status}."
        if reason:
            body += f"\n\nReason: {reason}"
        return await self._deliver(to_email, f"Seller application {status}", body)
