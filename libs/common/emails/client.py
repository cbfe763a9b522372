"""
HTTP email client.

Messages are posted as JSON to ``EMAIL_SERVICE_URL``. When no URL is
configured (local runs, tests) the message is logged instead of sent.

Usage:
    from libs.common.emails.client import get_email_client

    email_client = get_email_client()

    await email_client.send(
        to_email="user@example.com",
        subject="Hello",
        body="Plain text body",
        html_body="<p>HTML body</p>"
    )
"""

from typing import Any, Optional

import httpx
from libs.common.config import get_settings
from libs.common.logging import get_logger

logger = get_logger(__name__)


class EmailClient:
    """
    HTTP client for the outbound email API.

    `send` never raises for transport problems; it reports success as a
    bool so callers can treat delivery as best effort.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
    ):
        settings = get_settings()
        self.base_url = (
            base_url if base_url is not None else settings.EMAIL_SERVICE_URL
        ).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.EMAIL_API_KEY
        self.from_email = settings.DEFAULT_FROM_EMAIL
        self.from_name = settings.DEFAULT_FROM_NAME
        self.timeout = timeout

    def _get_auth_headers(self) -> dict[str, str]:
        if not self.api_key:
            return {}
        return {"Authorization": f"Bearer {self.api_key}"}

    async def send(
        self,
        to_email: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None,
    ) -> bool:
        """
        Send a single email.

        Returns:
            True if the API accepted the message (or it was logged because
            no API is configured), False otherwise
        """
        if not self.base_url:
            logger.info("Would have sent email to %s: %s", to_email, subject)
            return True

        payload: dict[str, Any] = {
            "to_email": to_email,
            "subject": subject,
            "body": body,
            "from_email": self.from_email,
            "from_name": self.from_name,
        }
        if html_body:
            payload["html_body"] = html_body

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/send",
                    json=payload,
                    headers=self._get_auth_headers(),
                )
        except httpx.HTTPError as e:
            logger.error("Failed to reach email API: %s", e)
            return False

        if response.status_code >= 400:
            logger.error(
                "Email API returned %s: %s", response.status_code, response.text
            )
            return False
        return True


_email_client: Optional[EmailClient] = None


def get_email_client() -> EmailClient:
    """Get or create the singleton EmailClient instance."""
    global _email_client
    if _email_client is None:
        _email_client = EmailClient()
    return _email_client
