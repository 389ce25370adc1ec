"""
Email Service using the SendGrid v3 Mail Send API for transactional messages.
Every provider call lives here, so switching providers only touches this file.
"""

import logging
from typing import Optional
import httpx
from app.core.config import Settings, settings
from app.core.exceptions import NotificationError
from app.helpers.email_templates import render_onboarding_email

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"
SENDGRID_TIMEOUT_SECONDS = 30.0


class EmailService:
    """Service for sending HTML emails via SendGrid."""

    def __init__(
        self,
        api_key: Optional[str],
        from_email: str,
        from_name: str,
        subject: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.subject = subject
        self._transport = transport

        if self.api_key:
            logger.info("SendGrid client configured successfully")
        else:
            logger.error(
                "SENDGRID_API_KEY was not found in the environment variables. Email sending is disabled."
            )

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "EmailService":
        return cls(
            api_key=config.SENDGRID_API_KEY,
            from_email=config.EMAIL_FROM_ADDRESS,
            from_name=config.EMAIL_FROM_NAME,
            subject=config.EMAIL_SUBJECT,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def send(self, to: str, subject: str, html: str) -> None:
        """
        Send one HTML email.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body

        Raises:
            NotificationError: If email is disabled or SendGrid rejects the message
        """
        if not self.enabled:
            raise NotificationError("Email sending is disabled: SENDGRID_API_KEY is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": [{"type": "text/html", "value": html}],
        }

        try:
            async with httpx.AsyncClient(
                timeout=SENDGRID_TIMEOUT_SECONDS, transport=self._transport
            ) as client:
                response = await client.post(SENDGRID_SEND_URL, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"HTTP error sending email via SendGrid: {str(e)}")
            raise NotificationError(f"Failed to send email: {str(e)}") from e

        # SendGrid answers 202 Accepted with an empty body on success
        if response.status_code >= 300:
            logger.error(f"SendGrid API error: HTTP {response.status_code} - {response.text}")
            raise NotificationError(f"SendGrid API error: HTTP {response.status_code}")

    async def send_welcome_email(self, to: str, name: str, next_step_url: str) -> None:
        """
        Send the "thanks for your request, next steps" email.

        Args:
            to: Recipient address
            name: Name used in the greeting
            next_step_url: URL behind the call-to-action button
        """
        html = render_onboarding_email(name, next_step_url)
        await self.send(to, self.subject, html)
        logger.info(f"Welcome email sent successfully to {to}")
