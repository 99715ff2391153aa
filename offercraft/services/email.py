"""
Email service for offer notifications.

WHAT: Sends the "your offer is ready" email to a client after an offer is
sent, through a pluggable email provider.

WHY: The email is how the client learns about the offer and gets the share
link. Sending is best-effort: the offer is SENT whether or not the email
goes out, so failures are reported as results, not raised into the
transaction that changed the status.

HOW:
- EmailProvider abstraction with a Resend (httpx) implementation and a
  mock that records messages (used when no API key is configured)
- Subject and body are Jinja2 templates rendered in a sandbox, since
  tenants can supply their own text at send time
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any, List

import httpx
from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from offercraft.core.config import settings
from offercraft.core.exceptions import EmailServiceError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

DEFAULT_OFFER_SUBJECT = "Offer {{ offerNumber }} from {{ companyName }}"

DEFAULT_OFFER_BODY = """Dear {{ clientName }},

Please find our offer {{ offerNumber }}: {{ offerTitle }} ({{ total }}).

You can view and sign this offer online at: {{ shareLink }}

Best regards,
{{ companyName }}
"""


@dataclass
class EmailMessage:
    """
    Represents an email to be sent.

    WHY: Structured email data keeps providers interchangeable and lets
    the mock provider record exactly what would have been delivered.
    """

    to_email: str
    subject: str
    text_content: str
    html_content: Optional[str] = None
    from_email: Optional[str] = None
    reply_to: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EmailResult:
    """Result of an email send operation."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None
    provider: Optional[str] = None


# ============================================================================
# Email Provider Interface
# ============================================================================


class EmailProvider(ABC):
    """
    Abstract base class for email providers.

    WHY: Provider abstraction allows switching providers and testing with
    a mock provider.
    """

    name: str = "abstract"

    @abstractmethod
    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send an email message.

        Returns:
            EmailResult with success status and provider details
        """

    @abstractmethod
    def is_configured(self) -> bool:
        """True if credentials are present."""


class ResendProvider(EmailProvider):
    """Resend email provider (https://resend.com)."""

    name = "resend"

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        self._api_key = api_key or settings.RESEND_API_KEY
        self._default_from = from_email or settings.EMAIL_FROM or "OfferCraft <noreply@offercraft.app>"

    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def send(self, message: EmailMessage) -> EmailResult:
        """
        Send email via the Resend REST API.

        Transport errors and non-2xx responses are returned as failed
        results; nothing is raised.
        """
        if not self.is_configured():
            return EmailResult(success=False, error="Resend API key not configured", provider=self.name)

        payload: Dict[str, Any] = {
            "from": message.from_email or self._default_from,
            "to": [message.to_email],
            "subject": message.subject,
            "text": message.text_content,
        }
        if message.html_content:
            payload["html"] = message.html_content
        if message.reply_to:
            payload["reply_to"] = message.reply_to

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    json=payload,
                )
        except httpx.HTTPError as e:
            logger.error(f"Resend send error: {e}")
            return EmailResult(success=False, error=str(e), provider=self.name)

        if response.status_code in (200, 201):
            return EmailResult(success=True, message_id=response.json().get("id"), provider=self.name)

        return EmailResult(
            success=False,
            error=f"Resend API error: {response.status_code} - {response.text}",
            provider=self.name,
        )


class MockEmailProvider(EmailProvider):
    """
    Mock email provider for testing and development.

    Logs emails instead of sending them and keeps them in sent_emails.
    """

    name = "mock"
    sent_emails: List[EmailMessage] = []

    def is_configured(self) -> bool:
        return True

    async def send(self, message: EmailMessage) -> EmailResult:
        logger.info(f"[MOCK EMAIL] To: {message.to_email}, Subject: {message.subject}")
        MockEmailProvider.sent_emails.append(message)
        return EmailResult(
            success=True,
            message_id=f"mock-{datetime.utcnow().timestamp()}",
            provider=self.name,
        )

    @classmethod
    def clear_sent_emails(cls):
        """Clear sent emails list (for test cleanup)."""
        cls.sent_emails = []


# ============================================================================
# Email Service
# ============================================================================


class EmailService:
    """
    High-level email service for offer notifications.

    HOW: Renders the subject/body with the offer variables, then hands the
    message to the provider. Template errors raise EmailServiceError;
    provider failures come back as an unsuccessful EmailResult.
    """

    def __init__(self, provider: Optional[EmailProvider] = None):
        if provider:
            self._provider = provider
        elif settings.RESEND_API_KEY:
            self._provider = ResendProvider()
        else:
            logger.warning("No email provider configured, using mock provider")
            self._provider = MockEmailProvider()

        # StrictUndefined: a typo in a tenant template fails loudly
        self._env = SandboxedEnvironment(undefined=StrictUndefined, autoescape=False)

    @property
    def provider(self) -> EmailProvider:
        return self._provider

    def render(self, template: str, variables: Dict[str, Any]) -> str:
        """
        Render a subject/body template in the sandbox.

        Raises:
            EmailServiceError: If the template is invalid or uses unknown variables
        """
        try:
            return self._env.from_string(template).render(**variables)
        except TemplateError as e:
            raise EmailServiceError(message=f"Email template error: {e}")

    async def send_email(self, message: EmailMessage) -> EmailResult:
        """Send a message through the configured provider and log the outcome."""
        logger.info(
            f"Sending email to {message.to_email}",
            extra={"to": message.to_email, "provider": self._provider.name},
        )

        result = await self._provider.send(message)

        if result.success:
            logger.info(
                f"Email sent successfully: {result.message_id}",
                extra={"message_id": result.message_id, "provider": result.provider},
            )
        else:
            logger.error(
                f"Email send failed: {result.error}",
                extra={"to": message.to_email, "error": result.error},
            )
        return result

    async def send_offer_email(
        self,
        to_email: str,
        variables: Dict[str, Any],
        subject_template: Optional[str] = None,
        body_template: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> EmailResult:
        """
        Send the offer notification to a client.

        Args:
            to_email: Recipient address
            variables: offerNumber, offerTitle, clientName, companyName,
                shareLink, total
            subject_template: Custom subject (defaults to DEFAULT_OFFER_SUBJECT)
            body_template: Custom body (defaults to DEFAULT_OFFER_BODY)
            metadata: Extra tracking data stored on the message

        Returns:
            EmailResult with send status

        Raises:
            EmailServiceError: If a template can't be rendered
        """
        message = EmailMessage(
            to_email=to_email,
            subject=self.render(subject_template or DEFAULT_OFFER_SUBJECT, variables),
            text_content=self.render(body_template or DEFAULT_OFFER_BODY, variables),
            metadata=metadata or {},
        )
        return await self.send_email(message)


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create the process-wide email service."""
    global _email_service

    if _email_service is None:
        _email_service = EmailService()

    return _email_service
