"""
Email service for ProdBay.

Provides pluggable email backends for quote requests, quote acceptance
notices, and chat notifications.

Key Features:
    - Pluggable backend architecture (console, hosted email function, SMTP)
    - Jinja2 template rendering
    - HTML + plain text bodies
    - Async sending
    - Per-message sender override (producer settings)

Usage:
    from prodbay.core.notify.email_service import EmailService

    email_service = EmailService()

    await email_service.send_quote_accepted_email(
        to="supplier@example.com",
        supplier_name="Sam",
        quote_title="Printing",
    )

    # Pre-written body (customized quote requests)
    await email_service.send_text(
        to="supplier@example.com",
        subject="Quote Request: Printing",
        body="Dear Sam, ...",
        from_address="producer@example.com",
        from_name="Alex",
    )

Configuration:
    Uses settings from config.py:
    - email_backend: console | function | smtp
    - email_function_url / email_function_key: hosted function endpoint
    - email_from_address / email_from_name: default sender
    - smtp_*: SMTP configuration

Delivery failures are logged and reported as False; they never raise.
"""

import logging
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from pathlib import Path
from typing import Any, Dict, Optional

import aiosmtplib
import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from prodbay.config import settings

logger = logging.getLogger("prodbay.email")


class EmailBackend(ABC):
    """Abstract base class for email backends."""

    @abstractmethod
    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
        from_address: str,
        from_name: str,
    ) -> bool:
        """
        Send an email.

        Returns:
            bool: True if the backend accepted the message
        """
        pass


class ConsoleEmailBackend(EmailBackend):
    """
    Console email backend for development.

    Logs emails instead of sending them.
    """

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
        from_address: str,
        from_name: str,
    ) -> bool:
        """Log email instead of sending."""
        logger.info("=" * 80)
        logger.info("EMAIL (Console Backend)")
        logger.info(f"To: {to}")
        logger.info(f"From: {from_name} <{from_address}>")
        logger.info(f"Subject: {subject}")
        logger.info("-" * 80)
        logger.info(text_body)
        logger.info("=" * 80)
        return True


class EmailFunctionBackend(EmailBackend):
    """
    Hosted email function backend.

    POSTs a JSON payload ``{from, to, subject, text}`` to a serverless
    endpoint authorized with a bearer key.
    """

    def __init__(self, url: str, api_key: Optional[str], timeout: float = 30.0):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
        from_address: str,
        from_name: str,
    ) -> bool:
        """Send email through the hosted function."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload = {
            "from": f"{from_name} <{from_address}>",
            "to": to,
            "subject": subject,
            "text": text_body,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload, headers=headers)

            if response.status_code >= 400:
                logger.error(
                    f"Email function returned status {response.status_code}: {response.text[:200]}"
                )
                return False

            logger.info(f"Email sent successfully via email function to {to}")
            return True

        except httpx.HTTPError as e:
            logger.error(f"Failed to send email via email function: {e}")
            return False


class SMTPEmailBackend(EmailBackend):
    """
    SMTP email backend.

    Sends emails via SMTP server with optional STARTTLS.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: Optional[str],
        password: Optional[str],
        use_tls: bool = True,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls

    async def send_email(
        self,
        to: str,
        subject: str,
        html_body: str,
        text_body: str,
        from_address: str,
        from_name: str,
    ) -> bool:
        """Send email via SMTP."""
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{from_name} <{from_address}>"
            message["To"] = to
            message["Subject"] = subject

            message.attach(MIMEText(text_body, "plain"))
            message.attach(MIMEText(html_body, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.use_tls,
            )

            logger.info(f"Email sent successfully via SMTP to {to}")
            return True

        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email via SMTP: {e}")
            return False


class EmailService:
    """
    Email service with pluggable backends.

    Attributes:
        backend: Current email backend instance
        jinja_env: Jinja2 environment for template rendering
        from_address: Default from address
        from_name: Default from name
        is_configured: False when the selected backend fell back to console
    """

    def __init__(self, backend: Optional[EmailBackend] = None):
        self._is_configured = backend is not None
        self.backend = backend or self._create_backend()
        self.jinja_env = self._create_jinja_env()
        self.from_address = settings.email_from_address
        self.from_name = settings.email_from_name

        logger.info(f"EmailService initialized with backend: {type(self.backend).__name__}")

    @property
    def is_configured(self) -> bool:
        return self._is_configured

    def _create_backend(self) -> EmailBackend:
        """Create email backend based on configuration."""
        backend_type = settings.email_backend.lower()

        if backend_type == "console":
            self._is_configured = True
            return ConsoleEmailBackend()

        elif backend_type == "function":
            if not settings.email_function_url:
                logger.warning("Email function backend selected but email_function_url not configured. Falling back to console.")
                return ConsoleEmailBackend()

            self._is_configured = True
            return EmailFunctionBackend(
                url=settings.email_function_url,
                api_key=settings.email_function_key,
            )

        elif backend_type == "smtp":
            if not settings.smtp_host:
                logger.warning("SMTP backend selected but smtp_host not configured. Falling back to console.")
                return ConsoleEmailBackend()

            self._is_configured = True
            return SMTPEmailBackend(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                use_tls=settings.smtp_use_tls,
            )

        logger.warning(f"Unknown email backend: {backend_type}. Falling back to console.")
        return ConsoleEmailBackend()

    def _create_jinja_env(self) -> Environment:
        """Create Jinja2 environment for email templates."""
        template_dir = Path(__file__).parent.parent.parent / "templates" / "emails"

        return Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def render_text(self, template_name: str, context: Dict[str, Any]) -> str:
        return self.jinja_env.get_template(f"{template_name}.txt").render(**context)

    def render(self, template_name: str, context: Dict[str, Any]) -> Dict[str, str]:
        """Render the ``.html`` and ``.txt`` variants of a template."""
        html_body = self.jinja_env.get_template(f"{template_name}.html").render(**context)
        text_body = self.jinja_env.get_template(f"{template_name}.txt").render(**context)
        return {"html": html_body, "text": text_body}

    async def send_text(
        self,
        to: str,
        subject: str,
        body: str,
        from_address: Optional[str] = None,
        from_name: Optional[str] = None,
    ) -> bool:
        """Send a pre-written plain text body."""
        html_body = "<pre style=\"font-family: inherit; white-space: pre-wrap\">" + escape(body) + "</pre>"
        return await self.backend.send_email(
            to=to,
            subject=subject,
            html_body=html_body,
            text_body=body,
            from_address=from_address or self.from_address,
            from_name=from_name or self.from_name,
        )

    async def send_email(
        self,
        to: str,
        subject: str,
        template_name: str,
        context: Dict[str, Any],
        from_address: Optional[str] = None,
        from_name: Optional[str] = None,
    ) -> bool:
        """
        Send an email using a template.

        Args:
            to: Recipient email address
            subject: Email subject
            template_name: Template name (without extension)
            context: Template context variables
            from_address: Sender override
            from_name: Sender name override

        Returns:
            bool: True if sent successfully, False otherwise
        """
        try:
            bodies = self.render(template_name, context)
        except Exception as e:
            logger.error(f"Failed to render email template '{template_name}': {e}")
            return False

        return await self.backend.send_email(
            to=to,
            subject=subject,
            html_body=bodies["html"],
            text_body=bodies["text"],
            from_address=from_address or self.from_address,
            from_name=from_name or self.from_name,
        )

    # =========================================================================
    # WORKFLOW EMAILS
    # =========================================================================

    async def send_quote_accepted_email(self, to: str, supplier_name: str, quote_title: str) -> bool:
        """Acceptance notice; the project name is deliberately left out."""
        return await self.send_email(
            to=to,
            subject="Your Quote was Accepted",
            template_name="quote_accepted",
            context={"supplier_name": supplier_name, "quote_title": quote_title},
        )

    async def send_new_message_notification(
        self,
        to: str,
        sender_name: str,
        quote_name: str,
        link_url: str,
        message_preview: Optional[str] = None,
    ) -> bool:
        return await self.send_email(
            to=to,
            subject=f"New Message from {sender_name} - {quote_name}",
            template_name="new_message",
            context={
                "sender_name": sender_name,
                "quote_name": quote_name,
                "link_url": link_url,
                "message_preview": message_preview,
            },
        )
