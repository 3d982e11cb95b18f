"""
Unit tests for EmailService and its backends.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from prodbay.core.notify.email_service import (
    ConsoleEmailBackend,
    EmailFunctionBackend,
    EmailService,
    SMTPEmailBackend,
)


class TestBackendSelection:
    """Test backend creation from settings."""

    @patch("prodbay.core.notify.email_service.settings")
    def test_console_backend(self, mock_settings):
        mock_settings.email_backend = "console"
        service = EmailService()
        assert isinstance(service.backend, ConsoleEmailBackend)
        assert service.is_configured

    @patch("prodbay.core.notify.email_service.settings")
    def test_function_backend(self, mock_settings):
        mock_settings.email_backend = "function"
        mock_settings.email_function_url = "https://mail.example.com/send"
        mock_settings.email_function_key = "key"
        service = EmailService()
        assert isinstance(service.backend, EmailFunctionBackend)

    @patch("prodbay.core.notify.email_service.settings")
    def test_function_backend_without_url_falls_back(self, mock_settings):
        mock_settings.email_backend = "function"
        mock_settings.email_function_url = None
        service = EmailService()
        assert isinstance(service.backend, ConsoleEmailBackend)
        assert service.is_configured is False

    @patch("prodbay.core.notify.email_service.settings")
    def test_smtp_backend(self, mock_settings):
        mock_settings.email_backend = "smtp"
        mock_settings.smtp_host = "smtp.example.com"
        mock_settings.smtp_port = 587
        service = EmailService()
        assert isinstance(service.backend, SMTPEmailBackend)


class TestTemplates:
    """Test template rendering."""

    def test_quote_accepted(self, email_service):
        bodies = email_service.render("quote_accepted", {"supplier_name": "Pat", "quote_title": "Printing"})
        assert "Good news, Pat!" in bodies["text"]
        assert "Printing" in bodies["html"]

    def test_html_is_escaped(self, email_service):
        bodies = email_service.render("quote_accepted", {"supplier_name": "<b>Pat</b>", "quote_title": "x"})
        assert "&lt;b&gt;Pat&lt;/b&gt;" in bodies["html"]

    def test_new_message_preview_optional(self, email_service):
        context = {"sender_name": "PrintCo", "quote_name": "Printing", "link_url": "http://app.test/x"}
        without = email_service.render_text("new_message", context)
        assert "Message preview" not in without
        with_preview = email_service.render_text("new_message", {**context, "message_preview": "See you"})
        assert '"See you"' in with_preview


class TestWorkflowEmails:
    """Test subject lines and sender handling."""

    @pytest.mark.asyncio
    async def test_quote_accepted_email(self, email_service, email_backend):
        assert await email_service.send_quote_accepted_email("pat@example.com", "Pat", "Printing")
        sent = email_backend.sent[0]
        assert sent["subject"] == "Your Quote was Accepted"
        assert sent["from_address"] == email_service.from_address

    @pytest.mark.asyncio
    async def test_new_message_subject(self, email_service, email_backend):
        await email_service.send_new_message_notification(
            to="producer@example.com",
            sender_name="PrintCo",
            quote_name="Printing",
            link_url="http://app.test/dashboard/quotes",
        )
        assert email_backend.sent[0]["subject"] == "New Message from PrintCo - Printing"

    @pytest.mark.asyncio
    async def test_send_text_sender_override(self, email_service, email_backend):
        await email_service.send_text("s@example.com", "Hi", "Body", from_address="alex@x.com", from_name="Alex")
        sent = email_backend.sent[0]
        assert sent["text"] == "Body"
        assert (sent["from_address"], sent["from_name"]) == ("alex@x.com", "Alex")

    @pytest.mark.asyncio
    async def test_missing_template_reports_failure(self, email_service, email_backend):
        assert await email_service.send_email("a@example.com", "Subject", "no_such_template", {}) is False
        assert email_backend.sent == []


class TestEmailFunctionBackend:
    """Test the hosted email function backend."""

    @pytest.mark.asyncio
    async def test_posts_payload(self):
        backend = EmailFunctionBackend("https://mail.example.com/send", "secret")
        response = MagicMock(status_code=200, text="ok")
        client = AsyncMock()
        client.post.return_value = response
        client.__aenter__.return_value = client

        with patch("prodbay.core.notify.email_service.httpx.AsyncClient", return_value=client):
            sent = await backend.send_email("to@example.com", "Subj", "<p>x</p>", "x", "from@example.com", "Alex")

        assert sent is True
        kwargs = client.post.call_args.kwargs
        assert kwargs["json"] == {
            "from": "Alex <from@example.com>",
            "to": "to@example.com",
            "subject": "Subj",
            "text": "x",
        }
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_error_status(self):
        backend = EmailFunctionBackend("https://mail.example.com/send", None)
        client = AsyncMock()
        client.post.return_value = MagicMock(status_code=500, text="boom")
        client.__aenter__.return_value = client

        with patch("prodbay.core.notify.email_service.httpx.AsyncClient", return_value=client):
            assert await backend.send_email("t@example.com", "S", "", "", "f@example.com", "F") is False

    @pytest.mark.asyncio
    async def test_network_error(self):
        backend = EmailFunctionBackend("https://mail.example.com/send", None)
        client = AsyncMock()
        client.post.side_effect = httpx.ConnectError("refused")
        client.__aenter__.return_value = client

        with patch("prodbay.core.notify.email_service.httpx.AsyncClient", return_value=client):
            assert await backend.send_email("t@example.com", "S", "", "", "f@example.com", "F") is False
