import smtplib

import pytest
from unittest.mock import MagicMock, patch

from modules.auth.messaging import SmtpMessageSender, redact_email
from shared.exceptions import ExternalServiceError

from fakes import make_settings


class TestRedactEmail:
    def test_redacts_local_part(self):
        assert redact_email("ana.maria@example.com") == "an***@example.com"

    def test_not_an_email(self):
        assert redact_email("nobody") == "redacted"


class TestSmtpMessageSender:
    def test_from_settings(self):
        settings = make_settings(
            smtp_host="smtp.example.com",
            smtp_port=2525,
            smtp_user="mailer",
            smtp_password="pw",
            email_from="",
        )
        sender = SmtpMessageSender.from_settings(settings)
        assert sender.host == "smtp.example.com"
        assert sender.port == 2525
        # Falls back to the SMTP user as sender address
        assert sender.from_email == "mailer"
        assert sender.is_configured

    def test_not_configured_without_host(self):
        assert not SmtpMessageSender(from_email="shop@example.com").is_configured

    def test_build_message(self):
        sender = SmtpMessageSender(host="smtp", from_email="shop@example.com", from_name="Shop")
        msg = sender._build_message("ana@example.com", "Hi", "plain body", "<p>html</p>")
        assert msg["To"] == "ana@example.com"
        assert msg["From"] == "Shop <shop@example.com>"
        assert msg["Subject"] == "Hi"
        assert len(msg.get_payload()) == 2

    @pytest.mark.asyncio
    async def test_send_skipped_when_not_configured(self):
        """Dev mode: nothing is delivered and nothing raises."""
        sender = SmtpMessageSender()
        with patch("modules.auth.messaging.smtplib.SMTP") as mock_smtp:
            await sender.send("ana@example.com", "Subject", "text", "<p>html</p>")
        mock_smtp.assert_not_called()

    @pytest.mark.asyncio
    async def test_send_over_starttls(self):
        sender = SmtpMessageSender(
            host="smtp.example.com",
            port=587,
            user="mailer",
            password="pw",
            from_email="shop@example.com",
        )
        with patch("modules.auth.messaging.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            await sender.send("ana@example.com", "Subject", "text", "<p>html</p>")

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "pw")
        args = server.sendmail.call_args.args
        assert args[0] == "shop@example.com"
        assert args[1] == "ana@example.com"

    @pytest.mark.asyncio
    async def test_send_over_ssl(self):
        sender = SmtpMessageSender(
            host="smtp.example.com",
            port=465,
            use_tls=False,
            from_email="shop@example.com",
        )
        with patch("modules.auth.messaging.smtplib.SMTP_SSL") as mock_smtp_ssl:
            server = mock_smtp_ssl.return_value.__enter__.return_value
            await sender.send("ana@example.com", "Subject", "text", "<p>html</p>")

        server.login.assert_not_called()
        server.sendmail.assert_called_once()

    @pytest.mark.asyncio
    async def test_send_failure_raises_external_service_error(self):
        sender = SmtpMessageSender(host="smtp.example.com", from_email="shop@example.com")
        with patch("modules.auth.messaging.smtplib.SMTP") as mock_smtp:
            mock_smtp.side_effect = smtplib.SMTPConnectError(421, "unavailable")
            with pytest.raises(ExternalServiceError) as exc_info:
                await sender.send("ana@example.com", "Subject", "text", "<p>html</p>")

        assert exc_info.value.service == "smtp"
        assert exc_info.value.details["error_type"] == "SMTPConnectError"

    @pytest.mark.asyncio
    async def test_connection_refused_raises_external_service_error(self):
        sender = SmtpMessageSender(host="smtp.example.com", from_email="shop@example.com")
        with patch("modules.auth.messaging.smtplib.SMTP", side_effect=ConnectionRefusedError()):
            with pytest.raises(ExternalServiceError):
                await sender.send("ana@example.com", "Subject", "text", "<p>html</p>")
