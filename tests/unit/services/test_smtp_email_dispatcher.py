import smtplib
from unittest.mock import MagicMock, patch

import pytest

from estate_iam.adapter.services.smtp_email_dispatcher import (
    SmtpEmailDispatcher,
    redact_email,
)


def test_redact_email():
    assert redact_email("alice@example.com") == "al***@example.com"
    assert redact_email("nobody") == "redacted"


@pytest.mark.asyncio
async def test_dev_mode_logs_instead_of_sending(caplog):
    dispatcher = SmtpEmailDispatcher(smtp_host="")

    with patch("smtplib.SMTP_SSL") as smtp_ssl, caplog.at_level("INFO"):
        sent = await dispatcher.send("alice@example.com", "Your OTP", "Your OTP is: 123456")

    assert sent is True
    smtp_ssl.assert_not_called()
    assert "123456" not in caplog.text
    assert "al***@example.com" in caplog.text


@pytest.mark.asyncio
async def test_sends_over_implicit_ssl():
    dispatcher = SmtpEmailDispatcher(
        smtp_host="smtp.example.com",
        smtp_user="mailer@example.com",
        smtp_password="secret",
    )
    server = MagicMock()

    with patch("smtplib.SMTP_SSL") as smtp_ssl:
        smtp_ssl.return_value.__enter__.return_value = server
        sent = await dispatcher.send("alice@example.com", "Subject", "<p>Hi</p>")

    assert sent is True
    server.login.assert_called_once_with("mailer@example.com", "secret")
    args = server.sendmail.call_args.args
    assert args[0] == "mailer@example.com"
    assert args[1] == "alice@example.com"


@pytest.mark.asyncio
async def test_transport_failure_returns_false():
    dispatcher = SmtpEmailDispatcher(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_use_tls=True,
        from_email="noreply@example.com",
    )

    with patch("smtplib.SMTP", side_effect=smtplib.SMTPConnectError(421, b"busy")):
        sent = await dispatcher.send("alice@example.com", "Subject", "<p>Hi</p>")

    assert sent is False
