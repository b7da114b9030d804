"""Tests for the SMTP email sender."""

import smtplib

import pytest

from app.services import mailer as mailer_module
from app.services.mailer import EmailSender


class _RecordingSMTP:
    instances: list["_RecordingSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.started_tls = False
        self.logged_in = None
        self.messages = []
        _RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.started_tls = True

    def login(self, username, password):
        self.logged_in = (username, password)

    def send_message(self, msg):
        self.messages.append(msg)


@pytest.mark.asyncio
async def test_unconfigured_sender_reports_failure():
    sender = EmailSender(host="")
    assert await sender.send_otp_email("a@x.com", "123456", "Alice") is False


@pytest.mark.asyncio
async def test_sends_otp_message(monkeypatch):
    _RecordingSMTP.instances.clear()
    monkeypatch.setattr(mailer_module.smtplib, "SMTP", _RecordingSMTP)
    sender = EmailSender(host="smtp.test", port=2525, username="u", password="p", use_tls=True)

    assert await sender.send_otp_email("a@x.com", "654321", "Alice") is True

    smtp = _RecordingSMTP.instances[-1]
    assert (smtp.host, smtp.port) == ("smtp.test", 2525)
    assert smtp.started_tls is True
    assert smtp.logged_in == ("u", "p")
    msg = smtp.messages[0]
    assert msg["To"] == "a@x.com"
    assert "654321" in msg.get_content()
    assert "Alice" in msg.get_content()


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [smtplib.SMTPException("rejected"), ConnectionRefusedError()])
async def test_delivery_errors_return_false(monkeypatch, error):
    def _explode(*args, **kwargs):
        raise error

    monkeypatch.setattr(mailer_module.smtplib, "SMTP", _explode)
    sender = EmailSender(host="smtp.test")
    assert await sender.send_otp_email("a@x.com", "123456", "Alice") is False
