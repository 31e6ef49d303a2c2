import asyncio

import aiosmtplib

from inkmity.utils import email as email_utils


def test_send_email_builds_message(monkeypatch):
    sent = []

    async def fake_send(msg, **kwargs):
        sent.append((msg, kwargs))

    monkeypatch.setattr(email_utils.aiosmtplib, "send", fake_send)
    assert email_utils.send_email("fan@example.com", "Hello", "Body text")

    msg, kwargs = sent[0]
    assert msg["To"] == "fan@example.com"
    assert msg["Subject"] == "Hello"
    assert kwargs["hostname"] == email_utils.settings.SMTP_HOST


def test_send_failure_is_logged_not_raised(monkeypatch):
    async def boom(msg, **kwargs):
        raise aiosmtplib.SMTPConnectError("refused")

    monkeypatch.setattr(email_utils.aiosmtplib, "send", boom)
    assert asyncio.run(email_utils.send_email_async("fan@example.com", "Hi", "x")) is False
