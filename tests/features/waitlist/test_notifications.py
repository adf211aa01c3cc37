from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.features.waitlist.services.notifications import WaitlistNotifier
from app.platform.exceptions import DispatchError
from app.platform.services import email as email_service


@pytest.fixture
def entry():
    return SimpleNamespace(id="entry-1", email="a@x.com", referral_code="Ab3dE5fG7h")


@pytest.fixture
def transport():
    return MagicMock()


@pytest.fixture
def notifier(transport):
    return WaitlistNotifier(transport=transport, app_name="Maxmove", landing_page_url="https://maxmove.de")


def test_render_confirmation(notifier, entry):
    html = notifier.render_confirmation(entry)

    assert "a@x.com" in html
    assert "Ab3dE5fG7h" in html
    assert "https://maxmove.de/?ref=Ab3dE5fG7h" in html
    assert "Welcome to Maxmove" in html


@pytest.mark.asyncio
async def test_send_confirmation_uses_transport(notifier, transport, entry):
    await notifier.send_confirmation(entry)

    transport.assert_called_once()
    to_email, subject, body = transport.call_args.args
    assert to_email == "a@x.com"
    assert subject == "Thank you for joining Maxmove's launch waitlist!"
    assert "Ab3dE5fG7h" in body


@pytest.mark.asyncio
async def test_transport_failure_becomes_dispatch_error(notifier, transport, entry):
    transport.side_effect = RuntimeError("boom")

    with pytest.raises(DispatchError):
        await notifier.send_confirmation(entry)


def test_get_mail_transport(make_settings):
    config = make_settings(MAIL_MAILER="relay", EMAIL_RELAY_URL="http://relay.test/send")

    assert email_service.get_mail_transport(make_settings(MAIL_MAILER="log")) is email_service.send_email_to_log

    relay = email_service.get_mail_transport(config)
    assert relay.func is email_service.send_email
    assert relay.keywords["settings"] is config

    smtp = email_service.get_mail_transport(make_settings(MAIL_MAILER="smtp"))
    assert smtp.func is email_service.send_email_direct_smtp


def test_app_relay_settings_reach_the_relay(make_settings):
    from fastapi.testclient import TestClient

    from app.main import create_app

    app = create_app(
        make_settings(
            MAIL_MAILER="relay",
            EMAIL_RELAY_URL="http://relay.test/send",
            EMAIL_RELAY_API_KEY="relay-key",
            MAIL_FROM_ADDRESS="hello@maxmove.test",
        )
    )
    response = MagicMock()
    response.json.return_value = {"message": "queued"}

    with patch.object(email_service.requests, "post", return_value=response) as mock_post, patch.object(
        email_service.smtplib, "SMTP"
    ) as mock_smtp:
        with TestClient(app) as client:
            result = client.post("/waiting-list", json={"email": "a@x.com"})

    assert result.status_code == 200
    assert result.json()["notified"] is True
    mock_post.assert_called_once()
    assert mock_post.call_args.args[0] == "http://relay.test/send"
    assert mock_post.call_args.kwargs["headers"]["X-API-Key"] == "relay-key"
    assert mock_post.call_args.kwargs["json"]["from_address"] == "hello@maxmove.test"
    mock_smtp.assert_not_called()


def test_smtp_uses_given_settings(make_settings):
    config = make_settings(MAIL_MAILER="smtp", MAIL_HOST="mail.maxmove.test", MAIL_PORT=2525)

    with patch.object(email_service.smtplib, "SMTP") as mock_smtp:
        email_service.get_mail_transport(config)("a@x.com", "subject", "<p>body</p>")

    mock_smtp.assert_called_once_with("mail.maxmove.test", 2525)



def test_relay_timeout_raises_dispatch_error():
    with patch.object(email_service.requests, "post", side_effect=requests.exceptions.Timeout()):
        with pytest.raises(DispatchError):
            email_service.send_email_via_relay("a@x.com", "subject", "<p>body</p>")


def test_relay_success():
    response = MagicMock()
    response.json.return_value = {"message": "queued"}
    with patch.object(email_service.requests, "post", return_value=response) as mock_post:
        email_service.send_email_via_relay("a@x.com", "subject", "<p>body</p>")

    payload = mock_post.call_args.kwargs["json"]
    assert payload["to_email"] == "a@x.com"
    assert payload["subject"] == "subject"


def test_smtp_failure_raises_dispatch_error():
    with patch.object(email_service.smtplib, "SMTP", side_effect=OSError("connection refused")):
        with pytest.raises(DispatchError):
            email_service.send_email_direct_smtp("a@x.com", "subject", "<p>body</p>")
