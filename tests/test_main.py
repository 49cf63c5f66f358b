from __future__ import annotations

import json

import pytest

from main import create_app
from server_config import BotSettings
from texts import ReplyTexts
from webhook_handlers import (
    ERROR_ACK_BODY,
    METHOD_NOT_ALLOWED_BODY,
    ReplyRules,
    TelegramWebhookHandler,
)


class FakeSender:
    def __init__(self):
        self.sent = []

    def send(self, chat_id, text):
        self.sent.append((chat_id, text))


@pytest.fixture
def sender():
    return FakeSender()


@pytest.fixture
def client(sender):
    settings = BotSettings(token="123456:ABCDEF")
    handler = TelegramWebhookHandler(settings, sender, rules=ReplyRules(ReplyTexts()))
    app = create_app(settings, handler)
    app.config.update(TESTING=True)
    return app.test_client()


def test_health_check(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.get_json() == {"status": "running"}


def test_get_on_webhook_is_method_not_allowed(client, sender):
    response = client.get("/webhook")

    assert response.status_code == 405
    assert response.get_data(as_text=True).startswith("Method Not Allowed.")
    assert sender.sent == []


def test_post_update_replies_and_acknowledges(client, sender):
    update = {"update_id": 1, "message": {"chat": {"id": 7}, "text": "Hi there"}}

    response = client.post("/webhook", data=json.dumps(update), content_type="application/json")

    assert response.status_code == 200
    assert response.get_data(as_text=True) == "OK"
    assert response.mimetype == "text/plain"
    [(chat_id, reply)] = sender.sent
    assert chat_id == 7
    assert "Hi there" in reply


def test_post_garbage_is_acknowledged(client, sender):
    response = client.post("/webhook", data="not json", content_type="application/json")

    assert response.status_code == 200
    assert response.get_data(as_text=True) == ERROR_ACK_BODY
    assert sender.sent == []


def test_missing_token_returns_500():
    settings = BotSettings(token=None)
    app = create_app(settings)

    response = app.test_client().post("/webhook", data="{}")

    assert response.status_code == 500
    assert response.get_data(as_text=True) == "Server Misconfigured: Missing Bot Token."


def test_provider_error_still_acknowledged(monkeypatch):
    class ErrorResponse:
        ok = False
        status_code = 403
        text = '{"ok":false,"description":"Forbidden: bot was blocked by the user"}'

    calls = []

    def fake_post(url, **kwargs):
        calls.append(kwargs["json"])
        return ErrorResponse()

    monkeypatch.setattr("telegram_client.requests.post", fake_post)
    app = create_app(BotSettings(token="123456:ABCDEF"))
    update = {"message": {"chat": {"id": 9}, "text": "random text"}}

    response = app.test_client().post("/webhook", data=json.dumps(update))

    assert response.status_code == 200
    assert response.get_data(as_text=True) == "OK"
    assert calls[0]["chat_id"] == 9
    assert calls[0]["parse_mode"] == "Markdown"


@pytest.mark.parametrize("method", ["TRACE", "PROPFIND"])
def test_unrouted_methods_get_plain_text_405(client, sender, method):
    response = client.open("/webhook", method=method)

    assert response.status_code == 405
    assert response.mimetype == "text/plain"
    assert response.get_data(as_text=True) == METHOD_NOT_ALLOWED_BODY
    assert sender.sent == []
