"""Unit tests for the FastAPI webhook server."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from slack_sdk.errors import SlackRequestError
from slack_sdk.web.async_client import AsyncWebClient

import slack_autoreply.server as server_module
from slack_autoreply.app import web_factory
from slack_autoreply.server import create_slack_app, get_slack_client, initialize_slack_client
from slack_autoreply.settings import MissingCredentialsError, get_settings

APP_MENTION_CALLBACK = {
    "type": "event_callback",
    "team_id": "T12345",
    "api_app_id": "A12345",
    "event_id": "Ev12345",
    "event_time": 1234567890,
    "token": "test_token",
    "authorizations": [{"enterprise_id": None, "team_id": "T12345", "user_id": "U12345"}],
    "event": {
        "type": "app_mention",
        "user": "U12345",
        "text": "<@BOTID> Hello",
        "channel": "C12345",
        "ts": "1234567890.123456",
    },
}


@pytest.fixture
def mock_client() -> AsyncMock:
    client = AsyncMock(spec=AsyncWebClient)
    client.chat_postMessage.return_value = {"ok": True}
    return client


@pytest.fixture
def app(signing_secret, fixed_clock) -> FastAPI:
    return create_slack_app(signing_secret=signing_secret, clock=fixed_clock)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


def _post(client: TestClient, signed_headers, payload) -> "object":
    body, headers = signed_headers(payload)
    return client.post("/slack/events", content=body, headers=headers)


def test_create_slack_app_with_routes(app):
    routes = {route.path: route.methods for route in app.routes}
    assert "POST" in routes["/slack/events"]
    assert "GET" in routes["/health"]


def test_create_slack_app_registers_singleton(app):
    assert web_factory.get() is app
    with pytest.raises(AssertionError):
        web_factory.create(signing_secret="another")


def test_create_slack_app_reads_secret_from_settings(monkeypatch, signing_secret):
    monkeypatch.setenv("SLACK_SIGNING_SECRET", signing_secret)
    get_settings(force_reload=True)

    assert isinstance(create_slack_app(), FastAPI)


def test_create_slack_app_without_secret_fails():
    with pytest.raises(MissingCredentialsError) as exc_info:
        create_slack_app()
    assert exc_info.value.missing == ["SLACK_SIGNING_SECRET"]


@patch("slack_autoreply.server.initialize_slack_client")
def test_create_slack_app_does_not_initialize_client(mock_initialize_client, signing_secret):
    create_slack_app(signing_secret=signing_secret)
    mock_initialize_client.assert_not_called()


def test_url_verification_returns_plain_text_challenge(client, signed_headers):
    response = _post(client, signed_headers, {"type": "url_verification", "challenge": "test_challenge", "token": "t"})

    assert response.status_code == 200
    assert response.text == "test_challenge"
    assert response.headers["content-type"].startswith("text/plain")


def test_unsigned_url_verification_is_rejected(client):
    response = client.post("/slack/events", json={"type": "url_verification", "challenge": "test_challenge"})

    assert response.status_code == 400
    assert "test_challenge" not in response.text


def test_app_mention_posts_reply(client, signed_headers, mock_client):
    with patch.object(server_module, "slack_client", mock_client):
        response = _post(client, signed_headers, APP_MENTION_CALLBACK)

    assert response.status_code == 200
    assert response.content == b""
    mock_client.chat_postMessage.assert_awaited_once_with(
        channel="C12345", text="Hello <@U12345>! You mentioned me: <@BOTID> Hello"
    )


def test_app_mention_reply_failure_still_acknowledged(client, signed_headers, mock_client):
    mock_client.chat_postMessage.side_effect = SlackRequestError("boom")

    with patch.object(server_module, "slack_client", mock_client):
        response = _post(client, signed_headers, APP_MENTION_CALLBACK)

    assert response.status_code == 200


@pytest.mark.parametrize("error", [aiohttp.ClientConnectionError("connection refused"), asyncio.TimeoutError()])
def test_app_mention_transport_failure_still_acknowledged(client, signed_headers, mock_client, error):
    mock_client.chat_postMessage.side_effect = error

    with patch.object(server_module, "slack_client", mock_client):
        response = _post(client, signed_headers, APP_MENTION_CALLBACK)

    assert response.status_code == 200
    mock_client.chat_postMessage.assert_awaited_once()


def test_unsupported_inner_event_is_acknowledged(client, signed_headers, mock_client):
    payload = dict(APP_MENTION_CALLBACK, event={"type": "reaction_added", "reaction": "tada"})

    with patch.object(server_module, "slack_client", mock_client):
        response = _post(client, signed_headers, payload)

    assert response.status_code == 200
    mock_client.chat_postMessage.assert_not_awaited()


def test_unsupported_outer_type_is_acknowledged(client, signed_headers):
    response = _post(client, signed_headers, {"type": "block_actions"})
    assert response.status_code == 200


def test_app_rate_limited_is_acknowledged(client, signed_headers):
    response = _post(
        client, signed_headers, {"type": "app_rate_limited", "team_id": "T1", "minute_rate_limited": 1518467820}
    )
    assert response.status_code == 200


@pytest.mark.parametrize("body", [b"not json", b"[]", json.dumps({"type": "event_callback"}).encode()])
def test_unparseable_payload_returns_400(client, signed_headers, body):
    response = _post(client, signed_headers, body)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid event payload"}


def test_malformed_app_mention_returns_400(client, signed_headers, mock_client):
    payload = dict(APP_MENTION_CALLBACK, event={"type": "app_mention", "text": "no user or channel"})

    with patch.object(server_module, "slack_client", mock_client):
        response = _post(client, signed_headers, payload)

    assert response.status_code == 400
    mock_client.chat_postMessage.assert_not_awaited()


def test_health_check_is_open(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "service": "slack-autoreply",
        "components": {"slack_client": "not_initialized"},
    }


def test_health_check_reports_client(client, mock_client):
    with patch.object(server_module, "slack_client", mock_client):
        response = client.get("/health")

    assert response.json()["components"]["slack_client"] == "initialized"


def test_initialize_slack_client_without_retry(bot_token):
    client = initialize_slack_client(bot_token, retry=0)

    assert isinstance(client, AsyncWebClient)
    assert client.token == bot_token
    assert get_slack_client() is client


def test_initialize_slack_client_with_retry(bot_token):
    with patch("slack_autoreply.server.RetryableSlackClientFactory") as mock_factory_cls:
        sentinel = MagicMock(spec=AsyncWebClient)
        mock_factory_cls.return_value.create_async_client.return_value = sentinel

        client = initialize_slack_client(bot_token, retry=4)

    mock_factory_cls.assert_called_once_with(max_retry_count=4)
    mock_factory_cls.return_value.create_async_client.assert_called_once_with(bot_token)
    assert client is sentinel


def test_initialize_slack_client_negative_retry(bot_token):
    with pytest.raises(ValueError, match="non-negative"):
        initialize_slack_client(bot_token, retry=-1)


def test_initialize_slack_client_without_token():
    with pytest.raises(ValueError, match="Slack token not found"):
        initialize_slack_client(None)


def test_get_slack_client_before_initialization():
    with pytest.raises(ValueError, match="not initialized"):
        get_slack_client()
