"""Slack webhook server implementation (FastAPI).

This module defines the FastAPI application that receives Slack Events API
requests. Requests to ``/slack/events`` pass through
:class:`~slack_autoreply.security.SlackRequestVerificationMiddleware` before
they reach the route, so the handler only ever sees payloads signed by Slack.

Features
========
- Signature and replay window verification using Slack's signing secret
- URL verification challenge handling
- Canned reply to ``app_mention`` events via ``chat.postMessage``
- Health check endpoint (``/health``)

Quick Examples
==============

.. code-block:: bash

    # URL verification
    curl -X POST http://localhost:8080/slack/events \
         -H "Content-Type: application/json" \
         -H "X-Slack-Request-Timestamp: $(date +%s)" \
         -H "X-Slack-Signature: v0=..." \
         -d '{"type": "url_verification", "challenge": "abc123", "token": "..."}'

    # Health check
    curl http://localhost:8080/health
"""

from __future__ import annotations

import logging
from typing import Final, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from slack_sdk.signature import Clock
from slack_sdk.web.async_client import AsyncWebClient

from slack_autoreply.client import DefaultSlackClientFactory, RetryableSlackClientFactory, SlackClientFactory
from slack_autoreply.settings import MissingCredentialsError, get_settings

from .app import web_factory
from .event_handler import handle_event_callback
from .models import (
    AppRateLimitedModel,
    EventCallbackModel,
    EventParseError,
    UnsupportedEventTypeError,
    UrlVerificationModel,
    parse_event,
)

__all__: list[str] = [
    "create_slack_app",
    "slack_client",
    "get_slack_client",
    "initialize_slack_client",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

SERVICE_NAME: Final[str] = "slack-autoreply"

# Global Slack client used by the event handler
slack_client: Optional[AsyncWebClient] = None


def initialize_slack_client(token: str | None = None, retry: int = 0) -> AsyncWebClient:
    """Initialize the global Slack client.

    Parameters
    ----------
    token : str | None
        The Slack bot token to use. If None, will use SLACK_BOT_TOKEN from settings.
    retry : int
        Number of retry attempts for Slack API operations (default: 0).
        If set to 0, no retry mechanism is used.
        If set to a positive value, uses Slack SDK's built-in retry handlers
        for rate limits, server errors, and connection issues.

    Returns
    -------
    AsyncWebClient
        The initialized Slack client

    Raises
    ------
    ValueError
        If no token is found or if retry count is negative.
    """
    global slack_client

    if retry < 0:
        raise ValueError("Retry count must be non-negative")

    factory: SlackClientFactory
    if retry == 0:
        factory = DefaultSlackClientFactory()
    else:
        factory = RetryableSlackClientFactory(max_retry_count=retry)
    slack_client = factory.create_async_client(token)

    _LOG.info(f"Slack client initialized (retry={retry})")
    return slack_client


def get_slack_client() -> AsyncWebClient:
    """Get the global Slack client.

    Raises
    ------
    ValueError
        If the client has not been initialized
    """
    if slack_client is None:
        raise ValueError("Slack client not initialized. Call initialize_slack_client first.")
    return slack_client


def create_slack_app(
    signing_secret: str | None = None,
    replay_window: int | None = None,
    clock: Clock | None = None,
) -> FastAPI:
    """Create a FastAPI app for handling Slack events.

    Parameters
    ----------
    signing_secret : str | None
        The Slack signing secret. If None, will use SLACK_SIGNING_SECRET from settings.
    replay_window : int | None
        Maximum request age in seconds. If None, will use REPLAY_WINDOW_SECONDS from settings.
    clock : Clock | None
        Time source for the replay window check

    Returns
    -------
    FastAPI
        The FastAPI app

    Raises
    ------
    MissingCredentialsError
        If no signing secret is configured
    """
    settings = get_settings()
    if signing_secret is None and settings.slack_signing_secret is not None:
        signing_secret = settings.slack_signing_secret.get_secret_value()
    if not signing_secret:
        raise MissingCredentialsError(["SLACK_SIGNING_SECRET"])

    app = web_factory.create(
        signing_secret=signing_secret,
        replay_window=replay_window or settings.replay_window_seconds,
        clock=clock,
    )

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint for monitoring and load balancers."""
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={
                "status": "healthy",
                "service": SERVICE_NAME,
                "components": {
                    "slack_client": "initialized" if slack_client is not None else "not_initialized",
                },
            },
        )

    @app.post("/slack/events")
    async def slack_events(request: Request) -> Response:
        """Handle Slack Events API requests.

        The signature has already been checked by the middleware. Answers the
        URL verification challenge, replies to mentions, and acknowledges
        everything else with 200 so Slack does not retry it.
        """
        body = await request.body()

        try:
            payload = parse_event(body)
        except UnsupportedEventTypeError as e:
            _LOG.warning(f"Ignoring Slack payload: {e}")
            return Response(status_code=status.HTTP_200_OK)
        except EventParseError as e:
            _LOG.error(f"Error parsing Slack event: {e}")
            return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid event payload"})

        if isinstance(payload, UrlVerificationModel):
            _LOG.info("Handling URL verification challenge")
            return PlainTextResponse(content=payload.challenge)

        if isinstance(payload, AppRateLimitedModel):
            _LOG.warning(f"Slack is rate limiting event delivery for team {payload.team_id}")
            return Response(status_code=status.HTTP_200_OK)

        if isinstance(payload, EventCallbackModel):
            _LOG.info(f"Received Slack event: {payload.event_type}")
            try:
                await handle_event_callback(slack_client, payload)
            except EventParseError as e:
                _LOG.error(f"Error parsing Slack event: {e}")
                return JSONResponse(
                    status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid event payload"}
                )

        return Response(status_code=status.HTTP_200_OK)

    return app
