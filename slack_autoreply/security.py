"""Slack request authentication middleware.

Every request on a protected path (``/slack/events`` by default) must carry
Slack's ``X-Slack-Request-Timestamp`` and ``X-Slack-Signature`` headers. The
middleware buffers the raw body, rejects requests whose timestamp falls
outside the replay window, checks the ``v0`` HMAC-SHA256 signature computed
with the app's signing secret, and only then hands the request (with the very
same body bytes) to the route handler.

Rejections
==========
=====================================  ======  ====================================
Condition                              Status  ``error`` message
=====================================  ======  ====================================
Body could not be read                 400     Failed to read request body
Signature or timestamp header missing  400     Missing Slack signature headers
Timestamp is not an integer            400     Invalid timestamp
Timestamp outside the replay window    401     Request timestamp too old
Signature does not match               401     Slack signature verification failed
=====================================  ======  ====================================

Quick Examples
==============

.. code-block:: python

    from fastapi import FastAPI
    from slack_autoreply.security import SlackRequestVerificationMiddleware

    app = FastAPI()
    app.add_middleware(SlackRequestVerificationMiddleware, signing_secret="8f742231b10e8888abcd99yyyzzz85a5")
"""

from __future__ import annotations

import hmac
import logging
from typing import Final, Optional, Sequence

from slack_sdk.signature import Clock, SignatureVerifier
from starlette.requests import ClientDisconnect, Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from slack_autoreply.settings import DEFAULT_REPLAY_WINDOW_SECONDS

__all__: list[str] = [
    "SlackVerificationError",
    "BodyReadError",
    "MissingSignatureHeadersError",
    "InvalidTimestampError",
    "StaleTimestampError",
    "InvalidSignatureError",
    "verify_slack_request",
    "SlackRequestVerificationMiddleware",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

SIGNATURE_HEADER: Final[str] = "X-Slack-Signature"
TIMESTAMP_HEADER: Final[str] = "X-Slack-Request-Timestamp"
DEFAULT_PROTECTED_PATHS: Final[tuple[str, ...]] = ("/slack/events",)
_MAX_TIMESTAMP_DIGITS: Final[int] = 20


class SlackVerificationError(Exception):
    """Base class for rejected inbound requests.

    Each subclass carries the HTTP status code and the client-facing message
    used for the rejection response.
    """

    status_code: int = 401
    message: str = "Slack signature verification failed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.message
        super().__init__(self.detail)


class BodyReadError(SlackVerificationError):
    status_code = 400
    message = "Failed to read request body"


class MissingSignatureHeadersError(SlackVerificationError):
    status_code = 400
    message = "Missing Slack signature headers"


class InvalidTimestampError(SlackVerificationError):
    status_code = 400
    message = "Invalid timestamp"


class StaleTimestampError(SlackVerificationError):
    status_code = 401
    message = "Request timestamp too old"


class InvalidSignatureError(SlackVerificationError):
    status_code = 401
    message = "Slack signature verification failed"


def verify_slack_request(
    *,
    signing_secret: str,
    timestamp: Optional[str],
    signature: Optional[str],
    body: bytes,
    replay_window: int = DEFAULT_REPLAY_WINDOW_SECONDS,
    now: Optional[float] = None,
) -> None:
    """Verify a single Slack request.

    Parameters
    ----------
    signing_secret : str
        The Slack app's signing secret
    timestamp : Optional[str]
        Value of the ``X-Slack-Request-Timestamp`` header
    signature : Optional[str]
        Value of the ``X-Slack-Signature`` header (``v0=<hex digest>``)
    body : bytes
        The raw request body, exactly as received
    replay_window : int
        Maximum allowed distance in seconds between ``timestamp`` and ``now``
    now : Optional[float]
        Current time as seconds since the epoch; defaults to the wall clock

    Raises
    ------
    SlackVerificationError
        One of its subclasses, describing why the request was rejected

    Notes
    -----
    The body must be UTF-8, which is all Slack ever sends. A body that does not
    decode is rejected with :class:`InvalidSignatureError` whatever its HMAC.
    """
    if not timestamp or not signature:
        raise MissingSignatureHeadersError()

    if not (timestamp.isascii() and timestamp.isdigit()):
        raise InvalidTimestampError(f"Invalid timestamp: {timestamp!r}")

    # No epoch second is this long
    if len(timestamp) > _MAX_TIMESTAMP_DIGITS:
        raise StaleTimestampError(f"Request timestamp of {len(timestamp)} digits is outside the replay window")

    current = Clock().now() if now is None else now
    # Clock skew counts in both directions
    if abs(current - int(timestamp)) > replay_window:
        raise StaleTimestampError(f"Request timestamp {timestamp} is outside the {replay_window}s replay window")

    verifier = SignatureVerifier(signing_secret)
    try:
        expected = verifier.generate_signature(timestamp=timestamp, body=body)
    except UnicodeDecodeError as e:
        raise InvalidSignatureError("Request body is not valid UTF-8") from e

    if expected is None or not hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8")):
        raise InvalidSignatureError()


class SlackRequestVerificationMiddleware:
    """ASGI middleware rejecting requests that were not signed by Slack.

    Parameters
    ----------
    app : ASGIApp
        The downstream ASGI application
    signing_secret : str
        The Slack app's signing secret
    replay_window : int
        Maximum accepted age in seconds of a request timestamp (default: 300)
    protected_paths : Sequence[str]
        Request paths that require verification; other paths pass through
    clock : Optional[Clock]
        Time source, replaceable in tests

    Raises
    ------
    ValueError
        If the signing secret is empty or the replay window is not positive
    """

    def __init__(
        self,
        app: ASGIApp,
        signing_secret: str,
        replay_window: int = DEFAULT_REPLAY_WINDOW_SECONDS,
        protected_paths: Sequence[str] = DEFAULT_PROTECTED_PATHS,
        clock: Optional[Clock] = None,
    ) -> None:
        if not signing_secret:
            raise ValueError("A Slack signing secret is required to verify requests")
        if replay_window <= 0:
            raise ValueError("Replay window must be positive")
        self.app = app
        self.signing_secret = signing_secret
        self.replay_window = replay_window
        self.protected_paths = frozenset(protected_paths)
        self.clock = clock or Clock()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] not in self.protected_paths:
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        try:
            try:
                body = await request.body()
            except ClientDisconnect as e:
                raise BodyReadError() from e

            verify_slack_request(
                signing_secret=self.signing_secret,
                timestamp=request.headers.get(TIMESTAMP_HEADER),
                signature=request.headers.get(SIGNATURE_HEADER),
                body=body,
                replay_window=self.replay_window,
                now=self.clock.now(),
            )
        except SlackVerificationError as e:
            _LOG.warning(f"Rejected request to {scope['path']}: {e.detail}")
            response = JSONResponse(status_code=e.status_code, content={"error": e.message})
            await response(scope, receive, send)
            return

        _LOG.debug(f"Verified Slack request to {scope['path']}")
        await self.app(scope, _replay_body(body, receive), send)


def _replay_body(body: bytes, receive: Receive) -> Receive:
    """Return a receive callable that yields the buffered body once, then defers to ``receive``."""
    delivered = False

    async def replay() -> Message:
        nonlocal delivered
        if not delivered:
            delivered = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay
