"""Pydantic models for Slack Events API payloads.

Slack posts three outer payload shapes to the events endpoint:

- ``url_verification``: the one-time handshake when the request URL is configured
- ``event_callback``: a wrapped workspace event (``app_mention``, ``message``, ...)
- ``app_rate_limited``: notice that event delivery is being throttled

Examples
--------
.. code-block:: python

    from slack_autoreply.models import parse_event

    model = parse_event(b'{"type": "url_verification", "challenge": "abc", "token": "t"}')
    assert model.challenge == "abc"
"""

from __future__ import annotations

import json
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

__all__: list[str] = [
    "EventParseError",
    "UnsupportedEventTypeError",
    "InnerEvent",
    "AppMentionEvent",
    "UrlVerificationModel",
    "EventCallbackModel",
    "AppRateLimitedModel",
    "SlackPayload",
    "deserialize",
    "parse_event",
]


class EventParseError(ValueError):
    """Raised when a request body is not a well-formed Events API payload."""


class UnsupportedEventTypeError(EventParseError):
    """Raised when the outer payload ``type`` is not one this server understands."""

    def __init__(self, event_type: Any):
        self.event_type = event_type
        super().__init__(f"Unsupported payload type: {event_type!r}")


class InnerEvent(BaseModel):
    """Any workspace event carried by an ``event_callback``."""

    model_config = ConfigDict(extra="allow")

    type: str
    event_ts: Optional[str] = None


class AppMentionEvent(InnerEvent):
    """Someone mentioned the bot user in a channel."""

    type: Literal["app_mention"] = "app_mention"
    user: str
    text: str
    channel: str
    ts: str
    thread_ts: Optional[str] = None


class UrlVerificationModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["url_verification"] = "url_verification"
    challenge: str
    token: Optional[str] = None


class EventCallbackModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["event_callback"] = "event_callback"
    token: Optional[str] = None
    team_id: Optional[str] = None
    api_app_id: Optional[str] = None
    event: dict[str, Any]
    event_id: Optional[str] = None
    event_time: Optional[int] = None
    authorizations: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def event_type(self) -> str:
        return str(self.event.get("type", "unknown"))

    def inner_event(self) -> Union[AppMentionEvent, InnerEvent]:
        """Return the wrapped event as a typed model.

        Raises
        ------
        EventParseError
            If the inner event lacks fields its type requires
        """
        try:
            if self.event.get("type") == "app_mention":
                return AppMentionEvent.model_validate(self.event)
            return InnerEvent.model_validate(self.event)
        except ValidationError as e:
            raise EventParseError(f"Invalid {self.event_type} event: {e}") from e


class AppRateLimitedModel(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Literal["app_rate_limited"] = "app_rate_limited"
    token: Optional[str] = None
    team_id: Optional[str] = None
    minute_rate_limited: Optional[int] = None
    api_app_id: Optional[str] = None


SlackPayload = Union[UrlVerificationModel, EventCallbackModel, AppRateLimitedModel]

_PAYLOAD_MODELS: dict[str, type[BaseModel]] = {
    "url_verification": UrlVerificationModel,
    "event_callback": EventCallbackModel,
    "app_rate_limited": AppRateLimitedModel,
}


def deserialize(payload: dict[str, Any]) -> SlackPayload:
    """Validate a decoded payload against the model for its outer ``type``.

    Parameters
    ----------
    payload : dict[str, Any]
        The decoded JSON body

    Returns
    -------
    SlackPayload
        The typed payload model

    Raises
    ------
    UnsupportedEventTypeError
        If ``type`` is missing or unknown
    EventParseError
        If the payload does not match its model
    """
    if not isinstance(payload, dict):
        raise EventParseError("Payload must be a JSON object")

    event_type = payload.get("type")
    model_cls = _PAYLOAD_MODELS.get(event_type) if isinstance(event_type, str) else None
    if model_cls is None:
        raise UnsupportedEventTypeError(event_type)

    try:
        return model_cls.model_validate(payload)
    except ValidationError as e:
        raise EventParseError(f"Invalid {payload['type']} payload: {e}") from e


def parse_event(body: bytes) -> SlackPayload:
    """Decode a raw request body and deserialize it.

    Raises
    ------
    EventParseError
        If the body is not JSON or not a valid payload
    """
    try:
        payload = json.loads(body)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise EventParseError(f"Request body is not valid JSON: {e}") from e
    return deserialize(payload)
