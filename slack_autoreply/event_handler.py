"""Slack event handler for the mention auto-reply.

The only event acted upon is ``app_mention``: the bot answers in the same
channel with a fixed greeting that quotes the mention back. Every other
event type is acknowledged and logged.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Final, Optional

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.web.async_client import AsyncWebClient
from slack_sdk.web.async_slack_response import AsyncSlackResponse

from .models import AppMentionEvent, EventCallbackModel, EventParseError

__all__: list[str] = [
    "build_mention_reply",
    "handle_app_mention",
    "handle_event_callback",
]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)

MENTION_REPLY_FORMAT: Final[str] = "Hello <@{user}>! You mentioned me: {text}"


def build_mention_reply(event: AppMentionEvent) -> str:
    """Build the canned reply text for a mention."""
    return MENTION_REPLY_FORMAT.format(user=event.user, text=event.text)


async def handle_app_mention(client: AsyncWebClient, event: AppMentionEvent) -> Optional[AsyncSlackResponse]:
    """Reply to a mention in the channel it came from.

    Parameters
    ----------
    client : AsyncWebClient
        The Slack client used to post the reply
    event : AppMentionEvent
        The mention event

    Returns
    -------
    Optional[AsyncSlackResponse]
        The ``chat.postMessage`` response, or None if posting failed
    """
    _LOG.info(f"Received app_mention event from {event.user} in channel {event.channel}")

    try:
        return await client.chat_postMessage(channel=event.channel, text=build_mention_reply(event))
    except SlackApiError as e:
        _LOG.error(f"Error posting message to Slack: {e.response.get('error', e)}")
    except SlackClientError as e:
        _LOG.error(f"Error posting message to Slack: {e}")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        # Raised by the transport once the retry handlers give up
        _LOG.error(f"Error posting message to Slack: {e!r}")
    return None


async def handle_event_callback(
    client: Optional[AsyncWebClient], callback: EventCallbackModel
) -> Optional[AsyncSlackResponse]:
    """Dispatch the event wrapped in an ``event_callback`` payload.

    Parameters
    ----------
    client : Optional[AsyncWebClient]
        The Slack client; when None the mention is logged but not answered
    callback : EventCallbackModel
        The outer callback payload

    Returns
    -------
    Optional[AsyncSlackResponse]
        The reply response for a mention, otherwise None

    Raises
    ------
    EventParseError
        If the inner event is malformed
    """
    if callback.event_type != "app_mention":
        _LOG.info(f"Unsupported event type: {callback.event_type}")
        return None

    event = callback.inner_event()
    if not isinstance(event, AppMentionEvent):
        raise EventParseError(f"Expected an app_mention event, got {event.type}")

    if client is None:
        _LOG.error("Slack client not initialized; cannot reply to app_mention")
        return None

    return await handle_app_mention(client, event)
