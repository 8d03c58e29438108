"""
Channel layer fan-out for chat events.

Every successful append, from REST, the websocket consumer or the AI
bridge, produces the same two kinds of events:

    chat_<id>  <- new_message  {chat_id, message}
    user_<id>  <- chat_updated {chat_id, last_message, updated_at}  (per participant)

A rename only produces chat_updated.

Event payloads are built synchronously (they need the database) and sent
with either the sync or the async helpers. Callers send after the
transaction has committed, so events go out in commit order.

Usage:
    # Sync code (DRF views)
    broadcast_new_message(chat, message)

    # Async code (consumers, SSE generators)
    events = await database_sync_to_async(message_events)(chat, message)
    await send_events(events)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from chat.constants import chat_group, user_group

if TYPE_CHECKING:
    from chat.models import Chat, Message

logger = logging.getLogger(__name__)

# Channel layer event types; dots map to consumer handler names
NEW_MESSAGE_EVENT = "chat.new_message"
CHAT_UPDATED_EVENT = "chat.updated"
USER_TYPING_EVENT = "chat.user_typing"

Event = tuple[str, dict]


def _chat_updated(chat: Chat, last_message: dict | None) -> dict:
    return {
        "type": CHAT_UPDATED_EVENT,
        "chat_id": chat.pk,
        "title": chat.title,
        "last_message": last_message,
        "updated_at": chat.updated_at.isoformat() if chat.updated_at else None,
    }


def message_events(chat: Chat, message: Message) -> list[Event]:
    """
    Build the events for a newly appended message.

    Must run in sync context (reads participants and serializes).
    """
    from chat.serializers import MessageSerializer

    payload = dict(MessageSerializer(message).data)

    events: list[Event] = [
        (
            chat_group(chat.pk),
            {"type": NEW_MESSAGE_EVENT, "chat_id": chat.pk, "message": payload},
        )
    ]
    updated = _chat_updated(chat, payload)
    for participant_id in chat.participants.values_list("pk", flat=True):
        events.append((user_group(participant_id), updated))
    return events


def chat_updated_events(chat: Chat) -> list[Event]:
    """Build chat_updated events for every participant (e.g. after a rename)."""
    from chat.serializers import MessageSerializer

    last = chat.last_message
    payload = dict(MessageSerializer(last).data) if last else None
    updated = _chat_updated(chat, payload)
    return [
        (user_group(participant_id), updated)
        for participant_id in chat.participants.values_list("pk", flat=True)
    ]


async def send_events(events: list[Event]) -> None:
    """Send events through the default channel layer, in order."""
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer configured; skipping broadcast")
        return

    for group, event in events:
        await channel_layer.group_send(group, event)


def send_events_sync(events: list[Event]) -> None:
    """
    Send events from sync code.

    Delivery problems are logged rather than raised: the data is already
    committed and polling clients will pick it up.
    """
    try:
        async_to_sync(send_events)(events)
    except Exception as e:
        logger.warning(f"Broadcast of {len(events)} events failed: {e}", exc_info=True)


def broadcast_new_message(chat: Chat, message: Message) -> None:
    """Broadcast new_message and chat_updated for an appended message."""
    send_events_sync(message_events(chat, message))


def broadcast_chat_updated(chat: Chat) -> None:
    """Broadcast chat_updated to every participant."""
    send_events_sync(chat_updated_events(chat))
