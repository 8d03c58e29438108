"""Tests for ChatSession and ChatList."""

import httpx
import pytest

from client.api import ChatAPIError
from client.session import STREAM_FAILED_MESSAGE, ChatList, ChatSession

from client.tests.fakes import CHAT_ID, ME, OTHER, envelope, event_stream, failure

CHAT_PATH = f"/api/chat/{CHAT_ID}"
MESSAGES_PATH = f"/api/chat/{CHAT_ID}/messages"


@pytest.fixture
def history(make_message):
    return [make_message(1, "Where should we go?"), make_message(2, "Lisbon?", OTHER)]


def new_message_event(message, chat_id=CHAT_ID):
    return {"type": "new_message", "chat_id": chat_id, "message": message}


async def open_session(make_api, routes, history, clock, joined=True):
    """Open a session; by default the server has confirmed the room join."""
    routes = {
        ("GET", CHAT_PATH): envelope(
            {"id": CHAT_ID, "title": "Trip", "messages": history}
        ),
        **routes,
    }
    api, recorder = make_api(routes)
    session = ChatSession(api, CHAT_ID, ME, clock=clock)
    await session.open()
    if joined:
        session.handle_event({"type": "joined_chat", "chat_id": CHAT_ID})
    return session, recorder


@pytest.mark.asyncio
class TestOpenAndEvents:
    async def test_open_loads_history_and_queues_join(
        self, make_api, history, clock
    ):
        session, _ = await open_session(make_api, {}, history, clock)

        assert session.title == "Trip"
        assert session.timeline.contents == ["Where should we go?", "Lisbon?"]
        assert session.drain_outbox() == [{"type": "join_chat", "chat_id": CHAT_ID}]
        assert not session.outbox

    async def test_typing_waits_for_join_confirmation(self, make_api, history, clock):
        session, _ = await open_session(make_api, {}, history, clock, joined=False)

        session.on_input()
        assert session.drain_outbox() == [{"type": "join_chat", "chat_id": CHAT_ID}]

        assert session.handle_event({"type": "joined_chat", "chat_id": CHAT_ID}) is True
        assert session.joined is True
        assert session.drain_outbox() == [
            {"type": "typing", "chat_id": CHAT_ID, "is_typing": True}
        ]

    async def test_typing_before_join_that_stopped_sends_nothing(
        self, make_api, history, clock
    ):
        session, _ = await open_session(make_api, {}, history, clock, joined=False)
        session.drain_outbox()

        session.on_input()
        clock.advance(2)
        session.tick()
        session.handle_event({"type": "joined_chat", "chat_id": CHAT_ID})

        assert session.drain_outbox() == []

    async def test_left_chat_stops_typing_events(self, make_api, history, clock):
        session, _ = await open_session(make_api, {}, history, clock)
        session.drain_outbox()

        assert session.handle_event({"type": "left_chat", "chat_id": CHAT_ID}) is True
        session.on_input()

        assert session.joined is False
        assert session.drain_outbox() == []

    async def test_join_confirmation_for_other_chat_is_ignored(
        self, make_api, history, clock
    ):
        session, _ = await open_session(make_api, {}, history, clock, joined=False)

        session.handle_event({"type": "joined_chat", "chat_id": 99})

        assert session.joined is False

    async def test_new_message_push(self, make_api, history, clock, make_message):
        session, _ = await open_session(make_api, {}, history, clock)

        assert session.handle_event(new_message_event(make_message(3, "Porto", OTHER)))
        assert not session.handle_event(
            new_message_event(make_message(3, "Porto", OTHER))
        )
        assert session.timeline.contents[-1] == "Porto"

    async def test_events_for_other_chats_are_ignored(
        self, make_api, history, clock, make_message
    ):
        session, _ = await open_session(make_api, {}, history, clock)

        changed = session.handle_event(
            new_message_event(make_message(9, "elsewhere", chat_id=99), chat_id=99)
        )

        assert changed is False
        assert len(session.timeline) == 2

    async def test_typing_and_message_from_typer(
        self, make_api, history, clock, make_message
    ):
        session, _ = await open_session(make_api, {}, history, clock)

        session.handle_event(
            {
                "type": "user_typing",
                "chat_id": CHAT_ID,
                "user_id": OTHER,
                "username": "user2",
                "is_typing": True,
            }
        )
        assert session.typing_users() == ["user2"]

        session.handle_event(new_message_event(make_message(3, "Porto", OTHER)))
        assert session.typing_users() == []

    async def test_chat_updated_renames(self, make_api, history, clock):
        session, _ = await open_session(make_api, {}, history, clock)

        event = {"type": "chat_updated", "chat_id": CHAT_ID, "title": "Holiday"}
        assert session.handle_event(event) is True
        assert session.handle_event(event) is False
        assert session.title == "Holiday"

    async def test_close_stops_typing_and_leaves(self, make_api, history, clock):
        session, _ = await open_session(make_api, {}, history, clock)
        session.drain_outbox()
        session.on_input()

        session.close()

        assert session.drain_outbox() == [
            {"type": "typing", "chat_id": CHAT_ID, "is_typing": True},
            {"type": "typing", "chat_id": CHAT_ID, "is_typing": False},
            {"type": "leave_chat", "chat_id": CHAT_ID},
        ]


@pytest.mark.asyncio
class TestSend:
    async def test_send_replaces_optimistic_entry(
        self, make_api, history, clock, make_message
    ):
        stored = make_message(3, "Porto instead?")
        session, recorder = await open_session(
            make_api,
            {("POST", MESSAGES_PATH): envelope(stored, status_code=201)},
            history,
            clock,
        )

        entry = await session.send("Porto instead?")

        assert entry.id == 3
        assert session.timeline.pending == []
        assert session.timeline.contents[-1] == "Porto instead?"
        assert len(session.timeline) == 3

    async def test_push_before_response_shows_one_copy(
        self, make_api, history, clock, make_message
    ):
        stored = make_message(3, "Porto instead?")

        def push_then_respond(request):
            # The websocket copy arrives while the POST is in flight
            session.handle_event(new_message_event(stored))
            return envelope(stored, status_code=201)

        session, _ = await open_session(
            make_api, {("POST", MESSAGES_PATH): push_then_respond}, history, clock
        )

        await session.send("Porto instead?")

        assert [entry.id for entry in session.timeline] == [1, 2, 3]

    async def test_failed_send_keeps_entry_flagged(self, make_api, history, clock):
        session, _ = await open_session(
            make_api,
            {
                ("POST", MESSAGES_PATH): failure(
                    400, "Message content is required", "VALIDATION_ERROR"
                )
            },
            history,
            clock,
        )

        with pytest.raises(ChatAPIError):
            await session.send("  ")

        entry = session.timeline.entries[-1]
        assert entry.failed is True
        assert entry.error == "Message content is required"

    async def test_transport_failure_keeps_entry_flagged(
        self, make_api, history, clock
    ):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        session, _ = await open_session(
            make_api, {("POST", MESSAGES_PATH): refuse}, history, clock
        )

        with pytest.raises(httpx.ConnectError):
            await session.send("hello")

        assert session.timeline.entries[-1].failed is True

    async def test_typing_events_around_send(
        self, make_api, history, clock, make_message
    ):
        session, _ = await open_session(
            make_api,
            {("POST", MESSAGES_PATH): envelope(make_message(3, "hi"), status_code=201)},
            history,
            clock,
        )
        session.drain_outbox()

        session.on_input()
        clock.advance(0.5)
        session.on_input()
        session.tick()
        await session.send("hi")

        assert [event["is_typing"] for event in session.drain_outbox()] == [True, False]

    async def test_idle_typing_times_out(self, make_api, history, clock):
        session, _ = await open_session(make_api, {}, history, clock)
        session.drain_outbox()

        session.on_input()
        clock.advance(2)
        session.tick()

        assert [event["is_typing"] for event in session.drain_outbox()] == [True, False]


@pytest.mark.asyncio
class TestAIReplies:
    async def test_blocking_reply(self, make_api, history, clock, make_message):
        stored = make_message(3, "Lisbon it is.", is_ai=True)
        session, _ = await open_session(
            make_api,
            {("POST", "/api/ai/message"): envelope(stored)},
            history,
            clock,
        )

        entry, warning = await session.ask_ai("Decide for us")

        assert entry.id == 3
        assert entry.is_ai is True
        assert warning is None

    async def test_streamed_reply_is_replaced_by_stored_copy(
        self, make_api, history, clock, make_message
    ):
        stored = make_message(3, "Hello!", is_ai=True)
        session, recorder = await open_session(
            make_api,
            {
                ("GET", "/api/ai/message"): event_stream(
                    {"content": "Hel"}, {"content": "lo"}, {"content": "!"}
                ),
                ("GET", MESSAGES_PATH): envelope([stored]),
            },
            history,
            clock,
        )

        entry = await session.ask_ai_streaming("Say hello")

        assert entry.id == 3
        assert entry.content == "Hello!"
        assert len(session.timeline) == 3
        assert recorder.last.url.params["lastMessageId"] == "2"

    async def test_streamed_reply_pushed_first(
        self, make_api, history, clock, make_message
    ):
        stored = make_message(3, "Hello!", is_ai=True)

        def push_then_stream(request):
            # The broadcast overtakes the fragments
            session.handle_event(new_message_event(stored))
            return event_stream({"content": "Hel"}, {"content": "lo!"})

        session, recorder = await open_session(
            make_api, {("GET", "/api/ai/message"): push_then_stream}, history, clock
        )

        entry = await session.ask_ai_streaming("Say hello")

        assert entry.id == 3
        assert [entry.id for entry in session.timeline] == [1, 2, 3]
        assert recorder.last.url.path == "/api/ai/message"

    async def test_stored_copy_not_found_keeps_streamed_text(
        self, make_api, history, clock
    ):
        session, _ = await open_session(
            make_api,
            {
                ("GET", "/api/ai/message"): event_stream({"content": "Hi"}),
                ("GET", MESSAGES_PATH): envelope([]),
            },
            history,
            clock,
        )

        entry = await session.ask_ai_streaming("Say hi")

        assert entry.id is None
        assert entry.content == "Hi"
        assert entry.streaming is False

    async def test_stream_error_event_fails_placeholder(
        self, make_api, history, clock
    ):
        session, recorder = await open_session(
            make_api,
            {("GET", "/api/ai/message"): event_stream({"error": "Stream failed"})},
            history,
            clock,
        )

        entry = await session.ask_ai_streaming("Say hi")

        assert entry.failed is True
        assert entry.error == "Stream failed"
        assert recorder.last.url.path == "/api/ai/message"

    async def test_stream_transport_failure(self, make_api, history, clock):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        session, _ = await open_session(
            make_api, {("GET", "/api/ai/message"): refuse}, history, clock
        )

        with pytest.raises(httpx.ConnectError):
            await session.ask_ai_streaming("Say hi")

        assert session.timeline.entries[-1].error == STREAM_FAILED_MESSAGE


class TestChatList:
    def test_load_orders_by_recent_activity(self):
        chats = ChatList(
            [
                {"id": 1, "updated_at": "2026-01-01T10:00:00Z"},
                {"id": 2, "updated_at": "2026-01-02T10:00:00Z"},
            ]
        )

        assert chats.ids == [2, 1]

    def test_chat_updated_moves_chat_to_top(self):
        chats = ChatList(
            [
                {"id": 1, "title": "A", "updated_at": "2026-01-02T10:00:00Z"},
                {"id": 2, "title": "B", "updated_at": "2026-01-01T10:00:00Z"},
            ]
        )

        chats.handle_event(
            {
                "type": "chat_updated",
                "chat_id": 2,
                "title": "B",
                "last_message": {"id": 9, "content": "new"},
                "updated_at": "2026-01-03T10:00:00Z",
            }
        )

        assert chats.ids == [2, 1]
        assert chats.get(2)["last_message"]["content"] == "new"

    def test_unknown_chat_is_added(self):
        chats = ChatList([{"id": 1}])

        chats.handle_event({"type": "chat_updated", "chat_id": 5, "title": "New"})

        assert chats.ids == [5, 1]
        assert chats.get(5)["title"] == "New"

    def test_other_events_are_ignored(self):
        chats = ChatList([{"id": 1}])

        assert chats.handle_event({"type": "new_message", "chat_id": 1}) is False

    def test_add_and_remove(self):
        chats = ChatList([{"id": 1}])

        chats.add({"id": 2})
        chats.add({"id": 1})
        chats.remove(2)

        assert chats.ids == [1]
