"""
Polling fallback for clients without a live websocket.

ChatPoller refetches the open chat every POLL_INTERVAL_SECONDS and merges
the result into its timeline. Because the timeline de-duplicates by id,
polling may overlap with websocket pushes without showing anything twice.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from .api import ChatAPIClient, ChatAPIError
from .timeline import ChatTimeline, TimelineEntry

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 3.0


class ChatPoller:
    """
    Periodic refresh of one chat.

    Usage:
        poller = ChatPoller(api, timeline)
        task = asyncio.create_task(poller.run())
        ...
        poller.stop()
        await task
    """

    def __init__(
        self,
        api: ChatAPIClient,
        timeline: ChatTimeline,
        interval: float = POLL_INTERVAL_SECONDS,
    ):
        self.api = api
        self.timeline = timeline
        self.interval = interval
        self.polls = 0
        self.failures = 0
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        return not self._stop.is_set()

    async def poll_once(self) -> list[TimelineEntry]:
        """Fetch the chat once and apply unseen messages."""
        chat = await self.api.fetch_chat(self.timeline.chat_id)
        self.polls += 1
        return self.timeline.apply_many(chat.get("messages", []))

    async def run(self) -> None:
        """Poll until stop() is called. Failures are logged and retried."""
        logger.info(
            f"Polling chat {self.timeline.chat_id} every {self.interval}s"
        )

        while not self._stop.is_set():
            try:
                applied = await self.poll_once()
                if applied:
                    logger.debug(
                        f"Poll added {len(applied)} messages to chat {self.timeline.chat_id}"
                    )
            except (ChatAPIError, httpx.HTTPError) as e:
                self.failures += 1
                logger.warning(f"Polling chat {self.timeline.chat_id} failed: {e!r}")

            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue

        logger.info(f"Stopped polling chat {self.timeline.chat_id}")

    def stop(self) -> None:
        self._stop.set()
