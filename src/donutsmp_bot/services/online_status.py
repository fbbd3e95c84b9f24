"""Team online status lookups and the periodic status poster.

A member counts as online when the lookup endpoint answers with a 2xx
status. Lookups for all members run concurrently, each with the polling
timeout.

The poster is a single long-lived task: every cycle it loads the roster,
looks up every member, deletes the message it posted last time and posts a
fresh grouped status. The id of the last posted message is owned by the
poster and guarded by one lock.

Example:
    poster = OnlineStatusPoster(bot, client, store, chat_id=-100123)
    poster.start()
    ...
    await poster.stop()
"""

import asyncio
import contextlib
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import BufferedInputFile

from donutsmp_bot.components.presentation import render_text
from donutsmp_bot.logging_config import get_logger
from donutsmp_bot.services.api_client import DonutApiClient, MalformedResponse, Success
from donutsmp_bot.services.endpoints import EndpointFamily, build_request
from donutsmp_bot.services.team_store import Team, TeamMember, TeamStore
from donutsmp_bot.templates import templates

logger = get_logger("online_status")


@dataclass(frozen=True)
class MemberPresence:
    """Online state of one member."""

    online: bool
    location: str | None = None


def _location(body: object) -> str | None:
    if not isinstance(body, dict):
        return None
    result = body.get("result")
    if isinstance(result, dict) and isinstance(result.get("location"), str):
        return result["location"]
    location = body.get("location")
    return location if isinstance(location, str) else None


async def lookup_presence(
    client: DonutApiClient, ign: str, timeout: float
) -> MemberPresence:
    """Look up whether one player is online.

    Args:
        client: API client.
        ign: In-game name.
        timeout: Per-call timeout in seconds.

    Returns:
        The member's presence; any failure counts as offline.
    """
    context = build_request(EndpointFamily.LOOKUP, subject=ign)
    outcome = await client.call(context.method, context.resolved_path, timeout=timeout)
    if isinstance(outcome, Success):
        return MemberPresence(online=True, location=_location(outcome.body))
    if isinstance(outcome, MalformedResponse):
        return MemberPresence(online=True)
    return MemberPresence(online=False)


async def lookup_members(
    client: DonutApiClient, members: Iterable[TeamMember], timeout: float
) -> dict[str, MemberPresence]:
    """Look up every member concurrently.

    Returns:
        Presence keyed by IGN.
    """
    members = list(members)
    results = await asyncio.gather(
        *(lookup_presence(client, m.ign, timeout) for m in members)
    )
    return {m.ign: presence for m, presence in zip(members, results)}


def status_footer(now: datetime | None = None) -> str:
    """Footer stamped on every posted status."""
    now = now or datetime.now(UTC)
    return f"Last updated: {now.strftime('%Y-%m-%d %H:%M:%SZ')} (UTC)"


class OnlineStatusPoster:
    """Periodically replaces one status message in a chat.

    Attributes:
        chat_id: Chat receiving the status.
        interval_minutes: Minutes between cycles.
    """

    def __init__(
        self,
        bot: Bot,
        client: DonutApiClient,
        store: TeamStore,
        chat_id: int,
        interval_minutes: int = 10,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the poster.

        Args:
            bot: Bot used to delete and send messages.
            client: API client shared with interactive handlers.
            store: Roster store.
            chat_id: Chat receiving the status.
            interval_minutes: Minutes between cycles.
            timeout: Per-lookup timeout in seconds.
        """
        self._bot = bot
        self._client = client
        self._store = store
        self.chat_id = chat_id
        self.interval_minutes = interval_minutes
        self._timeout = timeout
        self._lock = asyncio.Lock()
        self._last_message_id: int | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def last_message_id(self) -> int | None:
        """Id of the status message currently in the chat."""
        return self._last_message_id

    def render_status(self, team: Team, presence: dict[str, MemberPresence]) -> str:
        """Render the grouped roster with presence markers and timestamp."""
        return templates.render_roster(team, presence=presence, footer=status_footer())

    async def post_once(self) -> None:
        """Run one cycle: look up members, replace the status message."""
        team = self._store.load()
        presence = await lookup_members(self._client, team.members, self._timeout)
        message = render_text(self.render_status(team, presence))

        async with self._lock:
            if self._last_message_id is not None:
                try:
                    await self._bot.delete_message(self.chat_id, self._last_message_id)
                except TelegramAPIError as e:
                    logger.warning(
                        "Could not delete status message %d: %s",
                        self._last_message_id,
                        e,
                    )
                self._last_message_id = None

            if message.attachment is not None:
                sent = await self._bot.send_document(
                    self.chat_id,
                    BufferedInputFile(
                        message.attachment.content,
                        filename=message.attachment.filename,
                    ),
                    caption=message.text,
                )
            else:
                sent = await self._bot.send_message(self.chat_id, message.text)
            self._last_message_id = sent.message_id

        online = sum(1 for p in presence.values() if p.online)
        logger.info(
            "Posted team status to chat %d | online=%d/%d | message_id=%d",
            self.chat_id,
            online,
            len(presence),
            sent.message_id,
        )

    async def run(self) -> None:
        """Repeat cycles until cancelled; a failed cycle does not stop the loop."""
        logger.info(
            "Online status poster started | chat=%d | interval=%dm",
            self.chat_id,
            self.interval_minutes,
        )
        while True:
            try:
                await self.post_once()
            except TelegramAPIError as e:
                logger.error("Failed to post online status: %s", e)
            except Exception:  # noqa: BLE001
                logger.exception("Online status cycle failed")
            await asyncio.sleep(self.interval_minutes * 60)

    def start(self) -> None:
        """Start the background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="online-status-poster")

    async def stop(self) -> None:
        """Cancel the background task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Online status poster stopped")
