"""Tests for team online lookups and the status poster."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import DeleteMessage

from donutsmp_bot.services.api_client import DonutApiClient
from donutsmp_bot.services.online_status import (
    MemberPresence,
    OnlineStatusPoster,
    lookup_members,
    status_footer,
)
from donutsmp_bot.services.team_store import TeamMember, TeamStore

MakeClient = Callable[[Callable[[httpx.Request], httpx.Response]], DonutApiClient]


def _responder(request: httpx.Request) -> httpx.Response:
    name = request.url.path.rsplit("/", 1)[-1]
    if name == "Notch":
        return httpx.Response(200, json={"result": {"location": "spawn"}})
    if name == "jeb_":
        return httpx.Response(200, text="not json")
    if name == "Dinnerbone":
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.Response(500)


def _mock_bot(*message_ids: int) -> MagicMock:
    bot = MagicMock()
    bot.send_message = AsyncMock(
        side_effect=[MagicMock(message_id=mid) for mid in message_ids]
    )
    bot.send_document = AsyncMock()
    bot.delete_message = AsyncMock()
    return bot


class TestLookupMembers:
    """Tests for lookup_members()."""

    @pytest.mark.asyncio
    async def test_presence_by_outcome(self, make_api_client: MakeClient) -> None:
        """Test 2xx answers count as online and everything else as offline."""
        client = make_api_client(_responder)
        members = [
            TeamMember(ign=name) for name in ("Notch", "jeb_", "Dinnerbone", "Steve")
        ]

        presence = await lookup_members(client, members, timeout=1.0)
        await client.aclose()

        assert presence == {
            "Notch": MemberPresence(online=True, location="spawn"),
            "jeb_": MemberPresence(online=True),
            "Dinnerbone": MemberPresence(online=False),
            "Steve": MemberPresence(online=False),
        }

    @pytest.mark.asyncio
    async def test_no_members(self, make_api_client: MakeClient) -> None:
        """Test an empty roster needs no lookups."""
        client = make_api_client(_responder)
        assert await lookup_members(client, [], timeout=1.0) == {}
        await client.aclose()


class TestStatusFooter:
    """Tests for the status footer."""

    def test_format(self) -> None:
        """Test the footer carries the UTC timestamp."""
        now = datetime(2024, 5, 1, 12, 30, 5, tzinfo=timezone.utc)
        assert status_footer(now) == "Last updated: 2024-05-01 12:30:05Z (UTC)"


class TestOnlineStatusPoster:
    """Tests for OnlineStatusPoster."""

    @pytest.mark.asyncio
    async def test_post_once_replaces_previous_message(
        self, make_api_client: MakeClient, store: TeamStore
    ) -> None:
        """Test each cycle deletes the last post and remembers the new one."""
        store.upsert_member(TeamMember(ign="Notch"))
        store.upsert_member(TeamMember(ign="Steve"))
        bot = _mock_bot(101, 102)
        client = make_api_client(_responder)
        poster = OnlineStatusPoster(bot, client, store, chat_id=-100)

        await poster.post_once()
        bot.delete_message.assert_not_awaited()
        assert poster.last_message_id == 101
        text = bot.send_message.await_args.args[1]
        assert "<b>Notch    [ 🟢 - spawn ]</b>" in text
        assert "<b>Steve    [ 🔴 ]</b>" in text
        assert "Last updated:" in text

        await poster.post_once()
        bot.delete_message.assert_awaited_once_with(-100, 101)
        assert poster.last_message_id == 102
        await client.aclose()

    @pytest.mark.asyncio
    async def test_delete_failure_does_not_block_post(
        self, make_api_client: MakeClient, store: TeamStore
    ) -> None:
        """Test a failed delete is logged and the new status still posted."""
        bot = _mock_bot(201, 202)
        bot.delete_message.side_effect = TelegramBadRequest(
            method=DeleteMessage(chat_id=-100, message_id=201),
            message="message to delete not found",
        )
        client = make_api_client(_responder)
        poster = OnlineStatusPoster(bot, client, store, chat_id=-100)

        await poster.post_once()
        await poster.post_once()

        assert poster.last_message_id == 202
        assert bot.send_message.await_count == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_start_and_stop(
        self, make_api_client: MakeClient, store: TeamStore
    ) -> None:
        """Test the background task runs a cycle and stops cleanly."""
        bot = _mock_bot(301)
        client = make_api_client(_responder)
        poster = OnlineStatusPoster(bot, client, store, chat_id=-100)

        poster.start()
        for _ in range(50):
            if poster.last_message_id is not None:
                break
            await asyncio.sleep(0.01)
        await poster.stop()

        assert poster.last_message_id == 301
        await client.aclose()

    @pytest.mark.asyncio
    async def test_run_survives_failed_cycle(
        self, make_api_client: MakeClient, store: TeamStore, monkeypatch: Any
    ) -> None:
        """Test an exception in one cycle does not end the loop."""
        client = make_api_client(_responder)
        poster = OnlineStatusPoster(
            _mock_bot(), client, store, chat_id=-100, interval_minutes=0
        )
        cycles: list[int] = []

        async def failing_cycle() -> None:
            cycles.append(1)
            if len(cycles) == 3:
                raise asyncio.CancelledError
            raise RuntimeError("boom")

        monkeypatch.setattr(poster, "post_once", failing_cycle)

        with pytest.raises(asyncio.CancelledError):
            await poster.run()

        assert len(cycles) == 3
        await client.aclose()

