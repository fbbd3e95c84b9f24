"""Test configuration and fixtures."""

import os
from collections.abc import AsyncIterator, Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from donutsmp_bot.app import create_app
from donutsmp_bot.components.presentation import Attachment, RenderedMessage
from donutsmp_bot.config.settings import Settings
from donutsmp_bot.services.api_client import DonutApiClient
from donutsmp_bot.services.team_store import TeamStore

Responder = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(scope="session", autouse=True)
def set_test_env() -> None:
    """Set test environment variables."""
    # Token format: numeric_id:alphanumeric (aiogram validates format)
    os.environ["TELEGRAM_BOT_TOKEN"] = "123456789:ABCdefGHIjklMNOpqrsTUVwxyz"
    os.environ["DONUTSMP_API_KEY"] = "test-api-key"
    os.environ["WEBHOOK_HOST"] = "https://test.example.com"
    os.environ["WEBHOOK_PATH"] = "/webhook"
    os.environ["WEBHOOK_SECRET"] = "test-secret-token"
    os.environ["ENVIRONMENT"] = "development"
    os.environ["LOG_LEVEL"] = "DEBUG"
    os.environ["LOG_TO_FILE"] = "false"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Create test settings."""
    return Settings(
        telegram_bot_token="123456789:ABCdefGHIjklMNOpqrsTUVwxyz",
        donutsmp_api_key="test-api-key",
        webhook_host="https://test.example.com",
        webhook_path="/webhook",
        webhook_secret="test-secret-token",
        environment="development",
        log_level="DEBUG",
        log_to_file=False,
        team_store_path=str(tmp_path / "team_data.json"),
    )


@pytest.fixture
def app(settings: Settings) -> Any:
    """Create test FastAPI application."""
    test_app = create_app(settings)

    # Mock the bot methods to avoid real Telegram API calls
    test_app.state.bot.set_webhook = AsyncMock()
    test_app.state.bot.delete_webhook = AsyncMock()
    test_app.state.bot.set_my_commands = AsyncMock()
    test_app.state.bot.session.close = AsyncMock()

    return test_app


@pytest.fixture
def client(app: Any) -> TestClient:
    """Create synchronous test client."""
    return TestClient(app)


@pytest.fixture
async def async_client(app: Any) -> AsyncIterator[AsyncClient]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def store(tmp_path: Path) -> TeamStore:
    """Roster store in a temporary directory."""
    return TeamStore(tmp_path / "team_data.json")


@pytest.fixture
def make_api_client() -> Callable[[Responder], DonutApiClient]:
    """Factory for API clients answering through a MockTransport."""

    def _make(responder: Responder) -> DonutApiClient:
        return DonutApiClient(
            base_url="https://api.test",
            api_key="test-api-key",
            transport=httpx.MockTransport(responder),
        )

    return _make


class RecordingSink:
    """MessageSink that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []

    async def acknowledge(self, text: str) -> None:
        self.calls.append(("acknowledge", text))

    async def edit_acknowledgement(self, message: RenderedMessage) -> None:
        self.calls.append(("edit_acknowledgement", message))

    async def send(self, message: RenderedMessage) -> None:
        self.calls.append(("send", message))

    async def edit(self, message: RenderedMessage) -> None:
        self.calls.append(("edit", message))

    async def upload(self, attachment: Attachment) -> None:
        self.calls.append(("upload", attachment))

    @property
    def kinds(self) -> list[str]:
        """Names of the recorded calls, in order."""
        return [kind for kind, _ in self.calls]

    @property
    def last_message(self) -> RenderedMessage:
        """The last rendered message delivered to the sink."""
        for kind, value in reversed(self.calls):
            if kind in ("edit_acknowledgement", "send", "edit"):
                return value
        raise AssertionError("no message was delivered")


@pytest.fixture
def sink() -> RecordingSink:
    """Recording message sink."""
    return RecordingSink()


def _user() -> dict[str, Any]:
    return {
        "id": 987654321,
        "is_bot": False,
        "first_name": "Test",
        "username": "testuser",
    }


def _chat() -> dict[str, Any]:
    return {
        "id": 987654321,
        "first_name": "Test",
        "username": "testuser",
        "type": "private",
    }


@pytest.fixture
def sample_command_update() -> dict[str, Any]:
    """Sample Telegram /help command update."""
    return {
        "update_id": 123456791,
        "message": {
            "message_id": 3,
            "from": _user(),
            "chat": _chat(),
            "date": 1234567892,
            "text": "/help",
            "entities": [{"type": "bot_command", "offset": 0, "length": 5}],
        },
    }


@pytest.fixture
def sample_callback_update() -> dict[str, Any]:
    """Sample Telegram callback query update for a pagination button."""
    return {
        "update_id": 123456792,
        "callback_query": {
            "id": "4382bfdwdsb323b2d9",
            "from": _user(),
            "chat_instance": "-1234567890",
            "data": "pg:auc:next:1:::",
            "message": {
                "message_id": 4,
                "from": {
                    "id": 123456789,
                    "is_bot": True,
                    "first_name": "DonutBot",
                    "username": "donut_bot",
                },
                "chat": _chat(),
                "date": 1234567893,
                "text": "Auction House (Page 1)",
            },
        },
    }
