"""Tests for the aiogram message sinks."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import EditMessageText
from aiogram.types import BufferedInputFile, Message

from donutsmp_bot.bot.sinks import CallbackQuerySink, ChatMessageSink
from donutsmp_bot.components.presentation import Attachment, RenderedMessage


def _message() -> MagicMock:
    message = MagicMock(spec=Message)
    message.chat = MagicMock(id=987654321)
    message.message_id = 4
    message.answer = AsyncMock()
    message.answer_document = AsyncMock()
    message.edit_text = AsyncMock()
    return message


def _edit_failure() -> TelegramBadRequest:
    return TelegramBadRequest(
        method=EditMessageText(text="x"), message="message can't be edited"
    )


class TestChatMessageSink:
    """Tests for ChatMessageSink."""

    @pytest.mark.asyncio
    async def test_acknowledgement_is_edited(self) -> None:
        """Test the placeholder is edited into the final answer."""
        placeholder = _message()
        message = _message()
        message.answer.return_value = placeholder
        sink = ChatMessageSink(message)

        await sink.acknowledge("⏳ Processing...")
        await sink.edit_acknowledgement(RenderedMessage(text="done"))

        message.answer.assert_awaited_once_with("⏳ Processing...")
        placeholder.edit_text.assert_awaited_once_with("done", reply_markup=None)

    @pytest.mark.asyncio
    async def test_failed_edit_falls_back_to_send(self) -> None:
        """Test an answer still arrives when the placeholder cannot be edited."""
        placeholder = _message()
        placeholder.edit_text.side_effect = _edit_failure()
        message = _message()
        message.answer.return_value = placeholder
        sink = ChatMessageSink(message)

        await sink.acknowledge("⏳ Processing...")
        await sink.edit_acknowledgement(RenderedMessage(text="done"))

        assert message.answer.await_count == 2
        assert message.answer.await_args.args == ("done",)

    @pytest.mark.asyncio
    async def test_upload_sends_document(self) -> None:
        """Test attachments are sent as documents."""
        message = _message()
        sink = ChatMessageSink(message)

        await sink.upload(Attachment(filename="a.json", content=b"{}"))

        document = message.answer_document.await_args.args[0]
        assert isinstance(document, BufferedInputFile)
        assert document.filename == "a.json"


class TestCallbackQuerySink:
    """Tests for CallbackQuerySink."""

    @pytest.mark.asyncio
    async def test_acknowledge_then_edit_answers_once(self) -> None:
        """Test the callback is answered once and the message edited."""
        target = _message()
        callback = MagicMock()
        callback.message = target
        callback.answer = AsyncMock()
        sink = CallbackQuerySink(callback)

        await sink.acknowledge("⏳ Loading page 2...")
        await sink.edit(RenderedMessage(text="page 2"))

        callback.answer.assert_awaited_once_with("⏳ Loading page 2...")
        target.edit_text.assert_awaited_once_with("page 2", reply_markup=None)

    @pytest.mark.asyncio
    async def test_edit_without_acknowledgement_answers_callback(self) -> None:
        """Test an error edit still stops the button's loading state."""
        target = _message()
        target.edit_text.side_effect = _edit_failure()
        callback = MagicMock()
        callback.message = target
        callback.answer = AsyncMock()
        sink = CallbackQuerySink(callback)

        await sink.edit(RenderedMessage(text="❌ Invalid button data"))

        callback.answer.assert_awaited_once_with(None)
        target.edit_text.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_inaccessible_message_is_skipped(self) -> None:
        """Test presses on inaccessible messages do not raise."""
        callback = MagicMock()
        callback.message = None
        callback.answer = AsyncMock()
        sink = CallbackQuerySink(callback)

        await sink.edit(RenderedMessage(text="x"))
        await sink.upload(Attachment(filename="a.txt", content=b"x"))

        callback.answer.assert_awaited_once()
