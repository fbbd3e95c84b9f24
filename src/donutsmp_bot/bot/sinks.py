"""Message sinks over aiogram objects.

A sink is the outbound side of one interaction. Telegram send failures are
logged and never raised into the dispatcher.
"""

from aiogram.exceptions import TelegramAPIError
from aiogram.types import BufferedInputFile, CallbackQuery, Message

from donutsmp_bot.components.presentation import Attachment, RenderedMessage
from donutsmp_bot.logging_config import get_logger

logger = get_logger("bot.sinks")


def _document(attachment: Attachment) -> BufferedInputFile:
    return BufferedInputFile(attachment.content, filename=attachment.filename)


class ChatMessageSink:
    """Sink answering a command message in its chat.

    The acknowledgement is a placeholder message that is later edited into
    the final answer.
    """

    def __init__(self, message: Message) -> None:
        """Initialize the sink.

        Args:
            message: The command message being answered.
        """
        self._message = message
        self._placeholder: Message | None = None

    async def acknowledge(self, text: str) -> None:
        """Send the placeholder message."""
        try:
            self._placeholder = await self._message.answer(text)
        except TelegramAPIError as e:
            logger.warning(
                "Failed to send placeholder to chat %d: %s", self._message.chat.id, e
            )

    async def edit_acknowledgement(self, message: RenderedMessage) -> None:
        """Edit the placeholder into the final message, or send it anew."""
        if self._placeholder is None:
            await self.send(message)
            return
        try:
            await self._placeholder.edit_text(
                message.text, reply_markup=message.reply_markup
            )
        except TelegramAPIError as e:
            logger.warning(
                "Failed to edit placeholder in chat %d: %s", self._message.chat.id, e
            )
            await self.send(message)

    async def send(self, message: RenderedMessage) -> None:
        """Send a new message to the chat."""
        try:
            await self._message.answer(message.text, reply_markup=message.reply_markup)
        except TelegramAPIError as e:
            logger.warning(
                "Failed to send message to chat %d: %s", self._message.chat.id, e
            )

    async def edit(self, message: RenderedMessage) -> None:
        """Commands have no message to edit; send instead."""
        await self.send(message)

    async def upload(self, attachment: Attachment) -> None:
        """Send a document to the chat."""
        try:
            await self._message.answer_document(_document(attachment))
        except TelegramAPIError as e:
            logger.warning(
                "Failed to upload %s to chat %d: %s",
                attachment.filename,
                self._message.chat.id,
                e,
            )


class CallbackQuerySink:
    """Sink answering a pagination button press.

    The acknowledgement answers the callback query (the toast shown on the
    button); edits replace the message that carries the button.
    """

    def __init__(self, callback: CallbackQuery) -> None:
        """Initialize the sink.

        Args:
            callback: The callback query being answered.
        """
        self._callback = callback
        self._answered = False

    @property
    def _target(self) -> Message | None:
        message = self._callback.message
        return message if isinstance(message, Message) else None

    async def _answer(self, text: str | None = None) -> None:
        if self._answered:
            return
        self._answered = True
        try:
            await self._callback.answer(text)
        except TelegramAPIError as e:
            logger.warning("Failed to answer callback %s: %s", self._callback.id, e)

    async def acknowledge(self, text: str) -> None:
        """Answer the callback query with a short notice."""
        await self._answer(text)

    async def edit_acknowledgement(self, message: RenderedMessage) -> None:
        """The acknowledgement is a toast; edit the message instead."""
        await self.edit(message)

    async def send(self, message: RenderedMessage) -> None:
        """Send a new message to the chat of the pressed button."""
        await self._answer()
        target = self._target
        if target is None:
            logger.warning("Callback %s has no accessible message", self._callback.id)
            return
        try:
            await target.answer(message.text, reply_markup=message.reply_markup)
        except TelegramAPIError as e:
            logger.warning("Failed to send message to chat %d: %s", target.chat.id, e)

    async def edit(self, message: RenderedMessage) -> None:
        """Edit the message carrying the pressed button in place."""
        await self._answer()
        target = self._target
        if target is None:
            logger.warning("Callback %s has no accessible message", self._callback.id)
            return
        try:
            await target.edit_text(message.text, reply_markup=message.reply_markup)
        except TelegramAPIError as e:
            logger.warning(
                "Failed to edit message %d in chat %d: %s",
                target.message_id,
                target.chat.id,
                e,
            )

    async def upload(self, attachment: Attachment) -> None:
        """Send a document to the chat of the pressed button."""
        target = self._target
        if target is None:
            return
        try:
            await target.answer_document(_document(attachment))
        except TelegramAPIError as e:
            logger.warning(
                "Failed to upload %s to chat %d: %s",
                attachment.filename,
                target.chat.id,
                e,
            )
