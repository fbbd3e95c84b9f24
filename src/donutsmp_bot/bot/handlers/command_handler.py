"""Command handlers for the Telegram bot.

Every command in the command table is served by one handler that hands the
invocation to the interaction router.

Example:
    Register handlers in the dispatcher::

        from donutsmp_bot.bot.handlers import create_command_router

        dp = Dispatcher()
        dp.include_router(create_command_router(interaction_router))
"""

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message

from donutsmp_bot.bot.commands import COMMANDS
from donutsmp_bot.bot.sinks import ChatMessageSink
from donutsmp_bot.logging_config import get_logger
from donutsmp_bot.services.interaction_router import (
    CommandInvocation,
    InteractionRouter,
)

logger = get_logger("handlers.command")


def create_command_router(interaction_router: InteractionRouter) -> Router:
    """Create the router serving bot commands.

    Args:
        interaction_router: Router that handles the invocations.

    Returns:
        Router: Configured Router instance with the command handler.
    """
    router = Router(name="command_router")

    @router.message(Command(*COMMANDS))
    async def handle_command(message: Message, command: CommandObject) -> None:
        """Handle any command from the command table."""
        name = command.command.lower()
        user_id = message.from_user.id if message.from_user else None
        logger.info("Command /%s | chat=%d | user=%s", name, message.chat.id, user_id)
        await interaction_router.handle(
            CommandInvocation(name=name, raw_args=command.args),
            ChatMessageSink(message),
        )

    return router
