"""Bot handlers module."""

from donutsmp_bot.bot.handlers.command_handler import create_command_router

__all__ = ["create_command_router"]
