"""Callback handler for pagination buttons.

Callback data is matched by prefix only and decoded by the interaction
router, so malformed data is answered with a visible error instead of being
ignored by a failing filter.

Example:
    from donutsmp_bot.callbacks.page_callbacks import create_callback_router

    dp = Dispatcher()
    dp.include_router(create_callback_router(interaction_router))
"""

from aiogram import F, Router
from aiogram.types import CallbackQuery

from donutsmp_bot.bot.sinks import CallbackQuerySink
from donutsmp_bot.callbacks.callback_data import PAGE_PREFIX
from donutsmp_bot.logging_config import get_logger
from donutsmp_bot.services.interaction_router import (
    ControlActivation,
    InteractionRouter,
)

logger = get_logger("callbacks.page")


def create_callback_router(interaction_router: InteractionRouter) -> Router:
    """Create and configure the callback query router.

    Args:
        interaction_router: Router that handles the activations.

    Returns:
        Router: Configured Router instance with the pagination handler.
    """
    router = Router(name="callback_router")

    @router.callback_query(F.data.startswith(f"{PAGE_PREFIX}:"))
    async def handle_page_callback(callback: CallbackQuery) -> None:
        """Handle a press on a pagination button."""
        logger.debug(
            "Pagination callback | user=%d | data=%s",
            callback.from_user.id,
            callback.data,
        )
        await interaction_router.handle(
            ControlActivation(data=callback.data or ""),
            CallbackQuerySink(callback),
        )

    return router
