"""FastAPI application with Telegram webhook endpoint."""

import asyncio
import hmac
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from json import JSONDecodeError
from typing import Any

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError, TelegramRetryAfter
from aiogram.types import Update
from fastapi import FastAPI, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware

from donutsmp_bot import __version__
from donutsmp_bot.bot.commands import bot_commands
from donutsmp_bot.bot.handlers import create_command_router
from donutsmp_bot.callbacks.page_callbacks import create_callback_router
from donutsmp_bot.config.settings import Settings, get_settings
from donutsmp_bot.logging_config import get_logger, setup_logging
from donutsmp_bot.services.api_client import DonutApiClient
from donutsmp_bot.services.interaction_router import InteractionRouter
from donutsmp_bot.services.online_status import OnlineStatusPoster
from donutsmp_bot.services.team_store import TeamStore

logger = get_logger("app")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        """Add security headers to response.

        Args:
            request: The incoming request.
            call_next: The next middleware/handler.

        Returns:
            Response with security headers added.
        """
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'"
        )
        return response


# Store background tasks with strong references to prevent garbage collection
_background_tasks: set[asyncio.Task[None]] = set()


async def set_webhook_with_retry(bot: Bot, settings: Settings) -> None:
    """Set webhook with retry logic for flood control.

    Telegram may answer SetWebhook with TelegramRetryAfter when the bot
    restarts quickly. The wait it asks for is honoured up to
    ``webhook_max_retries`` times; after that a warning is logged and
    startup continues.

    Args:
        bot: The Bot instance.
        settings: Application settings.
    """
    max_retries = settings.webhook_max_retries
    retry_buffer = settings.webhook_retry_buffer_seconds

    for attempt in range(max_retries):
        try:
            await bot.set_webhook(
                url=settings.webhook_url,
                secret_token=settings.webhook_secret.get_secret_value(),
                drop_pending_updates=settings.webhook_drop_pending_updates,
                allowed_updates=["message", "callback_query"],
            )
            logger.info("Webhook configured successfully")
            return
        except TelegramRetryAfter as e:
            wait_time = e.retry_after + retry_buffer
            logger.warning(
                "Flood control on SetWebhook, attempt %d/%d. Waiting %.1f seconds...",
                attempt + 1,
                max_retries,
                wait_time,
            )
            await asyncio.sleep(wait_time)

    logger.warning("Webhook setup exhausted retries.")


async def register_commands(bot: Bot) -> None:
    """Publish the command table to Telegram's command menu.

    Args:
        bot: The Bot instance.
    """
    try:
        await bot.set_my_commands(bot_commands())
        logger.info("Registered %d bot commands", len(bot_commands()))
    except TelegramAPIError as e:
        logger.warning("Failed to register bot commands: %s", e)


def create_bot(settings: Settings) -> Bot:
    """Create and configure the Telegram bot.

    Args:
        settings: Application settings.

    Returns:
        Configured Bot instance.
    """
    return Bot(
        token=settings.telegram_bot_token.get_secret_value(),
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )


def create_dispatcher(interaction_router: InteractionRouter) -> Dispatcher:
    """Create and configure the aiogram dispatcher.

    Args:
        interaction_router: Router serving commands and button presses.

    Returns:
        Configured Dispatcher instance.
    """
    dp = Dispatcher()
    dp.include_router(create_command_router(interaction_router))
    dp.include_router(create_callback_router(interaction_router))
    return dp


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager.

    Sets up the webhook and command menu on startup, runs the online status
    poster when a chat is configured, and releases everything on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    bot: Bot = app.state.bot
    client: DonutApiClient = app.state.api_client

    logger.info("Setting webhook to: %s", settings.webhook_url)
    await set_webhook_with_retry(bot, settings)
    await register_commands(bot)

    poster: OnlineStatusPoster | None = None
    if settings.online_chat_id is not None:
        poster = OnlineStatusPoster(
            bot,
            client,
            app.state.team_store,
            chat_id=settings.online_chat_id,
            interval_minutes=settings.online_interval_minutes,
            timeout=settings.poll_timeout_seconds,
        )
        poster.start()
    app.state.poster = poster

    yield

    if poster is not None:
        await poster.stop()

    logger.info("Removing webhook...")
    try:
        await bot.delete_webhook()
    except TelegramAPIError as e:
        logger.exception("Telegram API error removing webhook: %s", e)
    except OSError as e:
        logger.exception("Network error removing webhook: %s", e)
    finally:
        await client.aclose()
        await bot.session.close()
        logger.info("Bot session closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance (uses default if not provided).

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    setup_logging(settings.log_level, settings=settings)

    app = FastAPI(
        title="DonutSMP Telegram Bot",
        description="Telegram webhook bot for the DonutSMP API",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_middleware(SecurityHeadersMiddleware)

    client = DonutApiClient.from_settings(settings)
    store = TeamStore(settings.team_store_path)
    interaction_router = InteractionRouter(
        client, store, poll_timeout=settings.poll_timeout_seconds
    )

    app.state.settings = settings
    app.state.api_client = client
    app.state.team_store = store
    app.state.interaction_router = interaction_router
    app.state.bot = create_bot(settings)
    app.state.dp = create_dispatcher(interaction_router)

    register_routes(app, settings)

    return app


async def process_update_background(dp: Dispatcher, bot: Bot, update: Update) -> None:
    """Process update in background task.

    This allows the webhook to respond immediately to Telegram
    while processing continues asynchronously.

    Args:
        dp: The aiogram Dispatcher instance.
        bot: The Bot instance.
        update: The Telegram Update to process.
    """
    try:
        await dp.feed_update(bot=bot, update=update)
        logger.debug("Update %d processed successfully", update.update_id)
    except TelegramAPIError as e:
        logger.exception(
            "Telegram API error processing update %d: %s", update.update_id, e
        )
    except OSError as e:
        logger.exception("Network error processing update %d: %s", update.update_id, e)


def register_routes(app: FastAPI, settings: Settings) -> None:
    """Register application routes.

    Args:
        app: FastAPI application instance.
        settings: Application settings.
    """

    @app.post(settings.webhook_path)
    async def webhook_handler(
        request: Request,
        x_telegram_bot_api_secret_token: str | None = Header(default=None),
    ) -> JSONResponse:
        """Handle incoming Telegram webhook updates.

        The secret token is compared timing-safe, the update is validated,
        and processing continues in the background so Telegram gets an
        immediate answer.

        Args:
            request: The incoming HTTP request.
            x_telegram_bot_api_secret_token: Secret token from Telegram.

        Returns:
            JSON status response.

        Raises:
            HTTPException: If validation fails.
        """
        expected_secret = settings.webhook_secret.get_secret_value()
        token_to_check = x_telegram_bot_api_secret_token or ""
        if not hmac.compare_digest(token_to_check, expected_secret):
            logger.warning("Invalid webhook secret token received")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid secret token",
            )

        try:
            data: dict[str, Any] = await request.json()
        except JSONDecodeError as err:
            logger.warning("Invalid JSON payload received")
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid JSON",
            ) from err

        try:
            update = Update.model_validate(data, context={"bot": app.state.bot})
        except ValidationError as err:
            logger.warning("Invalid Telegram update format: %s", err.error_count())
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid update format",
            ) from err

        task = asyncio.create_task(
            process_update_background(app.state.dp, app.state.bot, update)
        )
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

        return JSONResponse(content={"status": "ok"}, status_code=status.HTTP_200_OK)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint.

        Returns:
            Health status.
        """
        return {"status": "healthy"}
