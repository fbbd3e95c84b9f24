"""Message building components for the DonutSMP bot."""

from donutsmp_bot.components.pagination_keyboard import build_page_keyboard
from donutsmp_bot.components.presentation import (
    Attachment,
    RenderedMessage,
    render,
    render_error,
    render_raw_json,
    render_text,
)

__all__ = [
    "Attachment",
    "RenderedMessage",
    "build_page_keyboard",
    "render",
    "render_error",
    "render_raw_json",
    "render_text",
]
