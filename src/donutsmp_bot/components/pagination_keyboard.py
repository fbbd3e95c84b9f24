"""Inline keyboard for paged results.

Every paged message carries one row of controls: a previous-page button
(omitted on page 1), a page indicator that refreshes the current page, and a
next-page button. The button data is produced by the pagination codec from
the page the message shows, so each press is self-contained.
"""

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from donutsmp_bot.callbacks.callback_data import (
    ACTION_CURRENT,
    ACTION_NEXT,
    ACTION_PREV,
    PageFilters,
    encode_token,
)
from donutsmp_bot.services.endpoints import EndpointFamily


def build_page_keyboard(
    family: EndpointFamily,
    page: int,
    filters: PageFilters | None = None,
) -> InlineKeyboardMarkup:
    """Build the navigation row for a paged message.

    Args:
        family: Paged endpoint family.
        page: Page currently displayed.
        filters: Search, sort and leaderboard type to carry forward.

    Returns:
        InlineKeyboardMarkup with the navigation row.

    Raises:
        ValidationError: When the page number is too long for callback data.
    """
    row: list[InlineKeyboardButton] = []
    if page > 1:
        row.append(
            InlineKeyboardButton(
                text="⬅",
                callback_data=encode_token(family, ACTION_PREV, page, filters),
            )
        )
    row.append(
        InlineKeyboardButton(
            text=f"Page {page}",
            callback_data=encode_token(family, ACTION_CURRENT, page, filters),
        )
    )
    row.append(
        InlineKeyboardButton(
            text="➡",
            callback_data=encode_token(family, ACTION_NEXT, page, filters),
        )
    )
    return InlineKeyboardMarkup(inline_keyboard=[row])
