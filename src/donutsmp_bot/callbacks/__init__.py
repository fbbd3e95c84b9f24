"""Callback handling for pagination buttons.

This module provides the pagination token codec carried in inline keyboard
callback data.

Note: create_callback_router should be imported directly from
donutsmp_bot.callbacks.page_callbacks to avoid circular imports.
"""

from donutsmp_bot.callbacks.callback_data import (
    PageCallback,
    PageFilters,
    PageToken,
    decode_token,
    encode_token,
)

__all__ = ["PageCallback", "PageFilters", "PageToken", "decode_token", "encode_token"]
