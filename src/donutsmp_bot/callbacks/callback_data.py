"""Pagination tokens carried in inline keyboard callback data.

The callback data is the only place page and filter state live between a
button press and its handler. Tokens are packed with aiogram's
``CallbackData`` (":"-separated); the free-text search term is
percent-encoded so it can never contain the separator. Telegram limits
callback data to 64 bytes: when a token would exceed it, the search term is
shortened first, then the sort order is dropped.

Decoding is strict for the load-bearing parts (family, action, page) and
lenient for filters, which degrade to "no filter" when unreadable.

Example:
    data = encode_token(EndpointFamily.AUCTION, "next", 3, PageFilters(search="dirt"))
    token = decode_token(data)
    token.target_page  # 4
"""

from dataclasses import dataclass
from typing import Final
from urllib.parse import quote, unquote

from aiogram.filters.callback_data import MAX_CALLBACK_LENGTH, CallbackData

from donutsmp_bot.errors import DecodeError, ValidationError
from donutsmp_bot.services.endpoints import (
    LEADERBOARD_TYPES,
    SORT_CHOICES,
    EndpointFamily,
)

PAGE_PREFIX: Final[str] = "pg"

ACTION_PREV: Final[str] = "prev"
ACTION_NEXT: Final[str] = "next"
ACTION_CURRENT: Final[str] = "current"

PAGED_FAMILIES: Final[frozenset[EndpointFamily]] = frozenset(
    {
        EndpointFamily.LEADERBOARD,
        EndpointFamily.AUCTION,
        EndpointFamily.TRANSACTIONS,
    }
)


class PageCallback(CallbackData, prefix=PAGE_PREFIX):
    """Raw callback data of a pagination button.

    Attributes:
        family: Endpoint family code (lb, auc, txn).
        action: prev, next or current.
        page: Page the button was rendered on.
        search: Percent-encoded search term.
        sort: Sort order.
        board: Leaderboard type.
    """

    family: str
    action: str
    page: int
    search: str = ""
    sort: str = ""
    board: str = ""


@dataclass(frozen=True)
class PageFilters:
    """Filters carried alongside the page number."""

    search: str | None = None
    sort: str | None = None
    board: str | None = None


@dataclass(frozen=True)
class PageToken:
    """Decoded pagination token."""

    family: EndpointFamily
    action: str
    page: int
    filters: PageFilters

    @property
    def target_page(self) -> int:
        """Page the button navigates to."""
        return resolve_page(self.action, self.page)


def resolve_page(action: str, page: int) -> int:
    """Compute the page a control action leads to.

    Args:
        action: prev, next or current.
        page: Page the control was rendered on.

    Returns:
        ``max(1, page - 1)`` for prev, ``page + 1`` for next (no upper
        bound), ``page`` for current.

    Raises:
        ValidationError: For any other action.
    """
    if action == ACTION_PREV:
        return max(1, page - 1)
    if action == ACTION_NEXT:
        return page + 1
    if action == ACTION_CURRENT:
        return page
    raise ValidationError(f"Unknown control action: {action}")


def _pack(
    family: EndpointFamily, action: str, page: int, search: str, sort: str, board: str
) -> str:
    return PageCallback(
        family=family.value,
        action=action,
        page=page,
        search=quote(search, safe=""),
        sort=sort,
        board=board,
    ).pack()


def _fits(
    family: EndpointFamily, action: str, page: int, search: str, sort: str, board: str
) -> bool:
    length = len(PAGE_PREFIX) + 6  # one separator per field
    for part in (family.value, action, str(page), quote(search, safe=""), sort, board):
        length += len(part.encode())
    return length <= MAX_CALLBACK_LENGTH


def encode_token(
    family: EndpointFamily,
    action: str,
    page: int,
    filters: PageFilters | None = None,
) -> str:
    """Encode a pagination token into callback data.

    Args:
        family: Paged endpoint family.
        action: prev, next or current.
        page: Page the control is rendered on.
        filters: Filters to carry.

    Returns:
        Callback data of at most 64 bytes.

    Raises:
        ValidationError: When the token does not fit even without filters.
    """
    filters = filters or PageFilters()
    search = filters.search or ""
    sort = filters.sort or ""
    board = filters.board or ""

    while search and not _fits(family, action, page, search, sort, board):
        search = search[:-1]
    if not _fits(family, action, page, search, sort, board):
        sort = ""
    if not _fits(family, action, page, search, sort, board):
        raise ValidationError(f"Page {page} is too large to navigate")
    return _pack(family, action, page, search, sort, board)


def decode_token(data: str) -> PageToken:
    """Decode callback data produced by ``encode_token``.

    Args:
        data: Raw callback data.

    Returns:
        The decoded token.

    Raises:
        DecodeError: When the structure, family or page is unreadable.
        ValidationError: When the action is not prev, next or current.
    """
    try:
        raw = PageCallback.unpack(data)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"malformed pagination data ({e.__class__.__name__})") from e

    try:
        family = EndpointFamily(raw.family)
    except ValueError as e:
        raise DecodeError(f"unknown control family '{raw.family}'") from e
    if family not in PAGED_FAMILIES:
        raise DecodeError(f"'{raw.family}' results are not paged")
    if raw.action not in (ACTION_PREV, ACTION_NEXT, ACTION_CURRENT):
        raise ValidationError(f"Unknown control action: {raw.action}")
    if raw.page < 1:
        raise DecodeError(f"invalid page {raw.page}")

    board = raw.board if raw.board in LEADERBOARD_TYPES else None
    if family is EndpointFamily.LEADERBOARD and board is None:
        raise DecodeError(f"unknown leaderboard type '{raw.board}'")

    filters = PageFilters(
        search=unquote(raw.search) or None,
        sort=raw.sort if raw.sort in SORT_CHOICES else None,
        board=board,
    )
    return PageToken(family=family, action=raw.action, page=raw.page, filters=filters)
