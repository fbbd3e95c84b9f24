"""Response normalizers for DonutSMP API payloads.

A normalizer turns one endpoint family's loosely structured JSON into a
``NormalizedFieldSet``: ordered display fields plus an optional body and
footer. Normalizers are total: missing or mistyped keys are optional-field
handling, an unknown shape falls back to echoing the payload's
``status``/``message`` and finally to an "unexpected response format" marker.

Conventions:
    - ``Field.label``, ``Field.value``, ``title`` and ``footer`` are plain text.
    - ``body`` is Telegram HTML with every upstream string already escaped.

Example:
    from donutsmp_bot.services.endpoints import EndpointFamily, build_request
    from donutsmp_bot.services.normalizers import normalize

    context = build_request(EndpointFamily.STATS, subject="Notch")
    fields = normalize(context.normalizer, payload, context)
"""

import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Final

from donutsmp_bot.services.endpoints import NormalizerKind, QueryParams, RequestContext
from donutsmp_bot.utils.formatting import (
    cap_body,
    escape_html,
    format_duration_minutes,
    format_duration_ms,
    format_number,
    parse_int,
    prettify_identifier,
)

# Entries rendered per page
LIST_PAGE_SIZE: Final[int] = 10
LEADERBOARD_PAGE_SIZE: Final[int] = 20

UNEXPECTED_FORMAT: Final[str] = "❌ Unexpected response format"
TRANSACTIONS_TRUNCATION_MARKER: Final[str] = "\n\n<i>... and more transactions</i>"

MEDALS: Final[dict[int, str]] = {1: "🥇", 2: "🥈", 3: "🥉"}

LEADERBOARD_LABELS: Final[dict[str, tuple[str, str]]] = {
    "money": ("💰", "Money"),
    "kills": ("⚔️", "Kills"),
    "deaths": ("💀", "Deaths"),
    "brokenblocks": ("⛏️", "Blocks Broken"),
    "placedblocks": ("🧱", "Blocks Placed"),
    "mobskilled": ("👹", "Mobs Killed"),
    "playtime": ("⏰", "Playtime"),
    "sell": ("💰", "Money from Selling"),
    "shards": ("💎", "Shards"),
    "shop": ("🛒", "Money Spent"),
}
_CURRENCY_BOARDS: Final[frozenset[str]] = frozenset({"money", "sell", "shop"})

SORT_LABELS: Final[dict[str, str]] = {
    "lowest_price": "💰 Lowest Price",
    "highest_price": "💸 Highest Price",
    "recently_listed": "🕒 Recently Listed",
    "last_listed": "📅 Last Listed",
}


@dataclass(frozen=True)
class Field:
    """One labelled display value."""

    label: str
    value: str
    inline: bool = False


@dataclass
class NormalizedFieldSet:
    """Bounded presentation of one payload.

    Attributes:
        fields: Ordered display fields.
        body: Optional HTML body, at most 4000 characters.
        footer: Optional footer line.
        title: Title override; the request title is used when None.
        is_error: True when the payload describes a failure.
    """

    fields: list[Field] = field(default_factory=list)
    body: str | None = None
    footer: str | None = None
    title: str | None = None
    is_error: bool = False

    def add(self, label: str, value: str, inline: bool = False) -> None:
        """Append a field."""
        self.fields.append(Field(label=label, value=value, inline=inline))

    @property
    def is_empty(self) -> bool:
        """True when neither fields nor a body were produced."""
        return not self.fields and not self.body


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _echo(value: Any) -> str:
    """Render a JSON value the way it appears in the payload."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def _data(payload: Any) -> dict[str, Any]:
    """Return ``result`` when it is an object, else the payload itself."""
    root = _as_dict(payload)
    result = root.get("result")
    if isinstance(result, dict):
        return result
    return root


def _echo_status(payload: Any, fields: NormalizedFieldSet) -> bool:
    """Append the payload's message and status fields.

    Returns:
        True when at least one of them was present.
    """
    root = _as_dict(payload)
    found = False
    message = _text(root.get("message"))
    if message:
        fields.add("💬 Message", message)
        found = True
    if "status" in root:
        fields.add("📊 Status", _echo(root["status"]), inline=True)
        found = True
    return found


def _finish(fields: NormalizedFieldSet) -> NormalizedFieldSet:
    if fields.is_empty:
        fields.body = UNEXPECTED_FORMAT
    return fields


def _filter_title(base: str, params: QueryParams) -> str:
    parts = [f"{base} (Page {params.page})"]
    if params.search:
        parts.append(f"🔍 '{params.search}'")
    if params.sort:
        emoji = SORT_LABELS.get(params.sort, "📊").split(" ", 1)[0]
        parts.append(f"{emoji} {params.sort.replace('_', ' ')}")
    return " | ".join(parts)


def _filter_footer(params: QueryParams) -> str | None:
    parts = []
    if params.search:
        parts.append(f"🔍 Search: '{params.search}'")
    if params.sort:
        parts.append(f"📊 Sort: {SORT_LABELS.get(params.sort, params.sort)}")
    return " | ".join(parts) or None


def _entry_number(page: int, index: int, page_size: int) -> int:
    return (page - 1) * page_size + index + 1


def normalize_lookup(payload: Any, context: RequestContext) -> NormalizedFieldSet:
    """Present a single-player lookup."""
    fields = NormalizedFieldSet()
    result = _as_dict(_as_dict(payload).get("result"))
    for key, label in (
        ("username", "Username"),
        ("location", "Location"),
        ("rank", "Rank"),
    ):
        value = _text(result.get(key))
        if value:
            fields.add(label, value, inline=True)
    if not fields.fields:
        _echo_status(payload, fields)
    return _finish(fields)


def _stat_line(emoji: str, label: str, value: int, currency: bool = False) -> str:
    prefix = "$" if currency else ""
    return f"{emoji} <b>{label}:</b> {prefix}{format_number(value)}"


def normalize_stats(payload: Any, context: RequestContext) -> NormalizedFieldSet:
    """Present player statistics grouped in blank-line separated sections.

    Numbers may arrive as strings (the stats endpoint's shape) or integers.
    A string playtime is in milliseconds, an integer playtime in minutes.
    """
    player = context.subject or "Unknown"
    root = _as_dict(payload)
    stats = root.get("result")
    if not isinstance(stats, dict):
        fields = NormalizedFieldSet(
            title=f"❌ Stats not found for {player}",
            body="Could not find stats for this player.",
            is_error=True,
        )
        _echo_status(payload, fields)
        return fields

    def number(key: str) -> int | None:
        return parse_int(stats.get(key))

    sections: list[list[str]] = [[], [], [], [], []]
    if (money := number("money")) is not None:
        sections[0].append(_stat_line("💰", "Money", money, currency=True))
    if (shards := number("shards")) is not None:
        sections[0].append(_stat_line("💎", "Shards", shards))
    if (made := number("money_made_from_sell")) is not None:
        sections[1].append(_stat_line("📈", "Money made", made, currency=True))
    if (spent := number("money_spent_on_shop")) is not None:
        sections[1].append(_stat_line("🛒", "Money spent", spent, currency=True))

    playtime = stats.get("playtime")
    if isinstance(playtime, str) and (ms := parse_int(playtime)) is not None:
        sections[2].append(f"🕒 <b>Playtime:</b> {format_duration_ms(ms)}")
    elif (minutes := parse_int(playtime)) is not None:
        sections[2].append(f"🕒 <b>Playtime:</b> {format_duration_minutes(minutes)}")

    if (kills := number("kills")) is not None:
        sections[3].append(_stat_line("⚔️", "Kills", kills))
    if (deaths := number("deaths")) is not None:
        sections[3].append(_stat_line("💀", "Deaths", deaths))
    if (mobs := number("mobs_killed")) is not None:
        sections[3].append(_stat_line("🐗", "Mobs killed", mobs))
    if (placed := number("placed_blocks")) is not None:
        sections[4].append(_stat_line("🧱", "Blocks placed", placed))
    if (broken := number("broken_blocks")) is not None:
        sections[4].append(_stat_line("⛏️", "Blocks broken", broken))

    fields = NormalizedFieldSet(title=f"📊 Player Stats: {player}")
    body = "\n\n".join("\n".join(lines) for lines in sections if lines)
    if body:
        fields.body = cap_body(body)
    else:
        _echo_status(payload, fields)
    return _finish(fields)


def _leaderboard_value(board: str, raw: Any) -> str:
    value = parse_int(raw)
    if value is None:
        return escape_html(_echo(raw)) if raw is not None else "0"
    if board in _CURRENCY_BOARDS:
        return f"${format_number(value)}"
    if board == "playtime":
        return format_duration_ms(value)
    return format_number(value)


def normalize_leaderboard(payload: Any, context: RequestContext) -> NormalizedFieldSet:
    """Present one leaderboard page with absolute ranks and medals."""
    board = context.subject or ""
    page = context.page
    root = _as_dict(payload)
    result = root.get("result")
    entries = result if isinstance(result, list) else _as_dict(result).get("leaderboard")

    if not isinstance(entries, list):
        fields = NormalizedFieldSet(
            title=f"❌ {board} Leaderboard not found",
            body="Could not load leaderboard data.",
            is_error=True,
        )
        _echo_status(payload, fields)
        return fields

    emoji, label = LEADERBOARD_LABELS.get(board, ("🏆", "Unknown"))
    fields = NormalizedFieldSet(title=f"{emoji} {label} Leaderboard (Page {page})")
    if not entries:
        fields.body = "No entries found on this page."
        return fields

    shown = entries[:LEADERBOARD_PAGE_SIZE]
    lines = []
    for index, entry in enumerate(shown):
        entry = _as_dict(entry)
        position = _entry_number(page, index, LEADERBOARD_PAGE_SIZE)
        username = escape_html(_text(entry.get("username")) or "Unknown")
        value = _leaderboard_value(board, entry.get("value"))
        medal = f"{MEDALS[position]} " if position in MEDALS else ""
        lines.append(f"{medal}<b>#{position}</b> {username} - {value}")

    fields.body = cap_body("\n".join(lines))
    fields.footer = f"Page {page} • Showing {len(shown)} entries"
    return fields


def _item_name(item: dict[str, Any], fallback: str | None = None) -> str:
    display_name = _text(item.get("display_name"))
    if display_name:
        return display_name
    item_id = _text(item.get("id"))
    if item_id:
        return prettify_identifier(item_id)
    return fallback or "Unknown Item"


def _enchantments(item: dict[str, Any]) -> str:
    levels = _as_dict(
        _as_dict(_as_dict(item.get("enchants")).get("enchantments")).get("levels")
    )
    names = []
    for name, level in levels.items():
        display = prettify_identifier(str(name), spaces=True)
        level_number = parse_int(level) or 1
        names.append(f"{display} {level_number}" if level_number > 1 else display)
    return f" ({', '.join(names)})" if names else ""


def _list_result(payload: Any, fields: NormalizedFieldSet) -> list[Any] | None:
    """Extract a paged list result or record why there is none."""
    root = _as_dict(payload)
    if "result" in root:
        result = root["result"]
        if isinstance(result, list):
            return result
        fields.body = "❌ No items found or invalid response format"
        fields.is_error = True
        return None
    if "status" in root:
        status = _text(root["status"]) or "Unknown error"
        fields.body = f"❌ API Error: {escape_html(status)}"
        fields.is_error = True
        message = _text(root.get("message"))
        if message:
            fields.add("💬 Message", message)
        return None
    fields.body = UNEXPECTED_FORMAT
    fields.is_error = True
    return None


def normalize_auction(payload: Any, context: RequestContext) -> NormalizedFieldSet:
    """Present one page of auction house listings."""
    params = context.raw_query_params
    fields = NormalizedFieldSet(
        title=_filter_title("🏪 Auction House", params),
        footer=_filter_footer(params),
    )
    items = _list_result(payload, fields)
    if items is None:
        return fields
    if not items:
        fields.body = "🏪 No auction entries found on this page."
        return fields

    entries = []
    for index, auction in enumerate(items[:LIST_PAGE_SIZE]):
        auction = _as_dict(auction)
        item = _as_dict(auction.get("item"))
        number = _entry_number(params.page, index, LIST_PAGE_SIZE)
        count = parse_int(item.get("count")) or 1
        count_text = f"{count}x " if count > 1 else ""
        name = escape_html(_item_name(item) + _enchantments(item))
        price = format_number(parse_int(auction.get("price")) or 0)
        seller = escape_html(
            _text(_as_dict(auction.get("seller")).get("name")) or "Unknown"
        )
        entries.append(
            f"<b>{number}</b>. {count_text}{name} - <b>${price}</b>\n"
            f"└ <i>Seller: {seller}</i>"
        )

    fields.body = cap_body("\n\n".join(entries))
    return fields


def _transaction_age(transaction: dict[str, Any]) -> str:
    timestamp = parse_int(transaction.get("timestamp"))
    if timestamp is None:
        timestamp = parse_int(transaction.get("time"))
    if timestamp is None:
        return "Unknown time"
    hours_ago = (int(time.time()) - timestamp) // 3600
    if hours_ago > 24:
        return f"{hours_ago // 24}d ago"
    if hours_ago > 0:
        return f"{hours_ago}h ago"
    return "Recently"


def _party(transaction: dict[str, Any], role: str) -> str:
    return (
        _text(_as_dict(transaction.get(role)).get("name"))
        or _text(transaction.get(f"{role}_name"))
        or "Unknown"
    )


def normalize_transactions(
    payload: Any, context: RequestContext
) -> NormalizedFieldSet:
    """Present one page of completed auction transactions."""
    params = context.raw_query_params
    fields = NormalizedFieldSet(
        title=_filter_title("📜 Auction Transactions", params),
        footer=_filter_footer(params),
    )
    items = _list_result(payload, fields)
    if items is None:
        return fields
    if not items:
        fields.body = "📜 No auction transactions found on this page."
        return fields

    entries = []
    for index, transaction in enumerate(items[:LIST_PAGE_SIZE]):
        transaction = _as_dict(transaction)
        item = _as_dict(transaction.get("item"))
        number = _entry_number(params.page, index, LIST_PAGE_SIZE)
        name = escape_html(_item_name(item, _text(transaction.get("item_name"))))
        price = format_number(parse_int(transaction.get("price")) or 0)
        seller = escape_html(_party(transaction, "seller"))
        buyer = escape_html(_party(transaction, "buyer"))
        age = _transaction_age(transaction)
        entries.append(
            f"<b>{number}</b>. <b>{name}</b> - <b>${price}</b>\n"
            f"└ <i>{seller} → {buyer} | {age}</i>"
        )

    fields.body = cap_body("\n\n".join(entries), TRANSACTIONS_TRUNCATION_MARKER)
    return fields


def _player_name(player: Any) -> str | None:
    if isinstance(player, str):
        return player
    player = _as_dict(player)
    return _text(player.get("name")) or _text(player.get("username"))


def normalize_online(payload: Any, context: RequestContext) -> NormalizedFieldSet:
    """Present server population counts and the online player list."""
    data = _data(payload)
    fields = NormalizedFieldSet()
    if "online" in data:
        fields.add("👥 Players Online", _echo(data["online"]), inline=True)
    if "max" in data:
        fields.add("🏠 Max Players", _echo(data["max"]), inline=True)
    players = data.get("players")
    if isinstance(players, list):
        names = [name for name in map(_player_name, players) if name]
        if names:
            fields.add("📋 Player List", ", ".join(names))
    _echo_status(payload, fields)
    return _finish(fields)


def normalize_server(payload: Any, context: RequestContext) -> NormalizedFieldSet:
    """Present server metadata."""
    data = _data(payload)
    fields = NormalizedFieldSet()
    for key, label, inline in (
        ("name", "🌐 Server", True),
        ("version", "📦 Version", True),
        ("motd", "📜 MOTD", False),
    ):
        value = _text(data.get(key))
        if value:
            fields.add(label, value, inline=inline)
    if "online" in data:
        fields.add("👥 Online", _echo(data["online"]), inline=True)
    if "max" in data:
        fields.add("🏠 Max Players", _echo(data["max"]), inline=True)
    _echo_status(payload, fields)
    return _finish(fields)


Normalizer = Callable[[Any, RequestContext], NormalizedFieldSet]

NORMALIZERS: Final[dict[NormalizerKind, Normalizer]] = {
    NormalizerKind.LOOKUP: normalize_lookup,
    NormalizerKind.STATS: normalize_stats,
    NormalizerKind.LEADERBOARD: normalize_leaderboard,
    NormalizerKind.AUCTION: normalize_auction,
    NormalizerKind.TRANSACTIONS: normalize_transactions,
    NormalizerKind.ONLINE: normalize_online,
    NormalizerKind.SERVER: normalize_server,
}

# First match wins; specific substrings precede the general ones they overlap
PATH_RULES: Final[tuple[tuple[str, NormalizerKind], ...]] = (
    ("/lookup/", NormalizerKind.LOOKUP),
    ("/stats/", NormalizerKind.STATS),
    ("/leaderboards/", NormalizerKind.LEADERBOARD),
    ("/auction/list/", NormalizerKind.AUCTION),
    ("/auction/transactions/", NormalizerKind.TRANSACTIONS),
    ("/online", NormalizerKind.ONLINE),
    ("/server", NormalizerKind.SERVER),
)


def resolve_normalizer(path: str) -> NormalizerKind:
    """Select a normalizer for an ad-hoc request path.

    Args:
        path: Request path, e.g. "/v1/leaderboards/money/1".

    Returns:
        The first matching kind, or ``NormalizerKind.RAW`` when none matches.
    """
    for fragment, kind in PATH_RULES:
        if fragment in path:
            return kind
    return NormalizerKind.RAW


def normalize(
    kind: NormalizerKind, payload: Any, context: RequestContext
) -> NormalizedFieldSet | None:
    """Run the normalizer for ``kind``.

    Returns:
        The field set, or None for ``NormalizerKind.RAW``.
    """
    normalizer = NORMALIZERS.get(kind)
    if normalizer is None:
        return None
    return normalizer(payload, context)
