"""Presentation renderer for outbound Telegram messages.

Assembles the final HTML message from a normalized field set: bold title,
capped body, labelled fields and an italic footer, plus an optional inline
keyboard. Payloads without a normalizer are shown as pretty-printed JSON,
inline when short enough and otherwise as a ``.json`` document.

Example:
    from donutsmp_bot.components.presentation import render

    message = render("🔍 Player Lookup: Notch", fields)
    await sink.send(message)
"""

import json
from dataclasses import dataclass
from typing import Any, Final

from aiogram.types import InlineKeyboardMarkup

from donutsmp_bot.errors import BotError
from donutsmp_bot.services.normalizers import NormalizedFieldSet
from donutsmp_bot.utils.formatting import (
    MAX_BODY_LENGTH,
    cap_body,
    escape_html,
    strip_html,
)

# Telegram's limit for the text of one message
MAX_MESSAGE_LENGTH: Final[int] = 4096

GENERIC_FAILURE_MESSAGE: Final[str] = (
    "❌ Something went wrong while handling this request. Please try again."
)


@dataclass(frozen=True)
class Attachment:
    """File sent as a document."""

    filename: str
    content: bytes


@dataclass(frozen=True)
class RenderedMessage:
    """Outbound message ready for a sink.

    Attributes:
        text: HTML message text (caption when an attachment is present).
        reply_markup: Optional inline keyboard.
        attachment: Optional document to upload.
    """

    text: str
    reply_markup: InlineKeyboardMarkup | None = None
    attachment: Attachment | None = None


def attachment_filename(path: str, extension: str = "json") -> str:
    """Derive a document name from a request path.

    Args:
        path: Request path such as "/v1/auction/list/1".
        extension: File extension without the dot.

    Returns:
        File name such as "v1_auction_list_1.json".
    """
    stem = path.lstrip("/").replace("/", "_") or "response"
    return f"{stem}.{extension}"


def _attached_caption(title: str, size: int) -> str:
    return f"<b>{escape_html(title)}</b> — Response attached ({size} bytes)"


def _format_fields(fields: NormalizedFieldSet) -> list[str]:
    lines: list[str] = []
    inline_run: list[str] = []
    for item in fields.fields:
        label = escape_html(item.label)
        value = escape_html(item.value)
        if item.inline:
            inline_run.append(f"<b>{label}:</b> {value}")
            continue
        if inline_run:
            lines.append("  •  ".join(inline_run))
            inline_run = []
        lines.append(f"<b>{label}</b>\n{value}")
    if inline_run:
        lines.append("  •  ".join(inline_run))
    return lines


def _guard(
    text: str,
    title: str,
    reply_markup: InlineKeyboardMarkup | None,
    filename: str,
) -> RenderedMessage:
    """Redirect text that exceeds Telegram's message limit to a document."""
    if len(text) <= MAX_MESSAGE_LENGTH:
        return RenderedMessage(text=text, reply_markup=reply_markup)
    content = strip_html(text).encode()
    return RenderedMessage(
        text=_attached_caption(title, len(content)),
        reply_markup=reply_markup,
        attachment=Attachment(filename=filename, content=content),
    )


def render(
    title: str,
    fields: NormalizedFieldSet,
    reply_markup: InlineKeyboardMarkup | None = None,
    path: str = "/response",
) -> RenderedMessage:
    """Render a normalized field set.

    Args:
        title: Default title; ``fields.title`` takes precedence.
        fields: Normalized presentation of the payload.
        reply_markup: Optional navigation keyboard.
        path: Request path, used to name an overflow document.

    Returns:
        The outbound message.
    """
    effective_title = fields.title or title
    blocks = [f"<b>{escape_html(effective_title)}</b>"]
    if fields.body:
        blocks.append(cap_body(fields.body))
    blocks.extend(_format_fields(fields))
    if fields.footer:
        blocks.append(f"<i>{escape_html(fields.footer)}</i>")
    text = "\n\n".join(blocks)
    return _guard(
        text, effective_title, reply_markup, attachment_filename(path, "txt")
    )


def render_text(
    text: str, reply_markup: InlineKeyboardMarkup | None = None
) -> RenderedMessage:
    """Wrap pre-rendered HTML (help pages, roster views) as a message."""
    return _guard(text, "Message", reply_markup, "message.txt")


def render_raw_json(title: str, payload: Any, path: str) -> RenderedMessage:
    """Render a payload that has no normalizer.

    Args:
        title: Message title.
        payload: Decoded JSON payload.
        path: Request path, used to name the document.

    Returns:
        Inline pretty-printed JSON when it fits the body cap, otherwise a
        caption with the JSON attached as a document.
    """
    pretty = json.dumps(payload, indent=2, ensure_ascii=False)
    if len(pretty) <= MAX_BODY_LENGTH:
        text = (
            f"<b>{escape_html(title)}</b>\n\n"
            f'<pre><code class="language-json">{escape_html(pretty)}</code></pre>'
        )
        if len(text) <= MAX_MESSAGE_LENGTH:
            return RenderedMessage(text=text)

    content = pretty.encode()
    return RenderedMessage(
        text=_attached_caption(title, len(content)),
        attachment=Attachment(filename=attachment_filename(path), content=content),
    )


def render_error(error: BotError) -> RenderedMessage:
    """Render a recoverable failure as a single message."""
    blocks = [f"<b>{escape_html(error.title)}</b>", error.user_message]
    if error.footer:
        blocks.append(f"<i>{escape_html(error.footer)}</i>")
    return RenderedMessage(text="\n\n".join(blocks))


def render_failure() -> RenderedMessage:
    """Render an unexpected failure."""
    return RenderedMessage(text=f"<b>Error</b>\n\n{GENERIC_FAILURE_MESSAGE}")
