"""Error taxonomy for the interaction pipeline.

Every failure that can happen while serving a command or a button press is
expressed as a ``BotError`` subclass. The interaction router recovers all of
them at its boundary and renders ``user_message`` to the chat, so none of
these exceptions ever terminate the process.

Example:
    try:
        token = decode_token(raw)
    except DecodeError as e:
        await sink.send(render_error(e))
"""

from typing import Final

from donutsmp_bot.utils.formatting import escape_html

# Human messages for upstream HTTP statuses
STATUS_MESSAGES: Final[dict[int, str]] = {
    401: "❌ <b>Authentication Error</b>: Invalid API key",
    403: "❌ <b>Access Forbidden</b>: You don't have permission to access this endpoint",
    404: "❌ <b>Not Found</b>: The requested resource doesn't exist",
    429: "❌ <b>Rate Limited</b>: Too many requests, please try again later",
}
SERVER_ERROR_MESSAGE: Final[str] = (
    "❌ <b>Server Error</b>: The server encountered an error"
)


def describe_status(status_code: int) -> str:
    """Map an upstream HTTP status to its fixed human message.

    Args:
        status_code: Non-2xx HTTP status returned by the API.

    Returns:
        The message for the status, echoing unknown statuses verbatim.
    """
    if status_code in STATUS_MESSAGES:
        return STATUS_MESSAGES[status_code]
    if 500 <= status_code <= 599:
        return SERVER_ERROR_MESSAGE
    return f"❌ <b>Error</b>: API returned HTTP {status_code}"


class BotError(Exception):
    """Base class for all recoverable interaction failures.

    Attributes:
        kind: Short machine-readable failure kind used in logs.
        title: Title of the rendered error message.
        user_message: HTML text shown to the user.
        footer: Optional footer line for the rendered error message.
    """

    kind = "error"
    title = "Error"

    def __init__(self, user_message: str, footer: str | None = None) -> None:
        super().__init__(user_message)
        self.user_message = user_message
        self.footer = footer


class TransportError(BotError):
    """Network failure or timeout while talking to the upstream API."""

    kind = "transport"

    def __init__(self, cause: str) -> None:
        super().__init__(f"❌ Failed to reach the DonutSMP API: {escape_html(cause)}")
        self.cause = cause


class UpstreamHttpError(BotError):
    """Upstream API answered with a non-2xx status."""

    kind = "upstream_http"
    title = "DonutSMP API Error"

    def __init__(self, status_code: int, path: str) -> None:
        super().__init__(
            describe_status(status_code),
            footer=f"Status: {status_code} | Path: {path}",
        )
        self.status_code = status_code
        self.path = path


class ParseError(BotError):
    """Upstream API returned a body that is not valid JSON."""

    kind = "parse"

    def __init__(self, detail: str) -> None:
        super().__init__(f"❌ Failed to parse response: {escape_html(detail)}")


class DecodeError(BotError):
    """A pagination token could not be decoded."""

    kind = "decode"

    def __init__(self, detail: str) -> None:
        super().__init__(f"❌ Invalid button data: {escape_html(detail)}")


class ValidationError(BotError):
    """Invalid command arguments or an unknown control action."""

    kind = "validation"

    def __init__(self, detail: str, usage: str | None = None) -> None:
        message = f"❌ {escape_html(detail)}"
        if usage:
            message += f"\nUsage: <code>{escape_html(usage)}</code>"
        super().__init__(message)
        self.detail = detail


class RosterStoreError(BotError):
    """The team roster file could not be written."""

    kind = "roster_store"

    def __init__(self, action: str, cause: str) -> None:
        super().__init__(f"❌ Failed to {action}: {escape_html(cause)}")
