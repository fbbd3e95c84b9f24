"""Interaction router: one inbound event in, one rendered answer out.

The router is platform neutral. It receives either a command invocation
(command name plus raw argument text) or a control activation (callback
data of a pagination button) and writes its answer to a ``MessageSink``.

Flow for a command:
    parse arguments -> acknowledge (slow commands) -> build request context
    -> API client -> normalizer -> renderer -> replace the acknowledgement

Flow for a control activation:
    decode token -> acknowledge -> rebuild the request for the target page
    -> API client -> normalizer -> renderer -> edit the original message

Every ``BotError`` raised along the way is recovered here and rendered as a
single error message, so no inbound event is dropped silently.

Example:
    router = InteractionRouter(client, TeamStore("team_data.json"))
    await router.handle(CommandInvocation("stats", "Notch"), sink)
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Final, Protocol

from donutsmp_bot.bot.commands import COMMANDS, parse_arguments
from donutsmp_bot.callbacks.callback_data import PageFilters, decode_token
from donutsmp_bot.components.pagination_keyboard import build_page_keyboard
from donutsmp_bot.components.presentation import (
    Attachment,
    RenderedMessage,
    render,
    render_error,
    render_failure,
    render_raw_json,
    render_text,
)
from donutsmp_bot.errors import (
    BotError,
    ParseError,
    TransportError,
    UpstreamHttpError,
    ValidationError,
)
from donutsmp_bot.logging_config import get_logger
from donutsmp_bot.services.api_client import (
    DonutApiClient,
    MalformedResponse,
    PlayerOffline,
    Success,
    TransportFailure,
    UpstreamError,
)
from donutsmp_bot.services.endpoints import (
    ENDPOINTS,
    EndpointFamily,
    NormalizerKind,
    QueryParams,
    RequestContext,
    build_request,
)
from donutsmp_bot.services.normalizers import (
    NormalizedFieldSet,
    normalize,
    resolve_normalizer,
)
from donutsmp_bot.services.online_status import lookup_members
from donutsmp_bot.services.team_store import Rank, TeamMember, TeamStore
from donutsmp_bot.templates import TemplateManager, templates
from donutsmp_bot.utils.formatting import escape_html

logger = get_logger("interaction_router")

PROCESSING_TEXT: Final[str] = "⏳ Processing..."
LOADING_PAGE_TEXT: Final[str] = "⏳ Loading page {page}..."
PLAYER_OFFLINE_TEXT: Final[str] = "🔴 Player is offline"
API_PATH_PREFIX: Final[str] = "/v1/"


@dataclass(frozen=True)
class CommandInvocation:
    """A user-issued command.

    Attributes:
        name: Command name without the slash.
        raw_args: Text following the command, if any.
    """

    name: str
    raw_args: str | None = None


@dataclass(frozen=True)
class ControlActivation:
    """A press on a previously rendered pagination button."""

    data: str


InteractionEvent = CommandInvocation | ControlActivation


class MessageSink(Protocol):
    """Outbound side of one interaction."""

    async def acknowledge(self, text: str) -> None:
        """Show an immediate placeholder."""

    async def edit_acknowledgement(self, message: RenderedMessage) -> None:
        """Replace the placeholder with the final message."""

    async def send(self, message: RenderedMessage) -> None:
        """Send a new message."""

    async def edit(self, message: RenderedMessage) -> None:
        """Edit the message whose control was activated."""

    async def upload(self, attachment: Attachment) -> None:
        """Upload a document."""


Handler = Callable[[dict[str, Any]], Awaitable[RenderedMessage]]


def _adhoc_context(path: str) -> RequestContext:
    """Build the context of a generic /api request.

    The page and leaderboard type are read back from the path so that
    normalizers number entries the same way the dedicated commands do.
    """
    segments = [s for s in path.split("/") if s]
    page = int(segments[-1]) if segments and segments[-1].isdigit() else 1
    subject = None
    if "leaderboards" in segments:
        index = segments.index("leaderboards")
        if index + 1 < len(segments):
            subject = segments[index + 1]
    return RequestContext(
        raw_query_params=QueryParams(page=max(page, 1)),
        resolved_path=path,
        method="GET",
        normalizer=resolve_normalizer(path),
        title=f"🌐 DonutSMP API: {path}",
        subject=subject,
    )


def _paged_context(
    family: EndpointFamily, page: int, filters: PageFilters
) -> RequestContext:
    if family is EndpointFamily.LEADERBOARD:
        return build_request(family, subject=filters.board, params=QueryParams(page))
    return build_request(
        family,
        params=QueryParams(page=page, search=filters.search, sort=filters.sort),
    )


def _filters_of(context: RequestContext) -> PageFilters:
    params = context.raw_query_params
    board = context.subject if context.family is EndpointFamily.LEADERBOARD else None
    return PageFilters(search=params.search, sort=params.sort, board=board)


class InteractionRouter:
    """Routes interaction events to handlers and emits their answers.

    Attributes:
        poll_timeout: Per-lookup timeout of /online in seconds.
    """

    def __init__(
        self,
        client: DonutApiClient,
        store: TeamStore,
        poll_timeout: float = 10.0,
        template_manager: TemplateManager = templates,
    ) -> None:
        """Initialize the router.

        Args:
            client: API client shared across handlers.
            store: Team roster store.
            poll_timeout: Per-lookup timeout of /online in seconds.
            template_manager: Renderer for help pages and roster views.
        """
        self._client = client
        self._store = store
        self.poll_timeout = poll_timeout
        self._templates = template_manager
        self._handlers: dict[str, Handler] = {
            "lookup": self._lookup,
            "stats": self._stats,
            "leaderboard": self._leaderboard,
            "auction": self._auction,
            "auction_transactions": self._transactions,
            "api": self._api,
            "help": self._help,
            "start": self._help,
            "team_name": self._team_name,
            "team_add": self._team_add,
            "team_remove": self._team_remove,
            "team_list": self._team_list,
            "online": self._online,
            "team_help": self._team_help,
        }

    async def handle(self, event: InteractionEvent, sink: MessageSink) -> None:
        """Serve one interaction event.

        Args:
            event: Command invocation or control activation.
            sink: Where the answer is written.
        """
        if isinstance(event, ControlActivation):
            await self._handle_control(event, sink)
        else:
            await self._handle_command(event, sink)

    async def _handle_command(self, event: CommandInvocation, sink: MessageSink) -> None:
        spec = COMMANDS.get(event.name)
        try:
            if spec is None:
                raise ValidationError(f"Unknown command: /{event.name}")
            arguments = parse_arguments(spec, event.raw_args)
        except ValidationError as e:
            self._log_recovered(event.name, e)
            await self._emit(sink, sink.send, render_error(e))
            return

        handler = self._handlers[spec.name]
        if spec.slow:
            await sink.acknowledge(PROCESSING_TEXT)
            message = await self._run(spec.name, handler(arguments))
            await self._emit(sink, sink.edit_acknowledgement, message)
        else:
            message = await self._run(spec.name, handler(arguments))
            await self._emit(sink, sink.send, message)

    async def _handle_control(self, event: ControlActivation, sink: MessageSink) -> None:
        message = await self._run("control", self._control(event, sink))
        await self._emit(sink, sink.edit, message)

    async def _run(self, label: str, work: Awaitable[RenderedMessage]) -> RenderedMessage:
        """Await a handler and turn any failure into an error message."""
        try:
            return await work
        except BotError as e:
            self._log_recovered(label, e)
            return render_error(e)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected failure while handling %s", label)
            return render_failure()

    @staticmethod
    def _log_recovered(label: str, error: BotError) -> None:
        logger.warning("Interaction failed | %s | kind=%s | %s", label, error.kind, error)

    @staticmethod
    async def _emit(
        sink: MessageSink,
        deliver: Callable[[RenderedMessage], Awaitable[None]],
        message: RenderedMessage,
    ) -> None:
        await deliver(message)
        if message.attachment is not None:
            await sink.upload(message.attachment)

    async def _fetch(self, context: RequestContext) -> Any:
        """Call the API and return the decoded body.

        Returns:
            The JSON body, or a field set carrying ``PLAYER_OFFLINE_TEXT``
            when a lookup found the player offline.

        Raises:
            TransportError: Network failure or timeout.
            UpstreamHttpError: Non-2xx status.
            ParseError: Body is not valid JSON.
        """
        outcome = await self._client.call(
            context.method, context.resolved_path, context.body
        )
        if isinstance(outcome, Success):
            return outcome.body
        if isinstance(outcome, PlayerOffline):
            return NormalizedFieldSet(body=PLAYER_OFFLINE_TEXT)
        if isinstance(outcome, UpstreamError):
            raise UpstreamHttpError(outcome.status_code, outcome.path)
        if isinstance(outcome, TransportFailure):
            raise TransportError(outcome.cause)
        if isinstance(outcome, MalformedResponse):
            raise ParseError(outcome.detail)
        raise TypeError(f"Unknown outcome: {outcome!r}")

    async def _present(self, context: RequestContext) -> RenderedMessage:
        """Run one request through the API, normalizer and renderer."""
        body = await self._fetch(context)
        if isinstance(body, NormalizedFieldSet):
            return render(context.title, body, path=context.resolved_path)

        fields = normalize(context.normalizer, body, context)
        if fields is None:
            return render_raw_json(context.title, body, context.resolved_path)

        markup = None
        if context.family is not None and ENDPOINTS[context.family].paged:
            if not fields.is_error:
                try:
                    markup = build_page_keyboard(
                        context.family, context.page, _filters_of(context)
                    )
                except ValidationError as e:
                    logger.warning(
                        "Navigation omitted | page=%d | %s", context.page, e
                    )
        return render(context.title, fields, markup, path=context.resolved_path)

    async def _control(
        self, event: ControlActivation, sink: MessageSink
    ) -> RenderedMessage:
        token = decode_token(event.data)
        page = token.target_page
        await sink.acknowledge(LOADING_PAGE_TEXT.format(page=page))
        logger.info(
            "Control activation | family=%s | action=%s | page=%d -> %d",
            token.family.value,
            token.action,
            token.page,
            page,
        )
        return await self._present(_paged_context(token.family, page, token.filters))

    # Upstream commands

    async def _lookup(self, args: dict[str, Any]) -> RenderedMessage:
        return await self._present(
            build_request(EndpointFamily.LOOKUP, subject=args["user"])
        )

    async def _stats(self, args: dict[str, Any]) -> RenderedMessage:
        return await self._present(
            build_request(EndpointFamily.STATS, subject=args["user"])
        )

    async def _leaderboard(self, args: dict[str, Any]) -> RenderedMessage:
        filters = PageFilters(board=args["type"])
        return await self._present(
            _paged_context(EndpointFamily.LEADERBOARD, args["page"], filters)
        )

    async def _auction(self, args: dict[str, Any]) -> RenderedMessage:
        filters = PageFilters(search=args["search"], sort=args["sort"])
        return await self._present(
            _paged_context(EndpointFamily.AUCTION, args["page"], filters)
        )

    async def _transactions(self, args: dict[str, Any]) -> RenderedMessage:
        filters = PageFilters(search=args["search"], sort=args["sort"])
        return await self._present(
            _paged_context(EndpointFamily.TRANSACTIONS, args["page"], filters)
        )

    async def _api(self, args: dict[str, Any]) -> RenderedMessage:
        path = args["path"].strip()
        if not path.startswith(API_PATH_PREFIX) or any(c.isspace() for c in path):
            raise ValidationError(
                f"Path must start with {API_PATH_PREFIX} and contain no spaces",
                COMMANDS["api"].usage,
            )
        context = _adhoc_context(path)
        if context.normalizer is NormalizerKind.RAW:
            body = await self._fetch(context)
            if isinstance(body, NormalizedFieldSet):
                return render(context.title, body, path=path)
            return render_raw_json(context.title, body, path)
        return await self._present(context)

    # Local commands

    async def _help(self, args: dict[str, Any]) -> RenderedMessage:
        return render_text(self._templates.render_help())

    async def _team_help(self, args: dict[str, Any]) -> RenderedMessage:
        return render_text(self._templates.render_team_help())

    async def _team_name(self, args: dict[str, Any]) -> RenderedMessage:
        name = (args["name"] or "").strip()
        if not name:
            team = self._store.load()
            return render_text(
                "<b>👥 Team Name</b>\n\n"
                f"Current team name: <b>{escape_html(team.name)}</b>"
            )
        team = self._store.set_name(name)
        logger.info("Team renamed to %r", team.name)
        return render_text(
            "<b>👥 Team Name Updated</b>\n\n"
            f"Team name set to <b>{escape_html(team.name)}</b>"
        )

    async def _team_add(self, args: dict[str, Any]) -> RenderedMessage:
        member = TeamMember(
            ign=args["ign"].strip(),
            country=args["country"].strip(),
            skill=args["skill"].strip(),
            about=(args["about"] or "").strip(),
            discord_tag=(args["discord"] or "").strip(),
            rank=Rank.parse(args["rank"]),
        )
        if not member.ign:
            raise ValidationError("'ign' must not be empty", COMMANDS["team_add"].usage)
        _, updated = self._store.upsert_member(member)
        verb = "Updated" if updated else "Added"
        logger.info("%s team member %s (%s)", verb, member.ign, member.rank.value)
        return render_text(
            "<b>✅ Team Member Saved</b>\n\n"
            f"{verb} <b>{escape_html(member.ign)}</b> as "
            f"{member.rank.emoji} {member.rank.value}."
        )

    async def _team_remove(self, args: dict[str, Any]) -> RenderedMessage:
        ign = args["ign"].strip()
        _, removed = self._store.remove_member(ign)
        if removed:
            logger.info("Removed team member %s", ign)
            text = f"Removed <b>{escape_html(ign)}</b> from the team."
        else:
            text = f"No team member named <b>{escape_html(ign)}</b> was found."
        return render_text(f"<b>🗑️ Team Member Removal</b>\n\n{text}")

    async def _team_list(self, args: dict[str, Any]) -> RenderedMessage:
        return render_text(self._templates.render_roster(self._store.load()))

    async def _online(self, args: dict[str, Any]) -> RenderedMessage:
        team = self._store.load()
        presence = await lookup_members(self._client, team.members, self.poll_timeout)
        return render_text(self._templates.render_online(team, presence))
