"""Endpoint table and per-request context.

Each endpoint family the bot can query is described once by an immutable
``EndpointDescriptor``. The descriptor carries the normalizer kind used to
present its payload, so the presentation path is fixed when the request is
issued rather than re-derived from the URL afterwards.

Example:
    from donutsmp_bot.services.endpoints import EndpointFamily, QueryParams, build_request

    context = build_request(
        EndpointFamily.AUCTION,
        params=QueryParams(page=2, search="diamond sword"),
    )
    context.method         # "POST"
    context.resolved_path  # "/v1/auction/list/2"
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Final
from urllib.parse import quote

LEADERBOARD_TYPES: Final[tuple[str, ...]] = (
    "money",
    "kills",
    "deaths",
    "brokenblocks",
    "placedblocks",
    "mobskilled",
    "playtime",
    "sell",
    "shards",
    "shop",
)

SORT_CHOICES: Final[tuple[str, ...]] = (
    "lowest_price",
    "highest_price",
    "recently_listed",
    "last_listed",
)


class NormalizerKind(str, Enum):
    """Identifies the normalizer that presents a payload."""

    LOOKUP = "lookup"
    STATS = "stats"
    LEADERBOARD = "leaderboard"
    AUCTION = "auction"
    TRANSACTIONS = "transactions"
    ONLINE = "online"
    SERVER = "server"
    RAW = "raw"


class EndpointFamily(str, Enum):
    """Endpoint families reachable from commands.

    The values double as the family code carried in pagination buttons.
    """

    LOOKUP = "lookup"
    STATS = "stats"
    LEADERBOARD = "lb"
    AUCTION = "auc"
    TRANSACTIONS = "txn"


@dataclass(frozen=True)
class EndpointDescriptor:
    """Immutable description of one upstream endpoint.

    Attributes:
        path_template: Path with ``{name}``, ``{type}`` or ``{page}`` fields.
        http_method: Method used when no filters are present.
        friendly_title: Base title; may reference ``{name}``.
        normalizer_id: Normalizer presenting the payload.
        paged: Whether responses get prev/next controls.
        filterable: Whether search/sort filters switch the call to POST.
    """

    path_template: str
    http_method: str
    friendly_title: str
    normalizer_id: NormalizerKind
    paged: bool = False
    filterable: bool = False


ENDPOINTS: Final[MappingProxyType[EndpointFamily, EndpointDescriptor]] = (
    MappingProxyType(
        {
            EndpointFamily.LOOKUP: EndpointDescriptor(
                path_template="/v1/lookup/{name}",
                http_method="GET",
                friendly_title="🔍 Player Lookup: {name}",
                normalizer_id=NormalizerKind.LOOKUP,
            ),
            EndpointFamily.STATS: EndpointDescriptor(
                path_template="/v1/stats/{name}",
                http_method="GET",
                friendly_title="📊 Player Stats: {name}",
                normalizer_id=NormalizerKind.STATS,
            ),
            EndpointFamily.LEADERBOARD: EndpointDescriptor(
                path_template="/v1/leaderboards/{type}/{page}",
                http_method="GET",
                friendly_title="🏆 Leaderboard",
                normalizer_id=NormalizerKind.LEADERBOARD,
                paged=True,
            ),
            EndpointFamily.AUCTION: EndpointDescriptor(
                path_template="/v1/auction/list/{page}",
                http_method="GET",
                friendly_title="🏪 Auction House",
                normalizer_id=NormalizerKind.AUCTION,
                paged=True,
                filterable=True,
            ),
            EndpointFamily.TRANSACTIONS: EndpointDescriptor(
                path_template="/v1/auction/transactions/{page}",
                http_method="GET",
                friendly_title="📜 Auction Transactions",
                normalizer_id=NormalizerKind.TRANSACTIONS,
                paged=True,
                filterable=True,
            ),
        }
    )
)


@dataclass(frozen=True)
class QueryParams:
    """User-supplied query parameters of one request."""

    page: int = 1
    search: str | None = None
    sort: str | None = None

    @property
    def has_filters(self) -> bool:
        """True when a search term or a sort order is set."""
        return bool(self.search) or bool(self.sort)


@dataclass(frozen=True)
class RequestContext:
    """Everything needed to issue one request and present its answer.

    Attributes:
        raw_query_params: Page and filters the request was built from.
        resolved_path: Concrete request path.
        method: HTTP method.
        normalizer: Normalizer selected for the payload.
        title: Title of the rendered message.
        family: Endpoint family, or None for ad-hoc paths.
        subject: Player name or leaderboard type the path was built with.
        body: JSON body for POST requests.
    """

    raw_query_params: QueryParams
    resolved_path: str
    method: str
    normalizer: NormalizerKind
    title: str
    family: EndpointFamily | None = None
    subject: str | None = None
    body: dict[str, Any] | None = None

    @property
    def page(self) -> int:
        """Current page number."""
        return self.raw_query_params.page


def _segment(value: str) -> str:
    return quote(value, safe="")


def build_request(
    family: EndpointFamily,
    subject: str | None = None,
    params: QueryParams | None = None,
) -> RequestContext:
    """Resolve an endpoint family into a concrete request.

    Path segments derived from user input are percent-encoded. Filterable
    endpoints switch from GET to POST with a ``{search?, sort?}`` JSON body
    when any filter is present.

    Args:
        family: Endpoint family to call.
        subject: Player name (lookup, stats) or leaderboard type.
        params: Page and filters.

    Returns:
        The request context.
    """
    descriptor = ENDPOINTS[family]
    params = params or QueryParams()
    subject_segment = _segment(subject or "")
    path = descriptor.path_template.format(
        name=subject_segment,
        type=subject_segment,
        page=params.page,
    )

    method = descriptor.http_method
    body: dict[str, Any] | None = None
    if descriptor.filterable and params.has_filters:
        method = "POST"
        body = {}
        if params.search:
            body["search"] = params.search
        if params.sort:
            body["sort"] = params.sort

    return RequestContext(
        raw_query_params=params,
        resolved_path=path,
        method=method,
        normalizer=descriptor.normalizer_id,
        title=descriptor.friendly_title.format(name=subject or ""),
        family=family,
        subject=subject,
        body=body,
    )
