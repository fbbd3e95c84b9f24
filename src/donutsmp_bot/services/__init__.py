"""Services module.

Note: InteractionRouter should be imported directly from
donutsmp_bot.services.interaction_router to avoid circular imports.
"""

from donutsmp_bot.services.api_client import DonutApiClient
from donutsmp_bot.services.endpoints import (
    EndpointFamily,
    QueryParams,
    RequestContext,
    build_request,
)
from donutsmp_bot.services.team_store import Team, TeamMember, TeamStore

__all__ = [
    "DonutApiClient",
    "EndpointFamily",
    "QueryParams",
    "RequestContext",
    "Team",
    "TeamMember",
    "TeamStore",
    "build_request",
]
