"""Template management for message rendering.

This module provides a centralized template manager using Jinja2 for the
pre-rendered HTML messages of the bot: help pages, the team roster and the
team online status.

Example:
    from donutsmp_bot.templates import templates

    # Render the command overview
    html = templates.render_help()

    # Render the roster with online markers
    html = templates.render_roster(team, presence=presence)
"""

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from jinja2 import Environment, FileSystemLoader, select_autoescape

from donutsmp_bot.bot.commands import COMMANDS, RANK_CHOICES
from donutsmp_bot.services.team_store import Rank, Team, TeamMember, country_flag
from donutsmp_bot.utils.formatting import escape_html

if TYPE_CHECKING:
    from donutsmp_bot.services.online_status import MemberPresence

# Template directory relative to this module
TEMPLATES_DIR = Path(__file__).parent

HELP_SECTIONS: Final[tuple[tuple[str, tuple[str, ...]], ...]] = (
    ("👤 Player", ("lookup", "stats")),
    ("🏆 Leaderboard", ("leaderboard",)),
    ("🏪 Auction", ("auction", "auction_transactions")),
    ("👥 Team", ("team_list", "online", "team_help")),
    ("🔧 Other", ("api", "help")),
)

TEAM_COMMANDS: Final[tuple[str, ...]] = (
    "team_name",
    "team_add",
    "team_remove",
    "team_list",
    "online",
)


def _status_suffix(presence: "MemberPresence | None") -> str:
    if presence is None or not presence.online:
        return "    [ 🔴 ]"
    if presence.location:
        return f"    [ 🟢 - {escape_html(presence.location)} ]"
    return "    [ 🟢 ]"


def _country(member: TeamMember) -> str:
    country = member.country.strip()
    if not country:
        return "-"
    flag = country_flag(country)
    return f"{country} ({flag})" if flag else country


class TemplateManager:
    """Jinja2 template manager for message rendering.

    Attributes:
        env: The Jinja2 Environment instance.
    """

    def __init__(self) -> None:
        """Initialize the template manager with Jinja2 environment."""
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

        # Register custom filters
        self.env.filters["escape_html"] = escape_html

    def render(self, template_name: str, **context: Any) -> str:
        """Render a template with the given context.

        Args:
            template_name: Path to template file (e.g., 'messages/help.j2').
            **context: Variables to pass to the template.

        Returns:
            Rendered template string without surrounding whitespace.

        Raises:
            jinja2.TemplateNotFound: If template file doesn't exist.
        """
        template = self.env.get_template(template_name)
        return template.render(**context).strip()

    def render_help(self) -> str:
        """Render the overview shown by /help and /start."""
        return self.render(
            "messages/help.j2", sections=HELP_SECTIONS, commands=COMMANDS
        )

    def render_team_help(self) -> str:
        """Render the team command reference."""
        return self.render(
            "messages/team_help.j2",
            names=TEAM_COMMANDS,
            commands=COMMANDS,
            ranks=RANK_CHOICES,
        )

    def render_roster(
        self,
        team: Team,
        presence: "Mapping[str, MemberPresence] | None" = None,
        footer: str | None = None,
    ) -> str:
        """Render the roster grouped by rank.

        Args:
            team: Team to render.
            presence: Online state keyed by IGN; when given, every member
                title carries an online marker.
            footer: Optional italic footer line.

        Returns:
            Roster HTML.
        """
        groups = []
        members = team.sorted_members()
        for rank in Rank:
            ranked = [m for m in members if m.rank is rank]
            if not ranked:
                continue
            views = []
            for member in ranked:
                title = escape_html(member.ign)
                if presence is not None:
                    title += _status_suffix(presence.get(member.ign))
                views.append(
                    {
                        "title": title,
                        "country": _country(member),
                        "skill": member.skill or "-",
                        "discord": member.discord_tag or "-",
                        "about": member.about,
                    }
                )
            groups.append(
                {
                    "header": f"{rank.emoji} {rank.value} ({len(ranked)})",
                    "members": views,
                }
            )

        return self.render(
            "messages/team_roster.j2",
            team_name=team.name,
            groups=groups,
            footer=footer,
        )

    def render_online(
        self, team: Team, presence: "Mapping[str, MemberPresence]"
    ) -> str:
        """Render the one-line-per-member online summary of /online."""
        members = []
        for member in team.sorted_members():
            state = presence.get(member.ign)
            members.append(
                {"ign": member.ign, "online": state is not None and state.online}
            )
        return self.render(
            "messages/online_status.j2", team_name=team.name, members=members
        )


# Singleton instance for global access
templates = TemplateManager()

__all__ = ["templates", "TemplateManager", "HELP_SECTIONS", "TEAM_COMMANDS"]
