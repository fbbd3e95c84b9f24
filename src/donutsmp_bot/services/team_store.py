"""Persisted team roster.

The roster is a single JSON document read and written wholesale on every
access; nothing is cached between calls. Concurrent writers are
last-writer-wins.

Example:
    from donutsmp_bot.services.team_store import TeamMember, TeamStore

    store = TeamStore("team_data.json")
    team, updated = store.upsert_member(
        TeamMember(ign="Notch", country="SE", skill="PvP")
    )
"""

from enum import Enum
from pathlib import Path
from typing import Final

from pydantic import BaseModel, Field, ValidationError

from donutsmp_bot.errors import RosterStoreError
from donutsmp_bot.logging_config import get_logger

logger = get_logger("team_store")

DEFAULT_TEAM_NAME: Final[str] = "My Team"

_COUNTRY_CODES: Final[dict[str, str]] = {
    "belgium": "BE",
    "belgie": "BE",
    "belgië": "BE",
    "netherlands": "NL",
    "the netherlands": "NL",
    "holland": "NL",
    "nederland": "NL",
    "united kingdom": "GB",
    "uk": "GB",
    "great britain": "GB",
    "england": "GB",
    "scotland": "GB",
    "wales": "GB",
    "northern ireland": "GB",
    "united states": "US",
    "usa": "US",
    "us": "US",
    "america": "US",
    "germany": "DE",
    "deutschland": "DE",
    "france": "FR",
    "spain": "ES",
    "españa": "ES",
    "italy": "IT",
    "italia": "IT",
    "canada": "CA",
    "australia": "AU",
    "ireland": "IE",
    "poland": "PL",
    "portugal": "PT",
    "sweden": "SE",
    "norway": "NO",
    "denmark": "DK",
    "finland": "FI",
    "luxembourg": "LU",
    "switzerland": "CH",
    "austria": "AT",
}


class Rank(str, Enum):
    """Team rank, ordered Owner > Admin > Member."""

    OWNER = "Owner"
    ADMIN = "Admin"
    MEMBER = "Member"

    @classmethod
    def parse(cls, value: str | None) -> "Rank":
        """Parse a rank case-insensitively; anything unknown is Member."""
        normalized = (value or "").strip().lower()
        if normalized == "owner":
            return cls.OWNER
        if normalized == "admin":
            return cls.ADMIN
        return cls.MEMBER

    @property
    def sort_key(self) -> int:
        """0 for Owner, 1 for Admin, 2 for Member."""
        return list(Rank).index(self)

    @property
    def emoji(self) -> str:
        """Group header emoji."""
        return {Rank.OWNER: "👑", Rank.ADMIN: "🛡️", Rank.MEMBER: "👤"}[self]


class TeamMember(BaseModel):
    """One tracked player."""

    ign: str
    country: str = ""
    skill: str = ""
    about: str = ""
    discord_tag: str = ""
    rank: Rank = Rank.MEMBER


class Team(BaseModel):
    """Team name and members."""

    name: str = DEFAULT_TEAM_NAME
    members: list[TeamMember] = Field(default_factory=list)

    def sorted_members(self) -> list[TeamMember]:
        """Members sorted by rank, then by IGN case-insensitively."""
        return sorted(self.members, key=lambda m: (m.rank.sort_key, m.ign.lower()))


def _flag_from_code(code: str) -> str | None:
    if len(code) != 2 or not code.isascii() or not code.isalpha():
        return None
    return "".join(chr(0x1F1E6 + ord(ch) - ord("A")) for ch in code.upper())


def country_flag(country: str) -> str:
    """Flag emoji for an ISO 3166 alpha-2 code or a known country name.

    Args:
        country: "BE", "be", "Belgium", ...

    Returns:
        The regional-indicator flag, or "" when the country is unknown.
    """
    trimmed = country.strip()
    if not trimmed:
        return ""
    flag = _flag_from_code(trimmed)
    if flag:
        return flag
    code = _COUNTRY_CODES.get(trimmed.lower())
    if code is None:
        return ""
    return _flag_from_code(code) or ""


class TeamStore:
    """JSON file backed roster.

    Attributes:
        path: Location of the roster file.
    """

    def __init__(self, path: str | Path) -> None:
        """Initialize the store.

        Args:
            path: Roster file location; created on first write.
        """
        self.path = Path(path)

    def load(self) -> Team:
        """Read the roster.

        Returns:
            The stored team, or an empty default team when the file is
            missing or unreadable.
        """
        if not self.path.exists():
            return Team()
        try:
            return Team.model_validate_json(self.path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.warning("Ignoring unreadable roster file %s: %s", self.path, e)
            return Team()

    def save(self, team: Team, action: str = "save team") -> None:
        """Write the roster.

        Raises:
            RosterStoreError: When the file cannot be written.
        """
        try:
            if self.path.parent != Path("."):
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(team.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write roster file %s: %s", self.path, e)
            raise RosterStoreError(action, str(e)) from e

    def set_name(self, name: str) -> Team:
        """Rename the team."""
        team = self.load()
        team.name = name.strip()
        self.save(team, "save")
        return team

    def upsert_member(self, member: TeamMember) -> tuple[Team, bool]:
        """Add a member or replace the one with the same IGN.

        Returns:
            The updated team and True when an existing member was replaced.
        """
        team = self.load()
        key = member.ign.lower()
        for index, existing in enumerate(team.members):
            if existing.ign.lower() == key:
                team.members[index] = member
                self.save(team, "save member")
                return team, True
        team.members.append(member)
        self.save(team, "save member")
        return team, False

    def remove_member(self, ign: str) -> tuple[Team, bool]:
        """Remove the member with this IGN, matched case-insensitively.

        Returns:
            The updated team and True when a member was removed.
        """
        team = self.load()
        key = ign.lower()
        remaining = [m for m in team.members if m.ign.lower() != key]
        removed = len(remaining) != len(team.members)
        team.members = remaining
        self.save(team, "remove member")
        return team, removed
