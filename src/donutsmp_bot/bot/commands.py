"""Command schema and argument parsing.

One table describes every command: its options, their types, whether they
are required and which values they accept. The table feeds both Telegram's
command registration (``set_my_commands``) and the parser that turns the
text after a command into validated arguments.

Arguments use shell-style quoting. Positional values fill options in their
declared order; ``name=value`` assigns an option by name::

    /auction 2 "diamond sword" sort=lowest_price
    /team_add Notch SE PvP rank=owner about="Made the game"
"""

import re
import shlex
from dataclasses import dataclass
from typing import Any, Final

from aiogram.types import BotCommand

from donutsmp_bot.errors import ValidationError
from donutsmp_bot.services.endpoints import LEADERBOARD_TYPES, SORT_CHOICES

RANK_CHOICES: Final[tuple[str, ...]] = ("owner", "admin", "member")
MAX_PAGE: Final[int] = 1_000_000

_OPTION_NAME_RE = re.compile(r"[a-z_]+")


@dataclass(frozen=True)
class OptionSpec:
    """One command option.

    Attributes:
        name: Option name, also accepted as ``name=value``.
        description: Short help text.
        kind: ``str`` or ``int``.
        required: Whether the option must be given.
        choices: Accepted values (case-insensitive); empty for free text.
        default: Value used when the option is omitted.
    """

    name: str
    description: str
    kind: type = str
    required: bool = False
    choices: tuple[str, ...] = ()
    default: Any = None

    @property
    def placeholder(self) -> str:
        """``<name>`` when required, ``[name]`` otherwise."""
        return f"<{self.name}>" if self.required else f"[{self.name}]"


@dataclass(frozen=True)
class CommandSpec:
    """One bot command.

    Attributes:
        name: Command name without the leading slash.
        description: Text shown in Telegram's command menu.
        options: Options in positional order.
        slow: Whether the command calls the upstream API and is acknowledged
            with a placeholder first.
    """

    name: str
    description: str
    options: tuple[OptionSpec, ...] = ()
    slow: bool = False

    @property
    def usage(self) -> str:
        """Usage line such as ``/leaderboard <type> [page]``."""
        return " ".join([f"/{self.name}", *(o.placeholder for o in self.options)])

    def option(self, name: str) -> OptionSpec | None:
        """Look up an option by name."""
        for option in self.options:
            if option.name == name:
                return option
        return None


_PAGE = OptionSpec("page", "Page number (default 1)", kind=int, default=1)
_USER = OptionSpec("user", "Username or UUID", required=True)
_SORT = OptionSpec("sort", "Sort order", choices=SORT_CHOICES)

COMMANDS: Final[dict[str, CommandSpec]] = {
    spec.name: spec
    for spec in (
        CommandSpec("lookup", "Get player info from DonutSMP", (_USER,), slow=True),
        CommandSpec(
            "stats", "Get detailed stats/profile from DonutSMP", (_USER,), slow=True
        ),
        CommandSpec(
            "leaderboard",
            "Show DonutSMP leaderboards",
            (
                OptionSpec(
                    "type",
                    "Leaderboard type",
                    required=True,
                    choices=LEADERBOARD_TYPES,
                ),
                _PAGE,
            ),
            slow=True,
        ),
        CommandSpec(
            "auction",
            "Show auction house entries",
            (
                _PAGE,
                OptionSpec(
                    "search", "Search for specific items (e.g. diamond, sword)"
                ),
                _SORT,
            ),
            slow=True,
        ),
        CommandSpec(
            "auction_transactions",
            "Show auction house transaction history",
            (_PAGE, OptionSpec("search", "Search for specific items"), _SORT),
            slow=True,
        ),
        CommandSpec(
            "api",
            "Query any DonutSMP API path",
            (OptionSpec("path", "Path starting with /v1/", required=True),),
            slow=True,
        ),
        CommandSpec("help", "Show all available commands with descriptions"),
        CommandSpec("start", "Show all available commands with descriptions"),
        CommandSpec(
            "team_name",
            "Set or view the team name",
            (OptionSpec("name", "New team name (omit to view current)"),),
        ),
        CommandSpec(
            "team_add",
            "Add or update a team member",
            (
                OptionSpec("ign", "In-game name", required=True),
                OptionSpec("country", "Country", required=True),
                OptionSpec("skill", "Skill", required=True),
                OptionSpec("rank", "Rank", choices=RANK_CHOICES),
                OptionSpec("about", "About"),
                OptionSpec("discord", "Discord tag (e.g. Name#1234)"),
            ),
        ),
        CommandSpec(
            "team_remove",
            "Remove a team member by IGN",
            (OptionSpec("ign", "In-game name", required=True),),
        ),
        CommandSpec("team_list", "List the team and members"),
        CommandSpec("online", "Check which team members are online", slow=True),
        CommandSpec("team_help", "Show team commands and usage"),
    )
}


def _convert(spec: CommandSpec, option: OptionSpec, raw: str) -> Any:
    if option.kind is int:
        try:
            value = int(raw)
        except ValueError as e:
            raise ValidationError(
                f"'{option.name}' must be a whole number, got '{raw}'", spec.usage
            ) from e
        if option.name == "page" and value < 1:
            raise ValidationError("'page' must be 1 or greater", spec.usage)
        if option.name == "page" and value > MAX_PAGE:
            raise ValidationError(f"'page' must be {MAX_PAGE} or less", spec.usage)
        return value
    if option.choices:
        value = raw.strip().lower()
        if value not in option.choices:
            raise ValidationError(
                f"'{option.name}' must be one of: {', '.join(option.choices)}",
                spec.usage,
            )
        return value
    return raw


def parse_arguments(spec: CommandSpec, text: str | None) -> dict[str, Any]:
    """Parse the text following a command into validated arguments.

    Args:
        spec: Command being invoked.
        text: Raw argument text (may be None or empty).

    Returns:
        Mapping of every option name to its value or default.

    Raises:
        ValidationError: On unbalanced quotes, unknown or repeated options,
            too many values, a missing required option, a non-integer for an
            integer option, a value outside the choice list, or page < 1.
    """
    try:
        tokens = shlex.split(text or "")
    except ValueError as e:
        raise ValidationError(f"Could not read arguments: {e}", spec.usage) from e

    assigned: dict[str, str] = {}
    positional: list[str] = []
    for token in tokens:
        name, sep, value = token.partition("=")
        name = name.lower()
        if sep and _OPTION_NAME_RE.fullmatch(name):
            if spec.option(name) is None:
                raise ValidationError(f"Unknown option '{name}'", spec.usage)
            if name in assigned:
                raise ValidationError(f"'{name}' given more than once", spec.usage)
            assigned[name] = value
        else:
            positional.append(token)

    free = [o for o in spec.options if o.name not in assigned]
    if len(positional) > len(free):
        raise ValidationError(
            "Too many arguments (wrap values containing spaces in quotes)",
            spec.usage,
        )
    for option, value in zip(free, positional):
        assigned[option.name] = value

    arguments: dict[str, Any] = {}
    for option in spec.options:
        raw = assigned.get(option.name)
        if raw is None or raw == "":
            if option.required:
                raise ValidationError(f"Missing required '{option.name}'", spec.usage)
            arguments[option.name] = option.default
            continue
        arguments[option.name] = _convert(spec, option, raw)
    return arguments


def bot_commands() -> list[BotCommand]:
    """Commands registered with Telegram's command menu."""
    return [
        BotCommand(command=spec.name, description=spec.description)
        for spec in COMMANDS.values()
    ]
