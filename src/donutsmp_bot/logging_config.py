"""Logging configuration module for the DonutSMP bot.

Provides logging setup with a colored console banner and configuration summary.

Features:
    - Colored startup banner
    - Configuration summary display (secrets masked)
    - Banner printed once per process
    - Configurable log levels
    - File logging with rotation
    - Separate error log file
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from donutsmp_bot.config.settings import Settings

_banner_printed_by_this_process = False
_summary_printed_by_this_process = False

_LOG_DIR: Path = Path("./logs")

_LOG_FORMAT_DETAILED = (
    "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s"
)
_LOG_FORMAT_SIMPLE = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "blue": "\033[34m",
    "magenta": "\033[35m",
    "red": "\033[31m",
    "b_cyan": "\033[96m",
    "b_magenta": "\033[95m",
}

_B = COLORS["bold"]
_R = COLORS["reset"]
_BC = COLORS["b_cyan"]
_BM = COLORS["b_magenta"]

# fmt: off
BANNER = f"""
{_B}{_BM} ██████╗  ██████╗ ███╗   ██╗██╗   ██╗████████╗{_R}
{_BM} ██╔══██╗██╔═══██╗████╗  ██║██║   ██║╚══██╔══╝{_R}
{_BC} ██║  ██║██║   ██║██╔██╗ ██║██║   ██║   ██║   {_R}
{_BC} ██║  ██║██║   ██║██║╚██╗██║██║   ██║   ██║   {_R}
{_BM} ██████╔╝╚██████╔╝██║ ╚████║╚██████╔╝   ██║   {_R}
{_BM} ╚═════╝  ╚═════╝ ╚═╝  ╚═══╝ ╚═════╝    ╚═╝   {_R}
{_R}"""  # noqa: E501
# fmt: on


def _mask_secret(secret: str) -> str:
    """Mask secret for display, showing only the first and last two chars.

    Args:
        secret: Secret string to mask.

    Returns:
        Masked secret string.
    """
    if not secret:
        return "(not set)"
    if len(secret) <= 4:
        return "****"
    return f"{secret[:2]}{'*' * (len(secret) - 4)}{secret[-2:]}"


def print_banner() -> None:
    """Print the service startup banner."""
    global _banner_printed_by_this_process  # noqa: PLW0603
    if _banner_printed_by_this_process:
        return

    _banner_printed_by_this_process = True
    print(BANNER)
    print(f"{COLORS['dim']}{'─' * 72}{COLORS['reset']}")
    print(f"{COLORS['cyan']}{COLORS['bold']}  DonutSMP Telegram Bot{COLORS['reset']}")
    print(f"{COLORS['dim']}{'─' * 72}{COLORS['reset']}\n")


def print_config_summary(settings: "Settings") -> None:
    """Print a formatted configuration summary organized by categories.

    Args:
        settings: Settings instance with loaded configuration.
    """
    global _summary_printed_by_this_process  # noqa: PLW0603
    if _summary_printed_by_this_process:
        return
    _summary_printed_by_this_process = True

    c = COLORS

    def _line(label: str, value: str, color: str = "cyan") -> None:
        print(f"  {c['dim']}│{c['reset']} {label:<28} {c[color]}{value}{c['reset']}")

    def _header(title: str, color: str) -> None:
        print(f"\n  {c[color]}▶ {title}{c['reset']}")
        print(f"  {c['dim']}├{'─' * 50}{c['reset']}")

    _header("DonutSMP API", "magenta")
    _line("Base URL", settings.donutsmp_api_base_url)
    _line("API Key", _mask_secret(settings.donutsmp_api_key.get_secret_value()))
    _line("Interactive Timeout", f"{settings.api_timeout_seconds:g}s")
    _line("Polling Timeout", f"{settings.poll_timeout_seconds:g}s")

    _header("Webhook Configuration", "green")
    _line("Webhook URL", settings.webhook_url)
    _line("Secret Token", _mask_secret(settings.webhook_secret.get_secret_value()))
    _line("Drop Pending Updates", str(settings.webhook_drop_pending_updates).lower())

    _header("Team Roster", "blue")
    _line("Store Path", settings.team_store_path)
    _line(
        "Online Poster",
        (
            f"chat {settings.online_chat_id} every {settings.online_interval_minutes}m"
            if settings.online_chat_id is not None
            else "disabled"
        ),
        "green" if settings.online_chat_id is not None else "yellow",
    )

    _header("Server Configuration", "cyan")
    _line("Host", settings.server_host)
    _line("Port", str(settings.server_port))
    _line(
        "Environment",
        settings.environment,
        "green" if settings.environment == "production" else "yellow",
    )
    _line(
        "Debug Mode", str(settings.debug).lower(), "red" if settings.debug else "green"
    )

    _header("Logging Configuration", "yellow")
    _line("Level", settings.log_level, "green")
    _line("Log to File", str(settings.log_to_file).lower())
    _line("Directory", settings.log_dir)

    print(f"\n{c['dim']}{'─' * 72}{c['reset']}")
    print(
        f"  {c['green']}{c['bold']}✓ Service ready{c['reset']} "
        f"{c['dim']}│{c['reset']} "
        f"Health: {c['cyan']}http://localhost:{settings.server_port}/health{c['reset']}"
    )
    print(f"{c['dim']}{'─' * 72}{c['reset']}\n")


def setup_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO",
    settings: "Settings | None" = None,
) -> logging.Logger:
    """Configure application logging with console and optional file handlers.

    Args:
        level: The logging level to use.
        settings: Optional Settings instance for file logging configuration.

    Returns:
        Configured logger instance.
    """
    global _LOG_DIR  # noqa: PLW0603

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level, logging.INFO))
    console_handler.setFormatter(
        logging.Formatter(_LOG_FORMAT_SIMPLE, datefmt=_DATE_FORMAT)
    )
    root_logger.addHandler(console_handler)

    if settings and settings.log_to_file:
        _LOG_DIR = Path(settings.log_dir)
        _LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_formatter = logging.Formatter(_LOG_FORMAT_DETAILED, datefmt=_DATE_FORMAT)
        max_bytes = settings.log_max_size_mb * 1024 * 1024

        file_handler = logging.handlers.RotatingFileHandler(
            _LOG_DIR / "donutsmp_bot.log",
            maxBytes=max_bytes,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            _LOG_DIR / "donutsmp_bot.error.log",
            maxBytes=max_bytes // 2,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        root_logger.addHandler(error_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("aiogram").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)

    logger = logging.getLogger("donutsmp_bot")

    print_banner()
    if settings:
        print_config_summary(settings)

    logger.info("Logging configured with level: %s", level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name.

    Args:
        name: The name for the logger.

    Returns:
        Logger instance.
    """
    return logging.getLogger(f"donutsmp_bot.{name}")
