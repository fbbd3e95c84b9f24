"""Configuration module."""

from donutsmp_bot.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
