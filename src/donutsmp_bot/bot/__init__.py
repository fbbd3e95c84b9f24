"""Telegram binding: command schema, message sinks and handlers."""
