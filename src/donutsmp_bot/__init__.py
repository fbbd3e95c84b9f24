"""DonutSMP Telegram bot.

Webhook-driven Telegram bot that queries the DonutSMP REST API (player
lookups, stats, leaderboards, auction house) and manages a small team roster
with a periodic online status post.
"""

__version__ = "0.1.0"
