"""
Database models for the URL shortener.

Each record embeds its own analytics document (clicks by date, OS, device,
unique users); there is no separate hits table.
"""

from .url import URLRecord, empty_analytics

__all__ = ["URLRecord", "empty_analytics"]
