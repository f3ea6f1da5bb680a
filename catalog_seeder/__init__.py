"""Catalog Seeder.

Resilient acquisition pipeline that collects Steam app ids from several
catalog sources, fetches per-app details and upserts them into the
`steam_games` table, resumable through an on-disk checkpoint.
"""

__version__ = "0.4.0"
