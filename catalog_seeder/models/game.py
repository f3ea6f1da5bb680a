"""Catalog payload schemas and the normalized game record.

SteamSpy and the Steam Store return loosely typed JSON. Every payload is
validated here before the rest of the pipeline sees it:

- ``SteamSpyListItem`` / ``SteamSpyAppDetails``: SteamSpy responses
- ``SteamStoreAppDetails``: Steam Store appdetails (release status only)
- ``GameRecord``: immutable row written to the ``steam_games`` table
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_OWNERS_SEPARATOR = re.compile(r"\s*\.\.\s*")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class SteamSpyListItem(BaseModel):
    """One entry of a SteamSpy list response (top100*, genre, tag, all)"""

    model_config = ConfigDict(extra="ignore")

    appid: int
    name: Optional[str] = None
    owners: Optional[str] = None
    ccu: Optional[int] = None
    score_rank: Optional[str] = None

    @field_validator("score_rank", mode="before")
    @classmethod
    def coerce_score_rank(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return str(v) if v is not None else None


class SteamSpyAppDetails(BaseModel):
    """SteamSpy ``request=appdetails`` response"""

    model_config = ConfigDict(extra="ignore")

    appid: int = Field(..., gt=0)
    name: Optional[str] = None
    developer: Optional[str] = None
    publisher: Optional[str] = None
    score_rank: Optional[str] = None
    owners: Optional[str] = None
    average_forever: Optional[int] = None
    average_2weeks: Optional[int] = None
    median_forever: Optional[int] = None
    median_2weeks: Optional[int] = None
    ccu: Optional[int] = None
    price: Optional[int] = None  # cents, sent as a numeric string
    initialprice: Optional[int] = None
    discount: Optional[int] = None  # percent
    languages: Optional[str] = None
    genre: Optional[str] = None
    tags: Dict[str, int] = Field(default_factory=dict)
    positive: Optional[int] = None
    negative: Optional[int] = None
    userscore: Optional[int] = None

    @field_validator(
        "developer",
        "publisher",
        "owners",
        "languages",
        "genre",
        "price",
        "initialprice",
        "discount",
        mode="before",
    )
    @classmethod
    def blank_strings_are_missing(cls, v: Any) -> Any:
        return _blank_to_none(v)

    @field_validator("score_rank", mode="before")
    @classmethod
    def coerce_score_rank(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return str(v) if v is not None else None

    @field_validator("tags", mode="before")
    @classmethod
    def empty_tag_list(cls, v: Any) -> Any:
        # SteamSpy sends [] instead of {} for untagged apps
        if v is None or v == []:
            return {}
        return v


class SteamStoreReleaseDate(BaseModel):
    coming_soon: bool
    date: str = ""


class SteamStoreAppData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Optional[str] = None
    name: Optional[str] = None
    steam_appid: Optional[int] = None
    is_free: Optional[bool] = None
    release_date: Optional[SteamStoreReleaseDate] = None


class SteamStoreAppDetails(BaseModel):
    """Steam Store ``appdetails`` entry for one appid"""

    model_config = ConfigDict(extra="ignore")

    success: bool
    data: Optional[SteamStoreAppData] = None


class ReleaseStatus(BaseModel):
    """Release status of an app on the Steam Store"""

    coming_soon: bool
    date: str


class GameRecord(BaseModel):
    """Normalized, immutable row for the ``steam_games`` table.

    Created once per detail fetch and consumed once by a batch upsert.
    """

    model_config = ConfigDict(frozen=True)

    appid: int = Field(..., gt=0)
    name: str
    developer: Optional[str] = None
    publisher: Optional[str] = None
    owners: Optional[str] = None
    owners_midpoint: Optional[int] = None
    average_forever: int = 0
    average_2weeks: int = 0
    median_forever: int = 0
    median_2weeks: int = 0
    ccu: int = 0
    price: Optional[int] = None
    initialprice: Optional[int] = None
    discount: Optional[int] = None
    languages: Optional[str] = None
    genre: Optional[str] = None
    tags: Dict[str, int] = Field(default_factory=dict)
    positive: int = 0
    negative: int = 0
    score_rank: Optional[str] = None
    userscore: Optional[int] = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_details(
        cls, details: SteamSpyAppDetails, updated_at: Optional[datetime] = None
    ) -> "GameRecord":
        """Build a record from validated SteamSpy details."""
        return cls(
            appid=details.appid,
            name=details.name or f"Unknown ({details.appid})",
            developer=details.developer,
            publisher=details.publisher,
            owners=details.owners,
            owners_midpoint=parse_owners_midpoint(details.owners),
            average_forever=details.average_forever or 0,
            average_2weeks=details.average_2weeks or 0,
            median_forever=details.median_forever or 0,
            median_2weeks=details.median_2weeks or 0,
            ccu=details.ccu or 0,
            price=details.price,
            initialprice=details.initialprice,
            discount=details.discount,
            languages=details.languages,
            genre=details.genre,
            tags=dict(details.tags),
            positive=details.positive or 0,
            negative=details.negative or 0,
            score_rank=details.score_rank,
            userscore=details.userscore,
            updated_at=updated_at or datetime.now(timezone.utc),
        )

    def to_row(self) -> Dict[str, Any]:
        """JSON-safe dict for the store."""
        return self.model_dump(mode="json")


def parse_owners_midpoint(owners: Optional[str]) -> Optional[int]:
    """Midpoint of a SteamSpy owners range such as ``"20,000 .. 50,000"``.

    Returns None when the string is missing or not a two-sided range.
    """
    if not owners:
        return None

    parts = _OWNERS_SEPARATOR.split(owners.replace(",", "").strip())
    if len(parts) != 2:
        return None

    try:
        low, high = int(parts[0]), int(parts[1])
    except ValueError:
        return None

    return (low + high) // 2


def top_tags(tags: Optional[Dict[str, int]], n: int = 5) -> List[str]:
    """Names of the ``n`` highest-weighted tags."""
    if not tags:
        return []
    ranked = sorted(tags.items(), key=lambda item: item[1], reverse=True)
    return [name for name, _ in ranked[:n]]
