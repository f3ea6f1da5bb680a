import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

_UNRESOLVED_VARIABLE = re.compile(r"^\$\{?[A-Za-z_][A-Za-z0-9_]*\}?$")

DEFAULT_TOP_LISTS = ["top100owned", "top100in2weeks", "top100forever"]
DEFAULT_GENRES = [
    "Action",
    "Adventure",
    "Casual",
    "Indie",
    "RPG",
    "Simulation",
    "Sports",
    "Strategy",
    "Early Access",
]


class SourceSettings(BaseModel):
    """Catalog endpoints and which collection sources to query"""

    steamspy_base: str = "https://steamspy.com/api.php"
    steam_web_api_base: str = "https://api.steampowered.com"
    steam_store_base: str = "https://store.steampowered.com/api"
    top_lists: List[str] = Field(default_factory=lambda: list(DEFAULT_TOP_LISTS))
    genres: List[str] = Field(default_factory=lambda: list(DEFAULT_GENRES))
    tags: List[str] = Field(default_factory=list)
    include_web_catalog: bool = True
    include_steamspy_all: bool = True


class HttpSettings(BaseModel):
    """Retry, cache and timeout defaults for external calls"""

    retries: int = Field(3, ge=0, le=10)
    retry_delay_seconds: float = Field(2.0, ge=0.0, le=60.0)
    detail_retry_delay_seconds: float = Field(0.5, ge=0.0, le=60.0)
    cache_ttl_seconds: float = Field(30 * 60, ge=0.0)
    cache_max_entries: int = Field(100, ge=1)
    timeout_seconds: float = Field(30.0, gt=0.0, le=300.0)
    user_agent: str = "catalog-seeder/0.4"


class RateLimitSettings(BaseModel):
    """Token buckets, one per external API"""

    steamspy_per_second: float = Field(1.0, gt=0.0)
    steamspy_all_per_minute: float = Field(1.0, gt=0.0)
    steam_web_per_second: float = Field(1.0, gt=0.0)
    steam_store_capacity: int = Field(200, ge=1)
    steam_store_per_second: float = Field(0.66, gt=0.0)


class StoreSettings(BaseModel):
    """Supabase connection for the steam_games table"""

    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    table: str = "steam_games"

    @field_validator("supabase_url", "supabase_key", mode="before")
    @classmethod
    def blank_is_missing(cls, v):
        # Blank, or a ${VAR} reference the environment did not resolve
        if isinstance(v, str) and (
            not v.strip() or _UNRESOLVED_VARIABLE.match(v.strip())
        ):
            return None
        return v

    @property
    def has_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


class SeedSettings(BaseModel):
    """Complete seeder configuration"""

    seed_limit: int = Field(10_000, ge=1)
    request_interval_ms: int = Field(1200, ge=0)
    batch_size: int = Field(250, ge=1, le=10_000)
    checkpoint_file: str = ".seed-checkpoint.json"
    concurrency: int = Field(1, ge=1, le=32)
    log_level: str = "INFO"
    log_json: bool = True

    sources: SourceSettings = Field(default_factory=SourceSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    rate_limits: RateLimitSettings = Field(default_factory=RateLimitSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def request_interval_seconds(self) -> float:
        return self.request_interval_ms / 1000.0
