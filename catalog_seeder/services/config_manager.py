import os
from pathlib import Path
from string import Template
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

import structlog
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from catalog_seeder.models.config import SeedSettings
from catalog_seeder.utils.exceptions import ConfigurationError

logger = structlog.get_logger()


class ConfigValidationError(ConfigurationError):
    """Configuration validation failed"""

    pass


def _split_list(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


# ENV_VAR -> (path in SeedSettings, converter)
ENV_MAPPING: Dict[str, Tuple[Tuple[str, ...], Callable[[str], Any]]] = {
    "SEED_LIMIT": (("seed_limit",), str),
    "REQUEST_INTERVAL_MS": (("request_interval_ms",), str),
    "BATCH_SIZE": (("batch_size",), str),
    "CHECKPOINT_FILE": (("checkpoint_file",), str),
    "CONCURRENCY": (("concurrency",), str),
    "LOG_LEVEL": (("log_level",), str),
    "LOG_JSON": (("log_json",), str),
    "STEAMSPY_BASE": (("sources", "steamspy_base"), str),
    "STEAM_WEB_API_BASE": (("sources", "steam_web_api_base"), str),
    "STEAMSTORE_BASE": (("sources", "steam_store_base"), str),
    "SEED_GENRES": (("sources", "genres"), _split_list),
    "SEED_TAGS": (("sources", "tags"), _split_list),
    "INCLUDE_WEB_CATALOG": (("sources", "include_web_catalog"), str),
    "SUPABASE_URL": (("store", "supabase_url"), str),
    "SUPABASE_SERVICE_ROLE_KEY": (("store", "supabase_key"), str),
    "SUPABASE_TABLE": (("store", "table"), str),
}


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


class ConfigManager:
    """Loads seeder settings from the environment and an optional YAML file.

    Precedence: built-in defaults < YAML file < environment variables.
    """

    def __init__(
        self,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        load_env_file: bool = True,
    ):
        self.config_path = Path(config_path) if config_path else None
        self._environ = environ
        self._load_env_file = load_env_file
        self._settings: Optional[SeedSettings] = None

    @property
    def environ(self) -> Mapping[str, str]:
        return self._environ if self._environ is not None else os.environ

    def load_settings(self) -> SeedSettings:
        """Load and validate configuration"""
        if self._settings:
            return self._settings

        # 1. Load .env into the process environment
        if self._load_env_file and self._environ is None:
            load_dotenv()

        # 2. YAML overrides
        data: Dict[str, Any] = {}
        if self.config_path is not None:
            data = self._read_yaml(self.config_path)

        # 3. Environment overrides
        data = _deep_merge(data, self._env_overrides())

        # 4. Validate with Pydantic
        try:
            self._settings = SeedSettings(**data)
        except ValidationError as e:
            raise ConfigValidationError(f"Invalid configuration: {e}")

        logger.info(
            "config_loaded",
            seed_limit=self._settings.seed_limit,
            batch_size=self._settings.batch_size,
            concurrency=self._settings.concurrency,
            checkpoint_file=self._settings.checkpoint_file,
        )
        return self._settings

    def _read_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            raw_content = path.read_text()
        except OSError as e:
            raise ConfigValidationError(f"Failed to read config file: {e}")

        try:
            substituted = Template(raw_content).safe_substitute(self.environ)
            loaded = yaml.safe_load(substituted)
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Failed to parse YAML or substitute variables: {e}"
            )

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ConfigValidationError("Config file must contain a mapping")
        return loaded

    def _env_overrides(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        for var, (path, convert) in ENV_MAPPING.items():
            raw = self.environ.get(var)
            if raw is None or raw == "":
                continue
            node = overrides
            for key in path[:-1]:
                node = node.setdefault(key, {})
            node[path[-1]] = convert(raw)
        return overrides


def require_store_credentials(settings: SeedSettings) -> None:
    """Fail fast when the store cannot be reached.

    Raises:
        ConfigurationError: SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY missing
    """
    if not settings.store.has_credentials:
        raise ConfigurationError(
            "Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY in environment"
        )
