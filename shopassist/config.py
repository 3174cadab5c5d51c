"""Runtime configuration for shopassist.

Settings come from an optional YAML file (``SHOPASSIST_CONFIG``) and are then
overridden by environment variables.  Every value has a default so the
service can start with nothing but API keys in the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from shopassist.errors import ConfigError
from shopassist.llm.client import DEFAULT_MODEL

DEFAULT_FEEDBACK_API_URL = "https://fashion-store-backend-u0pj.onrender.com"

# field name -> environment variable
_ENV_VARS: dict[str, str] = {
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "model": "SHOPASSIST_MODEL",
    "temperature": "SHOPASSIST_TEMPERATURE",
    "tavily_api_key": "TAVILY_API_KEY",
    "search_max_results": "SHOPASSIST_SEARCH_MAX_RESULTS",
    "search_depth": "SHOPASSIST_SEARCH_DEPTH",
    "feedback_api_url": "SHOPASSIST_FEEDBACK_API_URL",
    "feedback_timeout": "SHOPASSIST_FEEDBACK_TIMEOUT",
    "extra_blocklist_terms": "SHOPASSIST_BLOCKLIST_EXTRA",
    "catalog_path": "SHOPASSIST_CATALOG_PATH",
    "usage_dir": "SHOPASSIST_USAGE_DIR",
    "log_level": "SHOPASSIST_LOG_LEVEL",
}


@dataclass
class Settings:
    """All tunable values for the API, the CLI and the moderation pipeline."""

    anthropic_api_key: str = ""
    model: str = DEFAULT_MODEL
    temperature: float = 0.1
    tavily_api_key: str = ""
    search_max_results: int = 5
    search_depth: str = "advanced"
    feedback_api_url: str = DEFAULT_FEEDBACK_API_URL
    feedback_timeout: float = 15.0
    extra_blocklist_terms: list[str] = field(default_factory=list)
    catalog_path: str = ""
    usage_dir: str = ""
    log_level: str = "INFO"

    # -- constructors --------------------------------------------------------

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables only."""
        return cls()._override_from_env(environ)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Build settings from a YAML mapping whose keys are field names."""
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")

        settings = cls()
        known = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key in known and value is not None:
                settings._assign(key, value)
        return settings

    # -- helpers -------------------------------------------------------------

    def _override_from_env(self, environ: Optional[Mapping[str, str]]) -> "Settings":
        env = os.environ if environ is None else environ
        for name, var in _ENV_VARS.items():
            raw = env.get(var, "")
            if raw.strip():
                self._assign(name, raw.strip())
        return self

    def _assign(self, name: str, value: Any) -> None:
        current = getattr(self, name)
        try:
            if isinstance(current, list):
                if isinstance(value, str):
                    value = [t.strip() for t in value.split(",") if t.strip()]
                else:
                    value = [str(t) for t in value]
            elif isinstance(current, float):
                value = float(value)
            elif isinstance(current, int):
                value = int(value)
            else:
                value = str(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid value for '{name}': {value!r}") from exc
        setattr(self, name, value)

    @property
    def usage_path(self) -> Path:
        """Directory holding the LLM usage log."""
        if self.usage_dir:
            return Path(self.usage_dir).expanduser()
        return Path.home() / ".shopassist" / "llm_usage"


def load_settings(
    path: str | Path | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Load settings from YAML (if any) and apply environment overrides.

    The YAML path is *path* when given, otherwise ``SHOPASSIST_CONFIG``.
    """
    env = os.environ if environ is None else environ
    config_path = path or env.get("SHOPASSIST_CONFIG", "")
    settings = Settings.from_yaml(config_path) if config_path else Settings()
    return settings._override_from_env(env)
