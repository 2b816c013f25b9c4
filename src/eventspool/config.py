"""Analytics configuration management.

Values come from the ``[analytics]`` table of a TOML file, then from
``EVENTSPOOL_*`` environment variables, which take precedence::

    [analytics]
    stream = "cli-events"
    prefix = "app:"
    endpoint = "https://ingest.example.com"
    count_threshold = 100
    age_threshold_seconds = 86400
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import toml  # type: ignore[import-untyped]

from .exceptions import ConfigurationError

CONFIG_ENV_VAR = "EVENTSPOOL_CONFIG"
SECTION = "analytics"

DEFAULT_COUNT_THRESHOLD = 100
DEFAULT_AGE_THRESHOLD = timedelta(hours=24)

_ENV_OVERRIDES = {
    "stream": "EVENTSPOOL_STREAM",
    "prefix": "EVENTSPOOL_PREFIX",
    "dir": "EVENTSPOOL_DIR",
    "endpoint": "EVENTSPOOL_ENDPOINT",
    "auth_token": "EVENTSPOOL_TOKEN",
}


def default_config_path() -> Path:
    if env_path := os.environ.get(CONFIG_ENV_VAR):
        return Path(env_path)
    return Path.home() / ".eventspool" / "config.toml"


@dataclass
class AnalyticsConfig:
    """Settings for one Analytics instance.

    Attributes:
        stream: Destination stream; also the default storage dir name.
        prefix: Prepended to every event name.
        dir: Storage dir name under the platform root (defaults to stream).
        endpoint: Ingestion base URL; no endpoint means no HTTP transport.
        auth_token: Bearer token for the endpoint.
        count_threshold: Queued events that trigger maybe_flush.
        age_threshold: Time since the last flush that triggers maybe_flush.
        max_attempts: Send attempts per flush, initial one included.
        retry_backoff: Seconds before the first retry (0 = immediate).
        timeout: HTTP request timeout in seconds.
    """

    stream: str = ""
    prefix: str = ""
    dir: str = ""
    endpoint: Optional[str] = None
    auth_token: Optional[str] = field(default=None, repr=False)
    count_threshold: int = DEFAULT_COUNT_THRESHOLD
    age_threshold: timedelta = DEFAULT_AGE_THRESHOLD
    max_attempts: int = 3
    retry_backoff: float = 0.0
    timeout: float = 60.0

    @property
    def dir_name(self) -> str:
        return self.dir or self.stream

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalyticsConfig:
        """Build a config from an ``[analytics]`` table."""
        config = cls()
        try:
            for key in ("stream", "prefix", "dir", "endpoint", "auth_token"):
                if isinstance(data.get(key), str):
                    setattr(config, key, data[key])
            if "count_threshold" in data:
                config.count_threshold = int(data["count_threshold"])
            if "age_threshold_seconds" in data:
                config.age_threshold = timedelta(seconds=float(data["age_threshold_seconds"]))
            if "max_attempts" in data:
                config.max_attempts = int(data["max_attempts"])
            if "retry_backoff" in data:
                config.retry_backoff = float(data["retry_backoff"])
            if "timeout" in data:
                config.timeout = float(data["timeout"])
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"invalid [{SECTION}] value: {e}") from e
        config.validate()
        return config

    def validate(self) -> None:
        """Raise ConfigurationError when a numeric setting is out of range."""
        if self.max_attempts < 1:
            raise ConfigurationError(f"invalid [{SECTION}] value: max_attempts must be >= 1, got {self.max_attempts}")
        if self.count_threshold < 0:
            raise ConfigurationError(
                f"invalid [{SECTION}] value: count_threshold must be >= 0, got {self.count_threshold}"
            )
        if self.age_threshold < timedelta(0):
            raise ConfigurationError(f"invalid [{SECTION}] value: age_threshold_seconds must be >= 0")
        if self.retry_backoff < 0:
            raise ConfigurationError(
                f"invalid [{SECTION}] value: retry_backoff must be >= 0, got {self.retry_backoff}"
            )
        if self.timeout <= 0:
            raise ConfigurationError(f"invalid [{SECTION}] value: timeout must be > 0, got {self.timeout}")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "stream": self.stream,
            "prefix": self.prefix,
            "count_threshold": self.count_threshold,
            "age_threshold_seconds": int(self.age_threshold.total_seconds()),
            "max_attempts": self.max_attempts,
            "retry_backoff": self.retry_backoff,
            "timeout": self.timeout,
        }
        if self.dir:
            data["dir"] = self.dir
        if self.endpoint:
            data["endpoint"] = self.endpoint
        if self.auth_token:
            data["auth_token"] = self.auth_token
        return data

    @classmethod
    def load(cls, path: Optional[Path] = None, environ: Optional[dict[str, str]] = None) -> AnalyticsConfig:
        """Load the config file (if any) and apply environment overrides.

        Raises:
            ConfigurationError: The file exists but cannot be parsed.
        """
        path = path or default_config_path()
        environ = os.environ if environ is None else environ

        data: dict[str, Any] = {}
        if path.exists():
            try:
                raw = toml.load(path)
            except (toml.TomlDecodeError, OSError) as e:
                raise ConfigurationError(f"reading {path}: {e}") from e
            section = raw.get(SECTION)
            if isinstance(section, dict):
                data = section

        config = cls.from_dict(data)
        for attr, env_var in _ENV_OVERRIDES.items():
            if value := environ.get(env_var):
                setattr(config, attr, value)
        return config

    def save(self, path: Optional[Path] = None) -> Path:
        """Write the ``[analytics]`` table, keeping other tables intact."""
        path = path or default_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        raw: dict[str, Any] = {}
        if path.exists():
            raw = toml.load(path)
        raw[SECTION] = self.to_dict()

        with open(path, "w", encoding="utf-8") as f:
            toml.dump(raw, f)
        return path
