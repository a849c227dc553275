"""Configuration loading for catlog."""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import structlog
import yaml

from catlog.errors import ConfigError

log = structlog.get_logger()

MIN_STATUS_CODE = 100
MAX_STATUS_CODE = 599


@dataclass(frozen=True)
class FilterConfig:
    """Which detected status codes should trigger a notification.

    explicit_codes wins over match_all, which wins over the default
    errors-only policy (4xx and 5xx).
    """

    explicit_codes: frozenset[int] | None = None
    match_all: bool = False
    errors_only: bool = True


@dataclass
class Config:
    """Application configuration."""

    filter: FilterConfig = field(default_factory=FilterConfig)
    poll_interval: float = 0.1
    image_size: int = 60
    show_images: bool = True
    cat_base_url: str = "https://http.cat"
    fetch_timeout: float = 10.0
    discord_webhook_url: str | None = None
    cooldown_seconds: float = 0
    metrics_port: int | None = None

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        status = os.environ.get("CATLOG_STATUS")
        port = os.environ.get("CATLOG_METRICS_PORT")

        try:
            config = cls(
                filter=FilterConfig(
                    explicit_codes=parse_status_codes(status) if status else None,
                    match_all=_env_flag("CATLOG_ALL"),
                ),
                poll_interval=float(os.environ.get("CATLOG_POLL_INTERVAL", "0.1")),
                image_size=int(os.environ.get("CATLOG_IMAGE_SIZE", "60")),
                show_images=not _env_flag("CATLOG_NO_IMAGE"),
                cat_base_url=os.environ.get("CATLOG_CAT_URL", "https://http.cat"),
                fetch_timeout=float(os.environ.get("CATLOG_FETCH_TIMEOUT", "10.0")),
                discord_webhook_url=os.environ.get("DISCORD_WEBHOOK_URL"),
                cooldown_seconds=float(os.environ.get("CATLOG_COOLDOWN", "0")),
                metrics_port=int(port) if port else None,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid environment setting: {e}") from e

        config.validate()
        return config

    @classmethod
    def from_file(cls, path: Path) -> "Config":
        """Load configuration from YAML file, with env var defaults underneath."""
        config = cls.from_env()

        if not path.exists():
            return config

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Cannot parse {path}: {e}") from e

        if not data:
            return config
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")

        try:
            config = _apply_file_data(config, data)
        except (TypeError, ValueError, AttributeError) as e:
            raise ConfigError(f"{path}: {e}") from e

        config.validate()
        return config

    def validate(self) -> None:
        """Reject values that would make the engine misbehave.

        Raises:
            ConfigError: On the first invalid value
        """
        if self.poll_interval <= 0:
            raise ConfigError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.image_size <= 0:
            raise ConfigError(f"image size must be positive, got {self.image_size}")
        if self.fetch_timeout <= 0:
            raise ConfigError(f"fetch timeout must be positive, got {self.fetch_timeout}")
        if self.cooldown_seconds < 0:
            raise ConfigError(f"cooldown must not be negative, got {self.cooldown_seconds}")


def _apply_file_data(config: Config, data: dict[str, Any]) -> Config:
    if "filter" in data:
        flt = data["filter"] or {}
        codes = flt.get("status")
        if isinstance(codes, list):
            codes = ",".join(str(c) for c in codes)
        config.filter = replace(
            config.filter,
            explicit_codes=parse_status_codes(codes) if codes else config.filter.explicit_codes,
            match_all=bool(flt.get("all", config.filter.match_all)),
        )

    if "follow" in data:
        follow = data["follow"] or {}
        config.poll_interval = float(follow.get("poll_interval", config.poll_interval))

    if "display" in data:
        display = data["display"] or {}
        config.image_size = int(display.get("size", config.image_size))
        config.show_images = bool(display.get("images", config.show_images))
        config.cat_base_url = display.get("base_url", config.cat_base_url)
        config.fetch_timeout = float(display.get("timeout", config.fetch_timeout))

    if "discord" in data:
        discord = data["discord"] or {}
        # Env var wins so secrets can stay out of the file
        if not config.discord_webhook_url:
            config.discord_webhook_url = discord.get("webhook_url")

    if "notify" in data:
        notify = data["notify"] or {}
        config.cooldown_seconds = float(notify.get("cooldown_seconds", config.cooldown_seconds))

    if "metrics" in data:
        metrics = data["metrics"] or {}
        port = metrics.get("port", config.metrics_port)
        config.metrics_port = int(port) if port is not None else None

    return config


def parse_status_codes(codes: str) -> frozenset[int]:
    """Parse a comma-separated list like "404, 500" into a set of status codes.

    Entries that are not integers in [100, 599] are dropped with a warning.
    """
    result: set[int] = set()
    for token in codes.split(","):
        token = token.strip()
        if not token:
            continue
        try:
            code = int(token)
        except ValueError:
            log.warning("Ignoring invalid status code", value=token)
            continue
        if not MIN_STATUS_CODE <= code <= MAX_STATUS_CODE:
            log.warning("Ignoring out-of-range status code", value=code)
            continue
        result.add(code)
    return frozenset(result)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")
