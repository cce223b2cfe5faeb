"""Configuration management for TubeRelay."""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_BRACED_VAR_RE = re.compile(r'\$\{([^}]+)\}')
_BARE_VAR_RE = re.compile(r'\$([A-Za-z_][A-Za-z0-9_]*)')


def expand_env_vars(value: Any) -> Any:
    """Recursively expand ${VAR} and $VAR references in strings, dicts, and lists.

    Unset variables expand to an empty string.
    """
    if isinstance(value, str):
        result = _BRACED_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ''), value)
        return _BARE_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ''), result)
    if isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def _env_list(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def _db_path_from_url(url: str) -> str:
    """Accept either a bare path or a sqlite:/// URL."""
    if url.startswith("sqlite:///"):
        return url[len("sqlite:///"):]
    return url


@dataclass
class WebConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class AuthConfig:
    """Access gate configuration."""
    access_token: str = ""  # empty = every gated request is denied
    stream_requires_token: bool = False


@dataclass
class YouTubeConfig:
    """Upstream YouTube configuration."""
    api_key: str = ""
    http_timeout: float = 10.0  # seconds per Data API / media host request
    ydl_timeout: int = 30  # seconds, max wall-clock time for one yt-dlp extraction
    stream_chunk_size: int = 65536


@dataclass
class DatabaseConfig:
    """Database configuration."""
    path: str = "db/library.db"

    def __post_init__(self):
        self.path = _db_path_from_url(self.path)


@dataclass
class Config:
    """Main configuration container."""
    web: WebConfig = field(default_factory=WebConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    youtube: YouTubeConfig = field(default_factory=YouTubeConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    @classmethod
    def from_yaml(cls, path: Path | str) -> "Config":
        """Load configuration from YAML file with environment variable expansion."""
        path = Path(path)
        with open(path, "r") as f:
            raw_config = yaml.safe_load(f) or {}

        expanded = expand_env_vars(raw_config)

        return cls(
            web=WebConfig(**(expanded.get("web") or {})),
            auth=AuthConfig(**(expanded.get("auth") or {})),
            youtube=YouTubeConfig(**(expanded.get("youtube") or {})),
            database=DatabaseConfig(**(expanded.get("database") or {})),
        )

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration directly from environment variables."""
        env = os.environ
        return cls(
            web=WebConfig(
                host=env.get("TR_WEB_HOST", "0.0.0.0"),
                port=int(env.get("PORT") or env.get("TR_WEB_PORT", "5000")),
                cors_origins=_env_list(env.get("TR_CORS_ORIGINS", "*")),
            ),
            auth=AuthConfig(
                access_token=env.get("TR_ACCESS_TOKEN", ""),
                stream_requires_token=env.get("TR_STREAM_REQUIRES_TOKEN", "false").lower() == "true",
            ),
            youtube=YouTubeConfig(
                api_key=env.get("YOUTUBE_API_KEY", ""),
                http_timeout=float(env.get("TR_HTTP_TIMEOUT", "10")),
                ydl_timeout=int(env.get("TR_YDL_TIMEOUT", "30")),
                stream_chunk_size=int(env.get("TR_STREAM_CHUNK_SIZE", "65536")),
            ),
            database=DatabaseConfig(
                path=env.get("DATABASE_URL") or env.get("TR_DB_PATH", "db/library.db"),
            ),
        )


def load_config(config_path: str | None = None) -> Config:
    """Load configuration from file or environment.

    Tries in order:
    1. Provided config_path
    2. Default paths: config.yaml, config.yml
    3. Environment variables (fallback)
    """
    config: Config | None = None

    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        config = Config.from_yaml(path)
    else:
        for default_path in ["config.yaml", "config.yml"]:
            path = Path(default_path)
            if path.exists():
                config = Config.from_yaml(path)
                break

    if config is None:
        config = Config.from_env()

    if not config.youtube.api_key:
        logger.warning("youtube.api_key is empty; search requests will fail")
    if not config.auth.access_token:
        logger.warning("auth.access_token is empty; search and audio requests will be denied")
    if config.youtube.http_timeout <= 0:
        logger.warning("youtube.http_timeout %r is not positive, using 10s", config.youtube.http_timeout)
        config.youtube.http_timeout = 10.0
    if config.youtube.ydl_timeout <= 0:
        logger.warning("youtube.ydl_timeout %r is not positive, using 30s", config.youtube.ydl_timeout)
        config.youtube.ydl_timeout = 30

    return config
