"""Shared pytest fixtures for TubeRelay tests."""

import pytest

from config import Config, WebConfig, AuthConfig, YouTubeConfig, DatabaseConfig
from data.library_store import LibraryStore

ACCESS_TOKEN = "6bb8c2f529084cdbc037e4b801cc2ab4"
API_KEY = "yt-test-key"


@pytest.fixture
def library_store(tmp_path):
    """LibraryStore backed by a temp-dir SQLite file."""
    store = LibraryStore(db_path=str(tmp_path / "test.db"))
    yield store
    store.close()


@pytest.fixture
def sample_config(tmp_path):
    """Minimal Config with safe defaults for testing."""
    return Config(
        web=WebConfig(host="127.0.0.1", port=9999),
        auth=AuthConfig(access_token=ACCESS_TOKEN),
        youtube=YouTubeConfig(api_key=API_KEY, http_timeout=5, ydl_timeout=10),
        database=DatabaseConfig(path=str(tmp_path / "test.db")),
    )


@pytest.fixture
def config_yaml(tmp_path):
    """Write a minimal config.yaml and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text("""\
web:
  host: 0.0.0.0
  port: 8080
  cors_origins:
    - "https://app.example.com"
auth:
  access_token: "secret-token"
  stream_requires_token: true
youtube:
  api_key: "key-from-yaml"
  http_timeout: 7.5
  ydl_timeout: 15
database:
  path: "{db_path}"
""".format(db_path=str(tmp_path / "cfg_test.db")))
    return cfg
