"""Tests for config.py: loading, env var expansion, validation."""

import pytest

from config import Config, DatabaseConfig, expand_env_vars, load_config


class TestExpandEnvVars:
    def test_dollar_brace_syntax(self, monkeypatch):
        monkeypatch.setenv("TEST_VAR", "hello")
        assert expand_env_vars("${TEST_VAR}") == "hello"

    def test_dollar_prefix_syntax(self, monkeypatch):
        monkeypatch.setenv("MY_VAR", "world")
        assert expand_env_vars("$MY_VAR") == "world"

    def test_missing_var_becomes_empty(self, monkeypatch):
        monkeypatch.delenv("NONEXISTENT_VAR", raising=False)
        assert expand_env_vars("${NONEXISTENT_VAR}") == ""

    def test_nested_dict_and_list(self, monkeypatch):
        monkeypatch.setenv("TOKEN", "abc123")
        result = expand_env_vars({"auth": {"access_token": "${TOKEN}"}, "l": ["$TOKEN", "x"]})
        assert result == {"auth": {"access_token": "abc123"}, "l": ["abc123", "x"]}

    def test_non_string_passthrough(self):
        assert expand_env_vars(42) == 42
        assert expand_env_vars(True) is True
        assert expand_env_vars(None) is None


class TestConfigFromYaml:
    def test_load_basic_yaml(self, config_yaml):
        cfg = Config.from_yaml(config_yaml)
        assert cfg.web.port == 8080
        assert cfg.web.cors_origins == ["https://app.example.com"]
        assert cfg.auth.access_token == "secret-token"
        assert cfg.auth.stream_requires_token is True
        assert cfg.youtube.api_key == "key-from-yaml"
        assert cfg.youtube.http_timeout == 7.5
        assert cfg.youtube.ydl_timeout == 15
        assert cfg.database.path.endswith("cfg_test.db")

    def test_env_var_expansion_in_yaml(self, tmp_path, monkeypatch):
        monkeypatch.setenv("YOUTUBE_API_KEY", "env-key")
        monkeypatch.setenv("TR_ACCESS_TOKEN", "env-token")
        cfg_file = tmp_path / "env_config.yaml"
        cfg_file.write_text("""\
auth:
  access_token: "${TR_ACCESS_TOKEN}"
youtube:
  api_key: "${YOUTUBE_API_KEY}"
""")
        cfg = Config.from_yaml(cfg_file)
        assert cfg.auth.access_token == "env-token"
        assert cfg.youtube.api_key == "env-key"

    def test_missing_sections_use_defaults(self, tmp_path):
        cfg_file = tmp_path / "minimal.yaml"
        cfg_file.write_text("web:\n  port: 7000\n")
        cfg = Config.from_yaml(cfg_file)
        assert cfg.web.port == 7000
        assert cfg.auth.access_token == ""
        assert cfg.database.path == "db/library.db"

    def test_empty_file(self, tmp_path):
        cfg_file = tmp_path / "empty.yaml"
        cfg_file.write_text("")
        cfg = Config.from_yaml(cfg_file)
        assert cfg.web.port == 5000


class TestConfigFromEnv:
    def test_conventional_variables(self, monkeypatch):
        monkeypatch.setenv("PORT", "3000")
        monkeypatch.setenv("YOUTUBE_API_KEY", "k")
        monkeypatch.setenv("DATABASE_URL", "sqlite:///var/lib/relay.db")
        monkeypatch.setenv("TR_ACCESS_TOKEN", "t")
        cfg = Config.from_env()
        assert cfg.web.port == 3000
        assert cfg.youtube.api_key == "k"
        assert cfg.database.path == "var/lib/relay.db"
        assert cfg.auth.access_token == "t"

    def test_defaults(self, monkeypatch):
        for var in ("PORT", "TR_WEB_PORT", "DATABASE_URL", "TR_DB_PATH",
                    "TR_CORS_ORIGINS", "TR_STREAM_REQUIRES_TOKEN"):
            monkeypatch.delenv(var, raising=False)
        cfg = Config.from_env()
        assert cfg.web.port == 5000
        assert cfg.web.cors_origins == ["*"]
        assert cfg.database.path == "db/library.db"
        assert cfg.auth.stream_requires_token is False

    def test_cors_origins_list(self, monkeypatch):
        monkeypatch.setenv("TR_CORS_ORIGINS", "https://a.example, https://b.example")
        cfg = Config.from_env()
        assert cfg.web.cors_origins == ["https://a.example", "https://b.example"]


class TestDatabaseConfig:
    def test_plain_path_kept(self):
        assert DatabaseConfig(path="data/x.db").path == "data/x.db"

    def test_sqlite_url_stripped(self):
        assert DatabaseConfig(path="sqlite:///data/x.db").path == "data/x.db"


class TestLoadConfig:
    def test_explicit_path(self, config_yaml):
        cfg = load_config(str(config_yaml))
        assert cfg.auth.access_token == "secret-token"

    def test_missing_explicit_path_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_falls_back_to_env(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("TR_WEB_PORT", "6123")
        monkeypatch.delenv("PORT", raising=False)
        cfg = load_config()
        assert cfg.web.port == 6123

    def test_default_file_in_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.yml").write_text("web:\n  port: 6555\n")
        cfg = load_config()
        assert cfg.web.port == 6555

    def test_non_positive_timeouts_reset(self, tmp_path):
        cfg_file = tmp_path / "bad.yaml"
        cfg_file.write_text("youtube:\n  http_timeout: 0\n  ydl_timeout: -1\n")
        cfg = load_config(str(cfg_file))
        assert cfg.youtube.http_timeout == 10.0
        assert cfg.youtube.ydl_timeout == 30
