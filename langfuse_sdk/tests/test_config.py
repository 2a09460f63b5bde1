"""Tests for langfuse_sdk.config module."""

import os

import pytest

from langfuse_sdk.config import LangfuseConfig, find_config_file, load_config


@pytest.fixture
def isolated_cwd(temp_dir, monkeypatch):
    """Run in an empty directory so no langfuse.yaml is picked up."""
    monkeypatch.chdir(temp_dir)
    return temp_dir


class TestDefaults:
    """Tests for default values."""

    def test_defaults(self, isolated_cwd):
        config = load_config()

        assert config.host == "https://cloud.langfuse.com"
        assert config.total_queues == 10
        assert config.max_batch_size == 100
        assert config.flush_interval_ms == 500
        assert config.enabled is True
        assert not config.has_credentials

    def test_host_trailing_slash_stripped(self):
        assert LangfuseConfig(host="http://localhost:3000/").host == "http://localhost:3000"


class TestEnvironment:
    """Tests for LANGFUSE_* variables."""

    def test_env_values(self, isolated_cwd):
        os.environ["LANGFUSE_PUBLIC_KEY"] = "public-key"
        os.environ["LANGFUSE_SECRET_KEY"] = "secret-key"
        os.environ["LANGFUSE_HOST"] = "http://localhost:8080"
        os.environ["LANGFUSE_RELEASE"] = "v1.2.3"
        os.environ["LANGFUSE_TOTAL_QUEUES"] = "3"
        os.environ["LANGFUSE_REQUEST_TIMEOUT_S"] = "2.5"
        os.environ["LANGFUSE_ENABLED"] = "false"

        config = load_config()

        assert config.public_key == "public-key"
        assert config.secret_key == "secret-key"
        assert config.host == "http://localhost:8080"
        assert config.release == "v1.2.3"
        assert config.total_queues == 3
        assert config.request_timeout_s == 2.5
        assert config.enabled is False
        assert config.has_credentials

    def test_empty_host_falls_back_to_cloud(self, isolated_cwd):
        os.environ["LANGFUSE_HOST"] = ""

        assert load_config().host == "https://cloud.langfuse.com"

    def test_zero_means_default(self, isolated_cwd):
        os.environ["LANGFUSE_MAX_BATCH_SIZE"] = "0"

        assert load_config().max_batch_size == 100

    def test_invalid_env_value(self, isolated_cwd):
        os.environ["LANGFUSE_TOTAL_QUEUES"] = "many"

        with pytest.raises(ValueError, match="LANGFUSE_TOTAL_QUEUES"):
            load_config()


class TestPrecedence:
    """Tests for override > env > file > default."""

    def test_overrides_beat_env(self, isolated_cwd):
        os.environ["LANGFUSE_HOST"] = "http://env:1"

        config = load_config(host="http://arg:2")

        assert config.host == "http://arg:2"

    def test_zero_override_falls_through(self, isolated_cwd):
        os.environ["LANGFUSE_TOTAL_QUEUES"] = "4"

        assert load_config(total_queues=0).total_queues == 4

    def test_false_override_is_kept(self, isolated_cwd):
        assert load_config(enabled=False).enabled is False

    def test_env_beats_file(self, isolated_cwd):
        (isolated_cwd / "langfuse.yaml").write_text("host: http://file:3\nmax_batch_size: 7\n")
        os.environ["LANGFUSE_HOST"] = "http://env:1"

        config = load_config()

        assert config.host == "http://env:1"
        assert config.max_batch_size == 7

    def test_unknown_override(self, isolated_cwd):
        with pytest.raises(ValueError, match="bogus"):
            load_config(bogus=1)


class TestConfigFile:
    """Tests for YAML file discovery."""

    def test_explicit_path(self, isolated_cwd):
        path = isolated_cwd / "custom.yaml"
        path.write_text("release: from-file\nunknown_key: ignored\n")

        assert load_config(str(path)).release == "from-file"

    def test_env_var_path(self, isolated_cwd):
        path = isolated_cwd / "elsewhere.yaml"
        path.write_text("flush_interval_ms: 50\n")
        os.environ["LANGFUSE_CONFIG"] = str(path)

        assert load_config().flush_interval_ms == 50

    def test_walks_up_parent_directories(self, temp_dir, monkeypatch):
        (temp_dir / "langfuse.yaml").write_text("total_queues: 2\n")
        nested = temp_dir / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert find_config_file().resolve() == (temp_dir / "langfuse.yaml").resolve()
        assert load_config().total_queues == 2

    def test_missing_explicit_file_uses_defaults(self, isolated_cwd):
        config = load_config(str(isolated_cwd / "missing.yaml"))

        assert config == LangfuseConfig()

    def test_empty_file(self, isolated_cwd):
        (isolated_cwd / "langfuse.yaml").write_text("")

        assert load_config() == LangfuseConfig()

    def test_non_mapping_file(self, isolated_cwd):
        (isolated_cwd / "langfuse.yaml").write_text("- a\n- b\n")

        with pytest.raises(ValueError, match="mapping"):
            load_config()
