"""
Tests for environment-driven configuration.
"""
import pytest

from config import Config, Environment, get_config, reload_config
from ring import CircusRing


@pytest.fixture
def restore_config(monkeypatch):
    yield
    monkeypatch.undo()
    reload_config()


class TestConfig:
    """Tests for Config defaults and environment overrides."""

    def test_defaults(self, monkeypatch):
        for name in ("RING_DEBUG_LOGS", "RING_CUE_MASTER_TAG", "ENVIRONMENT", "DEBUG", "LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        config = Config()

        assert config.env is Environment.DEVELOPMENT
        assert config.ring.debug_logs is None
        assert config.ring_debug_logs is False
        assert config.ring.cue_master_tag == "__default_ring_cue_master__"
        assert config.logging.json_format is False

    def test_debug_flag_drives_ring_logs(self, monkeypatch):
        monkeypatch.delenv("RING_DEBUG_LOGS", raising=False)
        monkeypatch.setenv("DEBUG", "true")

        assert Config().ring_debug_logs is True

    def test_explicit_ring_flag_wins(self, monkeypatch):
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("RING_DEBUG_LOGS", "0")

        assert Config().ring_debug_logs is False

    def test_reload(self, monkeypatch, restore_config):
        monkeypatch.setenv("RING_CUE_MASTER_TAG", "custom")

        config = reload_config()

        assert config is get_config()
        assert config.ring.cue_master_tag == "custom"
        assert config.to_dict()["ring"]["cue_master_tag"] == "custom"

    def test_ring_follows_config(self, monkeypatch, restore_config):
        monkeypatch.setenv("RING_DEBUG_LOGS", "yes")
        reload_config()

        assert CircusRing().enable_logs is True
        assert CircusRing(enable_logs=False).enable_logs is False
