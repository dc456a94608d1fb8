import pytest

from cricket_scoring import config


def test_defaults_are_valid():
    config.validate_config()
    assert config.DEFAULT_OVERS_LIMIT == 20
    assert config.BYES_CHARGED_TO_BOWLER is True


def test_bad_values_rejected(monkeypatch):
    monkeypatch.setattr(config, "WIDE_PENALTY_RUNS", -1)
    with pytest.raises(RuntimeError):
        config.validate_config()


def test_enabled_provider_needs_http_url(monkeypatch):
    monkeypatch.setattr(config, "ROSTER_PROVIDER_ENABLED", True)
    monkeypatch.setattr(config, "ROSTER_PROVIDER_BASE_URL", "ftp://roster")
    with pytest.raises(RuntimeError):
        config.validate_config()


def test_env_helpers(monkeypatch):
    monkeypatch.setenv("X_INT", "abc")
    monkeypatch.setenv("X_BOOL", "yes")
    assert config._get_env_int("X_INT", 7) == 7
    assert config._get_env_bool("X_BOOL", False) is True
    assert config._get_env_bool("X_MISSING", False) is False
