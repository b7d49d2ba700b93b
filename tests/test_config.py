import pytest

from image_harvester.config import FetchConfig, HarvesterConfig


def test_from_env(monkeypatch):
    monkeypatch.setenv("HARVESTER_TIMEOUT", "7.5")
    monkeypatch.setenv("HARVESTER_WORKERS", "3")
    monkeypatch.setenv("HARVESTER_USER_AGENT", "ua/1")
    cfg = FetchConfig.from_env()
    assert cfg == FetchConfig(timeout=7.5, max_workers=3, user_agent="ua/1")


def test_defaults_are_bounded():
    cfg = FetchConfig()
    assert cfg.timeout == 30.0
    assert 1 <= cfg.max_workers <= 32


@pytest.mark.parametrize("fetch", [FetchConfig(max_workers=0), FetchConfig(timeout=0)])
def test_invalid_settings_rejected(fetch):
    with pytest.raises(ValueError):
        HarvesterConfig(fetch=fetch)
