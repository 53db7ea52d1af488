import pytest

from leadbatch import config


@pytest.fixture(autouse=True)
def no_dotenv(monkeypatch):
    monkeypatch.setattr(config, "load_dotenv", lambda: None)


def test_get_settings_reads_env(monkeypatch):
    monkeypatch.setenv("SERPAPI_PAGE_SIZE", "10")
    monkeypatch.setenv("BATCH_MAX_PAGES", "7")
    monkeypatch.setenv("LOOKAHEAD_MAX_PAGES", "2")
    monkeypatch.setenv("SERPAPI_MAP_ZOOM", "12z")
    monkeypatch.setenv("NOMINATIM_USER_AGENT", "tests/1.0 (ops@example.com)")
    monkeypatch.setenv("PORT", "9100")

    settings = config.get_settings()

    assert settings.page_size == 10
    assert settings.max_pages == 7
    assert settings.max_lookahead_pages == 2
    assert settings.map_zoom == "12z"
    assert settings.nominatim_user_agent == "tests/1.0 (ops@example.com)"
    assert settings.worker_port == 9100


def test_get_settings_defaults_and_warns(monkeypatch, caplog):
    for name in (
        "SERPAPI_PAGE_SIZE",
        "BATCH_MAX_PAGES",
        "LOOKAHEAD_MAX_PAGES",
        "SERPAPI_MAP_ZOOM",
        "NOMINATIM_URL",
        "NOMINATIM_USER_AGENT",
        "GEOCODE_CANDIDATE_LIMIT",
        "UPSTREAM_TIMEOUT_SECONDS",
        "PORT",
    ):
        monkeypatch.delenv(name, raising=False)

    with caplog.at_level("WARNING"):
        settings = config.get_settings()

    assert "NOMINATIM_USER_AGENT is not configured" in " ".join(caplog.messages)
    assert settings.page_size == 20
    assert settings.max_pages == 25
    assert settings.max_lookahead_pages == 3
    assert settings.map_zoom == "14z"
    assert settings.nominatim_url == config.DEFAULT_NOMINATIM_URL
    assert settings.geocode_candidate_limit == 10


@pytest.mark.parametrize("raw", ["abc", "0", "-3"])
def test_get_settings_rejects_bad_integers(monkeypatch, raw):
    monkeypatch.setenv("BATCH_MAX_PAGES", raw)
    with pytest.raises(config.ConfigError):
        config.get_settings()


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setenv("SERPAPI_PAGE_SIZE", "20")
    assert config.get_settings() is config.get_settings()
