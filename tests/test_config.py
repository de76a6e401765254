"""Tests for parksmarter.config."""

from parksmarter.config import Settings


class TestSettingsFromEnv:
    def test_defaults(self, monkeypatch):
        for name in (
            "PARKSMARTER_PARKING_PATH",
            "PARKSMARTER_TRANSIT_PATH",
            "PARKSMARTER_PARKING_URL",
            "PARKSMARTER_TRANSIT_URL",
            "PARKSMARTER_SQLITE_PATH",
            "PARKSMARTER_HTTP_TIMEOUT_S",
            "PARKSMARTER_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)
        cfg = Settings.from_env()
        assert cfg.sqlite_path is None
        assert cfg.parking_source_url is None
        assert cfg.eco_radius_m == 250.0
        assert (cfg.recommendations_limit, cfg.simple_search_limit, cfg.top_parking_limit) == (3, 15, 5)
        assert cfg.transit_stops_limit == 50

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("PARKSMARTER_SQLITE_PATH", "/srv/parking.db")
        monkeypatch.setenv("PARKSMARTER_PARKING_URL", " https://example.org/parking.json ")
        monkeypatch.setenv("PARKSMARTER_HTTP_TIMEOUT_S", "2.5")
        monkeypatch.setenv("PARKSMARTER_LOG_LEVEL", "debug")
        cfg = Settings.from_env()
        assert cfg.sqlite_path == "/srv/parking.db"
        assert cfg.parking_source_url == "https://example.org/parking.json"
        assert cfg.http_timeout_s == 2.5
        assert cfg.log_level == "DEBUG"

    def test_bad_number_falls_back(self, monkeypatch):
        monkeypatch.setenv("PARKSMARTER_HTTP_TIMEOUT_S", "soon")
        assert Settings.from_env().http_timeout_s == 10.0

    def test_blank_value_uses_default(self, monkeypatch):
        monkeypatch.setenv("PARKSMARTER_PARKING_PATH", "   ")
        assert Settings.from_env().parking_cache_path == "data/available_parking_live.csv"
