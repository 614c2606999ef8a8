"""
Tests for configuration loading
"""

import json

import pytest

from eventbuckets.errors import ConfigInvalid
from eventbuckets.utils.config import (
    Settings,
    get_database_dsn,
    get_run_config,
    get_settings,
    load_config,
)


class TestLoadConfig:
    """Tests for load_config."""

    def test_yaml_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("database:\n  dsn: postgresql://localhost/events\n")

        config = load_config(str(path))

        assert get_database_dsn(config) == "postgresql://localhost/events"

    def test_legacy_json_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"DBConn": ["dbname=events sslmode=disable", "dbname=replica"]}))

        config = load_config(str(path))

        assert get_database_dsn(config) == "dbname=events sslmode=disable"

    def test_env_substitution(self, tmp_path, monkeypatch):
        monkeypatch.setenv("EVENTS_DB_HOST", "db.internal")
        path = tmp_path / "config.yaml"
        path.write_text(
            "database:\n"
            "  dsn: postgresql://${EVENTS_DB_HOST}/${EVENTS_DB_NAME:events}\n"
            "metrics:\n"
            "  pushgateway: ${EVENTS_UNSET_GATEWAY:}\n"
        )

        config = load_config(str(path))

        assert config["database"]["dsn"] == "postgresql://db.internal/events"
        assert config["metrics"]["pushgateway"] == ""

    def test_unknown_env_var_kept(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("database:\n  dsn: ${EVENTS_DEFINITELY_UNSET_VAR}\n")

        config = load_config(str(path))

        assert config["database"]["dsn"] == "${EVENTS_DEFINITELY_UNSET_VAR}"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigInvalid) as exc_info:
            load_config(str(tmp_path / "nope.yaml"))

        assert "opening config file" in str(exc_info.value)
        assert exc_info.value.exit_code == 2

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("database: [unclosed\n")

        with pytest.raises(ConfigInvalid):
            load_config(str(path))

    def test_non_mapping_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigInvalid):
            load_config(str(path))


class TestGetDatabaseDsn:
    def test_missing_dsn(self):
        with pytest.raises(ConfigInvalid):
            get_database_dsn({"database": {}})

    def test_empty_legacy_list(self):
        with pytest.raises(ConfigInvalid):
            get_database_dsn({"DBConn": []})

    def test_structured_form_wins(self):
        config = {"database": {"dsn": "sqlite:///a.db"}, "DBConn": ["sqlite:///b.db"]}

        assert get_database_dsn(config) == "sqlite:///a.db"


class TestGetRunConfig:
    """Tests for the backfill and metrics sections."""

    def test_missing_sections_fall_back_to_settings(self):
        settings = Settings(scan_batch_size=500, metrics_pushgateway="gw:9091")

        run_config = get_run_config({"database": {"dsn": "sqlite:///a.db"}})

        assert run_config.scan_batch_size(settings) == 500
        assert run_config.metrics_target(settings) == ("gw:9091", "eventbuckets_add_filter")

    def test_config_values_win(self):
        config = {"backfill": {"batch_size": "50"}, "metrics": {"pushgateway": "cfg:9091", "job": "nightly"}}

        run_config = get_run_config(config)

        assert run_config.scan_batch_size(Settings()) == 50
        assert run_config.metrics_target(Settings()) == ("cfg:9091", "nightly")

    def test_empty_gateway_falls_back(self):
        run_config = get_run_config({"metrics": {"pushgateway": ""}, "backfill": None})

        assert run_config.metrics_target(Settings()) == (None, "eventbuckets_add_filter")
        assert run_config.scan_batch_size(Settings()) == 2000

    @pytest.mark.parametrize(
        "config,field",
        [
            ({"backfill": {"batch_size": "lots"}}, "backfill.batch_size"),
            ({"backfill": {"batch_size": 0}}, "backfill.batch_size"),
            ({"backfill": {"batch_size": -5}}, "backfill.batch_size"),
            ({"backfill": 100}, "backfill"),
            ({"metrics": "foo"}, "metrics"),
            ({"metrics": {"job": ["a", "b"]}}, "metrics.job"),
        ],
    )
    def test_invalid_sections(self, config, field):
        with pytest.raises(ConfigInvalid) as exc_info:
            get_run_config(config)

        assert "reading config file" in str(exc_info.value)
        assert field in str(exc_info.value)
        assert exc_info.value.exit_code == 2


class TestSettings:
    def test_defaults(self):
        settings = Settings()

        assert settings.log_format == "text"
        assert settings.metrics_pushgateway is None
        assert settings.scan_batch_size == 2000

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("EVENTBUCKETS_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("EVENTBUCKETS_SCAN_BATCH_SIZE", "50")

        settings = get_settings()

        assert settings.log_level == "DEBUG"
        assert settings.scan_batch_size == 50
