import os

import pytest
from pydantic import ValidationError

from settlescout.config.settings import Settings, get_logging_config, get_settings
from settlescout.core.env import get_project_root, load_dotenv_if_present, resolve_project_path
from settlescout.selection.policy import SelectionPolicy


def test_packaged_defaults_match_the_documented_knobs():
    get_settings.cache_clear()
    try:
        settings = get_settings()
    finally:
        get_settings.cache_clear()

    assert settings.overpass.radius_m == 100_000
    assert settings.overpass.query_timeout_seconds == 30
    assert settings.overpass.place_kinds == ["city", "town", "village"]
    assert settings.retry.max_attempts == 3
    assert settings.retry.base_delay_seconds == 2.0
    assert settings.selection.policy is SelectionPolicy.POPULATION_THEN_DISTANCE
    assert settings.selection.population_band.as_tuple() == (20_000, 50_000)


def test_env_overrides_are_applied(monkeypatch, tmp_path):
    monkeypatch.setenv("SETTLESCOUT_PROJECT_ROOT", str(tmp_path))
    monkeypatch.setenv("SETTLESCOUT_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("SETTLESCOUT_INPUT_PATH", "in/points.xlsx")
    monkeypatch.setenv("SETTLESCOUT_OVERPASS_URL", "https://overpass.example/api/interpreter")
    get_settings.cache_clear()
    try:
        settings = get_settings()
    finally:
        get_settings.cache_clear()

    assert settings.app.log_level == "DEBUG"
    assert settings.run.input_path == "in/points.xlsx"
    assert settings.overpass.url == "https://overpass.example/api/interpreter"


def test_external_config_file(monkeypatch, tmp_path):
    config = tmp_path / "custom.yaml"
    config.write_text(
        "selection:\n  policy: nearest_only\nretry:\n  max_attempts: 5\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("SETTLESCOUT_CONFIG_PATH", str(config))
    get_settings.cache_clear()
    try:
        settings = get_settings()
    finally:
        get_settings.cache_clear()

    assert settings.selection.policy is SelectionPolicy.NEAREST_ONLY
    assert settings.retry.max_attempts == 5
    assert settings.overpass.radius_m == 100_000


def test_invalid_values_are_rejected():
    with pytest.raises(ValidationError):
        Settings.model_validate({"selection": {"population_band": {"min": 50_000, "max": 20_000}}})
    with pytest.raises(ValidationError):
        Settings.model_validate({"retry": {"max_attempts": 0}})
    with pytest.raises(ValidationError):
        Settings.model_validate({"selection": {"policy": "largest_first"}})


def test_logging_config_is_a_dictconfig_mapping():
    config = get_logging_config()
    assert config["version"] == 1
    assert "console" in config["handlers"]


def test_project_root_and_env_file_overrides(monkeypatch, tmp_path):
    env_dir = tmp_path / "deploy"
    env_dir.mkdir()
    env_file = env_dir / "run.env"
    env_file.write_text("SETTLESCOUT_TEST_MARKER=from-env-file\n", encoding="utf-8")

    monkeypatch.delenv("SETTLESCOUT_PROJECT_ROOT", raising=False)
    monkeypatch.delenv("SETTLESCOUT_TEST_MARKER", raising=False)
    monkeypatch.setenv("SETTLESCOUT_ENV_FILE", str(env_file))
    get_project_root.cache_clear()
    load_dotenv_if_present.cache_clear()
    try:
        assert load_dotenv_if_present() == env_file.resolve()
        assert os.environ["SETTLESCOUT_TEST_MARKER"] == "from-env-file"
        assert resolve_project_path("data/grid.xlsx") == (env_dir / "data" / "grid.xlsx").resolve()

        monkeypatch.setenv("SETTLESCOUT_PROJECT_ROOT", str(tmp_path))
        get_project_root.cache_clear()
        assert resolve_project_path("data/grid.xlsx") == (tmp_path / "data" / "grid.xlsx").resolve()
    finally:
        monkeypatch.delenv("SETTLESCOUT_TEST_MARKER", raising=False)
        get_project_root.cache_clear()
        load_dotenv_if_present.cache_clear()
