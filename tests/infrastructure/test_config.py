"""Tests for configuration loading."""

from datetime import time
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from foodcoop.infrastructure.config import (
    CONFIG_ENV_VAR,
    AllocationPolicyName,
    AppConfig,
    ConfigError,
    LogLevel,
    load_config,
)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "foodcoop.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:

    def test_full_file(self, tmp_path):
        path = _write(
            tmp_path,
            """
data_dir: /var/lib/foodcoop
price_markup: "12.5"
allocation_policy: proportional
stock_order_name: Lager
log_level: DEBUG
order_schedule:
  initial: "2024-01-01T00:00:00+00:00"
  ends_weekday: 4
  ends_time: "18:30"
  interval_weeks: 2
""",
        )
        config = load_config(path)

        assert config.data_dir == Path("/var/lib/foodcoop")
        assert config.price_markup == Decimal("12.5")
        assert config.allocation_policy == AllocationPolicyName.PROPORTIONAL
        assert config.stock_order_name == "Lager"
        assert config.log_level == LogLevel.DEBUG
        assert config.order_schedule.ends_weekday == 4
        assert config.order_schedule.ends_time == time(18, 30)
        assert config.order_schedule.interval_weeks == 2

    def test_defaults_when_no_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        assert load_config() == AppConfig()

    def test_empty_file_means_defaults(self, tmp_path):
        config = load_config(_write(tmp_path, ""))
        assert config.allocation_policy == AllocationPolicyName.FIRST_COME
        assert config.price_markup == Decimal("0")
        assert config.order_schedule is None

    def test_env_var_points_to_file(self, tmp_path, monkeypatch):
        path = _write(tmp_path, "stock_order_name: Pantry\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().stock_order_name == "Pantry"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_env_var_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "nope.yaml"))
        with pytest.raises(FileNotFoundError):
            load_config()


class TestInvalidConfig:

    @pytest.mark.parametrize(
        "text",
        [
            "price_markup: -1\n",
            "allocation_policy: lottery\n",
            "unknown_key: 1\n",
            "order_schedule:\n  ends_weekday: 7\n",
            "order_schedule:\n  ends_weekday: 1\n  interval_weeks: 0\n",
            "stock_order_name: ''\n",
        ],
    )
    def test_rejected(self, tmp_path, text):
        with pytest.raises(ConfigError, match="Invalid configuration"):
            load_config(_write(tmp_path, text))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    def test_malformed_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Malformed"):
            load_config(_write(tmp_path, "data_dir: [unclosed\n"))

    def test_config_is_frozen(self):
        config = AppConfig()
        with pytest.raises(ValidationError):
            config.stock_order_name = "Other"
