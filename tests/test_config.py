"""Tests for trellis.config: AppConfig and App node props."""

import dataclasses

import pytest

from trellis.config import DEFAULT_HOST, DEFAULT_PORT, AppConfig, config_from_app_props
from trellis.errors import ConfigurationError
from trellis.middleware.cors import CORSConfig


class TestAppConfig:
    def test_defaults(self) -> None:
        config = AppConfig()
        assert config.host == DEFAULT_HOST == "127.0.0.1"
        assert config.port == DEFAULT_PORT == 6969
        assert config.cors_enabled is False
        assert config.cors_options is None

    def test_frozen(self) -> None:
        config = AppConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.port = 1  # type: ignore[misc]


class TestFromAppProps:
    def test_port(self) -> None:
        assert config_from_app_props(8080, None).port == 8080

    def test_missing_port_is_default(self) -> None:
        assert config_from_app_props(None, None).port == 6969

    def test_non_integer_port_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="port must be an integer"):
            config_from_app_props("8080", None)  # type: ignore[arg-type]

    def test_cors_false_disables(self) -> None:
        config = config_from_app_props(None, False)
        assert config.cors_enabled is False

    def test_cors_config_passes_through(self) -> None:
        cors = CORSConfig(allow_origins=("https://a.com",))
        assert config_from_app_props(None, cors).cors_options is cors

    def test_cors_mapping(self) -> None:
        config = config_from_app_props(None, {"allow_origins": ["https://a.com"], "max_age": 60})
        assert config.cors_options == CORSConfig(allow_origins=("https://a.com",), max_age=60)
