"""Unit tests for ProviderConfig and ServerConfig.

Tests environment loading and validation of startup configuration.
"""

import pytest
from pydantic import ValidationError

from src.api.config import ServerConfig
from src.provider.config import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, ProviderConfig

ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_KEY",
    "PROVIDER_TIMEOUT",
    "PORT",
    "HOST",
    "LOG_LEVEL",
    "API_BASE_URL",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestProviderConfig:
    """Tests for ProviderConfig validation."""

    def test_config_with_default_values(self) -> None:
        """Config uses the fixed model and token bound when only a key is provided."""
        config = ProviderConfig(api_key="sk-ant-test")

        assert config.model_name == DEFAULT_MODEL
        assert config.max_tokens == DEFAULT_MAX_TOKENS

    def test_reads_key_from_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-env")

        assert ProviderConfig().api_key == "sk-ant-env"

    def test_falls_back_to_alternate_variable(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("ANTHROPIC_KEY", "sk-ant-alt")

        assert ProviderConfig().api_key == "sk-ant-alt"

    def test_config_fails_with_missing_api_key(self, clean_env: pytest.MonkeyPatch) -> None:
        """Config raises when no key variable is set."""
        with pytest.raises(ValidationError) as exc_info:
            ProviderConfig()

        assert "API key required" in str(exc_info.value)

    def test_config_fails_with_whitespace_api_key(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ProviderConfig(api_key="   ")

        assert "API key required" in str(exc_info.value)

    def test_config_strips_api_key_whitespace(self) -> None:
        config = ProviderConfig(api_key="  sk-ant-test  ")

        assert config.api_key == "sk-ant-test"

    def test_config_fails_with_overlong_key(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ProviderConfig(api_key="k" * 256)

        assert "too long" in str(exc_info.value)

    def test_timeout_from_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("PROVIDER_TIMEOUT", "15")

        assert ProviderConfig(api_key="sk-ant-test").timeout == 15.0

    @pytest.mark.parametrize("timeout", ["abc", "0", "-5"])
    def test_invalid_timeout_rejected(self, clean_env: pytest.MonkeyPatch, timeout: str) -> None:
        """A bad PROVIDER_TIMEOUT is a validation error, not a crash."""
        clean_env.setenv("PROVIDER_TIMEOUT", timeout)

        with pytest.raises(ValidationError) as exc_info:
            ProviderConfig(api_key="sk-ant-test")

        assert "timeout" in str(exc_info.value)


class TestStartupValidation:
    """Tests for fail-fast configuration checks in main()."""

    def test_bad_timeout_exits_with_status_1(
        self, clean_env: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        from src.main import main

        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-test")
        clean_env.setenv("PORT", "8080")
        clean_env.setenv("PROVIDER_TIMEOUT", "abc")

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        assert "Invalid configuration" in caplog.text

    def test_missing_port_exits_with_status_1(self, clean_env: pytest.MonkeyPatch) -> None:
        from src.main import main

        clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-test")

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1


class TestServerConfig:
    """Tests for ServerConfig validation."""

    def test_port_required(self, clean_env: pytest.MonkeyPatch) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ServerConfig()

        assert "Listen port required" in str(exc_info.value)

    @pytest.mark.parametrize("port", ["0", "65536", "abc"])
    def test_invalid_port_rejected(self, clean_env: pytest.MonkeyPatch, port: str) -> None:
        clean_env.setenv("PORT", port)

        with pytest.raises(ValidationError):
            ServerConfig()

    def test_port_from_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("PORT", "8080")

        config = ServerConfig()

        assert config.port == 8080
        assert config.host == "0.0.0.0"
        assert config.base_url == "http://127.0.0.1:8080"

    def test_log_level_normalized(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("PORT", "8080")
        clean_env.setenv("LOG_LEVEL", " debug ")

        assert ServerConfig().log_level == "DEBUG"

    def test_explicit_api_base_url(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("PORT", "8080")
        clean_env.setenv("API_BASE_URL", "http://relay.internal:9000")

        assert ServerConfig().base_url == "http://relay.internal:9000"
