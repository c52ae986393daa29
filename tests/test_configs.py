"""Tests for VoiceSettings and ConnectOptions."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from notchvoice.config import DEFAULT_SERVER_URL, ConnectOptions, VoiceSettings
from notchvoice.core.errors import ConfigurationError
from notchvoice.models.enums import VoiceIdentity


class TestConnectOptions:
    def test_defaults(self) -> None:
        options = ConnectOptions()

        assert options.auto_subscribe is True
        assert options.echo_cancellation is True
        assert options.sample_rate == 48000
        assert options.num_channels == 1

    def test_rejects_bad_channel_count(self) -> None:
        with pytest.raises(ValidationError):
            ConnectOptions(num_channels=6)


class TestVoiceSettings:
    def test_defaults(self) -> None:
        settings = VoiceSettings()

        assert settings.server_url == DEFAULT_SERVER_URL
        assert settings.token is None
        assert settings.voice is VoiceIdentity.ARA
        assert settings.level_interval == pytest.approx(1 / 30)

    def test_token_is_secret(self) -> None:
        settings = VoiceSettings(token="super-secret")

        assert "super-secret" not in repr(settings)
        assert "super-secret" not in str(settings)

    def test_voice_from_string(self) -> None:
        assert VoiceSettings(voice="Leo").voice is VoiceIdentity.LEO

    def test_unknown_voice_rejected(self) -> None:
        with pytest.raises(ValidationError):
            VoiceSettings(voice="Bob")

    def test_level_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            VoiceSettings(level_interval=0)


class TestValidateForConnect:
    def test_returns_url_and_token(self) -> None:
        settings = VoiceSettings(server_url=" wss://rooms.example.com ", token="tok")

        assert settings.validate_for_connect() == ("wss://rooms.example.com", "tok")

    @pytest.mark.parametrize("token", [None, ""])
    def test_missing_token(self, token: str | None) -> None:
        with pytest.raises(ConfigurationError, match="No auth token configured"):
            VoiceSettings(token=token).validate_for_connect()

    def test_missing_server_url(self) -> None:
        with pytest.raises(ConfigurationError, match="No server URL configured"):
            VoiceSettings(server_url="", token="tok").validate_for_connect()


class TestFromEnv:
    def test_reads_variables(self) -> None:
        settings = VoiceSettings.from_env(
            {
                "NOTCHVOICE_SERVER_URL": "wss://rooms.example.com",
                "NOTCHVOICE_TOKEN": "tok",
                "NOTCHVOICE_VOICE": "Eve",
            }
        )

        assert settings.server_url == "wss://rooms.example.com"
        assert settings.token is not None
        assert settings.token.get_secret_value() == "tok"
        assert settings.voice is VoiceIdentity.EVE

    def test_unset_falls_back_to_defaults(self) -> None:
        settings = VoiceSettings.from_env({"NOTCHVOICE_TOKEN": ""})

        assert settings.server_url == DEFAULT_SERVER_URL
        assert settings.token is None

    def test_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NOTCHVOICE_TOKEN", "from-env")

        settings = VoiceSettings.from_env()

        assert settings.token is not None
        assert settings.token.get_secret_value() == "from-env"
