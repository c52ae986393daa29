"""Voice session configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field, SecretStr, field_validator

from notchvoice.core.errors import ConfigurationError
from notchvoice.models.enums import VoiceIdentity

DEFAULT_SERVER_URL = "ws://localhost:7880"


class ConnectOptions(BaseModel):
    """Options handed to the transport when joining a room."""

    auto_subscribe: bool = True
    echo_cancellation: bool = True
    noise_suppression: bool = True
    auto_gain_control: bool = True
    sample_rate: int = Field(default=48000, gt=0, le=192_000)
    num_channels: int = Field(default=1, ge=1, le=2)


class VoiceSettings(BaseModel):
    """Everything a :class:`~notchvoice.core.session.VoiceSession` needs to connect.

    The session never persists these; the host application resolves them
    (from its own store, the keychain, or the environment) and passes them in.

    Example::

        settings = VoiceSettings(server_url="wss://rooms.example.com", token="eyJ...")
        settings = VoiceSettings.from_env()
    """

    server_url: str = DEFAULT_SERVER_URL
    token: SecretStr | None = None
    voice: VoiceIdentity = VoiceIdentity.ARA
    level_interval: float = Field(default=1 / 30, gt=0)
    connect_options: ConnectOptions = Field(default_factory=ConnectOptions)

    @field_validator("server_url")
    @classmethod
    def _strip_server_url(cls, v: str) -> str:
        return v.strip()

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> VoiceSettings:
        """Load settings from ``NOTCHVOICE_*`` environment variables.

        Unset variables fall back to the field defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        if url := env.get("NOTCHVOICE_SERVER_URL"):
            values["server_url"] = url
        if token := env.get("NOTCHVOICE_TOKEN"):
            values["token"] = token
        if voice := env.get("NOTCHVOICE_VOICE"):
            values["voice"] = voice
        return cls.model_validate(values)

    def validate_for_connect(self) -> tuple[str, str]:
        """Return ``(server_url, token)`` or raise :class:`ConfigurationError`."""
        token = self.token.get_secret_value() if self.token is not None else ""
        if not token:
            raise ConfigurationError("No auth token configured")
        if not self.server_url:
            raise ConfigurationError("No server URL configured")
        return self.server_url, token
