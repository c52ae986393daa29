"""Exceptions raised by notchvoice."""

from __future__ import annotations


class NotchVoiceError(Exception):
    """Base exception for all notchvoice errors."""


class ConfigurationError(NotchVoiceError):
    """Settings are missing something required to connect."""


class TransportError(NotchVoiceError):
    """The room transport failed (network, auth, or SDK error)."""


class TransportNotConnectedError(TransportError):
    """An operation needs a connected room but there is none."""
