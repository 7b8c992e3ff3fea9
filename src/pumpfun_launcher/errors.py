from __future__ import annotations


class LauncherError(RuntimeError):
    """Base class for every failure the CLI reports and exits on."""


class ConfigError(LauncherError):
    pass


class StatusSourceError(LauncherError):
    """A single status poll failed (transport, HTTP status or payload)."""


class PollError(LauncherError):
    """The status source kept failing past the retry budget."""

    def __init__(self, message: str, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class RpcError(LauncherError):
    pass


class MetadataUploadError(LauncherError):
    pass


class InsufficientBalanceError(LauncherError):
    pass
