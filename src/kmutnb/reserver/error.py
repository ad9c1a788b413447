"""Custom exception hierarchy for the Reserver application.

Every error names the stage it happened in and, where one was received, the
HTTP status code, so the CLI can print a one-line diagnostic and pick an exit
code without inspecting anything else.
"""

from kmutnb.reserver.model import Stage


class ReserverError(Exception):
    exit_code = 1

    def __init__(
        self,
        message: str,
        stage: Stage | None = None,
        status_code: int | None = None,
        excerpt: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.status_code = status_code
        self.excerpt = excerpt

    def __str__(self) -> str:
        text = self.message
        if self.stage is not None:
            text = f"{self.stage.value} failed: {text}"
        if self.status_code is not None:
            text = f"{text} (HTTP {self.status_code})"
        return text


class InternalError(ReserverError):
    """Error caused by failure in app logic."""


class ConfigError(ReserverError):
    """Error caused by invalid user configuration."""

    exit_code = 2


class MissingCredential(ConfigError):
    """USERNAME or PASSWORD is absent or empty."""


class NetworkError(ReserverError):
    """DNS, TLS, connection or timeout failure before a response arrived."""

    exit_code = 3


class AuthenticationFailed(ReserverError):
    """The portal rejected the credentials."""

    exit_code = 4


class ReservationFailed(ReserverError):
    """The reservation request was answered with an error."""

    exit_code = 5


class UnexpectedResponse(ReserverError):
    """The portal answered with something we do not know how to read."""

    exit_code = 6
