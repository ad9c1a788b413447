from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from datetime import datetime
import os
from typing import Self

from dotenv import dotenv_values
from loguru import logger

from kmutnb.reserver.error import ConfigError
from kmutnb.reserver.error import MissingCredential
from kmutnb.reserver.model import Credentials
from kmutnb.reserver.model import Stage

DEFAULT_TIMEOUT = 10.0


def load_credentials(environ: Mapping[str, str | None]) -> Credentials:
    """Read USERNAME and PASSWORD from `environ`.

    Raises:
        MissingCredential: if either variable is absent or blank. The message
            names the variable only, never its value.
    """
    missing = [name for name in ("USERNAME", "PASSWORD") if not (environ.get(name) or "").strip()]
    if missing:
        raise MissingCredential(f"{' and '.join(missing)} not set", stage=Stage.CONFIG)

    return Credentials(username=str(environ["USERNAME"]).strip(), password=str(environ["PASSWORD"]))


def read_environment(
    env_file: str | os.PathLike | None = ".env", environ: Mapping[str, str] | None = None
) -> dict[str, str | None]:
    """Process environment with the .env file laid over it. `os.environ` is left untouched."""
    values: dict[str, str | None] = dict(os.environ if environ is None else environ)
    if env_file is not None:
        values.update(dotenv_values(env_file))
    return values


@dataclass(frozen=True)
class Config:
    """Application configuration.

    Built once at startup by `Config.load()` and handed to the objects that
    need it. Nothing else in the package reads the environment.
    """

    credentials: Credentials
    timeout: float = DEFAULT_TIMEOUT
    verify_tls: bool = True
    date_expire: str | None = None
    csrf_field: str | None = None
    log_dir: str | None = None

    @classmethod
    def load(cls, env_file: str | os.PathLike | None = ".env", environ: Mapping[str, str] | None = None) -> Self:
        """Load configuration from the environment.

        The priority is .env file > environment variables
        See .env-example for the required variables
        """
        return cls.from_values(read_environment(env_file, environ))

    @classmethod
    def from_values(cls, values: Mapping[str, str | None]) -> Self:
        credentials = load_credentials(values)

        verify_tls = cls._parse_verify_tls(values.get("VERIFY_TLS"))
        if not verify_tls:
            logger.warning("TLS certificate verification is disabled (VERIFY_TLS=false).")

        return cls(
            credentials=credentials,
            timeout=cls._parse_timeout(values.get("REQUEST_TIMEOUT")),
            verify_tls=verify_tls,
            date_expire=cls._parse_date(values.get("DATE_EXPIRE")),
            csrf_field=(values.get("CSRF_FIELD") or "").strip() or None,
            log_dir=(values.get("LOG_DIR") or "").strip() or None,
        )

    @staticmethod
    def _parse_verify_tls(value: str | None) -> bool:
        """Verification stays on unless explicitly switched off."""
        if value is None or not value.strip():
            return True
        value = value.strip().lower()
        if value in ("true", "1", "yes"):
            return True
        if value in ("false", "0", "no"):
            return False
        raise ConfigError(f"VERIFY_TLS must be true or false, got {value!r}", stage=Stage.CONFIG)

    @staticmethod
    def _parse_timeout(value: str | None) -> float:
        if value is None or not value.strip():
            return DEFAULT_TIMEOUT
        try:
            timeout = float(value)
        except ValueError:
            raise ConfigError(f"REQUEST_TIMEOUT must be a number, got {value!r}", stage=Stage.CONFIG)
        if timeout <= 0:
            raise ConfigError("REQUEST_TIMEOUT must be greater than zero", stage=Stage.CONFIG)
        return timeout

    @staticmethod
    def _parse_date(value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        try:
            parsed: date = datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            raise ConfigError(f"DATE_EXPIRE must be YYYY-MM-DD, got {value!r}", stage=Stage.CONFIG)
        return parsed.isoformat()

