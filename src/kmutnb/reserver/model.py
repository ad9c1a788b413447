from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from kmutnb.reserver.error import ReserverError


class Stage(Enum):
    CONFIG = "config"
    LOGIN = "login"
    RESERVE = "reserve"


@dataclass(frozen=True)
class Credentials:
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class StageResult:
    """Result of one HTTP step against the portal."""

    stage: Stage
    success: bool
    status_code: int | None = None
    excerpt: str = ""
    text: str = ""


@dataclass
class Outcome:
    """Everything a single run produced.

    `login` and `reservation` are filled in as the steps complete. When a step
    fails, `error` holds the exception and the later steps stay None.
    """

    login: StageResult | None = None
    reservation: StageResult | None = None
    error: "ReserverError | None" = None

    @property
    def success(self) -> bool:
        return (
            self.error is None
            and self.login is not None
            and self.login.success
            and self.reservation is not None
            and self.reservation.success
        )

    @property
    def exit_code(self) -> int:
        if self.success:
            return 0
        if self.error is not None:
            return self.error.exit_code
        return 1
