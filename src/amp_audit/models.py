from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

NO_AMP_PAGE_MESSAGE = "Has no AMP page"


class Status(str, Enum):
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class UrlPair:
    """A canonical page and its AMP variant.

    An empty ``amp`` means the page declares no AMP version, which is a valid
    outcome. ``error`` is set instead when the canonical page could not be
    fetched at all.
    """

    canonical: str
    amp: str = ""
    error: str | None = None

    @property
    def status(self) -> Status:
        if self.error is not None:
            return Status.ERROR
        if not self.amp:
            return Status.WARNING
        return Status.OK


@dataclass(frozen=True)
class ValidationRecord:
    canonical: str
    amp: str
    status: Status
    messages: tuple[str, ...] = ()
