from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Protocol, TypeVar

from .models import Status


class HasStatus(Protocol):
    @property
    def status(self) -> Status: ...


R = TypeVar("R", bound=HasStatus)


@dataclass(frozen=True)
class RunSnapshot(Generic[R]):
    total_items: int
    success_count: int
    warning_count: int
    failure_count: int
    results: tuple[R, ...]
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return len(self.results)


@dataclass
class RunState(Generic[R]):
    """Outcomes of one pipeline run, in the order they were produced.

    Only the walker driving the run mutates it.
    """

    total_items: int = 0
    success_count: int = 0
    warning_count: int = 0
    failure_count: int = 0
    results: list[R] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return len(self.results)

    def append(self, record: R) -> None:
        status = Status(record.status)
        if status == Status.OK:
            self.success_count += 1
        elif status == Status.WARNING:
            self.warning_count += 1
        else:
            self.failure_count += 1
        self.results.append(record)

    def snapshot(self) -> RunSnapshot[R]:
        return RunSnapshot(
            total_items=self.total_items,
            success_count=self.success_count,
            warning_count=self.warning_count,
            failure_count=self.failure_count,
            results=tuple(self.results),
            cancelled=self.cancelled,
        )
