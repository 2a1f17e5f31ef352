from __future__ import annotations

import logging
import os
from datetime import datetime
from enum import Enum
from pathlib import Path

from .models import Status, UrlPair, ValidationRecord
from .state import RunSnapshot

logger = logging.getLogger(__name__)

PAIRS_REPORT_PREFIX = "SITEMAP_URL"
VALIDATION_REPORT_PREFIX = "AMP_REPORT"

_SEPARATOR = "-" * 58


class ReportLevel(str, Enum):
    ALL = "all"
    WARNINGS_AND_ERRORS = "warnings_and_errors"
    ERRORS_ONLY = "errors_only"

    @property
    def label(self) -> str:
        return {
            ReportLevel.ALL: "Success, Warnings, and Errors",
            ReportLevel.WARNINGS_AND_ERRORS: "Warnings and Errors",
            ReportLevel.ERRORS_ONLY: "Errors only",
        }[self]

    def includes(self, status: Status) -> bool:
        if self == ReportLevel.ALL:
            return True
        if self == ReportLevel.WARNINGS_AND_ERRORS:
            return status != Status.OK
        return status == Status.ERROR


def file_timestamp(now: datetime) -> str:
    return now.strftime("%Y%m%dT%H%M%S")


def display_timestamp(now: datetime) -> str:
    return now.strftime("%m/%d/%Y %H:%M:%S")


def report_path(out_dir: Path, prefix: str, now: datetime) -> Path:
    """``<out_dir>/<PREFIX>_<yyyymmdd>T<hhmmss>.txt``, never an existing file."""

    stem = f"{prefix}_{file_timestamp(now)}"
    path = out_dir / f"{stem}.txt"
    n = 1
    while path.exists():
        n += 1
        path = out_dir / f"{stem}_{n}.txt"
    return path


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_text(text, encoding="utf-8", newline="\n")
    os.replace(tmp, path)


def render_pairs(snapshot: RunSnapshot[UrlPair]) -> str:
    lines: list[str] = []
    for pair in snapshot.results:
        if pair.error is not None:
            lines.append(f"# error {pair.canonical}: {pair.error}")
            continue
        lines.append(f"{pair.canonical} {pair.amp}".rstrip())
    return "\n".join(lines) + ("\n" if lines else "")


def render_validation(
    snapshot: RunSnapshot[ValidationRecord],
    *,
    level: ReportLevel,
    now: datetime,
) -> str:
    lines = [
        f"Time:           {display_timestamp(now)}",
        f"Links checked:  {snapshot.processed}",
        f"Passes:         {snapshot.success_count}",
        f"Fails:          {snapshot.failure_count}",
        f"Warnings:       {snapshot.warning_count}",
        f"Logging level:  {level.label}",
    ]
    if snapshot.cancelled:
        lines.append(
            f"Cancelled:      after {snapshot.processed} of "
            f"{snapshot.total_items} links"
        )

    for record in snapshot.results:
        if not level.includes(record.status):
            continue
        lines.append(_SEPARATOR)
        if record.amp:
            lines.append(f"AMP URL      : {record.amp}")
        lines.append(f"Canonical URL: {record.canonical}")
        lines.append(f"Status       : {record.status.value}")
        lines.append(f"{len(record.messages)} message(s):")
        for idx, message in enumerate(record.messages, start=1):
            lines.append(f"\t[{idx}] {message}")

    return "\n".join(lines) + "\n"


def write_pairs_report(
    snapshot: RunSnapshot[UrlPair],
    *,
    out_dir: Path,
    now: datetime | None = None,
) -> Path:
    """Write one ``"{canonical} {amp}"`` line per pair.

    The file carries no header so it can be fed straight back to the
    validation pipeline. Pages that could not be fetched are kept as ``#``
    comment lines.
    """

    now = now or datetime.now()
    path = report_path(out_dir, PAIRS_REPORT_PREFIX, now)
    logger.info("Writing pairs to file: %s", path)
    _write_atomic(path, render_pairs(snapshot))
    return path


def write_validation_report(
    snapshot: RunSnapshot[ValidationRecord],
    *,
    out_dir: Path,
    level: ReportLevel = ReportLevel.ALL,
    now: datetime | None = None,
) -> Path:
    now = now or datetime.now()
    path = report_path(out_dir, VALIDATION_REPORT_PREFIX, now)
    logger.info("Writing report to file: %s", path)
    _write_atomic(path, render_validation(snapshot, level=level, now=now))
    return path
