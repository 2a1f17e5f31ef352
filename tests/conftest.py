from __future__ import annotations

import pytest

from amp_audit.http_client import HttpClient
from amp_audit.validator import Diagnostic, Verdict
from fakes import FakeSession, SleepRecorder


@pytest.fixture()
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture()
def http(session: FakeSession) -> HttpClient:
    return HttpClient(session, timeout_s=5)  # type: ignore[arg-type]


@pytest.fixture()
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture()
def failing_verdict() -> Verdict:
    return Verdict(
        passed=False,
        diagnostics=[Diagnostic(line=3, col=5, message="bad tag", spec_url="")],
    )
