from __future__ import annotations

import json
import logging
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DEFAULT_VALIDATOR_EXECUTABLE = "amphtml-validator"


class AmpValidatorError(RuntimeError):
    """The validator itself could not run (as opposed to a FAIL verdict)."""


@dataclass(frozen=True)
class Diagnostic:
    line: int
    col: int
    message: str
    spec_url: str | None = None
    severity: str = "ERROR"


@dataclass(frozen=True)
class Verdict:
    passed: bool
    diagnostics: list[Diagnostic] = field(default_factory=list)


class AmpValidator(Protocol):
    def validate(self, html: str) -> Verdict: ...


def format_diagnostic(diag: Diagnostic) -> str:
    text = f"line {diag.line}, col {diag.col}: {diag.message}"
    if diag.spec_url:
        text += f" (see {diag.spec_url})"
    return text


def _diagnostic_from_json(obj: dict[str, Any]) -> Diagnostic:
    try:
        line = int(obj.get("line") or 0)
        col = int(obj.get("col") or 0)
    except (TypeError, ValueError) as e:
        raise AmpValidatorError(f"Bad position in validator error {obj!r}") from e
    spec_url = obj.get("specUrl")
    return Diagnostic(
        line=line,
        col=col,
        message=str(obj.get("message") or ""),
        spec_url=str(spec_url) if spec_url else None,
        severity=str(obj.get("severity") or "ERROR"),
    )


def parse_validator_json(output: str) -> Verdict:
    """Parse ``amphtml-validator --format=json`` output for a single input.

    The CLI keys its result by input name: ``{"-": {"status": ..., "errors":
    [...]}}``.
    """

    try:
        payload = json.loads(output)
    except json.JSONDecodeError as e:
        raise AmpValidatorError(f"Unreadable validator output: {e}") from e
    if not isinstance(payload, dict) or not payload:
        raise AmpValidatorError("Validator returned no result")

    result = next(iter(payload.values()))
    if not isinstance(result, dict) or "status" not in result:
        raise AmpValidatorError("Validator result has no status")

    status = str(result["status"]).upper()
    if status not in {"PASS", "FAIL"}:
        raise AmpValidatorError(f"Validator status {status!r}")

    errors = result.get("errors") or []
    return Verdict(
        passed=status == "PASS",
        diagnostics=[_diagnostic_from_json(e) for e in errors if isinstance(e, dict)],
    )


class CliAmpValidator:
    """Runs the official ``amphtml-validator`` CLI on a page's HTML.

    The HTML is piped on stdin; the CLI exits non-zero for a FAIL verdict, so
    the exit code is ignored and the JSON on stdout is authoritative.
    """

    def __init__(
        self,
        executable: str = DEFAULT_VALIDATOR_EXECUTABLE,
        *,
        timeout_s: float = 60.0,
    ) -> None:
        self.executable = executable
        self.timeout_s = timeout_s

    def _resolve_executable(self) -> str:
        found = shutil.which(self.executable)
        if found is None:
            raise AmpValidatorError(
                f"AMP validator not found: {self.executable} "
                "(install it with `npm install -g amphtml-validator`)"
            )
        return found

    def validate(self, html: str) -> Verdict:
        cmd = [self._resolve_executable(), "--format=json", "-"]
        try:
            proc = subprocess.run(
                cmd,
                input=html,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.timeout_s,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise AmpValidatorError(
                f"AMP validator did not finish within {self.timeout_s:g} seconds"
            ) from e
        except OSError as e:
            raise AmpValidatorError(f"Could not run AMP validator: {e}") from e

        if not proc.stdout.strip():
            stderr = proc.stderr.strip() or f"exit code {proc.returncode}"
            raise AmpValidatorError(f"AMP validator failed: {stderr}")

        verdict = parse_validator_json(proc.stdout)
        logger.debug(
            "validator: passed=%s diagnostics=%d",
            verdict.passed,
            len(verdict.diagnostics),
        )
        return verdict
