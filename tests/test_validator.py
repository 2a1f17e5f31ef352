from __future__ import annotations

import json
import subprocess

import pytest

from amp_audit import validator as validator_mod
from amp_audit.validator import (
    AmpValidatorError,
    CliAmpValidator,
    Diagnostic,
    format_diagnostic,
    parse_validator_json,
)


class TestFormatDiagnostic:
    def test_without_spec_url(self) -> None:
        diag = Diagnostic(line=3, col=5, message="bad tag", spec_url="")
        assert format_diagnostic(diag) == "line 3, col 5: bad tag"

    def test_with_none_spec_url(self) -> None:
        diag = Diagnostic(line=1, col=2, message="oops")
        assert format_diagnostic(diag) == "line 1, col 2: oops"

    def test_with_spec_url(self) -> None:
        diag = Diagnostic(line=1, col=2, message="oops", spec_url="https://amp.dev/s")
        assert format_diagnostic(diag) == "line 1, col 2: oops (see https://amp.dev/s)"


class TestParseValidatorJson:
    def test_pass(self) -> None:
        verdict = parse_validator_json(json.dumps({"-": {"status": "PASS", "errors": []}}))
        assert verdict.passed is True
        assert verdict.diagnostics == []

    def test_fail_with_errors(self) -> None:
        output = json.dumps(
            {
                "-": {
                    "status": "FAIL",
                    "errors": [
                        {
                            "severity": "ERROR",
                            "line": 12,
                            "col": 4,
                            "message": "The tag 'img' may only appear as a "
                            "descendant of tag 'noscript'.",
                            "specUrl": "https://amp.dev/documentation/components/amp-img",
                            "code": "MANDATORY_TAG_ANCESTOR_WITH_HINT",
                            "params": ["img", "noscript", "amp-img"],
                        }
                    ],
                }
            }
        )
        verdict = parse_validator_json(output)
        assert verdict.passed is False
        assert verdict.diagnostics[0].line == 12
        assert verdict.diagnostics[0].col == 4
        assert verdict.diagnostics[0].spec_url.endswith("amp-img")

    @pytest.mark.parametrize(
        "output", ["not json", "{}", '{"-": {"errors": []}}', '{"-": {"status": "?"}}']
    )
    def test_unusable_output(self, output: str) -> None:
        with pytest.raises(AmpValidatorError):
            parse_validator_json(output)

    @pytest.mark.parametrize("line", ["twelve", [12], {"n": 12}])
    def test_bad_position_is_validator_error(self, line: object) -> None:
        output = json.dumps(
            {"-": {"status": "FAIL", "errors": [{"line": line, "col": 1}]}}
        )
        with pytest.raises(AmpValidatorError):
            parse_validator_json(output)


class TestCliAmpValidator:
    def test_missing_executable(self, monkeypatch) -> None:
        monkeypatch.setattr(validator_mod.shutil, "which", lambda _: None)
        with pytest.raises(AmpValidatorError, match="not found"):
            CliAmpValidator("amphtml-validator").validate("<html></html>")

    def test_runs_cli_with_html_on_stdin(self, monkeypatch) -> None:
        seen: dict = {}

        def fake_run(cmd, **kwargs):
            seen["cmd"] = cmd
            seen["input"] = kwargs["input"]
            stdout = json.dumps({"-": {"status": "FAIL", "errors": []}})
            return subprocess.CompletedProcess(cmd, 1, stdout=stdout, stderr="")

        monkeypatch.setattr(validator_mod.shutil, "which", lambda name: f"/bin/{name}")
        monkeypatch.setattr(validator_mod.subprocess, "run", fake_run)

        verdict = CliAmpValidator().validate("<html>x</html>")
        assert verdict.passed is False
        assert seen["cmd"] == ["/bin/amphtml-validator", "--format=json", "-"]
        assert seen["input"] == "<html>x</html>"

    def test_empty_output_is_an_error(self, monkeypatch) -> None:
        def fake_run(cmd, **kwargs):
            return subprocess.CompletedProcess(cmd, 2, stdout="", stderr="crashed")

        monkeypatch.setattr(validator_mod.shutil, "which", lambda name: f"/bin/{name}")
        monkeypatch.setattr(validator_mod.subprocess, "run", fake_run)

        with pytest.raises(AmpValidatorError, match="crashed"):
            CliAmpValidator().validate("<html></html>")

    def test_timeout(self, monkeypatch) -> None:
        def fake_run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        monkeypatch.setattr(validator_mod.shutil, "which", lambda name: f"/bin/{name}")
        monkeypatch.setattr(validator_mod.subprocess, "run", fake_run)

        with pytest.raises(AmpValidatorError, match="did not finish"):
            CliAmpValidator(timeout_s=1).validate("<html></html>")
