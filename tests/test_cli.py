from __future__ import annotations

import requests

from amp_audit.cli import EXIT_OK, EXIT_SEED_FAILED, main
from amp_audit.validator import Verdict
from fakes import FakeSession, FakeValidator, amp_page, sitemap


def _site() -> FakeSession:
    session = FakeSession()
    session.add_xml(
        "https://example.com/sitemap.xml",
        sitemap("https://example.com/a", "https://example.com/b"),
    )
    session.add_html("https://example.com/a", amp_page("https://example.com/amp/a"))
    session.add_html("https://example.com/b", "<html>plain</html>")
    session.add_html("https://example.com/amp/a", "<html amp></html>")
    return session


def test_extract_writes_pairs_file(tmp_path, capsys) -> None:
    session = _site()
    code = main(
        [
            "extract",
            "https://example.com/sitemap.xml",
            "--out",
            str(tmp_path),
            "--wait",
            "0",
            "--fifo",
        ],
        session=session,  # type: ignore[arg-type]
    )
    assert code == EXIT_OK

    printed = capsys.readouterr().out.strip()
    files = list(tmp_path.glob("SITEMAP_URL_*.txt"))
    assert [str(p) for p in files] == [printed]
    assert files[0].read_text(encoding="utf-8").splitlines() == [
        "https://example.com/a https://example.com/amp/a",
        "https://example.com/b",
    ]
    # Sessions passed in by the caller stay open.
    assert session.closed is False


def test_seed_failure_exit_code(tmp_path, capsys) -> None:
    session = FakeSession(
        {"https://example.com/": requests.ConnectionError("no route to host")}
    )
    code = main(
        ["extract", "https://example.com/", "--out", str(tmp_path), "--wait", "0"],
        session=session,  # type: ignore[arg-type]
    )
    assert code == EXIT_SEED_FAILED
    assert "Could not retrieve https://example.com/" in capsys.readouterr().err
    assert list(tmp_path.iterdir()) == []


def test_validate_pairs_file(tmp_path) -> None:
    pairs = tmp_path / "pairs.txt"
    pairs.write_text(
        "https://example.com/a https://example.com/amp/a\nhttps://example.com/b\n",
        encoding="utf-8",
    )
    out_dir = tmp_path / "reports"
    code = main(
        [
            "validate",
            str(pairs),
            "--out",
            str(out_dir),
            "--wait",
            "0",
            "--logging",
            "warnings_and_errors",
        ],
        session=_site(),  # type: ignore[arg-type]
        validator=FakeValidator(Verdict(passed=True)),
    )
    assert code == EXIT_OK

    [report] = list(out_dir.glob("AMP_REPORT_*.txt"))
    text = report.read_text(encoding="utf-8")
    assert "Passes:         1" in text
    assert "Warnings:       1" in text
    assert "Canonical URL: https://example.com/b" in text
    assert "Canonical URL: https://example.com/a" not in text


def test_validate_from_seed_url(tmp_path) -> None:
    validator = FakeValidator(Verdict(passed=True))
    code = main(
        [
            "validate",
            "https://example.com/sitemap.xml",
            "--out",
            str(tmp_path),
            "--wait",
            "0",
        ],
        session=_site(),  # type: ignore[arg-type]
        validator=validator,
    )
    assert code == EXIT_OK
    assert len(list(tmp_path.glob("SITEMAP_URL_*.txt"))) == 1
    assert len(list(tmp_path.glob("AMP_REPORT_*.txt"))) == 1
    assert validator.seen == ["<html amp></html>"]


def test_validate_from_seed_url_pauses_between_pipelines(tmp_path) -> None:
    session = _site()

    def _sleep(seconds: float) -> None:
        session.calls.append(f"sleep {seconds}")

    code = main(
        [
            "validate",
            "https://example.com/sitemap.xml",
            "--out",
            str(tmp_path),
            "--wait",
            "1",
            "--fifo",
        ],
        session=session,  # type: ignore[arg-type]
        validator=FakeValidator(Verdict(passed=True)),
        sleep=_sleep,
    )
    assert code == EXIT_OK
    assert session.calls == [
        "https://example.com/sitemap.xml",
        "sleep 1.0",
        "https://example.com/a",
        "sleep 1.0",
        "https://example.com/b",
        "sleep 1.0",
        "https://example.com/amp/a",
        "sleep 1.0",
    ]


def test_validate_from_seed_url_reports_unreachable_pages(tmp_path) -> None:
    session = _site()
    session.add_xml(
        "https://example.com/sitemap.xml",
        sitemap("https://example.com/a", "https://example.com/gone"),
    )
    validator = FakeValidator(Verdict(passed=True))
    code = main(
        [
            "validate",
            "https://example.com/sitemap.xml",
            "--out",
            str(tmp_path),
            "--wait",
            "0",
        ],
        session=session,  # type: ignore[arg-type]
        validator=validator,
    )
    assert code == EXIT_OK

    [report] = list(tmp_path.glob("AMP_REPORT_*.txt"))
    text = report.read_text(encoding="utf-8")
    assert "Links checked:  2" in text
    assert "Passes:         1" in text
    assert "Fails:          1" in text
    assert "Canonical URL: https://example.com/gone" in text
    assert "status code 404" in text
    assert session.calls.count("https://example.com/gone") == 1
    assert validator.seen == ["<html amp></html>"]
