from __future__ import annotations

import argparse
import logging
import signal
import sys
import time
from pathlib import Path
from types import FrameType
from typing import Any, Callable

import requests

from .audit import AuditConfig, PageAuditor
from .crawl import CrawlConfig, extract_pairs
from .http_client import DEFAULT_TIMEOUT_S, HttpClient
from .models import UrlPair
from .report import ReportLevel, write_pairs_report, write_validation_report
from .validator import DEFAULT_VALIDATOR_EXECUTABLE, AmpValidator, CliAmpValidator
from .walker import DEFAULT_WAIT_S, CancelToken, WorkOrder
from .worklist import SeedFetchError, read_pairs

logger = logging.getLogger("amp_audit")

EXIT_OK = 0
EXIT_SEED_FAILED = 1
EXIT_IO_ERROR = 2
EXIT_INTERRUPTED = 130


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--out",
        type=Path,
        default=Path("."),
        help="Directory for report files (default: current directory)",
    )
    p.add_argument(
        "--wait",
        type=float,
        default=DEFAULT_WAIT_S,
        help="Seconds to wait between requests (default: %(default)s)",
    )
    p.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_S,
        help="Per-request timeout in seconds (default: %(default)s)",
    )
    p.add_argument(
        "--fifo",
        action="store_true",
        help="Visit links in discovery order instead of last-discovered first",
    )
    p.add_argument("--progress", action="store_true", help="Show a progress bar")
    p.add_argument("-v", "--verbose", action="store_true")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # urllib3 is chatty at DEBUG.
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def _install_cancel_handler(cancel: CancelToken) -> Any:
    def _handler(signum: int, frame: FrameType | None) -> None:
        _ = signum, frame
        if cancel.cancelled:
            raise KeyboardInterrupt
        logger.warning(
            "Interrupted; finishing the current item (Ctrl-C again to abort)"
        )
        cancel.cancel()

    return signal.signal(signal.SIGINT, _handler)


def _is_url(source: str) -> bool:
    return source.lower().startswith(("http://", "https://"))


def _order(args: argparse.Namespace) -> WorkOrder:
    return WorkOrder.FIFO if bool(args.fifo) else WorkOrder.LIFO


def _run_extract(
    http: HttpClient,
    args: argparse.Namespace,
    seed_url: str,
    cancel: CancelToken,
    sleep: Callable[[float], None],
) -> tuple[list[UrlPair], Path]:
    crawl_cfg = CrawlConfig(
        wait_s=float(args.wait),
        order=_order(args),
        include_seed=not bool(getattr(args, "no_seed_pair", False)),
        progress=bool(args.progress),
    )
    state = extract_pairs(
        http, seed_url, config=crawl_cfg, cancel=cancel, sleep=sleep
    )
    snapshot = state.snapshot()
    path = write_pairs_report(snapshot, out_dir=args.out)
    return list(snapshot.results), path


def main(
    argv: list[str] | None = None,
    *,
    session: requests.Session | None = None,
    validator: AmpValidator | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    parser = argparse.ArgumentParser(prog="amp-audit")
    sub = parser.add_subparsers(dest="cmd", required=True)

    extract_p = sub.add_parser(
        "extract",
        help=(
            "Collect (canonical, AMP) URL pairs from the links of a page or "
            "the entries of an XML sitemap"
        ),
    )
    extract_p.add_argument("seed_url", help="Page or sitemap URL to start from")
    extract_p.add_argument(
        "--no-seed-pair",
        action="store_true",
        help="Do not record the seed page's own AMP link",
    )
    _add_common_args(extract_p)

    validate_p = sub.add_parser(
        "validate",
        help="Validate AMP pages and write a report",
    )
    validate_p.add_argument(
        "source",
        help=(
            "Pairs file written by `extract` ('-' for stdin), or a seed URL "
            "to extract pairs from first"
        ),
    )
    validate_p.add_argument(
        "--logging",
        dest="level",
        choices=[lvl.value for lvl in ReportLevel],
        default=ReportLevel.ALL.value,
        help="Minimum severity included in the report (default: %(default)s)",
    )
    validate_p.add_argument(
        "--validator",
        default=DEFAULT_VALIDATOR_EXECUTABLE,
        help="Path to the amphtml-validator executable",
    )
    validate_p.add_argument(
        "--no-seed-pair",
        action="store_true",
        help="When SOURCE is a URL, do not record the seed page's own AMP link",
    )
    _add_common_args(validate_p)

    args = parser.parse_args(argv)
    _configure_logging(bool(args.verbose))

    cancel = CancelToken()
    previous_handler = _install_cancel_handler(cancel)

    owns_session = session is None
    session = session or requests.Session()
    http = HttpClient(session, timeout_s=float(args.timeout))

    try:
        if args.cmd == "extract":
            _, path = _run_extract(http, args, args.seed_url, cancel, sleep)
            print(str(path))
            return EXIT_INTERRUPTED if cancel.cancelled else EXIT_OK

        if args.cmd == "validate":
            from_crawl = _is_url(args.source)
            if from_crawl:
                pairs, pairs_path = _run_extract(
                    http, args, args.source, cancel, sleep
                )
                logger.info("Pairs written to %s", pairs_path)
            else:
                pairs = read_pairs(Path(args.source))

            level = ReportLevel(args.level)
            logger.info("Wait time between requests: %ss", args.wait)
            logger.info("Logging level: %s", level.label)

            auditor = PageAuditor(
                http=http,
                validator=validator or CliAmpValidator(args.validator),
                config=AuditConfig(
                    wait_s=float(args.wait),
                    order=_order(args),
                    progress=bool(args.progress),
                    pause_before_first=from_crawl,
                ),
                sleep=sleep,
            )
            state = auditor.run(pairs, cancel=cancel)
            path = write_validation_report(
                state.snapshot(), out_dir=args.out, level=level
            )
            print(str(path))
            return EXIT_INTERRUPTED if cancel.cancelled else EXIT_OK
    except SeedFetchError as e:
        print(str(e), file=sys.stderr)
        return EXIT_SEED_FAILED
    except OSError as e:
        print(str(e), file=sys.stderr)
        return EXIT_IO_ERROR
    finally:
        if owns_session:
            session.close()
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)

    return EXIT_IO_ERROR
