from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable

from .http_client import FetchError, HttpClient
from .models import NO_AMP_PAGE_MESSAGE, Status, UrlPair, ValidationRecord
from .state import RunState
from .validator import AmpValidator, AmpValidatorError, format_diagnostic
from .walker import DEFAULT_WAIT_S, CancelToken, ThrottledWalker, WorkOrder

logger = logging.getLogger(__name__)


@dataclass
class AuditConfig:
    wait_s: float = DEFAULT_WAIT_S
    order: WorkOrder = WorkOrder.LIFO
    progress: bool = False
    pause_before_first: bool = False


class PageAuditor:
    """Fetches each pair's AMP page and runs it through the AMP validator."""

    def __init__(
        self,
        *,
        http: HttpClient,
        validator: AmpValidator,
        config: AuditConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.http = http
        self.validator = validator
        self.cfg = config or AuditConfig()
        self._sleep = sleep

    def validate_pair(self, pair: UrlPair) -> ValidationRecord:
        if pair.error is not None:
            # The canonical page itself failed during extraction.
            logger.error("Canonical page was not retrieved: %s", pair.canonical)
            return ValidationRecord(
                canonical=pair.canonical,
                amp="",
                status=Status.ERROR,
                messages=(f"ERROR: {pair.error}",),
            )

        if not pair.amp:
            logger.warning("Canonical link has no AMP page: %s", pair.canonical)
            return ValidationRecord(
                canonical=pair.canonical,
                amp="",
                status=Status.WARNING,
                messages=(NO_AMP_PAGE_MESSAGE,),
            )

        try:
            res = self.http.get_page(pair.amp)
        except FetchError as e:
            logger.error("%s", e)
            return ValidationRecord(
                canonical=pair.canonical,
                amp=pair.amp,
                status=Status.ERROR,
                messages=(f"ERROR: {e}",),
            )

        logger.debug("Received HTML. Validating %s", pair.amp)
        try:
            verdict = self.validator.validate(res.text)
        except AmpValidatorError as e:
            logger.error("Validator could not run on %s: %s", pair.amp, e)
            return ValidationRecord(
                canonical=pair.canonical,
                amp=pair.amp,
                status=Status.ERROR,
                messages=(f"ERROR: AMP validator could not run: {e}",),
            )

        messages = tuple(format_diagnostic(d) for d in verdict.diagnostics)
        if verdict.passed:
            logger.info("PASSED: %s (%d messages)", pair.amp, len(messages))
        else:
            logger.info("FAILED: %s (%d messages)", pair.amp, len(messages))
        return ValidationRecord(
            canonical=pair.canonical,
            amp=pair.amp,
            status=Status.OK if verdict.passed else Status.ERROR,
            messages=messages,
        )

    def run(
        self,
        pairs: Iterable[UrlPair],
        *,
        cancel: CancelToken | None = None,
    ) -> RunState[ValidationRecord]:
        pairs = list(pairs)

        # Pairs fresh from a crawl follow a request to the same site.
        if (
            self.cfg.pause_before_first
            and pairs
            and self.cfg.wait_s > 0
            and not (cancel is not None and cancel.cancelled)
        ):
            self._sleep(self.cfg.wait_s)

        walker: ThrottledWalker[UrlPair, ValidationRecord] = ThrottledWalker(
            wait_s=self.cfg.wait_s,
            order=self.cfg.order,
            sleep=self._sleep,
            progress=self.cfg.progress,
            desc="Validating AMP pages",
            unit="page",
        )
        return walker.run(pairs, self.validate_pair, RunState(), cancel=cancel)
