from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from .content import ContentKind
from .http_client import FetchError, HttpClient
from .links import extract_amp_url
from .models import UrlPair
from .state import RunState
from .urls import normalize_url
from .walker import DEFAULT_WAIT_S, CancelToken, ThrottledWalker, WorkOrder
from .worklist import Worklist, build_worklist

logger = logging.getLogger(__name__)


@dataclass
class CrawlConfig:
    wait_s: float = DEFAULT_WAIT_S
    order: WorkOrder = WorkOrder.LIFO
    include_seed: bool = True
    progress: bool = False


class PairExtractor:
    """Visits candidate pages and records the AMP URL each one declares."""

    def __init__(
        self,
        *,
        http: HttpClient,
        config: CrawlConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.http = http
        self.cfg = config or CrawlConfig()
        self._sleep = sleep

    def extract_pair(self, url: str) -> UrlPair:
        res = self.http.get_page(url)
        amp = extract_amp_url(res.text, page_url=res.final_url or url)
        if amp:
            logger.info("Success: %s -> %s", url, amp)
        else:
            logger.info("No AMP link found: %s", url)
        return UrlPair(canonical=url, amp=amp)

    @staticmethod
    def _failed_pair(url: str, error: Exception) -> UrlPair:
        return UrlPair(canonical=url, error=str(error))

    def run(
        self,
        worklist: Worklist,
        *,
        cancel: CancelToken | None = None,
    ) -> RunState[UrlPair]:
        state: RunState[UrlPair] = RunState()
        links = list(worklist.links)

        if (
            self.cfg.include_seed
            and worklist.kind == ContentKind.HTML
            and worklist.seed_body is not None
        ):
            seed_pair = UrlPair(
                canonical=worklist.seed_url,
                amp=extract_amp_url(worklist.seed_body, page_url=worklist.page_url),
            )
            logger.info("Seed: %s -> %s", seed_pair.canonical, seed_pair.amp or "-")
            state.total_items = 1
            state.append(seed_pair)
            seen = {normalize_url(worklist.seed_url), normalize_url(worklist.page_url)}
            links = [u for u in links if normalize_url(u) not in seen]

        logger.info("%d links to visit", len(links))

        # The seed request counts toward the pacing too.
        if links and self.cfg.wait_s > 0:
            self._sleep(self.cfg.wait_s)

        walker: ThrottledWalker[str, UrlPair] = ThrottledWalker(
            wait_s=self.cfg.wait_s,
            order=self.cfg.order,
            sleep=self._sleep,
            progress=self.cfg.progress,
            desc="Extracting AMP links",
            unit="page",
        )
        return walker.run(
            links,
            self.extract_pair,
            state,
            recover=(FetchError,),
            on_error=self._failed_pair,
            cancel=cancel,
        )


def extract_pairs(
    http: HttpClient,
    seed_url: str,
    *,
    config: CrawlConfig | None = None,
    cancel: CancelToken | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunState[UrlPair]:
    """Build the worklist for *seed_url* and extract a pair for every link.

    Raises :class:`~amp_audit.worklist.SeedFetchError` if the seed is
    unreachable.
    """

    worklist = build_worklist(http, seed_url)
    extractor = PairExtractor(http=http, config=config, sleep=sleep)
    return extractor.run(worklist, cancel=cancel)
