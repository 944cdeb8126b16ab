"""
Listing poller: drives the refresh → extract → dedupe → bid → idle cycle.
"""
import functools
import logging
import random
from collections import deque
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError

from .cancel import CancelToken
from .composer import MessageComposer
from .config import BidderConfig
from .errors import BidderError, NavigationError, SessionExpiredError
from .extractor import ItemExtractor
from .ledger import DedupLedger
from .matchers import REFRESH_MATCHERS, Step, always, run_cascade, visible_click_steps
from .models import CycleStats, EngineState, ListingItem, Outcome, PollerState
from .session import SessionGate
from .status import NullSink
from .strategist import BidStrategist

logger = logging.getLogger("bidder.poller")


class ListingPoller:
    """
    Single-flight worker loop. One cycle and one bid run at a time; every
    per-item and per-cycle error ends up as a log line and a backoff.
    """

    def __init__(
        self,
        config: BidderConfig,
        page,
        extractor: ItemExtractor,
        ledger: DedupLedger,
        composer: MessageComposer,
        strategist: BidStrategist,
        session: Optional[SessionGate] = None,
        context=None,
        state: Optional[EngineState] = None,
        sink=None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.page = page
        self.extractor = extractor
        self.ledger = ledger
        self.composer = composer
        self.strategist = strategist
        self.session = session
        self.context = context
        self.engine = state or EngineState()
        self.sink = sink or NullSink()
        self.rng = rng or random.Random()
        self.state = PollerState.INIT
        self.history: deque = deque(maxlen=64)
        self.history.append(PollerState.INIT)

    def _enter(self, state: PollerState) -> None:
        self.state = state
        self.history.append(state)

    # ---- main loop -------------------------------------------------------

    async def run(self, cancel: CancelToken) -> EngineState:
        """Poll until cancelled or the session is lost for good."""
        logger.info(f">>> Monitoring {self.config.listing_url}")
        try:
            while not cancel.is_set():
                delay = self._idle_delay()
                try:
                    await self.run_cycle(cancel)
                except SessionExpiredError:
                    raise
                except (BidderError, PlaywrightError) as e:
                    logger.warning(f"Cycle {self.engine.cycle_number} failed: {e}")
                    delay = self.config.error_backoff_s
                except Exception as e:
                    logger.exception(f"Cycle {self.engine.cycle_number} failed unexpectedly: {e!r}")
                    delay = self.config.error_backoff_s
                if cancel.is_set():
                    break
                self._enter(PollerState.IDLE)
                if await cancel.wait(delay):
                    break
        except SessionExpiredError as e:
            if not cancel.is_set():
                logger.error(f">>> Session lost, stopping: {e.message}")
        finally:
            self._enter(PollerState.STOPPED)
            logger.info(
                f">>> Stopped after {self.engine.cycle_number} cycles: "
                f"{self.engine.discovered_total} discovered, {self.engine.success_total} bids placed"
            )
        return self.engine

    def _idle_delay(self) -> float:
        delay = self.config.poll_interval_s
        if self.config.poll_jitter_s > 0:
            delay += self.rng.uniform(0, self.config.poll_jitter_s)
        return delay

    async def run_cycle(self, cancel: CancelToken) -> CycleStats:
        self.engine.cycle_number += 1
        stats = CycleStats(cycle_number=self.engine.cycle_number)

        self._enter(PollerState.REFRESHING)
        await self.refresh(cancel)

        self._enter(PollerState.EXTRACTING)
        items = await self.extractor.extract(self.page, stats.cycle_number, seen=self.ledger)

        self._enter(PollerState.DEDUPING)
        fresh = self.dedupe(items)
        if not fresh:
            return stats

        stats.discovered_count = len(fresh)
        self.engine.discovered_total += len(fresh)
        self.sink.discovered(self.engine.discovered_total)
        logger.info(f">>> Cycle {stats.cycle_number}: {len(fresh)} new orders")

        self._enter(PollerState.BIDDING)
        for item in fresh:
            if cancel.is_set():
                break
            if await self.handle_item(item, cancel):
                stats.success_count += 1
        return stats

    def dedupe(self, items: List[ListingItem]) -> List[ListingItem]:
        """Keep unseen items and mark them seen before any bid is tried."""
        fresh = []
        for item in items:
            if self.ledger.has_seen(item.identity):
                continue
            self.ledger.mark_seen(item.identity)
            fresh.append(item)
        return fresh

    async def handle_item(self, item: ListingItem, cancel: CancelToken) -> bool:
        logger.info(f">>> New order {item.identity}: {item.title}")
        if not self.config.bid_placement_enabled:
            logger.info(">>> Bid placement disabled, detection only")
            return False
        try:
            message = self.composer.compose(item)
            attempt = await self.strategist.place_bid(item, message, cancel)
        except (BidderError, PlaywrightError) as e:
            logger.warning(f"Bid for {item.identity} aborted: {e}")
            return False

        if attempt.outcome is Outcome.CANCELLED:
            logger.info(f">>> Bid for {item.identity} interrupted by stop, not recorded")
            return False
        self.engine.record(attempt)
        if attempt.succeeded:
            self.sink.bid_success(self.engine.success_total)
            logger.info(f">>> Bid placed for {item.identity} via {attempt.strategy_used}")
            return True
        logger.info(f">>> Bid failed for {item.identity}: {attempt.detail}")
        return False

    # ---- refresh ---------------------------------------------------------

    async def refresh(self, cancel: CancelToken) -> None:
        """
        Bring the listing view up to date: go back to the listing if the page
        wandered off, otherwise trigger the page's own refresh control or
        reload it.
        """
        page = self.page
        if self.session is not None and SessionGate.on_login_page(page.url):
            await self.recover_session(cancel)

        timeout = self.config.op_timeout_ms
        if self.config.listing_path not in page.url:
            logger.info(f">>> Off the listing ({page.url}), navigating back")
            try:
                await page.goto(self.config.listing_url, timeout=self.config.navigation_timeout_ms,
                                wait_until="domcontentloaded")
            except PlaywrightError as e:
                raise NavigationError("Listing page failed to load", e)
            if self.session is not None and SessionGate.on_login_page(page.url):
                await self.recover_session(cancel)
            return

        steps = visible_click_steps(page, REFRESH_MATCHERS, timeout)
        steps.append(Step("page reload", always, functools.partial(
            page.reload, timeout=self.config.navigation_timeout_ms, wait_until="domcontentloaded")))
        done = await run_cascade(steps)
        if done is None:
            raise NavigationError("Listing reload failed")
        logger.debug(f"Listing refreshed via '{done[0]}'")

    async def recover_session(self, cancel: CancelToken) -> None:
        """Block until the session gate re-establishes the session or gives up."""
        logger.warning(">>> Session expired, re-establishing")
        await self.session.establish(self.page, self.context, cancel)
        try:
            await self.page.goto(self.config.listing_url, timeout=self.config.navigation_timeout_ms,
                                 wait_until="domcontentloaded")
        except PlaywrightError as e:
            raise NavigationError("Listing page failed to load after login", e)
