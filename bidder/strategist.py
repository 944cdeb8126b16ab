"""
Bid placement.

Three strategies are tried in order, each bounded by ``strategy_timeout_s``:

1. in-panel: the bid control inside the item's own row
2. dedicated page: the item's detail address in a separate page
3. global fallback: any visible bid control on the listing view

A failing strategy only hands over to the next one. The detail page opened by
strategy 2 is closed on every exit path. A stop request is honoured between
every step and inside every wait, so an interrupted bid returns within about
one click timeout.
"""
import asyncio
import functools
import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, List, Optional, Tuple

from playwright.async_api import Error as PlaywrightError

from .cancel import CancelToken
from .config import BidderConfig
from .errors import BidCancelled, BidderError, InteractionError, NavigationError, TransientPageError
from .matchers import (
    AMOUNT_FIELD_MATCHERS,
    BID_TRIGGER_MATCHERS,
    MESSAGE_FIELD_MATCHERS,
    SUBMIT_MATCHERS,
    SUCCESS_MATCHERS,
    SURFACE_MATCHERS,
    Step,
    always,
    locate_first,
    run_cascade,
    visible_steps,
)
from .models import BidAttempt, ListingItem, Outcome
from .utils import now_iso

logger = logging.getLogger("bidder.strategist")

IN_PANEL = "in-panel"
DEDICATED_PAGE = "dedicated-page"
GLOBAL_FALLBACK = "global-fallback"

Strategy = Callable[[ListingItem, str, CancelToken], Awaitable[None]]


def _live(cancel: CancelToken) -> None:
    if cancel.is_set():
        raise BidCancelled("Stop requested")


class BidStrategist:
    """Places one bid at a time against the shared browsing context."""

    def __init__(self, config: BidderConfig, page, context):
        self.config = config
        self.page = page
        self.context = context
        self.pages_opened = 0
        self.pages_closed = 0
        self.strategies: List[Tuple[str, Strategy]] = [
            (IN_PANEL, self.in_panel),
            (DEDICATED_PAGE, self.dedicated_page),
            (GLOBAL_FALLBACK, self.global_fallback),
        ]

    async def place_bid(self, item: ListingItem, message: str,
                        cancel: Optional[CancelToken] = None) -> BidAttempt:
        """Run the strategy cascade for one item and return the attempt record."""
        cancel = cancel or CancelToken()
        reasons = []
        for name, strategy in self.strategies:
            if cancel.is_set():
                reasons.append("cancelled")
                return self._cancelled(item, reasons)
            logger.info(f">>> [{item.identity}] trying {name} strategy")
            try:
                await asyncio.wait_for(strategy(item, message, cancel), timeout=self.config.strategy_timeout_s)
            except BidCancelled:
                reasons.append(f"{name}: cancelled")
                logger.info(f">>> [{item.identity}] {name} interrupted by stop")
                return self._cancelled(item, reasons)
            except asyncio.TimeoutError:
                reasons.append(f"{name}: timed out")
                logger.info(f">>> [{item.identity}] {name} timed out")
                continue
            except BidderError as e:
                reasons.append(f"{name}: {e.message}")
                logger.info(f">>> [{item.identity}] {name} failed: {e.message}")
                continue
            except PlaywrightError as e:
                reasons.append(f"{name}: {e}")
                logger.info(f">>> [{item.identity}] {name} failed: {e}")
                continue
            return BidAttempt(item.identity, name, Outcome.SUCCESS, now_iso(), title=item.title)

        return BidAttempt(item.identity, None, Outcome.FAILURE, now_iso(),
                          title=item.title, detail="; ".join(reasons))

    @staticmethod
    def _cancelled(item: ListingItem, reasons: List[str]) -> BidAttempt:
        return BidAttempt(item.identity, None, Outcome.CANCELLED, now_iso(),
                          title=item.title, detail="; ".join(reasons))

    # ---- strategies ------------------------------------------------------

    async def in_panel(self, item: ListingItem, message: str, cancel: CancelToken) -> None:
        if item.container is None:
            raise TransientPageError("Item has no row on the listing view")
        found = await locate_first(item.container, self.page, BID_TRIGGER_MATCHERS)
        if not found:
            raise TransientPageError("No bid control in the item row")
        matcher, trigger = found
        logger.debug(f"Bid control via '{matcher.description}'")
        await self.submit_sequence(self.page, trigger, message, cancel)

    async def dedicated_page(self, item: ListingItem, message: str, cancel: CancelToken) -> None:
        _live(cancel)
        async with self.detail_page() as detail:
            try:
                await detail.goto(item.url, timeout=self.config.detail_page_timeout_ms,
                                  wait_until="domcontentloaded")
            except PlaywrightError as e:
                raise NavigationError(f"Could not open {item.url}", e)
            _live(cancel)
            found = await self._wait_for_trigger(detail, cancel)
            if not found:
                raise TransientPageError("No bid control on the detail page")
            await self.submit_sequence(detail, found[1], message, cancel)

    async def global_fallback(self, item: ListingItem, message: str, cancel: CancelToken) -> None:
        found = await locate_first(self.page, self.page, BID_TRIGGER_MATCHERS, require_visible=True)
        if not found:
            raise TransientPageError("No visible bid control anywhere on the page")
        logger.debug(f"Global bid control via '{found[0].description}'")
        await self.submit_sequence(self.page, found[1], message, cancel)

    @asynccontextmanager
    async def detail_page(self):
        """A separate page in the authenticated context, always closed on exit."""
        detail = await self.context.new_page()
        self.pages_opened += 1
        try:
            yield detail
        finally:
            self.pages_closed += 1
            try:
                await detail.close()
            except PlaywrightError as e:
                logger.debug(f"Closing detail page failed: {e}")

    async def _wait_for_trigger(self, page, cancel: CancelToken):
        slices = max(1, self.config.surface_wait_attempts)
        pause = self.config.op_timeout_ms / 1000.0 / slices
        for _ in range(slices):
            found = await locate_first(page, page, BID_TRIGGER_MATCHERS, require_visible=True)
            if found:
                return found
            if await cancel.wait(pause):
                raise BidCancelled("Stop requested while waiting for the bid control")
        return None

    # ---- fill and submit -------------------------------------------------

    async def submit_sequence(self, page, trigger, message: str, cancel: CancelToken) -> None:
        """Open the submission surface, fill it in, submit, and confirm."""
        surface = await self.open_surface(page, trigger, cancel)
        _live(cancel)
        await self.fill_message(page, message)
        await self.fill_amount(page)
        _live(cancel)
        await self.submit(page, surface, cancel)
        # past the submit click the bid may already be in, so confirm runs regardless
        await self.confirm(page, surface)

    async def open_surface(self, page, trigger, cancel: CancelToken):
        timeout = self.config.op_timeout_ms
        try:
            await trigger.click(timeout=timeout)
        except PlaywrightError as e:
            raise InteractionError("Bid control could not be clicked", e)

        attempts = max(1, self.config.surface_wait_attempts)
        pause = timeout / 1000.0 / attempts
        _live(cancel)
        for attempt in range(attempts):
            found = await locate_first(page, page, SURFACE_MATCHERS, require_visible=True)
            if found:
                logger.debug(f"Submission surface via '{found[0].description}' after {attempt + 1} checks")
                return found[1]
            if await cancel.wait(pause):
                raise BidCancelled("Stop requested while opening the submission surface")
            try:
                # the first click is sometimes swallowed while the row re-renders
                await trigger.click(timeout=timeout)
            except PlaywrightError:
                pass
            _live(cancel)
        raise TransientPageError("Submission surface did not appear")

    async def fill_message(self, page, message: str) -> None:
        timeout = self.config.op_timeout_ms
        found = await locate_first(page, page, MESSAGE_FIELD_MATCHERS, require_visible=True)
        if not found:
            raise TransientPageError("No message field on the submission surface")
        field = found[1]
        try:
            await field.click(timeout=timeout)
            await field.fill("", timeout=timeout)
            await field.fill(message, timeout=timeout)
            # type-and-erase so framework input listeners see a keystroke
            await field.press_sequentially(" ", timeout=timeout)
            await field.press("Backspace", timeout=timeout)
        except PlaywrightError as e:
            raise InteractionError("Message field could not be filled", e)

    async def fill_amount(self, page) -> None:
        if not self.config.bid_amount:
            return
        found = await locate_first(page, page, AMOUNT_FIELD_MATCHERS, require_visible=True)
        if not found:
            logger.debug("No amount field, continuing without it")
            return
        try:
            await found[1].click(timeout=self.config.op_timeout_ms)
            await found[1].fill(self.config.bid_amount, timeout=self.config.op_timeout_ms)
        except PlaywrightError as e:
            logger.debug(f"Amount field could not be filled, continuing: {e}")

    async def submit(self, page, surface, cancel: CancelToken) -> None:
        timeout = self.config.op_timeout_ms
        found = await locate_first(page, page, SUBMIT_MATCHERS, require_visible=True)
        if not found:
            raise TransientPageError("No submit control")
        button = found[1]
        for _ in range(self.config.submit_retries + 1):
            try:
                if await button.is_enabled():
                    await button.click(timeout=timeout)
                    return
                # clicking the surface lets some forms run their validation
                await surface.click(timeout=timeout)
            except PlaywrightError as e:
                logger.debug(f"Submit attempt failed: {e}")
            if await cancel.wait(self.config.submit_settle_ms / 1000.0):
                raise BidCancelled("Stop requested while submitting")
        raise InteractionError("Submit control never became clickable")

    async def confirm(self, page, surface) -> None:
        steps = [Step("submission surface closed", always, functools.partial(
            surface.wait_for, state="hidden", timeout=self.config.op_timeout_ms))]
        steps += visible_steps(page, SUCCESS_MATCHERS)
        done = await run_cascade(steps)
        if done is None:
            raise InteractionError("Submission was not confirmed")
        logger.debug(f"Submission confirmed: {done[0]}")
