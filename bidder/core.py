"""
Core bidding orchestration and browser management.
"""
import logging
import os
from typing import Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from .cancel import CancelToken
from .composer import MessageComposer
from .config import BidderConfig
from .errors import SessionExpiredError
from .export import save_attempts
from .extractor import ItemExtractor
from .ledger import DedupLedger
from .models import Credentials, EngineState
from .poller import ListingPoller
from .session import SessionGate
from .status import NullSink
from .strategist import BidStrategist

logger = logging.getLogger("bidder.core")

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/124.0.0.0 Safari/537.36"
)


async def run_bidder(
    config: BidderConfig,
    credentials: Optional[Credentials] = None,
    cancel: Optional[CancelToken] = None,
    sink=None,
    state: Optional[EngineState] = None,
) -> EngineState:
    """
    Main bidding orchestration function.

    Manages browser lifecycle, establishes the session and runs the listing
    poller until ``cancel`` is set. The session is saved on the way out.
    """
    cancel = cancel or CancelToken()
    cancel.bind()
    sink = sink or NullSink()
    state = state or EngineState()
    session = SessionGate(config, credentials)
    is_headless = bool(config.headless) or os.getenv("HEADLESS", "").strip().lower() in ("1", "true")

    launch_args = ["--disable-blink-features=AutomationControlled"]
    if is_headless:
        launch_args += ["--disable-dev-shm-usage", "--no-sandbox", "--disable-gpu"]

    async with async_playwright() as p:
        browser = await p.chromium.launch(
            headless=is_headless,
            args=launch_args,
            slow_mo=config.slow_mo_ms,
        )
        logger.info(f">>> Browser launched (headless={is_headless})")

        context = await browser.new_context(
            **session.load(),
            viewport={"width": 1280, "height": 800},
            user_agent=USER_AGENT,
            locale="en-US",
        )
        context.set_default_timeout(config.op_timeout_ms * 5)
        context.set_default_navigation_timeout(config.navigation_timeout_ms)
        page = await context.new_page()

        try:
            try:
                await page.bring_to_front()
            except PlaywrightError:
                pass

            await session.ensure(page, context, cancel)
            if not cancel.is_set():
                poller = ListingPoller(
                    config,
                    page,
                    extractor=ItemExtractor(config),
                    ledger=DedupLedger(),
                    composer=MessageComposer(
                        mode=config.message_mode,
                        max_length=config.message_max_length,
                        urgent_hours=config.urgent_hours,
                    ),
                    strategist=BidStrategist(config, page, context),
                    session=session,
                    context=context,
                    state=state,
                    sink=sink,
                )
                await poller.run(cancel)
        except SessionExpiredError as e:
            if not cancel.is_set():
                logger.error(f">>> Could not establish a session: {e.message}")
        finally:
            await session.save(context)
            try:
                await context.close()
                await browser.close()
            except PlaywrightError as e:
                logger.debug(f"Browser shutdown error: {e}")

    if config.export_attempts_path:
        save_attempts(state.attempts, config.export_attempts_path, logger=logger)
    logger.info(">>> Bot stopped and resources cleaned up")
    return state
