"""
Session gate: keeps the browser context logged in to the marketplace.

The storage-state file is an opaque blob handled only here.
"""
import logging
import os
from typing import Dict, Optional

from playwright.async_api import Error as PlaywrightError

from .cancel import CancelToken
from .config import BidderConfig
from .errors import SessionExpiredError
from .matchers import (
    CONSENT_SELECTORS,
    LOGGED_IN_MATCHERS,
    LOGIN_FIELD_MATCHERS,
    LOGIN_SUBMIT_MATCHERS,
    PASSWORD_FIELD_MATCHERS,
    locate_first,
)
from .models import Credentials

logger = logging.getLogger("bidder.session")

LOGIN_URL_MARKERS = ("login", "signin", "sign-in")


class SessionGate:
    """Validates, establishes and persists the marketplace session."""

    def __init__(self, config: BidderConfig, credentials: Optional[Credentials] = None):
        self.config = config
        self.credentials = credentials or Credentials()

    # ---- storage state ---------------------------------------------------

    def load(self) -> Dict[str, str]:
        """Keyword arguments for ``browser.new_context`` restoring a saved session."""
        path = self.config.storage_state_path
        if path and os.path.exists(path):
            logger.info(f">>> Using existing storage state: {path}")
            return {"storage_state": path}
        return {}

    async def save(self, context, path: Optional[str] = None) -> bool:
        """Best-effort write of the storage state; never raises."""
        path = path or self.config.storage_state_path
        if not path:
            return False
        try:
            await context.storage_state(path=path)
        except PlaywrightError as e:
            logger.warning(f"Could not save session to {path}: {e}")
            return False
        logger.info(f">>> Session saved to {path}")
        return True

    # ---- validity --------------------------------------------------------

    @staticmethod
    def on_login_page(url: str) -> bool:
        lowered = (url or "").lower()
        return any(marker in lowered for marker in LOGIN_URL_MARKERS)

    async def is_valid(self, page, navigate: bool = True) -> bool:
        """
        True when the page shows listing content rather than a login form.

        Navigates to the listing first unless the page is already there or
        ``navigate`` is False.
        """
        timeout = self.config.op_timeout_ms
        try:
            if navigate and self.config.listing_path not in page.url:
                await page.goto(self.config.listing_url, timeout=self.config.navigation_timeout_ms,
                                wait_until="domcontentloaded")
            if self.on_login_page(page.url):
                return False
            if await locate_first(page, page, PASSWORD_FIELD_MATCHERS, require_visible=True):
                return False
            for m in LOGGED_IN_MATCHERS:
                try:
                    await page.locator(m.selector).first.wait_for(state="attached", timeout=timeout)
                    return True
                except PlaywrightError:
                    continue
            # no listing content rendered; only a login form proves we are logged out
            return not await locate_first(page, page, PASSWORD_FIELD_MATCHERS, require_visible=True)
        except PlaywrightError as e:
            logger.debug(f"Session check failed: {e}")
            return False

    # ---- establishing ----------------------------------------------------

    async def establish(self, page, context, cancel: Optional[CancelToken] = None) -> None:
        """
        Log in automatically when credentials are known, otherwise (or when
        that fails) wait for a manual login in the visible browser window.

        Raises SessionExpiredError when the manual-login wait runs out, or
        when cancelled before a session was obtained.
        """
        if not self.credentials.is_empty:
            try:
                if await self.auto_login(page):
                    await self.save(context)
                    return
            except PlaywrightError as e:
                logger.warning(f"Auto-login failed: {e}")
            logger.info(">>> Auto-login failed, please log in manually in the browser window")
        else:
            logger.info(">>> No credentials given, please log in manually in the browser window")

        await self.wait_for_manual_login(page, cancel)
        await self.save(context)

    async def auto_login(self, page) -> bool:
        timeout = self.config.op_timeout_ms * 5
        await page.goto(self.config.login_url, timeout=self.config.navigation_timeout_ms,
                        wait_until="domcontentloaded")
        await self.dismiss_consent(page)

        user = await locate_first(page, page, LOGIN_FIELD_MATCHERS)
        password = await locate_first(page, page, PASSWORD_FIELD_MATCHERS)
        submit = await locate_first(page, page, LOGIN_SUBMIT_MATCHERS)
        if not (user and password and submit):
            logger.warning("Login form not recognised")
            return False

        await user[1].fill(self.credentials.username, timeout=timeout)
        await password[1].fill(self.credentials.password, timeout=timeout)
        await submit[1].click(timeout=timeout)
        try:
            await page.wait_for_load_state("networkidle", timeout=timeout * 3)
        except PlaywrightError:
            # busy pages may never go idle
            await page.wait_for_load_state("domcontentloaded", timeout=timeout * 3)

        ok = await self.is_valid(page)
        logger.info(">>> Auto-login successful" if ok else ">>> Auto-login did not produce a session")
        return ok

    async def wait_for_manual_login(self, page, cancel: Optional[CancelToken] = None) -> None:
        cancel = cancel or CancelToken()
        waited = 0.0
        limit = self.config.manual_login_timeout_s
        poll = max(self.config.manual_login_poll_s, 0.1)
        while not cancel.is_set():
            if await self.is_valid(page, navigate=False):
                logger.info(">>> Manual login detected")
                return
            if limit and waited >= limit:
                raise SessionExpiredError(f"No login within {limit:.0f}s")
            if await cancel.wait(poll):
                break
            waited += poll
        raise SessionExpiredError("Cancelled while waiting for login")

    async def ensure(self, page, context, cancel: Optional[CancelToken] = None) -> None:
        """Validate the current session and establish a new one if needed."""
        if await self.is_valid(page):
            logger.info(">>> Using existing session")
            return
        await self.establish(page, context, cancel)

    async def dismiss_consent(self, page) -> None:
        for sel in CONSENT_SELECTORS:
            try:
                if await page.locator(sel).first.is_visible():
                    await page.locator(sel).first.click(timeout=2000)
                    break
            except PlaywrightError:
                pass
