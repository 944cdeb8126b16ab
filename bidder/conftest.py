"""
Fake Playwright page, locator and context objects for browser-free tests.

A page's DOM is a dict of selector -> list of FakeElement; an element's
children are the same kind of dict, so scoped lookups work the way
``container.locator(...)`` does in Playwright.
"""
import asyncio
from types import SimpleNamespace

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from bidder.config import BidderConfig

LISTING_URL = "https://studybay.com/order/search"


class FakeElement:
    def __init__(self, text="", attrs=None, children=None, visible=True, enabled=True,
                 on_click=None, click_error=None, click_delay=0.0):
        self.text = text
        self.attrs = attrs or {}
        self.children = children or {}
        self.visible = visible
        self.enabled = enabled
        self.on_click = on_click
        self.click_error = click_error
        self.click_delay = click_delay
        self.clicks = 0
        self.reads = 0
        self.value = ""
        self.keys = []


class FakeLocator:
    def __init__(self, resolve, index=None):
        self._resolve = resolve
        self._index = index

    def _elements(self):
        els = list(self._resolve())
        if self._index is None:
            return els
        return els[self._index:self._index + 1]

    def _one(self):
        els = self._elements()
        if not els:
            raise PlaywrightTimeout("Timeout: element not found")
        return els[0]

    @property
    def first(self):
        return FakeLocator(self._elements, 0)

    def nth(self, index):
        return FakeLocator(self._elements, index)

    def locator(self, selector):
        return FakeLocator(lambda: [c for el in self._elements() for c in el.children.get(selector, [])])

    async def count(self):
        return len(self._elements())

    async def click(self, timeout=None):
        el = self._one()
        if el.click_error is not None:
            raise el.click_error
        if el.click_delay:
            await asyncio.sleep(el.click_delay)
        if not el.visible:
            raise PlaywrightTimeout("Timeout: element not visible")
        el.clicks += 1
        if el.on_click:
            el.on_click()

    async def fill(self, value, timeout=None):
        self._one().value = value

    async def press_sequentially(self, text, timeout=None):
        self._one().keys.append(text)

    async def press(self, key, timeout=None):
        self._one().keys.append(key)

    async def is_visible(self):
        els = self._elements()
        return bool(els) and els[0].visible

    async def is_enabled(self):
        return self._one().enabled

    async def get_attribute(self, name):
        return self._one().attrs.get(name)

    async def text_content(self):
        el = self._one()
        el.reads += 1
        return el.text

    async def inner_text(self):
        el = self._one()
        el.reads += 1
        return el.text

    async def wait_for(self, state="visible", timeout=None):
        els = self._elements()
        shown = bool(els) and els[0].visible
        if state == "attached" and els:
            return
        if state == "visible" and shown:
            return
        if state in ("hidden", "detached") and not shown:
            return
        raise PlaywrightTimeout(f"Timeout waiting for state={state}")


class FakePage:
    def __init__(self, dom=None, url=LISTING_URL):
        self.dom = dom if dom is not None else {}
        self.url = url
        self.evaluations = []
        self.gotos = []
        self.reloads = 0
        self.closed = 0
        self.goto_error = None
        self.goto_delay = 0.0

    def locator(self, selector):
        return FakeLocator(lambda: self.dom.get(selector, []))

    def add(self, selector, *elements):
        bucket = self.dom.setdefault(selector, [])
        for el in elements:
            if el not in bucket:
                bucket.append(el)

    async def evaluate(self, script):
        self.evaluations.append(script)

    async def goto(self, url, timeout=None, wait_until=None):
        self.gotos.append(url)
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def reload(self, timeout=None, wait_until=None):
        self.reloads += 1

    async def wait_for_load_state(self, state=None, timeout=None):
        pass

    async def bring_to_front(self):
        pass

    async def close(self):
        self.closed += 1

    def is_closed(self):
        return self.closed > 0


class FakeContext:
    def __init__(self, page_factory=None):
        self.page_factory = page_factory or FakePage
        self.pages = []
        self.saved = []

    async def new_page(self):
        page = self.page_factory()
        self.pages.append(page)
        return page

    async def storage_state(self, path=None):
        self.saved.append(path)

    @property
    def open_pages(self):
        return [p for p in self.pages if p.closed == 0]


def install_surface(page, amount=True, submit_enabled=True, closes_on_submit=True):
    """Bid modal that appears when ``open`` runs and hides on submit."""
    surface = SimpleNamespace(
        modal=FakeElement("Place your bid"),
        textarea=FakeElement(),
        submit=FakeElement("Submit", enabled=submit_enabled),
        amount=FakeElement(),
    )

    def open_surface():
        surface.modal.visible = True
        page.add("div.ui-modal-content", surface.modal)
        page.add(".auctionTextarea-converted__textarea", surface.textarea)
        page.add("button[type='submit']", surface.submit)
        if amount:
            page.add("input[type='number']", surface.amount)

    def close_surface():
        if closes_on_submit:
            surface.modal.visible = False

    surface.open = open_surface
    surface.submit.on_click = close_surface
    return surface


def order_row(identity, title="Essay on climate policy", text=None, query="", trigger=None, **extra_children):
    """A listing row with a name link and, optionally, its own bid control."""
    link = FakeElement(title, attrs={"href": f"/order/{identity}{query}"})
    children = {".orderA-converted__name": [link]}
    if trigger is not None:
        children["#showBidForm"] = [trigger]
    children.update(extra_children)
    return FakeElement(text if text is not None else title, children=children)


@pytest.fixture
def fake():
    return SimpleNamespace(
        Element=FakeElement,
        Page=FakePage,
        Context=FakeContext,
        install_surface=install_surface,
        order_row=order_row,
        PlaywrightError=PlaywrightError,
        LISTING_URL=LISTING_URL,
    )


@pytest.fixture
def fast_config():
    return BidderConfig(
        op_timeout_ms=50,
        surface_wait_attempts=2,
        submit_retries=1,
        submit_settle_ms=1,
        strategy_timeout_s=2.0,
        detail_page_timeout_ms=200,
        poll_interval_s=0.0,
        error_backoff_s=0.01,
        manual_login_poll_s=0.01,
        storage_state_path="",
    )
