"""
Matcher cascades: ordered selector tables and the helpers that walk them.

The host page's markup is not stable, so every lookup goes through an ordered
list of candidates that is tried until one works. Adding support for a new
markup variant means adding a row here, not touching the engine.
"""
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from playwright.async_api import Error as PlaywrightError

from .errors import BidderError

logger = logging.getLogger("bidder.matchers")

T = TypeVar("T")


@dataclass(frozen=True)
class Matcher:
    """One candidate selector. ``page_scoped`` ignores the container scope."""
    description: str
    selector: str
    page_scoped: bool = False


@dataclass(frozen=True)
class Step(Generic[T]):
    """A ``(description, predicate, action)`` triple of a cascade."""
    description: str
    predicate: Callable[[], Awaitable[bool]]
    action: Callable[[], Awaitable[T]]


async def run_cascade(steps: Sequence[Step]) -> Optional[Tuple[str, Any]]:
    """
    Evaluate steps in order and return ``(description, result)`` of the first
    whose predicate holds and whose action completes. Playwright and engine
    errors inside a step only move the cascade on to the next one.
    """
    for step in steps:
        try:
            if not await step.predicate():
                continue
            result = await step.action()
        except (PlaywrightError, BidderError) as e:
            logger.debug(f"Cascade step '{step.description}' failed: {e}")
            continue
        return step.description, result
    return None


async def always() -> bool:
    return True


def visible_click_steps(root, matchers: Sequence[Matcher], timeout_ms: int) -> List[Step]:
    """One step per matcher: run when the element is visible, click it."""
    steps = []
    for m in matchers:
        loc = root.locator(m.selector).first
        steps.append(Step(m.description, loc.is_visible, functools.partial(loc.click, timeout=timeout_ms)))
    return steps


def visible_steps(root, matchers: Sequence[Matcher]) -> List[Step]:
    """One step per matcher that succeeds as soon as the element is visible."""
    return [Step(m.description, root.locator(m.selector).first.is_visible, always) for m in matchers]


async def locate_first(scope, page, matchers: Sequence[Matcher],
                       require_visible: bool = False) -> Optional[Tuple[Matcher, Any]]:
    """
    Return the first matcher (and its ``.first`` locator) that resolves to at
    least one element. ``scope`` is an item container or the page itself.
    """
    for m in matchers:
        root = page if (m.page_scoped or scope is None) else scope
        try:
            loc = root.locator(m.selector).first
            if await loc.count() == 0:
                continue
            if require_visible and not await loc.is_visible():
                continue
        except PlaywrightError as e:
            logger.debug(f"Matcher '{m.description}' errored: {e}")
            continue
        return m, loc
    return None


async def count_all(page, matchers: Sequence[Matcher]) -> List[Tuple[str, List[Any]]]:
    """Resolve every container matcher and return ``(description, handles)`` pairs."""
    results = []
    for m in matchers:
        try:
            loc = page.locator(m.selector)
            n = await loc.count()
            handles = [loc.nth(i) for i in range(n)]
        except PlaywrightError as e:
            logger.debug(f"Container matcher '{m.description}' errored: {e}")
            handles = []
        results.append((m.description, handles))
    return results


# Listing rows, most specific first
CONTAINER_MATCHERS: List[Matcher] = [
    Matcher("order card", "div.orderA-converted__order"),
    Matcher("order content wrapper", "div.orderA-converted__contentWrapper"),
    Matcher("test-id order card", "[data-testid*='order-card']"),
    Matcher("class contains orderA", "div[class*='orderA-converted__order']"),
    Matcher("article with order link", "article:has(a[href*='/order/'])"),
    Matcher("list row with order link", "li:has(a[href*='/order/'])"),
]

# Inside a row
ITEM_LINK_MATCHERS: List[Matcher] = [
    Matcher("order name link", ".orderA-converted__name"),
    Matcher("any order link", "a[href*='/order/']"),
]

CATEGORY_MATCHERS: List[Matcher] = [
    Matcher("order category", ".orderA-converted__category"),
    Matcher("order type", ".orderA-converted__type"),
    Matcher("class contains category", "[class*='category']"),
    Matcher("class contains subject", "[class*='subject']"),
]

DEADLINE_MATCHERS: List[Matcher] = [
    Matcher("order deadline", ".orderA-converted__deadline"),
    Matcher("class contains deadline", "[class*='deadline']"),
    Matcher("time element", "time"),
]

ONLINE_MATCHERS: List[Matcher] = [
    Matcher("customer online badge", "[class*='online']"),
    Matcher("online status title", "[title*='online' i]"),
]

ATTACHMENT_MATCHERS: List[Matcher] = [
    Matcher("attachment icon", "[class*='attach']"),
    Matcher("file icon", "[class*='file']"),
    Matcher("paperclip", "[data-icon*='clip']"),
]

# Refresh and recovery
REFRESH_MATCHERS: List[Matcher] = [
    Matcher("filter apply button", ".filter-converted__apply"),
    Matcher("apply filters text", "button:has-text('Apply')"),
]

LOAD_MORE_MATCHERS: List[Matcher] = [
    Matcher("load more button", "button:has-text('Load more')"),
    Matcher("show more button", "button:has-text('Show more')"),
    Matcher("pagination next", "a[rel='next']"),
    Matcher("pagination next button", "[class*='pagination'] [class*='next']"),
]

# Bid placement
BID_TRIGGER_MATCHERS: List[Matcher] = [
    Matcher("show bid form id", "#showBidForm"),
    Matcher("make-bid test id", "button[data-testid*='MakeBid']"),
    Matcher("make-bid styled button", "button.styled__MakeBidButton-sc-18augvm-9"),
    Matcher("place a bid text", "button:has-text('Place a Bid')"),
    Matcher("bid text", "button:has-text('Bid')"),
    Matcher("bid button class", ".bid-button"),
    Matcher("class contains bid", "button[class*='bid']"),
]

SURFACE_MATCHERS: List[Matcher] = [
    Matcher("modal content", "div.ui-modal-content"),
    Matcher("dialog role", "[role='dialog']"),
    Matcher("bid form", "form[class*='bid' i]"),
    Matcher("auction textarea", ".auctionTextarea-converted__textarea"),
]

MESSAGE_FIELD_MATCHERS: List[Matcher] = [
    Matcher("auction textarea", ".auctionTextarea-converted__textarea"),
    Matcher("message textarea", "textarea[name='message']"),
    Matcher("bid placeholder textarea", "textarea[placeholder*='bid']"),
    Matcher("message placeholder textarea", "textarea[placeholder*='message']"),
    Matcher("any textarea", "textarea"),
]

AMOUNT_FIELD_MATCHERS: List[Matcher] = [
    Matcher("number input", "input[type='number']"),
    Matcher("bid amount input", "input[name='bid_amount']"),
    Matcher("amount placeholder input", "input[placeholder*='amount']"),
    Matcher("class contains amount", "input[class*='amount']"),
]

SUBMIT_MATCHERS: List[Matcher] = [
    Matcher("submit button", "button[type='submit']"),
    Matcher("submit text", "button:has-text('Submit')"),
    Matcher("send bid text", "button:has-text('Send Bid')"),
    Matcher("send text", "button:has-text('Send')"),
    Matcher("styled button", "button.styled__StyledButton-sc-6klmhm-0"),
    Matcher("submit input", "input[type='submit']"),
    Matcher("class contains submit", "button[class*='submit']"),
]

SUCCESS_MATCHERS: List[Matcher] = [
    Matcher("bid placed text", "text=Bid placed"),
    Matcher("bid sent text", "text=Your bid has been sent"),
    Matcher("success toast", "[class*='toast'][class*='success']"),
    Matcher("success alert", "[role='alert'][class*='success']"),
]

# Session
LOGIN_FIELD_MATCHERS: List[Matcher] = [
    Matcher("email input", "input[name='email']"),
    Matcher("email type input", "input[type='email']"),
]

PASSWORD_FIELD_MATCHERS: List[Matcher] = [
    Matcher("password input", "input[name='password']"),
    Matcher("password type input", "input[type='password']"),
]

LOGIN_SUBMIT_MATCHERS: List[Matcher] = [
    Matcher("submit button", "button[type='submit']"),
    Matcher("submit input", "input[type='submit']"),
]

LOGGED_IN_MATCHERS: List[Matcher] = [
    Matcher("order rows", ".order, .orderA"),
    Matcher("class contains order", "[class*='order']"),
    Matcher("search form", ".search-form"),
]

CONSENT_SELECTORS = [
    "button:has-text('Allow all cookies')",
    "button:has-text('Accept all')",
    "button:has-text('Accept')",
    "div[role='dialog'] button:has-text('OK')",
]
