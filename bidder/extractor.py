"""
Listing extraction: find item rows on the current view and parse them.
"""
import asyncio
import logging
import re
from typing import Any, Container, List, Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError

from .config import BidderConfig
from .matchers import (
    ATTACHMENT_MATCHERS,
    CATEGORY_MATCHERS,
    CONTAINER_MATCHERS,
    DEADLINE_MATCHERS,
    ITEM_LINK_MATCHERS,
    LOAD_MORE_MATCHERS,
    ONLINE_MATCHERS,
    Matcher,
    count_all,
    locate_first,
)
from .models import ListingItem
from .utils import absolute_url, clean_text, item_identity, parse_bid_count, parse_deadline, parse_price

logger = logging.getLogger("bidder.extractor")

DEADLINE_TEXT_RE = re.compile(r"(?:deadline|due|left|ends? in)[:\s]*([^|\n]{1,60})", re.I)


def vote_by_yield(candidate_results: Sequence[Tuple[str, List[Any]]]) -> Tuple[List[Any], Optional[str]]:
    """
    Pick the candidate that matched the most elements.

    ``candidate_results`` is an ordered sequence of ``(description, handles)``.
    Ties go to the earlier candidate. Returns ``([], None)`` when nothing
    matched at all.
    """
    best: List[Any] = []
    best_desc = None
    for desc, handles in candidate_results:
        if len(handles) > len(best):
            best, best_desc = list(handles), desc
    return best, best_desc


class ItemExtractor:
    """Finds listing rows with a vote-by-yield over container matchers."""

    def __init__(self, config: BidderConfig, matchers: Sequence[Matcher] = CONTAINER_MATCHERS):
        self.config = config
        self.matchers = list(matchers)
        self.recoveries = 0

    async def find_containers(self, page) -> Tuple[List[Any], Optional[str]]:
        """Return the row handles of the best matcher, recovering once on zero yield."""
        best, desc = vote_by_yield(await count_all(page, self.matchers))
        if best:
            logger.debug(f">>> {len(best)} rows via '{desc}'")
            return best, desc

        logger.info(">>> No rows found, trying load-more and scroll recovery")
        await self.recover(page)
        best, desc = vote_by_yield(await count_all(page, self.matchers))
        if best:
            logger.info(f">>> Recovery found {len(best)} rows via '{desc}'")
        return best, desc

    async def recover(self, page) -> None:
        """One round of lightweight DOM recovery: load more, then scroll down and back up."""
        self.recoveries += 1
        timeout = self.config.op_timeout_ms
        found = await locate_first(page, page, LOAD_MORE_MATCHERS, require_visible=True)
        if found:
            matcher, loc = found
            try:
                await loc.click(timeout=timeout)
                logger.debug(f">>> Clicked '{matcher.description}'")
            except PlaywrightError as e:
                logger.debug(f"Load-more click failed: {e}")
        try:
            await page.evaluate("window.scrollTo(0, document.body.scrollHeight)")
            await asyncio.sleep(0.05)
            await page.evaluate("window.scrollTo(0, 0)")
        except PlaywrightError as e:
            logger.debug(f"Scroll recovery failed: {e}")

    async def extract(self, page, cycle: int, seen: Optional[Container[str]] = None) -> List[ListingItem]:
        """
        Parse every row of the winning matcher into ListingItems (unique by identity).

        Rows whose identity is already in ``seen`` are dropped after reading
        only their address, so known orders cost one lookup per cycle.
        """
        containers, _ = await self.find_containers(page)
        items: List[ListingItem] = []
        seen_here = set()
        for idx, container in enumerate(containers):
            try:
                address = await self.item_address(container)
                if address is None or address[1] in seen_here:
                    continue
                seen_here.add(address[1])
                if seen is not None and address[1] in seen:
                    continue
                item = await self.parse_item(container, cycle, address)
            except PlaywrightError as e:
                logger.debug(f"Row {idx + 1} could not be parsed: {e}")
                continue
            except Exception as e:
                # odd third-party markup must not end the cycle
                logger.warning(f"Row {idx + 1} skipped, unexpected content: {e!r}")
                continue
            if item is not None:
                items.append(item)
        logger.debug(f">>> Parsed {len(items)} new items on cycle {cycle}")
        return items

    async def item_address(self, container) -> Optional[Tuple[str, str, Any]]:
        """``(url, identity, link)`` of a row, None if it carries no item address."""
        found = await locate_first(container, None, ITEM_LINK_MATCHERS)
        if not found:
            return None
        link = found[1]
        href = await link.get_attribute("href") or ""
        if not href:
            return None
        url = absolute_url(href, self.config.base_url)
        return url, item_identity(url, self.config.item_path_marker), link

    async def parse_item(self, container, cycle: int,
                         address: Optional[Tuple[str, str, Any]] = None) -> Optional[ListingItem]:
        """Turn one row into a ListingItem; None if it carries no item address."""
        address = address or await self.item_address(container)
        if address is None:
            return None
        url, identity, link = address
        title = clean_text(await link.text_content()) or "Unknown Order"
        row_text = clean_text(await container.inner_text())

        category = await self._optional_text(container, CATEGORY_MATCHERS)
        deadline_text = await self._optional_text(container, DEADLINE_MATCHERS)
        if not deadline_text:
            m = DEADLINE_TEXT_RE.search(row_text)
            deadline_text = m.group(1) if m else ""
        budget_value, budget_currency = parse_price(row_text)

        return ListingItem(
            identity=identity,
            url=url,
            title=title,
            category=category or None,
            description=row_text,
            bid_count=parse_bid_count(row_text),
            deadline=parse_deadline(deadline_text) if deadline_text else None,
            customer_online=await self._has_any(container, ONLINE_MATCHERS),
            has_attachments=await self._has_any(container, ATTACHMENT_MATCHERS),
            budget_set=budget_value is not None,
            budget_value=budget_value,
            budget_currency=budget_currency,
            discovered_at_cycle=cycle,
            container=container,
        )

    @staticmethod
    async def _optional_text(container, matchers: Sequence[Matcher]) -> str:
        found = await locate_first(container, None, matchers)
        if not found:
            return ""
        try:
            return clean_text(await found[1].text_content())
        except PlaywrightError:
            return ""

    @staticmethod
    async def _has_any(container, matchers: Sequence[Matcher]) -> bool:
        return await locate_first(container, None, matchers) is not None
