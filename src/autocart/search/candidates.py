#!/usr/bin/env python3
"""
Candidate Discovery on search result listings.

Cards are ordered the way they are laid out (row-major), a random start
within the first cards is drawn, and the scan goes forward then backward
from there for a product not yet processed in this run.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import List, Optional

from autocart.core.config import AutoCartConfig
from autocart.core.errors import ListingNotLoadedError
from autocart.core.retry import wait_for_elements
from autocart.dom.node import DomNode
from autocart.dom.service import BasePage
from autocart.state.coordinator import CoordinatorClient
from autocart.utils.page_classifier import extract_product_id

logger = logging.getLogger(__name__)

# Class token suffixes; hashed builds prefix them ("xY1_search-item-result__item")
PRODUCT_CARD_SUFFIX = 'search-item-result__item'
PRODUCT_LIST_SUFFIXES = ('search-item-result__items', 'search-item-result')
PRODUCT_LINK_MARKERS = ('/product/', '-i.')
PRODUCT_NAME_MARKERS = ('name', 'title')


@dataclass
class ProductCard:
    product_id: str
    name: str
    url: str
    node: DomNode
    link: DomNode


def is_product_card(node: DomNode) -> bool:
    if node.attr('data-sqe') == 'item':
        return True
    return any(token.endswith(PRODUCT_CARD_SUFFIX) for token in node.class_name.split())


def is_product_list(node: DomNode) -> bool:
    return any(token.endswith(PRODUCT_LIST_SUFFIXES) for token in node.class_name.split())


def is_product_link(node: DomNode) -> bool:
    href = node.attr('href')
    return node.tag == 'a' and any(marker in href for marker in PRODUCT_LINK_MARKERS)


def find_product_cards(root: DomNode) -> List[DomNode]:
    """Outermost card elements; a card nested in another card is not counted twice"""
    cards = []
    for node in root.find_all(is_product_card):
        if any(card.contains(node) for card in cards):
            continue
        cards.append(node)
    return cards


def product_info(card: DomNode, origin: str = '') -> Optional[ProductCard]:
    link = card.find_first(is_product_link)
    if link is None:
        return None

    href = link.attr('href')
    product_id = extract_product_id(href)
    if not product_id:
        return None

    name_node = card.find_first(
        lambda n: n is not card and any(marker in n.class_name for marker in PRODUCT_NAME_MARKERS))
    name = name_node.text if name_node is not None and name_node.text else 'Unknown product'
    url = href if href.startswith('http') or not origin else f"{origin.rstrip('/')}/{href.lstrip('/')}"
    return ProductCard(product_id=product_id, name=name, url=url, node=card, link=link)


def order_cards(cards: List[DomNode], row_tolerance: float = 50.0) -> List[DomNode]:
    """
    Row-major order: cards whose tops lie within `row_tolerance` of the
    row's first card share a row; rows top to bottom, cards by left offset.
    """
    rows: List[List[DomNode]] = []
    for card in sorted(cards, key=lambda c: (c.rect.top, c.rect.left)):
        if rows and abs(card.rect.top - rows[-1][0].rect.top) <= row_tolerance:
            rows[-1].append(card)
        else:
            rows.append([card])

    ordered = []
    for row in rows:
        ordered.extend(sorted(row, key=lambda c: c.rect.left))
    return ordered


class CandidateDiscovery:
    def __init__(self, page: BasePage, client: CoordinatorClient, config: AutoCartConfig,
                 rng: Optional[random.Random] = None, origin: str = ''):
        self.page = page
        self.client = client
        self.config = config
        self.rng = rng or random.Random()
        self.origin = origin or config.base_url

    async def load_cards(self) -> List[DomNode]:
        """Wait for the listing container, then return its cards in layout order"""
        await wait_for_elements(
            self.page, is_product_list, 'product listing',
            timeout=self.config.listing_timeout,
            retries=self.config.retry_attempts,
            retry_delay=self.config.retry_delay,
            poll_interval=self.config.poll_interval,
        )
        await asyncio.sleep(self.config.operation_delay)

        # Scan from the first card
        await self.page.scroll_to_top()
        root = await self.page.snapshot()
        cards = order_cards(find_product_cards(root), self.config.row_tolerance)
        self.client.log(f"Found {len(cards)} products")
        if cards:
            first = product_info(cards[0], self.origin)
            if first is not None:
                logger.debug(f"SEARCH: first product: {first.name[:30]}")
        return cards

    async def select_candidate(self) -> Optional[ProductCard]:
        """
        First unprocessed card scanning forward then backward from a random
        start; reveals more cards once before reporting exhaustion (None).
        """
        cards = await self.load_cards()
        if len(cards) <= 1:
            raise ListingNotLoadedError(len(cards))

        start = self._random_start(len(cards))
        self.client.log(f"{len(cards)} products, starting at #{start + 1}")
        candidate = await self._scan(cards, start)
        if candidate is not None:
            return candidate

        if not await self.reveal_more():
            return None

        cards = order_cards(find_product_cards(await self.page.snapshot()), self.config.row_tolerance)
        return await self._scan(cards, self._random_start(len(cards)))

    def _random_start(self, count: int) -> int:
        upper = min(self.config.max_random_start, count)
        return self.rng.randrange(upper) if upper > 0 else 0

    async def _scan(self, cards: List[DomNode], start: int) -> Optional[ProductCard]:
        # Forward from the start, then backward from just before it
        indices = list(range(start, len(cards))) + list(range(start - 1, -1, -1))
        for idx in indices:
            info = product_info(cards[idx], self.origin)
            if info is None:
                continue
            if not await self.client.is_processed(info.product_id):
                self.client.log(f"Selected product #{idx + 1}: {info.name[:30]}")
                return info
        return None

    async def reveal_more(self) -> bool:
        """Scroll to the bottom so the listing loads more cards; True if it did"""
        before = len(find_product_cards(await self.page.snapshot()))
        await self.page.scroll_to_bottom()
        await asyncio.sleep(self.config.reveal_delay)
        after = len(find_product_cards(await self.page.snapshot()))

        if after > before:
            self.client.log(f"Loaded {after - before} more products")
            return True
        return False

    async def open_candidate(self, candidate: ProductCard):
        """Mark the candidate processed, then open it"""
        self.client.log(f"Opening product: {candidate.name[:50]}")
        await self.client.mark_processed(candidate.product_id)

        if await self.page.click(candidate.link):
            return
        logger.warning(f"SEARCH: product link for {candidate.product_id} not clickable, navigating")
        await self.page.navigate(candidate.url)
