#!/usr/bin/env python3
"""
Automation Controller
Re-entered on every page load and in-page navigation: reads the run
state, classifies the page and dispatches to candidate discovery
(listing) or the variant cart-fill (product page), then heads back to
the listing.
"""

import asyncio
import logging
import random
import time
from typing import Optional

from autocart.core.config import AutoCartConfig
from autocart.core.errors import AutoCartError, ElementNotFoundError, ListingNotLoadedError
from autocart.dom.service import BasePage
from autocart.search.candidates import CandidateDiscovery
from autocart.state.coordinator import CoordinatorClient, random_keyword
from autocart.utils.page_classifier import (
    PageKind,
    build_search_url,
    classify,
    extract_product_id,
    get_origin,
)
from autocart.variants.cart_filler import CartFiller
from autocart.variants.detector import VariantLayerDetector

logger = logging.getLogger(__name__)


class AutomationController:
    """One instance per page visit; nothing here outlives a navigation"""

    def __init__(self, page: BasePage, client: CoordinatorClient, config: AutoCartConfig,
                 rng: Optional[random.Random] = None):
        self.page = page
        self.client = client
        self.config = config
        self.rng = rng or random.Random()
        self.detector = VariantLayerDetector(page)

    async def handle_current_page(self):
        state = await self.client.get_state()
        if not state.is_running:
            return

        url = await self.page.current_url()
        kind = classify(url)
        logger.info(f"CONTROLLER: {kind.value} page - {url}")

        try:
            if kind == PageKind.LISTING:
                await self.handle_listing_page()
            elif kind == PageKind.PRODUCT_DETAIL:
                await self.handle_product_page()
            else:
                self.client.log("Page type not supported, returning to search", 'warning')
                await self.return_to_search()
        finally:
            await self.client.flush_logs()

    async def _origin(self) -> str:
        url = await self.page.current_url()
        origin = get_origin(url)
        return origin if origin.startswith('http') else self.config.base_url

    # Listing

    async def handle_listing_page(self):
        state = await self.client.get_state()
        if not state.is_running:
            return

        self.client.log("On search results, picking a product...")
        await asyncio.sleep(self.config.search_page_delay)

        discovery = CandidateDiscovery(self.page, self.client, self.config, self.rng, origin=await self._origin())
        try:
            candidate = await discovery.select_candidate()
        except (ListingNotLoadedError, ElementNotFoundError) as e:
            # Not exhaustion: the listing has not rendered yet
            self.client.log(f"{e}, reloading in {self.config.listing_reload_delay:g}s", 'warning')
            await asyncio.sleep(self.config.listing_reload_delay)
            await self.page.reload()
            return

        if candidate is None:
            self.client.log("All products processed", 'success')
            await self.client.stop()
            return

        await self.client.update_state(current_product_index=state.current_product_index + 1)
        await discovery.open_candidate(candidate)

    # Product

    async def handle_product_page(self):
        state = await self.client.get_state()
        if not state.is_running:
            return

        url = await self.page.current_url()
        self.client.log(f"On product page {extract_product_id(url) or url}, starting...")

        try:
            await asyncio.sleep(self.config.page_load_delay)

            body = await self.page.body_text()
            if len(body) < self.config.sparse_page_chars:
                self.client.log(f"Page nearly empty, waiting {self.config.sparse_page_delay:g}s more", 'warning')
                await asyncio.sleep(self.config.sparse_page_delay)

            layers = await self.detector.detect()
            if not layers:
                self.client.log("No variants on first pass, detecting again...")
                await asyncio.sleep(self.config.redetect_delay)
                layers = await self.detector.detect()

            filler = CartFiller(self.page, self.client, self.config, self.detector)
            cart_count = await filler.fill(layers)
            await self.client.update_state(cart_count=cart_count)

            await asyncio.sleep(self.config.return_delay)
            await self.return_to_search(force_keep_keyword=not self.config.rotate_keywords)

        except AutoCartError as e:
            self.client.log(f"Product abandoned: {e}", 'error')
            await asyncio.sleep(self.config.error_return_delay)
            await self.return_to_search(force_keep_keyword=not self.config.rotate_keywords)

        except Exception as e:
            logger.error(f"CONTROLLER: product page failed: {type(e).__name__}: {e}")
            self.client.log(f"Product abandoned after page error: {e}", 'error')
            await asyncio.sleep(self.config.error_return_delay)
            await self.return_to_search(force_keep_keyword=not self.config.rotate_keywords)

    # Navigation

    def _keyword_due(self, changed_at: float) -> bool:
        return time.time() - changed_at >= self.config.keyword_change_interval

    async def return_to_search(self, force_keep_keyword: bool = True):
        """Navigate back to the listing, switching keyword only when rotation is due"""
        state = await self.client.get_state()
        keyword = state.search_term or random_keyword(self.rng)

        if not force_keep_keyword and self._keyword_due(state.keyword_changed_at):
            new_keyword = random_keyword(self.rng, exclude=keyword)
            self.client.log(f'Switching keyword: "{keyword}" -> "{new_keyword}"')
            keyword = new_keyword
            await self.client.update_state(search_term=keyword, keyword_changed_at=time.time())
        else:
            self.client.log(f"Back to search: {keyword}")

        await self.client.navigate(build_search_url(await self._origin(), keyword))
