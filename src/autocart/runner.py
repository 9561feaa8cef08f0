#!/usr/bin/env python3
"""
Browser runner
Launches a persistent Chrome profile with stealth applied, then
re-enters a fresh AutomationController on every distinct page: each
document load, and every in-page (SPA) navigation that changes the
product or address.
"""

import asyncio
import logging
import random
from typing import Optional, Tuple

from playwright.async_api import async_playwright, BrowserContext, Page
from playwright_stealth import Stealth

from autocart.automation_engine import AutomationController
from autocart.core.config import AutoCartConfig
from autocart.dom.service import PlaywrightPage
from autocart.state.coordinator import Coordinator, CoordinatorClient
from autocart.utils.page_classifier import build_search_url, extract_product_id

logger = logging.getLogger(__name__)

LOAD_EVENT = 'load'
SPA_EVENT = 'spa'

BROWSER_ARGS = [
    '--disable-blink-features=AutomationControlled',  # Hide automation flag
    '--no-sandbox',
    '--disable-dev-shm-usage',
    '--disable-setuid-sandbox',
]


def page_key(url: str) -> str:
    """Product id on product pages, else the address without its fragment"""
    return extract_product_id(url) or (url or '').split('#', 1)[0]


class AutoCartRunner:
    """Owns the browser and the navigation event loop"""

    def __init__(self, coordinator: Coordinator, config: AutoCartConfig, rng: Optional[random.Random] = None):
        self.coordinator = coordinator
        self.client = CoordinatorClient(coordinator)
        self.config = config
        self.rng = rng or random.Random()

        self.playwright = None
        self.context: Optional[BrowserContext] = None
        self.raw_page: Optional[Page] = None
        self.page: Optional[PlaywrightPage] = None
        self.events: asyncio.Queue = asyncio.Queue()
        self._last_key: Optional[str] = None

    async def setup_browser(self):
        """Setup browser with persistent context for better bot evasion"""
        try:
            self.playwright = await async_playwright().start()

            logger.info(f"RUNNER: launching {self.config.browser_channel} with profile {self.config.profile_dir}")
            self.context = await self.playwright.chromium.launch_persistent_context(
                user_data_dir=self.config.profile_dir,
                channel=self.config.browser_channel,
                headless=self.config.headless,
                locale=self.config.locale,
                viewport={'width': 1280, 'height': 800},
                args=BROWSER_ARGS,
            )
            await Stealth().apply_stealth_async(self.context)

            # Get the first page (or create one if none exists)
            if len(self.context.pages) > 0:
                self.raw_page = self.context.pages[0]
            else:
                self.raw_page = await self.context.new_page()

            self.page = PlaywrightPage(self.raw_page, navigation_timeout=self.config.navigation_timeout)
            self.coordinator.attach_navigator(self.page.navigate)

            self.raw_page.on('load', lambda page: self.events.put_nowait((LOAD_EVENT, page.url)))
            self.raw_page.on('framenavigated', self._on_frame_navigated)

            logger.info("RUNNER: browser ready")

        except Exception as e:
            logger.error(f"RUNNER: browser setup error: {e}")
            raise

    def _on_frame_navigated(self, frame):
        if frame == self.raw_page.main_frame:
            self.events.put_nowait((SPA_EVENT, frame.url))

    async def _next_page_event(self) -> Optional[Tuple[str, str]]:
        """
        Next page to handle, or None when nothing needs handling. A document
        navigation fires both events: they are merged into one load.
        """
        try:
            kind, url = await asyncio.wait_for(self.events.get(), timeout=self.config.navigation_timeout)
        except asyncio.TimeoutError:
            # Idle too long (e.g. a navigation that never happened): re-enter on the current page
            logger.warning("RUNNER: no navigation for a while, re-checking current page")
            return LOAD_EVENT, self.raw_page.url

        try:
            await self.raw_page.wait_for_load_state('load', timeout=self.config.navigation_timeout * 1000)
        except Exception as e:
            logger.warning(f"RUNNER: page did not finish loading: {e}")

        while not self.events.empty():
            next_kind, next_url = self.events.get_nowait()
            if next_kind == LOAD_EVENT:
                kind = LOAD_EVENT
            url = next_url

        key = page_key(url)
        if kind == SPA_EVENT and key == self._last_key:
            logger.debug(f"RUNNER: same page after in-page navigation, skipped - {url}")
            return None
        self._last_key = key
        return kind, url

    async def run(self, keyword: Optional[str] = None, already_started: bool = False):
        """
        Start a run and drive pages until it is stopped or exhausted.
        With `already_started` the persisted run (keyword, processed set) is
        picked up as-is instead of sending START.
        """
        if self.page is None:
            await self.setup_browser()

        if already_started:
            state = await self.client.get_state()
        else:
            state = await self.client.start(keyword)
        logger.info(f"RUNNER: started with keyword {state.search_term}")
        await self.page.navigate(build_search_url(self.config.base_url, state.search_term))

        try:
            while await self.client.is_running():
                event = await self._next_page_event()
                if event is None:
                    continue
                kind, url = event
                logger.debug(f"RUNNER: {kind} event - {url}")

                controller = AutomationController(self.page, self.client, self.config, self.rng)
                try:
                    await controller.handle_current_page()
                except Exception as e:
                    # The next navigation re-enters with fresh state
                    logger.error(f"RUNNER: page handling failed: {e}")
        finally:
            if await self.client.is_running():
                await self.client.stop()
            await self.client.flush_logs()

    async def close(self):
        if self.context:
            await self.context.close()
        if self.playwright:
            await self.playwright.stop()
        self.context = None
        self.playwright = None
        self.page = None
        logger.info("RUNNER: browser closed")
