#!/usr/bin/env python3
"""
Page primitives used by the automation: snapshot the rendered DOM,
re-inspect or click a single element, read the page text, scroll and
navigate. PlaywrightPage implements them on a live Playwright page.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from playwright.async_api import Page

from autocart.dom.node import DomNode

logger = logging.getLogger(__name__)

ID_ATTRIBUTE = 'data-autocart-id'

# Shared by the snapshot and inspect scripts: stamps a stable id on the
# element and reads the bits of rendered state the heuristics need.
_DESCRIBE_JS = """
    const ATTRS = ['href', 'role', 'aria-label', 'aria-disabled', 'aria-pressed',
                   'aria-selected', 'data-sqe', 'style', 'type', 'title'];
    const stamp = (el) => {
        if (!el.dataset.autocartId) {
            window.__autocartSeq = (window.__autocartSeq || 0) + 1;
            el.dataset.autocartId = String(window.__autocartSeq);
        }
        return Number(el.dataset.autocartId);
    };
    const describe = (el, maxText, withStyle) => {
        let ownText = '';
        for (const node of el.childNodes) {
            if (node.nodeType === Node.TEXT_NODE) {
                ownText += (node.textContent || '').trim();
            }
        }
        const attrs = {};
        for (const name of ATTRS) {
            const value = el.getAttribute(name);
            if (value !== null) attrs[name] = value;
        }
        const box = el.getBoundingClientRect();
        const info = {
            id: stamp(el),
            tag: el.tagName.toLowerCase(),
            cls: typeof el.className === 'string' ? el.className : (el.getAttribute('class') || ''),
            attrs: attrs,
            ownText: ownText.substring(0, maxText),
            text: (el.textContent || '').trim().substring(0, maxText),
            rect: {
                top: box.top + window.scrollY,
                left: box.left + window.scrollX,
                width: box.width,
                height: box.height
            },
            disabled: el.disabled === true,
            children: []
        };
        if (withStyle) {
            const style = window.getComputedStyle(el);
            info.style = {
                opacity: style.opacity,
                pointerEvents: style.pointerEvents,
                cursor: style.cursor,
                borderColor: style.borderColor,
                outlineColor: style.outlineColor
            };
        }
        return info;
    };
"""

SNAPSHOT_JS = """
    (args) => {
        %s
        const SKIP = new Set(['SCRIPT', 'STYLE', 'NOSCRIPT', 'TEMPLATE', 'IFRAME', 'svg', 'SVG', 'LINK', 'META']);
        const walk = (el) => {
            const info = describe(el, args.maxText, el.tagName === 'BUTTON');
            for (const child of el.children) {
                if (SKIP.has(child.tagName)) continue;
                info.children.push(walk(child));
            }
            return info;
        };
        return walk(document.body || document.documentElement);
    }
""" % _DESCRIBE_JS

INSPECT_JS = """
    (args) => {
        %s
        const el = document.querySelector(`[data-autocart-id="${args.id}"]`);
        if (!el) return null;
        return describe(el, args.maxText, true);
    }
""" % _DESCRIBE_JS

CLICK_JS = """
    (args) => {
        const el = document.querySelector(`[data-autocart-id="${args.id}"]`);
        if (!el) return false;
        el.click();
        return true;
    }
"""

SCROLL_INTO_VIEW_JS = """
    (args) => {
        const el = document.querySelector(`[data-autocart-id="${args.id}"]`);
        if (!el) return false;
        el.scrollIntoView({ behavior: 'smooth', block: 'center' });
        return true;
    }
"""


class BasePage(ABC):
    """Host-owned page primitives the automation depends on"""

    @abstractmethod
    async def current_url(self) -> str:
        pass

    @abstractmethod
    async def snapshot(self) -> DomNode:
        pass

    @abstractmethod
    async def inspect(self, node: DomNode) -> Optional[DomNode]:
        """Fresh read of one element (no children), None once it left the page"""
        pass

    @abstractmethod
    async def click(self, node: DomNode) -> bool:
        pass

    @abstractmethod
    async def body_text(self) -> str:
        pass

    @abstractmethod
    async def scroll_to_top(self):
        pass

    @abstractmethod
    async def scroll_to_bottom(self):
        pass

    @abstractmethod
    async def navigate(self, url: str):
        pass

    @abstractmethod
    async def reload(self):
        pass


class PlaywrightPage(BasePage):
    def __init__(self, page: Page, navigation_timeout: float = 30.0, scroll_delay: float = 0.2,
                 max_text: int = 300):
        self.page = page
        self.navigation_timeout = navigation_timeout
        self.scroll_delay = scroll_delay
        self.max_text = max_text

    async def current_url(self) -> str:
        return self.page.url

    async def snapshot(self) -> DomNode:
        data = await self.page.evaluate(SNAPSHOT_JS, {'maxText': self.max_text})
        return DomNode.from_dict(data)

    async def inspect(self, node: DomNode) -> Optional[DomNode]:
        data: Optional[Dict[str, Any]] = await self.page.evaluate(
            INSPECT_JS, {'id': node.node_id, 'maxText': self.max_text})
        if not data:
            return None
        fresh = DomNode.from_dict(data)
        fresh.parent = node.parent
        return fresh

    async def click(self, node: DomNode) -> bool:
        visible = await self.page.evaluate(SCROLL_INTO_VIEW_JS, {'id': node.node_id})
        if not visible:
            logger.warning(f"PAGE: element #{node.node_id} is gone, click skipped")
            return False
        await asyncio.sleep(self.scroll_delay)
        return await self.page.evaluate(CLICK_JS, {'id': node.node_id})

    async def body_text(self) -> str:
        return await self.page.evaluate("() => document.body ? document.body.innerText : ''")

    async def scroll_to_top(self):
        await self.page.evaluate("() => window.scrollTo({ top: 0, behavior: 'instant' })")

    async def scroll_to_bottom(self):
        await self.page.evaluate("() => window.scrollTo({ top: document.body.scrollHeight, behavior: 'smooth' })")

    async def navigate(self, url: str):
        logger.info(f"PAGE: navigating to {url}")
        await self.page.goto(url, wait_until='domcontentloaded', timeout=self.navigation_timeout * 1000)

    async def reload(self):
        logger.info("PAGE: reloading")
        await self.page.reload(wait_until='domcontentloaded', timeout=self.navigation_timeout * 1000)
