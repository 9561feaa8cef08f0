#!/usr/bin/env python3
"""
Add to Cart (commit)
Triggered once every layer has an option selected. Never retries: a
failed commit is reported to the caller, which moves on to the next
combination.
"""

import asyncio
import logging
from typing import Dict, Any, Optional

from autocart.core.config import AutoCartConfig
from autocart.dom.node import DomNode
from autocart.dom.service import BasePage
from autocart.utils.ecommerce_keywords import (
    ADD_TO_CART_CLASS_MARKERS,
    ADD_TO_CART_CONTAINER_MARKERS,
    ADD_TO_CART_KEYWORDS,
    BUY_NOW_KEYWORDS,
    CART_TEXT_KEYWORDS,
    ERROR_CLASS_MARKERS,
    ERROR_STYLE_MARKERS,
    has_variant_selection_error_text,
)

logger = logging.getLogger(__name__)


def _is_buy_now(text: str) -> bool:
    return BUY_NOW_KEYWORDS.found_in(text)


def _mentions_cart(text: str) -> bool:
    return CART_TEXT_KEYWORDS.found_in(text)


def _has_structural_marker(button: DomNode) -> bool:
    if any(marker in button.class_name for marker in ADD_TO_CART_CLASS_MARKERS):
        return True
    return button.closest(
        lambda n: n is not button and any(marker in n.class_name for marker in ADD_TO_CART_CONTAINER_MARKERS)
    ) is not None


def find_add_to_cart_button(root: DomNode) -> Optional[DomNode]:
    """
    Add-to-cart button by visible text first, then by structural class
    markers; buy-now buttons are never returned.
    """
    buttons = root.buttons()

    # Strategy 1: text vocabulary
    for button in buttons:
        if ADD_TO_CART_KEYWORDS.found_in(button.text) and not _is_buy_now(button.text):
            logger.debug(f"ADD TO CART: found by text - {button.text[:20]}")
            return button

    # Strategy 2: class markers, still required to read as a cart button
    for button in buttons:
        if not _has_structural_marker(button):
            continue
        if _is_buy_now(button.text) or not _mentions_cart(button.text):
            continue
        logger.debug(f"ADD TO CART: found by class - {button.class_name}")
        return button

    return None


def _is_error_element(node: DomNode) -> bool:
    if any(marker in node.class_name for marker in ERROR_CLASS_MARKERS):
        return True
    style = node.attr('style')
    return any(marker in style for marker in ERROR_STYLE_MARKERS)


def has_variant_selection_error(body_text: str, root: Optional[DomNode] = None) -> bool:
    """True when the page asks for a variation to be chosen first"""
    if has_variant_selection_error_text(body_text):
        return True
    if root is None:
        return False
    return any(has_variant_selection_error_text(node.text) for node in root.find_all(_is_error_element))


async def page_requires_variant(page: BasePage) -> bool:
    return has_variant_selection_error(await page.body_text(), await page.snapshot())


async def add_to_cart(page: BasePage, config: AutoCartConfig) -> Dict[str, Any]:
    """
    Press add-to-cart once.

    Returns:
        Dict with 'success': bool, 'reason': one of ok / not_found / disabled /
        click_failed / variant_required / error, and 'button' text when found
    """
    try:
        root = await page.snapshot()
        button = find_add_to_cart_button(root)
        if button is None:
            logger.error("ADD TO CART: button not found")
            return {'success': False, 'reason': 'not_found'}

        label = button.text[:20]
        if button.disabled:
            logger.error("ADD TO CART: button disabled (out of stock?)")
            return {'success': False, 'reason': 'disabled', 'button': label}

        if not await page.click(button):
            logger.error("ADD TO CART: click did not reach the button")
            return {'success': False, 'reason': 'click_failed', 'button': label}

        await asyncio.sleep(config.commit_settle_delay)

        if await page_requires_variant(page):
            logger.error("ADD TO CART: page asks to select a variation first")
            return {'success': False, 'reason': 'variant_required', 'button': label}

        logger.info("ADD TO CART: added ✓")
        return {'success': True, 'reason': 'ok', 'button': label}

    except Exception as e:
        logger.error(f"ADD TO CART: failed - {e}")
        return {'success': False, 'reason': 'error', 'error': str(e)}
