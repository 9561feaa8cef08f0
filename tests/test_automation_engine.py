"""Tests for the per-page controller."""

import random

import pytest

from autocart.automation_engine import AutomationController
from autocart.core.errors import StructuralDetectionError
from autocart.variants.cart_filler import CartFiller

from conftest import FakePage, listing_page, log_messages, product_card, product_page, variant_row

SEARCH_URL = 'https://shopee.tw/search?keyword=%E5%A5%B3%E8%A3%9D'
PRODUCT_URL = 'https://shopee.tw/Dress-i.1.2'


def cards(count):
    return [product_card(100, idx, f'Item{idx}', top=0.0, left=200.0 * idx) for idx in range(count)]


def controller_for(page, client, config, coordinator):
    coordinator.attach_navigator(page.navigate)
    return AutomationController(page, client, config, random.Random(1))


@pytest.mark.asyncio
async def test_idle_when_not_running(coordinator, client, fast_config):
    page = FakePage(listing_page(cards(3)), url=SEARCH_URL)
    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    assert page.clicks == []
    assert page.navigations == []


@pytest.mark.asyncio
async def test_listing_opens_an_unprocessed_product(coordinator, client, tracker, fast_config):
    await client.start('女裝')
    page = FakePage(listing_page(cards(3)), url=SEARCH_URL)

    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    assert len(page.clicks) == 1
    assert len(tracker) == 1
    state = await client.get_state()
    assert state.current_product_index == 1
    assert state.is_running is True


@pytest.mark.asyncio
async def test_listing_not_loaded_reloads(coordinator, client, fast_config):
    await client.start('女裝')
    page = FakePage(listing_page(cards(1)), url=SEARCH_URL)

    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    assert page.reloads == 1
    assert (await client.get_state()).is_running is True


@pytest.mark.asyncio
async def test_exhausted_listing_stops_the_run(coordinator, client, tracker, fast_config):
    await client.start('女裝')
    for idx in range(3):
        tracker.mark_processed(f'100_{idx}')
    page = FakePage(listing_page(cards(3)), url=SEARCH_URL)

    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    assert (await client.get_state()).is_running is False
    assert 'All products processed' in log_messages(coordinator)


@pytest.mark.asyncio
async def test_product_page_fills_then_returns_to_search(coordinator, client, fast_config):
    await client.start('女裝')
    page = FakePage(product_page(
        variant_row('顏色', ['紅色', '黑色'], top=100.0),
        variant_row('尺寸', ['S', 'M'], top=200.0),
    ), url=PRODUCT_URL)

    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    assert page.cart_clicks() == 4
    state = await client.get_state()
    assert state.cart_count == 4
    assert state.search_term == '女裝'
    assert page.navigations == [SEARCH_URL]


@pytest.mark.asyncio
async def test_product_failure_still_returns_to_search(coordinator, client, fast_config, monkeypatch):
    await client.start('女裝')

    async def broken_fill(self, layers=None):
        raise StructuralDetectionError("add-to-cart control missing")

    monkeypatch.setattr(CartFiller, 'fill', broken_fill)
    page = FakePage(product_page(), url=PRODUCT_URL)

    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    assert page.navigations == [SEARCH_URL]
    assert 'Product abandoned: add-to-cart control missing' in log_messages(coordinator)


class ContextDestroyedPage(FakePage):
    async def snapshot(self):
        raise RuntimeError("Execution context was destroyed")


@pytest.mark.asyncio
async def test_host_page_error_abandons_the_product(coordinator, client, fast_config):
    await client.start('女裝')
    page = ContextDestroyedPage(product_page(), url=PRODUCT_URL)

    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    assert page.navigations == [SEARCH_URL]
    assert page.cart_clicks() == 0
    assert 'Product abandoned after page error: Execution context was destroyed' in log_messages(coordinator)
    assert (await client.get_state()).is_running is True


@pytest.mark.asyncio
async def test_unsupported_page_returns_to_search(coordinator, client, fast_config):
    await client.start('女裝')
    page = FakePage(url='https://shopee.tw/shop/777')

    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    assert page.navigations == [SEARCH_URL]


@pytest.mark.asyncio
async def test_keyword_rotates_when_due(coordinator, client, store, fast_config):
    fast_config.rotate_keywords = True
    fast_config.keyword_change_interval = 0
    await client.start('女裝')
    page = FakePage(product_page(), url=PRODUCT_URL)

    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    keyword = store.get().search_term
    assert keyword != '女裝'
    assert len(page.navigations) == 1
    assert page.navigations[0] != SEARCH_URL


@pytest.mark.asyncio
async def test_keyword_kept_until_interval_elapses(coordinator, client, store, fast_config):
    fast_config.rotate_keywords = True
    fast_config.keyword_change_interval = 3600
    await client.start('女裝')
    page = FakePage(product_page(), url=PRODUCT_URL)

    await controller_for(page, client, fast_config, coordinator).handle_current_page()

    assert store.get().search_term == '女裝'
    assert page.navigations == [SEARCH_URL]
