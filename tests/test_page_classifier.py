"""Tests for page classification and product id extraction."""

import pytest

from autocart.utils.page_classifier import (
    PageKind,
    build_search_url,
    classify,
    extract_product_id,
    extract_shop_id,
    get_origin,
)


@pytest.mark.parametrize("url", [
    "https://shopee.tw/search?keyword=%E5%A5%B3%E8%A3%9D",
    "https://shopee.tw/search",
    "https://shopee.tw/mall/something?keyword=abc",
])
def test_listing_pages(url):
    assert classify(url) == PageKind.LISTING


@pytest.mark.parametrize("url", [
    "https://shopee.tw/product/123/456",
    "https://shopee.tw/Cute-Dress-i.123.456",
    "https://shopee.tw/Cute-Dress.i.123.456",
    "https://shopee.tw/i.123.456",
])
def test_product_pages(url):
    assert classify(url) == PageKind.PRODUCT_DETAIL


def test_storefront_wins_over_product_shape():
    assert classify("https://shopee.tw/shop/123/i.5.6") == PageKind.STOREFRONT_DETAIL
    assert classify("https://shopee.tw/shop/777") == PageKind.STOREFRONT_DETAIL


def test_search_wins_over_everything():
    assert classify("https://shopee.tw/search?keyword=x-i.1.2") == PageKind.LISTING


@pytest.mark.parametrize("url", ["https://shopee.tw/", "https://shopee.tw/cart", "", None])
def test_other_pages(url):
    assert classify(url) == PageKind.OTHER


def test_both_address_shapes_give_the_same_id():
    assert extract_product_id("https://shopee.tw/product/123/456") == "123_456"
    assert extract_product_id("https://shopee.tw/Cute-Dress-i.123.456?sp_atk=1") == "123_456"


def test_no_id_outside_product_addresses():
    assert extract_product_id("https://shopee.tw/search?keyword=x") is None
    assert extract_product_id("https://shopee.tw/i.123.456") is None
    assert extract_product_id("") is None


def test_shop_id():
    assert extract_shop_id("https://shopee.tw/shop/777/search") == "777"
    assert extract_shop_id("https://shopee.tw/product/1/2") is None


def test_origin():
    assert get_origin("https://shopee.tw/product/1/2?x=1") == "https://shopee.tw"


def test_search_url_encodes_like_uri_component():
    assert build_search_url("https://shopee.tw/", "女裝") == \
        "https://shopee.tw/search?keyword=%E5%A5%B3%E8%A3%9D"
    assert build_search_url("https://shopee.tw", "a b&c") == "https://shopee.tw/search?keyword=a%20b%26c"
    assert build_search_url("https://shopee.tw", "it's(ok)") == "https://shopee.tw/search?keyword=it's(ok)"
