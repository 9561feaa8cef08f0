#!/usr/bin/env python3
"""
Page Classifier
Maps a Shopee address to the kind of page it shows, and derives the
canonical product id (`<sellerId>_<itemId>`) from product addresses.
"""

import re
from enum import Enum
from typing import Optional
from urllib.parse import quote, urlparse


class PageKind(str, Enum):
    LISTING = 'listing'
    PRODUCT_DETAIL = 'product_detail'
    STOREFRONT_DETAIL = 'storefront_detail'
    OTHER = 'other'


SHOP_PATH_PATTERN = re.compile(r'/shop/')

# Legacy and shortened encodings of a product address
PRODUCT_PATTERNS = [
    re.compile(r'/product/\d+/\d+'),   # /product/shopId/itemId
    re.compile(r'-i\.\d+\.\d+'),       # name-i.shopId.itemId
    re.compile(r'\.i\.\d+\.\d+'),      # .i.shopId.itemId
    re.compile(r'i\.\d+\.\d+'),        # i.shopId.itemId
]

PRODUCT_ID_PATTERNS = [
    re.compile(r'/product/(\d+)/(\d+)'),
    re.compile(r'-i\.(\d+)\.(\d+)'),
]

SHOP_ID_PATTERN = re.compile(r'/shop/(\d+)')

# Characters encodeURIComponent leaves as-is
URI_COMPONENT_SAFE = "-_.!~*'()"


def classify(url: str) -> PageKind:
    """Listing, then storefront, then product shapes; anything else is OTHER."""
    url = url or ''
    path = urlparse(url).path

    if '/search' in path or 'keyword=' in url:
        return PageKind.LISTING

    # Before the product shapes: a storefront address can carry a numeric pair
    if SHOP_PATH_PATTERN.search(path):
        return PageKind.STOREFRONT_DETAIL

    for pattern in PRODUCT_PATTERNS:
        if pattern.search(url) or pattern.search(path):
            return PageKind.PRODUCT_DETAIL

    return PageKind.OTHER


def extract_product_id(url: str) -> Optional[str]:
    """Canonical `<sellerId>_<itemId>`; both address shapes give the same id."""
    for pattern in PRODUCT_ID_PATTERNS:
        match = pattern.search(url or '')
        if match:
            return f"{match.group(1)}_{match.group(2)}"
    return None


def extract_shop_id(url: str) -> Optional[str]:
    match = SHOP_ID_PATTERN.search(url or '')
    return match.group(1) if match else None


def get_origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def build_search_url(origin: str, keyword: str) -> str:
    encoded = quote(keyword, safe=URI_COMPONENT_SAFE)
    return f"{origin.rstrip('/')}/search?keyword={encoded}"
