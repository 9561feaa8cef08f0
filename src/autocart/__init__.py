"""
autocart: bulk add-to-cart automation for Shopee listings
Listing discovery, variant layer detection and combination cart-fill
driven through Playwright
"""

__version__ = '1.0.0'
