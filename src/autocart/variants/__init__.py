"""
Product page: variant layer detection and combination cart-fill
"""

from .detector import VariantLayer, VariantLayerDetector, detect_layers
from .add_to_cart import add_to_cart
from .cart_filler import CartFiller, FillState

__all__ = [
    'VariantLayer',
    'VariantLayerDetector',
    'detect_layers',
    'add_to_cart',
    'CartFiller',
    'FillState',
]
