"""
Rendered state of selectable controls: clickable / selected.
"""

from autocart.dom.node import DomNode

DISABLED_CLASS_MARKERS = ('disabled', 'unavailable', 'sold-out', 'out-of-stock')
SELECTED_CLASS_MARKERS = ('active', 'selected', '--selected', 'product-variation--selected')

# Shopee accent (#ee4d2d) drawn around the selected option
SELECTED_ACCENT_COLORS = ('rgb(238, 77, 45)', '#ee4d2d')
SELECTED_ACCENT_RGB = '238, 77, 45'


def is_clickable(node: DomNode) -> bool:
    if node.disabled:
        return False
    if node.attr('aria-disabled') == 'true':
        return False
    if any(marker in node.class_name for marker in DISABLED_CLASS_MARKERS):
        return False
    # Half-transparent options are greyed out
    if node.style.opacity < 0.5:
        return False
    if node.style.pointer_events == 'none':
        return False
    if node.style.cursor == 'not-allowed':
        return False
    return True


def _is_accent(color: str) -> bool:
    return color in SELECTED_ACCENT_COLORS or SELECTED_ACCENT_RGB in color


def is_selected(node: DomNode) -> bool:
    if any(marker in node.class_name for marker in SELECTED_CLASS_MARKERS):
        return True
    if node.attr('aria-pressed') == 'true' or node.attr('aria-selected') == 'true':
        return True
    return _is_accent(node.style.border_color) or _is_accent(node.style.outline_color)


def control_label(node: DomNode, fallback: str = 'unknown') -> str:
    return node.text or node.attr('aria-label') or fallback
