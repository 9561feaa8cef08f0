# Rendered DOM snapshot and page primitives
from .node import DomNode, Rect, ComputedStyle
from .service import BasePage, PlaywrightPage

__all__ = ['DomNode', 'Rect', 'ComputedStyle', 'BasePage', 'PlaywrightPage']
