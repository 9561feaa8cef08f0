#!/usr/bin/env python3
"""
Variant Layer Detector
Infers the independent selection axes ("layers") of a product page from
its rendered markup. Strategies are tried in order and the first one
that finds anything wins; finding nothing is a valid answer (the
product has no detectable variants).
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Set

from autocart.dom.controls import control_label, is_clickable
from autocart.dom.node import DomNode
from autocart.dom.service import BasePage
from autocart.utils.ecommerce_keywords import is_non_variant_text, is_size_option, match_axis_label

logger = logging.getLogger(__name__)

MAX_ROW_LABEL_LENGTH = 30
MAX_LABEL_LENGTH = 25
MAX_OPTION_TEXT_LENGTH = 50
LABEL_PROXIMITY_PX = 100
LABEL_MERGE_PX = 50

VARIATION_CONTAINER_CLASSES = ('product-variation', 'tier-variation')


@dataclass
class VariantLayer:
    name: str
    options: List[DomNode]
    container: Optional[DomNode] = None
    top: float = 0.0

    @property
    def option_ids(self) -> Set[int]:
        return {option.node_id for option in self.options}

    def option_labels(self, limit: int = 5) -> List[str]:
        return [control_label(option)[:15] for option in self.options[:limit]]

    def describe(self) -> str:
        more = '...' if len(self.options) > 5 else ''
        return f"{self.name}: {len(self.options)} options [{', '.join(self.option_labels())}{more}]"


Strategy = Callable[[DomNode], List[VariantLayer]]


def find_variant_controls(container: DomNode, assigned_ids: Optional[Set[int]] = None) -> List[DomNode]:
    """Selectable option buttons under `container`, skipping controls already in a layer"""
    assigned_ids = assigned_ids or set()
    controls = []
    for button in container.buttons():
        if button.node_id in assigned_ids or button.disabled:
            continue
        text = button.text
        if not text or len(text) > MAX_OPTION_TEXT_LENGTH:
            continue
        if is_non_variant_text(text):
            continue
        if not is_clickable(button):
            continue
        controls.append(button)
    return controls


def find_size_controls(root: DomNode, exclude_ids: Set[int]) -> List[DomNode]:
    """Page-wide clickable size-like buttons outside `exclude_ids`"""
    controls = []
    for button in root.buttons():
        if button.disabled or button.node_id in exclude_ids:
            continue
        text = button.text
        if not text or len(text) > MAX_OPTION_TEXT_LENGTH:
            continue
        if is_size_option(text) and is_clickable(button):
            controls.append(button)
    return controls


def _overlaps(a: List[DomNode], b: List[DomNode]) -> bool:
    ids = {node.node_id for node in b}
    return any(node.node_id in ids for node in a)


def detect_by_rows(root: DomNode) -> List[VariantLayer]:
    """Rows whose first child is an axis label and whose rest holds the options"""
    rows = []
    for div in root.iter_tree():
        if div.tag != 'div' or len(div.children) < 2:
            continue

        label_text = div.children[0].text
        if not label_text or len(label_text) > MAX_ROW_LABEL_LENGTH:
            continue
        name = match_axis_label(label_text)
        if not name:
            continue

        options = find_variant_controls(div)
        if not options:
            continue
        rows.append(VariantLayer(name=name, options=options, container=div, top=div.rect.top))

    rows.sort(key=lambda row: row.top)

    # Nested rows share controls: keep the smaller, more specific container
    unique: List[VariantLayer] = []
    for row in rows:
        duplicate = False
        for idx, existing in enumerate(unique):
            if _overlaps(row.options, existing.options):
                if len(row.options) < len(existing.options):
                    unique[idx] = row
                duplicate = True
                break
        if not duplicate:
            unique.append(row)

    unique.sort(key=lambda row: row.top)
    return unique


def _direct_label_text(node: DomNode) -> str:
    if node.own_text:
        return node.own_text
    if not node.children or (len(node.children) <= 2 and len(node.text) <= 20):
        return node.text
    return ''


def detect_by_labels(root: DomNode) -> List[VariantLayer]:
    """Short axis labels anywhere, options taken from siblings or the parent"""
    labels = []
    for node in root.iter_descendants():
        if node.tag == 'button':
            continue
        text = _direct_label_text(node)
        if not text or len(text) > MAX_LABEL_LENGTH:
            continue
        name = match_axis_label(text)
        if name:
            labels.append((node, text, name))

    # Wrappers of the same label sit at the same spot: keep the shorter text
    unique = []
    for label in labels:
        node, text, name = label
        for idx, (other, other_text, other_name) in enumerate(unique):
            if other_name != name:
                continue
            distance = abs(other.rect.top - node.rect.top) + abs(other.rect.left - node.rect.left)
            if distance < LABEL_MERGE_PX:
                if len(text) < len(other_text):
                    unique[idx] = label
                break
        else:
            unique.append(label)

    layers = []
    assigned: Set[int] = set()
    for node, text, name in unique:
        options: List[DomNode] = []
        for sibling in node.next_siblings():
            options = find_variant_controls(sibling, assigned)
            if options:
                break

        if not options and node.parent is not None:
            options = find_variant_controls(node.parent, assigned)
            nearby = [o for o in options if abs(o.rect.top - node.rect.top) < LABEL_PROXIMITY_PX]
            if nearby:
                options = nearby

        if options:
            layers.append(VariantLayer(name=name, options=options, container=node.parent, top=node.rect.top))
            assigned.update(option.node_id for option in options)

    layers.sort(key=lambda layer: layer.top)
    return layers


def _is_label_element(node: DomNode) -> bool:
    return node.tag == 'label' or 'label' in node.class_name


def detect_by_container_class(root: DomNode) -> List[VariantLayer]:
    """Known variation containers that carry an explicit label element"""
    layers = []
    assigned: Set[int] = set()
    containers = root.find_all(
        lambda n: any(marker in n.class_name for marker in VARIATION_CONTAINER_CLASSES))
    for container in containers:
        label = next((n for n in container.iter_descendants() if _is_label_element(n)), None)
        name = match_axis_label(label.text) if label is not None else None
        if not name:
            continue

        options = find_variant_controls(container, assigned)
        if options:
            layers.append(VariantLayer(name=name, options=options, container=container, top=container.rect.top))
            assigned.update(option.node_id for option in options)

    layers.sort(key=lambda layer: layer.top)
    return layers


DEFAULT_STRATEGIES: List[Strategy] = [
    detect_by_rows,
    detect_by_labels,
    detect_by_container_class,
]


def detect_layers(root: DomNode, strategies: Optional[List[Strategy]] = None) -> List[VariantLayer]:
    for strategy in strategies or DEFAULT_STRATEGIES:
        layers = strategy(root)
        if layers:
            logger.debug(f"VARIANTS: {strategy.__name__} found {len(layers)} layer(s)")
            return layers
    return []


class VariantLayerDetector:
    def __init__(self, page: BasePage, strategies: Optional[List[Strategy]] = None):
        self.page = page
        self.strategies = strategies or DEFAULT_STRATEGIES

    async def detect(self) -> List[VariantLayer]:
        root = await self.page.snapshot()
        logger.debug(f"VARIANTS: page has {len(root.buttons())} buttons")

        layers = detect_layers(root, self.strategies)
        if not layers:
            logger.warning("VARIANTS: no variant layers found, product may have none")
            return []

        for layer in layers:
            logger.info(f"VARIANTS: {layer.describe()}")
        return layers

    async def find_size_controls(self, exclude_ids: Set[int]) -> List[DomNode]:
        return find_size_controls(await self.page.snapshot(), exclude_ids)
