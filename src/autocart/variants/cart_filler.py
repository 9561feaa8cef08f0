#!/usr/bin/env python3
"""
Combination Enumerator & Cart-Fill Executor

Walks the detected variant layers of one product and presses add-to-cart
after every combination, up to the per-product cap:

  INIT -> NO_LAYERS | SINGLE_LAYER | MIXED_COLOR_SIZE | MULTI_LAYER -> FILLING -> DONE

Shopee option buttons toggle: clicking the selected option deselects it.
An option is only clicked when its layer must change, except where the
layer changes on every step (single layer, inner size axis).
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from autocart.core.config import AutoCartConfig
from autocart.core.errors import StructuralDetectionError
from autocart.dom.controls import control_label, is_clickable
from autocart.dom.node import DomNode
from autocart.dom.service import BasePage
from autocart.state.coordinator import CoordinatorClient
from autocart.utils.ecommerce_keywords import is_size_option
from autocart.variants.add_to_cart import add_to_cart, page_requires_variant
from autocart.variants.detector import VariantLayer, VariantLayerDetector

logger = logging.getLogger(__name__)

AD_HOC_SIZE_LAYER = 'Size'


class FillState(str, Enum):
    INIT = 'init'
    NO_LAYERS = 'no_layers'
    SINGLE_LAYER = 'single_layer'
    MIXED_COLOR_SIZE = 'mixed_color_size'
    MULTI_LAYER = 'multi_layer'
    FILLING = 'filling'
    DONE = 'done'


def split_color_size(options: List[DomNode]) -> Tuple[List[DomNode], List[DomNode]]:
    """Split one layer's options into (color-like, size-like)"""
    colors, sizes = [], []
    for option in options:
        (sizes if is_size_option(option.text) else colors).append(option)
    return colors, sizes


def combination_name(layers: List[VariantLayer], indices: List[int]) -> str:
    return ' + '.join(
        control_label(layer.options[idx], fallback=f'option {idx + 1}') for layer, idx in zip(layers, indices))


class CartFiller:
    """Per-product enumeration state; build a new one for every product visit"""

    def __init__(self, page: BasePage, client: CoordinatorClient, config: AutoCartConfig,
                 detector: Optional[VariantLayerDetector] = None):
        self.page = page
        self.client = client
        self.config = config
        self.detector = detector or VariantLayerDetector(page)

        self.state = FillState.INIT
        self.branch: Optional[FillState] = None
        self.cart_count = 0
        self.cap = 0
        # Index last activated per layer (multi-layer)
        self.last_indices: Optional[List[Optional[int]]] = None
        # Color-like option currently active (mixed color/size)
        self.active_outer: Optional[int] = None
        self.structural_error: Optional[StructuralDetectionError] = None

    # Entry

    async def fill(self, layers: Optional[List[VariantLayer]] = None) -> int:
        """Run the fill for the current product page; returns the number of additions"""
        if layers is None:
            layers = await self.detector.detect()

        self.cap = self.config.max_carts_with_variants if layers else self.config.max_carts_no_variants
        self.branch, plan = self._choose_branch(layers)
        self.state = self.branch
        logger.info(f"VARIANTS: {self.branch.value} with cap {self.cap}")

        self.state = FillState.FILLING
        if self.branch == FillState.NO_LAYERS:
            await self._fill_without_variants()
        elif self.branch == FillState.MIXED_COLOR_SIZE:
            colors, sizes = plan
            await self._fill_mixed(colors, sizes)
        elif self.branch == FillState.SINGLE_LAYER:
            await self._fill_single_layer(layers[0])
        else:
            await self._fill_multi_layer(layers)

        self.state = FillState.DONE
        self.client.log(f"Product done, {self.cart_count} added to cart", 'success')
        return self.cart_count

    def _choose_branch(self, layers: List[VariantLayer]) -> Tuple[FillState, Any]:
        if not layers:
            return FillState.NO_LAYERS, None
        if len(layers) > 1:
            return FillState.MULTI_LAYER, None

        colors, sizes = split_color_size(layers[0].options)
        logger.info(f"VARIANTS: {len(colors)} color-like and {len(sizes)} size-like options")
        # Checked before any dynamic second-layer recovery
        if colors and sizes:
            return FillState.MIXED_COLOR_SIZE, (colors, sizes)
        return FillState.SINGLE_LAYER, None

    # Shared steps

    async def _should_continue(self) -> bool:
        if self.cart_count >= self.cap:
            return False
        if not await self.client.is_running():
            self.client.log("Stop requested, ending product", 'warning')
            return False
        return True

    async def _activate(self, option: DomNode) -> bool:
        """Re-read the option and click it when it is still clickable"""
        label = control_label(option)
        fresh = await self.page.inspect(option)
        if fresh is None or not is_clickable(fresh):
            self.client.log(f'Option "{label}" unavailable, skipped', 'warning')
            return False

        if not await self.page.click(option):
            self.client.log(f'Option "{label}" could not be clicked', 'warning')
            return False
        logger.debug(f'VARIANTS: clicked "{label}"')
        await asyncio.sleep(self.config.variant_select_delay)
        return True

    async def _commit(self, description: str) -> Dict[str, Any]:
        result = await add_to_cart(self.page, self.config)
        if result['success']:
            self.cart_count += 1
            self.client.log(f'✓ Added "{description}" ({self.cart_count}/{self.cap})', 'success')
        else:
            self.client.log(f'✗ Adding "{description}" failed ({result["reason"]})', 'warning')
        await asyncio.sleep(self.config.operation_delay)
        return result

    # Branches

    async def _fill_without_variants(self):
        self.client.log("No variant options detected, adding directly")
        first = await self._commit('product')
        if not first['success']:
            if first['reason'] == 'variant_required' or await page_requires_variant(self.page):
                self.structural_error = StructuralDetectionError(
                    "Page requires a variation but no variant options were detected")
                self.client.log(str(self.structural_error), 'error')
            return

        # One commit per remaining slot, whether or not it succeeds
        for _ in range(self.cap - 1):
            if not await self._should_continue():
                return
            await self._commit('product')

    async def _fill_single_layer(self, layer: VariantLayer):
        for idx, option in enumerate(layer.options):
            if not await self._should_continue():
                return

            label = control_label(option, fallback=f'option {idx + 1}')
            # Always clicked: the selected-state read is not trusted here
            if not await self._activate(option):
                continue

            result = await self._commit(label)
            if result['reason'] == 'variant_required':
                self.client.log("Page needs more variations, detecting a second layer", 'warning')
                await self._recover_second_layer(layer, idx)
                return

    async def _recover_second_layer(self, first_layer: VariantLayer, start: int):
        """
        Second axis rendered only after a first-layer option is chosen.
        Continues from `start` (already clicked) and keeps the count made so far.
        """
        first_texts = {control_label(option) for option in first_layer.options}

        for idx in range(start, len(first_layer.options)):
            if not await self._should_continue():
                return

            option = first_layer.options[idx]
            first_label = control_label(option, fallback=f'option {idx + 1}')
            if idx != start and not await self._activate(option):
                continue
            await asyncio.sleep(self.config.dynamic_settle_delay)

            second = await self._find_second_layer(first_layer, first_texts)
            if second is None:
                self.client.log(f'No second layer under "{first_label}", adding it alone')
                await self._commit(first_label)
                continue

            self.client.log(f"Second layer {second.name}: {len(second.options)} options", 'success')
            for option2 in second.options:
                if not await self._should_continue():
                    return
                if not await self._activate(option2):
                    continue
                await self._commit(f"{first_label} + {control_label(option2)}")

    async def _find_second_layer(self, first_layer: VariantLayer,
                                 first_texts) -> Optional[VariantLayer]:
        layers = await self.detector.detect()
        if len(layers) > 1:
            for layer in layers:
                if not all(control_label(option) in first_texts for option in layer.options):
                    return layer

        sizes = await self.detector.find_size_controls(first_layer.option_ids)
        if sizes:
            return VariantLayer(name=AD_HOC_SIZE_LAYER, options=sizes)
        return None

    async def _fill_mixed(self, colors: List[DomNode], sizes: List[DomNode]):
        for color_idx, color in enumerate(colors):
            if not await self._should_continue():
                return

            color_label = control_label(color, fallback=f'color {color_idx + 1}')
            # Clicking the active color again would deselect it
            if self.active_outer != color_idx:
                if not await self._activate(color):
                    continue
                await asyncio.sleep(self.config.layer_settle_delay)
                self.active_outer = color_idx

            for size in sizes:
                if not await self._should_continue():
                    return
                if not await self._activate(size):
                    continue
                await self._commit(f"{color_label} + {control_label(size)}")

    async def _fill_multi_layer(self, layers: List[VariantLayer]):
        total = 1
        for layer in layers:
            total *= len(layer.options)
        self.client.log(f"{total} combinations, adding at most {self.cap}")

        indices = [0] * len(layers)
        self.last_indices = [None] * len(layers)
        step = 0

        while await self._should_continue():
            step += 1
            name = combination_name(layers, indices)
            logger.info(f"VARIANTS: [{step}/{total}] {name}")

            if await self._select_combination(layers, indices):
                await self._commit(name)
            else:
                self.client.log(f'✗ "{name}" unavailable, skipped', 'warning')

            # Rightmost layer fastest; wrapping to all zeros ends the walk
            carry = True
            for i in range(len(layers) - 1, -1, -1):
                indices[i] += 1
                if indices[i] >= len(layers[i].options):
                    indices[i] = 0
                else:
                    carry = False
                    break
            if carry:
                self.client.log("All combinations visited")
                return

    async def _select_combination(self, layers: List[VariantLayer], indices: List[int]) -> bool:
        """Click only the layers whose index moved since the last activation"""
        for layer_idx, (layer, option_idx) in enumerate(zip(layers, indices)):
            if self.last_indices[layer_idx] == option_idx:
                continue
            if not await self._activate(layer.options[option_idx]):
                return False
            self.last_indices[layer_idx] = option_idx
            await asyncio.sleep(self.config.layer_settle_delay)
        return True
