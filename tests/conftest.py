"""Shared fixtures: an in-memory page over DomNode trees and a fast config."""

import inspect
import itertools
import os
import random
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

# The API module builds its app at import time from the environment
os.environ.setdefault('AUTOCART_DATABASE_PATH', str(Path(tempfile.mkdtemp()) / 'autocart.db'))

import pytest

from autocart.core.config import AutoCartConfig
from autocart.db import Database, create_database
from autocart.dom.node import ComputedStyle, DomNode, Rect
from autocart.dom.service import BasePage
from autocart.state.coordinator import Coordinator, CoordinatorClient
from autocart.state.store import ProcessedTracker, RunStateStore

VARIANT_ERROR = '請先選擇商品規格'

_ids = itertools.count(1)


def el(tag: str, own_text: str = '', children=(), cls: str = '', top: float = 0.0, left: float = 0.0,
       attrs: Optional[Dict[str, str]] = None, disabled: bool = False,
       style: Optional[ComputedStyle] = None) -> DomNode:
    """Element with textContent-like `text` built from its children"""
    node = DomNode(
        node_id=next(_ids),
        tag=tag,
        class_name=cls,
        attrs=dict(attrs or {}),
        own_text=own_text,
        rect=Rect(top=top, left=left, width=80.0, height=30.0),
        style=style or ComputedStyle(),
        disabled=disabled,
    )
    node.children = list(children)
    for child in node.children:
        child.parent = node
    node.text = (own_text + ''.join(child.text for child in node.children)).strip()
    return node


def append(parent: DomNode, child: DomNode):
    child.parent = parent
    parent.children.append(child)
    node = parent
    while node is not None:
        node.text = (node.own_text + ''.join(c.text for c in node.children)).strip()
        node = node.parent


def option(text: str, top: float = 0.0, left: float = 0.0, **kwargs) -> DomNode:
    return el('button', text, cls='product-variation', top=top, left=left, **kwargs)


def variant_row(label: str, options: List[str], top: float) -> DomNode:
    """Label cell followed by the option buttons, the way the product page lays out an axis"""
    buttons = [option(text, top=top, left=100.0 + 90 * idx) for idx, text in enumerate(options)]
    return el('div', children=[
        el('div', label, top=top, left=0.0),
        el('div', children=buttons, top=top, left=100.0),
    ], cls='flex items-center', top=top)


def cart_actions(top: float = 600.0) -> DomNode:
    return el('div', children=[
        el('button', '加入購物車', cls='btn btn-tinted', top=top, left=0.0),
        el('button', '立即購買', cls='btn btn-solid-primary', top=top, left=200.0),
    ], cls='flex', top=top)


def product_page(*rows: DomNode, description: str = '商品詳情 ' * 30) -> DomNode:
    briefing = el('div', children=[*rows, cart_actions()], cls='product-briefing', top=50.0)
    return el('body', children=[briefing, el('div', description, top=900.0)])


def product_card(seller: int, item: int, name: str, top: float, left: float, href: Optional[str] = None) -> DomNode:
    href = href or f'/{name}-i.{seller}.{item}'
    return el('div', children=[
        el('a', children=[
            el('div', name, cls='line-clamp-2 name', top=top, left=left),
        ], attrs={'href': href}, top=top, left=left),
    ], cls='shopee-search-item-result__item', attrs={'data-sqe': 'item'}, top=top, left=left)


def listing_page(cards: List[DomNode]) -> DomNode:
    return el('body', children=[el('ul', children=cards, cls='shopee-search-item-result__items')])


class FakePage(BasePage):
    """BasePage over a DomNode tree; clicks are recorded and can trigger hooks"""

    def __init__(self, root: Optional[DomNode] = None, url: str = 'https://shopee.tw/search?keyword=test',
                 body: str = ''):
        self.root = root or el('body')
        self.url = url
        self.body = body
        self.clicks: List[DomNode] = []
        self.navigations: List[str] = []
        self.reloads = 0
        self.snapshots = 0
        self.scrolled_to_bottom = 0
        self.gone: Set[int] = set()
        self.click_results: Dict[int, bool] = {}
        self.on_click: Optional[Callable[[DomNode], Any]] = None
        self.on_scroll_to_bottom: Optional[Callable[[], Any]] = None

    # Helpers for assertions

    def clicked_labels(self) -> List[str]:
        return [node.text for node in self.clicks]

    def cart_clicks(self) -> int:
        return sum(1 for node in self.clicks if '加入購物車' in node.text)

    def find_text(self, text: str) -> DomNode:
        return self.root.find_first(lambda n: n.tag == 'button' and n.text == text)

    # BasePage

    async def current_url(self) -> str:
        return self.url

    async def snapshot(self) -> DomNode:
        self.snapshots += 1
        return self.root

    async def inspect(self, node: DomNode) -> Optional[DomNode]:
        if node.node_id in self.gone:
            return None
        return self.root.find_by_id(node.node_id)

    async def click(self, node: DomNode) -> bool:
        if node.node_id in self.gone:
            return False
        self.clicks.append(node)
        if self.on_click is not None:
            result = self.on_click(node)
            if inspect.isawaitable(result):
                await result
        return self.click_results.get(node.node_id, True)

    async def body_text(self) -> str:
        return self.body or self.root.text

    async def scroll_to_top(self):
        pass

    async def scroll_to_bottom(self):
        self.scrolled_to_bottom += 1
        if self.on_scroll_to_bottom is not None:
            self.on_scroll_to_bottom()

    async def navigate(self, url: str):
        self.navigations.append(url)
        self.url = url

    async def reload(self):
        self.reloads += 1


@pytest.fixture
def fast_config(tmp_path) -> AutoCartConfig:
    return AutoCartConfig(
        retry_delay=0,
        element_timeout=0,
        listing_timeout=0,
        poll_interval=0,
        operation_delay=0,
        navigation_timeout=5,
        page_load_delay=0,
        sparse_page_delay=0,
        search_page_delay=0,
        variant_select_delay=0,
        layer_settle_delay=0,
        commit_settle_delay=0,
        dynamic_settle_delay=0,
        redetect_delay=0,
        listing_reload_delay=0,
        reveal_delay=0,
        return_delay=0,
        error_return_delay=0,
        database_path=tmp_path / 'autocart.db',
    )


@pytest.fixture
def database(fast_config) -> Database:
    create_database(fast_config.database_path)
    return Database(fast_config.database_path)


@pytest.fixture
def store(database) -> RunStateStore:
    return RunStateStore(database)


@pytest.fixture
def tracker(database) -> ProcessedTracker:
    return ProcessedTracker(database)


@pytest.fixture
def coordinator(store, tracker, fast_config) -> Coordinator:
    return Coordinator(store, tracker, fast_config, rng=random.Random(7))


@pytest.fixture
def client(coordinator) -> CoordinatorClient:
    return CoordinatorClient(coordinator)


def log_messages(coordinator: Coordinator) -> List[str]:
    return [entry.message for entry in coordinator.activity_log.entries()]
