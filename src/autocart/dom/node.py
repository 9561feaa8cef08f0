"""
Lightweight snapshot of the rendered DOM.

Every element carries the id stamped on it in the page
(`data-autocart-id`), so a node read from one snapshot can be clicked or
re-inspected later even though the snapshot itself goes stale after the
site reacts to a click.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional


@dataclass
class Rect:
    """Document-relative box (scroll offsets already added)"""
    top: float = 0.0
    left: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass
class ComputedStyle:
    opacity: float = 1.0
    pointer_events: str = 'auto'
    cursor: str = 'auto'
    border_color: str = ''
    outline_color: str = ''


@dataclass(eq=False)
class DomNode:
    node_id: int
    tag: str
    class_name: str = ''
    attrs: Dict[str, str] = field(default_factory=dict)
    own_text: str = ''
    text: str = ''
    rect: Rect = field(default_factory=Rect)
    style: ComputedStyle = field(default_factory=ComputedStyle)
    disabled: bool = False
    children: List['DomNode'] = field(default_factory=list)
    parent: Optional['DomNode'] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], parent: Optional['DomNode'] = None) -> 'DomNode':
        rect = data.get('rect') or {}
        style = data.get('style') or {}
        opacity = style.get('opacity')
        node = cls(
            node_id=int(data['id']),
            tag=(data.get('tag') or '').lower(),
            class_name=data.get('cls') or '',
            attrs={k: str(v) for k, v in (data.get('attrs') or {}).items() if v is not None},
            own_text=(data.get('ownText') or '').strip(),
            text=(data.get('text') or '').strip(),
            rect=Rect(
                top=float(rect.get('top', 0)),
                left=float(rect.get('left', 0)),
                width=float(rect.get('width', 0)),
                height=float(rect.get('height', 0)),
            ),
            style=ComputedStyle(
                opacity=float(opacity) if opacity not in (None, '') else 1.0,
                pointer_events=style.get('pointerEvents') or 'auto',
                cursor=style.get('cursor') or 'auto',
                border_color=style.get('borderColor') or '',
                outline_color=style.get('outlineColor') or '',
            ),
            disabled=bool(data.get('disabled')),
            parent=parent,
        )
        node.children = [cls.from_dict(child, node) for child in data.get('children') or []]
        return node

    # Tree walking

    def iter_tree(self) -> Iterator['DomNode']:
        """This node and all descendants, document order"""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_descendants(self) -> Iterator['DomNode']:
        it = self.iter_tree()
        next(it)
        return it

    def find_all(self, predicate: Callable[['DomNode'], bool]) -> List['DomNode']:
        return [node for node in self.iter_tree() if predicate(node)]

    def find_first(self, predicate: Callable[['DomNode'], bool]) -> Optional['DomNode']:
        for node in self.iter_tree():
            if predicate(node):
                return node
        return None

    def find_by_id(self, node_id: int) -> Optional['DomNode']:
        return self.find_first(lambda n: n.node_id == node_id)

    def buttons(self) -> List['DomNode']:
        return [node for node in self.iter_descendants() if node.tag == 'button']

    def contains(self, other: 'DomNode') -> bool:
        node = other
        while node is not None:
            if node.node_id == self.node_id:
                return True
            node = node.parent
        return False

    def closest(self, predicate: Callable[['DomNode'], bool]) -> Optional['DomNode']:
        node = self
        while node is not None:
            if predicate(node):
                return node
            node = node.parent
        return None

    def next_siblings(self) -> List['DomNode']:
        if self.parent is None:
            return []
        siblings = self.parent.children
        for idx, sibling in enumerate(siblings):
            if sibling is self:
                return siblings[idx + 1:]
        return []

    # Convenience

    def attr(self, name: str, default: str = '') -> str:
        return self.attrs.get(name, default)
