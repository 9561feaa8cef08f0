"""Tests for clickable / selected reads of rendered controls."""

from autocart.dom.controls import control_label, is_clickable, is_selected
from autocart.dom.node import ComputedStyle, DomNode

from conftest import el


def test_plain_button_is_clickable():
    assert is_clickable(el('button', 'M')) is True


def test_unclickable_states():
    assert not is_clickable(el('button', 'M', disabled=True))
    assert not is_clickable(el('button', 'M', attrs={'aria-disabled': 'true'}))
    assert not is_clickable(el('button', 'M', cls='product-variation--disabled'))
    assert not is_clickable(el('button', 'M', cls='sold-out'))
    assert not is_clickable(el('button', 'M', style=ComputedStyle(opacity=0.4)))
    assert not is_clickable(el('button', 'M', style=ComputedStyle(pointer_events='none')))
    assert not is_clickable(el('button', 'M', style=ComputedStyle(cursor='not-allowed')))


def test_selected_states():
    assert not is_selected(el('button', 'M'))
    assert is_selected(el('button', 'M', cls='product-variation product-variation--selected'))
    assert is_selected(el('button', 'M', attrs={'aria-pressed': 'true'}))
    assert is_selected(el('button', 'M', style=ComputedStyle(border_color='rgb(238, 77, 45)')))
    assert is_selected(el('button', 'M', style=ComputedStyle(outline_color='rgba(238, 77, 45, 0.8)')))


def test_control_label():
    assert control_label(el('button', 'Red')) == 'Red'
    assert control_label(el('button', attrs={'aria-label': 'Blue'})) == 'Blue'
    assert control_label(el('button'), fallback='option 2') == 'option 2'


def test_from_dict_builds_linked_tree():
    root = DomNode.from_dict({
        'id': 1, 'tag': 'DIV', 'cls': 'row', 'text': ' 顏色 紅色 ',
        'rect': {'top': 10, 'left': 5},
        'children': [
            {'id': 2, 'tag': 'BUTTON', 'ownText': '紅色', 'text': '紅色',
             'attrs': {'aria-pressed': 'true', 'title': None},
             'style': {'opacity': '0.3', 'pointerEvents': 'auto', 'cursor': 'pointer'},
             'disabled': False},
        ],
    })
    button = root.find_by_id(2)

    assert root.tag == 'div'
    assert root.text == '顏色 紅色'
    assert root.rect.top == 10.0
    assert button.parent is root
    assert button.attrs == {'aria-pressed': 'true'}
    assert button.style.opacity == 0.3
    assert root.buttons() == [button]
    assert root.contains(button) and not button.contains(root)
    assert is_selected(button) and not is_clickable(button)
