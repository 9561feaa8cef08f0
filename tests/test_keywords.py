"""Tests for the storefront keyword heuristics."""

import pytest

from autocart.utils.ecommerce_keywords import (
    KeywordSet,
    has_variant_selection_error_text,
    is_non_variant_text,
    is_size_option,
    match_axis_label,
)


@pytest.mark.parametrize("text", ["S", "XL", "2XL", "165/88A", "40碼", "XS【建議35-40kg】", "均碼", "FREE", "120cm"])
def test_size_like_options(text):
    assert is_size_option(text) is True


@pytest.mark.parametrize("text", ["紅色", "黑色", "碎花", "尺寸表", "Size Guide", ""])
def test_not_size_options(text):
    assert is_size_option(text) is False


def test_axis_label_first_match_wins():
    assert match_axis_label("顏色") == "顏色"
    assert match_axis_label("顏色分類") == "顏色"
    assert match_axis_label("尺寸") == "尺寸"
    assert match_axis_label("Size") == "Size"


def test_excluded_and_unknown_labels():
    assert match_axis_label("數量") is None
    assert match_axis_label("顏色數量") is None
    assert match_axis_label("規格運費") is None
    assert match_axis_label("商品詳情") is None
    assert match_axis_label("") is None


@pytest.mark.parametrize("text", ["1", "4.9", "120評價", "...", "加入購物車", "立即購買", "聊聊", "尺寸表", "分享"])
def test_non_variant_controls(text):
    assert is_non_variant_text(text) is True


@pytest.mark.parametrize("text", ["紅色", "M", "套裝A"])
def test_variant_controls(text):
    assert is_non_variant_text(text) is False


def test_variant_selection_error_text():
    assert has_variant_selection_error_text("提示：請先選擇商品規格") is True
    assert has_variant_selection_error_text("Please select product variation") is True
    assert has_variant_selection_error_text("已加入購物車") is False
    assert has_variant_selection_error_text(None) is False


def test_keyword_set_applies_its_patterns():
    keywords = KeywordSet(primary=['加入購物車'], secondary=[], patterns=[r'(?i)add\s+to\s+cart'])
    assert keywords.found_in('加入購物車') is True
    assert keywords.found_in('ADD  to Cart') is True
    assert keywords.found_in('Buy Now') is False
    assert keywords.found_in(None) is False
