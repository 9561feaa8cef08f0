#!/usr/bin/env python3
"""
Storefront Keyword Library
Multilingual vocabularies the page heuristics match rendered text against
(Traditional / Simplified Chinese and English, as shown on Shopee).
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class KeywordSet:
    """Container for keyword variations"""
    primary: List[str]  # Primary keywords to try first
    secondary: List[str]  # Fallback keywords
    patterns: List[str]  # Regex patterns for flexible matching
    compiled: List[re.Pattern] = field(init=False, repr=False)

    def __post_init__(self):
        self.compiled = [re.compile(pattern) for pattern in self.patterns]

    def all_keywords(self) -> List[str]:
        """Get all keywords combined"""
        return self.primary + self.secondary

    def found_in(self, text: str) -> bool:
        """Keyword substring first, then the regex patterns"""
        text = text or ''
        if any(keyword in text for keyword in self.all_keywords()):
            return True
        return any(pattern.search(text) for pattern in self.compiled)


# ============================================
# SEARCH STAGE
# ============================================

PRESET_KEYWORDS = [
    '女裝',
    '美式女裝',
    '男裝',
    '好看男裝',
    '男褲',
    '女褲',
    '美式女褲',
    '首飾',
]


# ============================================
# VARIANT AXIS LABELS
# ============================================

# Order matters: the first label contained in the text names the axis
VARIANT_AXIS_LABELS = [
    # Color
    '顏色', '颜色', 'Color', '顏色分類', '颜色分类', '色系', '配色',
    # Size
    '尺寸', '尺碼', 'Size', '尺寸分類', '尺码分类', '大小', '號碼', '号码',
    # Style
    '款式', '樣式', '样式', 'Style', '款', '類型', '类型', 'Type',
    # Electronics
    '容量', '版本', 'Version', '型號', '型号', 'Model', '規格', '规格', 'Spec',
    '內存', '内存', 'RAM', '存儲', '存储', 'Storage', '配置', '處理器', '处理器',
    # Food
    '口味', '味道', 'Flavor', '份量', '重量', 'Weight', '包裝', '包装',
    # Bundles
    '套餐', '組合', '组合', 'Bundle', 'Set', '方案', '選項', '选项', 'Option',
    # Other
    '材質', '材质', '長度', '长度', '寬度', '宽度', '厚度', '電壓', '电压',
    '功率', '瓦數', '瓦数', '插頭', '插头', '接口', '尺吋', '吋',
]

# Labels that look like an axis but never hold selectable options
EXCLUDED_AXIS_LABELS = [
    '數量', '数量', 'Quantity', '庫存', '库存', 'Stock', '尚有庫存',
    '評價', '评价', 'Rating', '評分', '评分',
    '付款', '物流', '運費', '运费', '配送',
    '商品數量', '商品数量', '購買數量', '购买数量',
]


# ============================================
# NON-VARIANT CONTROLS
# ============================================

NON_VARIANT_CONTROL_TEXT = [
    # Cart / buy
    '購物車', '购物车', 'Cart', '立即', 'Buy', '加入', '直接購買', '直接购买', 'Buy Now',
    # Social
    '關注', '分享', '收藏', '喜歡', '喜欢',
    # Report
    '檢舉', '检举', 'Report', '匿名', '舉報', '举报',
    # Chat
    '聊聊', '客服', 'Chat',
    # Coupons
    '優惠券', '优惠券', 'Coupon', '領取', '领取', 'Claim',
    # Expand / collapse
    '查看', '更多', '展開', '收起',
    # Stock
    '庫存', '库存', 'Stock',
    # Size charts and help
    '尺寸表', '尺碼表', 'Size Chart', 'Size Guide', '尺码表', '測量', '测量',
    '如何測量', '如何测量', '參考', '参考', 'Guide', '說明', '说明', '幫助', '帮助', 'Help',
]

QUANTITY_PATTERN = re.compile(r'^\d+$')
RATING_PATTERN = re.compile(r'^\d+\.\d+$')
REVIEW_COUNT_PATTERN = re.compile(r'\d+(評價|评价)')
ELLIPSIS_TEXT = ('...', '…')


# ============================================
# ADD TO CART STAGE
# ============================================

ADD_TO_CART_KEYWORDS = KeywordSet(
    primary=['加入購物車', '加入购物车', 'Add to Cart', 'ADD TO CART'],
    secondary=[],
    patterns=[r'加入購物車', r'加入购物车', r'(?i)add to cart'],
)

# Text any cart control carries, used with the structural fallback
CART_TEXT_KEYWORDS = KeywordSet(
    primary=['購物車', '购物车'],
    secondary=['cart'],
    patterns=[r'(?i)cart'],
)

BUY_NOW_KEYWORDS = KeywordSet(
    primary=['立即'],
    secondary=['Buy Now', 'buy now'],
    patterns=[r'(?i)buy now'],
)

# Class fragments of buttons that may be the add-to-cart control
ADD_TO_CART_CLASS_MARKERS = [
    'add-to-cart',
    'btn-solid-primary',
    'bg-primary',
    'shopee-button-solid',
]

# Container fragment the add-to-cart control is rendered inside
ADD_TO_CART_CONTAINER_MARKERS = ['add-to-cart', 'product-briefing']

VARIANT_SELECTION_ERRORS = [
    '請先選擇商品規格',
    '请先选择商品规格',
    'Please select product variation',
    '請選擇商品規格',
]

# Elements the site renders its validation messages in
ERROR_CLASS_MARKERS = ['error', 'warning', 'toast']
ERROR_STYLE_MARKERS = ['color: red', 'color:red', 'color: rgb(255']


# ============================================
# SIZE OPTIONS
# ============================================

SIZE_EXCLUDE_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    r'尺寸表', r'尺碼表', r'尺码表', r'Size Chart', r'Size Guide',
    r'測量', r'测量', r'參考', r'参考', r'說明', r'说明', r'幫助', r'帮助',
    r'Guide', r'Help',
)]

SIZE_PATTERNS = [re.compile(p, re.IGNORECASE) for p in (
    # Letter sizes (prefix)
    r'^(XXS|XS|S|M|L|XL|XXL|XXXL|2XL|3XL|4XL|5XL)',
    # Numeric sizes (36, 38, 165/88A)
    r'^\d{2,3}(\/\d+)?[A-Z]?$',
    r'^\d{2,3}码',
    r'^\d{2,3}碼',
    # Sizes with a weight hint, e.g. "XS【建議35-40kg】"
    r'建議.*kg',
    r'建议.*kg',
    r'適合.*kg',
    r'适合.*kg',
    r'\d+-\d+kg',
    r'\d+-\d+公斤',
    # Units
    r'公斤',
    r'kg',
    r'cm',
    r'公分',
    r'厘米',
    r'^\d+尺$',
    r'^\d+码$',
    r'^\d+碼$',
    r'^\d+號$',
    r'^\d+号$',
    r'^\d+寸$',
    r'^\d{1,3}$',
    r'^\d+-\d+$',
    # One size
    r'均码',
    r'均碼',
    r'FREE',
    r'ONE SIZE',
)]


def is_size_option(text: str) -> bool:
    """True when an option's text reads like a size or measurement"""
    text = (text or '').strip()
    if any(pattern.search(text) for pattern in SIZE_EXCLUDE_PATTERNS):
        return False
    return any(pattern.search(text) for pattern in SIZE_PATTERNS)


def match_axis_label(text: str) -> Optional[str]:
    """Axis name contained in `text`, None when it names no axis or an excluded one"""
    if not text:
        return None
    for label in VARIANT_AXIS_LABELS:
        if label in text:
            return None if is_excluded_label(text) else label
    return None


def is_excluded_label(text: str) -> bool:
    return any(label in text for label in EXCLUDED_AXIS_LABELS)


def is_non_variant_text(text: str) -> bool:
    """Quantity steppers, ratings, ellipsis and the shop's action buttons"""
    if QUANTITY_PATTERN.match(text) or RATING_PATTERN.match(text):
        return True
    if REVIEW_COUNT_PATTERN.search(text):
        return True
    if text in ELLIPSIS_TEXT:
        return True
    return any(keyword in text for keyword in NON_VARIANT_CONTROL_TEXT)


def has_variant_selection_error_text(text: str) -> bool:
    return any(message in (text or '') for message in VARIANT_SELECTION_ERRORS)
