from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class StartRequest(BaseModel):
    """Start a run; a random preset keyword is used when none is given"""
    keyword: Optional[str] = None


class StateResponse(BaseModel):
    is_running: bool
    search_term: str
    cart_count: int
    current_product_index: int
    keyword_changed_at: float
    processed_products: int
    browser_active: bool = False


class AutomationStatus(BaseModel):
    success: bool
    state: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class ProcessedResponse(BaseModel):
    count: int
    product_ids: List[str]
