from pydantic import BaseModel


class RunState(BaseModel):
    """Persisted run state shared by every page visit"""
    is_running: bool = False
    search_term: str = ""
    cart_count: int = 0  # additions made on the most recent product
    current_product_index: int = 0
    keyword_changed_at: float = 0.0  # epoch seconds of the last keyword switch
