import os
from dataclasses import dataclass, field, asdict
from dotenv import load_dotenv
from pathlib import Path
from typing import Dict, Any

# Load environment variables
load_dotenv()


def get_project_root() -> Path:
    # src/autocart/core/ -> src/autocart/ -> src/ -> root
    return Path(__file__).parent.parent.parent.parent


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value not in (None, '') else default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value not in (None, '') else default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value in (None, ''):
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class AutoCartConfig:
    """
    Central configuration for the cart automation.
    Delays and timeouts are in seconds.
    """

    base_url: str = 'https://shopee.tw'

    # Cart caps per product
    max_carts_with_variants: int = 5
    max_carts_no_variants: int = 3

    max_log_entries: int = 200

    # Retry policy for element waits
    retry_attempts: int = 3
    retry_delay: float = 2.0
    element_timeout: float = 5.0
    listing_timeout: float = 15.0
    poll_interval: float = 0.1

    # Pacing
    operation_delay: float = 1.0
    navigation_timeout: float = 30.0
    page_load_delay: float = 3.0
    sparse_page_delay: float = 2.0  # extra wait when the body is nearly empty
    sparse_page_chars: int = 100
    search_page_delay: float = 5.0
    variant_select_delay: float = 0.5
    layer_settle_delay: float = 0.6
    commit_settle_delay: float = 1.5
    dynamic_settle_delay: float = 1.0
    redetect_delay: float = 2.0
    listing_reload_delay: float = 15.0
    reveal_delay: float = 2.0
    return_delay: float = 1.0
    error_return_delay: float = 2.0

    # Listing scan
    max_random_start: int = 60
    row_tolerance: float = 50.0

    # Keyword rotation on return to the listing (disabled unless asked for)
    rotate_keywords: bool = False
    keyword_change_interval: float = 240.0

    # Browser
    headless: bool = False
    profile_dir: str = '/tmp/autocart_chrome_profile'
    browser_channel: str = 'chrome'
    locale: str = 'zh-TW'

    database_path: Path = field(default_factory=lambda: get_project_root() / 'data' / 'autocart.db')

    @classmethod
    def from_env(cls) -> 'AutoCartConfig':
        """Build a config from AUTOCART_* environment variables (.env supported)."""
        defaults = cls()
        return cls(
            base_url=os.getenv('AUTOCART_BASE_URL', defaults.base_url).rstrip('/'),
            max_carts_with_variants=_env_int('AUTOCART_MAX_CARTS_WITH_VARIANTS', defaults.max_carts_with_variants),
            max_carts_no_variants=_env_int('AUTOCART_MAX_CARTS_NO_VARIANTS', defaults.max_carts_no_variants),
            max_log_entries=_env_int('AUTOCART_MAX_LOG_ENTRIES', defaults.max_log_entries),
            retry_attempts=_env_int('AUTOCART_RETRY_ATTEMPTS', defaults.retry_attempts),
            retry_delay=_env_float('AUTOCART_RETRY_DELAY', defaults.retry_delay),
            element_timeout=_env_float('AUTOCART_ELEMENT_TIMEOUT', defaults.element_timeout),
            operation_delay=_env_float('AUTOCART_OPERATION_DELAY', defaults.operation_delay),
            navigation_timeout=_env_float('AUTOCART_NAVIGATION_TIMEOUT', defaults.navigation_timeout),
            page_load_delay=_env_float('AUTOCART_PAGE_LOAD_DELAY', defaults.page_load_delay),
            search_page_delay=_env_float('AUTOCART_SEARCH_PAGE_DELAY', defaults.search_page_delay),
            variant_select_delay=_env_float('AUTOCART_VARIANT_SELECT_DELAY', defaults.variant_select_delay),
            rotate_keywords=_env_bool('AUTOCART_ROTATE_KEYWORDS', defaults.rotate_keywords),
            keyword_change_interval=_env_float('AUTOCART_KEYWORD_CHANGE_INTERVAL', defaults.keyword_change_interval),
            headless=_env_bool('AUTOCART_HEADLESS', defaults.headless),
            profile_dir=os.getenv('AUTOCART_PROFILE_DIR', defaults.profile_dir),
            database_path=Path(os.getenv('AUTOCART_DATABASE_PATH', str(defaults.database_path))),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['database_path'] = str(self.database_path)
        return data
