# Core package
from .config import AutoCartConfig, get_project_root
from .errors import (
    AutoCartError,
    CoordinatorError,
    ElementNotFoundError,
    ListingNotLoadedError,
    NavigationError,
    OperationTimeoutError,
    StructuralDetectionError,
)

__all__ = [
    'AutoCartConfig',
    'get_project_root',
    'AutoCartError',
    'CoordinatorError',
    'ElementNotFoundError',
    'ListingNotLoadedError',
    'NavigationError',
    'OperationTimeoutError',
    'StructuralDetectionError',
]
