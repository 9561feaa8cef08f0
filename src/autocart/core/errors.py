"""
Error taxonomy for the cart automation

not-found      -> ElementNotFoundError (retried, then raised to the controller)
structural     -> StructuralDetectionError (logged, never retried)
timeout        -> OperationTimeoutError
navigation     -> NavigationError (logged by the coordinator, not raised to the page)
"""


class AutoCartError(Exception):
    """Base class for automation failures the controller knows how to recover from"""


class ElementNotFoundError(AutoCartError):
    def __init__(self, description: str, attempts: int = 1):
        self.description = description
        self.attempts = attempts
        super().__init__(f"Element not found: {description}")


class StructuralDetectionError(AutoCartError):
    """Variant layers or the add-to-cart control could not be inferred"""


class OperationTimeoutError(AutoCartError):
    def __init__(self, operation_name: str, timeout: float):
        self.operation_name = operation_name
        self.timeout = timeout
        super().__init__(f"{operation_name} timed out after {timeout:g}s")


class NavigationError(AutoCartError):
    pass


class ListingNotLoadedError(AutoCartError):
    """A listing page exposed at most one product card"""

    def __init__(self, card_count: int):
        self.card_count = card_count
        super().__init__(f"Listing shows only {card_count} product card(s)")


class CoordinatorError(AutoCartError):
    pass
