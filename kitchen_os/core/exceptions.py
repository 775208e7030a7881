"""
Domain exceptions raised by the service layer

Routers translate these into HTTP responses; the display terminal never
sees them directly.
"""


class KitchenError(Exception):
    """Base class for kitchen domain errors"""


class NotFoundError(KitchenError):
    """Requested entity does not exist in the caller's branch"""


class ValidationError(KitchenError):
    """Request is well formed but not acceptable in the current state"""


class InvalidTransitionError(ValidationError):
    """Status change not permitted by the item lifecycle"""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition item from {current} to {target}")


class HandoverError(KitchenError):
    """Handover transaction could not complete; nothing was reassigned"""
