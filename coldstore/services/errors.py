"""
Domain errors raised by the services.

The API layer maps them to HTTP status codes (LookupError -> 404,
ValueError -> 400, ConflictError -> 409); services never raise
HTTPException themselves.
"""


class NotFoundError(LookupError):
    pass


class InvalidRequestError(ValueError):
    """Payload references something that does not exist or does not fit."""


class ConflictError(ValueError):
    pass


class WorkflowError(ValueError):
    """Operation not allowed in the order's current status."""


class StockError(ValueError):
    pass


class InsufficientStockError(StockError):
    pass


class ExpiredStockError(StockError):
    pass


class TemperatureZoneError(StockError):
    pass
