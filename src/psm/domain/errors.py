class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class InvalidTransitionError(ValidationError):
    pass


class InsufficientStockError(ValidationError):
    def __init__(self, product_id: int, requested: float, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Not enough stock for product {product_id}. Requested: {requested:g}, available: {available}"
        )


class NotFoundError(AppError):
    pass


class ConflictError(AppError):
    pass


class RemoteError(AppError):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RemoteUnavailableError(RemoteError):
    """Transport failure, timeout or 5xx. Re-submitted only by explicit user action."""
