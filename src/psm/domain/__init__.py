from .models import (
    DocumentKind,
    LineItem,
    MeasurementUnit,
    Order,
    OrderKind,
    OrderStatus,
    PriceResolution,
    Product,
    StockCheck,
    Totals,
    VoidOutcome,
    VoidResult,
)
from .errors import (
    ConflictError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    RemoteError,
    RemoteUnavailableError,
    ValidationError,
)

__all__ = [
    "DocumentKind",
    "LineItem",
    "MeasurementUnit",
    "Order",
    "OrderKind",
    "OrderStatus",
    "PriceResolution",
    "Product",
    "StockCheck",
    "Totals",
    "VoidOutcome",
    "VoidResult",
    "ConflictError",
    "InsufficientStockError",
    "InvalidTransitionError",
    "NotFoundError",
    "RemoteError",
    "RemoteUnavailableError",
    "ValidationError",
]
