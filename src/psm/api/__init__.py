from .client import BackendClient
from .normalize import normalize_order, normalize_product

__all__ = ["BackendClient", "normalize_order", "normalize_product"]
