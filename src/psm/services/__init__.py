from .pricing_config import PricingConfig, PricingConfigService
from .pricing_service import VariantPriceResolver, compute_bulk_subtotal, line_subtotal, resolve_price
from .margin_service import GainMarginResolver, resolve_gain_percent
from .totals_service import compute_totals
from .stock_service import StockReconciler, StockView, validate_availability
from .order_service import OrderLifecycle, OrderService
from .cart_service import CartService, classify_product
from .invoice_service import InvoiceService

__all__ = [
    "PricingConfig",
    "PricingConfigService",
    "VariantPriceResolver",
    "compute_bulk_subtotal",
    "line_subtotal",
    "resolve_price",
    "GainMarginResolver",
    "resolve_gain_percent",
    "compute_totals",
    "StockReconciler",
    "StockView",
    "validate_availability",
    "OrderLifecycle",
    "OrderService",
    "CartService",
    "classify_product",
    "InvoiceService",
]
