from __future__ import annotations

from typing import Optional

from psm.domain.models import KILOGRAM_GRAM_FACTOR, LineItem, MeasurementUnit, PriceResolution, Product
from psm.services.pricing_config import PricingConfig, normalize_size


def gram_factor_for(unit: MeasurementUnit) -> int:
    return KILOGRAM_GRAM_FACTOR if unit is MeasurementUnit.KILOGRAM else 1


def compute_bulk_subtotal(unit_price: float, gram_factor: float, requested_grams: float) -> float:
    """Price of ``requested_grams`` of a product priced per ``gram_factor`` grams.

    250 g of a 10000/kg product: compute_bulk_subtotal(10000, 1000, 250) == 2500.
    """
    factor = float(gram_factor) or 1.0
    return float(unit_price) / factor * float(requested_grams)


def line_subtotal(line: LineItem) -> float:
    """The single subtotal rule shared by cart, invoice and totals."""
    if line.bulk_applies:
        return compute_bulk_subtotal(line.unit_price, line.gram_factor, float(line.grams))
    return float(line.quantity) * float(line.unit_price)


class VariantPriceResolver:
    def __init__(self, config: PricingConfig | None = None):
        self.config = config or PricingConfig()

    def resolve(self, product: Product, size: Optional[str] = None, override: Optional[float] = None) -> PriceResolution:
        base = float(product.base_price)
        if not normalize_size(size):
            return PriceResolution(price=base, base_reference=base, increment_percent=0.0)

        stored = override if override is not None else self.config.size_price_for(product.id, size)
        if stored is not None:
            return PriceResolution(price=float(stored), base_reference=base, increment_percent=0.0, overridden=True)

        pct = self.config.increment_for(size)
        return PriceResolution(price=base * (100.0 + pct) / 100.0, base_reference=base, increment_percent=pct)


def resolve_price(
    product: Product,
    size: Optional[str] = None,
    override: Optional[float] = None,
    config: PricingConfig | None = None,
) -> PriceResolution:
    return VariantPriceResolver(config).resolve(product, size, override)
