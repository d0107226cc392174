from __future__ import annotations

from typing import Mapping, Optional

from psm.domain.money import to_finite_float
from psm.domain.models import Product
from psm.services.pricing_config import PricingConfig

MAX_GAIN_PERCENT = 100.0


def resolve_gain_percent(product: Optional[Product], cached_overrides: Mapping[int, object], product_id: int | None = None) -> float:
    """Invoice-only profit annotation in [0, 100]. Never raises, never touches price or stock."""
    pid = product.id if product is not None else product_id

    if product is not None and product.gain_percent is not None:
        authoritative = to_finite_float(product.gain_percent)
        if authoritative is not None and authoritative >= 0:
            return min(MAX_GAIN_PERCENT, authoritative)

    if pid is not None:
        cached = to_finite_float(cached_overrides.get(int(pid)))
        if cached is not None:
            return min(MAX_GAIN_PERCENT, max(0.0, cached))

    return 0.0


class GainMarginResolver:
    def __init__(self, config: PricingConfig | None = None):
        self.config = config or PricingConfig()

    def resolve(self, product: Optional[Product], product_id: int | None = None) -> float:
        return resolve_gain_percent(product, self.config.gain_percents, product_id=product_id)
