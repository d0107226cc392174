from __future__ import annotations

import dataclasses
import math
import re
from dataclasses import dataclass
from typing import Optional

from psm.domain.errors import ValidationError
from psm.domain.models import DocumentKind, LineItem, Product, Totals
from psm.services.pricing_config import PricingConfigService, normalize_size
from psm.services.pricing_service import VariantPriceResolver, gram_factor_for, line_subtotal
from psm.services.stock_service import StockReconciler
from psm.services.totals_service import compute_totals

FOOD_CATEGORY_RE = re.compile(r"alimento|comida|concentrado|cuido")


@dataclass(frozen=True)
class VariantFlags:
    is_bulk: bool
    is_food: bool
    gram_factor: int

    @property
    def allows_size(self) -> bool:
        return not self.is_food

    @property
    def allows_color(self) -> bool:
        return not self.is_food


def classify_product(product: Product) -> VariantFlags:
    category = (product.category or "").lower()
    by_weight = product.unit.is_weight_or_volume
    return VariantFlags(
        is_bulk="concentrado" in category or by_weight,
        is_food=bool(FOOD_CATEGORY_RE.search(category)) or by_weight,
        gram_factor=gram_factor_for(product.unit),
    )


class CartService:
    """Line-item builder shared by the sale screen, the purchase screen and the checkout cart.

    Lines keep insertion order. Stock is only checked for sale documents;
    purchases add stock.
    """

    def __init__(
        self,
        reconciler: StockReconciler,
        pricing: PricingConfigService,
        document_kind: DocumentKind = DocumentKind.SALE,
        require_size: bool = False,
        require_color: bool = False,
    ):
        self.reconciler = reconciler
        self.pricing = pricing
        self.document_kind = DocumentKind(document_kind)
        self.require_size = require_size
        self.require_color = require_color
        self._lines: list[LineItem] = []

    @property
    def lines(self) -> tuple[LineItem, ...]:
        return tuple(self._lines)

    def _index(self, product_id: int) -> int:
        for i, line in enumerate(self._lines):
            if line.product_id == int(product_id):
                return i
        raise ValidationError(f"Product {product_id} is not in the cart.")

    def _check_stock(self, product_id: int, quantity: int) -> None:
        if self.document_kind is DocumentKind.SALE:
            self.reconciler.require_availability(product_id, quantity)

    def add_line(
        self,
        product: Product,
        quantity: int,
        size: Optional[str] = None,
        color: Optional[str] = None,
        grams: Optional[float] = None,
        unit_price: Optional[float] = None,
    ) -> LineItem:
        """Validate and append one product.

        ``unit_price`` is an explicit price typed by staff (purchase cost);
        otherwise the price is resolved from the catalog, the stored size
        override and the size surcharge table.
        """
        qty = int(quantity)
        if qty <= 0:
            raise ValidationError(f"Quantity for product {product.id} must be >= 1.")
        if not product.active:
            raise ValidationError(f"Product {product.id} is inactive.")
        if any(line.product_id == product.id for line in self._lines):
            raise ValidationError(f"Product {product.id} is already in the cart.")

        flags = classify_product(product)
        size_key = normalize_size(size) or None
        color = (color or "").strip() or None

        if size_key and not flags.allows_size:
            raise ValidationError(f"Product {product.id} is not sold by size.")
        if color and not flags.allows_color:
            raise ValidationError(f"Product {product.id} is not sold by color.")
        if self.require_size and flags.allows_size and not size_key:
            raise ValidationError(f"Select a size for product {product.id}.")
        if self.require_color and flags.allows_color and not color:
            raise ValidationError(f"Select a color for product {product.id}.")

        if grams is not None:
            grams = float(grams)
            if not math.isfinite(grams) or grams < 0:
                raise ValidationError(f"Grams for product {product.id} must be >= 0.")
            if grams > 0 and not flags.is_bulk:
                raise ValidationError(f"Product {product.id} is not sold by weight.")

        self._check_stock(product.id, qty)

        if unit_price is not None:
            price = float(unit_price)
            if not math.isfinite(price) or price < 0:
                raise ValidationError(f"Unit price for product {product.id} must be >= 0.")
            base, pct, overridden = price, 0.0, False
        else:
            override = self.pricing.fetch_size_price(product.id, size_key) if size_key else None
            resolution = VariantPriceResolver(self.pricing.config).resolve(product, size_key, override)
            price = resolution.price
            base, pct, overridden = resolution.base_reference, resolution.increment_percent, resolution.overridden

        line = LineItem(
            product_id=product.id,
            quantity=qty,
            unit_price=price,
            name=product.name,
            size=size_key,
            color=color,
            grams=grams if flags.is_bulk else None,
            is_bulk=flags.is_bulk,
            gram_factor=flags.gram_factor,
            base_price=base,
            increment_percent=pct,
            price_overridden=overridden,
        )
        self._lines.append(line)
        return line

    def increment(self, product_id: int) -> LineItem:
        i = self._index(product_id)
        line = self._lines[i]
        self._check_stock(line.product_id, line.quantity + 1)
        self._lines[i] = dataclasses.replace(line, quantity=line.quantity + 1)
        return self._lines[i]

    def decrement(self, product_id: int) -> Optional[LineItem]:
        """Going below 1 removes the line."""
        i = self._index(product_id)
        line = self._lines[i]
        if line.quantity <= 1:
            del self._lines[i]
            return None
        self._lines[i] = dataclasses.replace(line, quantity=line.quantity - 1)
        return self._lines[i]

    def remove(self, product_id: int) -> None:
        del self._lines[self._index(product_id)]

    def clear(self) -> None:
        self._lines.clear()

    def line_subtotal(self, product_id: int) -> float:
        return line_subtotal(self._lines[self._index(product_id)])

    def totals(self) -> Totals:
        return compute_totals(self._lines, self.document_kind)
