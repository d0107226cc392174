from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


KILOGRAM_GRAM_FACTOR = 1000


class MeasurementUnit(str, Enum):
    EACH = "unit"
    KILOGRAM = "kg"
    GRAM = "g"
    MILLILITER = "ml"

    @classmethod
    def from_abbreviation(cls, value: object) -> "MeasurementUnit":
        text = str(value or "").strip().lower()
        if text in ("kg", "kilo", "kilos", "kilogramo", "kilogramos", "kilogram"):
            return cls.KILOGRAM
        if text in ("g", "gr", "gramo", "gramos", "gram"):
            return cls.GRAM
        if text in ("ml", "mililitro", "mililitros", "milliliter"):
            return cls.MILLILITER
        return cls.EACH

    @property
    def is_weight_or_volume(self) -> bool:
        return self is not MeasurementUnit.EACH


class OrderKind(str, Enum):
    PEDIDO = "pedido"
    VENTA = "venta"
    COMPRA = "compra"


class DocumentKind(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"


class OrderStatus(str, Enum):
    PENDIENTE = "Pendiente"
    COMPLETADA = "Completada"
    ACTIVA = "Activa"
    ANULADA = "Anulada"


class VoidOutcome(str, Enum):
    VOIDED = "voided"
    ALREADY_VOIDED = "already_voided"


@dataclass(frozen=True)
class Product:
    id: int
    name: str
    base_price: float
    unit: MeasurementUnit = MeasurementUnit.EACH
    category: str = ""
    gain_percent: Optional[float] = None
    stock: int = 0
    active: bool = True

    @property
    def gram_factor(self) -> int:
        return KILOGRAM_GRAM_FACTOR if self.unit is MeasurementUnit.KILOGRAM else 1


@dataclass(frozen=True)
class PriceResolution:
    price: float
    base_reference: float
    increment_percent: float
    overridden: bool = False


@dataclass(frozen=True)
class LineItem:
    product_id: int
    quantity: int
    unit_price: float
    name: str = ""
    size: Optional[str] = None
    color: Optional[str] = None
    grams: Optional[float] = None
    is_bulk: bool = False
    gram_factor: int = 1
    base_price: Optional[float] = None
    increment_percent: float = 0.0
    price_overridden: bool = False

    @property
    def bulk_applies(self) -> bool:
        return bool(self.is_bulk and self.grams is not None and self.grams > 0)

    @property
    def effective_quantity(self) -> float:
        """Quantity used for pricing: grams / gram_factor for bulk lines, else units."""
        if self.bulk_applies:
            return float(self.grams) / (self.gram_factor or 1)
        return float(self.quantity)


@dataclass(frozen=True)
class Totals:
    subtotal: float
    tax: float
    discount: float
    total: float


@dataclass(frozen=True)
class Order:
    id: Optional[int]
    kind: OrderKind
    status: OrderStatus
    date: str
    counterparty_id: Optional[int]
    lines: tuple[LineItem, ...] = ()
    notes: Optional[str] = None

    @property
    def document_kind(self) -> DocumentKind:
        return DocumentKind.PURCHASE if self.kind is OrderKind.COMPRA else DocumentKind.SALE

    @property
    def product_ids(self) -> list[int]:
        seen: list[int] = []
        for line in self.lines:
            if line.product_id not in seen:
                seen.append(line.product_id)
        return seen


@dataclass(frozen=True)
class StockCheck:
    product_id: int
    requested: float
    available: Optional[int]

    @property
    def ok(self) -> bool:
        return self.available is None or self.requested <= self.available


@dataclass(frozen=True)
class VoidResult:
    outcome: VoidOutcome
    order: Order

    @property
    def already_voided(self) -> bool:
        return self.outcome is VoidOutcome.ALREADY_VOIDED
