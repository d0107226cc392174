from __future__ import annotations

from typing import Optional, Protocol

from psm.domain.models import Order, OrderKind, OrderStatus, Product, Totals


class Backend(Protocol):
    def list_products(self) -> list[Product]: ...
    def get_product(self, product_id: int) -> Product: ...
    def create_order(self, order: Order, totals: Totals) -> Order: ...
    def confirm_order(self, order_id: int) -> Order: ...
    def void_order(self, kind: OrderKind, order_id: int) -> Order: ...
    def set_sale_status(self, order_id: int, status: OrderStatus) -> None: ...
    def get_size_price(self, product_id: int, size: str) -> Optional[float]: ...
    def save_size_price(self, product_id: int, size: str, price: float) -> None: ...


class SettingsStore(Protocol):
    def get_size_increments(self) -> dict[str, float]: ...
    def set_size_increments(self, increments: dict[str, float]) -> None: ...
    def get_gain_percents(self) -> dict[int, str]: ...
    def set_gain_percent(self, product_id: int, percent: float) -> None: ...
    def get_size_prices(self) -> dict[tuple[int, str], float]: ...
    def set_size_price(self, product_id: int, size: str, price: float) -> None: ...
