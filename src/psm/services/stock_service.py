from __future__ import annotations

import dataclasses
import logging
from collections import Counter
from typing import Iterable, Mapping, Optional

from psm.domain.errors import ConflictError, InsufficientStockError, NotFoundError, RemoteError
from psm.domain.models import (
    LineItem,
    Order,
    OrderStatus,
    Product,
    StockCheck,
    Totals,
    VoidOutcome,
    VoidResult,
)
from psm.repositories.contracts import Backend

log = logging.getLogger("psm.orders")


class StockView:
    """Last-known available units per product for the current screen.

    Advisory only. Entries are dropped after every commit/void and refetched;
    they are never decremented locally.
    """

    def __init__(self, levels: Mapping[int, int] | None = None):
        self._levels: dict[int, int] = {int(k): int(v) for k, v in (levels or {}).items()}

    @classmethod
    def from_products(cls, products: Iterable[Product]) -> "StockView":
        view = cls()
        view.update(products)
        return view

    def available(self, product_id: int) -> Optional[int]:
        return self._levels.get(int(product_id))

    def update(self, products: Iterable[Product]) -> None:
        for p in products:
            self._levels[int(p.id)] = int(p.stock)

    def invalidate(self, product_ids: Iterable[int]) -> None:
        for pid in product_ids:
            self._levels.pop(int(pid), None)

    def clear(self) -> None:
        self._levels.clear()

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._levels

    def __len__(self) -> int:
        return len(self._levels)


def validate_availability(product_id: int, requested_quantity: float, stock_view: StockView) -> StockCheck:
    """Pure advisory check. Unknown stock (invalidated, not yet refetched) passes; the backend decides."""
    return StockCheck(
        product_id=int(product_id),
        requested=float(requested_quantity),
        available=stock_view.available(product_id),
    )


class StockReconciler:
    def __init__(self, backend: Backend, stock_view: StockView | None = None):
        self.backend = backend
        self.stock_view = stock_view or StockView()

    # ---------------- advisory validation ----------------
    def validate_availability(self, product_id: int, requested_quantity: float) -> StockCheck:
        return validate_availability(product_id, requested_quantity, self.stock_view)

    def require_availability(self, product_id: int, requested_quantity: float) -> None:
        check = self.validate_availability(product_id, requested_quantity)
        if not check.ok:
            raise InsufficientStockError(check.product_id, check.requested, int(check.available or 0))

    def validate_lines(self, lines: Iterable[LineItem]) -> list[StockCheck]:
        # aggregate by product so repeated lines cannot oversell
        qty_by_product: Counter[int] = Counter()
        for line in lines:
            qty_by_product[int(line.product_id)] += int(line.quantity)
        return [self.validate_availability(pid, qty) for pid, qty in qty_by_product.items()]

    def require_lines(self, lines: Iterable[LineItem]) -> None:
        for check in self.validate_lines(lines):
            if not check.ok:
                raise InsufficientStockError(check.product_id, check.requested, int(check.available or 0))

    # ---------------- catalog refresh ----------------
    def refresh(self) -> list[Product]:
        products = self.backend.list_products()
        self.stock_view.clear()
        self.stock_view.update(products)
        return products

    def _invalidate_and_refresh(self, product_ids: list[int]) -> None:
        self.stock_view.invalidate(product_ids)
        try:
            self.refresh()
        except (RemoteError, NotFoundError) as e:
            # entries stay invalidated; validation defers to the backend until the next refresh
            log.warning("stock_refresh_failed products=%s error=%s", product_ids, e)

    # ---------------- authoritative mutations ----------------
    def commit(self, order: Order, totals: Totals) -> Order:
        """Create the record; the backend moves stock for every line in one request."""
        touched = order.product_ids
        try:
            created = self.backend.create_order(order, totals)
        except NotFoundError:
            self.stock_view.invalidate(touched)
            raise
        log.info(
            "order_committed kind=%s id=%s lines=%s total=%.2f",
            order.kind.value,
            created.id,
            len(order.lines),
            totals.total,
            extra={"order_id": created.id, "order_kind": order.kind.value},
        )
        self._invalidate_and_refresh(touched)
        return created

    def commit_confirmation(self, pedido: Order) -> Order:
        """Confirm a pending pedido; the backend decrements stock and returns the resulting venta."""
        touched = pedido.product_ids
        try:
            venta = self.backend.confirm_order(int(pedido.id))
        except NotFoundError:
            self.stock_view.invalidate(touched)
            raise
        if not venta.lines:
            venta = dataclasses.replace(venta, lines=pedido.lines)
        log.info(
            "pedido_confirmed pedido_id=%s venta_id=%s",
            pedido.id,
            venta.id,
            extra={"order_id": pedido.id, "order_kind": pedido.kind.value},
        )
        self._invalidate_and_refresh(touched or venta.product_ids)
        return venta

    def void(self, order: Order) -> VoidResult:
        """Ask the backend to restore stock. A 409 means it was already voided: informational."""
        touched = order.product_ids
        try:
            updated = self.backend.void_order(order.kind, int(order.id))
        except ConflictError as e:
            log.info(
                "order_already_voided kind=%s id=%s detail=%s",
                order.kind.value,
                order.id,
                e,
                extra={"order_id": order.id, "order_kind": order.kind.value},
            )
            self._invalidate_and_refresh(touched)
            return VoidResult(VoidOutcome.ALREADY_VOIDED, dataclasses.replace(order, status=OrderStatus.ANULADA))
        except NotFoundError:
            self.stock_view.invalidate(touched)
            raise

        voided = dataclasses.replace(updated or order, status=OrderStatus.ANULADA)
        if not voided.lines:
            voided = dataclasses.replace(voided, lines=order.lines)
        log.info(
            "order_voided kind=%s id=%s",
            order.kind.value,
            order.id,
            extra={"order_id": order.id, "order_kind": order.kind.value},
        )
        self._invalidate_and_refresh(touched)
        return VoidResult(VoidOutcome.VOIDED, voided)
