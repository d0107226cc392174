from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Iterable, Optional

from psm.domain.errors import InvalidTransitionError, ValidationError
from psm.domain.models import (
    DocumentKind,
    LineItem,
    Order,
    OrderKind,
    OrderStatus,
    Totals,
    VoidOutcome,
    VoidResult,
)
from psm.repositories.contracts import Backend
from psm.services.stock_service import StockReconciler
from psm.services.totals_service import compute_totals

log = logging.getLogger("psm.orders")


INITIAL_STATUS: dict[OrderKind, OrderStatus] = {
    OrderKind.PEDIDO: OrderStatus.PENDIENTE,
    OrderKind.VENTA: OrderStatus.COMPLETADA,
    OrderKind.COMPRA: OrderStatus.ACTIVA,
}

# Anulada -> Completada on a venta is an administrative reactivation without stock mutation.
TRANSITIONS: dict[OrderKind, dict[OrderStatus, frozenset[OrderStatus]]] = {
    OrderKind.PEDIDO: {
        OrderStatus.PENDIENTE: frozenset({OrderStatus.COMPLETADA}),
    },
    OrderKind.VENTA: {
        OrderStatus.COMPLETADA: frozenset({OrderStatus.ANULADA}),
        OrderStatus.ANULADA: frozenset({OrderStatus.COMPLETADA}),
    },
    OrderKind.COMPRA: {
        OrderStatus.ACTIVA: frozenset({OrderStatus.ANULADA}),
    },
}


class OrderLifecycle:
    def initial_status(self, kind: OrderKind) -> OrderStatus:
        return INITIAL_STATUS[kind]

    def allowed(self, kind: OrderKind, current: OrderStatus) -> frozenset[OrderStatus]:
        return TRANSITIONS[kind].get(current, frozenset())

    def can_transition(self, order: Order, target: OrderStatus) -> bool:
        return target in self.allowed(order.kind, order.status)

    def ensure_transition(self, order: Order, target: OrderStatus) -> None:
        if not self.can_transition(order, target):
            raise InvalidTransitionError(
                f"{order.kind.value.capitalize()} {order.id}: cannot go from {order.status.value} to {target.value}."
            )


class OrderService:
    """Drives pedido / venta / compra records through their lifecycle."""

    def __init__(self, reconciler: StockReconciler, lifecycle: OrderLifecycle | None = None):
        self.reconciler = reconciler
        self.lifecycle = lifecycle or OrderLifecycle()

    @property
    def backend(self) -> Backend:
        return self.reconciler.backend

    def _require_saved(self, order: Order) -> None:
        if order.id is None:
            raise ValidationError(f"{order.kind.value.capitalize()} has not been saved yet.")

    def totals(self, order: Order) -> Totals:
        return compute_totals(order.lines, order.document_kind)

    def build_order(
        self,
        kind: OrderKind,
        lines: Iterable[LineItem],
        counterparty_id: Optional[int],
        date: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        lines = tuple(lines)
        if not lines:
            raise ValidationError("Order has no lines.")
        if counterparty_id is None:
            who = "Supplier" if kind is OrderKind.COMPRA else "Client"
            raise ValidationError(f"{who} is required.")
        for line in lines:
            if int(line.quantity) <= 0:
                raise ValidationError(f"Quantity for product {line.product_id} must be >= 1.")
            if line.is_bulk and line.grams is not None and line.grams < 0:
                raise ValidationError(f"Grams for product {line.product_id} must be >= 0.")
            if kind is OrderKind.COMPRA:
                if line.unit_price < 0:
                    raise ValidationError(f"Unit cost for product {line.product_id} must be >= 0.")
            elif line.unit_price <= 0:
                raise ValidationError(f"Unit price for product {line.product_id} must be > 0.")

        return Order(
            id=None,
            kind=kind,
            status=self.lifecycle.initial_status(kind),
            date=date or datetime.now().replace(microsecond=0).isoformat(sep=" "),
            counterparty_id=int(counterparty_id),
            lines=lines,
            notes=notes,
        )

    def create(
        self,
        kind: OrderKind,
        lines: Iterable[LineItem],
        counterparty_id: Optional[int],
        date: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Order:
        order = self.build_order(kind, lines, counterparty_id, date=date, notes=notes)
        if order.document_kind is DocumentKind.SALE:
            self.reconciler.require_lines(order.lines)
        return self.reconciler.commit(order, self.totals(order))

    def confirm(self, pedido: Order) -> Order:
        """Pendiente -> Completada. Returns the venta that supersedes the pedido."""
        if pedido.kind is not OrderKind.PEDIDO:
            raise InvalidTransitionError(f"Only pedidos can be confirmed, got {pedido.kind.value} {pedido.id}.")
        self._require_saved(pedido)
        self.lifecycle.ensure_transition(pedido, OrderStatus.COMPLETADA)
        return self.reconciler.commit_confirmation(pedido)

    def void(self, order: Order) -> VoidResult:
        if order.status is OrderStatus.ANULADA:
            log.info(
                "void_refused_already_voided kind=%s id=%s",
                order.kind.value,
                order.id,
                extra={"order_id": order.id, "order_kind": order.kind.value},
            )
            return VoidResult(VoidOutcome.ALREADY_VOIDED, order)
        self.lifecycle.ensure_transition(order, OrderStatus.ANULADA)
        self._require_saved(order)
        return self.reconciler.void(order)

    def reactivate(self, venta: Order) -> Order:
        """Anulada -> Completada for a venta. Status only: stock is not decremented again."""
        if venta.kind is not OrderKind.VENTA:
            raise InvalidTransitionError(f"Only ventas can be reactivated, got {venta.kind.value} {venta.id}.")
        if venta.status is not OrderStatus.ANULADA:
            raise InvalidTransitionError(f"Venta {venta.id} is not voided.")
        self.lifecycle.ensure_transition(venta, OrderStatus.COMPLETADA)
        self._require_saved(venta)
        self.backend.set_sale_status(int(venta.id), OrderStatus.COMPLETADA)
        log.warning(
            "venta_reactivated_without_stock_mutation id=%s",
            venta.id,
            extra={"order_id": venta.id, "order_kind": venta.kind.value},
        )
        return dataclasses.replace(venta, status=OrderStatus.COMPLETADA)
