"""Backend-boundary schema mapping.

The backend answers with English, Spanish and PascalCase field names
depending on the endpoint. Everything past this module sees only the
canonical domain models.
"""
from __future__ import annotations

from typing import Any, Iterable, Optional

from psm.domain.money import to_finite_float
from psm.domain.models import LineItem, MeasurementUnit, Order, OrderKind, OrderStatus, Product

_MISSING = object()


def pick(data: Any, *paths: str, default: Any = None) -> Any:
    """First non-null value among dotted ``paths`` (``"medida.abreviatura"``)."""
    for path in paths:
        node: Any = data
        for part in path.split("."):
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                node = _MISSING
                break
        if node is not _MISSING and node is not None:
            return node
    return default


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _amount(value: Any) -> float:
    # backend amounts are JSON numbers or plain decimal strings, never CLP display text
    num = to_finite_float(value)
    return num if num is not None else 0.0


def _as_bool(value: Any, default: bool = True) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in ("false", "0", "no", "inactivo", "")
    return bool(value)


def normalize_product(data: dict) -> Product:
    category = pick(data, "category.name", "categoria.nombre", "Categoria.Nombre")
    if category is None:
        raw = pick(data, "category", "categoria", "Categoria")
        category = raw if isinstance(raw, str) else ""

    return Product(
        id=_as_int(pick(data, "id", "idProducto", "Id", "IdProducto", "productId")),
        name=str(pick(data, "name", "nombreProducto", "nombre", "Nombre", default="")).strip(),
        base_price=_amount(pick(data, "basePrice", "precio", "Precio", "price", default=0)),
        unit=MeasurementUnit.from_abbreviation(
            pick(
                data,
                "measurementUnit",
                "medida.abreviatura",
                "Medida.Abreviatura",
                "unidadMedida",
                "unit",
            )
        ),
        category=str(category or "").strip(),
        gain_percent=to_finite_float(pick(data, "gainPercent", "porcentajeGanancia", "gananciaPct")),
        stock=_as_int(pick(data, "stock", "Stock", default=0)),
        active=_as_bool(pick(data, "active", "activo", "Activo")),
    )


def normalize_products(rows: Iterable[dict]) -> list[Product]:
    return [normalize_product(r) for r in rows if isinstance(r, dict)]


def parse_status(kind: OrderKind, raw: Any) -> OrderStatus:
    text = str(raw or "").strip().lower()
    if text in ("anulada", "anulado", "voided", "cancelada"):
        return OrderStatus.ANULADA
    if kind is OrderKind.PEDIDO:
        return OrderStatus.COMPLETADA if text in ("completada", "confirmado", "confirmada", "pagado") else OrderStatus.PENDIENTE
    if kind is OrderKind.COMPRA:
        return OrderStatus.ACTIVA
    return OrderStatus.COMPLETADA


def normalize_line(data: dict) -> LineItem:
    grams = to_finite_float(pick(data, "grams", "gramos", "Gramos"))
    return LineItem(
        product_id=_as_int(pick(data, "productId", "productoId", "ProductoId", "producto.id", "producto.idProducto")),
        quantity=_as_int(pick(data, "quantity", "cantidad", "Cantidad", default=0)),
        unit_price=_amount(pick(data, "unitPrice", "precioUnitario", "PrecioUnitario", default=0)),
        name=str(pick(data, "name", "producto.nombre", "producto.nombreProducto", "nombre", default="")),
        size=pick(data, "size", "talla", "Talla", "producto.talla"),
        color=pick(data, "color", "Color"),
        grams=grams,
        is_bulk=grams is not None and grams > 0,
        gram_factor=_as_int(pick(data, "gramFactor", "factorGramo", default=1), default=1) or 1,
    )


def normalize_order(data: dict, kind: OrderKind) -> Order:
    lines_raw = pick(
        data,
        "lines",
        "detallesVenta",
        "DetallesVenta",
        "detallesCompra",
        "DetallesCompra",
        "detallesPedido",
        "DetallesPedido",
        "detalles",
        default=[],
    )
    order_id: Optional[Any] = pick(data, "id", "Id", "idVenta", "idCompra", "idPedido", "ventaId")
    counterparty = pick(
        data,
        "counterpartyId",
        "clienteId",
        "ClienteId",
        "proveedorId",
        "ProveedorId",
        "cliente.id",
        "proveedor.id",
    )
    return Order(
        id=_as_int(order_id) if order_id is not None else None,
        kind=kind,
        status=parse_status(kind, pick(data, "status", "estado", "Estado")),
        date=str(pick(data, "date", "fecha", "fechaVenta", "fechaCompra", "fechaPedido", "fechaCreacion", default="")),
        counterparty_id=_as_int(counterparty) if counterparty is not None else None,
        lines=tuple(normalize_line(d) for d in lines_raw if isinstance(d, dict)),
        notes=pick(data, "notes", "observaciones", "Observaciones"),
    )
