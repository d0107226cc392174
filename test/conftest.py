import dataclasses
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def make_product(pid: int, price: float, stock: int = 10, unit: str = "unit", category: str = "Accesorios", gain=None):
    from psm.domain.models import MeasurementUnit, Product

    return Product(
        id=pid,
        name=f"Producto {pid}",
        base_price=float(price),
        unit=MeasurementUnit.from_abbreviation(unit),
        category=category,
        gain_percent=gain,
        stock=stock,
    )


class FakeBackend:
    """In-memory stand-in for the store backend: owns stock and order state."""

    def __init__(self, products=(), next_id: int = 42):
        self.products = {p.id: p for p in products}
        self.orders = {}
        self.next_id = next_id
        self.calls = []
        self.size_prices = {}
        self.size_price_down = False

    def _move_stock(self, order, sign: int):
        for line in order.lines:
            p = self.products[line.product_id]
            self.products[p.id] = dataclasses.replace(p, stock=p.stock + sign * int(line.quantity))

    def list_products(self):
        self.calls.append(("list_products",))
        return list(self.products.values())

    def get_product(self, product_id):
        from psm.domain.errors import NotFoundError

        if product_id not in self.products:
            raise NotFoundError(f"Product {product_id}: not found.")
        return self.products[product_id]

    def create_order(self, order, totals):
        from psm.domain.errors import NotFoundError
        from psm.domain.models import OrderKind

        self.calls.append(("create_order", order.kind, totals))
        for line in order.lines:
            if line.product_id not in self.products:
                raise NotFoundError(f"Product {line.product_id}: not found.")
        created = dataclasses.replace(order, id=self.next_id)
        self.next_id += 1
        if order.kind is OrderKind.VENTA:
            self._move_stock(order, -1)
        elif order.kind is OrderKind.COMPRA:
            self._move_stock(order, +1)
        self.orders[(order.kind, created.id)] = created
        return created

    def confirm_order(self, order_id):
        from psm.domain.errors import ConflictError, NotFoundError
        from psm.domain.models import OrderKind, OrderStatus

        self.calls.append(("confirm_order", order_id))
        pedido = self.orders.get((OrderKind.PEDIDO, order_id))
        if pedido is None:
            raise NotFoundError(f"Pedido {order_id}: not found.")
        if pedido.status is not OrderStatus.PENDIENTE:
            raise ConflictError(f"Pedido {order_id} already confirmed.")
        self.orders[(OrderKind.PEDIDO, order_id)] = dataclasses.replace(pedido, status=OrderStatus.COMPLETADA)
        venta = dataclasses.replace(pedido, id=self.next_id, kind=OrderKind.VENTA, status=OrderStatus.COMPLETADA)
        self.next_id += 1
        self._move_stock(venta, -1)
        self.orders[(OrderKind.VENTA, venta.id)] = venta
        return venta

    def void_order(self, kind, order_id):
        from psm.domain.errors import ConflictError, NotFoundError
        from psm.domain.models import OrderKind, OrderStatus

        self.calls.append(("void_order", kind, order_id))
        order = self.orders.get((kind, order_id))
        if order is None:
            raise NotFoundError(f"{kind.value} {order_id}: not found.")
        if order.status is OrderStatus.ANULADA:
            raise ConflictError(f"{kind.value} {order_id} ya anulada.")
        self._move_stock(order, +1 if kind is OrderKind.VENTA else -1)
        voided = dataclasses.replace(order, status=OrderStatus.ANULADA)
        self.orders[(kind, order_id)] = voided
        return voided

    def set_sale_status(self, order_id, status):
        from psm.domain.models import OrderKind

        self.calls.append(("set_sale_status", order_id, status))
        key = (OrderKind.VENTA, order_id)
        self.orders[key] = dataclasses.replace(self.orders[key], status=status)

    def get_size_price(self, product_id, size):
        from psm.domain.errors import RemoteUnavailableError

        if self.size_price_down:
            raise RemoteUnavailableError("backend unreachable")
        return self.size_prices.get((product_id, size))

    def save_size_price(self, product_id, size, price):
        from psm.domain.errors import RemoteUnavailableError

        if self.size_price_down:
            raise RemoteUnavailableError("backend unreachable")
        self.size_prices[(product_id, size)] = price


class FakeResponse:
    def __init__(self, status_code: int = 200, payload=None, text: str = ""):
        import json

        self.status_code = status_code
        self._payload = payload
        self.text = text or ("" if payload is None else json.dumps(payload))
        self.content = self.text.encode("utf-8")

    def json(self):
        import json

        return json.loads(self.text)


class FakeSession:
    """Records requests and replays queued responses (or raises queued exceptions)."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.requests.append({"method": method, "url": url, "json": json, "headers": headers, "timeout": timeout})
        nxt = self.responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt
