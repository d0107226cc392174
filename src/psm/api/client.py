from __future__ import annotations

import dataclasses
import logging
from typing import Any, Optional
from urllib.parse import quote

import requests

from psm.api.normalize import normalize_order, normalize_product, normalize_products
from psm.config import ApiSettings
from psm.domain.errors import ConflictError, NotFoundError, RemoteError, RemoteUnavailableError
from psm.domain.models import Order, OrderKind, OrderStatus, Product, Totals
from psm.services.pricing_service import line_subtotal

log = logging.getLogger("psm.api")

PRODUCTS_PATH = "/api/products"
CREATE_PATHS = {
    OrderKind.VENTA: "/api/sales",
    OrderKind.COMPRA: "/api/purchases",
    OrderKind.PEDIDO: "/api/orders",
}
VOID_PATHS = {
    OrderKind.VENTA: "/api/sales/{id}/void",
    OrderKind.COMPRA: "/api/purchases/{id}/void",
}
SALE_STATUS_PATH = "/api/sales/{id}/status"
CONFIRM_ORDER_PATH = "/api/orders/{id}/confirm"
SIZE_PRICE_GET_PATH = "/api/products/{id}/variants/size/{size}"
SIZE_PRICE_SAVE_PATH = "/api/products/{id}/variants/size"


def order_payload(order: Order, totals: Totals) -> dict:
    """One atomic create request; the backend validates totals and moves stock."""
    lines = []
    for line in order.lines:
        # bulk lines keep the catalog price; only subtotal carries the gram-adjusted amount
        item: dict[str, Any] = {
            "productId": line.product_id,
            "quantity": line.quantity,
            "unitPrice": line.unit_price,
            "subtotal": line_subtotal(line),
        }
        if line.size:
            item["size"] = line.size
        if line.color:
            item["color"] = line.color
        if line.bulk_applies:
            item["grams"] = line.grams
            item["gramFactor"] = line.gram_factor
        lines.append(item)

    return {
        "counterpartyId": order.counterparty_id,
        "date": order.date,
        "status": order.status.value,
        "notes": order.notes,
        "subtotal": totals.subtotal,
        "tax": totals.tax,
        "discount": totals.discount,
        "total": totals.total,
        "lines": lines,
    }


class BackendClient:
    """REST gateway to the catalog / stock ledger / order service.

    Every call is a single request: no retries here, a failed commit or
    void is re-submitted by the user.
    """

    def __init__(self, settings: ApiSettings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    def _request(self, method: str, path: str, what: str, payload: Optional[dict] = None) -> Any:
        url = f"{self.settings.base_url}{path}"
        try:
            r = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.settings.timeout,
            )
        except requests.RequestException as e:
            log.warning("backend_unreachable method=%s path=%s error=%s", method, path, e)
            raise RemoteUnavailableError(f"{what} failed: backend unreachable ({e})") from e

        status = int(r.status_code)
        if status >= 400:
            detail = (r.text or "").strip()[:200]
            log.warning("backend_error method=%s path=%s status=%s", method, path, status, extra={"status_code": status})
            if status == 404:
                raise NotFoundError(f"{what}: not found. {detail}".strip())
            if status == 409:
                raise ConflictError(f"{what}: conflict. {detail}".strip())
            if status >= 500:
                raise RemoteUnavailableError(f"{what} failed: server error {status}. {detail}".strip(), status)
            raise RemoteError(f"{what} failed: {status}. {detail}".strip(), status)

        log.info("backend_ok method=%s path=%s status=%s", method, path, status)
        if status == 204 or not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise RemoteError(f"{what} failed: response is not JSON", status) from e

    # ---------------- catalog ----------------
    def list_products(self) -> list[Product]:
        data = self._request("GET", PRODUCTS_PATH, "Load products")
        if isinstance(data, dict):
            data = data.get("items") or data.get("data") or []
        return normalize_products(data or [])

    def get_product(self, product_id: int) -> Product:
        data = self._request("GET", f"{PRODUCTS_PATH}/{int(product_id)}", f"Load product {product_id}")
        if not isinstance(data, dict):
            raise NotFoundError(f"Load product {product_id}: not found.")
        return normalize_product(data)

    # ---------------- orders ----------------
    def create_order(self, order: Order, totals: Totals) -> Order:
        path = CREATE_PATHS[order.kind]
        data = self._request("POST", path, f"Create {order.kind.value}", order_payload(order, totals))
        if not isinstance(data, dict):
            return order
        created = normalize_order(data, order.kind)
        if not created.lines:
            created = dataclasses.replace(created, lines=order.lines)
        return created

    def confirm_order(self, order_id: int) -> Order:
        data = self._request(
            "POST",
            CONFIRM_ORDER_PATH.format(id=int(order_id)),
            f"Confirm pedido {order_id}",
        )
        if not isinstance(data, dict):
            raise RemoteError(f"Confirm pedido {order_id} failed: empty response")
        return normalize_order(data, OrderKind.VENTA)

    def void_order(self, kind: OrderKind, order_id: int) -> Optional[Order]:
        if kind not in VOID_PATHS:
            raise ValueError(f"{kind.value} records cannot be voided")
        data = self._request(
            "POST",
            VOID_PATHS[kind].format(id=int(order_id)),
            f"Void {kind.value} {order_id}",
        )
        return normalize_order(data, kind) if isinstance(data, dict) else None

    def set_sale_status(self, order_id: int, status: OrderStatus) -> None:
        self._request(
            "PUT",
            SALE_STATUS_PATH.format(id=int(order_id)),
            f"Change status of venta {order_id}",
            {"status": status.value},
        )

    # ---------------- size-price overrides ----------------
    def get_size_price(self, product_id: int, size: str) -> Optional[float]:
        path = SIZE_PRICE_GET_PATH.format(id=int(product_id), size=quote(str(size), safe=""))
        data = self._request("GET", path, f"Load size price {product_id}:{size}")
        if isinstance(data, dict):
            price = data.get("price", data.get("precio"))
            if isinstance(price, (int, float)) and not isinstance(price, bool):
                return float(price)
        return None

    def save_size_price(self, product_id: int, size: str, price: float) -> None:
        self._request(
            "POST",
            SIZE_PRICE_SAVE_PATH.format(id=int(product_id)),
            f"Save size price {product_id}:{size}",
            {"size": size, "price": float(price)},
        )
