import pytest
import requests

from conftest import FakeResponse, FakeSession

from psm.api.client import BackendClient, order_payload
from psm.api.normalize import normalize_line, normalize_order, normalize_product
from psm.config import ApiSettings
from psm.domain.errors import ConflictError, NotFoundError, RemoteError, RemoteUnavailableError
from psm.domain.models import LineItem, MeasurementUnit, Order, OrderKind, OrderStatus
from psm.services.totals_service import compute_totals


def _client(*responses, token=None):
    session = FakeSession(*responses)
    settings = ApiSettings(base_url="http://backend.test", token=token, timeout=3)
    return BackendClient(settings, session=session), session


def _venta(order_id=None):
    return Order(
        id=order_id,
        kind=OrderKind.VENTA,
        status=OrderStatus.COMPLETADA,
        date="2026-10-19",
        counterparty_id=5,
        lines=(
            LineItem(product_id=7, quantity=2, unit_price=22000, size="M"),
            LineItem(product_id=3, quantity=1, unit_price=15000, grams=250, is_bulk=True, gram_factor=1000),
        ),
    )


def test_products_are_normalized_from_spanish_fields():
    client, session = _client(
        FakeResponse(
            200,
            [
                {
                    "idProducto": 3,
                    "nombreProducto": "Concentrado Adulto",
                    "precio": "15000",
                    "Stock": 12,
                    "porcentajeGanancia": "25",
                    "medida": {"abreviatura": "KG"},
                    "categoria": {"nombre": "Concentrado"},
                    "Activo": True,
                },
                {"id": 7, "name": "Collar", "basePrice": 20000, "stock": 4, "measurementUnit": "unit", "active": False},
            ],
        ),
        token="abc",
    )

    products = client.list_products()

    assert products[0].id == 3
    assert products[0].base_price == 15000
    assert products[0].unit is MeasurementUnit.KILOGRAM
    assert products[0].gram_factor == 1000
    assert products[0].gain_percent == 25
    assert products[0].category == "Concentrado"
    assert products[1].active is False
    req = session.requests[0]
    assert req["url"] == "http://backend.test/api/products"
    assert req["headers"]["Authorization"] == "Bearer abc"
    assert req["timeout"] == 3


def test_create_sale_sends_single_payload_with_catalog_bulk_price():
    order = _venta()
    totals = compute_totals(order.lines, "sale")
    client, session = _client(FakeResponse(201, {"id": 42, "estado": "Completada", "clienteId": 5}))

    created = client.create_order(order, totals)

    assert created.id == 42
    assert created.status is OrderStatus.COMPLETADA
    assert created.lines == order.lines
    sent = session.requests[0]
    assert sent["method"] == "POST"
    assert sent["url"].endswith("/api/sales")
    lines = sent["json"]["lines"]
    assert lines[0] == {"productId": 7, "quantity": 2, "unitPrice": 22000, "subtotal": 44000, "size": "M"}
    assert lines[1]["unitPrice"] == 15000
    assert lines[1]["subtotal"] == pytest.approx(3750)
    assert lines[1]["grams"] == 250
    assert lines[1]["gramFactor"] == 1000
    assert sent["json"]["total"] == pytest.approx(totals.total)


def test_payload_totals_match_line_subtotals():
    order = _venta()
    payload = order_payload(order, compute_totals(order.lines, "sale"))

    assert sum(l["subtotal"] for l in payload["lines"]) == pytest.approx(payload["subtotal"])


@pytest.mark.parametrize(
    "status,error",
    [(404, NotFoundError), (409, ConflictError), (500, RemoteUnavailableError), (503, RemoteUnavailableError), (400, RemoteError)],
)
def test_status_codes_map_to_error_taxonomy(status, error):
    client, _session = _client(FakeResponse(status, text="boom"))

    with pytest.raises(error):
        client.void_order(OrderKind.VENTA, 42)


def test_transport_failure_is_retryable_and_not_retried():
    client, session = _client(requests.ConnectionError("down"))

    with pytest.raises(RemoteUnavailableError, match="unreachable"):
        client.create_order(_venta(), compute_totals(_venta().lines, "sale"))

    assert len(session.requests) == 1


def test_void_paths_per_kind():
    client, session = _client(FakeResponse(200, {"id": 8, "estado": "Anulada"}), FakeResponse(204))

    voided = client.void_order(OrderKind.COMPRA, 8)
    empty = client.void_order(OrderKind.VENTA, 42)

    assert voided.status is OrderStatus.ANULADA
    assert empty is None
    assert session.requests[0]["url"].endswith("/api/purchases/8/void")
    assert session.requests[1]["url"].endswith("/api/sales/42/void")
    with pytest.raises(ValueError):
        client.void_order(OrderKind.PEDIDO, 1)


def test_confirm_order_returns_venta():
    client, session = _client(
        FakeResponse(200, {"Id": 50, "Estado": "Completada", "DetallesVenta": [{"ProductoId": 7, "Cantidad": 2, "PrecioUnitario": 22000}]})
    )

    venta = client.confirm_order(12)

    assert venta.kind is OrderKind.VENTA
    assert venta.id == 50
    assert venta.lines[0].product_id == 7
    assert session.requests[0]["url"].endswith("/api/orders/12/confirm")


def test_size_price_endpoints():
    client, session = _client(FakeResponse(200, {"price": 27000}), FakeResponse(200, {}), FakeResponse(204))

    assert client.get_size_price(7, "L") == 27000
    assert client.get_size_price(7, "X L") is None
    client.save_size_price(7, "L", 28000)

    assert session.requests[1]["url"].endswith("/api/products/7/variants/size/X%20L")
    assert session.requests[2]["json"] == {"size": "L", "price": 28000.0}


def test_reactivation_uses_status_endpoint():
    client, session = _client(FakeResponse(204))

    client.set_sale_status(42, OrderStatus.COMPLETADA)

    assert session.requests[0]["method"] == "PUT"
    assert session.requests[0]["json"] == {"status": "Completada"}


def test_normalize_handles_casings_and_defaults():
    product = normalize_product({"Id": 1, "Nombre": "Cama", "Precio": 9990})
    pedido = normalize_order({"id": 3, "Estado": "Pendiente", "detallesPedido": []}, OrderKind.PEDIDO)
    compra = normalize_order({"id": 4, "estado": "Completada"}, OrderKind.COMPRA)

    assert product.active is True
    assert product.gain_percent is None
    assert product.unit is MeasurementUnit.EACH
    assert pedido.status is OrderStatus.PENDIENTE
    assert compra.status is OrderStatus.ACTIVA


def test_bulk_compra_read_back_keeps_its_total():
    compra = Order(
        id=None,
        kind=OrderKind.COMPRA,
        status=OrderStatus.ACTIVA,
        date="2026-10-19",
        counterparty_id=9,
        lines=(LineItem(product_id=3, quantity=1, unit_price=15000, grams=750, is_bulk=True, gram_factor=1000),),
    )
    totals = compute_totals(compra.lines, "purchase")
    sent = order_payload(compra, totals)
    client, _session = _client(FakeResponse(201, {"id": 77, "estado": "Activa", "lines": sent["lines"]}))

    created = client.create_order(compra, totals)

    assert created.lines[0].gram_factor == 1000
    assert created.lines[0].unit_price == 15000
    assert compute_totals(created.lines, "purchase").total == pytest.approx(11250)
    assert sent["total"] == pytest.approx(11250)


def test_normalize_line_reads_spanish_bulk_fields():
    line = normalize_line(
        {"ProductoId": 3, "Cantidad": 1, "PrecioUnitario": "15000.50", "gramos": 500, "factorGramo": 1000}
    )

    assert line.unit_price == 15000.5
    assert line.bulk_applies is True
    assert compute_totals([line], "purchase").subtotal == pytest.approx(7500.25)


@pytest.mark.parametrize("raw,expected", [("15000.50", 15000.5), (15000.5, 15000.5), ("n/a", 0.0), (None, 0.0)])
def test_backend_amounts_are_plain_decimals(raw, expected):
    assert normalize_product({"id": 1, "precio": raw}).base_price == expected
