from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import requests

from psm.api.client import BackendClient
from psm.config import ApiSettings
from psm.domain.models import DocumentKind
from psm.repositories.settings_repo import SqliteSettingsRepository
from psm.services.cart_service import CartService
from psm.services.invoice_service import InvoiceService
from psm.services.order_service import OrderService
from psm.services.pricing_config import PricingConfigService
from psm.services.stock_service import StockReconciler, StockView


@dataclass(frozen=True)
class AppContainer:
    settings: SqliteSettingsRepository
    backend: BackendClient
    pricing: PricingConfigService
    stock: StockReconciler
    orders: OrderService
    invoices: InvoiceService

    def new_cart(self, document_kind: DocumentKind = DocumentKind.SALE, require_size: bool = False) -> CartService:
        return CartService(self.stock, self.pricing, document_kind=document_kind, require_size=require_size)


def build_container(
    settings_db_path: Path | str,
    api_settings: ApiSettings | None = None,
    session: requests.Session | None = None,
) -> AppContainer:
    settings = SqliteSettingsRepository(settings_db_path)
    settings.init_db()

    backend = BackendClient(api_settings or ApiSettings.from_env(), session=session)
    pricing = PricingConfigService(settings, backend)
    pricing.load()
    stock = StockReconciler(backend, StockView())
    orders = OrderService(stock)
    invoices = InvoiceService(pricing)

    return AppContainer(
        settings=settings,
        backend=backend,
        pricing=pricing,
        stock=stock,
        orders=orders,
        invoices=invoices,
    )
