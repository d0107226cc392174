from __future__ import annotations

import math
from typing import Iterable

from psm.domain.models import DocumentKind, LineItem, Totals
from psm.services.pricing_service import line_subtotal

SALE_TAX_PERCENT = 19.0
PURCHASE_TAX_PERCENT = 0.0


def tax_percent_for(document_kind: DocumentKind | str) -> float:
    kind = DocumentKind(document_kind)
    return SALE_TAX_PERCENT if kind is DocumentKind.SALE else PURCHASE_TAX_PERCENT


def compute_totals(lines: Iterable[LineItem], document_kind: DocumentKind | str) -> Totals:
    """Sales carry 19% IVA, purchases none. Discount stays 0 until a discount engine exists.

    fsum keeps the result independent of line order.
    """
    subtotal = math.fsum(line_subtotal(line) for line in lines)
    tax = subtotal * tax_percent_for(document_kind) / 100.0
    discount = 0.0
    return Totals(subtotal=subtotal, tax=tax, discount=discount, total=subtotal + tax - discount)
