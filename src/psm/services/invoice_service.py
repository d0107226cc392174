from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from psm.domain.money import format_price_cl
from psm.domain.models import LineItem, Order, Product
from psm.services.margin_service import GainMarginResolver
from psm.services.pricing_config import PricingConfigService
from psm.services.pricing_service import line_subtotal
from psm.services.totals_service import compute_totals, tax_percent_for

HEADERS = [
    "#", "Product", "Color", "Size", "Unit", "Grams",
    "Qty", "Unit Price", "Gain (%)", "Discount", "Subtotal",
]


@dataclass(frozen=True)
class InvoiceRow:
    index: int
    name: str
    color: str
    size: str
    unit: str
    grams: Optional[float]
    quantity: int
    unit_price: float
    unit_price_label: str
    gain_percent: float
    discount: float
    subtotal: float


def unit_price_label(line: LineItem) -> str:
    price = format_price_cl(line.unit_price)
    if line.price_overridden or not line.size:
        return price
    base = line.base_price if line.base_price is not None else line.unit_price
    return f"{price} ({format_price_cl(base)} + {line.increment_percent:.0f}%)"


class InvoiceService:
    def __init__(self, pricing: PricingConfigService):
        self.pricing = pricing

    def invoice_rows(self, order: Order, products: Mapping[int, Product] | Iterable[Product]) -> list[InvoiceRow]:
        catalog = products if isinstance(products, Mapping) else {p.id: p for p in products}
        margins = GainMarginResolver(self.pricing.config)

        rows = []
        for i, line in enumerate(order.lines, start=1):
            product = catalog.get(line.product_id)
            rows.append(
                InvoiceRow(
                    index=i,
                    name=line.name or (product.name if product else f"Product {line.product_id}"),
                    color=line.color or "N/A",
                    size=line.size or "N/A",
                    unit=product.unit.value if product else "",
                    grams=line.grams if line.bulk_applies else None,
                    quantity=int(line.quantity),
                    unit_price=float(line.unit_price),
                    unit_price_label=unit_price_label(line),
                    gain_percent=margins.resolve(product, product_id=line.product_id),
                    discount=0.0,
                    subtotal=line_subtotal(line),
                )
            )
        return rows

    def export_invoice_excel(self, path: str, order: Order, products: Mapping[int, Product] | Iterable[Product]) -> None:
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        rows = self.invoice_rows(order, products)
        totals = compute_totals(order.lines, order.document_kind)
        tax_pct = tax_percent_for(order.document_kind)

        ws = wb.active
        ws.title = "Invoice"
        ws["A1"] = f"{order.kind.value.capitalize()} #{order.id if order.id is not None else '-'}"
        ws["A1"].font = Font(bold=True, size=14)

        ws["A3"] = "Date"
        ws["B3"] = order.date
        ws["A4"] = "Status"
        ws["B4"] = order.status.value.upper()
        ws["A5"] = "Counterparty"
        ws["B5"] = order.counterparty_id if order.counterparty_id is not None else ""

        header_row = 7
        for col, title in enumerate(HEADERS, start=1):
            ws.cell(row=header_row, column=col, value=title)
        bold_row(ws, header_row)

        r = header_row
        for row in rows:
            r += 1
            values = [
                row.index, row.name, row.color, row.size, row.unit,
                row.grams if row.grams is not None else "N/A",
                row.quantity, row.unit_price_label, row.gain_percent / 100.0,
                row.discount, row.subtotal,
            ]
            for col, value in enumerate(values, start=1):
                ws.cell(row=r, column=col, value=value)
            ws.cell(row=r, column=9).number_format = "0.00%"
            money(ws.cell(row=r, column=10))
            money(ws.cell(row=r, column=11))

        if rows:
            ref = f"A{header_row}:{get_column_letter(len(HEADERS))}{r}"
            tab = Table(displayName="InvoiceLines", ref=ref)
            tab.tableStyleInfo = TableStyleInfo(name="TableStyleMedium9", showRowStripes=True, showColumnStripes=False)
            ws.add_table(tab)

        summary = [
            ("Subtotal", totals.subtotal),
            (f"IVA ({tax_pct:.0f}%)", totals.tax),
            ("Discount", totals.discount),
            ("Total", totals.total),
        ]
        r += 2
        for label, value in summary:
            ws.cell(row=r, column=10, value=label).font = Font(bold=True)
            money(ws.cell(row=r, column=11, value=float(value)))
            r += 1

        ws.freeze_panes = f"A{header_row + 1}"
        set_widths(ws, {
            "A": 6, "B": 34, "C": 12, "D": 8, "E": 8, "F": 10,
            "G": 6, "H": 30, "I": 10, "J": 14, "K": 16,
        })
        wb.save(path)
