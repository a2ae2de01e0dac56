from __future__ import annotations

from typing import Iterable

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from retail_pos.config import DEFAULT_LOW_STOCK_THRESHOLD
from retail_pos.domain.models import (
    CreditNote,
    FinancialSummary,
    Invoice,
    Product,
    PurchaseInvoice,
    StockAdjustment,
    payment_label,
    payment_status,
    total_paid,
)
from retail_pos.domain.state import AppState


def summarize_finances(
    invoices: Iterable[Invoice],
    purchase_invoices: Iterable[PurchaseInvoice],
    credit_notes: Iterable[CreditNote],
    stock_adjustments: Iterable[StockAdjustment],
) -> FinancialSummary:
    """Read-side reduction over the ledgers; never mutates.

    Unit costs for returned lines and write-offs come from the wholesale
    price frozen on historical invoice lines, not from the live catalog.
    """
    invoices = sorted(invoices, key=lambda inv: inv.date, reverse=True)
    purchase_invoices = list(purchase_invoices)
    credit_notes = list(credit_notes)
    by_id = {inv.id: inv for inv in invoices}

    gross_revenue = sum(inv.total for inv in invoices)
    total_refunds = sum(cn.total_refund for cn in credit_notes)
    net_revenue = gross_revenue - total_refunds

    wholesale_cost = sum(inv.wholesale_total for inv in invoices)

    returned_cost = 0.0
    for cn in credit_notes:
        original = by_id.get(cn.original_invoice_id)
        if original is None:
            continue
        for returned in cn.items:
            line = original.line_for(returned.product_id)
            if line is not None:
                returned_cost += line.wholesale_price * returned.quantity

    # only removals cost money; valued at the newest sale of that product
    adjustment_cost = 0.0
    for adj in stock_adjustments:
        if adj.quantity >= 0:
            continue
        line = next((inv.line_for(adj.product_id) for inv in invoices if inv.line_for(adj.product_id)), None)
        if line is not None:
            adjustment_cost += line.wholesale_price * abs(adj.quantity)

    adjusted_cogs = (wholesale_cost - returned_cost) + adjustment_cost
    gross_profit = net_revenue - adjusted_cogs
    profit_margin = (gross_profit / net_revenue * 100) if net_revenue > 0 else 0.0

    paid_invoices = [inv for inv in invoices if payment_status(inv.payments, inv.total) == "PAID"]
    open_invoices = [inv for inv in invoices if total_paid(inv.payments) < inv.total]
    paid_purchases = [p for p in purchase_invoices if payment_status(p.payments, p.total) == "PAID"]
    open_purchases = [p for p in purchase_invoices if total_paid(p.payments) < p.total]

    return FinancialSummary(
        gross_revenue=gross_revenue,
        total_refunds=total_refunds,
        net_revenue=net_revenue,
        wholesale_cost=wholesale_cost,
        returned_cost=returned_cost,
        adjustment_cost=adjustment_cost,
        adjusted_cogs=adjusted_cogs,
        gross_profit=gross_profit,
        profit_margin=profit_margin,
        total_items_sold=sum(item.quantity for inv in invoices for item in inv.items),
        paid_invoices_count=len(paid_invoices),
        unpaid_invoices_count=len(invoices) - len(paid_invoices),
        receivables=sum(inv.total - total_paid(inv.payments) for inv in open_invoices),
        total_purchases=sum(p.total for p in purchase_invoices),
        paid_purchases_count=len(paid_purchases),
        unpaid_purchases_count=len(purchase_invoices) - len(paid_purchases),
        payables=sum(p.total - total_paid(p.payments) for p in open_purchases),
    )


class ReportingService:
    def __init__(self, state: AppState, low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD):
        self.state = state
        self.low_stock_threshold = int(low_stock_threshold)

    def financial_summary(self) -> FinancialSummary:
        return summarize_finances(
            self.state.invoices,
            self.state.purchase_invoices,
            self.state.credit_notes,
            self.state.stock_adjustments,
        )

    def low_stock_products(self) -> list[Product]:
        return sorted(
            (p for p in self.state.products if p.count <= self.low_stock_threshold),
            key=lambda p: p.count,
        )

    def sold_items_log(self) -> list[dict]:
        invoices = {inv.id: inv for inv in self.state.invoices}
        rows = []
        for s in sorted(self.state.sold_items, key=lambda s: s.date, reverse=True):
            inv = invoices.get(s.invoice_id)
            rows.append({
                "date": s.date,
                "design": s.design,
                "retail_id": s.retail_id,
                "quantity": s.quantity,
                "unit_price": s.sold_price,
                "total": s.quantity * s.sold_price,
                "invoice_id": s.invoice_id,
                "payment_status": payment_label(inv.payments, inv.total) if inv else "N/A",
            })
        return rows

    def export_report_excel(self, path: str) -> None:
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def pct(cell):
            cell.number_format = "0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
            ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        summary = self.financial_summary()

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Summary"
        ws["A1"].font = Font(bold=True, size=14)

        rows = [
            ("Gross revenue", summary.gross_revenue, "money"),
            ("Refunds", summary.total_refunds, "money"),
            ("Net revenue", summary.net_revenue, "money"),
            ("Cost of goods sold", summary.adjusted_cogs, "money"),
            ("Gross profit", summary.gross_profit, "money"),
            ("Profit margin %", summary.profit_margin, "pct"),
            ("Items sold", summary.total_items_sold, "int"),
            ("Receivables", summary.receivables, "money"),
            ("Purchases", summary.total_purchases, "money"),
            ("Owed to suppliers", summary.payables, "money"),
        ]

        start_row = 3
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
            elif kind == "pct":
                pct(ws[f"B{r}"])

        set_widths(ws, {"A": 24, "B": 18})

        # -------- 2) Sold Items --------
        ws2 = wb.create_sheet("Sold Items")
        ws2.append(["Date", "Design", "Retail ID", "Qty", "Unit Price", "Total", "Invoice", "Payment Status"])
        bold_row(ws2, 1)

        out_row = 2
        for row in self.sold_items_log():
            ws2.append([
                row["date"].strftime("%Y-%m-%d %H:%M:%S"), row["design"], row["retail_id"],
                int(row["quantity"]), float(row["unit_price"]), float(row["total"]),
                row["invoice_id"], row["payment_status"],
            ])
            money(ws2[f"E{out_row}"])
            money(ws2[f"F{out_row}"])
            out_row += 1

        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 20, "B": 32, "C": 14, "D": 6, "E": 14, "F": 14, "G": 30, "H": 16})
        if ws2.max_row >= 2:
            add_table(ws2, "SoldItems", 1, 1, ws2.max_row, 8)

        # -------- 3) Purchases --------
        ws3 = wb.create_sheet("Purchases")
        ws3.append(["Purchase ID", "Date", "Supplier", "Product ID", "Design", "Qty", "Unit Cost", "Line Total"])
        bold_row(ws3, 1)

        out_row = 2
        for p in sorted(self.state.purchase_invoices, key=lambda p: p.date, reverse=True):
            for it in p.items:
                ws3.append([
                    p.id, p.date.strftime("%Y-%m-%d %H:%M:%S"), p.supplier,
                    int(it.product_id), it.design,
                    int(it.quantity), float(it.purchase_price), float(it.purchase_price) * int(it.quantity),
                ])
                money(ws3[f"G{out_row}"])
                money(ws3[f"H{out_row}"])
                out_row += 1

        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 30, "B": 20, "C": 22, "D": 10, "E": 32, "F": 6, "G": 14, "H": 14})
        if ws3.max_row >= 2:
            add_table(ws3, "PurchasesDetail", 1, 1, ws3.max_row, 8)

        wb.save(path)
