from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from autotrack.domain.aggregation import DashboardSummary, DayPoint, build_summary, trailing_series
from autotrack.domain.models import Identity
from autotrack.domain.permissions import EXPORT_REPORT, VIEW_ALL_TRANSACTIONS, VIEW_CASH_POSITION, VIEW_PROFIT
from autotrack.services.auth_service import AuthService
from autotrack.services.entity_cache import EntityCache


@dataclass(frozen=True)
class Dashboard:
    viewer: Optional[Identity]
    summary: DashboardSummary
    series: tuple[DayPoint, ...]


class ReportingService:
    def __init__(self, cache: EntityCache, auth: AuthService):
        self.cache = cache
        self.auth = auth

    def dashboard(self, viewer: Optional[Identity], now: Optional[datetime] = None) -> Dashboard:
        now = now or datetime.now()
        snap = self.cache.snapshot()
        summary = build_summary(viewer, snap.transactions, snap.products, snap.cash_flows, now)
        series = trailing_series(viewer, snap.transactions, now)
        return Dashboard(viewer=viewer, summary=summary, series=tuple(series))

    def export_dashboard_excel(self, path: Path | str, viewer: Optional[Identity], now: Optional[datetime] = None) -> Path:
        self.auth.require_action(viewer, EXPORT_REPORT)
        board = self.dashboard(viewer, now)
        s = board.summary
        sees_all = self.auth.can(viewer, VIEW_ALL_TRANSACTIONS)
        sees_profit = self.auth.can(viewer, VIEW_PROFIT)
        sees_cash = self.auth.can(viewer, VIEW_CASH_POSITION)
        wb = Workbook()

        def money(cell):
            cell.number_format = "#,##0.00"

        def bold_row(ws, r):
            for c in ws[r]:
                c.font = Font(bold=True)

        def set_widths(ws, widths: dict[str, int]):
            for col, w in widths.items():
                ws.column_dimensions[col].width = w

        def add_table(ws, name: str, start_row: int, end_row: int, end_col: int):
            ref = f"A{start_row}:{get_column_letter(end_col)}{end_row}"
            tab = Table(displayName=name, ref=ref)
            tab.tableStyleInfo = TableStyleInfo(
                name="TableStyleMedium9",
                showRowStripes=True,
                showColumnStripes=False,
            )
            ws.add_table(tab)

        # -------- 1) Summary --------
        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Dashboard"
        ws["A1"].font = Font(bold=True, size=14)
        ws["A3"] = "Viewer"
        ws["B3"] = viewer.name if viewer is not None else "-"
        ws["A4"] = "Window"
        ws["B4"] = s.time_label

        rows = [
            ("Total Revenue" if sees_all else "My Total Sales", s.total_revenue, "money"),
            ("Product Sales", s.product_revenue, "money"),
            ("Service Income", s.service_revenue, "money"),
        ]
        if sees_cash:
            rows.append(("Cash on Hand", s.cash_on_hand, "money"))
        if sees_profit:
            rows.append(("Total Profit", s.total_profit, "money"))
        if sees_cash:
            rows += [
                ("Total Expenses", s.total_expenses, "money"),
                ("Withdrawals", s.total_withdrawals, "money"),
            ]
        rows.append(("Low Stock Alerts", s.low_stock_count, "int"))

        start_row = 6
        for i, (label, val, kind) in enumerate(rows):
            r = start_row + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if kind == "money":
                money(ws[f"B{r}"])
        set_widths(ws, {"A": 24, "B": 20})

        # -------- 2) Last 7 days --------
        ws2 = wb.create_sheet("Last 7 Days")
        ws2.append(["Date", "Day", "Revenue", "Profit"] if sees_profit else ["Date", "Day", "Revenue"])
        bold_row(ws2, 1)
        for p in board.series:
            values = [p.day.isoformat(), p.name, float(p.sales)]
            if sees_profit:
                values.append(float(p.profit))
            ws2.append(values)
            money(ws2.cell(row=ws2.max_row, column=3))
            if sees_profit:
                money(ws2.cell(row=ws2.max_row, column=4))
        set_widths(ws2, {"A": 14, "B": 8, "C": 14, "D": 14})
        add_table(ws2, "LastSevenDays", 1, ws2.max_row, ws2.max_column)

        # -------- 3) Low stock --------
        ws3 = wb.create_sheet("Low Stock")
        ws3.append(["SKU", "Product Name", "Stock"])
        bold_row(ws3, 1)
        for item in s.low_stock:
            ws3.append([item.sku, item.name, int(item.stock)])
        ws3.freeze_panes = "A2"
        set_widths(ws3, {"A": 16, "B": 34, "C": 8})
        if ws3.max_row >= 2:
            add_table(ws3, "LowStock", 1, ws3.max_row, 3)

        target = Path(path)
        wb.save(target)
        return target
