"""Generate dashboard report PDFs from transaction statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from io import BytesIO
from datetime import date

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen.canvas import Canvas
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle


_REVENUE_COLOR = "#2E7D32"
_EXPENSE_COLOR = "#C62828"


@dataclass(slots=True)
class BreakdownRow:
    """Aggregated amount and count for one category or status."""

    name: str
    amount: Decimal
    count: int


@dataclass(slots=True)
class MonthlyRow:
    """Revenue and expense totals for one calendar month."""

    label: str
    revenue: Decimal = Decimal("0")
    expenses: Decimal = Decimal("0")


@dataclass(slots=True)
class DashboardReportData:
    """Input payload for dashboard report rendering."""

    filters_label: str
    total_revenue: Decimal
    total_expenses: Decimal
    net_profit: Decimal
    transaction_count: int
    categories: list[BreakdownRow] = field(default_factory=list)
    statuses: list[BreakdownRow] = field(default_factory=list)
    months: list[MonthlyRow] = field(default_factory=list)


def _format_amount(value: Decimal) -> str:
    return f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):,.2f}"


def _autopct_threshold(pct: float) -> str:
    return f"{pct:.1f}%" if pct >= 3 else ""


def _figure_to_png(fig) -> bytes:
    image_buffer = BytesIO()
    fig.savefig(image_buffer, format="png", bbox_inches="tight")
    plt.close(fig)
    image_buffer.seek(0)
    return image_buffer.read()


def _build_category_chart(categories: list[BreakdownRow]) -> bytes:
    labels = [row.name for row in categories]
    values = [abs(float(row.amount)) for row in categories]
    palette = [_REVENUE_COLOR if row.name == "Revenue" else _EXPENSE_COLOR for row in categories]

    fig, ax = plt.subplots(figsize=(4.2, 3.4), dpi=140)
    ax.pie(
        values,
        labels=labels,
        colors=palette,
        autopct=_autopct_threshold,
        startangle=90,
        wedgeprops={"width": 0.45, "edgecolor": "white"},
        pctdistance=0.78,
    )
    ax.set_title("Category breakdown")
    ax.axis("equal")
    return _figure_to_png(fig)


def _build_monthly_chart(months: list[MonthlyRow]) -> bytes:
    labels = [row.label for row in months]
    positions = list(range(len(months)))
    width = 0.4

    fig, ax = plt.subplots(figsize=(6.6, 3.2), dpi=140)
    ax.bar([p - width / 2 for p in positions], [float(row.revenue) for row in months], width, label="Revenue", color=_REVENUE_COLOR)
    ax.bar([p + width / 2 for p in positions], [float(row.expenses) for row in months], width, label="Expense", color=_EXPENSE_COLOR)
    ax.set_xticks(positions)
    ax.set_xticklabels(labels, rotation=45, ha="right", fontsize=7)
    ax.set_title("Monthly trends")
    ax.legend(fontsize=8, frameon=False)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    return _figure_to_png(fig)


class _FooterCanvas(Canvas):
    def __init__(self, *args, generated_on: str, **kwargs):
        super().__init__(*args, **kwargs)
        self._generated_on = generated_on
        self._saved_page_states: list[dict] = []

    def showPage(self) -> None:  # noqa: N802 (ReportLab API)
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self) -> None:
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(page_count=page_count)
            super().showPage()
        super().save()

    def _draw_footer(self, *, page_count: int) -> None:
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.HexColor("#8A8F98"))
        self.drawString(20 * mm, 10 * mm, f"Generated on {self._generated_on}")
        self.drawRightString(190 * mm, 10 * mm, f"Page {self._pageNumber}/{page_count}")


def _build_kpi_cards(data: DashboardReportData) -> Table:
    styles = getSampleStyleSheet()
    card_style = ParagraphStyle(
        name="KpiCard",
        parent=styles["BodyText"],
        fontSize=10,
        leading=14,
        textColor=colors.HexColor("#1F2937"),
    )
    cells = [
        [
            Paragraph("<b>Total revenue</b><br/>" + _format_amount(data.total_revenue), card_style),
            Paragraph("<b>Total expenses</b><br/>" + _format_amount(data.total_expenses), card_style),
            Paragraph("<b>Net profit</b><br/>" + _format_amount(data.net_profit), card_style),
            Paragraph("<b>Transactions</b><br/>" + str(data.transaction_count), card_style),
        ]
    ]
    table = Table(cells, colWidths=[44 * mm, 44 * mm, 44 * mm, 44 * mm])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#F4F6F8")),
                ("BOX", (0, 0), (-1, -1), 0.6, colors.HexColor("#DDE2E8")),
                ("INNERGRID", (0, 0), (-1, -1), 0.4, colors.HexColor("#DDE2E8")),
                ("LEFTPADDING", (0, 0), (-1, -1), 8),
                ("RIGHTPADDING", (0, 0), (-1, -1), 8),
                ("TOPPADDING", (0, 0), (-1, -1), 8),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
            ]
        )
    )
    return table


def _build_breakdown_table(title: str, rows: list[BreakdownRow]) -> Table:
    table_data = [[title, "Amount", "Count"]]
    for row in rows:
        table_data.append([row.name, _format_amount(row.amount), str(row.count)])

    table = Table(table_data, colWidths=[80 * mm, 50 * mm, 30 * mm], repeatRows=1)
    table_style: list[tuple] = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#EEF1F4")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#D7DCE2")),
        ("ALIGN", (1, 1), (-1, -1), "RIGHT"),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    for row_index in range(1, len(table_data)):
        if row_index % 2 == 0:
            table_style.append(("BACKGROUND", (0, row_index), (-1, row_index), colors.HexColor("#FAFBFC")))
    table.setStyle(TableStyle(table_style))
    return table


def generate_dashboard_report_pdf(data: DashboardReportData) -> bytes:
    """Render a one-page dashboard report: KPIs, charts and breakdown tables."""

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=16 * mm,
        leftMargin=16 * mm,
        topMargin=16 * mm,
        bottomMargin=14 * mm,
    )
    styles = getSampleStyleSheet()
    section_title_style = ParagraphStyle(name="SectionTitle", parent=styles["Heading2"], spaceAfter=4, fontSize=12)
    subtitle_style = ParagraphStyle(name="Subtitle", parent=styles["BodyText"], fontSize=9, textColor=colors.HexColor("#6B7280"))

    story = [
        Paragraph("Transactions dashboard", styles["Title"]),
        Spacer(1, 1 * mm),
        Paragraph(f"Filters: {data.filters_label}", styles["BodyText"]),
        Paragraph(f"Generated on {date.today().isoformat()}", subtitle_style),
        Spacer(1, 5 * mm),
        _build_kpi_cards(data),
        Spacer(1, 6 * mm),
    ]

    if data.transaction_count == 0:
        story.append(Paragraph("No transactions match these filters.", styles["BodyText"]))
    else:
        story.append(Paragraph("Breakdown", section_title_style))
        if any(row.amount for row in data.categories):
            story.append(Image(BytesIO(_build_category_chart(data.categories)), width=84 * mm, height=68 * mm))
            story.append(Spacer(1, 3 * mm))
        story.append(_build_breakdown_table("Category", data.categories))
        story.append(Spacer(1, 3 * mm))
        story.append(_build_breakdown_table("Status", data.statuses))
        story.append(Spacer(1, 6 * mm))

        story.append(Paragraph("Monthly trends", section_title_style))
        story.append(Image(BytesIO(_build_monthly_chart(data.months)), width=166 * mm, height=80 * mm))

    generated_on = date.today().isoformat()
    doc.build(
        story,
        canvasmaker=lambda *args, **kwargs: _FooterCanvas(*args, generated_on=generated_on, **kwargs),
    )
    buffer.seek(0)
    return buffer.read()
