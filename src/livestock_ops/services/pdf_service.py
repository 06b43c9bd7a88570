"""PDF receipts and reports rendered with PyMuPDF."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

import fitz  # pymupdf

from livestock_ops.calculators.currency import DEFAULT_CURRENCY_FORMAT, format_currency

# A4 in points
PAGE_WIDTH = 595
PAGE_HEIGHT = 842
MARGIN = 56
BOTTOM = PAGE_HEIGHT - 60

REGULAR = "helv"
BOLD = "hebo"
ITALIC = "heit"
HEADER_FILL = (0.94, 0.94, 0.94)


@dataclass
class ReceiptItem:
    description: str
    quantity: Decimal | int
    unit_price: Decimal
    total: Decimal


@dataclass
class ReceiptData:
    """Wage payment or sale receipt."""

    title: str
    number: str
    issued_on: date
    from_lines: list[str]
    to_label: str
    to_lines: list[str]
    items: list[ReceiptItem]
    total: Decimal
    notes: str | None = None
    footer: str = "Thank you for your business!"
    currency: Any = DEFAULT_CURRENCY_FORMAT


@dataclass
class ReportSection:
    """``summary`` sections hold (label, value) pairs; ``table`` sections rows."""

    title: str
    section_type: str
    data: list[Any] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)


class _Canvas:
    """Cursor-based writer that adds pages as the cursor runs off the end."""

    def __init__(self):
        self.doc = fitz.open()
        self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
        self.y = float(MARGIN)

    def ensure_space(self, height: float) -> None:
        if self.y + height > BOTTOM:
            self.page = self.doc.new_page(width=PAGE_WIDTH, height=PAGE_HEIGHT)
            self.y = float(MARGIN)

    def text(self, x: float, text: str, size: float = 10, font: str = REGULAR, align="left"):
        width = fitz.get_text_length(text, fontname=font, fontsize=size)
        if align == "right":
            x -= width
        elif align == "center":
            x -= width / 2
        self.page.insert_text((x, self.y), text, fontsize=size, fontname=font)

    def fill_row(self, height: float) -> None:
        rect = fitz.Rect(MARGIN, self.y - height + 3, PAGE_WIDTH - MARGIN, self.y + 4)
        self.page.draw_rect(rect, color=None, fill=HEADER_FILL)

    def rule(self) -> None:
        self.page.draw_line((MARGIN, self.y), (PAGE_WIDTH - MARGIN, self.y))

    def to_bytes(self) -> bytes:
        try:
            return self.doc.tobytes()
        finally:
            self.doc.close()


def generate_receipt_pdf(data: ReceiptData) -> bytes:
    canvas = _Canvas()
    right = PAGE_WIDTH - MARGIN

    def money(value: Decimal) -> str:
        return format_currency(value, data.currency)

    canvas.text(PAGE_WIDTH / 2, data.title.upper(), size=24, font=BOLD, align="center")
    canvas.y += 40
    canvas.text(MARGIN, f"Receipt #: {data.number}")
    canvas.text(right, f"Date: {data.issued_on.isoformat()}", align="right")
    canvas.y += 36

    for label, lines in (("From:", data.from_lines), (data.to_label, data.to_lines)):
        canvas.text(MARGIN, label, size=11, font=BOLD)
        canvas.y += 16
        for line in lines:
            if line:
                canvas.text(MARGIN, line)
                canvas.y += 14
        canvas.y += 20

    canvas.fill_row(16)
    canvas.text(MARGIN + 12, "Description", font=BOLD)
    canvas.text(290, "Qty", font=BOLD)
    canvas.text(360, "Unit Price", font=BOLD)
    canvas.text(right - 12, "Total", font=BOLD, align="right")
    canvas.y += 24

    for item in data.items:
        canvas.ensure_space(20)
        canvas.text(MARGIN + 12, item.description[:40])
        canvas.text(290, str(item.quantity))
        canvas.text(360, money(item.unit_price))
        canvas.text(right - 12, money(item.total), align="right")
        canvas.y += 20

    canvas.y += 8
    canvas.rule()
    canvas.y += 22
    canvas.text(360, "Total:", size=12, font=BOLD)
    canvas.text(right - 12, money(data.total), size=12, font=BOLD, align="right")

    if data.notes:
        canvas.y += 50
        canvas.ensure_space(40)
        canvas.text(MARGIN, "Notes:", font=BOLD)
        canvas.y += 16
        canvas.text(MARGIN, data.notes[:100])

    canvas.y = PAGE_HEIGHT - 40
    canvas.text(PAGE_WIDTH / 2, data.footer, size=8, font=ITALIC, align="center")
    return canvas.to_bytes()


def _cell(row: Any, column: str, index: int) -> str:
    """Value of a dict row by column name (or its snake_case key), or of a
    sequence row by position."""
    if isinstance(row, dict):
        value = row.get(column, row.get(column.lower().replace(" ", "_"), ""))
    else:
        value = row[index] if index < len(row) else ""
    return str(value)[:25]


def generate_report_pdf(
    title: str,
    sections: list[ReportSection],
    period: tuple[date, date] | None = None,
    generated_on: date | None = None,
) -> bytes:
    canvas = _Canvas()
    center = PAGE_WIDTH / 2

    canvas.text(center, title, size=20, font=BOLD, align="center")
    canvas.y += 28
    if period is not None:
        start, end = period
        canvas.text(center, f"Period: {start.isoformat()} to {end.isoformat()}", align="center")
        canvas.y += 14
    canvas.text(
        center,
        f"Generated: {(generated_on or date.today()).isoformat()}",
        size=8,
        align="center",
    )
    canvas.y += 40

    for section in sections:
        canvas.ensure_space(60)
        canvas.text(MARGIN, section.title, size=12, font=BOLD)
        canvas.y += 22

        if section.section_type == "summary":
            for label, value in section.data:
                canvas.ensure_space(16)
                canvas.text(MARGIN + 14, f"{label}:")
                canvas.text(280, str(value))
                canvas.y += 16
        elif section.section_type == "table" and section.columns:
            col_width = (PAGE_WIDTH - 2 * MARGIN) / len(section.columns)
            canvas.fill_row(16)
            for i, column in enumerate(section.columns):
                canvas.text(MARGIN + 14 + i * col_width, column, size=9, font=BOLD)
            canvas.y += 26
            for row in section.data:
                canvas.ensure_space(16)
                for i, column in enumerate(section.columns):
                    canvas.text(MARGIN + 14 + i * col_width, _cell(row, column, i), size=9)
                canvas.y += 16
        canvas.y += 28

    return canvas.to_bytes()
