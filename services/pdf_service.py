# services/pdf_service.py
"""
Invoice document renderer.

Lays out a single A4 page: company header, divider, TAX INVOICE block,
Bill To, a one-row item table, VAT note with the total, and a footer.
Rendering is pure: the PDF creation date comes from the record, so the same
record always produces the same bytes.
"""
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from config import Settings
from exceptions import DocumentGenerationError
from schemas.invoice import InvoiceRecord, RECORD_DATE_FORMAT

Color = Tuple[int, int, int]

COLOR_TEXT: Color = (17, 17, 17)
COLOR_MUTED: Color = (68, 68, 68)
COLOR_FOOTER: Color = (119, 119, 119)
COLOR_ACCENT: Color = (47, 118, 255)
COLOR_RULE: Color = (224, 231, 255)

FONT = "Helvetica"
MARGIN = 50
ROW_H = 18

# (offset from left margin, width, align) for Description, SKU, Qty, Unit, Total
COLUMNS = (
     (0, 190, "L"),
     (195, 95, "L"),
     (295, 45, "R"),
     (345, 70, "R"),
     (420, 75, "R"),
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def format_money(amount: Decimal, prefix: str = "R") -> str:
     """Render a currency amount with two decimal places, e.g. 'R 1499.00'."""
     return f"{prefix} {Decimal(amount).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)}"


def _latin1(text) -> str:
     # Core fonts only cover Latin-1.
     return str(text or "").encode("latin-1", "replace").decode("latin-1")


def _creation_date(record: InvoiceRecord) -> datetime:
     try:
          return datetime.strptime(record.date, RECORD_DATE_FORMAT).replace(tzinfo=timezone.utc)
     except ValueError:
          return _EPOCH


class InvoiceRenderer:
     """Renders InvoiceRecord objects to PDF bytes using the company template."""

     def __init__(self, settings: Settings):
          self.settings = settings

     def render(self, record: InvoiceRecord) -> bytes:
          """
          Render the invoice document.

          Raises:
               DocumentGenerationError: If the PDF library fails for any reason
          """
          try:
               return self._render(record)
          except Exception as e:
               raise DocumentGenerationError(f"Could not render {record.invoice_no}: {e}") from e

     def _render(self, record: InvoiceRecord) -> bytes:
          s = self.settings
          pdf = FPDF(orientation="P", unit="pt", format="A4")
          pdf.creation_date = _creation_date(record)
          pdf.set_title(_latin1(f"{s.company_name} Invoice {record.invoice_no}"))
          pdf.set_author(_latin1(s.company_name))
          pdf.set_margins(MARGIN, MARGIN, MARGIN)
          pdf.set_auto_page_break(True, margin=MARGIN)
          pdf.add_page()
          content_w = pdf.w - 2 * MARGIN

          # Header
          self._line(pdf, s.company_name, 20, COLOR_TEXT, h=24)
          pdf.ln(4)
          for text in (s.company_addr, f"Tel: {s.company_tel}", f"Email: {s.company_email}"):
               self._line(pdf, text, 10, COLOR_MUTED)

          pdf.ln(12)
          pdf.set_fill_color(*COLOR_ACCENT)
          pdf.rect(MARGIN, pdf.get_y(), content_w, 1, style="F")
          pdf.ln(12)

          # Invoice meta
          self._line(pdf, "TAX INVOICE", 16, COLOR_TEXT, h=20)
          pdf.ln(4)
          for text in (
               f"Invoice No: {record.invoice_no}",
               f"Date: {record.date}",
               f"PayFast ID: {record.pf_payment_id or ''}",
               f"Order ID: {record.m_payment_id or ''}",
          ):
               self._line(pdf, text, 10, COLOR_MUTED)

          # Bill To
          pdf.ln(10)
          self._line(pdf, "Bill To", 12, COLOR_TEXT, h=16)
          for text in (record.customer_name, record.customer_email, record.customer_phone):
               self._line(pdf, text, 10, COLOR_MUTED)

          # Items table
          pdf.ln(14)
          start_y = pdf.get_y()
          self._row(pdf, start_y, ("Description", "SKU", "Qty", "Unit", "Total"), COLOR_ACCENT)
          pdf.set_fill_color(*COLOR_RULE)
          pdf.rect(MARGIN, start_y + 14, content_w, 1, style="F")

          price = format_money(record.amount, s.currency_prefix)
          item_y = start_y + ROW_H
          self._row(pdf, item_y, (record.description, record.sku, "1", price, price), COLOR_TEXT)

          # Totals
          totals_y = item_y + ROW_H * 2
          unit_x, unit_w, _ = COLUMNS[3]
          total_x, total_w, _ = COLUMNS[4]
          pdf.set_xy(MARGIN, totals_y)
          pdf.set_font(FONT, size=10)
          pdf.set_text_color(*COLOR_MUTED)
          pdf.cell(unit_x - 10, ROW_H, _latin1(s.company_vat_note))
          pdf.set_font(FONT, size=12)
          pdf.set_text_color(*COLOR_TEXT)
          pdf.set_xy(MARGIN + unit_x, totals_y)
          pdf.cell(unit_w, ROW_H, "Total Due:", align="R")
          pdf.set_xy(MARGIN + total_x, totals_y)
          pdf.cell(total_w, ROW_H, _latin1(price), align="R")

          # Footer
          pdf.set_xy(MARGIN, totals_y + ROW_H * 4)
          pdf.set_font(FONT, size=9)
          pdf.set_text_color(*COLOR_FOOTER)
          pdf.cell(content_w, 12, "Thank you for your purchase!", align="C")

          return bytes(pdf.output())

     @staticmethod
     def _line(pdf: FPDF, text: str, size: int, color: Color, h: float = 13) -> None:
          pdf.set_font(FONT, size=size)
          pdf.set_text_color(*color)
          pdf.cell(0, h, _latin1(text), new_x=XPos.LMARGIN, new_y=YPos.NEXT)

     @staticmethod
     def _row(pdf: FPDF, y: float, cells: Sequence[str], color: Color) -> None:
          pdf.set_font(FONT, size=10)
          pdf.set_text_color(*color)
          for (offset, width, align), text in zip(COLUMNS, cells):
               pdf.set_xy(MARGIN + offset, y)
               pdf.cell(width, 14, _latin1(text), align=align)
