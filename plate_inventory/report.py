# plate_inventory/report.py

import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional, Sequence

import requests
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .config import REPORT_GRID_COLUMNS, REPORT_GRID_ROWS, REPORT_IMAGE_TIMEOUT
from .imaging import compress_for_report

logger = logging.getLogger(__name__)

GREEN = (0, 128 / 255, 0)
RED = (1, 0, 0)
BLACK = (0, 0, 0)

REPORT_TITLE = "License Plate Inventory Report"


@dataclass
class ReportSummary:
    total: int
    matched: int
    unmatched: int
    warehouse: int = 0


@dataclass
class ReportDocument:
    content: bytes
    page_count: int
    summary: ReportSummary


def summarize(records: Sequence, warehouse_count: int = 0) -> ReportSummary:
    matched = sum(1 for r in records if r.is_in_warehouse)
    return ReportSummary(
        total=len(records),
        matched=matched,
        unmatched=len(records) - matched,
        warehouse=warehouse_count,
    )


def report_filename(day: Optional[datetime] = None) -> str:
    return f"inventory-report-{(day or datetime.now()).strftime('%Y-%m-%d')}.pdf"


def estimate_pdf_size(plate_count: int) -> str:
    """Rough size estimate: ~60KB per plate plus 100KB base."""
    estimated_kb = round(plate_count * 60 + 100)
    if estimated_kb < 1000:
        return f"~{estimated_kb} KB"
    return f"~{estimated_kb / 1024:.1f} MB"


def fetch_image(url: str) -> bytes:
    response = requests.get(url, timeout=REPORT_IMAGE_TIMEOUT)
    response.raise_for_status()
    return response.content


class NumberedCanvas(canvas.Canvas):
    """Holds every finished page until save() so each can be stamped 'Page i of N'."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []
        self.page_count = 0

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_page_number(page_count)
            super().showPage()
        super().save()
        self.page_count = page_count

    def _draw_page_number(self, page_count: int):
        width, height = self._pagesize
        self.setFont("Helvetica", 8)
        self.setFillColorRGB(*BLACK)
        self.drawString(width - 25 * mm, 10 * mm, f"Page {self._pageNumber} of {page_count}")


class ReportBuilder:
    """
    Lays out the inventory report:

    1. summary page with total / matched / unmatched counts
    2. plate list, one plate per line, wrapping into further columns and pages
    3. image grid pages, `columns` x `rows` cells per page

    The list and grid are sorted by plate text and skipped when there are
    no records. A record whose image cannot be loaded gets a text
    placeholder in its cell instead of failing the report.
    """

    margin = 10 * mm
    list_line_height = 6 * mm
    list_columns = 3

    def __init__(
        self,
        image_loader: Callable[[str], bytes] = fetch_image,
        columns: int = REPORT_GRID_COLUMNS,
        rows: int = REPORT_GRID_ROWS,
        pagesize=A4,
    ):
        self.image_loader = image_loader
        self.columns = columns
        self.rows = rows
        self.pagesize = pagesize
        self.page_width, self.page_height = pagesize

    def build(self, records: Sequence, warehouse_count: int = 0) -> ReportDocument:
        summary = summarize(records, warehouse_count)
        buffer = io.BytesIO()
        pdf = NumberedCanvas(buffer, pagesize=self.pagesize)
        pdf.setTitle(REPORT_TITLE)

        self._draw_summary(pdf, summary)
        pdf.showPage()

        ordered = sorted(records, key=lambda r: r.plate)
        if ordered:
            self._draw_plate_list(pdf, ordered)
            self._draw_image_grid(pdf, ordered)

        pdf.save()
        logger.info(f"Report built: {summary.total} plates on {pdf.page_count} pages")
        return ReportDocument(content=buffer.getvalue(), page_count=pdf.page_count, summary=summary)

    def _y(self, from_top: float) -> float:
        return self.page_height - from_top

    def _draw_summary(self, pdf, summary: ReportSummary):
        center = self.page_width / 2
        pdf.setFont("Helvetica", 20)
        pdf.drawCentredString(center, self._y(30 * mm), REPORT_TITLE)
        pdf.setFont("Helvetica", 12)
        pdf.drawCentredString(center, self._y(45 * mm), f"Generated: {datetime.now().strftime('%Y-%m-%d')}")

        pdf.setFont("Helvetica-Bold", 14)
        pdf.drawString(20 * mm, self._y(70 * mm), "Summary:")
        pdf.setFont("Helvetica", 12)
        lines = [
            f"Total Scanned: {summary.total}",
            f"Found in Warehouse: {summary.matched}",
            f"Not in Warehouse: {summary.unmatched}",
            f"Warehouse Inventory: {summary.warehouse} plates",
        ]
        for i, line in enumerate(lines):
            pdf.drawString(20 * mm, self._y((85 + i * 10) * mm), line)

    def _draw_plate_list(self, pdf, records: Sequence):
        top = 30 * mm
        bottom = self.page_height - 20 * mm
        column_width = (self.page_width - 2 * 15 * mm) / self.list_columns

        def start_page():
            pdf.setFont("Helvetica-Bold", 14)
            pdf.drawString(15 * mm, self._y(20 * mm), "Scanned Plates")
            pdf.setFont("Helvetica", 10)

        start_page()
        column, offset = 0, top
        for record in records:
            if offset > bottom:
                column, offset = column + 1, top
                if column >= self.list_columns:
                    pdf.showPage()
                    start_page()
                    column = 0
            status = "in warehouse" if record.is_in_warehouse else "not found"
            pdf.drawString(15 * mm + column * column_width, self._y(offset), f"{record.plate} ({status})")
            offset += self.list_line_height
        pdf.showPage()

    def _draw_image_grid(self, pdf, records: Sequence):
        cell_width = (self.page_width - self.margin * 2) / self.columns
        cell_height = (self.page_height - self.margin * 2) / self.rows
        per_page = self.columns * self.rows

        for index, record in enumerate(records):
            if index and index % per_page == 0:
                pdf.showPage()
            position = index % per_page
            row, col = divmod(position, self.columns)
            x = self.margin + col * cell_width
            top = self.margin + row * cell_height
            self._draw_cell(pdf, record, x, top, cell_width, cell_height)
        pdf.showPage()

    def _draw_cell(self, pdf, record, x: float, top: float, cell_width: float, cell_height: float):
        try:
            if not record.image_url:
                raise ValueError("no image stored")
            thumbnail = compress_for_report(self.image_loader(record.image_url))
        except Exception as e:
            logger.warning(f"Error adding image for plate {record.plate} to report: {e}")
            pdf.setFont("Helvetica", 8)
            pdf.setFillColorRGB(*BLACK)
            pdf.drawString(x + 3 * mm, self._y(top + cell_height / 2), f"{record.plate} - Image error")
            return

        pdf.setFont("Helvetica-Bold", 8)
        if record.is_in_warehouse:
            pdf.setFillColorRGB(*GREEN)
            label = f"IN  {record.plate}"
        else:
            pdf.setFillColorRGB(*RED)
            label = f"OUT {record.plate}"
        pdf.drawString(x + 3 * mm, self._y(top + 5 * mm), label)
        pdf.setFillColorRGB(*BLACK)

        box_width = cell_width - 6 * mm
        box_height = cell_height - 15 * mm
        scale = min(box_width / thumbnail.width, box_height / thumbnail.height)
        width, height = thumbnail.width * scale, thumbnail.height * scale
        left = x + 3 * mm + (box_width - width) / 2
        box_top = top + 7 * mm
        image_top = box_top + (box_height - height) / 2
        pdf.drawImage(ImageReader(thumbnail), left, self._y(image_top + height), width, height)

        pdf.setFont("Helvetica", 6)
        if record.created_at:
            pdf.drawString(x + 3 * mm, self._y(top + cell_height - 3 * mm), record.created_at.strftime("%Y-%m-%d"))
