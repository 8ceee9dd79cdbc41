# services/variant_export.py
"""
Product list export: flat variant rows and the product catalog PDF.

Variant rows come from the same traversal as the on-screen breakdown
(variant_aggregator.walk_leaves), so itemized rows always add up to the
quantity shown in the product table.
"""

import logging
import re
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Mapping, Optional, Tuple
from xml.sax.saxutils import escape

from pydantic import BaseModel
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas as pdf_canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from config import get_settings
from services.variant_aggregator import BreakdownRow, effective_quantity, get_variant_breakdown
from services.variant_tree import coerce_quantity

logger = logging.getLogger(__name__)

PLACEHOLDER = "—"
VARIANT_COLUMNS = ["Variant Path", "Variant SKU", "Qty", "Min Qty", "Value"]

HEADER_BLUE = colors.Color(41 / 255, 65 / 255, 94 / 255)
VARIANT_HEADER = colors.Color(100 / 255, 120 / 255, 150 / 255)


class VariantExportRow(BaseModel):
    path: str
    sku: Optional[str] = None
    quantity: int = 0
    minimum_quantity: Optional[int] = None
    value: Optional[float] = None          # unit value × quantity, when the product has a value


def flatten_variants_for_pdf(variants: Any) -> List[BreakdownRow]:
    """Export rows for one product's tree; identical to get_variant_breakdown."""
    return get_variant_breakdown(variants)


def _unit_value(raw: Any) -> Optional[float]:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if value > 0 else None


def _line_value(unit_value: Optional[float], quantity: int) -> Optional[float]:
    if not unit_value:
        return None
    try:
        return round(unit_value * quantity, 2)
    except OverflowError:
        return None


def build_export_rows(variants: Any, unit_value: Any = None) -> List[VariantExportRow]:
    unit_value = _unit_value(unit_value)
    rows = []
    for row in flatten_variants_for_pdf(variants):
        rows.append(
            VariantExportRow(
                path=row.path,
                sku=row.sku,
                quantity=row.quantity,
                minimum_quantity=row.minimum_quantity,
                value=_line_value(unit_value, row.quantity),
            )
        )
    return rows


def format_variant_row(row: VariantExportRow) -> List[str]:
    """Cells in VARIANT_COLUMNS order."""
    return [
        row.path,
        row.sku or PLACEHOLDER,
        f"{row.quantity:,}",
        str(row.minimum_quantity) if row.minimum_quantity else PLACEHOLDER,
        f"${row.value:,.2f}" if row.value is not None else PLACEHOLDER,
    ]


def get_product_quantity(product: Mapping[str, Any], inventory_data: Mapping[str, int]) -> int:
    """Variant total when positive, otherwise on-hand inventory for the product id."""
    return effective_quantity(product.get("variants"), inventory_data.get(str(product.get("id"))))


def export_filename(client_name: Optional[str], generated_at: datetime) -> str:
    stamp = generated_at.strftime("%Y%m%d")
    if client_name:
        return f"{re.sub(r'[^a-z0-9]', '_', client_name, flags=re.IGNORECASE)}_products_{stamp}.pdf"
    return f"product_catalog_{stamp}.pdf"


class _NumberedCanvas(pdf_canvas.Canvas):
    """Defers page output so the footer can say `Page i of n`."""

    footer_text = "ClearPath Warehouse"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_pages = []

    def showPage(self):
        self._saved_pages.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_pages)
        for state in self._saved_pages:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int):
        width, _ = self._pagesize
        self.saveState()
        self.setFont("Helvetica", 8)
        self.setFillGray(0.6)
        self.drawRightString(width - 14 * mm, 10 * mm, f"Page {self._pageNumber} of {total}")
        self.drawString(14 * mm, 10 * mm, self.footer_text)
        self.restoreState()


def _styles() -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("CatalogTitle", parent=base["Title"], fontName="Helvetica-Bold",
                                fontSize=18, alignment=0, spaceAfter=4),
        "meta": ParagraphStyle("CatalogMeta", parent=base["Normal"], fontSize=10, leading=13),
        "summary": ParagraphStyle("CatalogSummary", parent=base["Normal"], fontSize=9, leading=12),
        "section": ParagraphStyle("CatalogSection", parent=base["Heading2"], fontName="Helvetica-Bold",
                                  fontSize=14, spaceBefore=8, spaceAfter=6),
        "product": ParagraphStyle("CatalogProduct", parent=base["Normal"], fontName="Helvetica-Bold",
                                  fontSize=10, spaceBefore=6),
        "sku": ParagraphStyle("CatalogSku", parent=base["Normal"], fontSize=8),
        "cell": ParagraphStyle("CatalogCell", parent=base["Normal"], fontSize=7, leading=9),
    }


def _table_style(header_color, font_size: int, right_cols: List[int]) -> TableStyle:
    commands = [
        ("BACKGROUND", (0, 0), (-1, 0), header_color),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), font_size),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f5f7fa")]),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 2),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
    ]
    for col in right_cols:
        commands.append(("ALIGN", (col, 1), (col, -1), "RIGHT"))
    return TableStyle(commands)


def build_product_list_pdf(
    products: List[Mapping[str, Any]],
    inventory_data: Mapping[str, int],
    title: str = "Product Catalog",
    client_name: Optional[str] = None,
    client_code: Optional[str] = None,
    is_admin: bool = False,
    generated_at: Optional[datetime] = None,
) -> Tuple[bytes, str]:
    """
    Render the product catalog PDF.

    products: rows with id, name, sku, variants, is_active, minimum_quantity,
              value and (admin view) companies.name
    inventory_data: product id → on-hand quantity

    Returns (pdf bytes, suggested filename).
    """
    generated_at = generated_at or datetime.now()
    styles = _styles()
    story: list = []

    # Header
    story.append(Paragraph(escape(title), styles["title"]))
    if client_name:
        suffix = f" ({client_code})" if client_code else ""
        story.append(Paragraph(escape(f"Client: {client_name}{suffix}"), styles["meta"]))
    story.append(Paragraph(f"Generated: {generated_at.strftime('%b %d, %Y %H:%M')}", styles["meta"]))
    story.append(Paragraph(f"Total Products: {len(products)}", styles["meta"]))

    quantities = {str(p.get("id")): get_product_quantity(p, inventory_data) for p in products}
    total_qty = sum(quantities.values())
    total_value = sum(
        _line_value(_unit_value(p.get("value")), quantities[str(p.get("id"))]) or 0 for p in products
    )
    active = sum(1 for p in products if p.get("is_active"))
    story.append(Spacer(1, 2 * mm))
    story.append(Paragraph(
        f"Active: {active} | Inactive: {len(products) - active} | "
        f"Total Qty: {total_qty:,} | Total Value: ${total_value:,.2f}",
        styles["summary"],
    ))
    story.append(Spacer(1, 4 * mm))

    # Product table
    columns = ["#", "Product", "SKU"] + (["Client"] if is_admin else []) + ["Qty", "Value", "Min Qty", "Status"]
    body = []
    for i, product in enumerate(products, start=1):
        row = [str(i), Paragraph(escape(str(product.get("name") or "")), styles["cell"]), product.get("sku") or "N/A"]
        if is_admin:
            row.append(((product.get("companies") or {}).get("name")) or "Unknown")
        unit_value = _unit_value(product.get("value"))
        minimum = coerce_quantity(product.get("minimum_quantity"))
        row += [
            f"{quantities[str(product.get('id'))]:,}",
            f"${unit_value:,.2f}" if unit_value else PLACEHOLDER,
            str(minimum) if minimum else PLACEHOLDER,
            "Active" if product.get("is_active") else "Inactive",
        ]
        body.append(row)

    qty_col = columns.index("Qty")
    product_table = Table([columns] + body, repeatRows=1)
    product_table.setStyle(_table_style(HEADER_BLUE, 8, [qty_col, qty_col + 1, qty_col + 2]))
    story.append(product_table)

    # Variant details
    with_variants = [p for p in products if isinstance(p.get("variants"), list) and p.get("variants")]
    if with_variants:
        story.append(Paragraph("Variant Details", styles["section"]))

    for product in with_variants:
        rows = build_export_rows(product.get("variants"), product.get("value"))
        if not rows:
            continue
        label = str(product.get("name") or "")
        if is_admin:
            label = f"{label} ({(product.get('companies') or {}).get('name') or 'Unknown'})"
        story.append(Paragraph(escape(label), styles["product"]))
        if product.get("sku"):
            story.append(Paragraph(escape(f"SKU: {product.get('sku')}"), styles["sku"]))

        cells = [[Paragraph(escape(r[0]), styles["cell"])] + r[1:] for r in map(format_variant_row, rows)]
        variant_table = Table([VARIANT_COLUMNS] + cells, repeatRows=1, hAlign="LEFT")
        variant_table.setStyle(_table_style(VARIANT_HEADER, 7, [2, 3, 4]))
        story.append(variant_table)
        story.append(Spacer(1, 3 * mm))

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=14 * mm,
        bottomMargin=18 * mm,
        title=title,
    )

    footer = get_settings().PDF_FOOTER_TEXT
    canvas_class = type("CatalogCanvas", (_NumberedCanvas,), {"footer_text": footer})
    doc.build(story, canvasmaker=canvas_class)

    pdf_content = buffer.getvalue()
    buffer.close()

    filename = export_filename(client_name, generated_at)
    logger.info(f"[Export] product list PDF {filename}: {len(products)} products, {len(pdf_content)} bytes")
    return pdf_content, filename
