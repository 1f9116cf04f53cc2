"""
PDF Inventory Reports

Three report kinds share one layout: a title and organization name at the
top, one table row per asset, and a footer on every page with the brand,
"Page N of M" and the generation time.

"Page N of M" needs the total page count while drawing page N, so pages
are buffered by a canvas subclass and footers drawn on save.
"""
import enum
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from typing import Iterable, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

from kite_assets.config import get_settings
from kite_assets.models.asset import Asset, AssetStatus

COLUMNS = ("Asset Tag", "Name", "Category", "Location", "Status", "Purchase Date", "Value")
MARGIN = 14 * mm


class ReportKind(str, enum.Enum):
    FULL_INVENTORY = "full-inventory"
    MAINTENANCE = "maintenance"
    RETIRED = "retired"


@dataclass(frozen=True)
class ReportDefinition:
    title: str
    file_stem: str
    status: Optional[AssetStatus]


REPORTS = {
    ReportKind.FULL_INVENTORY: ReportDefinition("Full Inventory Report", "full_inventory_report", None),
    ReportKind.MAINTENANCE: ReportDefinition("Maintenance Report", "maintenance_report", AssetStatus.UNDER_MAINTENANCE),
    ReportKind.RETIRED: ReportDefinition("Retired Assets Report", "retired_assets_report", AssetStatus.RETIRED),
}


def select_assets(kind: ReportKind, assets: Iterable[Asset]) -> List[Asset]:
    """Assets that belong in a report of this kind."""
    status = REPORTS[kind].status
    if status is None:
        return list(assets)
    return [asset for asset in assets if asset.status == status]


def report_filename(kind: ReportKind, generated_at: Optional[datetime] = None) -> str:
    generated_at = generated_at or datetime.now()
    return f"{REPORTS[kind].file_stem}_{generated_at:%Y%m%d}.pdf"


def format_value(value: float) -> str:
    return f"{value:,.2f}"


def asset_row(asset: Asset) -> List[str]:
    return [
        asset.asset_tag,
        asset.name,
        asset.category_name or "",
        asset.location_name or "",
        AssetStatus(asset.status).label,
        asset.purchase_date.strftime("%Y-%m-%d") if asset.purchase_date else "",
        format_value(asset.value),
    ]


def _footer_canvas(generated_at: datetime, brand: str):
    """Canvas class that draws footers once the page count is known."""

    class FooterCanvas(canvas.Canvas):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self._saved_page_states = []

        def showPage(self):
            self._saved_page_states.append(dict(self.__dict__))
            self._startPage()

        def save(self):
            page_count = len(self._saved_page_states)
            for state in self._saved_page_states:
                self.__dict__.update(state)
                self._draw_footer(page_count)
                super().showPage()
            super().save()

        def _draw_footer(self, page_count: int):
            width, _ = self._pagesize
            y = 9 * mm
            self.saveState()
            self.setFont("Helvetica", 8)
            self.setFillColor(colors.grey)
            self.drawString(MARGIN, y, f"Powered by {brand}")
            self.drawCentredString(width / 2, y, f"Page {self._pageNumber} of {page_count}")
            self.drawRightString(width - MARGIN, y, f"Generated on: {generated_at:%Y-%m-%d %H:%M}")
            self.restoreState()

    return FooterCanvas


def render_report(
    kind: ReportKind,
    assets: Iterable[Asset],
    organization_name: str,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    Render a report as PDF bytes.

    assets may be the organization's whole inventory; filtering by kind
    happens here.
    """
    definition = REPORTS[kind]
    generated_at = generated_at or datetime.now()
    rows = [asset_row(asset) for asset in select_assets(kind, assets)]

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=18 * mm,
        title=definition.title,
        author=get_settings().APP_NAME,
    )

    styles = getSampleStyleSheet()
    story = [
        Paragraph(escape(definition.title), styles["Title"]),
        # Paragraph parses inline markup; names are plain text
        Paragraph(escape(organization_name), styles["Heading3"]),
        Spacer(1, 4 * mm),
    ]

    if rows:
        table = Table([list(COLUMNS)] + rows, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2980ba")),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 8),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f5f5f5")]),
            ("ALIGN", (-1, 1), (-1, -1), "RIGHT"),
            ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#d0d0d0")),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        story.append(table)
    else:
        story.append(Paragraph("No assets match this report.", styles["Normal"]))

    doc.build(story, canvasmaker=_footer_canvas(generated_at, get_settings().APP_NAME))
    return buffer.getvalue()
