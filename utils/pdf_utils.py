import logging
import os

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain.reports import STATEMENT_HEADERS, AccountStatement

logger = logging.getLogger(__name__)

FONT_CANDIDATES = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "DejaVuSans.ttf",
]


def _register_unicode_font() -> str:
    """Register a TTF font with accented glyphs, falling back to Helvetica."""
    windir = os.environ.get("WINDIR") or os.environ.get("SystemRoot")
    candidates = list(FONT_CANDIDATES)
    if windir:
        candidates.append(os.path.join(windir, "Fonts", "Arial.ttf"))
    for path in candidates:
        if not os.path.exists(path):
            continue
        name = os.path.splitext(os.path.basename(path))[0]
        try:
            pdfmetrics.registerFont(TTFont(name, path))
        except Exception:
            logger.debug("Failed to register font %s at %s", name, path, exc_info=True)
            continue
        logger.debug("Registered font %s from %s", name, path)
        return name
    logger.warning("No suitable TTF font found; falling back to Helvetica")
    return "Helvetica"


def statement_to_pdf(statement: AccountStatement, filepath: str) -> None:
    data = [STATEMENT_HEADERS, *statement.rows()]

    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)

    doc = SimpleDocTemplate(
        filepath,
        pagesize=A4,
        leftMargin=30,
        rightMargin=30,
        topMargin=30,
        bottomMargin=30,
    )
    available_width = A4[0] - 60
    col_widths = [
        available_width * 0.15,
        available_width * 0.17,
        available_width * 0.20,
        available_width * 0.31,
        available_width * 0.17,
    ]

    font_name = _register_unicode_font()
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("FONT", (0, 0), (-1, -1), font_name),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("ALIGN", (4, 0), (4, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("LEFTPADDING", (0, 0), (-1, -1), 6),
                ("RIGHTPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    title_style = getSampleStyleSheet()["Heading2"]
    title_style.fontName = font_name
    doc.build([Paragraph(statement.title, title_style), Spacer(1, 10), table])
    logger.info("Statement exported to PDF: %s", filepath)
