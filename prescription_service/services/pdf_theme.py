# FILE: prescription_service/services/pdf_theme.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm

from prescription_service.core.config import settings

logger = logging.getLogger(__name__)


# -----------------------------
# Theme
# -----------------------------
@dataclass(frozen=True)
class PdfTheme:
    """
    Immutable look of the prescription PDF.

    Colours are kept as hex strings so the theme stays hashable; use the
    properties to get ReportLab colours. ``gap(n)`` is the spacing scale.
    """

    name: str
    primary_hex: str = "#008080"  # teal
    light_gray_hex: str = "#F8F8F8"
    border_hex: str = "#D3D3D3"
    muted_hex: str = "#808080"
    ink_hex: str = "#000000"

    font: str = "Helvetica"
    font_bold: str = "Helvetica-Bold"
    font_scale: float = 1.0

    spacing: float = 4.0  # pt per gap unit
    margin: float = 30.0  # pt, all four sides
    banner_height: float = 4 * mm

    table_header: str = "solid"  # solid | shaded
    separator: str = "dotted"  # dotted | solid

    program_name: str = "SANKAT MOCHAN HEALTH PROGRAM"
    contact_line: str = "info@sankatmochan.co.in"
    default_address: str = "3/045 Mahatma Gandhi Marg, Hazratganj, Lucknow"
    platform_label: str = "Sankat Mochan Nagrik (SMN):"
    logo_path: Optional[str] = None

    @property
    def primary(self) -> colors.Color:
        return colors.HexColor(self.primary_hex)

    @property
    def light_gray(self) -> colors.Color:
        return colors.HexColor(self.light_gray_hex)

    @property
    def border(self) -> colors.Color:
        return colors.HexColor(self.border_hex)

    @property
    def muted(self) -> colors.Color:
        return colors.HexColor(self.muted_hex)

    @property
    def ink(self) -> colors.Color:
        return colors.HexColor(self.ink_hex)

    @property
    def content_width(self) -> float:
        return A4[0] - 2 * self.margin

    def gap(self, n: float = 1) -> float:
        return n * self.spacing

    def size(self, pt: float) -> float:
        return round(pt * self.font_scale, 2)


SPACIOUS_THEME = PdfTheme(name="spacious")

COMPACT_THEME = PdfTheme(
    name="compact",
    font_scale=0.9,
    spacing=2.5,
    margin=22.0,
    banner_height=2.5 * mm,
    table_header="shaded",
    separator="solid",
)

THEMES: Dict[str, PdfTheme] = {
    SPACIOUS_THEME.name: SPACIOUS_THEME,
    COMPACT_THEME.name: COMPACT_THEME,
}


def get_theme(name: Optional[str] = None) -> PdfTheme:
    """Named preset, with the configured clinic logo applied."""
    key = (name or settings.PDF_THEME or "").strip().lower()
    theme = THEMES.get(key)
    if theme is None:
        logger.warning("Unknown PDF theme %r, using %s", key,
                       SPACIOUS_THEME.name)
        theme = SPACIOUS_THEME
    if settings.CLINIC_LOGO_PATH:
        theme = replace(theme, logo_path=settings.CLINIC_LOGO_PATH)
    return theme


# -----------------------------
# Paragraph styles
# -----------------------------
def make_styles(theme: PdfTheme) -> Dict[str, ParagraphStyle]:
    """Fresh style set per render; nothing here is shared between calls."""
    f, fb, s = theme.font, theme.font_bold, theme.size

    def ps(name: str, font: str, size: float, **kw) -> ParagraphStyle:
        kw.setdefault("textColor", theme.ink)
        return ParagraphStyle(name=name,
                              fontName=font,
                              fontSize=s(size),
                              leading=s(size * 1.25),
                              **kw)

    head_color = colors.white if theme.table_header == "solid" else theme.ink

    return {
        "Org": ps("Org", fb, 14, textColor=theme.primary, alignment=TA_RIGHT),
        "OrgLine": ps("OrgLine", f, 8, alignment=TA_RIGHT),
        "RxId": ps("RxId", fb, 9, alignment=TA_RIGHT,
                   spaceBefore=theme.gap(0.5)),
        "Label": ps("Label", f, 7, textColor=theme.muted),
        "Value": ps("Value", f, 11),
        "VitalLabel": ps("VitalLabel", f, 6, textColor=theme.muted,
                         alignment=TA_CENTER),
        "VitalValue": ps("VitalValue", fb, 10, alignment=TA_CENTER),
        "SectionHead": ps("SectionHead", fb, 8, textColor=theme.primary,
                          spaceBefore=theme.gap(3), spaceAfter=theme.gap(1)),
        "Body": ps("Body", f, 10, alignment=TA_LEFT),
        "Diagnosis": ps("Diagnosis", fb, 13, spaceBefore=theme.gap(3)),
        "TableHead": ps("TableHead", fb, 8, textColor=head_color),
        "Cell": ps("Cell", f, 10),
        "SigTitle": ps("SigTitle", f, 9),
        "SigText": ps("SigText", f, 8),
        "SigName": ps("SigName", fb, 9),
        "SigCaption": ps("SigCaption", f, 6, textColor=theme.muted),
        "NextVisit": ps("NextVisit", fb, 9, textColor=theme.primary,
                        spaceBefore=theme.gap(3)),
    }
