# FILE: prescription_service/services/pdf_prescription.py
from __future__ import annotations

import html as _html
import logging
from dataclasses import dataclass
from datetime import datetime, date
from io import BytesIO
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.platypus import (
    Flowable,
    Image,
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)
from reportlab.platypus.doctemplate import LayoutError
from reportlab.platypus.flowables import HRFlowable

from prescription_service.core.exceptions import RecordIncomplete, RenderFailed
from prescription_service.services.pdf_theme import PdfTheme, get_theme, make_styles

logger = logging.getLogger(__name__)

PLACEHOLDER = "-"
MEDIA_TYPE = "application/pdf"

VITAL_FIELDS: Tuple[Tuple[str, str], ...] = (
    ("BP (MMHG)", "bp"),
    ("PULSE (BPM)", "pulse"),
    ("SPO2 (%)", "spo2"),
    ("TEMP (°F)", "temp"),
    ("WEIGHT (KG)", "weight"),
    ("HEIGHT (CM)", "height"),
    ("BMI", "bmi"),
)
VITALS_PER_ROW = 4

MED_HEADERS: Tuple[str, ...] = ("#", "MEDICINE NAME", "DOSAGE", "DURATION")
MED_COL_WEIGHTS: Tuple[float, ...] = (0.5, 4, 1.5, 1.5)


# -------------------------------
# Helpers
# -------------------------------
def _g(obj: Any, key: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _safe(v: Any) -> str:
    return "" if v is None else str(v)


def _esc(v: Any) -> str:
    # Paragraph text is mini-markup
    return _html.escape(_safe(v), quote=False)


def _present(v: Any) -> bool:
    return bool(_safe(v).strip())


def _or_dash(v: Any) -> str:
    return _safe(v).strip() if _present(v) else PLACEHOLDER


def _to_date(v: Any) -> Optional[date]:
    if not v:
        return None
    if isinstance(v, datetime):
        return v.date()
    if isinstance(v, date):
        return v
    s = str(v).strip()
    try:
        return datetime.fromisoformat(s.replace("Z", "")).date()
    except ValueError:
        pass
    for fmt in ("%d-%m-%Y", "%d/%m/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(s[:10], fmt).date()
        except ValueError:
            continue
    return None


def _fmt_date(v: Any) -> str:
    d = _to_date(v)
    return d.strftime("%d-%m-%Y") if d else PLACEHOLDER


def _record_date(rx: Any, now: Optional[datetime]) -> str:
    return _fmt_date(_g(rx, "created_at") or now)


def _split_widths(total: float, weights: Sequence[float]) -> List[float]:
    s = float(sum(weights))
    return [total * w / s for w in weights]


# -------------------------------
# Medication lines
# -------------------------------
@dataclass(frozen=True)
class MedLine:
    name: str = ""
    dosage: str = ""
    duration: str = ""

    @classmethod
    def from_entry(cls, entry: Any) -> "MedLine":
        # missing sub-fields print blank, not as a dash
        return cls(
            name=_safe(_g(entry, "name")),
            dosage=_safe(_g(entry, "dosage")),
            duration=_safe(_g(entry, "duration")),
        )


def medication_lines(rx: Any) -> List[MedLine]:
    return [MedLine.from_entry(e) for e in (_g(rx, "medication_data") or [])]


def medication_rows(lines: Sequence[MedLine]) -> List[List[str]]:
    return [[str(i), ln.name, ln.dosage, ln.duration]
            for i, ln in enumerate(lines, start=1)]


def row_background(index: int, theme: PdfTheme) -> colors.Color:
    """Zebra fill for 1-based data row ``index``: even rows are shaded."""
    return theme.light_gray if index % 2 == 0 else colors.white


# -------------------------------
# Field tables (pure data)
# -------------------------------
def _age_gender(age: Any, gender: Any) -> str:
    a = f"{_safe(age).strip()} Y" if _present(age) else ""
    g = _safe(gender).strip()
    if not a and not g:
        return PLACEHOLDER
    return f"{a or PLACEHOLDER} / {g or PLACEHOLDER}"


def patient_fields(rx: Any,
                   now: Optional[datetime] = None) -> List[Tuple[str, str]]:
    """Label/value pairs in print order; address is always last (full row)."""
    return [
        ("PATIENT NAME", _or_dash(_g(rx, "patient_name"))),
        ("DATE", _record_date(rx, now)),
        ("AGE / GENDER", _age_gender(_g(rx, "age"), _g(rx, "gender"))),
        ("PHONE", _or_dash(_g(rx, "patient_phone"))),
        ("ADDRESS", _or_dash(_g(rx, "patient_address"))),
    ]


def vital_fields(rx: Any) -> List[Tuple[str, str]]:
    return [(label, _or_dash(_g(rx, key))) for label, key in VITAL_FIELDS]


def _paragraph_lines(text: Any) -> List[str]:
    return _safe(text).strip("\n").splitlines()


def _text_block(text: Any, theme: PdfTheme, style: Any) -> List[Flowable]:
    """One Paragraph per source line; a blank line becomes vertical space."""
    out: List[Flowable] = []
    for ln in _paragraph_lines(text):
        if ln.strip():
            out.append(Paragraph(_esc(ln), style))
        else:
            out.append(Spacer(1, theme.gap(2)))
    return out


# -------------------------------
# Section builders
# -------------------------------
def section_break(theme: PdfTheme) -> HRFlowable:
    return HRFlowable(
        width="100%",
        thickness=0.6,
        color=theme.border if theme.separator == "dotted" else theme.muted,
        dash=(1, 2) if theme.separator == "dotted" else None,
        spaceBefore=theme.gap(2),
        spaceAfter=theme.gap(2),
    )


def _logo(theme: PdfTheme) -> Any:
    if not theme.logo_path:
        return ""
    p = Path(theme.logo_path)
    if not p.is_file():
        logger.warning("Clinic logo not found: %s", theme.logo_path)
        return ""
    return Image(str(p),
                 width=40 * mm,
                 height=16 * mm,
                 kind="proportional",
                 hAlign="LEFT")


def build_header(rx: Any, theme: PdfTheme, styles: dict) -> List[Flowable]:
    w = theme.content_width
    clinic = _safe(_g(rx, "clinic_name")).strip() or theme.program_name
    address = _safe(_g(rx, "clinic_address")).strip() or theme.default_address

    banner = Table([[""]], colWidths=[w], rowHeights=[theme.banner_height])
    banner.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), theme.primary),
    ]))

    identity = [
        Paragraph(_esc(clinic), styles["Org"]),
        Paragraph(_esc(theme.contact_line), styles["OrgLine"]),
        Paragraph(_esc(address), styles["OrgLine"]),
        Paragraph(f"Prescription ID: {_esc(_g(rx, 'id'))}", styles["RxId"]),
    ]
    block = Table([[_logo(theme), identity]], colWidths=_split_widths(w, (1, 2)))
    block.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
        ("TOPPADDING", (0, 0), (-1, -1), theme.gap(1.5)),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 0),
    ]))
    return [banner, block]


def build_patient_info(rx: Any,
                       theme: PdfTheme,
                       styles: dict,
                       *,
                       now: Optional[datetime] = None) -> List[Flowable]:

    def lv(label: str, value: str) -> List[Paragraph]:
        return [
            Paragraph(_esc(label), styles["Label"]),
            Paragraph(_esc(value), styles["Value"]),
        ]

    cmds = [
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("TOPPADDING", (0, 0), (-1, -1), theme.gap(0.5)),
        ("BOTTOMPADDING", (0, 0), (-1, -1), theme.gap(1)),
    ]
    fields = patient_fields(rx, now)
    pairs = Table(
        [
            [lv(*fields[0]), lv(*fields[1])],
            [lv(*fields[2]), lv(*fields[3])],
        ],
        colWidths=_split_widths(theme.content_width, (1, 1)),
        splitInRow=1,
    )
    pairs.setStyle(TableStyle(cmds))

    # full-width address row, separate so a long address can break across pages
    address = Table([[lv(*fields[4])]],
                    colWidths=[theme.content_width],
                    splitInRow=1)
    address.setStyle(TableStyle(cmds))
    return [pairs, address]


def build_vitals(rx: Any, theme: PdfTheme, styles: dict) -> List[Flowable]:
    cells: List[Any] = [[
        Paragraph(_esc(label), styles["VitalLabel"]),
        Paragraph(_esc(value), styles["VitalValue"]),
    ] for label, value in vital_fields(rx)]

    # filler keeps the last row at four cells
    while len(cells) % VITALS_PER_ROW:
        cells.append("")

    rows = [
        cells[i:i + VITALS_PER_ROW]
        for i in range(0, len(cells), VITALS_PER_ROW)
    ]
    t = Table(rows,
              colWidths=[theme.content_width / VITALS_PER_ROW] * VITALS_PER_ROW,
              splitInRow=1)
    t.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, -1), theme.light_gray),
        ("INNERGRID", (0, 0), (-1, -1), 0.5, theme.border),
        ("BOX", (0, 0), (-1, -1), 0.5, theme.border),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("TOPPADDING", (0, 0), (-1, -1), theme.gap(1.25)),
        ("BOTTOMPADDING", (0, 0), (-1, -1), theme.gap(1.25)),
    ]))
    return [Spacer(1, theme.gap(2.5)), t]


def build_diagnosis(rx: Any, theme: PdfTheme, styles: dict) -> List[Flowable]:
    out: List[Flowable] = [
        Paragraph("PROBLEM STATEMENT / CLINICAL NOTES", styles["SectionHead"])
    ]
    notes = _g(rx, "clinical_notes")
    out += _text_block(notes if _present(notes) else PLACEHOLDER, theme,
                       styles["Body"])

    out.append(
        Paragraph(f"Diagnosis: {_esc(_or_dash(_g(rx, 'diagnosis')))}",
                  styles["Diagnosis"]))

    advice = _g(rx, "advice")
    if _present(advice):
        out.append(Paragraph("ADVICE", styles["SectionHead"]))
        out += _text_block(advice, theme, styles["Body"])
    return out


def build_medication_table(rx: Any, theme: PdfTheme,
                           styles: dict) -> List[Flowable]:
    rows = medication_rows(medication_lines(rx))

    data: List[List[Any]] = [[Paragraph(_esc(h), styles["TableHead"]) for h in MED_HEADERS]]
    data += [[Paragraph(_esc(c), styles["Cell"]) for c in row] for row in rows]

    head_bg = theme.primary if theme.table_header == "solid" else theme.light_gray
    cmds: List[tuple] = [
        ("BACKGROUND", (0, 0), (-1, 0), head_bg),
        ("GRID", (0, 0), (-1, -1), 0.5, theme.border),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), theme.gap(1.25)),
        ("RIGHTPADDING", (0, 0), (-1, -1), theme.gap(1.25)),
        ("TOPPADDING", (0, 0), (-1, -1), theme.gap(1.25)),
        ("BOTTOMPADDING", (0, 0), (-1, -1), theme.gap(1.25)),
    ]
    for i in range(1, len(rows) + 1):
        cmds.append(("BACKGROUND", (0, i), (-1, i), row_background(i, theme)))

    # header row repeats on every page the table spills onto; a row taller
    # than a page is split inside the row
    t = Table(data,
              colWidths=_split_widths(theme.content_width, MED_COL_WEIGHTS),
              repeatRows=1,
              splitInRow=1)
    t.setStyle(TableStyle(cmds))
    return [Spacer(1, theme.gap(4)), t]


def build_footer(rx: Any,
                 theme: PdfTheme,
                 styles: dict,
                 *,
                 now: Optional[datetime] = None) -> List[Flowable]:
    doctor = _safe(_g(rx, "doctor_name")).strip()
    signed_on = _record_date(rx, now)
    sig_rule = "_" * 26
    caption = f"SIGNATURE&nbsp;&nbsp;&nbsp;&nbsp;{_esc(signed_on)}"

    left: List[Flowable] = [
        Paragraph("Consulting Doctor:", styles["SigTitle"]),
        Paragraph(f"Name: {_esc(doctor)}", styles["SigText"]),
        Paragraph(f"Reg No: {_esc(_or_dash(_g(rx, 'doctor_reg_no')))}",
                  styles["SigText"]),
    ]
    for key in ("doctor_qualification", "doctor_specialization"):
        if _present(_g(rx, key)):
            left.append(Paragraph(_esc(_safe(_g(rx, key)).strip()),
                                  styles["SigText"]))
    left += [
        Spacer(1, theme.gap(3)),
        Paragraph(sig_rule, styles["SigText"]),
        Paragraph(_esc(doctor.upper()), styles["SigName"]),
        Paragraph(caption, styles["SigCaption"]),
    ]

    right: List[Flowable] = [
        Paragraph(_esc(theme.platform_label), styles["SigTitle"]),
        Paragraph(f"Name: {_esc(_or_dash(_g(rx, 'patient_name')))}",
                  styles["SigText"]),
        Spacer(1, theme.gap(3)),
        Paragraph(sig_rule, styles["SigText"]),
        Paragraph(caption, styles["SigCaption"]),
    ]

    sigs = Table([[left, right]],
                 colWidths=_split_widths(theme.content_width, (1, 1)))
    sigs.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("TOPPADDING", (0, 0), (-1, -1), theme.gap(2)),
    ]))

    block: List[Flowable] = [
        HRFlowable(width="100%",
                   thickness=1,
                   color=theme.primary,
                   spaceBefore=theme.gap(5),
                   spaceAfter=theme.gap(1)),
        sigs,
    ]
    next_visit = _g(rx, "next_visit_date")
    if _to_date(next_visit):
        block.append(
            Paragraph(f"Next Visit: {_fmt_date(next_visit)}",
                      styles["NextVisit"]))
    return [KeepTogether(block)]


def build_story(rx: Any,
                theme: PdfTheme,
                styles: dict,
                *,
                now: Optional[datetime] = None) -> List[Flowable]:
    story: List[Flowable] = []
    story += build_header(rx, theme, styles)
    story.append(section_break(theme))
    story += build_patient_info(rx, theme, styles, now=now)
    story.append(section_break(theme))
    story += build_vitals(rx, theme, styles)
    story += build_diagnosis(rx, theme, styles)
    story += build_medication_table(rx, theme, styles)
    story += build_footer(rx, theme, styles, now=now)
    return story


# -------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------
def build_prescription_pdf(
    rx: Any,
    *,
    theme: Optional[PdfTheme] = None,
    now: Optional[datetime] = None,
) -> bytes:
    """
    Render one prescription to PDF bytes.

    ``rx`` is read only (ORM row, dict or any attribute bag). ``now`` stands in
    for a missing ``created_at``; the wall clock is never consulted. Output is
    byte-identical for identical input.

    Raises RecordIncomplete when the mandatory signatory is missing and
    RenderFailed when some content cannot be fitted onto a page.
    """
    rx_id = _safe(_g(rx, "id")).strip()
    doctor = _safe(_g(rx, "doctor_name")).strip()
    if not doctor:
        raise RecordIncomplete("doctor_name", rx_id or None)

    theme = theme or get_theme()
    story = build_story(rx, theme, make_styles(theme), now=now)

    # new buffer per call
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=theme.margin,
        rightMargin=theme.margin,
        topMargin=theme.margin,
        bottomMargin=theme.margin,
        title=f"Prescription {rx_id}",
        author=doctor,
        invariant=1,
    )
    try:
        doc.build(story)
    except LayoutError as e:
        logger.exception("Layout failed for prescription %s", rx_id)
        raise RenderFailed(rx_id or None, str(e)) from e

    pdf_bytes = buf.getvalue()
    buf.close()
    logger.info("Rendered prescription %s: pages=%s bytes=%s", rx_id,
                doc.page, len(pdf_bytes))
    return pdf_bytes
