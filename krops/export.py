import base64
import io
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from fpdf import FPDF

from krops.agent.core import DiagnosisResult
from krops.capture import strip_data_uri

logger = logging.getLogger("krops.export")

UNICODE_FAMILY = "KropsUnicode"

HEADER_FILL = (6, 78, 59)
RULE_COLOR = (16, 185, 129)
BODY_TEXT = (30, 41, 59)
WHITE = (255, 255, 255)

_LATIN1_REPLACEMENTS = {
    "\u2022": "-",
    "\u2013": "-",
    "\u2014": "--",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2026": "...",
    "\u00a0": " ",
}

_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


@dataclass(frozen=True)
class PdfReport:
    filename: str
    content: bytes


def clean_text_for_pdf(text: str) -> str:
    """Reduce text to what the built-in Latin-1 fonts can draw."""
    for char, replacement in _LATIN1_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    text = text.encode("latin-1", "ignore").decode("latin-1")
    return re.sub(r"\s{2,}", " ", text).strip()


def report_filename(crop: str) -> str:
    return f"KropsAI_Report_{_UNSAFE_FILENAME.sub('_', crop).strip()}.pdf"


class FieldAuditPdf:
    """One-page field audit for a single diagnosis."""

    def __init__(self, font_path: Optional[str] = None):
        self.pdf = FPDF(orientation="P", unit="mm", format="A4")
        self.pdf.set_auto_page_break(False)
        self.pdf.add_page()
        self.unicode = font_path is not None
        if self.unicode:
            self.pdf.add_font(UNICODE_FAMILY, "", font_path)

    def font(self, size: int, bold: bool = False) -> None:
        if self.unicode:
            self.pdf.set_font(UNICODE_FAMILY, "", size)
        else:
            self.pdf.set_font("Helvetica", "B" if bold else "", size)

    def clean(self, text: str) -> str:
        return text if self.unicode else clean_text_for_pdf(text)

    def text(self, x: float, y: float, text: str) -> None:
        self.pdf.text(x, y, self.clean(text))

    def build(self, result: DiagnosisResult, today: date) -> bytes:
        pdf = self.pdf

        pdf.set_fill_color(*HEADER_FILL)
        pdf.rect(0, 0, 210, 45, "F")
        pdf.set_text_color(*WHITE)
        self.font(26, bold=True)
        self.text(15, 28, "KROPS AI FIELD AUDIT")
        self.font(10)
        self.text(160, 25, f"DATE: {today.strftime('%d/%m/%Y')}")

        pdf.set_text_color(*BODY_TEXT)
        self.font(16, bold=True)
        self.text(15, 65, f"CROP DNA MATCH: {result.crop}")
        self.text(15, 80, f"PATHOLOGY: {result.disease}")
        pdf.set_draw_color(*RULE_COLOR)
        pdf.line(15, 85, 195, 85)

        self.font(12)
        pdf.set_xy(15, 95)
        pdf.multi_cell(120, 6, self.clean(result.prescription))

        if result.medicine_image:
            self.add_medicine(result)

        self.font(12)
        self.text(15, 150, f"DOSAGE: {result.dosage}")

        return bytes(pdf.output())

    def add_medicine(self, result: DiagnosisResult) -> None:
        try:
            data = base64.b64decode(strip_data_uri(result.medicine_image))
            self.pdf.image(io.BytesIO(data), x=145, y=110, w=50, h=50)
        except Exception:
            logger.warning("[Export] Could not embed medicine image for %r", result.medicine_name, exc_info=True)
            return
        self.font(9)
        self.pdf.set_xy(145, 162)
        self.pdf.multi_cell(45, 4, self.clean(result.medicine_name))


def export_report(result: DiagnosisResult, today: Optional[date] = None, font_path: Optional[str] = None) -> PdfReport:
    content = FieldAuditPdf(font_path).build(result, today or date.today())
    filename = report_filename(result.crop)
    logger.info("[Export] Built %s (%d bytes)", filename, len(content))
    return PdfReport(filename=filename, content=content)
