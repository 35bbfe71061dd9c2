from __future__ import annotations

from datetime import date
from io import BytesIO
from typing import Dict, Iterable, List, Mapping

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from config import BASE_DIR
from content import get_trait_profile
from questions import TRAIT_CODES

FONT_DIR = BASE_DIR / "fonts"
PDF_FONT_FAMILY = "DejaVuSans"
PDF_FONT_REGULAR_PATH = FONT_DIR / "DejaVuSans.ttf"
PDF_FONT_BOLD_PATH = FONT_DIR / "DejaVuSans-Bold.ttf"

PDF_AUTHOR = "power4-people"

BASE_TEXT_COLOR = (32, 37, 45)
MUTED_COLOR = (110, 116, 132)
BAR_BACKGROUND = (238, 238, 238)

GERMAN_MONTHS = [
    "Januar", "Februar", "März", "April", "Mai", "Juni",
    "Juli", "August", "September", "Oktober", "November", "Dezember",
]


def format_german_date(value: date) -> str:
    return f"{value.day}. {GERMAN_MONTHS[value.month - 1]} {value.year}"


def sanitize_for_pdf(text: str, unicode_font: bool = False) -> str:
    replacements = {
        "’": "'",
        "‘": "'",
        "“": '"',
        "”": '"',
        "„": '"',
        "–": "-",
        "—": "-",
        "…": "...",
        "•": "-",
        "🔥": "",
        "⭐": "",
        "🌿": "",
        "🎯": "",
        "📧": "",
        "📬": "",
        "️": "",
    }
    for src, dest in replacements.items():
        text = text.replace(src, dest)
    if not unicode_font:
        # Core PDF fonts only cover latin-1.
        text = text.encode("latin-1", "replace").decode("latin-1")
    return text.strip()


class ReportPDF(FPDF):
    """FPDF with the report fonts registered and a few layout helpers."""

    def __init__(self, title: str):
        super().__init__(format="A4")
        self.set_auto_page_break(auto=True, margin=15)
        self.regular_family = "Helvetica"
        self.bold_family = "Helvetica"
        self.bold_style = "B"
        self.has_unicode_font = False
        if PDF_FONT_REGULAR_PATH.exists():
            self.add_font(PDF_FONT_FAMILY, "", str(PDF_FONT_REGULAR_PATH))
            self.regular_family = PDF_FONT_FAMILY
            self.bold_family = PDF_FONT_FAMILY
            self.bold_style = ""
            self.has_unicode_font = True
            if PDF_FONT_BOLD_PATH.exists():
                self.add_font(PDF_FONT_FAMILY, "B", str(PDF_FONT_BOLD_PATH))
                self.bold_style = "B"
        self.set_title(title)
        self.set_author(PDF_AUTHOR)
        self.add_page()
        self.set_text_color(*BASE_TEXT_COLOR)

    def clean(self, text: str) -> str:
        return sanitize_for_pdf(text, unicode_font=self.has_unicode_font)

    def regular(self, size: int = 11) -> None:
        self.set_font(self.regular_family, "", size)

    def bold(self, size: int = 11) -> None:
        self.set_font(self.bold_family, self.bold_style, size)

    def heading(self, text: str, size: int = 13, fill=(244, 245, 251)) -> None:
        self.ln(3)
        self.bold(size)
        self.set_fill_color(*fill)
        self.cell(0, 9, self.clean(text), fill=True, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(2)

    def paragraph(self, text: str, size: int = 11) -> None:
        self.regular(size)
        self.multi_cell(0, 6, self.clean(text), align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.ln(1)

    def bullets(self, items: Iterable[str]) -> None:
        self.regular(11)
        for item in items:
            x = self.get_x()
            self.cell(4, 6, "-", align="L")
            self.set_x(x + 6)
            self.multi_cell(0, 6, self.clean(item), align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def label_value(self, label: str, value: str) -> None:
        self.bold(11)
        self.cell(45, 7, self.clean(label))
        self.regular(11)
        self.multi_cell(0, 7, self.clean(value), align="L", new_x=XPos.LMARGIN, new_y=YPos.NEXT)

    def to_buffer(self) -> BytesIO:
        buffer = BytesIO()
        self.output(buffer)
        buffer.seek(0)
        return buffer


def _score_bars(pdf: ReportPDF, scores: Mapping[str, int]) -> None:
    bar_width = pdf.epw - 60
    for trait in TRAIT_CODES:
        profile = get_trait_profile(trait)
        score = scores[trait]
        pdf.bold(11)
        pdf.cell(40, 7, pdf.clean(f"{profile['name']} ({trait})"))
        x, y = pdf.get_x(), pdf.get_y() + 2
        pdf.set_fill_color(*BAR_BACKGROUND)
        pdf.rect(x, y, bar_width, 3.5, style="F")
        pdf.set_fill_color(*profile["rgb"])  # type: ignore[misc]
        pdf.rect(x, y, bar_width * score / 100, 3.5, style="F")
        pdf.set_x(x + bar_width + 4)
        pdf.cell(0, 7, str(score), new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def generate_result_pdf(
    name: str,
    scores: Mapping[str, int],
    dominant: str,
    secondary: str | None,
    result_url: str | None = None,
    created: date | None = None,
) -> BytesIO:
    profile = get_trait_profile(dominant)
    pdf = ReportPDF("Ihr DISG-Analyse-Profil")

    pdf.bold(18)
    pdf.cell(0, 10, pdf.clean("Ihr Analyse-Profil"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.regular(11)
    pdf.set_text_color(*MUTED_COLOR)
    pdf.cell(
        0,
        6,
        pdf.clean(f"power4-people Kurzanalyse für {name} - {format_german_date(created or date.today())}"),
        new_x=XPos.LMARGIN,
        new_y=YPos.NEXT,
    )
    pdf.set_text_color(*BASE_TEXT_COLOR)
    pdf.ln(4)

    pdf.bold(15)
    pdf.set_text_color(*profile["rgb"])  # type: ignore[misc]
    pdf.cell(
        0,
        9,
        pdf.clean(f"{profile['name']} - {profile['type_name']} ({dominant})"),
        new_x=XPos.LMARGIN,
        new_y=YPos.NEXT,
    )
    pdf.set_text_color(*BASE_TEXT_COLOR)
    pdf.paragraph(profile["description"])  # type: ignore[arg-type]
    pdf.paragraph(" · ".join(profile["traits"]))  # type: ignore[arg-type]

    pdf.heading("Ihr Stärkenprofil")
    _score_bars(pdf, scores)

    pdf.heading("Stärken")
    pdf.bullets(profile["strengths"])  # type: ignore[arg-type]
    pdf.heading("Herausforderungen")
    pdf.bullets(profile["challenges"])  # type: ignore[arg-type]

    pdf.heading("Kommunikation")
    pdf.label_value("Stil:", profile["communication_style"])  # type: ignore[arg-type]
    pdf.label_value("Fokus:", profile["communication_focus"])  # type: ignore[arg-type]
    pdf.label_value("Vermeiden:", profile["communication_avoid"])  # type: ignore[arg-type]
    pdf.paragraph(profile["interaction_tips"])  # type: ignore[arg-type]

    pdf.heading("Berufliche Orientierung")
    pdf.bullets(profile["career_areas"])  # type: ignore[arg-type]
    pdf.label_value("Arbeitsumfeld:", profile["work_environment"])  # type: ignore[arg-type]
    pdf.label_value("Kernstärke:", profile["key_strength"])  # type: ignore[arg-type]

    if secondary:
        secondary_profile = get_trait_profile(secondary)
        pdf.heading("Ihre zweite Ausprägung")
        pdf.paragraph(
            f"{secondary_profile['name']} - {secondary_profile['type_name']} ({secondary}): "
            f"{secondary_profile['description']}"
        )

    if result_url:
        pdf.ln(4)
        pdf.regular(10)
        pdf.set_text_color(*MUTED_COLOR)
        pdf.multi_cell(0, 5, pdf.clean(f"Ihr Ergebnis online: {result_url}"), align="L", link=result_url)
        pdf.set_text_color(*BASE_TEXT_COLOR)

    return pdf.to_buffer()


CONTACT_FIELDS: List[tuple] = [
    ("name", "Name:"),
    ("email", "E-Mail:"),
    ("phone", "Telefon:"),
    ("availability", "Erreichbarkeit:"),
    ("timestamp", "Datum:"),
]


def generate_contact_pdf(contact: Dict[str, str]) -> BytesIO:
    """PDF copy of a contact request, sent back to the requester."""
    pdf = ReportPDF("Kopie Ihrer Kontaktanfrage")

    pdf.bold(18)
    pdf.cell(0, 10, pdf.clean("Kopie Ihrer Kontaktanfrage"), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.regular(11)
    pdf.set_text_color(*MUTED_COLOR)
    pdf.cell(0, 6, "Power4-people Kurzanalyse", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_text_color(*BASE_TEXT_COLOR)

    pdf.heading("Kontaktdaten")
    for key, label in CONTACT_FIELDS:
        pdf.label_value(label, contact.get(key) or "Nicht angegeben")

    pdf.heading("Ihre Nachricht")
    pdf.paragraph(contact.get("message", ""))

    pdf.ln(8)
    pdf.regular(9)
    pdf.set_text_color(*MUTED_COLOR)
    pdf.cell(
        0,
        5,
        pdf.clean(f"© {date.today().year} Power4-people Team | DISG Persönlichkeitsanalyse"),
        align="C",
    )
    return pdf.to_buffer()
