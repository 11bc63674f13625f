# dbkompare/utils/pdf_utils.py
"""
Render de certificados con ReportLab.

El diseño vive en la plantilla PDF almacenada en S3; aquí sólo se dibuja
una capa de texto (nombre, código, URL de verificación y texto de logro)
y se fusiona sobre la primera página con pypdf.
"""
import io
import logging
import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from pypdf import PdfReader, PdfWriter
from reportlab.lib.colors import Color, black
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

FONT_NAME = "Helvetica"
MARGIN_X = 220

# Colores corporativos
COLOR_PRIMARY = Color(33 / 255, 49 / 255, 151 / 255)
COLOR_LINK = Color(89 / 255, 148 / 255, 238 / 255)
COLOR_TEXT = black

# Posiciones (x, distancia desde el borde superior)
NAME_POSITION = (80, 450)
CODE_POSITION = (970, 74)
VERIFY_POSITION = (465, 684)
COMPLETION_POSITION = (80, 520)

NAME_MAX_FONT_SIZE = 48
NAME_MIN_FONT_SIZE = 16
NAME_LINE_HEIGHT = 32
CODE_FONT_SIZE = 16
VERIFY_FONT_SIZE = 12
COMPLETION_FONT_SIZE = 18
COMPLETION_LINE_HEIGHT = 24

Segment = Tuple[str, Color]


@dataclass
class CertificateContent:
    recipient_name: str
    certificate_id: str
    verify_url: str
    completion: List[Segment] = field(default_factory=list)


def auto_font_size(text: str, max_width: float, max_size: int = NAME_MAX_FONT_SIZE,
                   min_size: int = NAME_MIN_FONT_SIZE) -> int:
    """
    Mayor tamaño de fuente (entre min y max) con el que `text` cabe en `max_width`.
    """
    unit_width = stringWidth(text, FONT_NAME, 1)
    if unit_width <= 0:
        return max_size
    return max(min_size, min(max_size, math.floor(max_width / unit_width)))


def wrap_segments(segments: Sequence[Segment], font_size: float, max_width: float) -> List[List[Segment]]:
    """
    Reparte palabras coloreadas en líneas que no superan `max_width`.
    Una palabra más ancha que la línea queda sola en su línea.
    """
    words = [(word, color) for text, color in segments for word in text.split()]
    space = stringWidth(" ", FONT_NAME, font_size)
    lines: List[List[Segment]] = []
    current: List[Segment] = []
    current_width = 0.0

    for word, color in words:
        word_width = stringWidth(word, FONT_NAME, font_size)
        needed = word_width if not current else current_width + space + word_width
        if current and needed > max_width:
            lines.append(current)
            current, current_width = [(word, color)], word_width
        else:
            current.append((word, color))
            current_width = needed
    if current:
        lines.append(current)
    return lines


def _draw_lines(pdf: canvas.Canvas, lines: List[List[Segment]], x: float, y: float,
                font_size: float, line_height: float) -> None:
    space = stringWidth(" ", FONT_NAME, font_size)
    pdf.setFont(FONT_NAME, font_size)
    for index, line in enumerate(lines):
        cursor = x
        baseline = y - index * line_height
        for text, color in merge_runs(line):
            pdf.setFillColor(color)
            pdf.drawString(cursor, baseline, text)
            cursor += stringWidth(text, FONT_NAME, font_size) + space


def merge_runs(line: List[Segment]) -> List[Segment]:
    """Une palabras consecutivas del mismo color en un solo texto."""
    runs: List[Segment] = []
    for word, color in line:
        if runs and runs[-1][1] is color:
            runs[-1] = (f"{runs[-1][0]} {word}", color)
        else:
            runs.append((word, color))
    return runs


def _build_overlay(content: CertificateContent, width: float, height: float) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(width, height))
    wrap_width = width - 2 * MARGIN_X

    # Nombre del destinatario
    name_size = auto_font_size(content.recipient_name, wrap_width)
    name_lines = wrap_segments([(content.recipient_name, COLOR_PRIMARY)], name_size, wrap_width)
    _draw_lines(pdf, name_lines, NAME_POSITION[0], height - NAME_POSITION[1], name_size, NAME_LINE_HEIGHT)

    # Código del certificado
    pdf.setFont(FONT_NAME, CODE_FONT_SIZE)
    pdf.setFillColor(COLOR_PRIMARY)
    pdf.drawString(CODE_POSITION[0], height - CODE_POSITION[1], content.certificate_id)

    # URL de verificación
    pdf.setFont(FONT_NAME, VERIFY_FONT_SIZE)
    pdf.setFillColor(COLOR_LINK)
    pdf.drawString(VERIFY_POSITION[0], height - VERIFY_POSITION[1], content.verify_url)

    # Texto de logro
    completion_lines = wrap_segments(content.completion, COMPLETION_FONT_SIZE, wrap_width)
    _draw_lines(pdf, completion_lines, COMPLETION_POSITION[0], height - COMPLETION_POSITION[1],
                COMPLETION_FONT_SIZE, COMPLETION_LINE_HEIGHT)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


def render_certificate(template_pdf: bytes, content: CertificateContent) -> bytes:
    """
    Dibuja el contenido sobre la primera página de la plantilla.

    Args:
        template_pdf: PDF base descargado de S3
        content: Textos a imprimir

    Returns:
        PDF en bytes
    """
    template = PdfReader(io.BytesIO(template_pdf))
    page = template.pages[0]
    width = float(page.mediabox.width)
    height = float(page.mediabox.height)

    overlay = PdfReader(io.BytesIO(_build_overlay(content, width, height))).pages[0]
    page.merge_page(overlay)

    writer = PdfWriter()
    for template_page in template.pages:
        writer.add_page(template_page)

    output = io.BytesIO()
    writer.write(output)
    pdf_bytes = output.getvalue()
    logger.info(f"Certificate PDF generated successfully, size: {len(pdf_bytes)} bytes")
    return pdf_bytes
