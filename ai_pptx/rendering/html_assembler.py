"""
HTML -> PPTX Assembler

Converts the absolutely positioned slide HTML produced by slide_templates
into native python-pptx slides, preserving element positions.

Supported markup (inline styles, lengths in pt or %):
- body background-image: url(...)  -> full-slide picture, sent to the back
- div with background              -> rectangle / rounded rectangle (alpha kept)
- div.placeholder[id]              -> not drawn, reported as a Placeholder
- h1-h6, p                         -> text box
- ul / ol                          -> text box, one bulleted paragraph per <li>

Any failure raises AssemblyError; assembly has no fallback.
"""

import re
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Tuple, Union
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup, Tag
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.oxml.ns import qn
from pptx.oxml.xmlchemy import OxmlElement
from pptx.util import Pt

from ai_pptx.errors import AssemblyError
from ai_pptx.models.build import Placeholder
from ai_pptx.rendering.slide_templates import SLIDE_H, SLIDE_W
from ai_pptx.utils.logger import setup_logger

logger = setup_logger(__name__)

TEXT_TAGS = {"h1", "h2", "h3", "h4", "h5", "h6", "p"}
LIST_TAGS = {"ul", "ol"}
HEADING_SIZES = {"h1": 32, "h2": 24, "h3": 19, "h4": 16, "h5": 14, "h6": 12}
DEFAULT_FONT = "Arial"
DEFAULT_FONT_SIZE = 14
DEFAULT_LINE_HEIGHT = 1.2
BULLET = "•"

ALIGNMENTS = {
    "left": PP_ALIGN.LEFT,
    "center": PP_ALIGN.CENTER,
    "right": PP_ALIGN.RIGHT,
    "justify": PP_ALIGN.JUSTIFY,
}

BACKGROUND_URL_RE = re.compile(r"url\(\s*(['\"]?)(?P<url>.*?)\1\s*\)")


class AssembledSlide(NamedTuple):
    slide: object
    placeholders: List[Placeholder]


# --------------------------------------------------------------------------- #
# CSS helpers
# --------------------------------------------------------------------------- #


def parse_inline_style(style: Optional[str]) -> Dict[str, str]:
    rules: Dict[str, str] = {}
    for declaration in (style or "").split(";"):
        if ":" not in declaration:
            continue
        key, value = declaration.split(":", 1)
        rules[key.strip().lower()] = value.strip()
    return rules


def parse_length(value: Optional[str], reference: float) -> Optional[float]:
    """Length in pt; supports pt, px (0.75pt) and % of `reference`."""
    if not value:
        return None
    value = value.strip().lower()
    try:
        if value.endswith("pt"):
            return float(value[:-2])
        if value.endswith("px"):
            return float(value[:-2]) * 0.75
        if value.endswith("%"):
            return float(value[:-1]) / 100.0 * reference
        return float(value)
    except ValueError:
        return None


def parse_color(value: Optional[str]) -> Optional[Tuple[RGBColor, float]]:
    """Parse #rgb, #rrggbb, rgb() and rgba() into (RGBColor, alpha)."""
    if not value:
        return None
    value = value.strip().lower()
    if value.startswith("#"):
        hex_str = value[1:]
        if len(hex_str) == 3:
            hex_str = "".join(c * 2 for c in hex_str)
        if len(hex_str) != 6:
            return None
        try:
            return RGBColor.from_string(hex_str.upper()), 1.0
        except ValueError:
            return None
    if value.startswith("rgb"):
        inner = value[value.find("(") + 1: value.rfind(")")]
        parts = [p.strip() for p in inner.split(",")]
        if len(parts) < 3:
            return None
        try:
            r, g, b = [max(0, min(255, int(float(p)))) for p in parts[:3]]
            alpha = float(parts[3]) if len(parts) > 3 else 1.0
        except ValueError:
            return None
        return RGBColor(r, g, b), max(0.0, min(1.0, alpha))
    return None


def _set_alpha(shape, alpha: float) -> None:
    """python-pptx has no API for fill transparency; add <a:alpha> to the solid fill."""
    solid_fill = shape._element.spPr.find(qn("a:solidFill"))
    if solid_fill is None:
        return
    color = solid_fill.find(qn("a:srgbClr"))
    if color is None:
        return
    alpha_el = OxmlElement("a:alpha")
    alpha_el.set("val", str(int(round(alpha * 100000))))
    color.append(alpha_el)


# --------------------------------------------------------------------------- #
# Assembler
# --------------------------------------------------------------------------- #


class HtmlSlideAssembler:
    """
    Appends rendered HTML slides to a python-pptx presentation.

    Usage:
        assembler = HtmlSlideAssembler()
        prs = assembler.new_presentation()
        for html_file in html_files:
            assembled = assembler.append_slide(html_file, prs)
        assembler.save(prs, "presentation.pptx")
    """

    def __init__(self, slide_width_pt: float = SLIDE_W, slide_height_pt: float = SLIDE_H):
        self.slide_width_pt = slide_width_pt
        self.slide_height_pt = slide_height_pt

    def new_presentation(self):
        prs = Presentation()
        prs.slide_width = Pt(self.slide_width_pt)
        prs.slide_height = Pt(self.slide_height_pt)
        return prs

    def save(self, presentation, output_path: Union[str, Path]) -> Path:
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            presentation.save(str(output_path))
        except OSError as e:
            raise AssemblyError(f"Cannot write presentation: {e}", str(output_path)) from e
        return output_path

    def append_slide(self, html_path: Union[str, Path], presentation) -> AssembledSlide:
        """
        Convert one HTML file into a new slide at the end of `presentation`.

        Returns:
            AssembledSlide with the python-pptx slide and its placeholder regions

        Raises:
            AssemblyError: If the HTML cannot be read or converted
        """
        html_path = Path(html_path)
        try:
            html = html_path.read_text(encoding="utf-8")
        except OSError as e:
            raise AssemblyError(f"Cannot read slide HTML: {e}", str(html_path)) from e

        soup = BeautifulSoup(html, "html.parser")
        body = soup.body
        if body is None:
            raise AssemblyError("Slide HTML has no <body>", str(html_path))

        try:
            # Layout 6 of the default template is "Blank"
            slide = presentation.slides.add_slide(presentation.slide_layouts[6])
            slide_index = len(presentation.slides) - 1

            self._add_background(slide, body, html_path.parent)

            placeholders: List[Placeholder] = []
            for element in body.find_all(recursive=False):
                placeholder = self._add_element(slide, element, slide_index, len(placeholders))
                if placeholder is not None:
                    placeholders.append(placeholder)
        except AssemblyError:
            raise
        except Exception as e:
            raise AssemblyError(f"Slide conversion failed: {e}", str(html_path)) from e

        return AssembledSlide(slide=slide, placeholders=placeholders)

    # --------------------------------------------------------------------- #

    def _add_background(self, slide, body: Tag, base_dir: Path) -> None:
        style = parse_inline_style(body.get("style"))
        match = BACKGROUND_URL_RE.search(style.get("background-image", ""))
        if not match:
            return

        url = match.group("url")
        if url.startswith("file:"):
            image_path = Path(unquote(urlparse(url).path))
        else:
            image_path = Path(unquote(url))
        if not image_path.is_absolute():
            image_path = base_dir / image_path
        if not image_path.is_file():
            raise AssemblyError(f"Background image not found: {image_path}")

        slide.shapes.add_picture(
            str(image_path), 0, 0, width=Pt(self.slide_width_pt), height=Pt(self.slide_height_pt)
        )

    def _geometry(self, style: Dict[str, str]) -> Tuple[float, float, Optional[float], Optional[float]]:
        left = parse_length(style.get("left"), self.slide_width_pt) or 0.0
        top = parse_length(style.get("top"), self.slide_height_pt) or 0.0
        width = parse_length(style.get("width"), self.slide_width_pt)
        height = parse_length(style.get("height"), self.slide_height_pt)
        return left, top, width, height

    def _add_element(self, slide, element: Tag, slide_index: int, placeholder_count: int) -> Optional[Placeholder]:
        style = parse_inline_style(element.get("style"))
        left, top, width, height = self._geometry(style)
        width = width if width is not None else self.slide_width_pt - left
        classes = element.get("class") or []

        if element.name == "div" and "placeholder" in classes:
            return Placeholder(
                id=element.get("id") or f"placeholder-{placeholder_count}",
                slide_index=slide_index,
                left_pt=left,
                top_pt=top,
                width_pt=width,
                height_pt=height if height is not None else self.slide_height_pt - top,
            )

        if element.name == "div":
            self._add_shape(slide, style, left, top, width, height)
        elif element.name in TEXT_TAGS:
            lines = [element.get_text(" ", strip=True)]
            self._add_text(slide, element.name, style, lines, left, top, width, height, bullets=False)
        elif element.name in LIST_TAGS:
            lines = [li.get_text(" ", strip=True) for li in element.find_all("li")]
            self._add_text(slide, element.name, style, lines, left, top, width, height, bullets=True)
        else:
            logger.debug(f"Ignoring unsupported element <{element.name}>")
        return None

    def _add_shape(self, slide, style, left, top, width, height) -> None:
        color = parse_color(style.get("background") or style.get("background-color"))
        if color is None:
            return
        height = height if height is not None else self.slide_height_pt - top

        radius = parse_length(style.get("border-radius"), min(width, height))
        shape_type = MSO_SHAPE.ROUNDED_RECTANGLE if radius else MSO_SHAPE.RECTANGLE
        shape = slide.shapes.add_shape(shape_type, Pt(left), Pt(top), Pt(width), Pt(height))
        if radius and min(width, height) > 0:
            shape.adjustments[0] = min(0.5, radius / min(width, height))

        rgb, alpha = color
        shape.fill.solid()
        shape.fill.fore_color.rgb = rgb
        if alpha < 1.0:
            _set_alpha(shape, alpha)
        shape.line.fill.background()
        shape.shadow.inherit = False

    def _add_text(self, slide, tag: str, style, lines: List[str], left, top, width, height,
                  bullets: bool) -> None:
        font_size = parse_length(style.get("font-size"), DEFAULT_FONT_SIZE) or HEADING_SIZES.get(tag, DEFAULT_FONT_SIZE)
        try:
            line_height = float(style.get("line-height", DEFAULT_LINE_HEIGHT))
        except ValueError:
            line_height = DEFAULT_LINE_HEIGHT
        if height is None:
            height = max(1, len(lines)) * font_size * line_height + 4

        weight = style.get("font-weight", "700" if tag in HEADING_SIZES else "400")
        bold = weight == "bold" or (weight.isdigit() and int(weight) >= 600)
        color = parse_color(style.get("color")) or (RGBColor(0xFF, 0xFF, 0xFF), 1.0)
        alignment = ALIGNMENTS.get(style.get("text-align", "left"), PP_ALIGN.LEFT)

        textbox = slide.shapes.add_textbox(Pt(left), Pt(top), Pt(width), Pt(height))
        frame = textbox.text_frame
        frame.word_wrap = True
        frame.vertical_anchor = MSO_ANCHOR.TOP
        frame.margin_left = frame.margin_right = frame.margin_top = frame.margin_bottom = 0

        for i, line in enumerate(lines):
            paragraph = frame.paragraphs[0] if i == 0 else frame.add_paragraph()
            paragraph.alignment = alignment
            paragraph.line_spacing = line_height
            if bullets:
                paragraph.space_after = Pt(font_size * 0.6)
            run = paragraph.add_run()
            run.text = f"{BULLET}  {line}" if bullets else line
            run.font.name = DEFAULT_FONT
            run.font.size = Pt(font_size)
            run.font.bold = bold
            run.font.color.rgb = color[0]
