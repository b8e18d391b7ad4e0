"""
Slide HTML Templates

Each render function takes a slide descriptor and a background image path
and returns a complete 720pt x 405pt HTML document (Arial, UTF-8). Pure
functions: no I/O, same input -> same markup.

Conventions understood by the HTML -> PPTX assembler:
- body background-image        -> full-slide background picture
- <div> with a background      -> shape (rectangle / rounded rectangle), no text
- <h1>-<h6>, <p>, <ul>         -> text boxes
- class="placeholder" + id     -> reported as a placeholder region (e.g. charts)
- every element is absolutely positioned with an inline style in pt
"""

from html import escape
from pathlib import Path
from typing import Callable, Dict, Union
from urllib.parse import quote

from ai_pptx.models.slides import (
    ClosingSlide,
    ContentSlide,
    DataSlide,
    FeaturesSlide,
    SlideDescriptor,
    TitleSlide,
)

SLIDE_W = 720
SLIDE_H = 405

BASE_STYLES = f"""
    * {{ margin: 0; padding: 0; box-sizing: border-box; }}
    body {{
      width: {SLIDE_W}pt;
      height: {SLIDE_H}pt;
      font-family: Arial, Helvetica, sans-serif;
      color: #ffffff;
      overflow: hidden;
      position: relative;
      background-size: cover;
      background-position: center;
    }}
    ul {{ list-style: none; }}
"""

RenderFn = Callable[[SlideDescriptor, Union[str, Path]], str]


def esc(value) -> str:
    if value is None:
        return ""
    return escape(str(value), quote=True)


def box(top: float, left: float, width: float, height: float = None, **props) -> str:
    """Inline style for an absolutely positioned element; extra props use CSS names with '_' for '-'."""
    rules = [
        "position: absolute",
        f"top: {top:g}pt",
        f"left: {left:g}pt",
        f"width: {width:g}pt",
    ]
    if height is not None:
        rules.append(f"height: {height:g}pt")
    for key, value in props.items():
        rules.append(f"{key.replace('_', '-')}: {value}")
    return "; ".join(rules)


def overlay(width: str = "100%", height: str = "100%", opacity: float = 0.45) -> str:
    return (
        f'<div class="overlay" style="position: absolute; top: 0pt; left: 0pt; '
        f'width: {width}; height: {height}; background: rgba(0,0,0,{opacity:g});"></div>'
    )


def background_url(background_path: Union[str, Path]) -> str:
    """file:// URI for absolute paths, percent-encoded relative path otherwise."""
    path = Path(background_path)
    if path.is_absolute():
        return path.as_uri()
    return quote(path.as_posix())


def wrap_slide(background_path: Union[str, Path], body: str) -> str:
    background_url_value = esc(background_url(background_path))
    return f"""<!DOCTYPE html>
<html lang="en">
<head><meta charset="UTF-8"><style>
{BASE_STYLES}
</style></head>
<body style="background-image: url('{background_url_value}');">
{body}
</body></html>"""


def title_slide(slide: TitleSlide, background_path: Union[str, Path]) -> str:
    """Centered title, subtitle and date over a full dark overlay."""
    parts = [
        overlay(),
        f'<h1 style="{box(140, 60, 600, text_align="center", font_size="38pt", font_weight="700", line_height="1.2")}">'
        f'{esc(slide.title)}</h1>',
    ]
    if slide.subtitle:
        parts.append(
            f'<p class="subtitle" style="{box(200, 80, 560, text_align="center", font_size="19pt", color="rgba(255,255,255,0.9)")}">'
            f'{esc(slide.subtitle)}</p>'
        )
    if slide.date:
        parts.append(
            f'<p class="date" style="{box(260, 80, 560, text_align="center", font_size="13pt", color="rgba(255,255,255,0.7)")}">'
            f'{esc(slide.date)}</p>'
        )
    return wrap_slide(background_path, "\n".join(parts))


def content_slide(slide: ContentSlide, background_path: Union[str, Path]) -> str:
    """Title and bullet list over a left 65% overlay."""
    bullets = "\n".join(f"  <li>{esc(b)}</li>" for b in slide.bullets)
    parts = [
        overlay(width="65%"),
        f'<h2 style="{box(36, 32, 410, font_size="26pt", font_weight="700", line_height="1.2")}">{esc(slide.title)}</h2>',
        f'<ul style="{box(85, 32, 410, font_size="15pt", line_height="1.5")}">\n{bullets}\n</ul>',
    ]
    return wrap_slide(background_path, "\n".join(parts))


def data_slide(slide: DataSlide, background_path: Union[str, Path]) -> str:
    """Up to three metrics on the left, chart placeholder on the right."""
    parts = [
        overlay(width="42%", opacity=0.5),
        f'<h2 style="{box(32, 28, 270, font_size="24pt", font_weight="700", line_height="1.2")}">{esc(slide.title)}</h2>',
    ]
    for i, metric in enumerate(slide.metrics[:3]):
        top = 85 + i * 65
        parts.append(
            f'<p class="m{i}-val" style="{box(top, 28, 270, font_size="28pt", font_weight="700")}">{esc(metric.value)}</p>'
        )
        parts.append(
            f'<p class="m{i}-lbl" style="{box(top + 30, 28, 270, font_size="12pt", color="rgba(255,255,255,0.75)")}">'
            f'{esc(metric.label)}</p>'
        )
    parts.append(
        f'<div class="placeholder" id="chart-area" data-label="{esc(slide.chart_label)}" '
        f'style="{box(60, 320, 370, 285, background="rgba(128,128,128,0.3)", border_radius="8pt")}"></div>'
    )
    return wrap_slide(background_path, "\n".join(parts))


def features_slide(slide: FeaturesSlide, background_path: Union[str, Path]) -> str:
    """Title band plus up to three white cards."""
    parts = [
        overlay(height="80pt", opacity=0.5),
        f'<h2 style="{box(24, 32, 656, text_align="center", font_size="24pt", font_weight="700", line_height="1.2")}">'
        f'{esc(slide.title)}</h2>',
    ]
    features = slide.features[:3]
    for i, _ in enumerate(features):
        parts.append(
            f'<div class="card{i}" style="{box(110, 32 + i * 228, 200, 250, background="rgba(255,255,255,0.92)", border_radius="8pt")}"></div>'
        )
    for i, feature in enumerate(features):
        left = 48 + i * 228
        parts.append(
            f'<p class="ct{i}" style="{box(140, left, 168, text_align="center", font_size="14pt", font_weight="700", color="#1a1a2e")}">'
            f'{esc(feature.title)}</p>'
        )
        parts.append(
            f'<p class="cd{i}" style="{box(170, left, 168, text_align="center", font_size="11pt", line_height="1.4", color="rgba(26,26,46,0.8)")}">'
            f'{esc(feature.description)}</p>'
        )
    return wrap_slide(background_path, "\n".join(parts))


def closing_slide(slide: ClosingSlide, background_path: Union[str, Path]) -> str:
    """Centered heading and contact lines over a full dark overlay."""
    parts = [
        overlay(),
        f'<h1 style="{box(150, 60, 600, text_align="center", font_size="36pt", font_weight="700", line_height="1.2")}">'
        f'{esc(slide.heading or "Thank you")}</h1>',
    ]
    for i, line in enumerate(slide.contact_lines):
        parts.append(
            f'<p class="cl{i}" style="{box(220 + i * 28, 80, 560, text_align="center", font_size="15pt", line_height="1.5", color="rgba(255,255,255,0.85)")}">'
            f'{esc(line)}</p>'
        )
    return wrap_slide(background_path, "\n".join(parts))


TEMPLATES: Dict[str, RenderFn] = {
    "title": title_slide,
    "content": content_slide,
    "data": data_slide,
    "features": features_slide,
    "closing": closing_slide,
}
