"""
Fallback Background Generator

Local, deterministic gradient backgrounds used when Whisk is unavailable
or a single generation fails. No network, no randomness: the same slide
type always produces the same image; the index only changes the filename.

Each background is 1920x1080: a diagonal three-stop linear gradient from
the slide type's palette plus two translucent circles for texture.
Write failures propagate; there is no fallback beneath the fallback.
"""

from pathlib import Path
from typing import Dict, List, NamedTuple, Tuple, Union

from PIL import Image, ImageChops, ImageColor, ImageDraw

from ai_pptx.models.slides import slide_type_slug
from ai_pptx.utils.logger import setup_logger

logger = setup_logger(__name__)

WIDTH = 1920
HEIGHT = 1080


class Gradient(NamedTuple):
    start: str
    via: str
    end: str


GRADIENTS: Dict[str, Gradient] = {
    "title": Gradient("#0f0c29", "#302b63", "#24243e"),
    "content": Gradient("#1a1a2e", "#16213e", "#0f3460"),
    "data": Gradient("#0d1117", "#161b22", "#21262d"),
    "features": Gradient("#1a1a2e", "#1f2937", "#111827"),
    "closing": Gradient("#2d1b69", "#1e1145", "#0f0c29"),
}

DEFAULT_GRADIENT_TYPE = "content"

# (cx, cy, radius) as fractions of width/height/height, color stop, opacity
CIRCLES = (
    (0.7, 0.3, 0.4, "via", 0.3),
    (0.3, 0.7, 0.25, "end", 0.2),
)


def gradient_for(slide_type: str) -> Gradient:
    """Palette for a slide type; unknown types use the content palette."""
    return GRADIENTS.get(slide_type, GRADIENTS[DEFAULT_GRADIENT_TYPE])


def fallback_filename(slide_type: str, index: int) -> str:
    return f"bg-{index}-{slide_type_slug(slide_type)}.png"


def _stop_lut(gradient: Gradient) -> Tuple[List[int], List[int], List[int]]:
    """256-entry lookup tables mapping gradient position to R, G, B (stops at 0, 0.5, 1)."""
    stops = [ImageColor.getrgb(c) for c in gradient]
    red, green, blue = [], [], []
    for level in range(256):
        t = level / 255
        if t <= 0.5:
            low, high, local = stops[0], stops[1], t / 0.5
        else:
            low, high, local = stops[1], stops[2], (t - 0.5) / 0.5
        rgb = [round(low[c] + (high[c] - low[c]) * local) for c in range(3)]
        red.append(rgb[0])
        green.append(rgb[1])
        blue.append(rgb[2])
    return red, green, blue


def _diagonal_ramp(width: int, height: int) -> Image.Image:
    """Grayscale ramp from top-left (0) to bottom-right (255): t = (x/W + y/H) / 2."""
    row = Image.new("L", (width, 1))
    row.putdata([round(x / (width - 1) * 127.5) for x in range(width)])
    column = Image.new("L", (1, height))
    column.putdata([round(y / (height - 1) * 127.5) for y in range(height)])
    return ImageChops.add(
        row.resize((width, height), Image.Resampling.NEAREST),
        column.resize((width, height), Image.Resampling.NEAREST)
    )


def render_fallback_image(slide_type: str, width: int = WIDTH, height: int = HEIGHT) -> Image.Image:
    """Render the fallback background for a slide type in memory."""
    gradient = gradient_for(slide_type)
    ramp = _diagonal_ramp(width, height)
    red, green, blue = _stop_lut(gradient)
    base = Image.merge("RGB", (ramp.point(red), ramp.point(green), ramp.point(blue))).convert("RGBA")

    # One layer per circle so overlapping circles blend
    for cx, cy, radius, stop, opacity in CIRCLES:
        x, y, r = cx * width, cy * height, radius * height
        color = ImageColor.getrgb(getattr(gradient, stop))
        overlay = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        ImageDraw.Draw(overlay).ellipse((x - r, y - r, x + r, y + r), fill=color + (round(255 * opacity),))
        base = Image.alpha_composite(base, overlay)

    return base.convert("RGB")


class FallbackBackgroundGenerator:
    """Writes fallback backgrounds into one output directory."""

    def __init__(self, output_dir: Union[str, Path]):
        self.output_dir = Path(output_dir)

    def generate(self, slide_type: str, index: int) -> Path:
        """
        Write the fallback background for (slide_type, index).

        Returns:
            Path of the PNG file (bg-<index>-<type>.png)

        Raises:
            OSError: If the image cannot be written
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        out_path = self.output_dir / fallback_filename(slide_type, index)
        render_fallback_image(slide_type).save(out_path, format="PNG")
        logger.debug(f"Fallback background written: {out_path.name}")
        return out_path
