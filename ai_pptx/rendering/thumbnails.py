"""
Thumbnail Generator

Renders a finished .pptx into a single contact-sheet JPEG for human review:

    soffice --headless --convert-to pdf   (LibreOffice, pptx -> pdf)
    pdftoppm -jpeg                         (poppler, pdf -> one jpg per slide)
    Pillow                                 (grid of slides, `cols` per row)

Output: <output_prefix>.jpg. Every failure is raised as ThumbnailError;
the deck builder treats it as non-fatal.
"""

import asyncio
import re
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Union

from PIL import Image, ImageDraw

from ai_pptx.errors import ThumbnailError
from ai_pptx.utils.logger import setup_logger
from config.settings import get_settings

logger = setup_logger(__name__)

CELL_WIDTH = 400
GAP = 12
LABEL_HEIGHT = 22
SHEET_BACKGROUND = (32, 32, 32)
LABEL_COLOR = (220, 220, 220)


def _page_sort_key(path: Path):
    match = re.search(r"(\d+)$", path.stem)
    return (int(match.group(1)) if match else 10**9, path.name.lower())


def build_contact_sheet(images: Sequence[Union[str, Path]], cols: int, cell_width: int = CELL_WIDTH) -> Image.Image:
    """Lay out slide images in a grid, numbered from 1."""
    if not images:
        raise ThumbnailError("No slide images to lay out")
    cols = max(1, min(cols, len(images)))

    cells: List[Image.Image] = []
    for image_path in images:
        with Image.open(image_path) as img:
            ratio = cell_width / img.width
            cells.append(img.convert("RGB").resize((cell_width, max(1, round(img.height * ratio)))))

    cell_height = max(cell.height for cell in cells) + LABEL_HEIGHT
    rows = (len(cells) + cols - 1) // cols
    sheet = Image.new(
        "RGB",
        (cols * cell_width + (cols + 1) * GAP, rows * cell_height + (rows + 1) * GAP),
        SHEET_BACKGROUND
    )
    draw = ImageDraw.Draw(sheet)

    for i, cell in enumerate(cells):
        row, col = divmod(i, cols)
        x = GAP + col * (cell_width + GAP)
        y = GAP + row * (cell_height + GAP)
        sheet.paste(cell, (x, y))
        draw.text((x, y + cell.height + 4), str(i + 1), fill=LABEL_COLOR)

    return sheet


class ThumbnailGenerator:
    """Best-effort contact sheet generation via LibreOffice + poppler."""

    def __init__(self, cols: Optional[int] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.cols = cols or settings.THUMBNAIL_COLS
        self.timeout = timeout or settings.THUMBNAIL_TIMEOUT

    async def _run(self, *args: str) -> None:
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )
        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ThumbnailError(f"{Path(args[0]).name} timed out after {self.timeout}s")

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()[:300]
            raise ThumbnailError(f"{Path(args[0]).name} exited with {process.returncode}: {message}")

    async def generate(
        self,
        pptx_path: Union[str, Path],
        output_prefix: Union[str, Path],
        cols: Optional[int] = None
    ) -> Path:
        """
        Render `pptx_path` to `<output_prefix>.jpg`.

        Raises:
            ThumbnailError: If a tool is missing or any step fails
        """
        soffice = shutil.which("soffice") or shutil.which("libreoffice")
        if not soffice:
            raise ThumbnailError("LibreOffice not found (soffice/libreoffice)")
        pdftoppm = shutil.which("pdftoppm")
        if not pdftoppm:
            raise ThumbnailError("pdftoppm not found (install poppler-utils)")

        pptx_path = Path(pptx_path)
        output_path = Path(f"{output_prefix}.jpg")

        with tempfile.TemporaryDirectory(prefix="ai-pptx-thumbs-") as tmp:
            tmp_dir = Path(tmp)
            await self._run(
                soffice, "--headless", "--nologo", "--nolockcheck", "--norestore",
                "--convert-to", "pdf", "--outdir", str(tmp_dir), str(pptx_path)
            )
            pdf_path = tmp_dir / f"{pptx_path.stem}.pdf"
            if not pdf_path.is_file():
                raise ThumbnailError("LibreOffice produced no PDF")

            await self._run(pdftoppm, "-jpeg", "-r", "60", str(pdf_path), str(tmp_dir / "slide"))
            pages = sorted(tmp_dir.glob("slide*.jpg"), key=_page_sort_key)

            sheet = build_contact_sheet(pages, cols or self.cols)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            sheet.save(output_path, format="JPEG", quality=85)

        logger.info(f"Thumbnails saved to: {output_path}")
        return output_path
