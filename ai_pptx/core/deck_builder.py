"""
Deck Build Orchestrator

Drives the four build phases, strictly in order:

    1. Backgrounds  - Whisk with style consistency, or gradient fallbacks for every slide
    2. Markup       - one HTML file per slide (unknown slide types are skipped)
    3. Assembly     - HTML files -> presentation.pptx, placeholders collected
    4. Thumbnails   - best-effort contact sheet; failure never fails the build

Output layout:
    <output_base>/outputs/<name>/
        images/bg-<i>-<type>.png
        slide<i>-<type>.html
        presentation.pptx
        thumbnails.jpg

Backgrounds are never regenerated once decided, and nothing is rolled back:
if assembly fails, the images and HTML stay on disk for inspection.
"""

from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ai_pptx.core.fallback_backgrounds import FallbackBackgroundGenerator
from ai_pptx.core.style_consistency import StyleConsistencyOrchestrator
from ai_pptx.models.backgrounds import BackgroundImage, BackgroundSet, BackgroundSource
from ai_pptx.models.build import BuildConfig, BuildPhase, BuildResult, Placeholder
from ai_pptx.models.slides import SlideDescriptor, slide_type_slug
from ai_pptx.rendering.html_assembler import HtmlSlideAssembler
from ai_pptx.rendering.slide_templates import TEMPLATES, RenderFn
from ai_pptx.rendering.thumbnails import ThumbnailGenerator
from ai_pptx.utils.logger import setup_logger
from config.settings import get_settings

logger = setup_logger(__name__)

PPTX_FILENAME = "presentation.pptx"
THUMBNAIL_PREFIX = "thumbnails"


class DeckBuilder:
    """
    Wires background generation, templates, assembly and thumbnails together.

    Usage:
        builder = DeckBuilder(
            StyleConsistencyOrchestrator(WhiskClient(), FileCredentialProvider())
        )
        result = await builder.build(BuildConfig(name="q3-review", style="...", slides=[...]))
    """

    def __init__(
        self,
        orchestrator: StyleConsistencyOrchestrator,
        fallback_factory: Callable[[Path], FallbackBackgroundGenerator] = FallbackBackgroundGenerator,
        templates: Optional[Dict[str, RenderFn]] = None,
        assembler: Optional[HtmlSlideAssembler] = None,
        thumbnails: Optional[ThumbnailGenerator] = None,
        thumbnails_enabled: Optional[bool] = None
    ):
        settings = get_settings()
        self.orchestrator = orchestrator
        self.fallback_factory = fallback_factory
        self.templates = templates if templates is not None else TEMPLATES
        self.assembler = assembler or HtmlSlideAssembler()
        self.thumbnails = thumbnails or ThumbnailGenerator()
        self.thumbnails_enabled = (
            thumbnails_enabled if thumbnails_enabled is not None else settings.THUMBNAIL_ENABLED
        )
        self.default_output_base = settings.resolved_output_base
        self.phase = BuildPhase.INIT

    async def build(self, config: BuildConfig) -> BuildResult:
        """
        Build the deck described by `config`.

        Returns:
            BuildResult with the .pptx path, backgrounds, HTML files and placeholders

        Raises:
            AssemblyError: If the presentation cannot be assembled
            OSError: If fallback images or HTML files cannot be written
        """
        self.phase = BuildPhase.INIT
        output_base = Path(config.output_base) if config.output_base else self.default_output_base
        output_dir = output_base / "outputs" / config.name
        images_dir = output_dir / "images"
        images_dir.mkdir(parents=True, exist_ok=True)

        logger.info(f"Building presentation: {config.name}")
        logger.info(f"Output: {output_dir}")
        logger.info(
            f"Slides: {len(config.slides)} ({', '.join(s.type for s in config.slides)})"
        )

        # === PHASE 1: Backgrounds ===
        backgrounds = await self._backgrounds_phase(images_dir, config)
        self.phase = BuildPhase.BACKGROUNDS_READY

        # === PHASE 2: HTML slides ===
        html_files = self._markup_phase(output_dir, config.slides, backgrounds)
        self.phase = BuildPhase.MARKUP_READY

        # === PHASE 3: Assemble PPTX ===
        pptx_path, placeholders = self._assembly_phase(output_dir, html_files)
        self.phase = BuildPhase.ASSEMBLED

        # === PHASE 4: Thumbnails ===
        thumbnail_path = await self._thumbnail_phase(output_dir, pptx_path)
        self.phase = BuildPhase.DONE

        logger.info(f"Done! Presentation at: {pptx_path}")
        return BuildResult(
            pptx_path=pptx_path,
            output_dir=output_dir,
            backgrounds=backgrounds,
            html_files=html_files,
            placeholders=placeholders,
            thumbnail_path=thumbnail_path,
            phase=self.phase
        )

    async def _backgrounds_phase(self, images_dir: Path, config: BuildConfig) -> BackgroundSet:
        logger.info("--- Phase 1: Generating backgrounds ---")
        backgrounds = await self.orchestrator.generate_backgrounds(
            images_dir, config.style, config.refs, config.slides
        )

        if backgrounds is None:
            logger.info("Whisk unavailable, using gradient fallbacks...")
            backgrounds = self.fallback_backgrounds(images_dir, config.slides)

        logger.info(f"Backgrounds ready: {len(backgrounds)} images")
        return backgrounds

    def fallback_backgrounds(self, images_dir: Path, slides: Sequence[SlideDescriptor]) -> BackgroundSet:
        """Gradient fallback for every slide."""
        fallback = self.fallback_factory(images_dir)
        return BackgroundSet(entries=[
            BackgroundImage(
                index=i,
                slide_type=slide.type,
                path=fallback.generate(slide.type, i),
                source=BackgroundSource.FALLBACK
            )
            for i, slide in enumerate(slides)
        ])

    def _markup_phase(
        self,
        output_dir: Path,
        slides: Sequence[SlideDescriptor],
        backgrounds: BackgroundSet
    ) -> List[Path]:
        logger.info("--- Phase 2: Creating HTML slides ---")
        html_files: List[Path] = []

        for i, slide in enumerate(slides):
            render = self.templates.get(slide.type)
            if render is None:
                logger.warning(f"Unknown slide type: \"{slide.type}\", skipping")
                continue

            html = render(slide, backgrounds[i].path.resolve())
            file_path = output_dir / f"slide{i}-{slide_type_slug(slide.type)}.html"
            file_path.write_text(html, encoding="utf-8")
            html_files.append(file_path)
            logger.info(f"  Created: {file_path.name}")

        return html_files

    def _assembly_phase(self, output_dir: Path, html_files: List[Path]):
        logger.info("--- Phase 3: Assembling PPTX ---")
        presentation = self.assembler.new_presentation()
        placeholders: List[Placeholder] = []

        for html_file in html_files:
            assembled = self.assembler.append_slide(html_file, presentation)
            if assembled.placeholders:
                logger.info(
                    f"  Placeholders in {html_file.name}: "
                    f"{', '.join(p.id for p in assembled.placeholders)}"
                )
                placeholders.extend(assembled.placeholders)

        pptx_path = self.assembler.save(presentation, output_dir / PPTX_FILENAME)
        logger.info(f"  Saved: {pptx_path}")
        return pptx_path, placeholders

    async def _thumbnail_phase(self, output_dir: Path, pptx_path: Path) -> Optional[Path]:
        if not self.thumbnails_enabled:
            return None

        logger.info("--- Phase 4: Generating thumbnails ---")
        try:
            return await self.thumbnails.generate(pptx_path, output_dir / THUMBNAIL_PREFIX)
        except Exception as e:
            logger.error(f"  Thumbnail generation failed: {e}")
            logger.error("  (Ensure LibreOffice and poppler-utils are installed)")
            return None
