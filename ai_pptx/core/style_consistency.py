"""
Style-Consistency Orchestrator

Produces one background per slide so that the visual style set by the
first slide (the anchor) propagates to the rest of the deck.

Pipeline (strictly sequential, slide 0 first):

    credential gate  -> None when no valid Whisk token (caller falls back for the whole deck)
    user references  -> upload + caption each existing ref image, drop failures
    Stage A (anchor) -> generate slide 0; failure returns None for the whole phase
                        save it, then upload + caption the anchor itself and
                        append it to the consistency references
    Stage B (fold)   -> slides 1..N-1 conditioned on the consistency references;
                        a failed slide gets a local fallback and the fold continues

The result always has exactly one entry per slide.
"""

import base64
import binascii
from pathlib import Path
from typing import Callable, List, NamedTuple, Optional, Sequence, Union

from ai_pptx.clients.whisk_client import WhiskClient
from ai_pptx.core.fallback_backgrounds import FallbackBackgroundGenerator
from ai_pptx.models.backgrounds import BackgroundImage, BackgroundSet, BackgroundSource
from ai_pptx.models.generation import (
    MEDIA_CATEGORY_STYLE,
    Credential,
    GenerationResult,
    StyleReference,
)
from ai_pptx.models.slides import SlideDescriptor, slide_type_slug
from ai_pptx.utils.logger import setup_logger
from ai_pptx.utils.token_store import CredentialProvider
from config.settings import get_settings

logger = setup_logger(__name__)


# Steers the model toward leaving room for what each template draws on top
TYPE_INSTRUCTIONS = {
    "title": "Central focal point, slightly darker edges, space for centered text",
    "content": "Subtle, not distracting, darker left area for text overlay",
    "data": "Clean, professional, muted tones, will not compete with charts",
    "features": "Subtle pattern, even lighting for placing white cards on top",
    "closing": "Warm, inviting, central focal point, space for centered text",
}


def build_background_prompt(style_description: str, slide_type: str) -> str:
    """Full Whisk prompt for one slide background."""
    parts = [style_description.strip().rstrip(".")]
    instruction = TYPE_INSTRUCTIONS.get(slide_type)
    if instruction:
        parts.append(instruction)
    parts.append("No text, no logos, no people. Abstract background only. 16:9.")
    return ". ".join(parts)


def generated_filename(slide_type: str, index: int) -> str:
    return f"bg-{index}-{slide_type_slug(slide_type)}.png"


class AnchorSeed(NamedTuple):
    """Output of Stage A: the anchor background and the references later slides cite."""
    background: BackgroundImage
    references: List[StyleReference]


class StyleConsistencyOrchestrator:
    """
    Sequences Whisk calls across a deck for a consistent visual style.

    Usage:
        orchestrator = StyleConsistencyOrchestrator(WhiskClient(), FileCredentialProvider())
        backgrounds = await orchestrator.generate_backgrounds(
            output_dir, "dark minimalist with neon accents", ref_paths, slides
        )
        if backgrounds is None:
            ...  # Whisk unavailable or anchor failed: use fallbacks for every slide
    """

    def __init__(
        self,
        client: WhiskClient,
        credential_provider: CredentialProvider,
        aspect_ratio: Optional[str] = None,
        fallback_factory: Callable[[Path], FallbackBackgroundGenerator] = FallbackBackgroundGenerator
    ):
        self.client = client
        self.credential_provider = credential_provider
        self.aspect_ratio = aspect_ratio or get_settings().BACKGROUND_ASPECT_RATIO
        self.fallback_factory = fallback_factory

    async def generate_backgrounds(
        self,
        output_dir: Union[str, Path],
        style_description: str,
        ref_paths: Optional[Sequence[Union[str, Path]]],
        slides: Sequence[SlideDescriptor]
    ) -> Optional[BackgroundSet]:
        """
        Generate one background per slide.

        Returns:
            BackgroundSet aligned with `slides`, or None when Whisk is
            unavailable (no credential) or the anchor generation failed.
        """
        if not slides:
            raise ValueError("At least one slide is required")

        output_dir = Path(output_dir)

        credential = self.credential_provider.load_credential()
        if credential is None:
            logger.info("No valid Whisk credential, backgrounds unavailable")
            return None

        user_refs = await self._ingest_references(ref_paths or [], credential)

        seed = await self._generate_anchor(output_dir, style_description, slides[0], user_refs, credential)
        if seed is None:
            return None

        followers = await self._generate_followers(
            output_dir, style_description, slides, seed.references, credential
        )

        backgrounds = BackgroundSet(entries=[seed.background] + followers)
        logger.info(
            f"Backgrounds generated: {len(backgrounds)} ({backgrounds.fallback_count} fallback)",
            extra={"consistency_refs": len(seed.references)}
        )
        return backgrounds

    async def _ingest_references(
        self,
        ref_paths: Sequence[Union[str, Path]],
        credential: Credential
    ) -> List[StyleReference]:
        """Upload + caption each existing reference image; failures contribute nothing."""
        user_refs: List[StyleReference] = []

        for ref_path in ref_paths:
            path = Path(ref_path).expanduser()
            if not path.is_file():
                logger.warning(f"Reference image not found, skipping: {path}")
                continue

            try:
                image_bytes = path.read_bytes()
            except OSError as e:
                logger.warning(f"Cannot read reference image {path}: {e}")
                continue

            analysis = await self.client.analyze_image(image_bytes, MEDIA_CATEGORY_STYLE, credential)
            if analysis.success:
                user_refs.append(analysis.to_reference(MEDIA_CATEGORY_STYLE))
                logger.info(f"Reference uploaded: {path.name}")
            else:
                logger.warning(f"Reference upload failed for {path.name}: {analysis.error}")

        return user_refs

    async def _request(
        self,
        prompt: str,
        references: List[StyleReference],
        credential: Credential
    ) -> GenerationResult:
        if references:
            return await self.client.generate_from_references(
                prompt, self.aspect_ratio, credential, list(references)
            )
        return await self.client.generate_from_text(prompt, self.aspect_ratio, credential)

    @staticmethod
    def _decode_first_image(result: GenerationResult) -> Optional[bytes]:
        if not result.success or not result.images:
            return None
        try:
            return base64.b64decode(result.images[0], validate=True)
        except (binascii.Error, ValueError):
            return None

    async def _generate_anchor(
        self,
        output_dir: Path,
        style_description: str,
        first_slide: SlideDescriptor,
        user_refs: List[StyleReference],
        credential: Credential
    ) -> Optional[AnchorSeed]:
        """Stage A: slide 0 is all-or-nothing; it defines the style every later slide cites."""
        slide_type = first_slide.type
        prompt = build_background_prompt(style_description, slide_type)

        result = await self._request(prompt, user_refs, credential)
        image_bytes = self._decode_first_image(result)
        if image_bytes is None:
            logger.error(
                f"Anchor background generation failed: {result.error or 'undecodable image data'}"
            )
            return None

        output_dir.mkdir(parents=True, exist_ok=True)
        anchor_path = output_dir / generated_filename(slide_type, 0)
        anchor_path.write_bytes(image_bytes)

        references = list(user_refs)
        anchor_analysis = await self.client.analyze_image(image_bytes, MEDIA_CATEGORY_STYLE, credential)
        if anchor_analysis.success:
            references.append(anchor_analysis.to_reference(MEDIA_CATEGORY_STYLE))
        else:
            logger.warning(
                f"Anchor upload failed, continuing with {len(user_refs)} user reference(s): "
                f"{anchor_analysis.error}"
            )

        background = BackgroundImage(
            index=0, slide_type=slide_type, path=anchor_path, source=BackgroundSource.GENERATED
        )
        return AnchorSeed(background=background, references=references)

    async def _generate_followers(
        self,
        output_dir: Path,
        style_description: str,
        slides: Sequence[SlideDescriptor],
        references: List[StyleReference],
        credential: Credential
    ) -> List[BackgroundImage]:
        """Stage B: slides 1..N-1 in order; each may fail independently."""
        fallback = self.fallback_factory(output_dir)
        backgrounds: List[BackgroundImage] = []

        for index in range(1, len(slides)):
            slide_type = slides[index].type
            prompt = build_background_prompt(style_description, slide_type)

            result = await self._request(prompt, references, credential)
            image_bytes = self._decode_first_image(result)

            if image_bytes is None:
                logger.warning(
                    f"Background {index} (\"{slide_type}\") failed: "
                    f"{result.error or 'undecodable image data'}, using fallback"
                )
                backgrounds.append(BackgroundImage(
                    index=index,
                    slide_type=slide_type,
                    path=fallback.generate(slide_type, index),
                    source=BackgroundSource.FALLBACK
                ))
                continue

            out_path = output_dir / generated_filename(slide_type, index)
            out_path.write_bytes(image_bytes)
            backgrounds.append(BackgroundImage(
                index=index, slide_type=slide_type, path=out_path, source=BackgroundSource.GENERATED
            ))

        return backgrounds
