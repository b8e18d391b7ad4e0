"""
Whisk Image Generation Client

Wraps the Google Whisk endpoints used for slide backgrounds:
- generateImage: text-to-image (IMAGEN 3.5)
- runImageRecipe: prompt + style references (GEM_PIX for one reference, R2I for several)
- backbone.uploadImage / backbone.captionImage: turn an image into a reusable reference

Every operation returns a result object (GenerationResult, UploadResult,
CaptionResult, AnalysisResult). Network and HTTP failures are captured in
the result, never raised: the background pipeline branches on `success`
to decide when to fall back to local gradients.

Transient failures (timeouts, transport errors, HTTP 429/5xx) are retried
with exponential backoff according to WHISK_MAX_RETRIES before the call
reports failure.

Usage:
    client = WhiskClient()
    result = await client.generate_from_text(
        "Abstract dark blue gradient background", "16:9", credential
    )
    if result.success:
        save_base64_image(result.images[0], Path("bg.png"))
"""

import asyncio
import base64
import random
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx

from ai_pptx.errors import TransientServiceError
from ai_pptx.models.generation import (
    AnalysisResult,
    CaptionResult,
    Credential,
    GenerationResult,
    StyleReference,
    UploadResult,
)
from ai_pptx.utils.logger import setup_logger
from ai_pptx.utils.retry import RETRYABLE_STATUS_CODES, call_with_retry
from config.settings import get_settings

logger = setup_logger(__name__)


ASPECT_RATIO_SQUARE = "IMAGE_ASPECT_RATIO_SQUARE"
ASPECT_RATIO_LANDSCAPE = "IMAGE_ASPECT_RATIO_LANDSCAPE"
ASPECT_RATIO_PORTRAIT = "IMAGE_ASPECT_RATIO_PORTRAIT"

ASPECT_RATIO_MAP: Dict[str, str] = {
    "1:1": ASPECT_RATIO_SQUARE,
    "16:9": ASPECT_RATIO_LANDSCAPE,
    "9:16": ASPECT_RATIO_PORTRAIT,
    "4:3": ASPECT_RATIO_LANDSCAPE,
    "3:4": ASPECT_RATIO_PORTRAIT,
    ASPECT_RATIO_SQUARE: ASPECT_RATIO_SQUARE,
    ASPECT_RATIO_LANDSCAPE: ASPECT_RATIO_LANDSCAPE,
    ASPECT_RATIO_PORTRAIT: ASPECT_RATIO_PORTRAIT,
}

MAX_SEED = 2147483647


def normalize_aspect_ratio(ratio: Optional[str]) -> str:
    """Map "16:9"-style ratios to Whisk enum values; unknown ratios become square."""
    return ASPECT_RATIO_MAP.get(ratio or "", ASPECT_RATIO_SQUARE)


def make_session_id() -> str:
    """Per-call session id, used by Whisk for request tracing only."""
    return f";{int(time.time() * 1000)}"


def make_seed() -> int:
    return random.randrange(MAX_SEED)


def save_base64_image(base64_data: str, file_path: Path) -> Path:
    """Decode base64 image data and write it to file_path (parents are created)."""
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(base64.b64decode(base64_data))
    return file_path


def _extract_images(data: Any) -> List[str]:
    panels = (data or {}).get("imagePanels") or []
    if not panels:
        return []
    generated = panels[0].get("generatedImages") or []
    return [img.get("encodedImage") for img in generated if img.get("encodedImage")]


def _trpc_result(data: Any) -> Dict[str, Any]:
    """Unwrap a tRPC response: result.data.json.result."""
    try:
        return data["result"]["data"]["json"]["result"] or {}
    except (KeyError, TypeError):
        return {}


class WhiskClient:
    """
    Async client for the Whisk image generation API.

    Stateless apart from configuration; the credential is passed per call
    so one client can serve any number of builds.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize Whisk client.

        Args:
            timeout: Override WHISK_TIMEOUT (seconds per request)
            max_retries: Override WHISK_MAX_RETRIES
            retry_base_delay: Override WHISK_RETRY_BASE_DELAY
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        settings = get_settings()
        self.generate_url = settings.WHISK_GENERATE_URL
        self.recipe_url = settings.WHISK_RECIPE_URL
        self.upload_url = settings.WHISK_UPLOAD_URL
        self.caption_url = settings.WHISK_CAPTION_URL
        self.model_default = settings.WHISK_MODEL_DEFAULT
        self.model_ref_single = settings.WHISK_MODEL_REF_SINGLE
        self.model_ref_multiple = settings.WHISK_MODEL_REF_MULTIPLE
        self.timeout = timeout if timeout is not None else settings.WHISK_TIMEOUT
        self.max_retries = max_retries if max_retries is not None else settings.WHISK_MAX_RETRIES
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else settings.WHISK_RETRY_BASE_DELAY
        )
        self.retry_max_delay = settings.WHISK_RETRY_MAX_DELAY
        self.transport = transport

        logger.info(
            "WhiskClient initialized",
            extra={"timeout": self.timeout, "max_retries": self.max_retries}
        )

    def select_reference_model(self, reference_count: int) -> str:
        """Exactly one reference uses the single-reference model, more use the multi-reference one."""
        return self.model_ref_single if reference_count == 1 else self.model_ref_multiple

    @staticmethod
    def _headers(credential: Credential) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {credential.access_token}",
            "Content-Type": "application/json",
            "Origin": "https://labs.google",
        }

    async def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        credential: Credential,
        operation_name: str
    ) -> httpx.Response:
        """
        POST with retries for transient failures.

        Returns the final response (which may be a non-retryable HTTP error);
        raises only when retries are exhausted or the transport fails.
        """
        async def attempt() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload, headers=self._headers(credential))
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise TransientServiceError(
                    f"HTTP {response.status_code}: {response.text[:200]}",
                    status_code=response.status_code
                )
            return response

        return await call_with_retry(
            attempt,
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            operation_name=operation_name
        )

    async def _generate(self, url: str, payload: Dict[str, Any], credential: Credential,
                        operation_name: str) -> GenerationResult:
        try:
            response = await self._post_json(url, payload, credential, operation_name)

            if not response.is_success:
                return GenerationResult.failed(f"HTTP {response.status_code}: {response.text}")

            images = _extract_images(response.json())
            if images:
                return GenerationResult.ok(images)

            return GenerationResult.failed("No image data in response")

        except Exception as e:
            logger.error(
                f"{operation_name} failed: {str(e)}",
                extra={"error_type": type(e).__name__}
            )
            return GenerationResult.failed(str(e) or type(e).__name__)

    async def generate_from_text(
        self,
        prompt: str,
        aspect_ratio: str,
        credential: Credential
    ) -> GenerationResult:
        """
        Generate an image from a text prompt (no references).

        Args:
            prompt: Image description
            aspect_ratio: e.g. "16:9", "1:1" (unknown values fall back to square)
            credential: Valid Whisk credential

        Returns:
            GenerationResult with base64 images on success
        """
        payload = {
            "clientContext": {
                "workflowId": "",
                "tool": "BACKBONE",
                "sessionId": make_session_id(),
            },
            "imageModelSettings": {
                "imageModel": self.model_default,
                "aspectRatio": normalize_aspect_ratio(aspect_ratio),
            },
            "prompt": prompt,
            "mediaCategory": "MEDIA_CATEGORY_BOARD",
            "seed": make_seed(),
        }

        logger.debug(f"Generating image from text ({len(prompt)} chars)")
        return await self._generate(self.generate_url, payload, credential, "Whisk generateImage")

    async def generate_from_references(
        self,
        prompt: str,
        aspect_ratio: str,
        credential: Credential,
        references: List[StyleReference]
    ) -> GenerationResult:
        """
        Generate an image conditioned on uploaded style references.

        One reference selects the single-reference model; two or more
        select the multi-reference model.
        """
        if not references:
            return GenerationResult.failed("At least one reference is required")

        payload = {
            "clientContext": {
                "workflowId": "",
                "tool": "BACKBONE",
                "sessionId": make_session_id(),
            },
            "imageModelSettings": {
                "imageModel": self.select_reference_model(len(references)),
                "aspectRatio": normalize_aspect_ratio(aspect_ratio),
            },
            "userInstruction": prompt,
            "recipeMediaInputs": [
                {
                    "caption": ref.caption or "",
                    "mediaInput": {
                        "mediaCategory": ref.category,
                        "mediaGenerationId": ref.media_id,
                    },
                }
                for ref in references
            ],
            "seed": make_seed(),
        }

        logger.debug(
            f"Generating image with {len(references)} reference(s)",
            extra={"model": payload["imageModelSettings"]["imageModel"]}
        )
        return await self._generate(self.recipe_url, payload, credential, "Whisk runImageRecipe")

    async def upload_reference(
        self,
        image_b64: str,
        category: str,
        credential: Credential
    ) -> UploadResult:
        """Upload a base64 image so it can be cited as a reference."""
        payload = {
            "json": {
                "clientContext": {
                    "workflowId": "",
                    "sessionId": make_session_id(),
                },
                "uploadMediaInput": {
                    "mediaCategory": category,
                    "rawBytes": image_b64,
                },
            }
        }

        try:
            response = await self._post_json(self.upload_url, payload, credential, "Whisk uploadImage")

            if not response.is_success:
                return UploadResult(success=False, error=f"Upload HTTP {response.status_code}")

            media_id = _trpc_result(response.json()).get("uploadMediaGenerationId")
            if media_id:
                return UploadResult(success=True, media_id=media_id)

            return UploadResult(success=False, error="No Media ID returned")

        except Exception as e:
            logger.error(f"Reference upload failed: {str(e)}")
            return UploadResult(success=False, error=str(e) or type(e).__name__)

    async def caption_image(
        self,
        image_b64: str,
        category: str,
        credential: Credential
    ) -> CaptionResult:
        """Ask Whisk for a caption of a base64 image. No candidates means an empty caption."""
        payload = {
            "json": {
                "clientContext": {
                    "workflowId": "",
                    "sessionId": make_session_id(),
                },
                "captionInput": {
                    "candidatesCount": 1,
                    "mediaInput": {
                        "mediaCategory": category,
                        "rawBytes": image_b64,
                    },
                },
            }
        }

        try:
            response = await self._post_json(self.caption_url, payload, credential, "Whisk captionImage")

            if not response.is_success:
                return CaptionResult(success=False, error=f"Caption HTTP {response.status_code}")

            candidates = _trpc_result(response.json()).get("candidates") or []
            if candidates:
                return CaptionResult(success=True, caption=candidates[0].get("output") or "")

            return CaptionResult(success=True, caption="")

        except Exception as e:
            logger.warning(f"Caption request failed: {str(e)}")
            return CaptionResult(success=False, error=str(e) or type(e).__name__)

    async def analyze_image(
        self,
        image_bytes: bytes,
        category: str,
        credential: Credential
    ) -> AnalysisResult:
        """
        Upload an image and caption it concurrently.

        Succeeds iff the upload succeeds; a failed caption degrades to "".
        """
        image_b64 = base64.b64encode(image_bytes).decode("ascii")

        caption_result, upload_result = await asyncio.gather(
            self.caption_image(image_b64, category, credential),
            self.upload_reference(image_b64, category, credential)
        )

        caption = caption_result.caption if caption_result.success else ""

        if upload_result.success:
            return AnalysisResult(success=True, media_id=upload_result.media_id, caption=caption)

        return AnalysisResult(success=False, error=upload_result.error)
