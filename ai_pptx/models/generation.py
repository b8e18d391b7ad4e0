"""
Image Generation Models

Credential, style references and the uniform result shapes returned by
every Whisk call. Callers branch on `success` only; partial fields are
never used to infer an outcome.
"""

import time
from typing import List, Optional
from pydantic import BaseModel, Field


MEDIA_CATEGORY_STYLE = "MEDIA_CATEGORY_STYLE"


class Credential(BaseModel):
    """Cached Whisk access token. Read-only to this system."""

    access_token: str = Field(..., alias="accessToken", min_length=1)
    expires_at: int = Field(..., alias="expiresAt", gt=0, description="Epoch milliseconds")

    class Config:
        populate_by_name = True
        frozen = True
        extra = "ignore"

    def expires_within(self, seconds: float, now_ms: Optional[int] = None) -> bool:
        """True if the token expires within `seconds` of now."""
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        return self.expires_at < now_ms + int(seconds * 1000)

    def minutes_remaining(self, now_ms: Optional[int] = None) -> int:
        now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        return max(0, (self.expires_at - now_ms) // 60000)


class StyleReference(BaseModel):
    """
    An uploaded, captioned image usable as style conditioning.

    Created after a successful upload+caption round-trip and held only
    for the duration of one deck build.
    """

    category: str = Field(MEDIA_CATEGORY_STYLE, description="Whisk media category")
    media_id: str = Field(..., description="uploadMediaGenerationId returned by Whisk")
    caption: str = Field("", description="AI caption (empty if captioning failed)")

    class Config:
        frozen = True


class GenerationResult(BaseModel):
    """Result of a text-to-image or reference-to-image call."""

    success: bool
    images: List[str] = Field(default_factory=list, description="Base64-encoded images")
    error: Optional[str] = None

    @classmethod
    def ok(cls, images: List[str]) -> "GenerationResult":
        return cls(success=True, images=images)

    @classmethod
    def failed(cls, error: str) -> "GenerationResult":
        return cls(success=False, error=error)


class UploadResult(BaseModel):
    success: bool
    media_id: Optional[str] = None
    error: Optional[str] = None


class CaptionResult(BaseModel):
    success: bool
    caption: str = ""
    error: Optional[str] = None


class AnalysisResult(BaseModel):
    """Combined upload + caption outcome. Success depends on the upload only."""

    success: bool
    media_id: Optional[str] = None
    caption: str = ""
    error: Optional[str] = None

    def to_reference(self, category: str = MEDIA_CATEGORY_STYLE) -> StyleReference:
        if not self.success or not self.media_id:
            raise ValueError("Cannot build a StyleReference from a failed analysis")
        return StyleReference(category=category, media_id=self.media_id, caption=self.caption)
