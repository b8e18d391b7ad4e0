"""
Deck Build Models

Inputs and outputs of a single deck build, plus the build phase state
machine: init -> backgrounds_ready -> markup_ready -> assembled -> done.
There is no rollback; a failure in a later phase leaves earlier files on
disk for inspection.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from .backgrounds import BackgroundSet
from .slides import SlideDescriptor, parse_slide


class BuildPhase(str, Enum):
    INIT = "init"
    BACKGROUNDS_READY = "backgrounds_ready"
    MARKUP_READY = "markup_ready"
    ASSEMBLED = "assembled"
    DONE = "done"


class Placeholder(BaseModel):
    """A region reserved for later non-image content (e.g. a chart)."""
    id: str
    slide_index: int = Field(..., description="Position of the slide in the assembled deck")
    left_pt: float = 0.0
    top_pt: float = 0.0
    width_pt: float = 0.0
    height_pt: float = 0.0


class BuildConfig(BaseModel):
    """Everything needed to build one deck."""
    name: str = Field(..., min_length=1, description="Presentation name (output directory)")
    style: str = Field(..., min_length=1, description="Style description for background generation")
    refs: List[Path] = Field(default_factory=list, description="Reference image paths")
    slides: List[SlideDescriptor] = Field(..., min_length=1)
    output_base: Optional[Path] = Field(None, description="Base output directory")

    @field_validator("name")
    @classmethod
    def _no_path_separators(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            raise ValueError("name must not contain path separators")
        return value

    @field_validator("slides", mode="before")
    @classmethod
    def _parse_raw_slides(cls, value):
        if isinstance(value, list):
            return [parse_slide(item) if isinstance(item, dict) else item for item in value]
        return value


class BuildResult(BaseModel):
    pptx_path: Path
    output_dir: Path
    backgrounds: BackgroundSet
    html_files: List[Path] = Field(default_factory=list)
    placeholders: List[Placeholder] = Field(default_factory=list)
    thumbnail_path: Optional[Path] = None
    phase: BuildPhase = BuildPhase.DONE
