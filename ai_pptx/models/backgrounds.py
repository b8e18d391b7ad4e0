"""
Background Models

A BackgroundSet is index-aligned with the slide sequence: exactly one
entry per slide, even on partial failure (gaps are filled by fallback
images, never left empty).
"""

from enum import Enum
from pathlib import Path
from typing import List
from pydantic import BaseModel, Field, model_validator


class BackgroundSource(str, Enum):
    """Where a background image came from."""
    GENERATED = "generated"  # Whisk
    FALLBACK = "fallback"    # Local gradient


class BackgroundImage(BaseModel):
    index: int = Field(..., ge=0)
    slide_type: str
    path: Path
    source: BackgroundSource

    @property
    def is_fallback(self) -> bool:
        return self.source == BackgroundSource.FALLBACK


class BackgroundSet(BaseModel):
    """Ordered backgrounds, one per slide."""

    entries: List[BackgroundImage] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_alignment(self) -> "BackgroundSet":
        for position, entry in enumerate(self.entries):
            if entry.index != position:
                raise ValueError(
                    f"Background at position {position} has index {entry.index}"
                )
        return self

    @property
    def paths(self) -> List[Path]:
        return [entry.path for entry in self.entries]

    @property
    def fallback_count(self) -> int:
        return sum(1 for entry in self.entries if entry.is_fallback)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> BackgroundImage:
        return self.entries[index]
