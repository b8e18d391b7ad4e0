"""
Slide Descriptor Models

Typed slide descriptors supplied by the caller. Order within a deck is
significant and preserved end-to-end.

Known types: title, content, data, features, closing. Descriptors with any
other `type` parse into the generic SlideDescriptor so the markup phase can
skip them with a warning instead of failing validation.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


class SlideType(str, Enum):
    """Slide types with a template and a background palette."""
    TITLE = "title"
    CONTENT = "content"
    DATA = "data"
    FEATURES = "features"
    CLOSING = "closing"


class SlideDescriptor(BaseModel):
    """Base descriptor; unknown slide types are kept as-is."""
    type: str = Field(..., description="Slide type discriminator")

    class Config:
        extra = "allow"
        frozen = True


class Metric(BaseModel):
    value: str
    label: str = ""


class Feature(BaseModel):
    title: str
    description: str = ""


class TitleSlide(SlideDescriptor):
    type: Literal["title"] = "title"
    title: str
    subtitle: Optional[str] = None
    date: Optional[str] = None


class ContentSlide(SlideDescriptor):
    type: Literal["content"] = "content"
    title: str
    bullets: List[str] = Field(default_factory=list)


class DataSlide(SlideDescriptor):
    type: Literal["data"] = "data"
    title: str
    metrics: List[Metric] = Field(default_factory=list, description="Up to 3 are rendered")
    chart_label: Optional[str] = Field(None, alias="chartLabel")

    class Config:
        extra = "allow"
        frozen = True
        populate_by_name = True


class FeaturesSlide(SlideDescriptor):
    type: Literal["features"] = "features"
    title: str
    features: List[Feature] = Field(default_factory=list, description="Up to 3 are rendered")


class ClosingSlide(SlideDescriptor):
    type: Literal["closing"] = "closing"
    heading: str = "Thank you"
    contact_lines: List[str] = Field(default_factory=list, alias="contactLines")

    class Config:
        extra = "allow"
        frozen = True
        populate_by_name = True


SLIDE_MODELS = {
    SlideType.TITLE.value: TitleSlide,
    SlideType.CONTENT.value: ContentSlide,
    SlideType.DATA.value: DataSlide,
    SlideType.FEATURES.value: FeaturesSlide,
    SlideType.CLOSING.value: ClosingSlide,
}


def parse_slide(data: Dict[str, Any]) -> SlideDescriptor:
    """Parse a raw descriptor dict into its typed model."""
    model = SLIDE_MODELS.get(str(data.get("type", "")))
    if model is None:
        return SlideDescriptor.model_validate(data)
    return model.model_validate(data)


def parse_slides(items: List[Dict[str, Any]]) -> List[SlideDescriptor]:
    return [parse_slide(item) for item in items]


def slide_type_slug(slide_type: str) -> str:
    """Slide type reduced to characters safe in a file name ("chart/pie" -> "chart_pie")."""
    return re.sub(r"[^\w-]", "_", slide_type) or "slide"
