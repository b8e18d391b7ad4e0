"""
Models Package for AI-PPTX

Contains Pydantic models for credentials, generation results, slides,
backgrounds and build results.
"""

from .generation import (
    MEDIA_CATEGORY_STYLE,
    Credential,
    StyleReference,
    GenerationResult,
    UploadResult,
    CaptionResult,
    AnalysisResult
)

from .slides import (
    SlideType,
    SlideDescriptor,
    Metric,
    Feature,
    TitleSlide,
    ContentSlide,
    DataSlide,
    FeaturesSlide,
    ClosingSlide,
    parse_slide,
    parse_slides,
    slide_type_slug
)

from .backgrounds import BackgroundSource, BackgroundImage, BackgroundSet

from .build import BuildPhase, Placeholder, BuildConfig, BuildResult

__all__ = [
    'MEDIA_CATEGORY_STYLE',
    'Credential',
    'StyleReference',
    'GenerationResult',
    'UploadResult',
    'CaptionResult',
    'AnalysisResult',
    'SlideType',
    'SlideDescriptor',
    'Metric',
    'Feature',
    'TitleSlide',
    'ContentSlide',
    'DataSlide',
    'FeaturesSlide',
    'ClosingSlide',
    'parse_slide',
    'parse_slides',
    'slide_type_slug',
    'BackgroundSource',
    'BackgroundImage',
    'BackgroundSet',
    'BuildPhase',
    'Placeholder',
    'BuildConfig',
    'BuildResult',
]
