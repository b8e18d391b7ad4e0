"""
Core Module for AI-PPTX

Background generation with style consistency, gradient fallbacks and the
deck build orchestrator.
"""

from .fallback_backgrounds import FallbackBackgroundGenerator, gradient_for, render_fallback_image
from .style_consistency import StyleConsistencyOrchestrator, build_background_prompt
from .deck_builder import DeckBuilder

__all__ = [
    # Fallbacks
    'FallbackBackgroundGenerator',
    'gradient_for',
    'render_fallback_image',

    # Backgrounds
    'StyleConsistencyOrchestrator',
    'build_background_prompt',

    # Build
    'DeckBuilder',
]
