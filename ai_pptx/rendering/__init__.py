"""
Rendering Package for AI-PPTX

Slide HTML templates, the HTML -> PPTX assembler and the thumbnail
contact sheet.
"""

from .slide_templates import TEMPLATES, SLIDE_W, SLIDE_H
from .html_assembler import HtmlSlideAssembler, AssembledSlide
from .thumbnails import ThumbnailGenerator, build_contact_sheet

__all__ = [
    'TEMPLATES',
    'SLIDE_W',
    'SLIDE_H',
    'HtmlSlideAssembler',
    'AssembledSlide',
    'ThumbnailGenerator',
    'build_contact_sheet',
]
