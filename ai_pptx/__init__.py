"""
AI-PPTX: slide decks with AI-generated, style-consistent backgrounds.

Pipeline: Whisk backgrounds (or local gradient fallbacks) -> HTML slides
-> PPTX assembly -> contact-sheet thumbnails.
"""

__version__ = "1.0.0"
