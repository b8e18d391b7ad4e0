"""
AI-PPTX - presentations with AI-generated, style-consistent backgrounds.
Main entry point when running from a source checkout.

Usage:
    python main.py --name test-ai --style "dark minimalist with neon accents"
    python main.py --name brand --style "corporate blue" --refs logo.png,photo.jpg

Pipeline:
    1. Backgrounds - Whisk (anchor slide first, then the rest conditioned on it)
                     or local gradient fallbacks when Whisk is unavailable
    2. Markup      - one HTML file per slide from the slide templates
    3. Assembly    - HTML -> presentation.pptx (python-pptx)
    4. Thumbnails  - contact sheet via LibreOffice + poppler (optional)
"""

from ai_pptx.cli import main

if __name__ == "__main__":
    main()
