"""
Clients Package for AI-PPTX

Contains HTTP clients for external service integrations.
"""

from .whisk_client import (
    WhiskClient,
    normalize_aspect_ratio,
    save_base64_image
)

__all__ = [
    'WhiskClient',
    'normalize_aspect_ratio',
    'save_base64_image'
]
