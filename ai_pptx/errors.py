"""
Exceptions for the AI-PPTX deck builder.

Remote image generation never raises for expected failures (it returns
GenerationResult / AnalysisResult objects). Exceptions are reserved for
conditions that abort a build.
"""


class DeckBuildError(Exception):
    """Base class for errors that abort a deck build."""


class AssemblyError(DeckBuildError):
    """Raised when a rendered slide cannot be converted into the presentation."""

    def __init__(self, message: str, html_path: str = None):
        self.html_path = html_path
        if html_path:
            message = f"{message} ({html_path})"
        super().__init__(message)


class ThumbnailError(DeckBuildError):
    """Raised when the contact-sheet thumbnail cannot be produced."""


class TransientServiceError(Exception):
    """
    A remote failure worth retrying (timeout, 429, 5xx).

    Only raised inside the Whisk client's retry loop; callers receive
    a failed GenerationResult instead.
    """

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)
