"""
Whisk Credential Store
======================

Reads the access token cached by the external whisk-proxy login flow
(~/.whisk-proxy/token.json by default):

    {"accessToken": "ya29...", "expiresAt": 1767225600000}

A missing, unparseable, incomplete or nearly expired token yields None.
None is the single signal the background pipeline uses to switch the whole
build to local fallback images; it is never raised as an error.

This module never refreshes or rewrites the token.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from ai_pptx.models.generation import Credential
from ai_pptx.utils.logger import setup_logger
from config.settings import get_settings

logger = setup_logger(__name__)


class CredentialProvider(ABC):
    """Source of the Whisk credential for one build attempt."""

    @abstractmethod
    def load_credential(self) -> Optional[Credential]:
        """Return a credential valid for at least the expiry buffer, or None."""


class FileCredentialProvider(CredentialProvider):
    """Loads the credential from the whisk-proxy token file."""

    def __init__(
        self,
        token_file: Optional[Union[str, Path]] = None,
        expiry_buffer_seconds: Optional[int] = None
    ):
        settings = get_settings()
        self.token_file = Path(token_file or settings.WHISK_TOKEN_FILE).expanduser()
        self.expiry_buffer_seconds = (
            expiry_buffer_seconds
            if expiry_buffer_seconds is not None
            else settings.TOKEN_EXPIRY_BUFFER_SECONDS
        )

    def load_credential(self) -> Optional[Credential]:
        if not self.token_file.exists():
            logger.info(f"No Whisk token at {self.token_file}")
            return None

        try:
            data = json.loads(self.token_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable Whisk token file: {e}", extra={"token_file": str(self.token_file)})
            return None

        if not isinstance(data, dict):
            logger.warning("Whisk token file does not contain a JSON object")
            return None

        try:
            credential = Credential.model_validate(data)
        except ValidationError as e:
            logger.warning(
                "Whisk token file is missing accessToken/expiresAt",
                extra={"errors": e.error_count()}
            )
            return None

        if credential.expires_within(self.expiry_buffer_seconds):
            logger.info(
                "Whisk token expired or expiring soon",
                extra={"expires_at": credential.expires_at}
            )
            return None

        return credential


class StaticCredentialProvider(CredentialProvider):
    """Provider with a fixed credential (or None), e.g. from an environment variable."""

    def __init__(self, credential: Optional[Credential]):
        self._credential = credential

    def load_credential(self) -> Optional[Credential]:
        return self._credential
