"""
Capability contract every extraction backend implements.

Nothing above this layer knows which vendor is active: the ingestion service
only ever holds an ExtractionBackend.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import List, Optional

logger = logging.getLogger(__name__)


class ProviderUnavailableError(Exception):
    """Backend network, auth or quota failure"""

    def __init__(self, backend_name: str, message: str = ""):
        self.backend_name = backend_name
        super().__init__(message or f"Backend '{backend_name}' is unavailable")


class TranscriptionFailedError(Exception):
    """Transcript was empty or unusable"""

    def __init__(self, backend_name: str, message: str = ""):
        self.backend_name = backend_name
        super().__init__(message or f"Backend '{backend_name}' produced no usable transcript")


@dataclass
class BackendHealth:
    healthy: bool
    provider: str
    model: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


class ExtractionBackend(ABC):
    """Strategy interface over AI completion vendors"""

    name: str = "base"

    @abstractmethod
    async def extract_from_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        hint_text: str = "",
        category_names: Optional[List[str]] = None,
    ) -> str:
        """Return the backend's raw text answer for a receipt or bill image"""

    @abstractmethod
    async def extract_from_text(
        self,
        text: str,
        hint_text: str = "",
        category_names: Optional[List[str]] = None,
    ) -> str:
        """Return the backend's raw text answer for a free-form message"""

    @abstractmethod
    async def transcribe_audio(self, audio_path: str) -> str:
        """Return the transcript of an audio file"""

    @abstractmethod
    async def check_health(self) -> BackendHealth:
        """Check the vendor is reachable. Must not raise."""

    async def transcribe_checked(self, audio_path: str) -> str:
        """
        Transcribe and reject an empty result.

        Raises:
            TranscriptionFailedError: Transcript is empty
        """
        transcript = await self.transcribe_audio(audio_path)
        if not transcript or not transcript.strip():
            logger.warning(f"{self.name} returned an empty transcript for {audio_path}")
            raise TranscriptionFailedError(self.name)

        logger.info(f"{self.name} transcribed audio ({len(transcript)} chars)")
        return transcript.strip()

    async def extract_from_audio(
        self,
        audio_path: str,
        hint_text: str = "",
        category_names: Optional[List[str]] = None,
    ) -> str:
        """
        Transcribe, then extract from the transcript on this same backend.

        Raises:
            TranscriptionFailedError: Transcript is empty; extraction is not attempted
        """
        transcript = await self.transcribe_checked(audio_path)
        return await self.extract_from_text(transcript, hint_text, category_names)
