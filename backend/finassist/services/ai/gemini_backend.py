import logging
import os
from typing import Any, List, Optional

import google.generativeai as genai
from google.api_core.exceptions import GoogleAPIError

from . import prompts
from .base import BackendHealth, ExtractionBackend, ProviderUnavailableError, TranscriptionFailedError

logger = logging.getLogger(__name__)

AUDIO_MIME_TYPES = {
    "ogg": "audio/ogg",
    "oga": "audio/ogg",
    "opus": "audio/ogg",
    "mp3": "audio/mpeg",
    "mp4": "audio/mp4",
    "m4a": "audio/mp4",
    "amr": "audio/amr",
    "wav": "audio/wav",
    "webm": "audio/webm",
}


class GeminiBackend(ExtractionBackend):
    """Google Gemini models with inline image and audio parts"""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str] = None,
        vision_model: str = "gemini-2.0-flash",
        text_model: str = "gemini-2.0-flash",
        audio_model: str = "gemini-2.0-flash",
        health_model: str = "gemini-2.0-flash",
        default_currency: str = "INR",
        fallback_label: str = "Other",
        temperature: float = 0.1,
    ):
        if api_key:
            genai.configure(api_key=api_key)
        self.vision_model = vision_model
        self.text_model = text_model
        self.audio_model = audio_model
        self.health_model = health_model
        self.default_currency = default_currency
        self.fallback_label = fallback_label
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings) -> "GeminiBackend":
        return cls(
            api_key=settings.gemini_api_key,
            vision_model=settings.gemini_vision_model,
            text_model=settings.gemini_text_model,
            audio_model=settings.gemini_audio_model,
            health_model=settings.gemini_health_model,
            default_currency=settings.default_currency,
            fallback_label=settings.fallback_category_name,
        )

    def _model(self, model_name: str):
        return genai.GenerativeModel(
            model_name,
            generation_config=genai.types.GenerationConfig(temperature=self.temperature),
        )

    async def _generate(self, model_name: str, contents: Any) -> str:
        try:
            response = await self._model(model_name).generate_content_async(contents)
        except GoogleAPIError as e:
            logger.error(f"Gemini request failed ({model_name}): {e}")
            raise ProviderUnavailableError(self.name, str(e)) from e

        try:
            text = response.text
        except ValueError as e:
            # Raised when the candidate was blocked or carries no text part
            logger.warning(f"Gemini returned no text ({model_name}): {e}")
            return ""

        logger.info(f"Gemini completion done: model={model_name} length={len(text or '')}")
        return (text or "").strip()

    async def extract_from_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        hint_text: str = "",
        category_names: Optional[List[str]] = None,
    ) -> str:
        prompt = (
            f"{prompts.image_system_prompt(category_names, self.default_currency, self.fallback_label)}\n\n"
            f"{prompts.image_user_prompt(hint_text)}"
        )
        image_part = {"mime_type": mime_type, "data": image_bytes}
        return await self._generate(self.vision_model, [prompt, image_part])

    async def extract_from_text(
        self,
        text: str,
        hint_text: str = "",
        category_names: Optional[List[str]] = None,
    ) -> str:
        prompt = (
            f"{prompts.text_system_prompt(category_names, self.default_currency, self.fallback_label)}\n\n"
            f"{prompts.text_user_prompt(text, hint_text)}"
        )
        return await self._generate(self.text_model, prompt)

    async def transcribe_audio(self, audio_path: str) -> str:
        extension = os.path.splitext(audio_path)[1].lstrip(".").lower()
        mime_type = AUDIO_MIME_TYPES.get(extension, "audio/ogg")
        try:
            with open(audio_path, "rb") as fh:
                audio_bytes = fh.read()
        except OSError as e:
            logger.error(f"Could not read audio file {audio_path}: {e}")
            raise TranscriptionFailedError(self.name, str(e)) from e

        audio_part = {"mime_type": mime_type, "data": audio_bytes}
        return await self._generate(self.audio_model, [prompts.TRANSCRIPTION_PROMPT, audio_part])

    async def check_health(self) -> BackendHealth:
        try:
            response = await self._model(self.health_model).generate_content_async("ping")
            _ = response.text
            return BackendHealth(healthy=True, provider=self.name, model=self.health_model)
        except Exception as e:
            logger.error(f"Gemini health check failed: {e}")
            return BackendHealth(healthy=False, provider=self.name, model=self.health_model, error=str(e))
