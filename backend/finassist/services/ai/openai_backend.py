import base64
import logging
import os
import shutil
import tempfile
from typing import List, Optional

from openai import AsyncOpenAI, OpenAIError

from . import prompts
from .base import BackendHealth, ExtractionBackend, ProviderUnavailableError, TranscriptionFailedError

logger = logging.getLogger(__name__)

# Containers the Whisper endpoint accepts, keyed by file extension
WHISPER_EXTENSIONS = {"flac", "m4a", "mp3", "mp4", "mpeg", "mpga", "oga", "ogg", "wav", "webm"}


class OpenAIBackend(ExtractionBackend):
    """Chat completions for extraction, Whisper for transcription"""

    name = "openai"

    def __init__(
        self,
        client: AsyncOpenAI,
        vision_model: str = "gpt-4o-mini",
        text_model: str = "gpt-4o-mini",
        whisper_model: str = "whisper-1",
        health_model: str = "gpt-4o-mini",
        default_currency: str = "INR",
        fallback_label: str = "Other",
        temperature: float = 0.1,
    ):
        self.client = client
        self.vision_model = vision_model
        self.text_model = text_model
        self.whisper_model = whisper_model
        self.health_model = health_model
        self.default_currency = default_currency
        self.fallback_label = fallback_label
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings) -> "OpenAIBackend":
        client = AsyncOpenAI(api_key=settings.openai_api_key, timeout=settings.backend_timeout_s)
        return cls(
            client,
            vision_model=settings.openai_vision_model,
            text_model=settings.openai_text_model,
            whisper_model=settings.openai_whisper_model,
            health_model=settings.openai_health_model,
            default_currency=settings.default_currency,
            fallback_label=settings.fallback_category_name,
        )

    async def _complete(self, model: str, messages: List[dict], max_tokens: int) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            logger.error(f"OpenAI completion failed ({model}): {e}")
            raise ProviderUnavailableError(self.name, str(e)) from e

        content = response.choices[0].message.content
        if not content:
            logger.warning(f"Empty response from OpenAI ({model})")
            return ""

        usage = getattr(response, "usage", None)
        logger.info(f"OpenAI completion done: model={model} tokens={getattr(usage, 'total_tokens', None)}")
        return content.strip()

    async def extract_from_image(
        self,
        image_bytes: bytes,
        mime_type: str,
        hint_text: str = "",
        category_names: Optional[List[str]] = None,
    ) -> str:
        encoded = base64.b64encode(image_bytes).decode("ascii")
        messages = [
            {
                "role": "system",
                "content": prompts.image_system_prompt(category_names, self.default_currency, self.fallback_label),
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompts.image_user_prompt(hint_text)},
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
                ],
            },
        ]
        return await self._complete(self.vision_model, messages, max_tokens=1000)

    async def extract_from_text(
        self,
        text: str,
        hint_text: str = "",
        category_names: Optional[List[str]] = None,
    ) -> str:
        messages = [
            {
                "role": "system",
                "content": prompts.text_system_prompt(category_names, self.default_currency, self.fallback_label),
            },
            {"role": "user", "content": prompts.text_user_prompt(text, hint_text)},
        ]
        return await self._complete(self.text_model, messages, max_tokens=800)

    async def transcribe_audio(self, audio_path: str) -> str:
        extension = os.path.splitext(audio_path)[1].lstrip(".").lower()
        temp_path = None
        try:
            upload_path = audio_path
            if extension not in WHISPER_EXTENSIONS:
                # Voice notes often arrive as opus without a usable suffix
                fd, temp_path = tempfile.mkstemp(suffix=".ogg")
                os.close(fd)
                shutil.copyfile(audio_path, temp_path)
                upload_path = temp_path

            with open(upload_path, "rb") as audio_file:
                response = await self.client.audio.transcriptions.create(
                    model=self.whisper_model,
                    file=audio_file,
                )
        except OSError as e:
            logger.error(f"Could not read audio file {audio_path}: {e}")
            raise TranscriptionFailedError(self.name, str(e)) from e
        except OpenAIError as e:
            logger.error(f"OpenAI transcription failed: {e}")
            raise ProviderUnavailableError(self.name, str(e)) from e
        finally:
            if temp_path and os.path.exists(temp_path):
                os.remove(temp_path)

        text = (getattr(response, "text", "") or "").strip()
        logger.info(f"OpenAI transcription done: model={self.whisper_model} length={len(text)}")
        return text

    async def check_health(self) -> BackendHealth:
        try:
            response = await self.client.chat.completions.create(
                model=self.health_model,
                messages=[{"role": "user", "content": "ping"}],
                max_tokens=5,
            )
            return BackendHealth(healthy=True, provider=self.name, model=getattr(response, "model", self.health_model))
        except Exception as e:
            logger.error(f"OpenAI health check failed: {e}")
            return BackendHealth(healthy=False, provider=self.name, model=self.health_model, error=str(e))
