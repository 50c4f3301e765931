"""
Unit tests for OpenAIBackend with a mocked AsyncOpenAI client.
"""

import os
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from openai import APIConnectionError

from finassist.services.ai.base import ProviderUnavailableError, TranscriptionFailedError
from finassist.services.ai.openai_backend import OpenAIBackend


def completion(content):
    response = Mock()
    response.choices = [Mock(message=Mock(content=content))]
    response.usage = Mock(total_tokens=42)
    response.model = "gpt-4o-mini-2024"
    return response


@pytest.fixture
def mock_client():
    client = Mock()
    client.chat.completions.create = AsyncMock(return_value=completion('{"amount": 500}'))
    client.audio.transcriptions.create = AsyncMock(return_value=Mock(text=" I spent 500 on groceries "))
    return client


@pytest.fixture
def backend(mock_client):
    return OpenAIBackend(mock_client, default_currency="INR", fallback_label="Other")


def connection_error():
    return APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))


class TestExtraction:

    @pytest.mark.asyncio
    async def test_text_prompt_carries_category_names(self, backend, mock_client):
        raw = await backend.extract_from_text("I spent 500 on groceries", category_names=["Food & Dining", "Pets"])

        assert raw == '{"amount": 500}'
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        system_prompt = kwargs["messages"][0]["content"]
        assert "Food & Dining, Pets, Other" in system_prompt
        assert "I spent 500 on groceries" in kwargs["messages"][1]["content"]
        assert kwargs["model"] == backend.text_model

    @pytest.mark.asyncio
    async def test_image_is_sent_as_data_url(self, backend, mock_client):
        await backend.extract_from_image(b"\x89PNG", "image/png", category_names=["Other"])

        kwargs = mock_client.chat.completions.create.call_args.kwargs
        parts = kwargs["messages"][1]["content"]
        assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")
        assert kwargs["model"] == backend.vision_model

    @pytest.mark.asyncio
    async def test_empty_content_returns_empty_string(self, backend, mock_client):
        mock_client.chat.completions.create.return_value = completion(None)

        assert await backend.extract_from_text("hello") == ""

    @pytest.mark.asyncio
    async def test_vendor_error_becomes_provider_unavailable(self, backend, mock_client):
        mock_client.chat.completions.create.side_effect = connection_error()

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await backend.extract_from_text("hello")

        assert exc_info.value.backend_name == "openai"


class TestTranscription:

    @pytest.mark.asyncio
    async def test_supported_file_is_uploaded_directly(self, backend, mock_client, tmp_path):
        audio = tmp_path / "note.ogg"
        audio.write_bytes(b"OggS")

        text = await backend.transcribe_audio(str(audio))

        assert text == "I spent 500 on groceries"
        uploaded = mock_client.audio.transcriptions.create.call_args.kwargs["file"]
        assert uploaded.name == str(audio)

    @pytest.mark.asyncio
    async def test_unsupported_extension_uses_temp_copy_that_is_removed(self, backend, mock_client, tmp_path):
        audio = tmp_path / "voice.opus"
        audio.write_bytes(b"OggS")

        await backend.transcribe_audio(str(audio))

        uploaded = mock_client.audio.transcriptions.create.call_args.kwargs["file"]
        assert uploaded.name.endswith(".ogg")
        assert not os.path.exists(uploaded.name)
        assert audio.exists()

    @pytest.mark.asyncio
    async def test_temp_copy_removed_on_failure(self, backend, mock_client, tmp_path):
        audio = tmp_path / "voice.amr"
        audio.write_bytes(b"#!AMR")
        mock_client.audio.transcriptions.create.side_effect = connection_error()

        with pytest.raises(ProviderUnavailableError):
            await backend.transcribe_audio(str(audio))

        uploaded = mock_client.audio.transcriptions.create.call_args.kwargs["file"]
        assert not os.path.exists(uploaded.name)

    @pytest.mark.asyncio
    async def test_missing_file_is_transcription_failure(self, backend, tmp_path):
        with pytest.raises(TranscriptionFailedError):
            await backend.transcribe_audio(str(tmp_path / "missing.ogg"))

    @pytest.mark.asyncio
    async def test_extract_from_audio_uses_transcript(self, backend, mock_client, tmp_path):
        audio = tmp_path / "note.mp3"
        audio.write_bytes(b"ID3")

        raw = await backend.extract_from_audio(str(audio), category_names=["Food & Dining"])

        assert raw == '{"amount": 500}'
        user_message = mock_client.chat.completions.create.call_args.kwargs["messages"][1]["content"]
        assert "I spent 500 on groceries" in user_message


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, backend):
        health = await backend.check_health()

        assert health.healthy is True
        assert health.model == "gpt-4o-mini-2024"

    @pytest.mark.asyncio
    async def test_unhealthy_never_raises(self, backend, mock_client):
        mock_client.chat.completions.create.side_effect = connection_error()

        health = await backend.check_health()

        assert health.healthy is False
        assert health.provider == "openai"
        assert health.error
