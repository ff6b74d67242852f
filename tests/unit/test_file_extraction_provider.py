"""Unit tests for the LLM file-transcription provider."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import openai
import pytest

from condo_kb.config.settings import Settings
from condo_kb.providers.extraction.openai_file_extraction_provider import (
    OpenAIFileExtractionProvider,
)
from condo_kb.utils.errors import ExtractionError

_PATCH_TARGET = "condo_kb.providers.extraction.openai_file_extraction_provider.openai.AsyncOpenAI"


def _settings(**overrides) -> Settings:
    defaults = {"openai_api_key": "sk-test", "openai_extraction_model": "gpt-4o-mini"}
    defaults.update(overrides)
    return Settings(**defaults)


def _client(output_text: str = "", error: Exception | None = None) -> AsyncMock:
    client = AsyncMock()
    if error is not None:
        client.responses.create = AsyncMock(side_effect=error)
    else:
        response = MagicMock(output_text=output_text)
        response.usage = MagicMock(total_tokens=900)
        client.responses.create = AsyncMock(return_value=response)
    return client


def _content_parts(client: AsyncMock) -> list[dict]:
    return client.responses.create.call_args.kwargs["input"][0]["content"]


class TestOpenAIFileExtractionProvider:
    @pytest.mark.asyncio
    async def test_pdf_sent_as_input_file_by_url(self) -> None:
        client = _client("| Fraction | Quota |\n|---|---|\n| A | 12.5 |")

        with patch(_PATCH_TARGET, return_value=client):
            provider = OpenAIFileExtractionProvider(_settings())
            text = await provider.extract_text_from_file(
                "https://files.example.com/budget.pdf", "application/pdf"
            )

        assert text.startswith("| Fraction |")
        parts = _content_parts(client)
        assert parts[1] == {"type": "input_file", "file_url": "https://files.example.com/budget.pdf"}
        assert client.responses.create.call_args.kwargs["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_image_sent_as_input_image(self) -> None:
        client = _client("NOTICE: water shut-off on Monday")

        with patch(_PATCH_TARGET, return_value=client):
            provider = OpenAIFileExtractionProvider(_settings())
            await provider.extract_text_from_file("https://files.example.com/notice.jpg", "image/jpeg")

        assert _content_parts(client)[1] == {
            "type": "input_image",
            "image_url": "https://files.example.com/notice.jpg",
        }

    @pytest.mark.asyncio
    async def test_prompt_requests_ocr_tables_and_separator_removal(self) -> None:
        client = _client("text")

        with patch(_PATCH_TARGET, return_value=client):
            provider = OpenAIFileExtractionProvider(_settings())
            await provider.extract_text_from_file("https://f/x.pdf", "application/pdf")

        prompt = _content_parts(client)[0]["text"]
        assert "OCR" in prompt
        assert "markdown table" in prompt
        assert "5 or more dashes" in prompt

    @pytest.mark.asyncio
    async def test_api_error_becomes_extraction_error(self) -> None:
        error = openai.APIError(message="file too large", request=MagicMock(), body=None)

        with patch(_PATCH_TARGET, return_value=_client(error=error)):
            provider = OpenAIFileExtractionProvider(_settings())
            with pytest.raises(ExtractionError, match="file too large"):
                await provider.extract_text_from_file("https://f/x.pdf", "application/pdf")

    @pytest.mark.asyncio
    async def test_empty_output_is_an_error(self) -> None:
        with patch(_PATCH_TARGET, return_value=_client("")):
            provider = OpenAIFileExtractionProvider(_settings())
            with pytest.raises(ExtractionError, match="empty"):
                await provider.extract_text_from_file("https://f/x.pdf", "application/pdf")

    def test_availability_and_name(self) -> None:
        assert OpenAIFileExtractionProvider(_settings()).is_available() is True
        assert OpenAIFileExtractionProvider(_settings(openai_api_key="")).is_available() is False
        assert OpenAIFileExtractionProvider(_settings()).get_provider_name() == "openai_file_extraction"

    @pytest.mark.asyncio
    async def test_missing_key_defers_client_and_fails_on_use(self) -> None:
        refusing = MagicMock(side_effect=openai.OpenAIError("Missing credentials"))

        with patch(_PATCH_TARGET, refusing):
            provider = OpenAIFileExtractionProvider(_settings(openai_api_key=""))
            with pytest.raises(ExtractionError, match="not configured"):
                await provider.extract_text_from_file("https://f/x.pdf", "application/pdf")

        refusing.assert_not_called()
