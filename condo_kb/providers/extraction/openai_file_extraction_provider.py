"""LLM document-transcription provider for binary knowledge-base uploads.

Sends the remote URL of an uploaded PDF or image to a multimodal OpenAI
model through the Responses API and returns the transcription.  The file is
never downloaded into this process: the model fetches it directly.

Condominium paperwork is frequently scanned (signed meeting minutes,
stamped insurance policies, photographed notices), so the prompt insists on
OCR of page images and on keeping tabular data (quotas, budgets, fraction
permilages) as markdown tables.
"""

from __future__ import annotations

import openai
import structlog

from condo_kb.config.settings import Settings
from condo_kb.interfaces.file_extraction_provider import IFileExtractionProvider
from condo_kb.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_EXTRACTION_PROMPT = """\
Transcribe ALL visible text in this document, in reading order.

- Include text that only exists as an image (scanned pages, stamps,
  photographed notices): perform OCR on every page.
- Convert every table into a markdown table (| column | column |), keeping
  headers and all rows.
- Omit purely decorative separator lines made of 5 or more dashes or em
  dashes (----- or —————).
- Do not summarise, translate, comment or add anything that is not in the
  document.  Output only the transcription."""


class OpenAIFileExtractionProvider(IFileExtractionProvider):
    """File transcription backed by an OpenAI multimodal model.

    Images are attached as ``input_image`` parts and every other binary
    format as an ``input_file`` part; both reference the file by URL.
    """

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.openai_api_key
        self._base_url = settings.openai_base_url
        # Built on first use; the SDK refuses to construct without a key.
        self._client: openai.AsyncOpenAI | None = None
        self._model = settings.openai_extraction_model

    # ------------------------------------------------------------------
    # IFileExtractionProvider implementation
    # ------------------------------------------------------------------

    async def extract_text_from_file(self, url: str, mime_type: str) -> str:
        """Ask the model to transcribe the file at *url*."""
        if mime_type.startswith("image/"):
            attachment: dict = {"type": "input_image", "image_url": url}
        else:
            attachment = {"type": "input_file", "file_url": url}

        client = self._get_client()
        try:
            response = await client.responses.create(
                model=self._model,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_text", "text": _EXTRACTION_PROMPT},
                            attachment,
                        ],
                    }
                ],
            )
        except openai.APIError as exc:
            raise ExtractionError(
                message=f"File transcription failed for {mime_type}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text = response.output_text
        if not text:
            raise ExtractionError(
                message="File transcription returned an empty response",
                provider_name=self.get_provider_name(),
            )

        logger.info(
            "file_transcription_complete",
            model=self._model,
            mime_type=mime_type,
            text_length=len(text),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return text

    def get_provider_name(self) -> str:
        return "openai_file_extraction"

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    def _get_client(self) -> openai.AsyncOpenAI:
        if not self._api_key:
            raise ExtractionError(
                message="OPENAI_API_KEY is not configured",
                provider_name=self.get_provider_name(),
            )
        if self._client is None:
            client_kwargs: dict = {"api_key": self._api_key}
            if self._base_url:
                client_kwargs["base_url"] = self._base_url
            self._client = openai.AsyncOpenAI(**client_kwargs)
        return self._client
