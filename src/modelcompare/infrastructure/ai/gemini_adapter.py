"""Google Gemini adapter (google-genai SDK)."""

from typing import Any

from google import genai
from google.genai import errors, types

from modelcompare.domain.chat.types import ImagePart, NormalizedMessage, TextPart
from modelcompare.infrastructure.ai.base import ProviderAdapter
from modelcompare.shared.exceptions import ProviderError, ProviderOverloadedError
from modelcompare.shared.logging import get_logger

logger = get_logger(__name__)

OVERLOADED_MESSAGE = (
    "Gemini is currently experiencing high traffic. Please try again in a moment."
)


def build_gemini_contents(message: NormalizedMessage) -> list[Any]:
    """Flat list: prompt string first, then inline image data."""
    contents: list[Any] = []
    for part in message.parts:
        if isinstance(part, TextPart):
            contents.append(part.value)
        elif isinstance(part, ImagePart):
            contents.append(types.Part.from_bytes(data=part.to_bytes(), mime_type=part.media_type))
    return contents


def _is_overloaded(error: errors.APIError) -> bool:
    if error.code == 503:
        return True
    status = (error.status or "").upper()
    return status == "UNAVAILABLE" or "overloaded" in (error.message or "").lower()


class GeminiAdapter(ProviderAdapter):
    """Adapter for the Gemini ``generate_content`` API."""

    # Gemini takes no GIFs
    supported_media_types = frozenset({"image/jpeg", "image/png", "image/webp"})

    def __init__(
        self,
        client: genai.Client,
        model: str,
        max_tokens: int,
        name: str = "gemini",
        retry_on_overload: bool = False,
        retry_delay_seconds: float = 1.0,
    ) -> None:
        super().__init__(
            name=name,
            model=model,
            max_tokens=max_tokens,
            retry_on_overload=retry_on_overload,
            retry_delay_seconds=retry_delay_seconds,
        )
        self.client = client

    async def _complete(self, message: NormalizedMessage) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=build_gemini_contents(message),
                config=types.GenerateContentConfig(max_output_tokens=self.max_tokens),
            )
        except errors.APIError as e:
            if _is_overloaded(e):
                raise ProviderOverloadedError(
                    provider=self.name, message=OVERLOADED_MESSAGE, status=e.code
                ) from e
            raise ProviderError(
                provider=self.name,
                message=e.message or str(e),
                status=e.code,
            ) from e
        except Exception as e:
            logger.exception("gemini_unexpected_error", provider=self.name, error=str(e))
            raise ProviderError(provider=self.name, message=str(e) or type(e).__name__) from e

        return response.text or ""

    async def close(self) -> None:
        aclose = getattr(self.client.aio, "aclose", None)
        if aclose is not None:
            await aclose()
