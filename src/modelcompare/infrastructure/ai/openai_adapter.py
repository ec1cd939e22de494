"""OpenAI chat-completions adapter.

Serves ChatGPT directly, DeepSeek (OpenAI-compatible, text only) and every
provider when they are routed through an OpenAI-compatible gateway such as
OpenRouter.
"""

from typing import Any

import openai
from openai import AsyncOpenAI

from modelcompare.config import ALLOWED_IMAGE_TYPES
from modelcompare.domain.chat.types import ImagePart, NormalizedMessage, TextPart
from modelcompare.infrastructure.ai.base import ProviderAdapter
from modelcompare.shared.exceptions import ProviderError, ProviderOverloadedError
from modelcompare.shared.logging import get_logger

logger = get_logger(__name__)

OVERLOADED_STATUS_CODES = {503, 529}


def build_openai_messages(message: NormalizedMessage) -> list[dict[str, Any]]:
    """Single user message; plain string content when there is no image."""
    if not message.has_image:
        return [{"role": "user", "content": message.text}]

    content: list[dict[str, Any]] = []
    for part in message.parts:
        if isinstance(part, TextPart):
            content.append({"type": "text", "text": part.value})
        elif isinstance(part, ImagePart):
            content.append({"type": "image_url", "image_url": {"url": part.data_url}})
    return [{"role": "user", "content": content}]


class OpenAIChatAdapter(ProviderAdapter):
    """Adapter for OpenAI-compatible chat completion endpoints."""

    supported_media_types = frozenset(ALLOWED_IMAGE_TYPES)

    def __init__(
        self,
        name: str,
        client: AsyncOpenAI,
        model: str,
        max_tokens: int,
        supports_images: bool = True,
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
        if not supports_images:
            self.supported_media_types = frozenset()

    async def _complete(self, message: NormalizedMessage) -> str:
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=build_openai_messages(message),  # type: ignore[arg-type]
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as e:
            error_cls = (
                ProviderOverloadedError
                if e.status_code in OVERLOADED_STATUS_CODES
                else ProviderError
            )
            raise error_cls(provider=self.name, message=e.message, status=e.status_code) from e
        except openai.APITimeoutError as e:
            raise ProviderError(provider=self.name, message=f"{self.name} request timed out") from e
        except openai.APIConnectionError as e:
            raise ProviderError(
                provider=self.name, message=f"Connection to {self.name} failed"
            ) from e
        except Exception as e:
            logger.exception("openai_unexpected_error", provider=self.name, error=str(e))
            raise ProviderError(provider=self.name, message=str(e) or type(e).__name__) from e

        if not completion.choices:
            return ""
        return completion.choices[0].message.content or ""

    async def close(self) -> None:
        await self.client.close()
