"""Anthropic/Claude adapter.

Claude wants explicit content blocks: ``{"type": "text"}`` and
``{"type": "image", "source": {"type": "base64", ...}}``.
"""

from typing import Any

import anthropic
from anthropic.types import MessageParam, TextBlock

from modelcompare.domain.chat.types import ImagePart, NormalizedMessage, TextPart
from modelcompare.infrastructure.ai.base import ProviderAdapter
from modelcompare.shared.exceptions import ProviderError, ProviderOverloadedError
from modelcompare.shared.logging import get_logger

logger = get_logger(__name__)

OVERLOADED_STATUS_CODES = {503, 529}


def build_anthropic_messages(message: NormalizedMessage) -> list[MessageParam]:
    """One user message; content blocks only when an image is attached."""
    if not message.has_image:
        return [MessageParam(role="user", content=message.text)]

    blocks: list[dict[str, Any]] = []
    for part in message.parts:
        if isinstance(part, TextPart):
            blocks.append({"type": "text", "text": part.value})
        elif isinstance(part, ImagePart):
            blocks.append(
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": part.media_type,
                        "data": part.base64_data,
                    },
                }
            )
    return [MessageParam(role="user", content=blocks)]  # type: ignore[typeddict-item]


class AnthropicAdapter(ProviderAdapter):
    """Adapter for the Anthropic Messages API."""

    supported_media_types = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        max_tokens: int,
        name: str = "claude",
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
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=build_anthropic_messages(message),
            )
        except anthropic.APIStatusError as e:
            error_cls = (
                ProviderOverloadedError
                if e.status_code in OVERLOADED_STATUS_CODES
                else ProviderError
            )
            raise error_cls(provider=self.name, message=e.message, status=e.status_code) from e
        except anthropic.APITimeoutError as e:
            raise ProviderError(provider=self.name, message=f"{self.name} request timed out") from e
        except anthropic.APIConnectionError as e:
            raise ProviderError(
                provider=self.name, message=f"Connection to {self.name} failed"
            ) from e
        except Exception as e:
            logger.exception("anthropic_unexpected_error", provider=self.name, error=str(e))
            raise ProviderError(provider=self.name, message=str(e) or type(e).__name__) from e

        return "".join(block.text for block in response.content if isinstance(block, TextBlock))

    async def close(self) -> None:
        await self.client.close()
