"""Fan-out/fan-in of one chat turn across all configured providers.

The aggregator:
1. Validates the request (prompt, attachment type, configured providers)
2. Builds the provider-agnostic message once
3. Calls every provider concurrently, each under its own deadline
4. Collects every outcome, success or failure, into one response
5. Deletes the staged attachment on every exit path

Providers fail independently: one outage or timeout never aborts the others.
"""

from __future__ import annotations

import asyncio
import base64
import time
from collections.abc import Mapping
from dataclasses import dataclass, field

from modelcompare.config import ALLOWED_IMAGE_TYPES, Settings
from modelcompare.domain.chat.sanitizer import sanitize_provider_error
from modelcompare.domain.chat.types import (
    AggregateResponse,
    Attachment,
    ChatRequest,
    ImagePart,
    NormalizedMessage,
    ProviderOutcome,
)
from modelcompare.infrastructure.ai.base import ProviderAdapter
from modelcompare.observability.metrics import record_provider_call
from modelcompare.shared.exceptions import (
    ConfigurationError,
    PromptRequiredError,
    PromptTooLongError,
    ProviderError,
    ProviderTimeoutError,
    UnsupportedFileTypeError,
)
from modelcompare.shared.files import read_file, remove_file
from modelcompare.shared.logging import get_logger
from modelcompare.shared.timeout import with_timeout

logger = get_logger(__name__)


@dataclass(frozen=True)
class AggregatorConfig:
    """Resolved limits the aggregator enforces; never read from the environment."""

    timeout_seconds: float = 30.0
    max_prompt_chars: int = 10_000
    allowed_media_types: frozenset[str] = field(default_factory=lambda: frozenset(ALLOWED_IMAGE_TYPES))
    is_production: bool = False
    allow_attachment_only: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> AggregatorConfig:
        return cls(
            timeout_seconds=settings.provider_timeout_seconds,
            max_prompt_chars=settings.prompt_max_chars,
            is_production=settings.is_production,
            allow_attachment_only=settings.allow_attachment_only,
        )


class ChatAggregator:
    """Sends one prompt to every provider and merges the answers."""

    def __init__(
        self,
        adapters: Mapping[str, ProviderAdapter],
        config: AggregatorConfig | None = None,
    ) -> None:
        self.adapters = dict(adapters)
        self.config = config or AggregatorConfig()

    @property
    def providers(self) -> list[str]:
        return list(self.adapters)

    async def handle(self, request: ChatRequest) -> AggregateResponse:
        """Run one chat turn against all providers.

        Raises:
            ValidationError: Malformed request; no provider was called.
            ConfigurationError: No provider adapters are available.
        """
        try:
            prompt = self._validate(request)
            if not self.adapters:
                raise ConfigurationError("AI clients are not initialized")

            message = await self._build_message(prompt, request.attachment)

            logger.info(
                "chat_request_received",
                providers=self.providers,
                prompt_chars=len(prompt),
                has_image=message.has_image,
            )

            outcomes = await asyncio.gather(
                *(
                    self._call_provider(name, adapter, message)
                    for name, adapter in self.adapters.items()
                )
            )
            return AggregateResponse(outcomes={outcome.provider: outcome for outcome in outcomes})
        finally:
            await self._cleanup(request.attachment)

    def _validate(self, request: ChatRequest) -> str:
        prompt = (request.prompt or "").strip()

        if not prompt and not (self.config.allow_attachment_only and request.attachment):
            raise PromptRequiredError()
        if len(request.prompt or "") > self.config.max_prompt_chars:
            raise PromptTooLongError(self.config.max_prompt_chars)

        attachment = request.attachment
        if attachment is not None and attachment.media_type not in self.config.allowed_media_types:
            raise UnsupportedFileTypeError(
                attachment.media_type, sorted(self.config.allowed_media_types)
            )
        return prompt

    async def _build_message(
        self, prompt: str, attachment: Attachment | None
    ) -> NormalizedMessage:
        image = None
        if attachment is not None:
            data = await read_file(attachment.path)
            image = ImagePart(
                media_type=attachment.media_type,
                base64_data=base64.b64encode(data).decode("ascii"),
            )
        return NormalizedMessage.build(prompt, image)

    async def _call_provider(
        self,
        name: str,
        adapter: ProviderAdapter,
        message: NormalizedMessage,
    ) -> ProviderOutcome:
        start = time.perf_counter()
        try:
            text = await with_timeout(adapter.invoke(message), self.config.timeout_seconds, name)
        except ProviderError as e:
            result = "timeout" if isinstance(e, ProviderTimeoutError) else "error"
            logger.warning(
                "provider_call_failed",
                provider=name,
                outcome=result,
                status=e.status,
                error=e.message,
            )
            return self._failed(name, e, result, start)
        except Exception as e:
            # Bugs in one adapter must not take down the other columns
            logger.exception("provider_call_crashed", provider=name, error=str(e))
            return self._failed(name, e, "error", start)

        duration = time.perf_counter() - start
        record_provider_call(name, "success", duration)
        logger.info(
            "provider_call_succeeded",
            provider=name,
            latency_ms=round(duration * 1000, 2),
            response_chars=len(text),
        )
        return ProviderOutcome(provider=name, text=text, latency_ms=duration * 1000)

    def _failed(
        self, name: str, error: Exception, result: str, start: float
    ) -> ProviderOutcome:
        duration = time.perf_counter() - start
        record_provider_call(name, result, duration)
        return ProviderOutcome(
            provider=name,
            error=sanitize_provider_error(error, self.config.is_production),
            latency_ms=duration * 1000,
        )

    async def _cleanup(self, attachment: Attachment | None) -> None:
        if attachment is None:
            return
        try:
            await remove_file(attachment.path)
        except OSError as e:
            logger.warning("attachment_cleanup_failed", path=str(attachment.path), error=str(e))
