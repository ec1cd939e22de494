"""Base class for LLM provider adapters.

An adapter owns exactly one translation: a ``NormalizedMessage`` into the
vendor's request shape, and the vendor's response back into plain text.
Every failure leaves the adapter as a ``ProviderError``.
"""

from abc import ABC, abstractmethod

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from modelcompare.domain.chat.types import NormalizedMessage
from modelcompare.shared.exceptions import ProviderError, ProviderOverloadedError
from modelcompare.shared.logging import get_logger

logger = get_logger(__name__)


class ProviderAdapter(ABC):
    """Capability interface implemented once per provider."""

    #: Image media types the provider accepts. Empty means text only.
    supported_media_types: frozenset[str] = frozenset()

    def __init__(
        self,
        name: str,
        model: str,
        max_tokens: int,
        retry_on_overload: bool = False,
        retry_delay_seconds: float = 1.0,
    ) -> None:
        self.name = name
        self.model = model
        self.max_tokens = max_tokens
        self.retry_on_overload = retry_on_overload
        self.retry_delay_seconds = retry_delay_seconds

    @abstractmethod
    async def _complete(self, message: NormalizedMessage) -> str:
        """Send one request to the provider and return its text."""

    async def close(self) -> None:
        """Release network resources held by the SDK client."""

    def check_media_types(self, message: NormalizedMessage) -> None:
        """Reject images this provider cannot take, before any network call."""
        for image in message.images:
            if image.media_type not in self.supported_media_types:
                raise ProviderError(
                    provider=self.name,
                    message=f"{self.name} does not support {image.media_type} images",
                    details={"media_type": image.media_type},
                )

    async def invoke(self, message: NormalizedMessage) -> str:
        """Return the provider's answer to ``message``.

        Raises:
            ProviderError: For any transport, auth, quota or format problem.
        """
        self.check_media_types(message)

        if not self.retry_on_overload:
            return await self._complete(message)

        # One retry, only for the overloaded signature.
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(2),
            wait=wait_fixed(self.retry_delay_seconds),
            retry=retry_if_exception_type(ProviderOverloadedError),
            before_sleep=self._log_retry,
            reraise=True,
        ):
            with attempt:
                return await self._complete(message)
        raise AssertionError("unreachable")  # pragma: no cover

    def _log_retry(self, retry_state) -> None:
        logger.info(
            "provider_overloaded_retrying",
            provider=self.name,
            attempt=retry_state.attempt_number,
            delay_seconds=self.retry_delay_seconds,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, model={self.model!r})"
