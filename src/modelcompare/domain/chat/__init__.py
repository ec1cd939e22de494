"""Chat domain module.

Modules:
- aggregator: ChatAggregator fan-out/fan-in orchestrator
- sanitizer: client-safe provider error messages
- types: request, message and response types shared with the adapters
"""

from modelcompare.domain.chat.aggregator import AggregatorConfig, ChatAggregator
from modelcompare.domain.chat.sanitizer import sanitize_provider_error
from modelcompare.domain.chat.types import (
    AggregateResponse,
    Attachment,
    ChatRequest,
    ImagePart,
    NormalizedMessage,
    ProviderOutcome,
    TextPart,
)

__all__ = [
    "AggregateResponse",
    "AggregatorConfig",
    "Attachment",
    "ChatAggregator",
    "ChatRequest",
    "ImagePart",
    "NormalizedMessage",
    "ProviderOutcome",
    "TextPart",
    "sanitize_provider_error",
]
