"""Shared chat domain types.

Keep these types small and provider-agnostic: the aggregator builds them and
every provider adapter reads them, so nothing here knows about a vendor SDK.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class Attachment:
    """An uploaded image staged on disk by the transport layer."""

    path: Path
    media_type: str
    filename: str | None = None
    size_bytes: int = 0


@dataclass(frozen=True)
class ChatRequest:
    """One user turn: a prompt and at most one image."""

    prompt: str | None
    attachment: Attachment | None = None


@dataclass(frozen=True, slots=True)
class TextPart:
    value: str


@dataclass(frozen=True, slots=True)
class ImagePart:
    media_type: str
    base64_data: str

    @property
    def data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.base64_data}"

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.base64_data)


ContentPart = TextPart | ImagePart


@dataclass(frozen=True)
class NormalizedMessage:
    """Provider-agnostic representation of one chat turn."""

    parts: tuple[ContentPart, ...]

    @classmethod
    def build(cls, prompt: str | None, image: ImagePart | None = None) -> NormalizedMessage:
        parts: list[ContentPart] = []
        if prompt:
            parts.append(TextPart(prompt))
        if image is not None:
            parts.append(image)
        return cls(parts=tuple(parts))

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "\n".join(part.value for part in self.parts if isinstance(part, TextPart))

    @property
    def images(self) -> list[ImagePart]:
        return [part for part in self.parts if isinstance(part, ImagePart)]

    @property
    def image(self) -> ImagePart | None:
        """The attached image, if any. A request carries at most one."""
        images = self.images
        return images[0] if images else None

    @property
    def has_image(self) -> bool:
        return any(isinstance(part, ImagePart) for part in self.parts)


@dataclass
class ProviderOutcome:
    """Result of one provider call. ``text`` is empty when the call failed."""

    provider: str
    text: str = ""
    error: str | None = None
    latency_ms: float = 0.0

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class AggregateResponse:
    """All provider outcomes for one request, in configuration order."""

    outcomes: dict[str, ProviderOutcome] = field(default_factory=dict)

    @property
    def errors(self) -> dict[str, str]:
        return {
            name: outcome.error
            for name, outcome in self.outcomes.items()
            if outcome.error is not None
        }

    def to_dict(self) -> dict[str, Any]:
        """Client-facing shape: one string per provider plus optional ``errors``."""
        payload: dict[str, Any] = {name: outcome.text for name, outcome in self.outcomes.items()}
        errors = self.errors
        if errors:
            payload["errors"] = errors
        return payload
