"""
Pytest configuration and fixtures for modelcompare tests.
"""
import asyncio
from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from modelcompare.api.ratelimit import limiter
from modelcompare.config import ALLOWED_IMAGE_TYPES, Settings
from modelcompare.domain.chat import AggregatorConfig, Attachment, ChatAggregator, NormalizedMessage
from modelcompare.infrastructure.ai.base import ProviderAdapter
from modelcompare.main import create_app

# Smallest valid PNG (1x1 transparent pixel)
PNG_BYTES = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


class FakeAdapter(ProviderAdapter):
    """In-memory provider adapter with a canned reply, error or delay."""

    supported_media_types = frozenset(ALLOWED_IMAGE_TYPES)

    def __init__(
        self,
        name: str,
        reply: str = "",
        error: Exception | None = None,
        delay: float = 0.0,
        **kwargs,
    ) -> None:
        super().__init__(name=name, model=f"{name}-test", max_tokens=256, **kwargs)
        self.reply = reply
        self.error = error
        self.delay = delay
        self.calls: list[NormalizedMessage] = []
        self.closed = False

    async def _complete(self, message: NormalizedMessage) -> str:
        self.calls.append(message)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.reply

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Rate limit counters are process-global; start every test fresh."""
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def test_settings(upload_dir: Path) -> Settings:
    """Create test settings with dummy provider keys."""
    return Settings(
        _env_file=None,
        app_env="development",
        openai_api_key="sk-test-openai",
        gemini_api_key="test-gemini-key",
        anthropic_api_key="sk-ant-test",
        upload_dir=str(upload_dir),
        provider_timeout_ms=1000,
        retry_delay_seconds=0,
    )


@pytest.fixture
def make_adapter() -> Callable[..., FakeAdapter]:
    """Factory for fake adapters: make_adapter("chatgpt", reply="hi")."""
    return FakeAdapter


@pytest.fixture
def fake_adapters() -> dict[str, FakeAdapter]:
    return {
        "chatgpt": FakeAdapter("chatgpt", reply="ChatGPT says hi"),
        "gemini": FakeAdapter("gemini", reply="Gemini says hi"),
        "claude": FakeAdapter("claude", reply="Claude says hi"),
    }


@pytest.fixture
def aggregator_config() -> AggregatorConfig:
    return AggregatorConfig(timeout_seconds=0.5, max_prompt_chars=100)


@pytest.fixture
def aggregator(
    fake_adapters: dict[str, FakeAdapter], aggregator_config: AggregatorConfig
) -> ChatAggregator:
    return ChatAggregator(fake_adapters, aggregator_config)


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def png_attachment(tmp_path: Path) -> Attachment:
    """A staged PNG on disk, as the upload layer would leave it."""
    path = tmp_path / "upload-test.png"
    path.write_bytes(PNG_BYTES)
    return Attachment(path=path, media_type="image/png", filename="pixel.png", size_bytes=len(PNG_BYTES))


@pytest.fixture
def app(test_settings: Settings, aggregator: ChatAggregator) -> FastAPI:
    """Create test FastAPI application with fake providers."""
    app = create_app(test_settings)
    app.state.aggregator = aggregator
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create sync test client."""
    return TestClient(app)
