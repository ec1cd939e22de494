"""Unit tests for provider error sanitization."""

from modelcompare.domain.chat.sanitizer import (
    DEVELOPMENT_MAX_CHARS,
    GENERIC_ERROR_MESSAGE,
    PRODUCTION_MAX_CHARS,
    sanitize_provider_error,
    truncate,
)
from modelcompare.infrastructure.ai.gemini_adapter import OVERLOADED_MESSAGE
from modelcompare.shared.exceptions import (
    ProviderError,
    ProviderOverloadedError,
    ProviderTimeoutError,
)


class TestProductionWhitelist:
    """Production only reveals actionable error categories."""

    def test_rate_limit_is_revealed(self):
        error = ProviderError("chatgpt", "Rate limit reached for gpt-4o", status=429)

        assert sanitize_provider_error(error, is_production=True) == (
            "429 Rate limit reached for gpt-4o"
        )

    def test_quota_is_revealed(self):
        error = ProviderError("gemini", "You exceeded your current quota")

        result = sanitize_provider_error(error, is_production=True)

        assert "quota" in result

    def test_bad_key_is_revealed(self):
        error = ProviderError("claude", "invalid x-api-key", status=401)

        assert sanitize_provider_error(error, is_production=True).startswith("401")

    def test_internal_details_are_hidden(self):
        error = ProviderError(
            "chatgpt",
            "upstream connect error: /srv/app/secrets.py line 42 KeyError 'sk-live'",
            status=500,
        )

        assert sanitize_provider_error(error, is_production=True) == GENERIC_ERROR_MESSAGE

    def test_plain_exception_is_hidden(self):
        assert sanitize_provider_error(RuntimeError("boom"), is_production=True) == (
            GENERIC_ERROR_MESSAGE
        )

    def test_timeout_message_is_hidden(self):
        error = ProviderTimeoutError("gemini", 30)

        assert sanitize_provider_error(error, is_production=True) == GENERIC_ERROR_MESSAGE

    def test_overload_message_is_hidden(self):
        error = ProviderOverloadedError("gemini", OVERLOADED_MESSAGE, status=503)

        assert sanitize_provider_error(error, is_production=True) == GENERIC_ERROR_MESSAGE

    def test_revealed_message_is_truncated(self):
        error = ProviderError("chatgpt", "quota " + "x" * 500, status=429)

        result = sanitize_provider_error(error, is_production=True)

        assert len(result) == PRODUCTION_MAX_CHARS + 3
        assert result.endswith("...")


class TestDevelopmentMode:
    """Development shows the raw (whitespace-collapsed) message."""

    def test_shows_full_message(self):
        error = ProviderError("chatgpt", "Internal\n\n  server   error", status=500)

        assert sanitize_provider_error(error, is_production=False) == (
            "500 Internal server error"
        )

    def test_status_not_duplicated(self):
        error = ProviderError("chatgpt", "Error 503: overloaded", status=503)

        assert sanitize_provider_error(error, is_production=False) == "Error 503: overloaded"

    def test_shows_timeout_message(self):
        error = ProviderTimeoutError("gemini", 30)

        assert sanitize_provider_error(error, is_production=False) == (
            "Timeout: gemini did not respond within 30000ms"
        )

    def test_truncates_long_message(self):
        result = sanitize_provider_error(RuntimeError("y" * 5000), is_production=False)

        assert len(result) == DEVELOPMENT_MAX_CHARS + 3

    def test_status_code_attribute(self):
        class SDKError(Exception):
            status_code = 402

        result = sanitize_provider_error(SDKError("Payment Required"), is_production=False)

        assert result == "402 Payment Required"


class TestNeverRaises:
    """Sanitization must survive any input."""

    def test_empty_message(self):
        assert sanitize_provider_error(RuntimeError(""), is_production=False) == (
            GENERIC_ERROR_MESSAGE
        )

    def test_unprintable_exception(self):
        class Unprintable(Exception):
            def __str__(self):
                raise RuntimeError("cannot render")

        assert sanitize_provider_error(Unprintable(), is_production=True) == (
            GENERIC_ERROR_MESSAGE
        )

    def test_non_exception_object(self):
        result = sanitize_provider_error({"error": "credit balance too low"}, is_production=True)

        assert "credit balance too low" in result

    def test_unserializable_object(self):
        result = sanitize_provider_error(object(), is_production=False)

        assert result.startswith("<object object")


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("abc", 5) == "abc"

    def test_long_text_gets_ellipsis(self):
        assert truncate("abcdef", 3) == "abc..."


class TestCreditExhaustion:
    def test_insufficient_credit_passes_through_normalized(self):
        error = ProviderError(
            "chatgpt",
            "Error code: 402 -\n   Insufficient credit    on this account",
        )

        assert sanitize_provider_error(error, is_production=True) == (
            "Error code: 402 - Insufficient credit on this account"
        )
