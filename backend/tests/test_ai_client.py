"""Tests for provider selection, payload shapes and failure classification."""

import asyncio
import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import anthropic
import httpx
import oci

from applytrack.config import settings
from applytrack.exceptions import GenerativeServiceError, QuotaExceededError
from applytrack.services import ai_client
from applytrack.services.ai_client import (
    AnthropicGenerator,
    OracleGenAIGenerator,
    UnconfiguredGenerator,
    _build_chat_body,
    _extract_text,
    get_text_generator,
)


@pytest.fixture
def oracle_settings(monkeypatch):
    monkeypatch.setattr(settings, "ORACLE_GENAI_COMPARTMENT_ID", "ocid1.compartment.oc1..test")
    monkeypatch.setattr(settings, "ORACLE_GENAI_MODEL", "meta.llama-3.1-70b-instruct")
    monkeypatch.setattr(settings, "ORACLE_GENAI_API_FORMAT", "AUTO")


def anthropic_error(cls, status):
    response = httpx.Response(status, request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))
    return cls("provider said no", response=response, body=None)


class TestProviderSelection:
    """Oracle first, then Anthropic, then nothing."""

    def test_nothing_configured(self, monkeypatch):
        monkeypatch.setattr(settings, "ORACLE_GENAI_COMPARTMENT_ID", "")
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")
        generator = get_text_generator()
        assert isinstance(generator, UnconfiguredGenerator)
        assert not generator.configured
        assert ai_client.ai_provider_name() == "none"

    def test_anthropic_when_only_key_set(self, monkeypatch):
        monkeypatch.setattr(settings, "ORACLE_GENAI_COMPARTMENT_ID", "")
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "sk-test")
        assert isinstance(get_text_generator(), AnthropicGenerator)

    def test_oracle_wins(self, monkeypatch, oracle_settings):
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "sk-test")
        assert isinstance(get_text_generator(), OracleGenAIGenerator)

    def test_health_check_unconfigured(self, monkeypatch):
        monkeypatch.setattr(settings, "ORACLE_GENAI_COMPARTMENT_ID", "")
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")
        assert asyncio.run(ai_client.ai_health_check())["status"] == "unconfigured"


class TestOracleChatPayload:
    def test_generic_body(self, oracle_settings):
        body = _build_chat_body("be brief", "hello", 100, 0.1)
        chat = body["chatRequest"]
        assert chat["apiFormat"] == "GENERIC"
        assert chat["systemMessage"] == "be brief"
        assert chat["messages"][0]["content"][0]["text"] == "hello"
        assert body["compartmentId"] == "ocid1.compartment.oc1..test"

    def test_cohere_body(self, monkeypatch, oracle_settings):
        monkeypatch.setattr(settings, "ORACLE_GENAI_MODEL", "cohere.command-r-plus")
        chat = _build_chat_body("be brief", "hello", 100, 0.1)["chatRequest"]
        assert chat["apiFormat"] == "COHERE"
        assert chat["preambleOverride"] == "be brief"
        assert chat["message"] == "hello"

    def test_extract_text(self):
        generic = {"chatResponse": {"choices": [{"message": {"content": [{"type": "TEXT", "text": "hi"}]}}]}}
        cohere = {"chatResponse": {"apiFormat": "COHERE", "text": "yo"}}
        assert _extract_text(generic) == "hi"
        assert _extract_text(cohere) == "yo"
        assert _extract_text({}) == ""


class TestFailureClassification:
    """Quota answers are told apart by status, not message text."""

    def test_oracle_429_is_quota(self, monkeypatch, oracle_settings):
        def fail(*args, **kwargs):
            raise oci.exceptions.ServiceError(429, "TooManyRequests", {}, "Rate limit")

        monkeypatch.setattr(ai_client, "_oci_post", fail)
        with pytest.raises(QuotaExceededError) as exc:
            asyncio.run(OracleGenAIGenerator().generate("s", "p"))
        assert exc.value.status_code == 429
        assert exc.value.provider == "oracle-genai"

    def test_oracle_500_is_service_error(self, monkeypatch, oracle_settings):
        def fail(*args, **kwargs):
            raise oci.exceptions.ServiceError(500, "InternalError", {}, "quota exceeded in message only")

        monkeypatch.setattr(ai_client, "_oci_post", fail)
        with pytest.raises(GenerativeServiceError) as exc:
            asyncio.run(OracleGenAIGenerator().generate("s", "p"))
        assert not isinstance(exc.value, QuotaExceededError)

    def test_oracle_success(self, monkeypatch, oracle_settings):
        reply = {"chatResponse": {"choices": [{"message": {"content": [{"text": '{"a": 1}'}]}}]}}
        monkeypatch.setattr(ai_client, "_oci_post", lambda path, body: reply)
        assert asyncio.run(OracleGenAIGenerator().generate("s", "p")) == '{"a": 1}'

    def test_anthropic_rate_limit_is_quota(self, monkeypatch):
        def fail(self, *args):
            raise anthropic_error(anthropic.RateLimitError, 429)

        monkeypatch.setattr(AnthropicGenerator, "_create", fail)
        with pytest.raises(QuotaExceededError):
            asyncio.run(AnthropicGenerator().generate("s", "p"))

    def test_anthropic_server_error(self, monkeypatch):
        def fail(self, *args):
            raise anthropic_error(anthropic.InternalServerError, 500)

        monkeypatch.setattr(AnthropicGenerator, "_create", fail)
        with pytest.raises(GenerativeServiceError) as exc:
            asyncio.run(AnthropicGenerator().generate("s", "p"))
        assert exc.value.status_code == 500
        assert not isinstance(exc.value, QuotaExceededError)
