"""
Generative service adapters.

Every provider exposes the same small capability, ``TextGenerator``:

    await generator.generate(system, prompt, max_tokens=..., temperature=...) -> str

so the resume orchestrator and the fit analyzer never know which vendor
answers. Providers, in priority order:
  1. Oracle Generative AI Inference via OCI SDK signed requests (~/.oci/config).
  2. Anthropic, when OCI is not configured.

Adapters classify failures themselves: quota / rate-limit answers become
``QuotaExceededError``, everything else ``GenerativeServiceError``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Protocol

import anthropic
import oci

from applytrack.config import settings
from applytrack.exceptions import GenerativeServiceError, QuotaExceededError

logger = logging.getLogger(__name__)

QUOTA_STATUS_CODES = {429}


class TextGenerator(Protocol):
    name: str

    @property
    def configured(self) -> bool: ...

    async def generate(
        self,
        system: str,
        prompt: str,
        *,
        max_tokens: int = 4000,
        temperature: float = 0.2,
    ) -> str: ...


# ─────────────────────────────────────────────────────────────────────────────
# Oracle GenAI — OCI signed requests
# ─────────────────────────────────────────────────────────────────────────────

def _is_cohere(model_id: str) -> bool:
    forced = settings.ORACLE_GENAI_API_FORMAT.strip().upper()
    if forced == "COHERE":
        return True
    if forced == "GENERIC":
        return False
    return model_id.lower().startswith("cohere.")


def _build_chat_body(system: str, prompt: str, max_tokens: int, temperature: float) -> dict:
    """Build JSON body for POST /20231130/actions/chat."""
    model_id = settings.ORACLE_GENAI_MODEL
    serving_mode = {"servingType": "ON_DEMAND", "modelId": model_id}

    if _is_cohere(model_id):
        chat_req: dict = {
            "apiFormat": "COHERE",
            "message": prompt,
            "maxTokens": max_tokens,
            "temperature": temperature,
            "isStream": False,
        }
        if system:
            chat_req["preambleOverride"] = system
    else:
        chat_req = {
            "apiFormat": "GENERIC",
            "messages": [{"role": "USER", "content": [{"type": "TEXT", "text": prompt}]}],
            "maxTokens": max_tokens,
            "temperature": temperature,
            "isStream": False,
        }
        if system:
            chat_req["systemMessage"] = system

    body: dict = {"servingMode": serving_mode, "chatRequest": chat_req}
    if settings.ORACLE_GENAI_COMPARTMENT_ID:
        body["compartmentId"] = settings.ORACLE_GENAI_COMPARTMENT_ID
    return body


def _extract_text(response_json: dict) -> str:
    """Pull plain text from an /actions/chat response."""
    chat_resp = response_json.get("chatResponse", {})
    if chat_resp.get("apiFormat", "GENERIC") == "COHERE":
        return chat_resp.get("text", "")
    choices = chat_resp.get("choices", [])
    if not choices:
        return ""
    content = choices[0].get("message", {}).get("content", [])
    if isinstance(content, list) and content:
        return content[0].get("text", "")
    return str(content)


def _oci_config() -> dict:
    cfg_file = str(Path(settings.OCI_CONFIG_FILE).expanduser())
    return oci.config.from_file(file_location=cfg_file, profile_name=settings.OCI_CONFIG_PROFILE)


def _oci_endpoint(cfg: dict) -> str:
    if settings.ORACLE_GENAI_BASE_URL:
        return settings.ORACLE_GENAI_BASE_URL.rstrip("/")
    region = cfg.get("region", "us-chicago-1")
    return f"https://inference.generativeai.{region}.oci.oraclecloud.com"


def _oci_post(path: str, body: dict, timeout: tuple = (10.0, 300.0)) -> dict:
    """Perform a signed POST request via OCI base client and return JSON dict."""
    cfg = _oci_config()
    client = oci.generative_ai_inference.GenerativeAiInferenceClient(
        config=cfg,
        service_endpoint=_oci_endpoint(cfg),
        timeout=timeout,
    )
    response = client.base_client.call_api(
        resource_path=path,
        method="POST",
        header_params={"content-type": "application/json"},
        body=body,
        response_type="str",
    )
    text = response.data if isinstance(response.data, str) else str(response.data)
    return json.loads(text)


class OracleGenAIGenerator:
    name = "oracle-genai"

    @property
    def configured(self) -> bool:
        return bool(
            settings.OCI_CONFIG_FILE
            and settings.OCI_CONFIG_PROFILE
            and settings.ORACLE_GENAI_MODEL
            and settings.ORACLE_GENAI_COMPARTMENT_ID
        )

    async def generate(self, system: str, prompt: str, *, max_tokens: int = 4000, temperature: float = 0.2) -> str:
        body = _build_chat_body(system, prompt, max_tokens, temperature)
        try:
            # OCI SDK already prefixes the API version path (/20231130).
            data = await asyncio.to_thread(_oci_post, "/actions/chat", body)
        except oci.exceptions.ServiceError as e:
            if e.status in QUOTA_STATUS_CODES:
                raise QuotaExceededError(
                    f"Oracle GenAI quota or rate limit exceeded: {e.message}",
                    provider=self.name,
                    status_code=e.status,
                ) from e
            raise GenerativeServiceError(
                f"Oracle GenAI request failed: {e.message}", provider=self.name, status_code=e.status
            ) from e
        except Exception as e:
            raise GenerativeServiceError(f"Oracle GenAI request failed: {e}", provider=self.name) from e
        return _extract_text(data)


# ─────────────────────────────────────────────────────────────────────────────
# Anthropic — only used when OCI is NOT configured
# ─────────────────────────────────────────────────────────────────────────────

class AnthropicGenerator:
    name = "anthropic"

    @property
    def configured(self) -> bool:
        return bool(settings.ANTHROPIC_API_KEY)

    def _create(self, system: str, prompt: str, max_tokens: int, temperature: float) -> str:
        client = anthropic.Anthropic(api_key=settings.ANTHROPIC_API_KEY)
        response = client.messages.create(
            model=settings.ANTHROPIC_MODEL,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        return response.content[0].text

    async def generate(self, system: str, prompt: str, *, max_tokens: int = 4000, temperature: float = 0.2) -> str:
        try:
            return await asyncio.to_thread(self._create, system, prompt, max_tokens, temperature)
        except anthropic.RateLimitError as e:
            raise QuotaExceededError(
                f"Anthropic quota or rate limit exceeded: {e.message}",
                provider=self.name,
                status_code=e.status_code,
            ) from e
        except anthropic.APIStatusError as e:
            raise GenerativeServiceError(
                f"Anthropic error: {e.message}", provider=self.name, status_code=e.status_code
            ) from e
        except anthropic.APIError as e:
            raise GenerativeServiceError(f"Anthropic error: {e}", provider=self.name) from e


class UnconfiguredGenerator:
    name = "none"

    @property
    def configured(self) -> bool:
        return False

    async def generate(self, system: str, prompt: str, *, max_tokens: int = 4000, temperature: float = 0.2) -> str:
        raise GenerativeServiceError("No AI provider configured", provider=self.name)


# ─────────────────────────────────────────────────────────────────────────────
# Provider selection + status helpers
# ─────────────────────────────────────────────────────────────────────────────

def get_text_generator() -> TextGenerator:
    """Oracle GenAI when configured, else Anthropic, else an unconfigured stub.

    Anthropic is never a silent fallback when Oracle is configured: if Oracle
    fails, the error is surfaced.
    """
    oracle = OracleGenAIGenerator()
    if oracle.configured:
        return oracle
    claude = AnthropicGenerator()
    if claude.configured:
        return claude
    return UnconfiguredGenerator()


def ai_provider_name() -> str:
    generator = get_text_generator()
    if isinstance(generator, OracleGenAIGenerator):
        return f"Oracle GenAI OCI-Signed ({settings.ORACLE_GENAI_MODEL})"
    if isinstance(generator, AnthropicGenerator):
        return f"Anthropic ({settings.ANTHROPIC_MODEL})"
    return "none"


async def ai_health_check() -> dict:
    """Live connectivity test — called by /api/health/ai."""
    generator = get_text_generator()
    provider = ai_provider_name()
    if not generator.configured:
        return {
            "provider": "none",
            "status": "unconfigured",
            "message": (
                "Set OCI_CONFIG_FILE, OCI_CONFIG_PROFILE, ORACLE_GENAI_COMPARTMENT_ID and "
                "ORACLE_GENAI_MODEL, or ANTHROPIC_API_KEY, in backend/.env."
            ),
        }

    try:
        reply = await generator.generate(
            "You are a test assistant.", "Reply with exactly: OK", max_tokens=10, temperature=0.0
        )
        return {"provider": provider, "status": "ok", "test_reply": reply.strip()}
    except GenerativeServiceError as e:
        logger.error("AI health check failed for %s: %s", provider, e)
        return {"provider": provider, "status": "error", "error": str(e)}
