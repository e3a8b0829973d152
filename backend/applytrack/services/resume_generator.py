"""Generation orchestrator — turns career data + a job description into a new resume version.

Flow for one call:
  1. reserve the user's "generate" cooldown slot (before any external call)
  2. require a configured AI provider
  3. aggregate profile data; require a job description
  4. build the prompt (system instruction + schema + data)
  5. call the provider once, bounded by RESUME_LLM_TIMEOUT_SECONDS
  6. extract + normalize the JSON document
  7. on quota / rate-limit errors only, synthesize the fallback document
  8-9. store as the next version, then start the cooldown

Any failure releases the cooldown slot and propagates to the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy.orm import Session

from applytrack.config import settings
from applytrack.exceptions import (
    ConfigurationError,
    GenerationError,
    GenerativeServiceError,
    QuotaExceededError,
    ValidationError,
)
from applytrack.models.resume_version import ResumeVersion
from applytrack.schemas.resume import ResumeDocument
from applytrack.services import version_store
from applytrack.services.ai_client import TextGenerator, get_text_generator
from applytrack.services.cooldown import GENERATE, CooldownLimiter, resume_cooldown
from applytrack.services.fallback_generator import build_fallback_resume
from applytrack.services.llm_json import extract_json_object
from applytrack.services.profile_aggregator import build_generation_input
from applytrack.services.prompts import build_generation_prompt, resume_system_prompt

logger = logging.getLogger(__name__)

MANUAL_IMPORT_HINT = (
    "Copy the prompt into your AI tool of choice and paste the JSON result "
    "through the import endpoint instead."
)


def parse_resume_document(text: str) -> ResumeDocument:
    """Parse model output into a complete ResumeDocument.

    Raises:
        GenerationError: when no JSON object can be recovered or its shape is wrong.
    """
    try:
        raw = extract_json_object(text)
    except ValueError as e:
        raise GenerationError(f"AI response was not valid JSON ({e}). {MANUAL_IMPORT_HINT}") from e
    try:
        return ResumeDocument.model_validate(raw)
    except SchemaValidationError as e:
        raise GenerationError(
            f"AI response did not match the resume schema ({e.error_count()} errors). {MANUAL_IMPORT_HINT}"
        ) from e


async def call_generator(
    generator: TextGenerator,
    system: str,
    prompt: str,
    *,
    max_tokens: int,
    temperature: float,
    timeout: float,
) -> str:
    """Single provider call; a timeout is a terminal service failure."""
    try:
        return await asyncio.wait_for(
            generator.generate(system, prompt, max_tokens=max_tokens, temperature=temperature),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        logger.error("%s timed out after %.0fs", generator.name, timeout)
        raise GenerativeServiceError(
            f"{generator.name} did not answer within {timeout:.0f}s", provider=generator.name
        ) from e
    except QuotaExceededError:
        raise
    except GenerativeServiceError as e:
        logger.error("%s request failed: %s", generator.name, e)
        raise


async def generate_resume_version(
    db: Session,
    user_id: int,
    job_application_id: int,
    job_description_override: Optional[str] = None,
    custom_instructions: Optional[str] = None,
    *,
    generator: Optional[TextGenerator] = None,
    cooldown: Optional[CooldownLimiter] = None,
) -> ResumeVersion:
    cooldown = cooldown or resume_cooldown
    cooldown.reserve(user_id, GENERATE)
    try:
        generator = generator or get_text_generator()
        if not generator.configured:
            raise ConfigurationError(
                "AI provider is not configured. Set OCI GenAI or ANTHROPIC_API_KEY in your environment."
            )

        data = build_generation_input(db, user_id, job_application_id, job_description_override)
        if not data.job.description.strip():
            raise ValidationError("Job description is required to generate a resume")

        system = resume_system_prompt(custom_instructions)
        prompt = build_generation_prompt(data)

        source = "ai"
        try:
            text = await call_generator(
                generator,
                system,
                prompt,
                max_tokens=settings.RESUME_LLM_MAX_TOKENS,
                temperature=settings.RESUME_LLM_TEMPERATURE,
                timeout=settings.RESUME_LLM_TIMEOUT_SECONDS,
            )
        except QuotaExceededError as e:
            logger.warning("Quota hit on %s, using fallback resume for user %s: %s", generator.name, user_id, e)
            document = build_fallback_resume(data).model_dump()
            document["meta"] = {
                "generator": "fallback",
                "reason": "quota_or_rate_limit",
                "generatedAt": datetime.now(timezone.utc).isoformat(),
            }
            source = "fallback"
        else:
            document = parse_resume_document(text).model_dump()

        version = version_store.create_version(
            db, user_id, job_application_id, json.dumps(document), source=source
        )
    except Exception:
        cooldown.release(user_id, GENERATE)
        raise

    cooldown.commit(user_id, GENERATE)
    return version
