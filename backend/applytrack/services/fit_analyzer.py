"""Fit analyzer — scores a resume version against its job description.

Each version has a single analysis slot. Running the analysis again replaces
the previous score, breakdown and suggestions; nothing is merged or kept.
Quota errors are surfaced here; there is no deterministic fallback for scoring.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from applytrack.config import settings
from applytrack.exceptions import ConfigurationError, GenerationError, NotFoundError, ValidationError
from applytrack.schemas.resume import AnalysisResult
from applytrack.services import version_store
from applytrack.services.ai_client import TextGenerator, get_text_generator
from applytrack.services.cooldown import ANALYZE, CooldownLimiter, resume_cooldown
from applytrack.services.llm_json import extract_json_object
from applytrack.services.profile_aggregator import get_owned_application
from applytrack.services.prompts import analysis_system_prompt, build_analysis_prompt
from applytrack.services.resume_generator import call_generator

logger = logging.getLogger(__name__)


def clamp_score(value: Any) -> int:
    """Coerce a model-supplied score to an int in [0, 100]."""
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError, OverflowError):
        raise GenerationError(f"Score is not a number: {value!r}")
    return max(0, min(100, score))


def parse_analysis(text: str) -> AnalysisResult:
    try:
        raw = extract_json_object(text)
    except ValueError as e:
        raise GenerationError(f"AI analysis was not valid JSON ({e})") from e

    if "matchScore" not in raw:
        raise GenerationError("AI analysis is missing matchScore")

    breakdown_raw = raw.get("scoreBreakdown") or {}
    if not isinstance(breakdown_raw, dict):
        raise GenerationError("AI analysis scoreBreakdown must be an object")
    breakdown = {str(k): clamp_score(v) for k, v in breakdown_raw.items()}

    suggestions = raw.get("suggestions") or ""
    if isinstance(suggestions, list):
        suggestions = "\n".join(str(s).strip() for s in suggestions if str(s).strip())

    return AnalysisResult(
        match_score=clamp_score(raw["matchScore"]),
        score_breakdown=breakdown,
        suggestions=str(suggestions).strip(),
    )


async def analyze_resume_fit(
    db: Session,
    user_id: int,
    job_application_id: int,
    resume_version_id: int,
    *,
    generator: Optional[TextGenerator] = None,
    cooldown: Optional[CooldownLimiter] = None,
) -> AnalysisResult:
    cooldown = cooldown or resume_cooldown
    cooldown.reserve(user_id, ANALYZE)
    try:
        generator = generator or get_text_generator()
        if not generator.configured:
            raise ConfigurationError(
                "AI provider is not configured. Set OCI GenAI or ANTHROPIC_API_KEY in your environment."
            )

        application = get_owned_application(db, user_id, job_application_id)
        job_description = (application.job_description or "").strip()
        if not job_description:
            raise ValidationError("Job application has no job description to analyze against")

        version = version_store.get_version(db, user_id, resume_version_id)
        if version.job_application_id != application.id:
            raise NotFoundError("Resume not found for this job application")

        text = await call_generator(
            generator,
            analysis_system_prompt(),
            build_analysis_prompt(job_description, version_store.load_document(version)),
            max_tokens=1500,
            temperature=settings.RESUME_LLM_TEMPERATURE,
            timeout=settings.RESUME_LLM_TIMEOUT_SECONDS,
        )
        result = parse_analysis(text)
        version_store.save_analysis(db, version, result)
        logger.info("Analyzed resume v%s for application %s: %s", version.version, application.id, result.match_score)
    except Exception:
        cooldown.release(user_id, ANALYZE)
        raise

    cooldown.commit(user_id, ANALYZE)
    return result
