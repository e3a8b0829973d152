"""Prompt templates and output schemas for the resume engine.

Wording is configurable: RESUME_SYSTEM_PROMPT / ANALYSIS_SYSTEM_PROMPT in the
environment replace the defaults below. Schemas travel as data inside the
user message, never as provider-specific tool definitions.
"""

from __future__ import annotations

import json
from typing import Optional

from applytrack.config import settings
from applytrack.schemas.generation import GenerationInput

GENERATE_RESUME_SYSTEM = (
    "You are an expert ATS resume writer. Produce a concise, ATS-safe resume JSON "
    "based on the user's profile and the job description. Avoid images, tables, and "
    "fancy formatting. Dates must be written as 'Mon YYYY' or 'Present'. "
    "Respond ONLY with the JSON object, optionally inside ```json ... ``` fences."
)

ANALYZE_FIT_SYSTEM = (
    "You are a senior technical recruiter. Compare the resume to the job description "
    "and score how well the candidate fits. Be specific and actionable in suggestions. "
    "Respond ONLY with the JSON object, optionally inside ```json ... ``` fences."
)

RESUME_SCHEMA = {
    "name": "string",
    "contact": {
        "location": "string",
        "phone": "string",
        "email": "string",
        "linkedin": "string",
        "github": "string",
        "portfolio": "string",
    },
    "summary": "string",
    "skills": "string[]",
    "projects": [
        {"title": "string", "start": "string", "end": "string", "bullets": "string[]", "tech": "string[]"}
    ],
    "experience": [
        {"company": "string", "role": "string", "start": "string", "end": "string", "bullets": "string[]"}
    ],
    "education": [
        {"degree": "string", "field": "string", "institution": "string", "start": "string", "end": "string"}
    ],
    "certifications": [{"title": "string"}],
}

ANALYSIS_SCHEMA = {
    "matchScore": "integer 0-100",
    "scoreBreakdown": {
        "skills": "integer 0-100",
        "experience": "integer 0-100",
        "keywords": "integer 0-100",
        "education": "integer 0-100",
    },
    "suggestions": "string",
}


def resume_system_prompt(custom_instructions: Optional[str] = None) -> str:
    if custom_instructions and custom_instructions.strip():
        return custom_instructions.strip()
    return settings.RESUME_SYSTEM_PROMPT or GENERATE_RESUME_SYSTEM


def analysis_system_prompt() -> str:
    return settings.ANALYSIS_SYSTEM_PROMPT or ANALYZE_FIT_SYSTEM


def build_generation_prompt(data: GenerationInput) -> str:
    return json.dumps(
        {
            "instructions": {
                "outputFormat": {"type": "json", "schema": RESUME_SCHEMA},
                "style": {
                    "atsSafe": True,
                    "avoidFirstPerson": True,
                    "focusOnImpact": True,
                },
            },
            "data": data.to_payload(),
        }
    )


def build_analysis_prompt(job_description: str, document: dict) -> str:
    return json.dumps(
        {
            "instructions": {"outputFormat": {"type": "json", "schema": ANALYSIS_SCHEMA}},
            "jobDescription": job_description,
            "resume": document,
        }
    )
