"""Resume document schema plus request/response models for the resume API.

``ResumeDocument`` is the output contract of both the generative service and
the fallback generator. Validating through it fills every missing key with an
empty value, so a committed document never lacks a section.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        item = item.strip()
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out


class _Section(BaseModel):
    """Drops explicit nulls so field defaults apply."""

    @model_validator(mode="before")
    @classmethod
    def _strip_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# ── Resume document ──────────────────────────────────────────────────────────

class ResumeContact(_Section):
    location: str = ""
    phone: str = ""
    email: str = ""
    linkedin: str = ""
    github: str = ""
    portfolio: str = ""


class ResumeProject(_Section):
    title: str = ""
    start: str = ""
    end: str = ""
    bullets: list[str] = Field(default_factory=list)
    tech: list[str] = Field(default_factory=list)

    @field_validator("tech", mode="before")
    @classmethod
    def _split_tech(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [t for t in (s.strip() for s in v.split(",")) if t]
        return v

    @field_validator("tech")
    @classmethod
    def _dedupe_tech(cls, v: list[str]) -> list[str]:
        return _dedupe(v)


class ResumeExperience(_Section):
    company: str = ""
    role: str = ""
    start: str = ""
    end: str = ""
    bullets: list[str] = Field(default_factory=list)


class ResumeEducation(_Section):
    degree: str = ""
    field: str = ""
    institution: str = ""
    start: str = ""
    end: str = ""


class ResumeCertification(_Section):
    title: str = ""

    @model_validator(mode="before")
    @classmethod
    def _from_plain_title(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"title": data}
        return data


class ResumeDocument(_Section):
    name: str = ""
    contact: ResumeContact = Field(default_factory=ResumeContact)
    summary: str = ""
    skills: list[str] = Field(default_factory=list)
    projects: list[ResumeProject] = Field(default_factory=list)
    experience: list[ResumeExperience] = Field(default_factory=list)
    education: list[ResumeEducation] = Field(default_factory=list)
    certifications: list[ResumeCertification] = Field(default_factory=list)

    @field_validator("skills")
    @classmethod
    def _dedupe_skills(cls, v: list[str]) -> list[str]:
        return _dedupe(v)


# ── Fit analysis ─────────────────────────────────────────────────────────────

class AnalysisResult(BaseModel):
    match_score: int
    score_breakdown: dict[str, int] = Field(default_factory=dict)
    suggestions: str = ""


# ── API models ───────────────────────────────────────────────────────────────

class GenerateResumeRequest(BaseModel):
    job_description: Optional[str] = None
    custom_instructions: Optional[str] = None


class ImportResumeRequest(BaseModel):
    content: str = Field(min_length=2)


class ResumeVersionResponse(BaseModel):
    id: int
    job_application_id: int
    version: int
    content: dict
    source: str  # ai | fallback | import
    analysis: Optional[AnalysisResult] = None
    analyzed_at: Optional[str] = None
    created_at: str

    class Config:
        from_attributes = True
