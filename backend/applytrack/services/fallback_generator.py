"""Deterministic, non-AI resume synthesis.

Used when the generative service reports quota exhaustion or rate limiting.
``build_fallback_resume`` is pure: the same GenerationInput always produces
the same document. The orchestrator tags the stored copy with a ``meta``
marker (generator + timestamp); that marker is not part of the output here.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Optional

from applytrack.schemas.generation import GenerationInput
from applytrack.schemas.resume import (
    ResumeCertification,
    ResumeContact,
    ResumeDocument,
    ResumeEducation,
    ResumeExperience,
    ResumeProject,
)

PRESENT = "Present"
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def month_year(value: Optional[date]) -> str:
    """'Jan 2024' for a date, '' when missing. Locale independent."""
    if value is None:
        return ""
    return f"{_MONTHS[value.month - 1]} {value.year}"


def date_range(start: Optional[date], end: Optional[date], current: bool) -> tuple[str, str]:
    return month_year(start), PRESENT if current else month_year(end)


def parse_tech_stack(raw: Optional[str]) -> list[str]:
    """Parse a stored tech stack: JSON array first, comma-separated otherwise.

    Never raises; unparseable input degrades to comma splitting.
    """
    if not raw or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, ValueError):
        parsed = None
    if isinstance(parsed, list):
        return [t.strip() for t in parsed if isinstance(t, str) and t.strip()]
    return [t.strip() for t in raw.split(",") if t.strip()]


def dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item and item not in seen:
            seen.add(item)
            out.append(item)
    return out


def fallback_summary(data: GenerationInput) -> str:
    if data.summary and data.summary.strip():
        return data.summary.strip()
    title = data.job.title.strip() or "the target role"
    return (
        f"Candidate for {title} with experience drawn from the profile, "
        f"work history, and projects listed below."
    )


def build_fallback_resume(data: GenerationInput) -> ResumeDocument:
    project_techs = [parse_tech_stack(p.tech_stack) for p in data.projects]

    skills = dedupe(
        [s.name.strip() for s in data.skills if s.name]
        + [tech for techs in project_techs for tech in techs]
    )

    projects = []
    for project, techs in zip(data.projects, project_techs):
        start, end = date_range(project.start_date, project.end_date, current=False)
        bullets = list(project.bullets)
        if not bullets:
            blurb = project.description or project.summary
            if blurb and blurb.strip():
                bullets = [blurb.strip()]
        projects.append(
            ResumeProject(title=project.title, start=start, end=end, bullets=bullets, tech=dedupe(techs))
        )

    experience = []
    for exp in data.experiences:
        start, end = date_range(exp.start_date, exp.end_date, exp.current)
        experience.append(
            ResumeExperience(
                company=exp.company,
                role=exp.position,
                start=start,
                end=end,
                bullets=[b for b in exp.bullets if b],
            )
        )

    education = []
    for ed in data.educations:
        start, end = date_range(ed.start_date, ed.end_date, ed.current)
        education.append(
            ResumeEducation(degree=ed.degree, field=ed.field, institution=ed.institution, start=start, end=end)
        )

    return ResumeDocument(
        name=data.name,
        contact=ResumeContact(
            location=data.contact.location,
            phone=data.contact.phone,
            email=data.contact.email,
            linkedin=data.contact.linkedin,
            github=data.contact.github,
            portfolio=data.contact.portfolio,
        ),
        summary=fallback_summary(data),
        skills=skills,
        projects=projects,
        experience=experience,
        education=education,
        certifications=[ResumeCertification(title=t) for t in data.certifications],
    )
