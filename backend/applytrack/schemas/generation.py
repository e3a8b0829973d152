"""Generation input — the flattened, read-only view of a user's career data.

Built by ``services.profile_aggregator`` and consumed by the prompt builder and
the fallback generator. Nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


@dataclass
class ContactInfo:
    email: str = ""
    phone: str = ""
    linkedin: str = ""
    github: str = ""
    portfolio: str = ""
    location: str = ""


@dataclass
class ExperienceEntry:
    company: str
    position: str
    location: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    current: bool = False
    description: str = ""
    bullets: list[str] = field(default_factory=list)


@dataclass
class ProjectEntry:
    title: str
    summary: str = ""
    description: str = ""
    role: str = ""
    tech_stack: str = ""  # raw stored value, JSON array or comma-separated
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    url: str = ""
    bullets: list[str] = field(default_factory=list)


@dataclass
class SkillEntry:
    name: str
    category: str = ""
    level: str = ""


@dataclass
class EducationEntry:
    institution: str
    degree: str
    field: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    current: bool = False


@dataclass
class TargetJob:
    title: str
    description: str = ""
    company: str = ""
    platform: str = ""
    url: str = ""


@dataclass
class GenerationInput:
    user_id: int
    name: str
    contact: ContactInfo
    summary: str
    job: TargetJob
    experiences: list[ExperienceEntry] = field(default_factory=list)
    projects: list[ProjectEntry] = field(default_factory=list)
    skills: list[SkillEntry] = field(default_factory=list)
    educations: list[EducationEntry] = field(default_factory=list)
    certifications: list[str] = field(default_factory=list)

    def to_payload(self) -> dict:
        """JSON-ready dict sent to the generative service as the ``data`` block."""

        def _d(value: Optional[date]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "application": {
                "jobTitle": self.job.title,
                "jobDescription": self.job.description,
                "company": self.job.company,
                "platform": self.job.platform,
                "url": self.job.url,
            },
            "user": {"name": self.name, "email": self.contact.email},
            "profile": {
                "summary": self.summary,
                "phone": self.contact.phone,
                "linkedin": self.contact.linkedin,
                "github": self.contact.github,
                "portfolio": self.contact.portfolio,
                "location": self.contact.location,
            },
            "experiences": [
                {
                    "company": e.company,
                    "position": e.position,
                    "location": e.location,
                    "startDate": _d(e.start_date),
                    "endDate": _d(e.end_date),
                    "current": e.current,
                    "description": e.description,
                    "bullets": list(e.bullets),
                }
                for e in self.experiences
            ],
            "projects": [
                {
                    "title": p.title,
                    "summary": p.summary,
                    "description": p.description,
                    "role": p.role,
                    "techStack": p.tech_stack,
                    "startDate": _d(p.start_date),
                    "endDate": _d(p.end_date),
                    "url": p.url,
                    "bullets": list(p.bullets),
                }
                for p in self.projects
            ],
            "skills": [
                {"name": s.name, "category": s.category, "level": s.level}
                for s in self.skills
            ],
            "education": [
                {
                    "institution": ed.institution,
                    "degree": ed.degree,
                    "field": ed.field,
                    "startDate": _d(ed.start_date),
                    "endDate": _d(ed.end_date),
                    "current": ed.current,
                }
                for ed in self.educations
            ],
            "certifications": list(self.certifications),
        }
