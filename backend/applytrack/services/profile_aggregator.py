"""Profile aggregator — flattens a user's career records into a GenerationInput.

Read-only. Ordering is applied in Python on explicit keys so the result does
not depend on the row order the database happens to return:
  - experiences: start date descending (undated last), then insertion order
  - projects: non-archived only, by ``order`` then insertion order
  - bullets: by ``order`` then insertion order
  - skills, certifications: insertion order
  - education: start date descending (undated last)
"""

from typing import Optional

from sqlalchemy.orm import Session

from applytrack.exceptions import NotFoundError
from applytrack.models.certification import Certification
from applytrack.models.experience import Experience
from applytrack.models.job_application import JobApplication
from applytrack.models.profile import Profile
from applytrack.models.project import Project
from applytrack.models.skill import UserSkill
from applytrack.models.user import User
from applytrack.schemas.generation import (
    ContactInfo,
    EducationEntry,
    ExperienceEntry,
    GenerationInput,
    ProjectEntry,
    SkillEntry,
    TargetJob,
)


def _ordered_bullets(bullets) -> list[str]:
    ordered = sorted(bullets, key=lambda b: (b.order if b.order is not None else 0, b.id))
    return [b.content for b in ordered if b.content and b.content.strip()]


def _newest_first(rows, start_attr: str = "start_date"):
    """Sort by start date descending; rows without a date go last, ties by id."""
    dated = [r for r in rows if getattr(r, start_attr) is not None]
    undated = [r for r in rows if getattr(r, start_attr) is None]
    dated.sort(key=lambda r: r.id)
    dated.sort(key=lambda r: getattr(r, start_attr), reverse=True)
    undated.sort(key=lambda r: r.id)
    return dated + undated


def get_owned_application(db: Session, user_id: int, job_application_id: int) -> JobApplication:
    application = db.query(JobApplication).filter(
        JobApplication.id == job_application_id,
        JobApplication.user_id == user_id,
    ).first()
    if not application:
        raise NotFoundError("Job application not found")
    return application


def build_generation_input(
    db: Session,
    user_id: int,
    job_application_id: int,
    job_description_override: Optional[str] = None,
) -> GenerationInput:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")

    profile = db.query(Profile).filter(Profile.user_id == user_id).first()
    if not profile:
        raise NotFoundError("Profile not found. Create a profile before generating a resume.")

    application = get_owned_application(db, user_id, job_application_id)

    experiences = db.query(Experience).filter(Experience.user_id == user_id).all()
    projects = db.query(Project).filter(
        Project.user_id == user_id,
        Project.archived.isnot(True),
    ).all()
    user_skills = db.query(UserSkill).filter(UserSkill.user_id == user_id).all()
    certifications = db.query(Certification).filter(Certification.user_id == user_id).all()

    projects = sorted(projects, key=lambda p: (p.order if p.order is not None else 0, p.id))
    user_skills = sorted(user_skills, key=lambda us: us.id)
    certifications = sorted(certifications, key=lambda c: c.id)

    description = job_description_override or application.job_description or ""

    return GenerationInput(
        user_id=user.id,
        name=user.name or "",
        contact=ContactInfo(
            email=profile.email or user.email or "",
            phone=profile.phone or "",
            linkedin=profile.linkedin or "",
            github=profile.github or "",
            portfolio=profile.portfolio or "",
            location=profile.location or "",
        ),
        summary=profile.summary or "",
        job=TargetJob(
            title=application.job_title or "",
            description=description,
            company=application.company_name or "",
            platform=application.platform or "",
            url=application.application_url or "",
        ),
        experiences=[
            ExperienceEntry(
                company=e.company,
                position=e.position,
                location=e.location or "",
                start_date=e.start_date,
                end_date=e.end_date,
                current=bool(e.current),
                description=e.description or "",
                bullets=_ordered_bullets(e.bullets),
            )
            for e in _newest_first(experiences)
        ],
        projects=[
            ProjectEntry(
                title=p.title,
                summary=p.summary or "",
                description=p.description or "",
                role=p.role or "",
                tech_stack=p.tech_stack or "",
                start_date=p.start_date,
                end_date=p.end_date,
                url=p.url or "",
                bullets=_ordered_bullets(p.bullets),
            )
            for p in projects
        ],
        skills=[
            SkillEntry(name=us.skill.name, category=us.skill.category or "", level=us.level or "")
            for us in user_skills
            if us.skill is not None
        ],
        educations=[
            EducationEntry(
                institution=ed.institution,
                degree=ed.degree,
                field=ed.field or "",
                start_date=ed.start_date,
                end_date=ed.end_date,
                current=bool(ed.current),
            )
            for ed in _newest_first(profile.educations)
        ],
        certifications=[c.title for c in certifications if c.title],
    )

