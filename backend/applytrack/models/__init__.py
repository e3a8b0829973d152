"""SQLAlchemy ORM models."""

from applytrack.models.user import User
from applytrack.models.profile import Profile, Education
from applytrack.models.experience import Experience, ExperienceBullet
from applytrack.models.project import Project, ProjectBullet
from applytrack.models.skill import Skill, UserSkill
from applytrack.models.certification import Certification
from applytrack.models.job_application import JobApplication
from applytrack.models.resume_version import ResumeVersion

__all__ = [
    "User",
    "Profile",
    "Education",
    "Experience",
    "ExperienceBullet",
    "Project",
    "ProjectBullet",
    "Skill",
    "UserSkill",
    "Certification",
    "JobApplication",
    "ResumeVersion",
]
