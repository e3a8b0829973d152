"""User model."""

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from applytrack.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    profile = relationship("Profile", back_populates="user", uselist=False)
    experiences = relationship("Experience", back_populates="user")
    projects = relationship("Project", back_populates="user")
    skills = relationship("UserSkill", back_populates="user")
    certifications = relationship("Certification", back_populates="user")
    job_applications = relationship("JobApplication", back_populates="user")
    resume_versions = relationship("ResumeVersion", back_populates="user")
