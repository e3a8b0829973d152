"""Job application model — the target a resume version is tailored for."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from applytrack.database import Base


class JobApplication(Base):
    __tablename__ = "job_applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    company_name = Column(String(255), nullable=True)
    job_title = Column(String(255), nullable=False)
    job_description = Column(Text, nullable=True)
    platform = Column(String(100), nullable=True)       # linkedin | indeed | referral | ...
    application_url = Column(String(500), nullable=True)
    status = Column(String(30), default="draft")        # draft | applied | interview | offer | rejected

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="job_applications")
    resume_versions = relationship("ResumeVersion", back_populates="job_application", cascade="all, delete-orphan")
