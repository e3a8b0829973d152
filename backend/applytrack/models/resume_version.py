"""Resume version model — one immutable resume document per (application, version)."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from applytrack.database import Base


class ResumeVersion(Base):
    __tablename__ = "resume_versions"
    __table_args__ = (
        UniqueConstraint("job_application_id", "version", name="uq_resume_version_per_application"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    job_application_id = Column(Integer, ForeignKey("job_applications.id"), nullable=False, index=True)
    version = Column(Integer, nullable=False)

    content = Column(Text, nullable=False)                 # Resume document as JSON text, never rewritten
    source = Column(String(20), nullable=False, default="ai")     # ai | fallback | import

    # Fit analysis slot, overwritten on every analysis run
    match_score = Column(Integer, nullable=True)           # 0..100
    score_breakdown = Column(Text, nullable=True)          # JSON: {category: 0..100}
    suggestions = Column(Text, nullable=True)
    analyzed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="resume_versions")
    job_application = relationship("JobApplication", back_populates="resume_versions")
