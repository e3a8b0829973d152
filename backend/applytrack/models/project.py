"""Portfolio projects and their ordered bullet points."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from applytrack.database import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    summary = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    role = Column(String(255), nullable=True)
    tech_stack = Column(Text, nullable=True)           # JSON array string or "a, b, c"
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    url = Column(String(500), nullable=True)
    archived = Column(Boolean, default=False)
    order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="projects")
    bullets = relationship("ProjectBullet", back_populates="project", cascade="all, delete-orphan")


class ProjectBullet(Base):
    __tablename__ = "project_bullets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    content = Column(Text, nullable=False)
    order = Column(Integer, nullable=False, default=0)

    project = relationship("Project", back_populates="bullets")
