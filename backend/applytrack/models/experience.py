"""Work experience and its ordered bullet points."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from applytrack.database import Base


class Experience(Base):
    __tablename__ = "experiences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    company = Column(String(255), nullable=False)
    position = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    current = Column(Boolean, default=False)           # Ongoing role; end_date is ignored
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    user = relationship("User", back_populates="experiences")
    bullets = relationship("ExperienceBullet", back_populates="experience", cascade="all, delete-orphan")


class ExperienceBullet(Base):
    __tablename__ = "experience_bullets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    experience_id = Column(Integer, ForeignKey("experiences.id"), nullable=False)
    content = Column(Text, nullable=False)
    order = Column(Integer, nullable=False, default=0)

    experience = relationship("Experience", back_populates="bullets")
