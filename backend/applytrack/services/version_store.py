"""Version store — append-only resume history per job application.

Versions are numbered max(existing) + 1, starting at 1. Deleting a version
never renumbers the rest, so gaps are normal. Content is written once; the
only later mutation is the fit-analysis slot, which is overwritten in place.

Numbering is read-then-insert; the unique (application, version) constraint
decides between concurrent writers and the loser retries with a fresh number.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from applytrack.exceptions import NotFoundError, ValidationError, VersionConflictError
from applytrack.models.resume_version import ResumeVersion
from applytrack.schemas.resume import AnalysisResult
from applytrack.services.profile_aggregator import get_owned_application

logger = logging.getLogger(__name__)

IMPORT_REQUIRED_ANY = ("summary", "experience", "projects")
MAX_NUMBERING_ATTEMPTS = 20


def _has_content(value: Any) -> bool:
    """Empty lists and objects count as present; "", 0, false and null do not."""
    return isinstance(value, (list, dict)) or bool(value)


def next_version_number(db: Session, job_application_id: int) -> int:
    latest = (
        db.query(func.max(ResumeVersion.version))
        .filter(ResumeVersion.job_application_id == job_application_id)
        .scalar()
    )
    return (latest or 0) + 1


def list_versions(db: Session, user_id: int, job_application_id: int) -> list[ResumeVersion]:
    get_owned_application(db, user_id, job_application_id)
    return (
        db.query(ResumeVersion)
        .filter(
            ResumeVersion.user_id == user_id,
            ResumeVersion.job_application_id == job_application_id,
        )
        .order_by(ResumeVersion.version.desc())
        .all()
    )


def get_version(db: Session, user_id: int, version_id: int) -> ResumeVersion:
    version = db.query(ResumeVersion).filter(
        ResumeVersion.id == version_id,
        ResumeVersion.user_id == user_id,
    ).first()
    if not version:
        raise NotFoundError("Resume not found")
    return version


def create_version(
    db: Session,
    user_id: int,
    job_application_id: int,
    content: str,
    source: str = "ai",
) -> ResumeVersion:
    for attempt in range(1, MAX_NUMBERING_ATTEMPTS + 1):
        number = next_version_number(db, job_application_id)
        version = ResumeVersion(
            user_id=user_id,
            job_application_id=job_application_id,
            version=number,
            content=content,
            source=source,
        )
        db.add(version)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(
                "Resume v%s for application %s was taken by a concurrent write (attempt %s)",
                number, job_application_id, attempt,
            )
            continue
        db.refresh(version)
        logger.info(
            "Stored resume v%s for application %s (source=%s)",
            number, job_application_id, source,
        )
        return version

    raise VersionConflictError(
        f"Could not allocate a version number for application {job_application_id}, try again"
    )


def delete_version(db: Session, user_id: int, version_id: int) -> None:
    version = get_version(db, user_id, version_id)
    db.delete(version)
    db.commit()


def import_version(db: Session, user_id: int, job_application_id: int, raw_content: str) -> ResumeVersion:
    """Store pasted JSON as a new version.

    Only checks that the JSON is an object carrying at least one of
    summary / experience / projects (an empty list still counts); the rest
    is stored as given.
    """
    get_owned_application(db, user_id, job_application_id)

    try:
        parsed = json.loads(raw_content)
    except (json.JSONDecodeError, TypeError):
        raise ValidationError("Invalid JSON format") from None
    if not isinstance(parsed, dict):
        raise ValidationError("Resume JSON must be an object")
    if not any(_has_content(parsed.get(key)) for key in IMPORT_REQUIRED_ANY):
        raise ValidationError("Resume must contain at least summary, experience, or projects")

    return create_version(db, user_id, job_application_id, raw_content, source="import")


def load_document(version: ResumeVersion) -> dict:
    return json.loads(version.content)


def save_analysis(db: Session, version: ResumeVersion, result: AnalysisResult) -> ResumeVersion:
    """Replace the version's analysis slot; any earlier analysis is discarded."""
    version.match_score = result.match_score
    version.score_breakdown = json.dumps(result.score_breakdown)
    version.suggestions = result.suggestions
    version.analyzed_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(version)
    return version


def read_analysis(version: ResumeVersion) -> Optional[AnalysisResult]:
    if version.match_score is None:
        return None
    return AnalysisResult(
        match_score=version.match_score,
        score_breakdown=json.loads(version.score_breakdown) if version.score_breakdown else {},
        suggestions=version.suggestions or "",
    )
