"""Resumes router — version history, AI generation, import, fit analysis and PDF export."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from applytrack.config import settings
from applytrack.database import get_db
from applytrack.middleware.auth import get_current_user
from applytrack.middleware.rate_limit import limiter
from applytrack.models.resume_version import ResumeVersion
from applytrack.models.user import User
from applytrack.schemas.resume import (
    AnalysisResult,
    GenerateResumeRequest,
    ImportResumeRequest,
    ResumeVersionResponse,
)
from applytrack.services import version_store
from applytrack.services.fit_analyzer import analyze_resume_fit
from applytrack.services.pdf_renderer import render_resume_pdf, resume_pdf_filename
from applytrack.services.resume_generator import generate_resume_version

router = APIRouter(prefix="/api", tags=["resumes"])


def _to_response(version: ResumeVersion) -> ResumeVersionResponse:
    return ResumeVersionResponse(
        id=version.id,
        job_application_id=version.job_application_id,
        version=version.version,
        content=version_store.load_document(version),
        source=version.source,
        analysis=version_store.read_analysis(version),
        analyzed_at=version.analyzed_at.isoformat() if version.analyzed_at else None,
        created_at=version.created_at.isoformat(),
    )


@router.get("/applications/{application_id}/resumes", response_model=list[ResumeVersionResponse])
def list_resumes(
    application_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """All versions for an application, newest first."""
    versions = version_store.list_versions(db, current_user.id, application_id)
    return [_to_response(v) for v in versions]


@router.get("/resumes/{resume_id}", response_model=ResumeVersionResponse)
def get_resume(
    resume_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _to_response(version_store.get_version(db, current_user.id, resume_id))


@router.post("/applications/{application_id}/resumes/generate", response_model=ResumeVersionResponse, status_code=201)
@limiter.limit(settings.API_RATE_LIMIT)
async def generate_resume(
    request: Request,
    application_id: int,
    req: GenerateResumeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Generate a tailored resume; falls back to a deterministic draft when the AI quota is exhausted."""
    version = await generate_resume_version(
        db,
        current_user.id,
        application_id,
        job_description_override=req.job_description,
        custom_instructions=req.custom_instructions,
    )
    return _to_response(version)


@router.post("/applications/{application_id}/resumes/import", response_model=ResumeVersionResponse, status_code=201)
def import_resume(
    application_id: int,
    req: ImportResumeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Store pasted resume JSON (e.g. produced by hand in an external AI tool) as a new version."""
    version = version_store.import_version(db, current_user.id, application_id, req.content)
    return _to_response(version)


@router.delete("/resumes/{resume_id}")
def delete_resume(
    resume_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    version_store.delete_version(db, current_user.id, resume_id)
    return {"success": True}


@router.post("/applications/{application_id}/resumes/{resume_id}/analyze", response_model=AnalysisResult)
@limiter.limit(settings.API_RATE_LIMIT)
async def analyze_resume(
    request: Request,
    application_id: int,
    resume_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Score the version against the job description; replaces any previous analysis."""
    return await analyze_resume_fit(db, current_user.id, application_id, resume_id)


@router.get("/resumes/{resume_id}/pdf")
def export_resume_pdf(
    resume_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    version = version_store.get_version(db, current_user.id, resume_id)
    pdf = render_resume_pdf(version_store.load_document(version))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{resume_pdf_filename(version.version)}"'},
    )
