"""
Jobs Router - job search, recommendations, applications and saved jobs (candidate side)
"""
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..exceptions import NotFoundError
from ..models.job import Job
from ..schemas.job import (
    JobResponse, ScoredJobResponse, ApplicationCreate, ApplicationResponse, SavedJobToggleResponse,
)
from ..schemas.search import JobFilters, JobSearchPage
from ..services.applications import (
    apply_to_job, withdraw_application, list_my_applications, toggle_saved_job, list_saved_jobs,
)
from ..services.auth import AuthContext, AppRole, get_candidate, get_optional_auth_context
from ..services.matching import is_good_match, score_job
from ..services.profile import find_profile
from ..services.search import search_jobs, recommended_jobs

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


def _scored(job: Job, score: int) -> ScoredJobResponse:
    return ScoredJobResponse(
        job=JobResponse.model_validate(job),
        match_score=score,
        good_match=is_good_match(score),
    )


async def _viewer_profile(db: AsyncSession, auth: Optional[AuthContext]):
    if auth is None or auth.role != AppRole.CANDIDATE:
        return None
    return await find_profile(db, auth.user_id)


@router.post("/search", response_model=JobSearchPage)
async def search(
    filters: JobFilters,
    db: AsyncSession = Depends(get_db),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
):
    """Faceted job search. Signed-in candidates also get a match score per job."""
    profile = await _viewer_profile(db, auth)
    page = await search_jobs(db, filters, profile=profile)
    return JobSearchPage(
        items=[_scored(job, score) for job, score in page.items],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


@router.get("/recommended", response_model=list[ScoredJobResponse])
async def get_recommended_jobs(
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
):
    profile = await find_profile(db, auth.user_id)
    return [_scored(job, score) for job, score in await recommended_jobs(db, profile, limit=limit)]


@router.get("/saved", response_model=list[JobResponse])
async def get_saved_jobs(
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
):
    return await list_saved_jobs(db, auth)


@router.get("/applications/me", response_model=list[ApplicationResponse])
async def get_my_applications(
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
):
    return await list_my_applications(db, auth)


@router.delete("/applications/{application_id}")
async def withdraw(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
):
    await withdraw_application(db, auth, application_id)
    return {"message": "Application withdrawn"}


@router.get("/{job_id}", response_model=ScoredJobResponse)
async def get_job(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    auth: Optional[AuthContext] = Depends(get_optional_auth_context),
):
    """Job detail. Link-only jobs are reachable here even though search hides them."""
    job = await db.get(Job, job_id)
    if job is None or not job.is_active:
        raise NotFoundError("Job not found")
    profile = await _viewer_profile(db, auth)
    return _scored(job, score_job(profile, job))


@router.post("/{job_id}/apply", response_model=ApplicationResponse, status_code=201)
async def apply(
    job_id: int,
    data: ApplicationCreate = None,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
):
    cover_letter = data.cover_letter if data else None
    return await apply_to_job(db, auth, job_id, cover_letter=cover_letter)


@router.post("/{job_id}/save", response_model=SavedJobToggleResponse)
async def toggle_save(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
):
    saved = await toggle_saved_job(db, auth, job_id)
    return SavedJobToggleResponse(job_id=job_id, saved=saved)
