"""
Recruiter Router - company profile, job postings, applicant pipeline and candidate search
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..database import get_db, get_session_maker
from ..schemas.job import (
    JobCreate, JobUpdate, JobResponse, JobActiveUpdate, RecruiterJobResponse,
    ApplicationResponse, ApplicationStatusUpdate, BulkStatusUpdate,
    BulkShortlistRequest, BulkResultResponse,
    RecruiterProfileUpdate, RecruiterProfileResponse,
)
from ..schemas.profile import ProfileResponse
from ..schemas.search import CandidateSearchFilters, CandidateSearchPage, CandidateResult
from ..services.applications import (
    update_application_status, bulk_update_status, shortlist_candidate, bulk_shortlist,
)
from ..services.auth import AuthContext, get_recruiter
from ..services.recruiter_jobs import (
    get_recruiter_profile, save_recruiter_profile, require_premium,
    create_job, update_job, set_job_active, duplicate_job, delete_job,
    list_recruiter_jobs, list_job_applications,
)
from ..services.search import search_candidates

router = APIRouter(prefix="/api/recruiter", tags=["Recruiter"])


# ============================================================================
# Recruiter Profile
# ============================================================================

@router.get("/profile", response_model=RecruiterProfileResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    return await get_recruiter_profile(db, auth)


@router.put("/profile", response_model=RecruiterProfileResponse)
async def put_profile(
    data: RecruiterProfileUpdate,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    return await save_recruiter_profile(db, auth, data)


# ============================================================================
# Job Postings
# ============================================================================

@router.get("/jobs", response_model=list[RecruiterJobResponse])
async def get_my_jobs(
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    """All postings, newest first, with applicant counts"""
    rows = await list_recruiter_jobs(db, auth)
    return [
        RecruiterJobResponse(**JobResponse.model_validate(job).model_dump(), application_count=count)
        for job, count in rows
    ]


@router.post("/jobs", response_model=JobResponse, status_code=201)
async def post_job(
    data: JobCreate,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    return await create_job(db, auth, data)


@router.put("/jobs/{job_id}", response_model=JobResponse)
async def put_job(
    job_id: int,
    data: JobUpdate,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    return await update_job(db, auth, job_id, data)


@router.patch("/jobs/{job_id}/active", response_model=JobResponse)
async def patch_job_active(
    job_id: int,
    data: JobActiveUpdate,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    """Close or reopen a posting"""
    return await set_job_active(db, auth, job_id, data.is_active)


@router.post("/jobs/{job_id}/duplicate", response_model=JobResponse, status_code=201)
async def post_duplicate_job(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    return await duplicate_job(db, auth, job_id)


@router.delete("/jobs/{job_id}")
async def remove_job(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    await delete_job(db, auth, job_id)
    return {"message": "Job deleted"}


@router.get("/jobs/{job_id}/applications", response_model=list[ApplicationResponse])
async def get_job_applications(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    return await list_job_applications(db, auth, job_id)


# ============================================================================
# Applicant Pipeline
# ============================================================================

@router.put("/applications/bulk-status", response_model=BulkResultResponse)
async def put_bulk_status(
    data: BulkStatusUpdate,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    result = await bulk_update_status(db, auth, data.application_ids, data.status)
    return BulkResultResponse(**result.__dict__)


@router.put("/applications/{application_id}/status", response_model=ApplicationResponse)
async def put_application_status(
    application_id: int,
    data: ApplicationStatusUpdate,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    return await update_application_status(db, auth, application_id, data.status)


@router.post("/jobs/{job_id}/shortlist/{candidate_id}", response_model=ApplicationResponse)
async def post_shortlist(
    job_id: int,
    candidate_id: int,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    return await shortlist_candidate(db, auth, job_id, candidate_id)


@router.post("/shortlist/bulk", response_model=BulkResultResponse)
async def post_bulk_shortlist(
    data: BulkShortlistRequest,
    auth: AuthContext = Depends(get_recruiter),
    session_maker: async_sessionmaker = Depends(get_session_maker),
):
    """Shortlist many candidates; each one commits on its own"""
    result = await bulk_shortlist(session_maker, auth, data.job_id, data.candidate_ids)
    return BulkResultResponse(**result.__dict__)


# ============================================================================
# Candidate Search (premium)
# ============================================================================

@router.post("/candidates/search", response_model=CandidateSearchPage)
async def post_candidate_search(
    filters: CandidateSearchFilters,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_recruiter),
):
    await require_premium(db, auth)
    page = await search_candidates(db, filters)
    return CandidateSearchPage(
        items=[
            CandidateResult(profile=ProfileResponse.model_validate(profile), relevance_score=score)
            for profile, score in page.items
        ],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )
