"""
Applications, saved jobs and shortlisting.

At most one application per (candidate, job) is enforced by reading before
writing, not by a unique constraint, so two concurrent applies can both pass
the check. Sequential duplicates are always refused.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models.job import Job, Application, ApplicationStatus, SavedJob
from ..models.profile import CandidateProfile
from .auth import AuthContext
from .recruiter_jobs import get_recruiter_profile, get_owned_job

logger = logging.getLogger(__name__)


@dataclass
class BulkResult:
    successful: int = 0
    total: int = 0
    failed_ids: List[int] = field(default_factory=list)


async def get_candidate_profile(db: AsyncSession, auth: AuthContext) -> CandidateProfile:
    result = await db.execute(
        select(CandidateProfile).where(CandidateProfile.user_id == auth.user_id)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise NotFoundError("Please complete your profile first")
    return profile


async def find_application(db: AsyncSession, candidate_id: int, job_id: int) -> Optional[Application]:
    result = await db.execute(
        select(Application).where(
            Application.candidate_id == candidate_id,
            Application.job_id == job_id,
        )
    )
    return result.scalars().first()


# ============================================================================
# Candidate Side
# ============================================================================

async def apply_to_job(db: AsyncSession, auth: AuthContext, job_id: int, cover_letter: str = None) -> Application:
    profile = await get_candidate_profile(db, auth)
    job = await db.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    if not job.is_active:
        raise ValidationError("This job is no longer accepting applications")

    if await find_application(db, profile.id, job_id) is not None:
        raise ConflictError("You have already applied to this job")

    application = Application(
        candidate_id=profile.id,
        job_id=job_id,
        status=ApplicationStatus.APPLIED,
        cover_letter=cover_letter,
    )
    db.add(application)
    await db.flush()
    logger.info("Candidate %s applied to job %s", profile.id, job_id)
    return application


async def withdraw_application(db: AsyncSession, auth: AuthContext, application_id: int) -> None:
    profile = await get_candidate_profile(db, auth)
    application = await db.get(Application, application_id)
    if application is None or application.candidate_id != profile.id:
        raise NotFoundError("Application not found")
    await db.delete(application)
    await db.flush()


async def list_my_applications(db: AsyncSession, auth: AuthContext) -> List[Application]:
    profile = await get_candidate_profile(db, auth)
    result = await db.execute(
        select(Application)
        .options(selectinload(Application.job))
        .where(Application.candidate_id == profile.id)
        .order_by(Application.created_at.desc(), Application.id.desc())
    )
    return result.scalars().all()


async def toggle_saved_job(db: AsyncSession, auth: AuthContext, job_id: int) -> bool:
    """Save the job, or unsave it if already saved. Returns the new saved flag."""
    profile = await get_candidate_profile(db, auth)
    if await db.get(Job, job_id) is None:
        raise NotFoundError("Job not found")

    result = await db.execute(
        select(SavedJob).where(SavedJob.candidate_id == profile.id, SavedJob.job_id == job_id)
    )
    existing = result.scalars().first()
    if existing is not None:
        await db.delete(existing)
        await db.flush()
        return False

    db.add(SavedJob(candidate_id=profile.id, job_id=job_id))
    await db.flush()
    return True


async def list_saved_jobs(db: AsyncSession, auth: AuthContext) -> List[Job]:
    profile = await get_candidate_profile(db, auth)
    result = await db.execute(
        select(Job)
        .join(SavedJob, SavedJob.job_id == Job.id)
        .where(SavedJob.candidate_id == profile.id)
        .order_by(SavedJob.created_at.desc())
    )
    return result.scalars().all()


# ============================================================================
# Recruiter Side
# ============================================================================

async def update_application_status(
    db: AsyncSession, auth: AuthContext, application_id: int, status: ApplicationStatus
) -> Application:
    recruiter = await get_recruiter_profile(db, auth)
    application = await db.get(Application, application_id)
    if application is None:
        raise NotFoundError("Application not found")
    await get_owned_job(db, recruiter, application.job_id)
    application.status = status
    await db.flush()
    return application


async def bulk_update_status(
    db: AsyncSession, auth: AuthContext, application_ids: List[int], status: ApplicationStatus
) -> BulkResult:
    """One UPDATE over the given ids, limited to applications on the recruiter's jobs."""
    recruiter = await get_recruiter_profile(db, auth)
    ids = list(dict.fromkeys(application_ids))
    if not ids:
        return BulkResult()

    owned_jobs = select(Job.id).where(Job.recruiter_id == recruiter.id)
    result = await db.execute(
        select(Application.id).where(Application.id.in_(ids), Application.job_id.in_(owned_jobs))
    )
    owned_ids = set(result.scalars().all())
    if owned_ids:
        await db.execute(
            update(Application)
            .where(Application.id.in_(owned_ids))
            .values(status=status)
            .execution_options(synchronize_session="fetch")
        )
        await db.flush()
    return BulkResult(
        successful=len(owned_ids),
        total=len(ids),
        failed_ids=[i for i in ids if i not in owned_ids],
    )


async def _shortlist(db: AsyncSession, job: Job, candidate_id: int) -> Application:
    if await db.get(CandidateProfile, candidate_id) is None:
        raise NotFoundError("Candidate not found")

    application = await find_application(db, candidate_id, job.id)
    if application is not None:
        if application.status == ApplicationStatus.SHORTLISTED:
            raise ConflictError("Candidate is already shortlisted for this job")
        application.status = ApplicationStatus.SHORTLISTED
    else:
        application = Application(
            candidate_id=candidate_id,
            job_id=job.id,
            status=ApplicationStatus.SHORTLISTED,
        )
        db.add(application)
    await db.flush()
    return application


async def shortlist_candidate(db: AsyncSession, auth: AuthContext, job_id: int, candidate_id: int) -> Application:
    recruiter = await get_recruiter_profile(db, auth)
    job = await get_owned_job(db, recruiter, job_id)
    return await _shortlist(db, job, candidate_id)


async def bulk_shortlist(
    session_maker: async_sessionmaker, auth: AuthContext, job_id: int, candidate_ids: List[int]
) -> BulkResult:
    """Shortlist each candidate independently; one failure never blocks the rest.

    A candidate who is already shortlisted counts as a success.
    """
    async with session_maker() as session:
        recruiter = await get_recruiter_profile(session, auth)
        job = await get_owned_job(session, recruiter, job_id)

    candidate_ids = list(dict.fromkeys(candidate_ids))

    async def shortlist_one(candidate_id: int):
        async with session_maker() as session:
            try:
                await _shortlist(session, job, candidate_id)
                await session.commit()
            except ConflictError:
                await session.rollback()

    results = await asyncio.gather(
        *(shortlist_one(cid) for cid in candidate_ids),
        return_exceptions=True,
    )

    failed_ids = []
    for candidate_id, outcome in zip(candidate_ids, results):
        if isinstance(outcome, Exception):
            logger.warning("Could not shortlist candidate %s for job %s: %s", candidate_id, job_id, outcome)
            failed_ids.append(candidate_id)
    return BulkResult(
        successful=len(candidate_ids) - len(failed_ids),
        total=len(candidate_ids),
        failed_ids=failed_ids,
    )
