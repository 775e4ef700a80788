"""
Recruiter job lifecycle: post, edit, close/reopen, duplicate, delete.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError, PermissionDeniedError, PremiumRequiredError, ValidationError
from ..models.job import Job, Application, SavedJob, RecruiterProfile
from ..schemas.job import JobCreate, JobUpdate, RecruiterProfileUpdate
from .auth import AuthContext

logger = logging.getLogger(__name__)

# Columns copied when a job is duplicated
_COPY_FIELDS = (
    "company_name", "location", "employment_type", "work_mode", "salary_min",
    "salary_max", "experience_min", "experience_max", "education_required",
    "skills_required", "description", "num_positions", "application_deadline",
    "visibility", "role_category",
)


async def find_recruiter_profile(db: AsyncSession, user_id: str) -> Optional[RecruiterProfile]:
    result = await db.execute(
        select(RecruiterProfile).where(RecruiterProfile.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_recruiter_profile(db: AsyncSession, auth: AuthContext) -> RecruiterProfile:
    recruiter = await find_recruiter_profile(db, auth.user_id)
    if recruiter is None:
        raise NotFoundError("Recruiter profile not found")
    return recruiter


async def save_recruiter_profile(db: AsyncSession, auth: AuthContext, data: RecruiterProfileUpdate) -> RecruiterProfile:
    recruiter = await find_recruiter_profile(db, auth.user_id)
    values = data.model_dump(exclude_unset=True)
    if recruiter is None:
        if not values.get("company_name"):
            raise ValidationError("Company name is required")
        recruiter = RecruiterProfile(user_id=auth.user_id)
        db.add(recruiter)
    for field, value in values.items():
        setattr(recruiter, field, value)
    await db.flush()
    return recruiter


async def require_premium(db: AsyncSession, auth: AuthContext) -> RecruiterProfile:
    recruiter = await get_recruiter_profile(db, auth)
    if not recruiter.has_premium_access:
        raise PremiumRequiredError("Candidate search requires premium access")
    return recruiter


async def get_owned_job(db: AsyncSession, recruiter: RecruiterProfile, job_id: int) -> Job:
    job = await db.get(Job, job_id)
    if job is None:
        raise NotFoundError("Job not found")
    if job.recruiter_id != recruiter.id:
        raise PermissionDeniedError("You can only manage your own jobs")
    return job


def _check_ranges(salary_min, salary_max, experience_min, experience_max):
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise ValidationError("Minimum salary cannot exceed maximum salary")
    if experience_min is not None and experience_max is not None and experience_min > experience_max:
        raise ValidationError("Minimum experience cannot exceed maximum experience")


async def create_job(db: AsyncSession, auth: AuthContext, data: JobCreate) -> Job:
    _check_ranges(data.salary_min, data.salary_max, data.experience_min, data.experience_max)
    recruiter = await get_recruiter_profile(db, auth)
    job = Job(recruiter_id=recruiter.id, **data.model_dump())
    db.add(job)
    await db.flush()
    logger.info("Recruiter %s posted job %s", recruiter.id, job.id)
    return job


async def update_job(db: AsyncSession, auth: AuthContext, job_id: int, data: JobUpdate) -> Job:
    recruiter = await get_recruiter_profile(db, auth)
    job = await get_owned_job(db, recruiter, job_id)
    values = data.model_dump(exclude_unset=True)
    _check_ranges(
        values.get("salary_min", job.salary_min),
        values.get("salary_max", job.salary_max),
        values.get("experience_min", job.experience_min),
        values.get("experience_max", job.experience_max),
    )
    for field, value in values.items():
        setattr(job, field, value)
    await db.flush()
    return job


async def set_job_active(db: AsyncSession, auth: AuthContext, job_id: int, is_active: bool) -> Job:
    recruiter = await get_recruiter_profile(db, auth)
    job = await get_owned_job(db, recruiter, job_id)
    job.is_active = is_active
    await db.flush()
    return job


async def duplicate_job(db: AsyncSession, auth: AuthContext, job_id: int) -> Job:
    """Copy a posting as an inactive draft titled '<title> (Copy)'."""
    recruiter = await get_recruiter_profile(db, auth)
    original = await get_owned_job(db, recruiter, job_id)
    copy = Job(
        recruiter_id=recruiter.id,
        title=f"{original.title} (Copy)",
        is_active=False,
        **{field: getattr(original, field) for field in _COPY_FIELDS},
    )
    copy.skills_required = list(original.skills_required or [])
    db.add(copy)
    await db.flush()
    return copy


async def delete_job(db: AsyncSession, auth: AuthContext, job_id: int) -> None:
    recruiter = await get_recruiter_profile(db, auth)
    job = await get_owned_job(db, recruiter, job_id)
    await db.execute(delete(Application).where(Application.job_id == job.id))
    await db.execute(delete(SavedJob).where(SavedJob.job_id == job.id))
    await db.delete(job)
    await db.flush()


async def list_recruiter_jobs(db: AsyncSession, auth: AuthContext) -> List[Tuple[Job, int]]:
    """The recruiter's jobs, newest first, each with its application count."""
    recruiter = await get_recruiter_profile(db, auth)
    counts = (
        select(Application.job_id, func.count(Application.id).label("application_count"))
        .group_by(Application.job_id)
        .subquery()
    )
    result = await db.execute(
        select(Job, func.coalesce(counts.c.application_count, 0))
        .outerjoin(counts, counts.c.job_id == Job.id)
        .where(Job.recruiter_id == recruiter.id)
        .order_by(Job.created_at.desc(), Job.id.desc())
    )
    return [(job, count) for job, count in result.all()]


async def list_job_applications(db: AsyncSession, auth: AuthContext, job_id: int) -> List[Application]:
    recruiter = await get_recruiter_profile(db, auth)
    await get_owned_job(db, recruiter, job_id)
    result = await db.execute(
        select(Application)
        .where(Application.job_id == job_id)
        .order_by(Application.created_at.desc())
    )
    return result.scalars().all()
