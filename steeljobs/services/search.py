"""
Faceted search over jobs (candidate side) and candidates (recruiter side).

Scalar facets become SQL WHERE clauses. Array facets (skills, keyword over
skills) are checked in Python on the rows SQL returns, and the total count
is taken from that fully filtered list so count and pages always agree.
"""
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.job import Job, JobVisibility
from ..models.profile import CandidateProfile
from ..schemas.search import (
    JobFilters, CandidateSearchFilters, SortOption, Freshness,
    EXPERIENCE_CEILING, SALARY_CEILING,
)
from .matching import as_utc, newest_first_key, rank_jobs, score_job, score_candidate


@dataclass
class SearchPage:
    items: list = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


def paginate(rows: list, page: int, page_size: int) -> SearchPage:
    start = (page - 1) * page_size
    return SearchPage(
        items=rows[start:start + page_size],
        total=len(rows),
        page=page,
        page_size=page_size,
    )


def freshness_threshold(freshness: Freshness, now: datetime = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=freshness.days)


def sort_nulls_last(rows: list, key: Callable, descending: bool) -> list:
    """Stable sort on key with missing values at the end either way."""
    present = [r for r in rows if key(r) is not None]
    missing = [r for r in rows if key(r) is None]
    present.sort(key=key, reverse=descending)
    return present + missing


def _upper_bound(value, ceiling):
    # A max at the slider ceiling means "and above"
    if value is None or value >= ceiling:
        return None
    return value


def _contains_all(values, required) -> bool:
    values = set(v for v in (values or []) if isinstance(v, str))
    return all(token in values for token in required)


def _text_hit(needle: str, *haystacks) -> bool:
    return any(h and needle in h.lower() for h in haystacks)


# ============================================================================
# Job Search
# ============================================================================

def job_conditions(filters: JobFilters, now: datetime = None) -> list:
    conditions = [Job.is_active == True, Job.visibility == JobVisibility.PUBLIC]

    if filters.location:
        conditions.append(Job.location.ilike(f"%{filters.location.strip()}%"))
    if filters.employment_types:
        conditions.append(Job.employment_type.in_(filters.employment_types))
    if filters.work_modes:
        conditions.append(Job.work_mode.in_(filters.work_modes))
    if filters.education_levels:
        conditions.append(Job.education_required.in_(filters.education_levels))

    if filters.experience_min is not None or filters.experience_max is not None:
        conditions.append(Job.experience_min >= (filters.experience_min or 0))
        experience_max = _upper_bound(filters.experience_max, EXPERIENCE_CEILING)
        if experience_max is not None:
            conditions.append(Job.experience_min <= experience_max)

    # Salary ranges overlap
    if filters.salary_min:
        conditions.append(Job.salary_max >= filters.salary_min)
    salary_max = _upper_bound(filters.salary_max, SALARY_CEILING)
    if salary_max is not None:
        conditions.append(Job.salary_min <= salary_max)

    if filters.freshness:
        conditions.append(Job.created_at >= freshness_threshold(filters.freshness, now))
    return conditions


def job_matches(job: Job, filters: JobFilters) -> bool:
    if filters.keyword:
        keyword = filters.keyword.strip().lower()
        skills = [s for s in (job.skills_required or []) if isinstance(s, str)]
        if not (_text_hit(keyword, job.title, job.company_name, job.description)
                or _text_hit(keyword, *skills)):
            return False
    if filters.skills and not _contains_all(job.skills_required, filters.skills):
        return False
    return True


def sort_jobs(scored: list, sort: SortOption) -> list:
    """scored is a list of (job, score) pairs."""
    scored = sorted(scored, key=lambda pair: newest_first_key(pair[0]), reverse=True)
    if sort == SortOption.RELEVANCE:
        return sorted(scored, key=lambda pair: pair[1], reverse=True)
    if sort == SortOption.RECENT:
        return scored
    if sort == SortOption.EXPERIENCE:
        return sort_nulls_last(scored, lambda pair: pair[0].experience_min, descending=True)
    if sort == SortOption.SALARY_HIGH:
        return sort_nulls_last(scored, lambda pair: pair[0].salary_max, descending=True)
    if sort == SortOption.SALARY_LOW:
        return sort_nulls_last(scored, lambda pair: pair[0].salary_min, descending=False)
    return scored


async def search_jobs(
    db: AsyncSession,
    filters: JobFilters,
    profile: Optional[CandidateProfile] = None,
    now: datetime = None,
) -> SearchPage:
    """Items are (job, match_score) pairs. Without a profile every score is 0."""
    result = await db.execute(select(Job).where(*job_conditions(filters, now)))
    jobs = [job for job in result.scalars().all() if job_matches(job, filters)]
    scored = [(job, score_job(profile, job)) for job in jobs]
    return paginate(sort_jobs(scored, filters.sort), filters.page, filters.page_size)


async def recommended_jobs(db: AsyncSession, profile: Optional[CandidateProfile], limit: int = 20) -> List[tuple]:
    result = await db.execute(
        select(Job).where(Job.is_active == True, Job.visibility == JobVisibility.PUBLIC)
    )
    return rank_jobs(profile, result.scalars().all(), limit=limit)


# ============================================================================
# Candidate Search
# ============================================================================

def candidate_conditions(filters: CandidateSearchFilters, now: datetime = None) -> list:
    conditions = [CandidateProfile.onboarding_completed == True]

    if filters.location:
        conditions.append(CandidateProfile.location.ilike(f"%{filters.location.strip()}%"))
    if filters.experience_min is not None:
        conditions.append(CandidateProfile.experience_years >= filters.experience_min)
    experience_max = _upper_bound(filters.experience_max, EXPERIENCE_CEILING)
    if experience_max is not None:
        conditions.append(CandidateProfile.experience_years <= experience_max)

    if filters.salary_min:
        conditions.append(CandidateProfile.expected_salary_max >= filters.salary_min)
    salary_max = _upper_bound(filters.salary_max, SALARY_CEILING)
    if salary_max is not None:
        conditions.append(CandidateProfile.expected_salary_min <= salary_max)

    if filters.education_levels:
        conditions.append(CandidateProfile.education_level.in_(filters.education_levels))
    if filters.freshness:
        conditions.append(CandidateProfile.updated_at >= freshness_threshold(filters.freshness, now))
    return conditions


def candidate_matches(candidate: CandidateProfile, filters: CandidateSearchFilters) -> bool:
    if filters.keyword:
        keyword = filters.keyword.strip().lower()
        skills = [s for s in (candidate.skills or []) if isinstance(s, str)]
        if not (_text_hit(keyword, candidate.full_name, candidate.headline, candidate.about,
                          candidate.profile_summary, candidate.location)
                or _text_hit(keyword, *skills)):
            return False
    if filters.skills and not _contains_all(candidate.skills, filters.skills):
        return False
    if filters.work_preferences:
        preferred = set(candidate.preferred_job_type or [])
        if not preferred.intersection(filters.work_preferences):
            return False
    return True


def sort_candidates(scored: list, sort: SortOption) -> list:
    scored = sorted(scored, key=lambda pair: newest_first_key(pair[0]), reverse=True)
    if sort == SortOption.RELEVANCE:
        return sorted(scored, key=lambda pair: pair[1], reverse=True)
    if sort == SortOption.RECENT:
        return sorted(scored, key=lambda pair: as_utc(pair[0].updated_at), reverse=True)
    if sort == SortOption.EXPERIENCE:
        return sort_nulls_last(scored, lambda pair: pair[0].experience_years, descending=True)
    if sort == SortOption.SALARY_HIGH:
        return sort_nulls_last(scored, lambda pair: pair[0].expected_salary_max, descending=True)
    if sort == SortOption.SALARY_LOW:
        return sort_nulls_last(scored, lambda pair: pair[0].expected_salary_min, descending=False)
    return scored


async def search_candidates(db: AsyncSession, filters: CandidateSearchFilters, now: datetime = None) -> SearchPage:
    """Items are (profile, relevance_score) pairs."""
    result = await db.execute(select(CandidateProfile).where(*candidate_conditions(filters, now)))
    candidates = [c for c in result.scalars().all() if candidate_matches(c, filters)]
    scored = [(c, score_candidate(c, filters)) for c in candidates]
    return paginate(sort_candidates(scored, filters.sort), filters.page, filters.page_size)
