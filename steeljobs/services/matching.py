"""
Job <-> candidate match scoring.

Scores are computed on demand and never stored.
"""
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from ..models.job import Job
from ..models.profile import CandidateProfile, EducationLevel, EDUCATION_ORDER

GOOD_MATCH_THRESHOLD = 30

SKILL_POINTS = 20
LOCATION_POINTS = 15
EXPERIENCE_POINTS = 10
EXPERIENCE_NEAR_POINTS = 5
SALARY_MAX_POINTS = 10
SALARY_MIN_POINTS = 5
EDUCATION_POINTS = 5

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def as_utc(value: Optional[datetime]) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC so they compare."""
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def newest_first_key(row) -> Tuple:
    return (as_utc(row.created_at), row.id or 0)


def _skills_overlap(candidate_skill: str, required_skill: str) -> bool:
    a = candidate_skill.lower().strip()
    b = required_skill.lower().strip()
    if not a or not b:
        return False
    return a in b or b in a


def education_rank(level) -> int:
    """Position in EDUCATION_ORDER, or -1 for OTHER and unknown values."""
    if level is None:
        return -1
    try:
        return EDUCATION_ORDER.index(EducationLevel(level))
    except ValueError:
        return -1


def score_job(profile: Optional[CandidateProfile], job: Job) -> int:
    if profile is None:
        return 0
    score = 0

    required = [s for s in (job.skills_required or []) if isinstance(s, str)]
    for skill in profile.skills or []:
        if any(_skills_overlap(skill, req) for req in required):
            score += SKILL_POINTS

    if profile.location and job.location:
        candidate_location = profile.location.lower()
        job_location = job.location.lower()
        if (candidate_location in job_location or job_location in candidate_location
                or job_location == "remote"):
            score += LOCATION_POINTS

    if profile.experience_years is not None:
        years = profile.experience_years
        exp_min = job.experience_min if job.experience_min is not None else 0
        exp_max = job.experience_max if job.experience_max is not None else 99
        if exp_min <= years <= exp_max:
            score += EXPERIENCE_POINTS
        elif exp_min - 1 <= years <= exp_max + 2:
            score += EXPERIENCE_NEAR_POINTS

    if profile.expected_salary_min is not None and job.salary_max is not None:
        if job.salary_max >= profile.expected_salary_min:
            score += SALARY_MAX_POINTS
    if profile.expected_salary_max is not None and job.salary_min is not None:
        if job.salary_min <= profile.expected_salary_max:
            score += SALARY_MIN_POINTS

    if job.education_required and profile.education_level:
        candidate_rank = education_rank(profile.education_level)
        required_rank = education_rank(job.education_required)
        if candidate_rank >= 0 and required_rank >= 0 and candidate_rank >= required_rank:
            score += EDUCATION_POINTS

    return score


def is_good_match(score: int) -> bool:
    return score > GOOD_MATCH_THRESHOLD


def rank_jobs(profile: Optional[CandidateProfile], jobs: Sequence[Job], limit: int = None) -> List[Tuple[Job, int]]:
    """Jobs paired with their score, best first; ties go to the newest posting."""
    scored = [(job, score_job(profile, job)) for job in jobs]
    scored.sort(key=lambda pair: newest_first_key(pair[0]), reverse=True)
    scored.sort(key=lambda pair: pair[1], reverse=True)
    if limit is not None:
        scored = scored[:limit]
    return scored


def score_candidate(candidate: CandidateProfile, filters) -> int:
    """Relevance of a candidate to a recruiter's search, 0..100."""
    score = 0.0
    skills = [s.lower() for s in (candidate.skills or []) if isinstance(s, str)]

    keyword = (getattr(filters, "keyword", None) or "").strip().lower()
    if keyword and any(keyword in skill for skill in skills):
        score += 30

    requested = [s.lower() for s in (getattr(filters, "skills", None) or [])]
    if requested:
        held = sum(1 for skill in skills if any(req in skill for req in requested))
        score += held / len(requested) * 50

    location = (getattr(filters, "location", None) or "").strip().lower()
    if location and candidate.location and location in candidate.location.lower():
        score += 20

    experience_min = getattr(filters, "experience_min", None)
    if experience_min is not None and candidate.experience_years is not None:
        if candidate.experience_years >= experience_min:
            score += 15

    if candidate.resume_url:
        score += 5
    if candidate.profile_summary:
        score += 5
    if candidate.profile_photo_url:
        score += 5

    return min(100, round(score))
