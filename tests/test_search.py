"""Tests for faceted job and candidate search."""
from datetime import datetime, timedelta, timezone

import pytest

from steeljobs.models.job import EmploymentType, JobVisibility, WorkMode
from steeljobs.models.profile import EducationLevel
from steeljobs.schemas.search import (
    CandidateSearchFilters, Freshness, JobFilters, SortOption,
)
from steeljobs.services.search import (
    paginate, recommended_jobs, search_candidates, search_jobs, sort_nulls_last,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
async def recruiter(make_recruiter):
    return await make_recruiter()


@pytest.fixture
async def five_jobs(recruiter, make_job):
    """Three jobs match location + type + skills; two miss one facet each."""
    return [
        await make_job(recruiter, title="Welder A", location="Pune", skills_required=["Welding", "Safety"]),
        await make_job(recruiter, title="Welder B", location="Pune, MH", skills_required=["Welding", "Safety", "CNC"]),
        await make_job(recruiter, title="Welder C", location="pune", skills_required=["Safety", "Welding"]),
        await make_job(recruiter, title="Welder D", location="Mumbai", skills_required=["Welding", "Safety"]),
        await make_job(recruiter, title="Welder E", location="Pune", employment_type=EmploymentType.CONTRACT,
                       skills_required=["Welding"]),
    ]


def ids(page):
    return sorted(job.id for job, _ in page.items)


async def test_filters_compose_with_and(db, five_jobs):
    filters = JobFilters(
        location="Pune",
        employment_types=[EmploymentType.FULL_TIME],
        skills=["Welding", "Safety"],
    )
    page = await search_jobs(db, filters)

    assert page.total == 3
    assert ids(page) == sorted(job.id for job in five_jobs[:3])


async def test_filter_order_does_not_matter(db, five_jobs):
    a = await search_jobs(db, JobFilters(skills=["Welding", "Safety"], location="pune",
                                         employment_types=[EmploymentType.FULL_TIME]))
    b = await search_jobs(db, JobFilters(employment_types=[EmploymentType.FULL_TIME],
                                         skills=["Safety", "Welding"], location="PUNE"))
    assert ids(a) == ids(b)


async def test_skill_facet_is_exact_and_case_sensitive(db, five_jobs):
    page = await search_jobs(db, JobFilters(skills=["welding"]))
    assert page.total == 0


async def test_keyword_searches_text_and_skills(db, five_jobs):
    assert (await search_jobs(db, JobFilters(keyword="welder b"))).total == 1
    assert (await search_jobs(db, JobFilters(keyword="cnc"))).total == 1


async def test_pagination_counts_agree(db, recruiter, make_job):
    for _ in range(23):
        await make_job(recruiter)

    first = await search_jobs(db, JobFilters(page_size=10))
    last = await search_jobs(db, JobFilters(page=3, page_size=10))
    beyond = await search_jobs(db, JobFilters(page=4, page_size=10))

    assert first.total == 23
    assert first.total_pages == 3
    assert len(first.items) == 10
    assert len(last.items) == 3
    assert beyond.items == []
    assert beyond.total == 23


async def test_hidden_jobs_are_not_listed(db, recruiter, make_job):
    await make_job(recruiter, title="Open")
    await make_job(recruiter, title="Closed", is_active=False)
    await make_job(recruiter, title="Private", visibility=JobVisibility.LINK_ONLY)

    page = await search_jobs(db, JobFilters())
    assert [job.title for job, _ in page.items] == ["Open"]


async def test_experience_facet_and_ceiling(db, recruiter, make_job):
    await make_job(recruiter, title="Junior", experience_min=1)
    await make_job(recruiter, title="Mid", experience_min=5)
    await make_job(recruiter, title="Veteran", experience_min=20)

    mid = await search_jobs(db, JobFilters(experience_min=3, experience_max=10))
    assert [job.title for job, _ in mid.items] == ["Mid"]

    # A max at the slider ceiling means "and above"
    open_ended = await search_jobs(db, JobFilters(experience_min=3, experience_max=15))
    assert sorted(job.title for job, _ in open_ended.items) == ["Mid", "Veteran"]


async def test_salary_ranges_overlap(db, recruiter, make_job):
    await make_job(recruiter, title="Band", salary_min=300000, salary_max=600000)
    await make_job(recruiter, title="Undisclosed")

    assert (await search_jobs(db, JobFilters(salary_min=500000))).total == 1
    assert (await search_jobs(db, JobFilters(salary_min=700000))).total == 0
    assert (await search_jobs(db, JobFilters(salary_max=200000))).total == 0
    # Ceiling value removes the upper bound entirely
    assert (await search_jobs(db, JobFilters(salary_max=5_000_000))).total == 2


async def test_enum_facets(db, recruiter, make_job):
    await make_job(recruiter, title="Remote", work_mode=WorkMode.REMOTE, education_required=EducationLevel.MASTER)
    await make_job(recruiter, title="Onsite", work_mode=WorkMode.ONSITE)

    assert (await search_jobs(db, JobFilters(work_modes=[WorkMode.REMOTE, WorkMode.HYBRID]))).total == 1
    assert (await search_jobs(db, JobFilters(education_levels=[EducationLevel.MASTER]))).total == 1


async def test_freshness(db, recruiter, make_job):
    await make_job(recruiter, title="Fresh", created_at=NOW - timedelta(days=3))
    await make_job(recruiter, title="Stale", created_at=NOW - timedelta(days=40))

    week = await search_jobs(db, JobFilters(freshness=Freshness.LAST_7_DAYS), now=NOW)
    quarter = await search_jobs(db, JobFilters(freshness=Freshness.LAST_90_DAYS), now=NOW)
    assert [job.title for job, _ in week.items] == ["Fresh"]
    assert quarter.total == 2


async def test_sort_options(db, recruiter, make_job):
    await make_job(recruiter, title="Old high", salary_min=500000, salary_max=900000, experience_min=2,
                   created_at=NOW - timedelta(days=5))
    await make_job(recruiter, title="New low", salary_min=200000, salary_max=300000, experience_min=8,
                   created_at=NOW - timedelta(days=1))
    await make_job(recruiter, title="No salary", created_at=NOW - timedelta(days=3))

    def titles(page):
        return [job.title for job, _ in page.items]

    assert titles(await search_jobs(db, JobFilters(sort=SortOption.RECENT))) == ["New low", "No salary", "Old high"]
    assert titles(await search_jobs(db, JobFilters(sort=SortOption.SALARY_HIGH)))[:2] == ["Old high", "New low"]
    assert titles(await search_jobs(db, JobFilters(sort=SortOption.SALARY_LOW))) == ["New low", "Old high", "No salary"]
    assert titles(await search_jobs(db, JobFilters(sort=SortOption.EXPERIENCE)))[0] == "New low"


async def test_relevance_uses_viewer_profile(db, recruiter, make_job, make_candidate):
    await make_job(recruiter, title="Unrelated", skills_required=["Accounting"], location="Delhi")
    await make_job(recruiter, title="Fit", skills_required=["Welding"], location="Pune")
    profile = await make_candidate(skills=["Welding"], location="Pune")

    page = await search_jobs(db, JobFilters(), profile=profile)
    assert [job.title for job, _ in page.items] == ["Fit", "Unrelated"]
    assert page.items[0][1] == 35

    recommended = await recommended_jobs(db, profile, limit=1)
    assert [job.title for job, _ in recommended] == ["Fit"]


def test_paginate_and_nulls_last():
    page = paginate(list(range(23)), page=3, page_size=10)
    assert page.items == [20, 21, 22]
    assert page.total_pages == 3

    rows = [{"v": 2}, {"v": None}, {"v": 5}]
    assert sort_nulls_last(rows, lambda r: r["v"], descending=True) == [{"v": 5}, {"v": 2}, {"v": None}]
    assert sort_nulls_last(rows, lambda r: r["v"], descending=False) == [{"v": 2}, {"v": 5}, {"v": None}]


# ============================================================================
# Candidate Search
# ============================================================================

async def test_candidate_search_only_lists_completed_profiles(db, make_candidate):
    await make_candidate(full_name="Done", skills=["Welding"], onboarding_completed=True)
    await make_candidate(full_name="Halfway", skills=["Welding"], onboarding_completed=False)

    page = await search_candidates(db, CandidateSearchFilters())
    assert [c.full_name for c, _ in page.items] == ["Done"]


async def test_candidate_facets_and_relevance(db, make_candidate):
    await make_candidate(full_name="Asha", skills=["Python", "SQL"], location="Pune",
                         experience_years=4, preferred_job_type=["full_time"], onboarding_completed=True)
    await make_candidate(full_name="Ravi", skills=["Python"], location="Pune",
                         experience_years=2, preferred_job_type=["contract"], onboarding_completed=True)
    await make_candidate(full_name="Meera", skills=["Python", "SQL"], location="Chennai",
                         experience_years=6, preferred_job_type=["full_time"], onboarding_completed=True)

    both_skills = await search_candidates(db, CandidateSearchFilters(skills=["Python", "SQL"]))
    assert sorted(c.full_name for c, _ in both_skills.items) == ["Asha", "Meera"]

    in_pune = await search_candidates(db, CandidateSearchFilters(location="pune", experience_min=3))
    assert [c.full_name for c, _ in in_pune.items] == ["Asha"]

    contract = await search_candidates(db, CandidateSearchFilters(work_preferences=["contract", "internship"]))
    assert [c.full_name for c, _ in contract.items] == ["Ravi"]

    ranked = await search_candidates(db, CandidateSearchFilters(keyword="python", location="pune"))
    assert [c.full_name for c, _ in ranked.items][:2] in (["Asha", "Ravi"], ["Ravi", "Asha"])
    assert ranked.items[0][1] >= ranked.items[-1][1]
