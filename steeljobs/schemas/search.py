"""
Search filter schemas for job listing and recruiter candidate search.

Every facet is optional; None means "no constraint".
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field

from ..models.job import EmploymentType, WorkMode
from ..models.profile import EducationLevel
from .job import ScoredJobResponse
from .profile import ProfileResponse


# Slider ceilings in the filter UI; a max at the ceiling means "and above"
EXPERIENCE_CEILING = 15
SALARY_CEILING = 5_000_000

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class SortOption(str, Enum):
    RELEVANCE = "relevance"
    RECENT = "recent"
    EXPERIENCE = "experience"
    SALARY_HIGH = "salary_high"
    SALARY_LOW = "salary_low"


class Freshness(str, Enum):
    LAST_7_DAYS = "7d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"

    @property
    def days(self) -> int:
        return int(self.value[:-1])


class _PagedFilters(BaseModel):
    sort: SortOption = SortOption.RELEVANCE
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


class JobFilters(_PagedFilters):
    keyword: Optional[str] = None
    location: Optional[str] = None
    employment_types: Optional[List[EmploymentType]] = None
    work_modes: Optional[List[WorkMode]] = None
    education_levels: Optional[List[EducationLevel]] = None
    experience_min: Optional[int] = Field(default=None, ge=0)
    experience_max: Optional[int] = Field(default=None, ge=0)
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    skills: Optional[List[str]] = None
    freshness: Optional[Freshness] = None


class CandidateSearchFilters(_PagedFilters):
    keyword: Optional[str] = None
    location: Optional[str] = None
    experience_min: Optional[float] = Field(default=None, ge=0)
    experience_max: Optional[float] = Field(default=None, ge=0)
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    education_levels: Optional[List[EducationLevel]] = None
    skills: Optional[List[str]] = None
    work_preferences: Optional[List[str]] = None
    freshness: Optional[Freshness] = None


class JobSearchPage(BaseModel):
    items: List[ScoredJobResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class CandidateResult(BaseModel):
    profile: ProfileResponse
    relevance_score: int


class CandidateSearchPage(BaseModel):
    items: List[CandidateResult]
    total: int
    page: int
    page_size: int
    total_pages: int
