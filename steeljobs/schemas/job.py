from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from ..models.job import EmploymentType, WorkMode, JobVisibility, ApplicationStatus
from ..models.profile import EducationLevel


class JobBase(BaseModel):
    title: str = Field(min_length=3, max_length=100)
    company_name: str = Field(min_length=2, max_length=100)
    location: str = Field(min_length=2, max_length=100)
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    work_mode: Optional[WorkMode] = None
    salary_min: Optional[int] = Field(default=None, ge=0, le=100_000_000)
    salary_max: Optional[int] = Field(default=None, ge=0, le=100_000_000)
    experience_min: int = Field(default=0, ge=0, le=50)
    experience_max: Optional[int] = Field(default=None, ge=0, le=50)
    education_required: Optional[EducationLevel] = None
    skills_required: List[str] = Field(default_factory=list, max_length=20)
    description: str = Field(min_length=50, max_length=10_000)
    num_positions: int = Field(default=1, ge=1, le=1000)
    application_deadline: Optional[str] = None
    visibility: JobVisibility = JobVisibility.PUBLIC
    role_category: Optional[str] = None


class JobCreate(JobBase):
    is_active: bool = True


class JobUpdate(BaseModel):
    title: Optional[str] = None
    company_name: Optional[str] = None
    location: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    work_mode: Optional[WorkMode] = None
    salary_min: Optional[int] = Field(default=None, ge=0)
    salary_max: Optional[int] = Field(default=None, ge=0)
    experience_min: Optional[int] = Field(default=None, ge=0)
    experience_max: Optional[int] = Field(default=None, ge=0)
    education_required: Optional[EducationLevel] = None
    skills_required: Optional[List[str]] = None
    description: Optional[str] = None
    num_positions: Optional[int] = Field(default=None, ge=1)
    application_deadline: Optional[str] = None
    visibility: Optional[JobVisibility] = None
    role_category: Optional[str] = None
    is_active: Optional[bool] = None


class JobResponse(BaseModel):
    id: int
    title: str
    company_name: str
    location: str
    employment_type: Optional[EmploymentType] = None
    work_mode: Optional[WorkMode] = None
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    experience_min: Optional[int] = 0
    experience_max: Optional[int] = None
    education_required: Optional[EducationLevel] = None
    skills_required: List[str] = []
    description: str
    num_positions: Optional[int] = 1
    application_deadline: Optional[str] = None
    visibility: Optional[JobVisibility] = None
    role_category: Optional[str] = None
    recruiter_id: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ScoredJobResponse(BaseModel):
    job: JobResponse
    match_score: int
    good_match: bool


class RecruiterJobResponse(JobResponse):
    application_count: int = 0


class ApplicationCreate(BaseModel):
    cover_letter: Optional[str] = None


class ApplicationResponse(BaseModel):
    id: int
    candidate_id: int
    job_id: int
    status: ApplicationStatus
    cover_letter: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus


class BulkStatusUpdate(BaseModel):
    application_ids: List[int]
    status: ApplicationStatus


class BulkShortlistRequest(BaseModel):
    job_id: int
    candidate_ids: List[int]


class BulkResultResponse(BaseModel):
    successful: int
    total: int
    failed_ids: List[int] = Field(default_factory=list)


class SavedJobToggleResponse(BaseModel):
    job_id: int
    saved: bool


class RecruiterProfileUpdate(BaseModel):
    company_name: Optional[str] = None
    company_website: Optional[str] = None
    company_location: Optional[str] = None
    company_logo_url: Optional[str] = None
    about: Optional[str] = None


class RecruiterProfileResponse(BaseModel):
    id: int
    user_id: str
    company_name: str
    company_website: Optional[str] = None
    company_location: Optional[str] = None
    company_logo_url: Optional[str] = None
    about: Optional[str] = None
    has_premium_access: bool = False

    class Config:
        from_attributes = True


class JobActiveUpdate(BaseModel):
    is_active: bool
