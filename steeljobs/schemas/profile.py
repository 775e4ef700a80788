"""
Profile schemas for candidate profiles, child sections and onboarding steps
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from datetime import datetime

from ..models.profile import EducationLevel, WorkStatus, AccomplishmentType


# ============================================================================
# Child Section Schemas
# ============================================================================

class EducationCreate(BaseModel):
    degree_level: str
    course: Optional[str] = None
    course_type: Optional[str] = None
    specialization: Optional[str] = None
    university: Optional[str] = None
    starting_year: Optional[int] = None
    passing_year: Optional[int] = None
    grading_system: Optional[str] = None
    grade_value: Optional[str] = None
    is_highest: bool = False


class EducationUpdate(BaseModel):
    degree_level: Optional[str] = None
    course: Optional[str] = None
    course_type: Optional[str] = None
    specialization: Optional[str] = None
    university: Optional[str] = None
    starting_year: Optional[int] = None
    passing_year: Optional[int] = None
    grading_system: Optional[str] = None
    grade_value: Optional[str] = None
    is_highest: Optional[bool] = None


class EducationResponse(EducationCreate):
    id: int
    candidate_id: int

    class Config:
        from_attributes = True


class EmploymentCreate(BaseModel):
    company_name: str
    designation: str
    department: Optional[str] = None
    description: Optional[str] = None
    achievements: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: bool = False
    current_salary: Optional[int] = None
    notice_period: Optional[str] = None


class EmploymentUpdate(BaseModel):
    company_name: Optional[str] = None
    designation: Optional[str] = None
    department: Optional[str] = None
    description: Optional[str] = None
    achievements: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: Optional[bool] = None
    current_salary: Optional[int] = None
    notice_period: Optional[str] = None


class EmploymentResponse(EmploymentCreate):
    id: int
    candidate_id: int

    class Config:
        from_attributes = True


class InternshipCreate(BaseModel):
    company_name: str
    role: str
    description: Optional[str] = None
    skills_learned: List[str] = Field(default_factory=list)
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: bool = False


class InternshipUpdate(BaseModel):
    company_name: Optional[str] = None
    role: Optional[str] = None
    description: Optional[str] = None
    skills_learned: Optional[List[str]] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    is_current: Optional[bool] = None


class InternshipResponse(InternshipCreate):
    id: int
    candidate_id: int

    class Config:
        from_attributes = True


class ProjectCreate(BaseModel):
    title: str
    description: Optional[str] = None
    skills_used: List[str] = Field(default_factory=list)
    github_url: Optional[str] = None
    live_url: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ProjectUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    skills_used: Optional[List[str]] = None
    github_url: Optional[str] = None
    live_url: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class ProjectResponse(ProjectCreate):
    id: int
    candidate_id: int

    class Config:
        from_attributes = True


class LanguageCreate(BaseModel):
    language: str
    proficiency: Optional[str] = None
    can_read: bool = False
    can_write: bool = False
    can_speak: bool = False


class LanguageUpdate(BaseModel):
    language: Optional[str] = None
    proficiency: Optional[str] = None
    can_read: Optional[bool] = None
    can_write: Optional[bool] = None
    can_speak: Optional[bool] = None


class LanguageResponse(LanguageCreate):
    id: int
    candidate_id: int

    class Config:
        from_attributes = True


class AccomplishmentCreate(BaseModel):
    type: AccomplishmentType = AccomplishmentType.CERTIFICATION
    title: str
    description: Optional[str] = None
    issuing_org: Optional[str] = None
    issue_date: Optional[str] = None
    expiry_date: Optional[str] = None
    credential_url: Optional[str] = None


class AccomplishmentUpdate(BaseModel):
    type: Optional[AccomplishmentType] = None
    title: Optional[str] = None
    description: Optional[str] = None
    issuing_org: Optional[str] = None
    issue_date: Optional[str] = None
    expiry_date: Optional[str] = None
    credential_url: Optional[str] = None


class AccomplishmentResponse(AccomplishmentCreate):
    id: int
    candidate_id: int

    class Config:
        from_attributes = True


class ExamCreate(BaseModel):
    exam_name: str
    score: Optional[str] = None
    rank: Optional[str] = None
    year: Optional[int] = None


class ExamUpdate(BaseModel):
    exam_name: Optional[str] = None
    score: Optional[str] = None
    rank: Optional[str] = None
    year: Optional[int] = None


class ExamResponse(ExamCreate):
    id: int
    candidate_id: int

    class Config:
        from_attributes = True


# ============================================================================
# Profile Schemas
# ============================================================================

class ProfileUpdate(BaseModel):
    """Partial update; only fields that were sent are written"""
    full_name: Optional[str] = None
    mobile_number: Optional[str] = None
    headline: Optional[str] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    work_status: Optional[WorkStatus] = None
    profile_photo_url: Optional[str] = None
    experience_years: Optional[float] = Field(default=None, ge=0)
    education_level: Optional[EducationLevel] = None
    expected_salary_min: Optional[int] = Field(default=None, ge=0)
    expected_salary_max: Optional[int] = Field(default=None, ge=0)
    skills: Optional[List[str]] = None
    about: Optional[str] = None
    profile_summary: Optional[str] = None
    preferred_job_type: Optional[List[str]] = None
    preferred_locations: Optional[List[str]] = None
    availability: Optional[str] = None


class ProfileResponse(BaseModel):
    id: int
    user_id: str
    full_name: Optional[str] = None
    mobile_number: Optional[str] = None
    headline: Optional[str] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    work_status: Optional[WorkStatus] = None
    profile_photo_url: Optional[str] = None
    experience_years: Optional[float] = None
    education_level: Optional[EducationLevel] = None
    expected_salary_min: Optional[int] = None
    expected_salary_max: Optional[int] = None
    skills: List[str] = Field(default_factory=list)
    about: Optional[str] = None
    profile_summary: Optional[str] = None
    preferred_job_type: List[str] = Field(default_factory=list)
    preferred_locations: List[str] = Field(default_factory=list)
    availability: Optional[str] = None
    resume_url: Optional[str] = None
    onboarding_completed: bool = False
    onboarding_step: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SectionStatus(BaseModel):
    filled: bool
    count: int = 0


class CompletionResponse(BaseModel):
    onboarding_percentage: int
    dashboard_percentage: int
    sections: Dict[str, SectionStatus]


# ============================================================================
# Onboarding Step Schemas
# ============================================================================

class BasicDetailsStep(BaseModel):
    full_name: Optional[str] = None
    mobile_number: Optional[str] = None
    work_status: Optional[WorkStatus] = None
    location: Optional[str] = None
    pincode: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None
    experience_years: Optional[float] = Field(default=None, ge=0)
    expected_salary_min: Optional[int] = Field(default=None, ge=0)
    expected_salary_max: Optional[int] = Field(default=None, ge=0)
    availability: Optional[str] = None


class EducationStep(BaseModel):
    degree_level: Optional[str] = None
    course: Optional[str] = None
    specialization: Optional[str] = None
    university: Optional[str] = None
    starting_year: Optional[int] = None
    passing_year: Optional[int] = None
    grading_system: Optional[str] = None
    grade_value: Optional[str] = None
    skills: List[str] = Field(default_factory=list)


class FinalStep(BaseModel):
    resume_url: Optional[str] = None
    headline: Optional[str] = None
    profile_summary: Optional[str] = None
    preferred_job_type: Optional[List[str]] = None
    preferred_locations: Optional[List[str]] = None


class OnboardingStatusResponse(BaseModel):
    state: str
    step: Optional[int] = None
    completed: bool = False
    completion_percentage: int = 0
