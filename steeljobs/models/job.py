from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Enum as SQLEnum, ForeignKey, JSON
from sqlalchemy.orm import relationship
from ..database import Base
from .profile import EducationLevel, utcnow
import enum


class EmploymentType(str, enum.Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"
    INTERNSHIP = "internship"
    REMOTE = "remote"


class WorkMode(str, enum.Enum):
    ONSITE = "onsite"
    REMOTE = "remote"
    HYBRID = "hybrid"


class JobVisibility(str, enum.Enum):
    PUBLIC = "public"
    LINK_ONLY = "link_only"


class ApplicationStatus(str, enum.Enum):
    APPLIED = "applied"
    IN_REVIEW = "in_review"
    SHORTLISTED = "shortlisted"
    INTERVIEW = "interview"
    HIRED = "hired"
    REJECTED = "rejected"


class RecruiterProfile(Base):
    __tablename__ = "recruiter_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), unique=True, nullable=False, index=True)
    company_name = Column(String(100), nullable=False)
    company_website = Column(String(500), nullable=True)
    company_location = Column(String(100), nullable=True)
    company_logo_url = Column(String(500), nullable=True)
    about = Column(Text, nullable=True)
    has_premium_access = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    jobs = relationship("Job", back_populates="recruiter", cascade="all, delete-orphan")


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    recruiter_id = Column(Integer, ForeignKey("recruiter_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    company_name = Column(String(100), nullable=False)
    location = Column(String(100), nullable=False)
    employment_type = Column(SQLEnum(EmploymentType), default=EmploymentType.FULL_TIME)
    work_mode = Column(SQLEnum(WorkMode), nullable=True)
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    experience_min = Column(Integer, default=0)
    experience_max = Column(Integer, nullable=True)
    education_required = Column(SQLEnum(EducationLevel), nullable=True)
    skills_required = Column(JSON, default=list)
    description = Column(Text, nullable=False)
    num_positions = Column(Integer, default=1)
    application_deadline = Column(String(10), nullable=True)  # "YYYY-MM-DD"
    visibility = Column(SQLEnum(JobVisibility), default=JobVisibility.PUBLIC)
    role_category = Column(String(100), nullable=True)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    recruiter = relationship("RecruiterProfile", back_populates="jobs")


class Application(Base):
    # No unique constraint on (candidate_id, job_id): uniqueness is a
    # read-before-write check in services/applications.py.
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("candidate_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(SQLEnum(ApplicationStatus), default=ApplicationStatus.APPLIED)
    cover_letter = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    job = relationship("Job")
    candidate = relationship("CandidateProfile")


class SavedJob(Base):
    __tablename__ = "saved_jobs"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey("candidate_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    job = relationship("Job")
