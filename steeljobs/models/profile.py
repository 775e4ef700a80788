"""
Candidate profile models and their child collections
"""
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, Float,
    ForeignKey, Enum as SQLEnum, JSON
)
from sqlalchemy.orm import relationship
from ..database import Base
import enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EducationLevel(str, enum.Enum):
    HIGH_SCHOOL = "high_school"
    ASSOCIATE = "associate"
    BACHELOR = "bachelor"
    MASTER = "master"
    DOCTORATE = "doctorate"
    OTHER = "other"


# Ranking used when comparing a candidate's level against a job requirement.
# OTHER is absent: it never satisfies a requirement or ranks.
EDUCATION_ORDER = [
    EducationLevel.HIGH_SCHOOL,
    EducationLevel.ASSOCIATE,
    EducationLevel.BACHELOR,
    EducationLevel.MASTER,
    EducationLevel.DOCTORATE,
]


class WorkStatus(str, enum.Enum):
    EXPERIENCED = "experienced"
    FRESHER = "fresher"


class AccomplishmentType(str, enum.Enum):
    CERTIFICATION = "certification"
    AWARD = "award"
    LEADERSHIP = "leadership"


class CandidateProfile(Base):
    """One profile per auth identity, filled across onboarding and profile edits"""
    __tablename__ = "candidate_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(64), unique=True, nullable=False, index=True)

    # Basic details
    full_name = Column(String(100), nullable=True)
    mobile_number = Column(String(20), nullable=True)
    headline = Column(String(200), nullable=True)
    location = Column(String(100), nullable=True)
    gender = Column(String(20), nullable=True)
    date_of_birth = Column(String(10), nullable=True)  # "YYYY-MM-DD"
    work_status = Column(SQLEnum(WorkStatus), nullable=True)
    profile_photo_url = Column(String(500), nullable=True)

    # Career
    experience_years = Column(Float, nullable=True)
    education_level = Column(SQLEnum(EducationLevel), nullable=True)
    expected_salary_min = Column(Integer, nullable=True)
    expected_salary_max = Column(Integer, nullable=True)
    skills = Column(JSON, default=list)
    about = Column(Text, nullable=True)
    profile_summary = Column(Text, nullable=True)

    # Preferences
    preferred_job_type = Column(JSON, default=list)
    preferred_locations = Column(JSON, default=list)
    availability = Column(String(50), nullable=True)

    # Resume
    resume_url = Column(String(500), nullable=True)
    resume_path = Column(String(500), nullable=True)  # storage key, used for re-download and cleanup
    resume_text = Column(Text, nullable=True)  # cached extracted text for re-parse

    # Onboarding
    onboarding_completed = Column(Boolean, default=False)
    onboarding_step = Column(Integer, default=1)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    education = relationship("CandidateEducation", back_populates="profile", cascade="all, delete-orphan")
    employment = relationship("CandidateEmployment", back_populates="profile", cascade="all, delete-orphan")
    internships = relationship("CandidateInternship", back_populates="profile", cascade="all, delete-orphan")
    projects = relationship("CandidateProject", back_populates="profile", cascade="all, delete-orphan")
    languages = relationship("CandidateLanguage", back_populates="profile", cascade="all, delete-orphan")
    accomplishments = relationship("CandidateAccomplishment", back_populates="profile", cascade="all, delete-orphan")
    exams = relationship("CandidateExam", back_populates="profile", cascade="all, delete-orphan")


class CandidateEducation(Base):
    __tablename__ = "candidate_education"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey('candidate_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    degree_level = Column(String(50), nullable=False)
    course = Column(String(200), nullable=True)
    course_type = Column(String(50), nullable=True)
    specialization = Column(String(200), nullable=True)
    university = Column(String(300), nullable=True)
    starting_year = Column(Integer, nullable=True)
    passing_year = Column(Integer, nullable=True)
    grading_system = Column(String(50), nullable=True)
    grade_value = Column(String(100), nullable=True)
    is_highest = Column(Boolean, default=False)  # advisory, not unique

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    profile = relationship("CandidateProfile", back_populates="education")


class CandidateEmployment(Base):
    __tablename__ = "candidate_employment"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey('candidate_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    company_name = Column(String(300), nullable=False)
    designation = Column(String(200), nullable=False)
    department = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    achievements = Column(Text, nullable=True)
    start_date = Column(String(20), nullable=True)
    end_date = Column(String(20), nullable=True)
    is_current = Column(Boolean, default=False)  # advisory, not unique
    current_salary = Column(Integer, nullable=True)
    notice_period = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    profile = relationship("CandidateProfile", back_populates="employment")


class CandidateInternship(Base):
    __tablename__ = "candidate_internships"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey('candidate_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    company_name = Column(String(300), nullable=False)
    role = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    skills_learned = Column(JSON, default=list)
    start_date = Column(String(20), nullable=True)
    end_date = Column(String(20), nullable=True)
    is_current = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    profile = relationship("CandidateProfile", back_populates="internships")


class CandidateProject(Base):
    __tablename__ = "candidate_projects"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey('candidate_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    skills_used = Column(JSON, default=list)
    github_url = Column(String(500), nullable=True)
    live_url = Column(String(500), nullable=True)
    start_date = Column(String(20), nullable=True)
    end_date = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    profile = relationship("CandidateProfile", back_populates="projects")


class CandidateLanguage(Base):
    __tablename__ = "candidate_languages"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey('candidate_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    language = Column(String(100), nullable=False)
    proficiency = Column(String(50), nullable=True)
    can_read = Column(Boolean, default=False)
    can_write = Column(Boolean, default=False)
    can_speak = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)

    profile = relationship("CandidateProfile", back_populates="languages")


class CandidateAccomplishment(Base):
    __tablename__ = "candidate_accomplishments"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey('candidate_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    type = Column(SQLEnum(AccomplishmentType), default=AccomplishmentType.CERTIFICATION)
    title = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    issuing_org = Column(String(200), nullable=True)
    issue_date = Column(String(20), nullable=True)
    expiry_date = Column(String(20), nullable=True)
    credential_url = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)

    profile = relationship("CandidateProfile", back_populates="accomplishments")


class CandidateExam(Base):
    __tablename__ = "candidate_exams"

    id = Column(Integer, primary_key=True, index=True)
    candidate_id = Column(Integer, ForeignKey('candidate_profiles.id', ondelete='CASCADE'), nullable=False, index=True)

    exam_name = Column(String(200), nullable=False)
    score = Column(String(50), nullable=True)
    rank = Column(String(50), nullable=True)
    year = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)

    profile = relationship("CandidateProfile", back_populates="exams")
