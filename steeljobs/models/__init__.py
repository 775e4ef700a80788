from .profile import (
    CandidateProfile, CandidateEducation, CandidateEmployment, CandidateInternship,
    CandidateProject, CandidateLanguage, CandidateAccomplishment, CandidateExam,
    EducationLevel, WorkStatus, AccomplishmentType,
)
from .job import (
    RecruiterProfile, Job, Application, SavedJob,
    EmploymentType, WorkMode, JobVisibility, ApplicationStatus,
)

__all__ = [
    # Profile models
    "CandidateProfile", "CandidateEducation", "CandidateEmployment", "CandidateInternship",
    "CandidateProject", "CandidateLanguage", "CandidateAccomplishment", "CandidateExam",
    "EducationLevel", "WorkStatus", "AccomplishmentType",
    # Job models
    "RecruiterProfile", "Job", "Application", "SavedJob",
    "EmploymentType", "WorkMode", "JobVisibility", "ApplicationStatus",
]
