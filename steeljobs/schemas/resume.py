"""
Resume parsing schemas.

ParsedResume mirrors what the parse-resume function returns. Every field is
optional: the parser may omit anything, and merge code must coalesce.
"""
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class WorkHistoryEntry(BaseModel):
    company: Optional[str] = None
    role: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None
    is_current: Optional[bool] = None


class EducationEntry(BaseModel):
    degree: Optional[str] = None
    institution: Optional[str] = None
    year: Optional[int] = None
    specialization: Optional[str] = None


class InternshipEntry(BaseModel):
    company: Optional[str] = None
    role: Optional[str] = None
    duration: Optional[str] = None
    description: Optional[str] = None
    skills: List[str] = Field(default_factory=list)


class ProjectEntry(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    technologies: List[str] = Field(default_factory=list)
    url: Optional[str] = None


class LanguageEntry(BaseModel):
    language: Optional[str] = None
    proficiency: Optional[str] = None


class ParsedResume(BaseModel):
    name: Optional[str] = None
    headline: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience_years: Optional[float] = None
    education_level: Optional[str] = None
    about: Optional[str] = None
    work_history: List[WorkHistoryEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    internships: List[InternshipEntry] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)
    languages: List[LanguageEntry] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)


class IngestionOutcome(str, Enum):
    PARSED = "parsed"
    PARSE_FAILED = "parse_failed"


class SectionSaveReport(BaseModel):
    saved: int = 0
    failed: int = 0
    total: int = 0


class ResumeIngestionResult(BaseModel):
    outcome: IngestionOutcome
    resume_url: Optional[str] = None
    text_length: int = 0
    merged_fields: List[str] = Field(default_factory=list)
    sections: Dict[str, SectionSaveReport] = Field(default_factory=dict)
    message: str = ""

    @property
    def children_failed(self) -> int:
        return sum(report.failed for report in self.sections.values())
