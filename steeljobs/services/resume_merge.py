"""
Merging parsed resume data into a candidate profile.

Scalars coalesce (parsed value wins only when it is non-empty), skills union
with existing order kept, and list sections become new child rows.
"""
import re
from typing import Dict, List, Optional

from ..models.profile import (
    CandidateProfile, CandidateEducation, CandidateEmployment, CandidateInternship,
    CandidateProject, CandidateLanguage, CandidateAccomplishment,
    EducationLevel, AccomplishmentType,
)
from ..schemas.resume import ParsedResume
from .validation import is_valid_mobile


# Section name -> child model. Order is the order rows are reported in.
SECTION_MODELS = {
    "education": CandidateEducation,
    "employment": CandidateEmployment,
    "internships": CandidateInternship,
    "projects": CandidateProject,
    "languages": CandidateLanguage,
    "accomplishments": CandidateAccomplishment,
}

# Parsed field -> profile column
SCALAR_FIELDS = [
    ("name", "full_name"),
    ("headline", "headline"),
    ("location", "location"),
    ("experience_years", "experience_years"),
    ("education_level", "education_level"),
    ("about", "about"),
]


def is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def coalesce(current, incoming):
    """Incoming wins only when it carries a value."""
    return current if is_empty(incoming) else incoming


def merge_skills(existing: Optional[List[str]], incoming: Optional[List[str]]) -> List[str]:
    """Set union, case-insensitive, keeping existing order and spelling first."""
    merged = []
    seen = set()
    for skill in list(existing or []) + list(incoming or []):
        if not isinstance(skill, str) or not skill.strip():
            continue
        key = skill.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        merged.append(skill.strip())
    return merged


def _education_level(value: Optional[str]) -> Optional[EducationLevel]:
    if value in EducationLevel._value2member_map_:
        return EducationLevel(value)
    return None


def merge_parsed_fields(profile: CandidateProfile, parsed: ParsedResume) -> List[str]:
    """Apply parsed scalars and skills to the profile in place. Returns changed column names."""
    changed = []
    for parsed_field, column in SCALAR_FIELDS:
        incoming = getattr(parsed, parsed_field)
        if column == "education_level":
            incoming = _education_level(incoming)
        current = getattr(profile, column)
        value = coalesce(current, incoming)
        if value != current:
            setattr(profile, column, value)
            changed.append(column)

    if parsed.phone and is_valid_mobile(parsed.phone):
        if profile.mobile_number != parsed.phone:
            profile.mobile_number = parsed.phone
            changed.append("mobile_number")

    skills = merge_skills(profile.skills, parsed.skills)
    if skills != list(profile.skills or []):
        profile.skills = skills
        changed.append("skills")
    return changed


# ============================================================================
# Child Row Builders
# ============================================================================

_DEGREE_PATTERNS = [
    ("doctorate", re.compile(r"\b(ph\.?\s?d|doctor(ate)?|d\.phil)\b", re.I)),
    ("masters", re.compile(r"\b(master|m\.?\s?tech|m\.?\s?e|m\.?\s?sc|m\.?\s?a|mba|mca|m\.?\s?com|pgdm)\b", re.I)),
    ("graduation", re.compile(r"\b(bachelor|b\.?\s?tech|b\.?\s?e|b\.?\s?sc|b\.?\s?a|bba|bca|b\.?\s?com|graduat\w*|diploma)\b", re.I)),
    ("12th", re.compile(r"\b(12th|xii|hsc|higher secondary|intermediate)\b", re.I)),
    ("10th", re.compile(r"\b(10th|ssc|matriculation|secondary school)\b", re.I)),
]


def infer_degree_level(degree: Optional[str]) -> str:
    for level, pattern in _DEGREE_PATTERNS:
        if degree and pattern.search(degree):
            return level
    return "graduation"


def split_duration(duration: Optional[str]):
    """'Jan 2020 - Present' -> ('Jan 2020', None, True)"""
    if not duration:
        return None, None, False
    parts = [p.strip() for p in re.split(r"\s+(?:-|–|to)\s+|\s*[-–]\s*", duration, maxsplit=1)]
    start = parts[0] or None
    end = parts[1] if len(parts) > 1 and parts[1] else None
    if end and end.lower() in ("present", "current", "now", "till date"):
        return start, None, True
    return start, end, False


def build_child_rows(parsed: ParsedResume) -> Dict[str, List[dict]]:
    """Column values for each new child row, keyed by section.

    Rows are always new: nothing is matched against existing rows.
    """
    rows = {section: [] for section in SECTION_MODELS}

    for entry in parsed.education:
        if not (entry.degree or entry.institution):
            continue
        rows["education"].append({
            "degree_level": infer_degree_level(entry.degree),
            "course": entry.degree,
            "specialization": entry.specialization,
            "university": entry.institution,
            "passing_year": entry.year,
        })

    for entry in parsed.work_history:
        if not (entry.company or entry.role):
            continue
        start, end, ongoing = split_duration(entry.duration)
        rows["employment"].append({
            "company_name": entry.company or "Unknown",
            "designation": entry.role or "Unknown",
            "description": entry.description,
            "start_date": start,
            "end_date": end,
            "is_current": bool(entry.is_current) or ongoing,
        })

    for entry in parsed.internships:
        if not (entry.company or entry.role):
            continue
        start, end, ongoing = split_duration(entry.duration)
        rows["internships"].append({
            "company_name": entry.company or "Unknown",
            "role": entry.role or "Intern",
            "description": entry.description,
            "skills_learned": list(entry.skills),
            "start_date": start,
            "end_date": end,
            "is_current": ongoing,
        })

    for entry in parsed.projects:
        if not entry.title:
            continue
        url = entry.url or None
        is_repo = bool(url) and "github.com" in url
        rows["projects"].append({
            "title": entry.title,
            "description": entry.description,
            "skills_used": list(entry.technologies),
            "github_url": url if is_repo else None,
            "live_url": None if is_repo else url,
        })

    for entry in parsed.languages:
        if not entry.language:
            continue
        rows["languages"].append({
            "language": entry.language,
            "proficiency": entry.proficiency,
        })

    for name in parsed.certifications:
        rows["accomplishments"].append({
            "type": AccomplishmentType.CERTIFICATION,
            "title": name,
        })

    return rows
