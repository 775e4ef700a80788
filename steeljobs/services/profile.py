"""
Candidate profile reads and edits.

Reads go through the ReadCache. Writers commit, then invalidate the
collections they touched.
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError, ValidationError
from ..models.profile import CandidateProfile, CandidateExam
from ..schemas.profile import (
    ProfileResponse, ProfileUpdate,
    EducationResponse, EmploymentResponse, InternshipResponse, ProjectResponse,
    LanguageResponse, AccomplishmentResponse, ExamResponse,
)
from .auth import AuthContext
from .cache import ReadCache
from .resume_merge import SECTION_MODELS as PARSED_SECTION_MODELS, merge_skills
from .validation import is_valid_mobile

logger = logging.getLogger(__name__)

SECTION_MODELS = dict(PARSED_SECTION_MODELS, exams=CandidateExam)

SECTION_RESPONSES = {
    "education": EducationResponse,
    "employment": EmploymentResponse,
    "internships": InternshipResponse,
    "projects": ProjectResponse,
    "languages": LanguageResponse,
    "accomplishments": AccomplishmentResponse,
    "exams": ExamResponse,
}


async def find_profile(db: AsyncSession, user_id: str) -> Optional[CandidateProfile]:
    result = await db.execute(
        select(CandidateProfile).where(CandidateProfile.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def require_profile(db: AsyncSession, auth: AuthContext) -> CandidateProfile:
    profile = await find_profile(db, auth.user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile


async def load_section(db: AsyncSession, cache: ReadCache, section: str, candidate_id: int) -> List[dict]:
    rows = cache.get(section, candidate_id)
    if rows is not None:
        return rows
    model = SECTION_MODELS[section]
    result = await db.execute(
        select(model).where(model.candidate_id == candidate_id).order_by(model.id)
    )
    response = SECTION_RESPONSES[section]
    rows = [response.model_validate(row).model_dump(mode="json") for row in result.scalars().all()]
    cache.set(section, candidate_id, rows)
    return rows


async def load_profile_view(db: AsyncSession, cache: ReadCache, profile: CandidateProfile) -> dict:
    view = cache.get("profile", profile.id)
    if view is None:
        view = ProfileResponse.model_validate(profile).model_dump(mode="json")
        cache.set("profile", profile.id, view)
    return view


async def load_sections(db: AsyncSession, cache: ReadCache, candidate_id: int) -> Dict[str, List[dict]]:
    return {
        section: await load_section(db, cache, section, candidate_id)
        for section in SECTION_MODELS
    }


async def update_profile(db: AsyncSession, auth: AuthContext, cache: ReadCache, data: ProfileUpdate) -> CandidateProfile:
    values = data.model_dump(exclude_unset=True)
    if values.get("mobile_number") and not is_valid_mobile(values["mobile_number"]):
        raise ValidationError("Please enter a valid phone number")
    salary_min = values.get("expected_salary_min")
    salary_max = values.get("expected_salary_max")
    if salary_min is not None and salary_max is not None and salary_min > salary_max:
        raise ValidationError("Minimum salary cannot exceed maximum salary")

    profile = await find_profile(db, auth.user_id)
    if profile is None:
        profile = CandidateProfile(user_id=auth.user_id, skills=[])
        db.add(profile)

    if "skills" in values:
        # Explicit edits replace the list; duplicates are still collapsed
        values["skills"] = merge_skills([], values["skills"])
    for field, value in values.items():
        setattr(profile, field, value)
    await db.commit()
    cache.invalidate(profile.id, ["profile"])
    return profile


async def add_section_row(db: AsyncSession, auth: AuthContext, cache: ReadCache, section: str, data) -> object:
    profile = await require_profile(db, auth)
    row = SECTION_MODELS[section](candidate_id=profile.id, **data.model_dump())
    db.add(row)
    await db.commit()
    cache.invalidate(profile.id, [section])
    return row


async def _owned_row(db: AsyncSession, profile: CandidateProfile, section: str, row_id: int):
    row = await db.get(SECTION_MODELS[section], row_id)
    if row is None or row.candidate_id != profile.id:
        raise NotFoundError(f"{section.rstrip('s').capitalize()} entry not found")
    return row


async def update_section_row(db: AsyncSession, auth: AuthContext, cache: ReadCache, section: str, row_id: int, data) -> object:
    profile = await require_profile(db, auth)
    row = await _owned_row(db, profile, section, row_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(row, field, value)
    await db.commit()
    cache.invalidate(profile.id, [section])
    return row


async def delete_section_row(db: AsyncSession, auth: AuthContext, cache: ReadCache, section: str, row_id: int) -> None:
    profile = await require_profile(db, auth)
    row = await _owned_row(db, profile, section, row_id)
    await db.delete(row)
    await db.commit()
    cache.invalidate(profile.id, [section])
