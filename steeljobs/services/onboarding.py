"""
Candidate onboarding: three steps, each saved as a partial profile update.

The persisted onboarding_step only moves when the save commits. Once
onboarding_completed is set, further submissions are no-ops.
"""
import logging
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ValidationError, TransientServiceError
from ..models.profile import CandidateProfile, CandidateEducation, EducationLevel
from ..schemas.profile import BasicDetailsStep, EducationStep, FinalStep
from .auth import AuthContext
from .completion import OnboardingState, onboarding_state, ONBOARDING_STEPS
from .resume_merge import merge_skills
from .validation import is_valid_mobile, is_valid_pincode

logger = logging.getLogger(__name__)

DEGREE_TO_EDUCATION_LEVEL = {
    "doctorate": EducationLevel.DOCTORATE,
    "masters": EducationLevel.MASTER,
    "graduation": EducationLevel.BACHELOR,
    "12th": EducationLevel.HIGH_SCHOOL,
    "10th": EducationLevel.HIGH_SCHOOL,
    "below_10th": EducationLevel.OTHER,
}


def map_degree_to_education_level(degree_level: str) -> EducationLevel:
    return DEGREE_TO_EDUCATION_LEVEL.get((degree_level or "").strip().lower(), EducationLevel.OTHER)


async def get_profile_by_user(db: AsyncSession, user_id: str) -> Optional[CandidateProfile]:
    result = await db.execute(
        select(CandidateProfile).where(CandidateProfile.user_id == user_id)
    )
    return result.scalar_one_or_none()


def _require(value, message: str):
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(message)


async def _apply_step(
    db: AsyncSession,
    auth: AuthContext,
    step: int,
    values: dict,
    extra: Callable = None,
) -> OnboardingState:
    profile = await get_profile_by_user(db, auth.user_id)
    state = onboarding_state(profile)
    if state == OnboardingState.COMPLETE:
        return state
    if step > state.step:
        raise ValidationError(f"Please complete step {state.step} first")

    if profile is None:
        profile = CandidateProfile(user_id=auth.user_id, skills=[], onboarding_step=1)
        db.add(profile)

    for field, value in values.items():
        setattr(profile, field, value)

    if step == ONBOARDING_STEPS:
        profile.onboarding_completed = True
    else:
        profile.onboarding_step = max(profile.onboarding_step or 1, step + 1)

    try:
        await db.flush()
        if extra is not None:
            await extra(db, profile)
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("Onboarding step %s failed to save for %s: %s", step, auth.user_id, e)
        raise TransientServiceError("Failed to save. Please try again.")

    logger.info("Onboarding step %s saved for %s", step, auth.user_id)
    return onboarding_state(profile)


async def submit_basic_details(db: AsyncSession, auth: AuthContext, data: BasicDetailsStep) -> OnboardingState:
    _require(data.full_name, "Full name is required")
    _require(data.mobile_number, "Mobile number is required")
    if not is_valid_mobile(data.mobile_number):
        raise ValidationError("Please enter a valid mobile number")
    _require(data.work_status, "Work status is required")
    _require(data.location, "Current city is required")
    if data.pincode and not is_valid_pincode(data.pincode):
        raise ValidationError("Pincode must be 6 digits")

    values = {
        "full_name": data.full_name.strip(),
        "mobile_number": data.mobile_number.strip(),
        "work_status": data.work_status,
        "location": data.location.strip(),
    }
    for field in ("gender", "date_of_birth", "experience_years",
                  "expected_salary_min", "expected_salary_max", "availability"):
        value = getattr(data, field)
        if value is not None:
            values[field] = value
    return await _apply_step(db, auth, 1, values)


async def submit_education(db: AsyncSession, auth: AuthContext, data: EducationStep) -> OnboardingState:
    _require(data.degree_level, "Please select your highest qualification")

    async def save_highest_education(session: AsyncSession, profile: CandidateProfile):
        result = await session.execute(
            select(CandidateEducation).where(
                CandidateEducation.candidate_id == profile.id,
                CandidateEducation.is_highest == True,
            )
        )
        education = result.scalars().first()
        if education is None:
            education = CandidateEducation(candidate_id=profile.id, is_highest=True)
            session.add(education)
        education.degree_level = data.degree_level
        education.course = data.course
        education.specialization = data.specialization
        education.university = data.university
        education.starting_year = data.starting_year
        education.passing_year = data.passing_year
        education.grading_system = data.grading_system
        education.grade_value = data.grade_value
        await session.flush()

    profile = await get_profile_by_user(db, auth.user_id)
    values = {
        "education_level": map_degree_to_education_level(data.degree_level),
        "skills": merge_skills(profile.skills if profile else [], data.skills),
    }
    return await _apply_step(db, auth, 2, values, extra=save_highest_education)


async def submit_final_step(db: AsyncSession, auth: AuthContext, data: FinalStep) -> OnboardingState:
    profile = await get_profile_by_user(db, auth.user_id)
    resume_url = data.resume_url or (profile.resume_url if profile else None)
    _require(resume_url, "Please upload your resume to finish")

    values = {"resume_url": resume_url}
    for field in ("headline", "profile_summary", "preferred_job_type", "preferred_locations"):
        value = getattr(data, field)
        if value is not None:
            values[field] = value
    return await _apply_step(db, auth, 3, values)
