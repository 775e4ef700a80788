"""
Onboarding Router - the three-step candidate wizard and the routing gate
"""
from fastapi import APIRouter, Depends, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..database import get_db, get_session_maker
from ..schemas.profile import BasicDetailsStep, EducationStep, FinalStep, OnboardingStatusResponse
from ..schemas.resume import ResumeIngestionResult
from ..services.auth import AuthContext, get_candidate
from ..services.cache import ReadCache, get_read_cache
from ..services.completion import onboarding_state, onboarding_completion, resolve_route, OnboardingState
from ..services.onboarding import (
    get_profile_by_user, submit_basic_details, submit_education, submit_final_step,
)
from ..services.resume_parser import ResumeOracle, get_resume_oracle
from ..services.resume_pipeline import ResumeIngestionPipeline, UploadContext, upload_limit_bytes
from ..services.storage import StorageBackend, get_storage

router = APIRouter(prefix="/api/onboarding", tags=["Onboarding"])


def _status_response(profile, state: OnboardingState = None) -> OnboardingStatusResponse:
    state = state or onboarding_state(profile)
    return OnboardingStatusResponse(
        state=state.value,
        step=state.step,
        completed=state == OnboardingState.COMPLETE,
        completion_percentage=onboarding_completion(profile),
    )


async def _after_step(db: AsyncSession, auth: AuthContext, cache: ReadCache, state: OnboardingState) -> OnboardingStatusResponse:
    profile = await get_profile_by_user(db, auth.user_id)
    if profile is not None:
        cache.invalidate(profile.id, ["profile", "education"])
    return _status_response(profile, state)


@router.get("/status", response_model=OnboardingStatusResponse)
async def get_onboarding_status(
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
):
    profile = await get_profile_by_user(db, auth.user_id)
    return _status_response(profile)


@router.get("/route")
async def get_route(
    requested: str,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
):
    """Where the client should send a candidate who asked for `requested`."""
    profile = await get_profile_by_user(db, auth.user_id)
    return {"requested": requested, "route": resolve_route(profile, requested)}


@router.post("/basic-details", response_model=OnboardingStatusResponse)
async def save_basic_details(
    data: BasicDetailsStep,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
    cache: ReadCache = Depends(get_read_cache),
):
    state = await submit_basic_details(db, auth, data)
    return await _after_step(db, auth, cache, state)


@router.post("/education", response_model=OnboardingStatusResponse)
async def save_education(
    data: EducationStep,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
    cache: ReadCache = Depends(get_read_cache),
):
    state = await submit_education(db, auth, data)
    return await _after_step(db, auth, cache, state)


@router.post("/resume", response_model=ResumeIngestionResult)
async def upload_onboarding_resume(
    file: UploadFile = File(...),
    auth: AuthContext = Depends(get_candidate),
    session_maker: async_sessionmaker = Depends(get_session_maker),
    storage: StorageBackend = Depends(get_storage),
    oracle: ResumeOracle = Depends(get_resume_oracle),
    cache: ReadCache = Depends(get_read_cache),
):
    """Resume upload on the final step (10MB limit)."""
    pipeline = ResumeIngestionPipeline(
        session_maker, storage, oracle, cache, upload_limit_bytes(UploadContext.ONBOARDING)
    )
    content = await file.read()
    return await pipeline.ingest(auth, file.filename, file.content_type, content)


@router.post("/complete", response_model=OnboardingStatusResponse)
async def complete_onboarding(
    data: FinalStep,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
    cache: ReadCache = Depends(get_read_cache),
):
    state = await submit_final_step(db, auth, data)
    return await _after_step(db, auth, cache, state)
