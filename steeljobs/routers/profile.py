"""
Profile Router - profile reads/edits, section CRUD, resume upload and re-parse
"""
from fastapi import APIRouter, Depends, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import get_settings
from ..database import get_db, get_session_maker
from ..schemas.profile import (
    ProfileResponse, ProfileUpdate, CompletionResponse,
    EducationCreate, EducationUpdate, EmploymentCreate, EmploymentUpdate,
    InternshipCreate, InternshipUpdate, ProjectCreate, ProjectUpdate,
    LanguageCreate, LanguageUpdate, AccomplishmentCreate, AccomplishmentUpdate,
    ExamCreate, ExamUpdate,
)
from ..schemas.resume import ResumeIngestionResult
from ..services.auth import AuthContext, get_candidate
from ..services.cache import ReadCache, get_read_cache
from ..services.completion import (
    onboarding_completion, dashboard_completion, section_status,
)
from ..services.profile import (
    SECTION_RESPONSES, find_profile, require_profile, load_profile_view, load_sections,
    update_profile, add_section_row, update_section_row, delete_section_row,
)
from ..services.resume_parser import ResumeOracle, get_resume_oracle
from ..services.resume_pipeline import ResumeIngestionPipeline, UploadContext, upload_limit_bytes
from ..services.storage import StorageBackend, get_storage

router = APIRouter(prefix="/api/profile", tags=["Profile"])


# ============================================================================
# Profile Endpoints
# ============================================================================

@router.get("/me")
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
    cache: ReadCache = Depends(get_read_cache),
):
    """Profile with every section, served from the read cache when warm."""
    profile = await require_profile(db, auth)
    view = dict(await load_profile_view(db, cache, profile))
    view.update(await load_sections(db, cache, profile.id))
    return view


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
    cache: ReadCache = Depends(get_read_cache),
):
    return await update_profile(db, auth, cache, data)


@router.get("/completion", response_model=CompletionResponse)
async def get_completion(
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
    cache: ReadCache = Depends(get_read_cache),
):
    profile = await find_profile(db, auth.user_id)
    sections = await load_sections(db, cache, profile.id) if profile else {}
    return CompletionResponse(
        onboarding_percentage=onboarding_completion(profile),
        dashboard_percentage=dashboard_completion(profile, sections),
        sections=section_status(profile, sections),
    )


# ============================================================================
# Resume Endpoints
# ============================================================================

@router.post("/resume", response_model=ResumeIngestionResult)
async def upload_resume(
    file: UploadFile = File(...),
    auth: AuthContext = Depends(get_candidate),
    session_maker: async_sessionmaker = Depends(get_session_maker),
    storage: StorageBackend = Depends(get_storage),
    oracle: ResumeOracle = Depends(get_resume_oracle),
    cache: ReadCache = Depends(get_read_cache),
):
    """Upload a new resume from the profile page (5MB limit)."""
    pipeline = ResumeIngestionPipeline(
        session_maker, storage, oracle, cache, upload_limit_bytes(UploadContext.PROFILE_EDIT)
    )
    content = await file.read()
    return await pipeline.ingest(auth, file.filename, file.content_type, content)


@router.post("/resume/reparse", response_model=ResumeIngestionResult)
async def reparse_resume(
    auth: AuthContext = Depends(get_candidate),
    session_maker: async_sessionmaker = Depends(get_session_maker),
    storage: StorageBackend = Depends(get_storage),
    oracle: ResumeOracle = Depends(get_resume_oracle),
    cache: ReadCache = Depends(get_read_cache),
):
    pipeline = ResumeIngestionPipeline(
        session_maker, storage, oracle, cache, upload_limit_bytes(UploadContext.PROFILE_EDIT)
    )
    return await pipeline.reparse(auth)


@router.get("/resume/url")
async def get_resume_url(
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_candidate),
    storage: StorageBackend = Depends(get_storage),
):
    """Short-lived signed URL for the current resume."""
    profile = await require_profile(db, auth)
    if not profile.resume_path:
        return {"url": profile.resume_url}
    ttl = get_settings().signed_url_ttl_seconds
    return {"url": await storage.create_signed_url(profile.resume_path, ttl), "expires_in": ttl}


# ============================================================================
# Section Endpoints
# ============================================================================

SECTION_SCHEMAS = {
    "education": (EducationCreate, EducationUpdate),
    "employment": (EmploymentCreate, EmploymentUpdate),
    "internships": (InternshipCreate, InternshipUpdate),
    "projects": (ProjectCreate, ProjectUpdate),
    "languages": (LanguageCreate, LanguageUpdate),
    "accomplishments": (AccomplishmentCreate, AccomplishmentUpdate),
    "exams": (ExamCreate, ExamUpdate),
}


def _register_section_routes(section: str, create_schema, update_schema, response_schema):
    async def list_rows(
        db: AsyncSession = Depends(get_db),
        auth: AuthContext = Depends(get_candidate),
        cache: ReadCache = Depends(get_read_cache),
    ):
        profile = await require_profile(db, auth)
        return (await load_sections(db, cache, profile.id))[section]

    async def create_row(
        data: create_schema,
        db: AsyncSession = Depends(get_db),
        auth: AuthContext = Depends(get_candidate),
        cache: ReadCache = Depends(get_read_cache),
    ):
        return await add_section_row(db, auth, cache, section, data)

    async def update_row(
        row_id: int,
        data: update_schema,
        db: AsyncSession = Depends(get_db),
        auth: AuthContext = Depends(get_candidate),
        cache: ReadCache = Depends(get_read_cache),
    ):
        return await update_section_row(db, auth, cache, section, row_id, data)

    async def delete_row(
        row_id: int,
        db: AsyncSession = Depends(get_db),
        auth: AuthContext = Depends(get_candidate),
        cache: ReadCache = Depends(get_read_cache),
    ):
        await delete_section_row(db, auth, cache, section, row_id)
        return {"message": "Deleted"}

    path = f"/me/{section}"
    router.add_api_route(path, list_rows, methods=["GET"], response_model=list[response_schema],
                         name=f"list_{section}")
    router.add_api_route(path, create_row, methods=["POST"], response_model=response_schema,
                         status_code=201, name=f"create_{section}")
    router.add_api_route(f"{path}/{{row_id}}", update_row, methods=["PUT"], response_model=response_schema,
                         name=f"update_{section}")
    router.add_api_route(f"{path}/{{row_id}}", delete_row, methods=["DELETE"], name=f"delete_{section}")


for _section, (_create, _update) in SECTION_SCHEMAS.items():
    _register_section_routes(_section, _create, _update, SECTION_RESPONSES[_section])
