"""
Resume Ingestion Pipeline

validate -> upload -> extract -> parse -> merge -> fan-out -> invalidate

Stages run strictly in order. A failing stage stops the run with its own
error; work done by earlier stages is kept (an uploaded file stays uploaded
even if its text cannot be read). Parser failure is soft: the run still
succeeds with outcome "parse_failed" so the candidate can fill fields in by
hand.
"""
import asyncio
import logging
import os
import re
import uuid
from contextlib import asynccontextmanager
from enum import Enum
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import get_settings
from ..exceptions import (
    ValidationError, ConflictError, NotFoundError, TransientServiceError,
    ExtractionError, ResumeNotFoundError,
)
from ..models.profile import CandidateProfile
from ..schemas.resume import (
    ParsedResume, ResumeIngestionResult, IngestionOutcome, SectionSaveReport,
)
from .auth import AuthContext
from .cache import ReadCache
from .resume_merge import SECTION_MODELS, merge_parsed_fields, build_child_rows
from .resume_parser import ResumeOracle
from .storage import StorageBackend
from .text_extraction import (
    ALLOWED_RESUME_TYPES, resolve_content_type, extract_text, meets_text_floor,
)

logger = logging.getLogger(__name__)


class UploadContext(str, Enum):
    ONBOARDING = "onboarding"
    PROFILE_EDIT = "profile_edit"


def upload_limit_bytes(context: UploadContext) -> int:
    settings = get_settings()
    if context == UploadContext.ONBOARDING:
        return settings.onboarding_resume_max_mb * 1024 * 1024
    return settings.profile_resume_max_mb * 1024 * 1024


def sanitize_filename(filename: str) -> str:
    name = os.path.basename(filename or "resume")
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._")
    return name or "resume"


# user_id of every run in progress, shared by all pipeline instances
_in_flight = set()


@asynccontextmanager
async def _claim(user_id: str):
    if user_id in _in_flight:
        raise ConflictError("A resume is already being processed")
    _in_flight.add(user_id)
    try:
        yield
    finally:
        _in_flight.discard(user_id)


class ResumeIngestionPipeline:
    def __init__(
        self,
        session_maker: async_sessionmaker,
        storage: StorageBackend,
        oracle: ResumeOracle,
        cache: ReadCache,
        max_bytes: int,
    ):
        self.session_maker = session_maker
        self.storage = storage
        self.oracle = oracle
        self.cache = cache
        self.max_bytes = max_bytes

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def ingest(self, auth: AuthContext, filename: str, content_type: str, data: bytes) -> ResumeIngestionResult:
        content_type = self.validate(filename, content_type, data)

        async with _claim(auth.user_id):
            resume_url, candidate_id = await self.upload(auth, filename, content_type, data)
            text = self.extract(data, content_type)
            return await self._parse_and_merge(auth, candidate_id, text, resume_url)

    async def reparse(self, auth: AuthContext) -> ResumeIngestionResult:
        """Re-run parsing on the current resume without uploading again."""
        async with _claim(auth.user_id):
            async with self.session_maker() as session:
                profile = await _load_profile(session, auth.user_id)
            if profile is None:
                raise NotFoundError("Profile not found")

            text = profile.resume_text
            if not meets_text_floor(text):
                if not profile.resume_path:
                    raise ResumeNotFoundError("resume file not found; re-upload")
                data = await self._download(profile.resume_path)
                content_type = resolve_content_type("", profile.resume_path)
                text = self.extract(data, content_type)

            return await self._parse_and_merge(auth, profile.id, text, profile.resume_url)

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    def validate(self, filename: str, content_type: str, data: bytes) -> str:
        resolved = resolve_content_type(content_type, filename)
        if resolved not in ALLOWED_RESUME_TYPES:
            raise ValidationError("Please upload a PDF or Word document")
        if not data:
            raise ValidationError("Uploaded file is empty")
        if len(data) > self.max_bytes:
            limit_mb = self.max_bytes // (1024 * 1024)
            raise ValidationError(f"File too large (max {limit_mb}MB)")
        return resolved

    async def upload(self, auth: AuthContext, filename: str, content_type: str, data: bytes):
        path = f"resumes/{auth.user_id}/{uuid.uuid4().hex}_{sanitize_filename(filename)}"
        try:
            resume_url = await self.storage.upload(path, data, content_type, upsert=True)
        except (TransientServiceError, OSError) as e:
            logger.error("Resume upload failed for %s: %s", auth.user_id, e)
            raise TransientServiceError("upload failed")
        logger.info("Uploaded resume for %s to %s", auth.user_id, path)

        try:
            async with self.session_maker() as session:
                profile = await _load_profile(session, auth.user_id)
                if profile is None:
                    profile = CandidateProfile(user_id=auth.user_id, skills=[])
                    session.add(profile)
                old_path = profile.resume_path
                profile.resume_url = resume_url
                profile.resume_path = path
                await session.commit()
                candidate_id = profile.id
        except SQLAlchemyError as e:
            logger.error("Could not save resume URL for %s: %s", auth.user_id, e)
            raise TransientServiceError("could not save resume")

        self.cache.invalidate(candidate_id, ["profile"])
        if old_path and old_path != path:
            await self._delete_quietly(old_path)
        return resume_url, candidate_id

    def extract(self, data: bytes, content_type: str) -> str:
        try:
            text = extract_text(data, content_type)
        except (RuntimeError, ValueError) as e:
            # Corrupt, encrypted or truncated PDF and Word files
            logger.warning("Text extraction failed: %s", e)
            raise ExtractionError("could not extract text")
        if not meets_text_floor(text):
            raise ExtractionError("could not extract text")
        return text.strip()

    async def parse(self, auth: AuthContext, text: str) -> Optional[ParsedResume]:
        try:
            return await self.oracle.parse(text, auth.access_token)
        except TransientServiceError as e:
            logger.warning("Resume parsing failed for %s: %s", auth.user_id, e.detail)
            return None

    async def _parse_and_merge(self, auth: AuthContext, candidate_id: int, text: str, resume_url: str) -> ResumeIngestionResult:
        parsed = await self.parse(auth, text)
        merged_fields = await self.merge(candidate_id, text, parsed)

        sections = {}
        if parsed is not None:
            sections = await self.fan_out(candidate_id, parsed)

        affected = [name for name, report in sections.items() if report.total]
        self.cache.invalidate(candidate_id, ["profile"] + affected)

        if parsed is None:
            return ResumeIngestionResult(
                outcome=IngestionOutcome.PARSE_FAILED,
                resume_url=resume_url,
                text_length=len(text),
                message="Resume uploaded. Please fill in your details manually.",
            )
        return ResumeIngestionResult(
            outcome=IngestionOutcome.PARSED,
            resume_url=resume_url,
            text_length=len(text),
            merged_fields=merged_fields,
            sections=sections,
            message="Resume parsed",
        )

    async def merge(self, candidate_id: int, text: str, parsed: Optional[ParsedResume]) -> list:
        try:
            async with self.session_maker() as session:
                profile = await session.get(CandidateProfile, candidate_id)
                if profile is None:
                    raise NotFoundError("Profile not found")
                profile.resume_text = text
                merged_fields = merge_parsed_fields(profile, parsed) if parsed is not None else []
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Could not merge parsed resume into profile %s: %s", candidate_id, e)
            raise TransientServiceError("could not save parsed resume")
        return merged_fields

    async def fan_out(self, candidate_id: int, parsed: ParsedResume) -> dict:
        rows = build_child_rows(parsed)
        jobs = [
            (section, values)
            for section, section_rows in rows.items()
            for values in section_rows
        ]
        results = await asyncio.gather(
            *(self._insert_child(SECTION_MODELS[section], candidate_id, values) for section, values in jobs),
            return_exceptions=True,
        )

        reports = {section: SectionSaveReport(total=len(section_rows)) for section, section_rows in rows.items()}
        for (section, _), result in zip(jobs, results):
            if isinstance(result, Exception):
                logger.warning("Could not save %s row for profile %s: %s", section, candidate_id, result)
                reports[section].failed += 1
            else:
                reports[section].saved += 1
        return reports

    async def _insert_child(self, model, candidate_id: int, values: dict) -> None:
        async with self.session_maker() as session:
            session.add(model(candidate_id=candidate_id, **values))
            await session.commit()

    # ------------------------------------------------------------------
    # Storage helpers
    # ------------------------------------------------------------------

    async def _download(self, path: str) -> bytes:
        try:
            return await self.storage.download(path)
        except ResumeNotFoundError:
            raise
        except (TransientServiceError, OSError) as e:
            logger.warning("Could not download resume %s: %s", path, e)
            raise ResumeNotFoundError("resume file not found; re-upload")

    async def _delete_quietly(self, path: str) -> None:
        try:
            await self.storage.delete(path)
        except (TransientServiceError, OSError, ValueError) as e:
            logger.warning("Could not delete previous resume %s: %s", path, e)


async def _load_profile(session, user_id: str) -> Optional[CandidateProfile]:
    result = await session.execute(
        select(CandidateProfile).where(CandidateProfile.user_id == user_id)
    )
    return result.scalar_one_or_none()
