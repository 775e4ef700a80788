"""Tests for the resume ingestion pipeline."""
import asyncio
import os

import httpx
import pytest
from sqlalchemy import select, func

from steeljobs.exceptions import (
    ConflictError, ExtractionError, NotFoundError, ResumeNotFoundError, TransientServiceError,
    ValidationError,
)
from steeljobs.models.profile import (
    CandidateEducation, CandidateEmployment, CandidateProfile, CandidateProject,
)
from steeljobs.schemas.resume import (
    EducationEntry, IngestionOutcome, ParsedResume, ProjectEntry, WorkHistoryEntry,
)
from steeljobs.services.resume_parser import RemoteResumeOracle
from steeljobs.services.resume_pipeline import (
    ResumeIngestionPipeline, UploadContext, sanitize_filename, upload_limit_bytes,
)
from steeljobs.services.text_extraction import DOCX_MIME

from conftest import FakeOracle, RESUME_DOCX, RESUME_TEXT, candidate_auth, make_docx

MB = 1024 * 1024

PARSED = ParsedResume(
    name="Asha Rao",
    location="Pune",
    skills=["welding", "TIG", "Safety Audits"],
    education=[
        EducationEntry(degree="B.Tech Mechanical", institution="COEP", year=2016),
        EducationEntry(degree="Diploma in Welding", institution="Govt Polytechnic", year=2013),
    ],
    work_history=[
        WorkHistoryEntry(company="JSW Steel", role="Shift Engineer", duration="Jan 2020 - Present"),
    ],
    projects=[ProjectEntry(title="Weld defect classifier")],
)


@pytest.fixture
def pipeline(session_maker, storage, cache, fake_oracle):
    return ResumeIngestionPipeline(session_maker, storage, fake_oracle, cache, 5 * MB)


async def load_profile(session_maker, user_id):
    async with session_maker() as session:
        result = await session.execute(
            select(CandidateProfile).where(CandidateProfile.user_id == user_id)
        )
        return result.scalar_one_or_none()


async def count_rows(session_maker, model, candidate_id):
    async with session_maker() as session:
        return await session.scalar(
            select(func.count(model.id)).where(model.candidate_id == candidate_id)
        )


def stored_files(storage):
    found = []
    for root, _, files in os.walk(storage.root_dir):
        found.extend(os.path.join(root, name) for name in files)
    return found


def test_upload_limits_depend_on_call_site():
    assert upload_limit_bytes(UploadContext.ONBOARDING) == 10 * MB
    assert upload_limit_bytes(UploadContext.PROFILE_EDIT) == 5 * MB


def test_sanitize_filename():
    assert sanitize_filename("../../etc/Asha CV (final).pdf") == "Asha_CV_final_.pdf"
    assert sanitize_filename("") == "resume"


async def test_validation_rejects_before_any_io(pipeline, storage, session_maker, fake_oracle):
    auth = candidate_auth()
    with pytest.raises(ValidationError):
        await pipeline.ingest(auth, "photo.png", "image/png", b"x" * 200)
    with pytest.raises(ValidationError):
        await pipeline.ingest(auth, "cv.docx", DOCX_MIME, b"")

    small = ResumeIngestionPipeline(session_maker, storage, fake_oracle, pipeline.cache, 1024)
    with pytest.raises(ValidationError):
        await small.ingest(auth, "cv.docx", DOCX_MIME, b"a" * 2048)

    assert stored_files(storage) == []
    assert await load_profile(session_maker, auth.user_id) is None
    assert fake_oracle.calls == 0


async def test_text_below_floor_stops_before_the_parser(pipeline, session_maker, fake_oracle):
    auth = candidate_auth()
    with pytest.raises(ExtractionError):
        await pipeline.ingest(auth, "cv.docx", DOCX_MIME, make_docx("a" * 99))
    assert fake_oracle.calls == 0

    # The upload stage already finished and is kept
    profile = await load_profile(session_maker, auth.user_id)
    assert profile.resume_url.startswith("/uploads/resumes/candidate-1/")

    result = await pipeline.ingest(auth, "cv.docx", DOCX_MIME, make_docx("a" * 100))
    assert fake_oracle.calls == 1
    assert result.text_length == 100


async def test_short_docx_stops_before_the_parser(pipeline, fake_oracle):
    with pytest.raises(ExtractionError):
        await pipeline.ingest(candidate_auth(), "cv.docx", DOCX_MIME, make_docx("Asha Rao, welder"))
    assert fake_oracle.calls == 0


async def test_corrupt_docx_is_an_extraction_error(pipeline, fake_oracle):
    with pytest.raises(ExtractionError):
        await pipeline.ingest(candidate_auth(), "cv.docx", DOCX_MIME, b"x" * 500)
    assert fake_oracle.calls == 0


async def test_parse_failure_is_soft(session_maker, storage, cache):
    oracle = FakeOracle(error=TransientServiceError("Resume parser timed out"))
    pipeline = ResumeIngestionPipeline(session_maker, storage, oracle, cache, 5 * MB)
    auth = candidate_auth()

    result = await pipeline.ingest(auth, "cv.docx", DOCX_MIME, RESUME_DOCX)

    assert result.outcome == IngestionOutcome.PARSE_FAILED
    assert result.sections == {}
    profile = await load_profile(session_maker, auth.user_id)
    assert profile.resume_url == result.resume_url
    assert profile.resume_text == RESUME_TEXT


async def test_ingest_merges_and_fans_out(pipeline, session_maker, make_candidate, fake_oracle):
    fake_oracle.result = PARSED
    existing = await make_candidate(
        user_id="candidate-1", full_name="Asha R.", headline="Supervisor", skills=["Welding", "MIG"],
    )

    result = await pipeline.ingest(candidate_auth(), "Asha CV.docx", DOCX_MIME, RESUME_DOCX)

    assert result.outcome == IngestionOutcome.PARSED
    assert result.sections["education"].saved == 2
    assert result.sections["employment"].saved == 1
    assert result.sections["projects"].saved == 1
    assert result.children_failed == 0
    assert fake_oracle.texts == [RESUME_TEXT]

    profile = await load_profile(session_maker, "candidate-1")
    assert profile.full_name == "Asha Rao"
    assert profile.headline == "Supervisor"
    assert profile.location == "Pune"
    assert profile.skills == ["Welding", "MIG", "TIG", "Safety Audits"]
    assert await count_rows(session_maker, CandidateEducation, existing.id) == 2
    assert await count_rows(session_maker, CandidateEmployment, existing.id) == 1


async def test_fan_out_failures_are_counted_not_raised(session_maker, storage, cache):
    class FailingProjects(ResumeIngestionPipeline):
        async def _insert_child(self, model, candidate_id, values):
            if model is CandidateProject:
                raise TransientServiceError("insert failed")
            await super()._insert_child(model, candidate_id, values)

    pipeline = FailingProjects(session_maker, storage, FakeOracle(PARSED), cache, 5 * MB)
    result = await pipeline.ingest(candidate_auth(), "cv.docx", DOCX_MIME, RESUME_DOCX)

    assert result.outcome == IngestionOutcome.PARSED
    assert result.sections["projects"].failed == 1
    assert result.sections["projects"].saved == 0
    assert result.sections["education"].saved == 2
    assert result.children_failed == 1


async def test_fan_out_is_additive(pipeline, session_maker, fake_oracle):
    fake_oracle.result = PARSED
    auth = candidate_auth()
    await pipeline.ingest(auth, "cv.docx", DOCX_MIME, RESUME_DOCX)
    await pipeline.reparse(auth)

    profile = await load_profile(session_maker, auth.user_id)
    assert await count_rows(session_maker, CandidateEducation, profile.id) == 4
    # Skills union stays stable across runs
    assert profile.skills == ["welding", "TIG", "Safety Audits"]


async def test_reupload_replaces_previous_file(pipeline, storage, session_maker):
    auth = candidate_auth()
    first = await pipeline.ingest(auth, "old.docx", DOCX_MIME, RESUME_DOCX)
    second = await pipeline.ingest(auth, "new.docx", DOCX_MIME, RESUME_DOCX)

    assert first.resume_url != second.resume_url
    files = stored_files(storage)
    assert len(files) == 1
    assert files[0].endswith("_new.docx")


async def test_reparse_uses_cached_text(pipeline, storage, session_maker, fake_oracle):
    auth = candidate_auth()
    await pipeline.ingest(auth, "cv.docx", DOCX_MIME, RESUME_DOCX)
    profile = await load_profile(session_maker, auth.user_id)
    await storage.delete(profile.resume_path)

    result = await pipeline.reparse(auth)

    assert result.outcome == IngestionOutcome.PARSED
    assert fake_oracle.calls == 2
    assert fake_oracle.texts[-1] == RESUME_TEXT


async def test_reparse_without_resume(pipeline, make_candidate):
    with pytest.raises(NotFoundError):
        await pipeline.reparse(candidate_auth("nobody"))

    await make_candidate(user_id="candidate-1")
    with pytest.raises(ResumeNotFoundError):
        await pipeline.reparse(candidate_auth())


async def test_reparse_downloads_when_text_missing(pipeline, storage, make_candidate, fake_oracle):
    await storage.upload("resumes/candidate-1/cv.docx", RESUME_DOCX, DOCX_MIME)
    await make_candidate(user_id="candidate-1", resume_path="resumes/candidate-1/cv.docx")

    result = await pipeline.reparse(candidate_auth())

    assert result.outcome == IngestionOutcome.PARSED
    assert fake_oracle.texts == [RESUME_TEXT]


async def test_one_run_per_candidate(session_maker, storage, cache):
    class BlockingOracle(FakeOracle):
        def __init__(self):
            super().__init__()
            self.started = asyncio.Event()
            self.release = asyncio.Event()

        async def parse(self, text, access_token):
            self.started.set()
            await self.release.wait()
            return await super().parse(text, access_token)

    oracle = BlockingOracle()
    pipeline = ResumeIngestionPipeline(session_maker, storage, oracle, cache, 5 * MB)
    auth = candidate_auth()

    first = asyncio.create_task(pipeline.ingest(auth, "cv.docx", DOCX_MIME, RESUME_DOCX))
    await asyncio.wait_for(oracle.started.wait(), timeout=10)
    with pytest.raises(ConflictError):
        await pipeline.ingest(auth, "cv.docx", DOCX_MIME, RESUME_DOCX)

    # Other candidates are not blocked
    other = await pipeline.ingest(candidate_auth("candidate-2"), "cv.docx", DOCX_MIME, RESUME_DOCX)
    assert other.outcome == IngestionOutcome.PARSED

    oracle.release.set()
    result = await asyncio.wait_for(first, timeout=10)
    assert result.outcome == IngestionOutcome.PARSED


async def test_ingest_invalidates_cached_reads(pipeline, cache, make_candidate, fake_oracle):
    fake_oracle.result = PARSED
    profile = await make_candidate(user_id="candidate-1")
    cache.set("profile", profile.id, {"full_name": None})
    cache.set("education", profile.id, [])
    cache.set("languages", profile.id, [])

    await pipeline.ingest(candidate_auth(), "cv.docx", DOCX_MIME, RESUME_DOCX)

    assert cache.get("profile", profile.id) is None
    assert cache.get("education", profile.id) is None
    # Untouched sections stay cached
    assert cache.get("languages", profile.id) == []


# ============================================================================
# Remote parser replies
# ============================================================================

def remote_oracle(status_code=200, **response):
    def handler(request):
        return httpx.Response(status_code, **response)
    return RemoteResumeOracle("http://parser.test/parse-resume", transport=httpx.MockTransport(handler))


async def test_remote_parser_reply_is_unwrapped():
    oracle = remote_oracle(json={"success": True, "data": {"name": "Asha Rao", "skills": "TIG, MIG"}})
    parsed = await oracle.parse(RESUME_TEXT, "token")
    assert parsed.name == "Asha Rao"
    assert parsed.skills == ["TIG", "MIG"]


@pytest.mark.parametrize("body", [
    ["unexpected"],
    "ok",
    42,
    {"success": True, "data": ["not", "an", "object"]},
    {"success": False, "error": "quota exceeded"},
])
async def test_malformed_remote_reply_is_transient(body):
    with pytest.raises(TransientServiceError):
        await remote_oracle(json=body).parse(RESUME_TEXT, "token")


async def test_malformed_remote_reply_keeps_the_upload(session_maker, storage, cache):
    oracle = remote_oracle(json=["unexpected"])
    pipeline = ResumeIngestionPipeline(session_maker, storage, oracle, cache, 5 * MB)

    result = await pipeline.ingest(candidate_auth(), "cv.docx", DOCX_MIME, RESUME_DOCX)

    assert result.outcome == IngestionOutcome.PARSE_FAILED
    profile = await load_profile(session_maker, "candidate-1")
    assert profile.resume_url == result.resume_url
    assert profile.resume_text == RESUME_TEXT
