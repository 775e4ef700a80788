"""Test configuration and fixtures."""

import io
from datetime import datetime, timedelta, timezone

import docx
import pytest

from steeljobs.database import build_engine, build_session_maker, init_db
from steeljobs.models.job import Job, RecruiterProfile, EmploymentType, JobVisibility
from steeljobs.models.profile import CandidateProfile
from steeljobs.schemas.resume import ParsedResume
from steeljobs.services.auth import AuthContext, AppRole
from steeljobs.services.cache import ReadCache
from steeljobs.services.storage import LocalStorage

JOB_DESCRIPTION = (
    "Operate and maintain production equipment on the rolling mill floor, "
    "following plant safety procedures."
)

# Long enough to clear the extraction floor when sent as a Word upload
RESUME_TEXT = (
    "Asha Rao - Welding Supervisor, Pune. Seven years running MIG and TIG "
    "welding crews in structural steel fabrication, with a focus on safety audits."
)


def make_docx(*paragraphs: str) -> bytes:
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


RESUME_DOCX = make_docx(RESUME_TEXT)


class FakeOracle:
    """Stands in for the resume parsing service."""

    def __init__(self, result: ParsedResume = None, error: Exception = None):
        self.result = result if result is not None else ParsedResume()
        self.error = error
        self.calls = 0
        self.texts = []

    async def parse(self, text: str, access_token: str) -> ParsedResume:
        self.calls += 1
        self.texts.append(text)
        if self.error is not None:
            raise self.error
        return self.result


def candidate_auth(user_id: str = "candidate-1") -> AuthContext:
    return AuthContext(user_id=user_id, access_token=f"token-{user_id}", role=AppRole.CANDIDATE)


def recruiter_auth(user_id: str = "recruiter-1") -> AuthContext:
    return AuthContext(user_id=user_id, access_token=f"token-{user_id}", role=AppRole.RECRUITER)


@pytest.fixture(scope="function")
async def engine(tmp_path):
    """Fresh SQLite file database per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'steeljobs_test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture(scope="function")
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture(scope="function")
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture(scope="function")
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "uploads"))


@pytest.fixture(scope="function")
def cache():
    return ReadCache()


@pytest.fixture(scope="function")
def fake_oracle():
    return FakeOracle()


@pytest.fixture(scope="function")
def make_candidate(session_maker):
    """Create and commit a candidate profile; returns it detached."""
    counter = {"n": 0}

    async def create(user_id: str = None, **fields) -> CandidateProfile:
        counter["n"] += 1
        fields.setdefault("skills", [])
        profile = CandidateProfile(user_id=user_id or f"candidate-{counter['n']}", **fields)
        async with session_maker() as session:
            session.add(profile)
            await session.commit()
        return profile

    return create


@pytest.fixture(scope="function")
def make_recruiter(session_maker):
    async def create(user_id: str = "recruiter-1", **fields) -> RecruiterProfile:
        fields.setdefault("company_name", "Tata Steel")
        recruiter = RecruiterProfile(user_id=user_id, **fields)
        async with session_maker() as session:
            session.add(recruiter)
            await session.commit()
        return recruiter

    return create


@pytest.fixture(scope="function")
def make_job(session_maker):
    """Create jobs with sensible defaults; created_at steps back one hour per job."""
    counter = {"n": 0}
    base_time = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

    async def create(recruiter: RecruiterProfile, **fields) -> Job:
        counter["n"] += 1
        fields.setdefault("title", f"Mill Operator {counter['n']}")
        fields.setdefault("company_name", recruiter.company_name)
        fields.setdefault("location", "Jamshedpur")
        fields.setdefault("employment_type", EmploymentType.FULL_TIME)
        fields.setdefault("description", JOB_DESCRIPTION)
        fields.setdefault("skills_required", [])
        fields.setdefault("experience_min", 0)
        fields.setdefault("visibility", JobVisibility.PUBLIC)
        fields.setdefault("is_active", True)
        fields.setdefault("created_at", base_time - timedelta(hours=counter["n"]))
        job = Job(recruiter_id=recruiter.id, **fields)
        async with session_maker() as session:
            session.add(job)
            await session.commit()
        return job

    return create
