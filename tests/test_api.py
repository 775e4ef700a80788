"""End-to-end tests through the HTTP API."""
import httpx
import pytest

from steeljobs.database import get_db, get_session_maker
from steeljobs.main import app
from steeljobs.models.job import JobVisibility
from steeljobs.schemas.resume import ParsedResume, EducationEntry
from steeljobs.services.auth import AppRole, create_access_token
from steeljobs.services.cache import get_read_cache
from steeljobs.services.resume_parser import get_resume_oracle
from steeljobs.services.storage import get_storage

from conftest import JOB_DESCRIPTION, RESUME_DOCX, make_docx

DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def bearer(user_id: str, role: AppRole = AppRole.CANDIDATE) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


CANDIDATE = bearer("candidate-1")
RECRUITER = bearer("recruiter-1", AppRole.RECRUITER)


@pytest.fixture
async def client(session_maker, storage, cache, fake_oracle):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_resume_oracle] = lambda: fake_oracle
    app.dependency_overrides[get_read_cache] = lambda: cache

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


async def test_auth_is_required(client):
    assert (await client.get("/api/profile/me")).status_code == 401
    bad = {"Authorization": "Bearer not-a-jwt"}
    assert (await client.get("/api/profile/me", headers=bad)).status_code == 401


async def test_roles_are_enforced(client):
    assert (await client.get("/api/onboarding/status", headers=RECRUITER)).status_code == 403
    assert (await client.get("/api/recruiter/jobs", headers=CANDIDATE)).status_code == 403
    admin = bearer("admin-1", AppRole.ADMIN)
    assert (await client.get("/api/onboarding/status", headers=admin)).status_code == 200


async def test_onboarding_flow(client, fake_oracle):
    fake_oracle.result = ParsedResume(
        skills=["TIG"],
        education=[EducationEntry(degree="B.Tech Mechanical", institution="COEP", year=2016)],
    )

    status = (await client.get("/api/onboarding/status", headers=CANDIDATE)).json()
    assert status == {"state": "no_profile", "step": 1, "completed": False, "completion_percentage": 0}

    route = await client.get("/api/onboarding/route", params={"requested": "/dashboard/candidate"},
                             headers=CANDIDATE)
    assert route.json()["route"] == "/onboarding/candidate?step=1"

    response = await client.post("/api/onboarding/basic-details", headers=CANDIDATE, json={
        "full_name": "Asha Rao",
        "mobile_number": "+91 98765 43210",
        "work_status": "experienced",
        "location": "Pune",
    })
    assert response.status_code == 200
    assert response.json()["step"] == 2

    response = await client.post("/api/onboarding/education", headers=CANDIDATE, json={
        "degree_level": "graduation",
        "course": "B.Tech",
        "skills": ["Welding"],
    })
    assert response.json()["state"] == "step_3"

    response = await client.post(
        "/api/onboarding/resume",
        headers=CANDIDATE,
        files={"file": ("asha.docx", RESUME_DOCX, DOCX)},
    )
    assert response.status_code == 200
    assert response.json()["outcome"] == "parsed"

    response = await client.post("/api/onboarding/complete", headers=CANDIDATE, json={
        "headline": "Welding Supervisor",
    })
    assert response.json()["completed"] is True

    route = await client.get("/api/onboarding/route", params={"requested": "/onboarding/candidate"},
                             headers=CANDIDATE)
    assert route.json()["route"] == "/dashboard/candidate"

    profile = (await client.get("/api/profile/me", headers=CANDIDATE)).json()
    assert profile["skills"] == ["Welding", "TIG"]
    assert len(profile["education"]) == 2
    assert profile["onboarding_completed"] is True


async def test_domain_errors_render_as_detail(client):
    response = await client.post("/api/onboarding/education", headers=CANDIDATE, json={"degree_level": "masters"})
    assert response.status_code == 400
    assert response.json() == {"detail": "Please complete step 1 first"}

    response = await client.post(
        "/api/profile/resume",
        headers=CANDIDATE,
        files={"file": ("photo.png", b"\x89PNG", "image/png")},
    )
    assert response.status_code == 400


async def test_short_resume_is_unprocessable(client, fake_oracle):
    response = await client.post(
        "/api/profile/resume",
        headers=CANDIDATE,
        files={"file": ("cv.docx", make_docx("a" * 99), DOCX)},
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "could not extract text"
    assert fake_oracle.calls == 0


async def test_profile_sections_crud(client, make_candidate):
    await make_candidate(user_id="candidate-1")

    created = await client.post("/api/profile/me/languages", headers=CANDIDATE,
                                json={"language": "Marathi", "proficiency": "native"})
    assert created.status_code == 201
    row_id = created.json()["id"]

    listed = await client.get("/api/profile/me/languages", headers=CANDIDATE)
    assert [row["language"] for row in listed.json()] == ["Marathi"]

    updated = await client.put(f"/api/profile/me/languages/{row_id}", headers=CANDIDATE,
                               json={"proficiency": "fluent"})
    assert updated.json()["proficiency"] == "fluent"

    # The cached list is invalidated by the write
    listed = await client.get("/api/profile/me/languages", headers=CANDIDATE)
    assert listed.json()[0]["proficiency"] == "fluent"

    assert (await client.delete(f"/api/profile/me/languages/{row_id}", headers=CANDIDATE)).status_code == 200
    assert (await client.get("/api/profile/me/languages", headers=CANDIDATE)).json() == []

    completion = (await client.get("/api/profile/completion", headers=CANDIDATE)).json()
    assert completion["sections"]["languages"] == {"filled": False, "count": 0}


async def test_profile_update_validates_phone(client, make_candidate):
    await make_candidate(user_id="candidate-1")
    response = await client.put("/api/profile/me", headers=CANDIDATE, json={"mobile_number": "abc"})
    assert response.status_code == 400

    response = await client.put("/api/profile/me", headers=CANDIDATE,
                                json={"skills": ["Welding", "welding", "CNC"]})
    assert response.json()["skills"] == ["Welding", "CNC"]


async def test_job_search_and_apply(client, make_recruiter, make_job, make_candidate):
    recruiter = await make_recruiter(user_id="recruiter-1")
    public = await make_job(recruiter, title="Rolling Mill Operator", skills_required=["Welding"])
    private = await make_job(recruiter, title="Referral Only", visibility=JobVisibility.LINK_ONLY)
    await make_candidate(user_id="candidate-1", skills=["Welding"], location="Jamshedpur")

    anonymous = await client.post("/api/jobs/search", json={})
    assert anonymous.status_code == 200
    assert [item["job"]["title"] for item in anonymous.json()["items"]] == ["Rolling Mill Operator"]
    assert anonymous.json()["items"][0]["match_score"] == 0

    scored = (await client.post("/api/jobs/search", json={}, headers=CANDIDATE)).json()
    assert scored["items"][0]["match_score"] == 35
    assert scored["items"][0]["good_match"] is True

    # Link-only jobs are reachable directly
    assert (await client.get(f"/api/jobs/{private.id}")).status_code == 200

    applied = await client.post(f"/api/jobs/{public.id}/apply", headers=CANDIDATE, json={})
    assert applied.status_code == 201
    again = await client.post(f"/api/jobs/{public.id}/apply", headers=CANDIDATE, json={})
    assert again.status_code == 409
    assert again.json() == {"detail": "You have already applied to this job"}

    mine = (await client.get("/api/jobs/applications/me", headers=CANDIDATE)).json()
    assert [a["job_id"] for a in mine] == [public.id]

    saved = (await client.post(f"/api/jobs/{public.id}/save", headers=CANDIDATE)).json()
    assert saved == {"job_id": public.id, "saved": True}
    assert len((await client.get("/api/jobs/saved", headers=CANDIDATE)).json()) == 1


async def test_recruiter_workflow(client, make_candidate):
    response = await client.put("/api/recruiter/profile", headers=RECRUITER, json={"company_name": "Tata Steel"})
    assert response.status_code == 200

    job = await client.post("/api/recruiter/jobs", headers=RECRUITER, json={
        "title": "Crane Operator",
        "company_name": "Tata Steel",
        "location": "Jamshedpur",
        "description": JOB_DESCRIPTION,
        "skills_required": ["EOT Crane"],
    })
    assert job.status_code == 201
    job_id = job.json()["id"]

    too_short = await client.post("/api/recruiter/jobs", headers=RECRUITER, json={
        "title": "Op", "company_name": "Tata Steel", "location": "Jamshedpur", "description": "short",
    })
    assert too_short.status_code == 422

    candidates = [await make_candidate(onboarding_completed=True) for _ in range(2)]
    bulk = await client.post("/api/recruiter/shortlist/bulk", headers=RECRUITER, json={
        "job_id": job_id,
        "candidate_ids": [c.id for c in candidates] + [4242],
    })
    assert bulk.json() == {"successful": 2, "total": 3, "failed_ids": [4242]}

    listed = (await client.get("/api/recruiter/jobs", headers=RECRUITER)).json()
    assert listed[0]["application_count"] == 2

    closed = await client.patch(f"/api/recruiter/jobs/{job_id}/active", headers=RECRUITER,
                                json={"is_active": False})
    assert closed.json()["is_active"] is False

    search = await client.post("/api/recruiter/candidates/search", headers=RECRUITER, json={})
    assert search.status_code == 403
