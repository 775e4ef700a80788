from .auth import (
    AppRole,
    AuthContext,
    create_access_token,
    get_auth_context,
    get_candidate,
    get_recruiter,
)
from .completion import (
    OnboardingState,
    onboarding_state,
    onboarding_completion,
    dashboard_completion,
    resolve_route,
)
from .resume_pipeline import ResumeIngestionPipeline, UploadContext
from .matching import score_job, score_candidate, rank_jobs
from .search import search_jobs, search_candidates, recommended_jobs

__all__ = [
    # Auth
    "AppRole",
    "AuthContext",
    "create_access_token",
    "get_auth_context",
    "get_candidate",
    "get_recruiter",
    # Profile completion
    "OnboardingState",
    "onboarding_state",
    "onboarding_completion",
    "dashboard_completion",
    "resolve_route",
    # Resume ingestion
    "ResumeIngestionPipeline",
    "UploadContext",
    # Matching and search
    "score_job",
    "score_candidate",
    "rank_jobs",
    "search_jobs",
    "search_candidates",
    "recommended_jobs",
]
