from .onboarding import router as onboarding_router
from .profile import router as profile_router
from .jobs import router as jobs_router
from .recruiter import router as recruiter_router

__all__ = [
    "onboarding_router", "profile_router", "jobs_router", "recruiter_router",
]
