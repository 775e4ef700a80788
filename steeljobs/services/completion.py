"""
Profile completion and the onboarding routing gate.

Two completion checklists exist side by side: the short onboarding one shown
before the dashboard and the longer one the dashboard shows. They count
different things and are kept as separate functions.
"""
import enum
from typing import Dict, Optional, Sequence

from ..models.profile import CandidateProfile, WorkStatus

ONBOARDING_ROUTE = "/onboarding/candidate"
DASHBOARD_ROUTE = "/dashboard/candidate"
ONBOARDING_STEPS = 3

SECTION_NAMES = (
    "education", "employment", "internships", "projects",
    "languages", "accomplishments", "exams",
)


def _has_text(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _percentage(checks) -> int:
    checks = list(checks)
    return round(100 * sum(1 for c in checks if c) / len(checks))


def onboarding_completion(profile: Optional[CandidateProfile]) -> int:
    if profile is None:
        return 0
    return _percentage([
        _has_text(profile.full_name) or _has_text(profile.headline),
        _has_text(profile.location),
        bool(profile.skills),
        profile.experience_years is not None,
        profile.education_level is not None,
        _has_text(profile.about) or _has_text(profile.profile_summary),
        _has_text(profile.resume_url),
        profile.expected_salary_min is not None,
        _has_text(profile.mobile_number),
        _has_text(profile.profile_photo_url),
    ])


def sections_from_profile(profile: CandidateProfile) -> Dict[str, Sequence]:
    """Child rows of a profile loaded with its relationships (selectinload)."""
    return {name: list(getattr(profile, name) or []) for name in SECTION_NAMES}


def dashboard_completion(profile: Optional[CandidateProfile], sections: Dict[str, Sequence]) -> int:
    if profile is None:
        return 0
    sections = sections or {}

    def has_rows(name):
        return len(sections.get(name) or []) > 0

    return _percentage([
        _has_text(profile.full_name) and _has_text(profile.mobile_number) and _has_text(profile.location),
        _has_text(profile.resume_url),
        _has_text(profile.profile_photo_url),
        _has_text(profile.profile_summary),
        bool(profile.skills),
        has_rows("education"),
        has_rows("languages"),
        bool(profile.preferred_job_type),
        has_rows("employment") or profile.work_status == WorkStatus.FRESHER,
        has_rows("projects") or has_rows("internships"),
    ])


def section_status(profile: Optional[CandidateProfile], sections: Dict[str, Sequence]) -> Dict[str, dict]:
    """Filled flag and row count for each profile sidebar section."""
    sections = sections or {}
    counts = {name: len(sections.get(name) or []) for name in SECTION_NAMES}
    status = {name: {"filled": count > 0, "count": count} for name, count in counts.items()}
    if profile is None:
        status.update({
            "preferences": {"filled": False, "count": 0},
            "skills": {"filled": False, "count": 0},
            "summary": {"filled": False, "count": 0},
        })
        return status

    skills = profile.skills or []
    status["preferences"] = {
        "filled": bool(profile.preferred_job_type) or bool(profile.preferred_locations),
        "count": len(profile.preferred_job_type or []),
    }
    status["skills"] = {"filled": len(skills) > 0, "count": len(skills)}
    status["summary"] = {"filled": _has_text(profile.profile_summary), "count": 0}
    return status


# ============================================================================
# Onboarding Routing Gate
# ============================================================================

class OnboardingState(str, enum.Enum):
    NO_PROFILE = "no_profile"
    STEP_1 = "step_1"
    STEP_2 = "step_2"
    STEP_3 = "step_3"
    COMPLETE = "complete"

    @property
    def step(self) -> Optional[int]:
        if self == OnboardingState.NO_PROFILE:
            return 1
        if self == OnboardingState.COMPLETE:
            return None
        return int(self.value[-1])


def onboarding_state(profile: Optional[CandidateProfile]) -> OnboardingState:
    if profile is None:
        return OnboardingState.NO_PROFILE
    if profile.onboarding_completed:
        return OnboardingState.COMPLETE
    step = min(max(profile.onboarding_step or 1, 1), ONBOARDING_STEPS)
    return OnboardingState(f"step_{step}")


def resolve_route(profile: Optional[CandidateProfile], requested: str) -> str:
    """Where a candidate asking for `requested` should actually land.

    Completion is forward-only: once onboarding_completed is set the
    onboarding pages always redirect to the dashboard, whatever the profile's
    fields look like later.
    """
    state = onboarding_state(profile)
    if state == OnboardingState.COMPLETE:
        if requested.startswith("/onboarding"):
            return DASHBOARD_ROUTE
        return requested
    if requested.startswith("/dashboard"):
        return f"{ONBOARDING_ROUTE}?step={state.step}"
    return requested
