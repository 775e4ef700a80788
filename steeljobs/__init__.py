"""SteelJobs portal backend: candidate onboarding, resume ingestion and job matching."""

__version__ = "1.0.0"
