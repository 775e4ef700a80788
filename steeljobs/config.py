from pydantic_settings import BaseSettings
from functools import lru_cache
import os


class Settings(BaseSettings):
    app_name: str = "SteelJobs Portal API"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = "INFO"

    # Database - supports both SQLite (local) and PostgreSQL (Supabase)
    database_url: str = "sqlite+aiosqlite:///./steeljobs.db"

    # Auth - tokens are issued by the auth service and verified with its JWT secret
    jwt_secret: str = "your-jwt-secret-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:5173,http://localhost:8080"

    # Storage
    storage_backend: str = "supabase"  # "supabase" or "local"
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    resume_bucket: str = "resumes"
    uploads_dir: str = "./uploads"
    signed_url_ttl_seconds: int = 60 * 60

    # Resume parsing oracle
    resume_parser_url: str = ""  # defaults to the parse-resume function on supabase_url
    resume_parser_timeout: float = 60.0
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # Resume upload limits differ by call site
    onboarding_resume_max_mb: int = 10
    profile_resume_max_mb: int = 5

    recommended_jobs_limit: int = 20

    class Config:
        env_file = ".env"
        extra = "ignore"
        # Make field names case-insensitive for environment variables
        case_sensitive = False

    def get_cors_origins(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def get_resume_parser_url(self) -> str:
        if self.resume_parser_url:
            return self.resume_parser_url
        return f"{self.supabase_url.rstrip('/')}/functions/v1/parse-resume"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
