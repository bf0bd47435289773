"""
Application configuration loaded from environment variables.

Every field can be overridden with a CLINASSIST_-prefixed variable,
e.g. CLINASSIST_AUDIT_BACKEND=sql.
"""
from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CLINASSIST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="Clinical Assistant API", description="Application name")
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # Audit trail
    audit_backend: Literal["memory", "sql"] = Field(
        default="memory",
        description="Where audit summaries are kept",
    )
    database_url: str = Field(
        default="sqlite:///./audit_history.db",
        description="SQLAlchemy URL used when audit_backend is 'sql'",
    )
    audit_retention: int = Field(default=50, gt=0, description="Audit entries kept before eviction")
    audit_page_size: int = Field(default=10, gt=0, description="Default page for recent audits")

    # Advisory confidence scorer
    confidence_provider_url: str = Field(
        default="",
        description="Remote confidence endpoint; empty uses the built-in heuristic",
    )
    confidence_api_key: str = Field(default="", description="Bearer token for the remote scorer")
    confidence_timeout_seconds: float = Field(default=5.0, gt=0)


@lru_cache
def get_settings() -> Settings:
    """Settings are read once per process; tests build their own Settings()."""
    return Settings()
