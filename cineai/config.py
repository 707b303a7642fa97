"""
Application settings

All configuration is read from the process environment (optionally populated
from a .env file) into one immutable Settings object. Components never call
os.getenv themselves; they receive the Settings through the Dependencies bundle.
"""
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv
import os

load_dotenv()


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


@dataclass(frozen=True)
class Settings:
    # Database
    database_url: str = "sqlite:///./cineai.db"
    db_pool_size: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_statement_timeout_ms: int = 10000
    db_echo: bool = False

    # OMDb metadata provider
    omdb_api_key: Optional[str] = None
    omdb_base_url: str = "https://www.omdbapi.com/"
    omdb_timeout_seconds: float = 5.0
    omdb_max_attempts: int = 3
    omdb_backoff_seconds: float = 0.5

    # Groq language model (OpenAI-compatible chat completions)
    groq_api_key: Optional[str] = None
    groq_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    groq_model: str = "llama-3.1-8b-instant"
    llm_timeout_seconds: float = 30.0
    llm_temperature: float = 0.7
    llm_max_tokens: int = 1000

    # Recommendation cache
    recommendation_cache_ttl_hours: int = 24

    # Background jobs
    enable_background_jobs: bool = True
    timezone: str = "UTC"

    # Admin endpoints (disabled when empty)
    admin_api_token: Optional[str] = None

    # HTTP
    environment: str = "development"
    frontend_url: Optional[str] = None
    trusted_hosts: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            db_pool_size=int(os.getenv("DB_POOL_SIZE", cls.db_pool_size)),
            db_pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", cls.db_pool_timeout)),
            db_pool_recycle=int(os.getenv("DB_POOL_RECYCLE", cls.db_pool_recycle)),
            db_statement_timeout_ms=int(os.getenv("DB_STATEMENT_TIMEOUT_MS", cls.db_statement_timeout_ms)),
            db_echo=_env_bool("DB_ECHO"),
            omdb_api_key=os.getenv("OMDB_API_KEY") or None,
            omdb_base_url=os.getenv("OMDB_BASE_URL", cls.omdb_base_url),
            omdb_timeout_seconds=float(os.getenv("OMDB_TIMEOUT_SECONDS", cls.omdb_timeout_seconds)),
            omdb_max_attempts=int(os.getenv("OMDB_MAX_ATTEMPTS", cls.omdb_max_attempts)),
            omdb_backoff_seconds=float(os.getenv("OMDB_BACKOFF_SECONDS", cls.omdb_backoff_seconds)),
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            groq_api_url=os.getenv("GROQ_API_URL", cls.groq_api_url),
            groq_model=os.getenv("GROQ_MODEL", cls.groq_model),
            llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", cls.llm_timeout_seconds)),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", cls.llm_temperature)),
            llm_max_tokens=int(os.getenv("LLM_MAX_TOKENS", cls.llm_max_tokens)),
            recommendation_cache_ttl_hours=int(
                os.getenv("RECOMMENDATION_CACHE_TTL_HOURS", cls.recommendation_cache_ttl_hours)
            ),
            enable_background_jobs=_env_bool("ENABLE_BACKGROUND_JOBS", "true"),
            timezone=os.getenv("TIMEZONE", cls.timezone),
            admin_api_token=os.getenv("ADMIN_API_TOKEN") or None,
            environment=os.getenv("ENVIRONMENT", cls.environment),
            frontend_url=os.getenv("FRONTEND_URL") or None,
            trusted_hosts=os.getenv("TRUSTED_HOSTS", ""),
        )
