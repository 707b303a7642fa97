"""
Explicit dependency bundle

Built once per process in the application lifespan and passed to every
component constructor; tests build their own bundle with fakes.
"""
from dataclasses import dataclass
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import sessionmaker
from typing import Optional
import secrets

from cineai.config import Settings
from cineai.database import create_db_engine, create_session_factory
from cineai.services.omdb_service import OMDbClient
from cineai.services.groq_service import GroqClient
from cineai.utils.tasks import DetachedTaskRunner


@dataclass
class Dependencies:
    db: sessionmaker
    metadata_client: OMDbClient
    llm_client: GroqClient
    config: Settings
    task_runner: DetachedTaskRunner

    def close(self) -> None:
        self.task_runner.shutdown(wait=True)
        self.db.kw["bind"].dispose()


def build_dependencies(settings: Settings) -> Dependencies:
    engine = create_db_engine(settings)
    return Dependencies(
        db=create_session_factory(engine),
        metadata_client=OMDbClient.from_settings(settings),
        llm_client=GroqClient.from_settings(settings),
        config=settings,
        task_runner=DetachedTaskRunner(),
    )


def get_dependencies(request: Request) -> Dependencies:
    """FastAPI dependency; overridden in tests"""
    return request.app.state.dependencies


def require_admin_token(
    x_admin_token: Optional[str] = Header(None),
    deps: Dependencies = Depends(get_dependencies)
) -> None:
    """Guard for /api/admin: X-Admin-Token must match ADMIN_API_TOKEN"""
    expected = deps.config.admin_api_token
    if not expected:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Admin endpoints are disabled")
    if not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")
