import os
import threading
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

# Ensure background jobs stay disabled and nothing touches a real database file
os.environ.setdefault("ENABLE_BACKGROUND_JOBS", "false")
os.environ["DATABASE_URL"] = "sqlite://"

from cineai.config import Settings
from cineai.database import Base, create_session_factory
from cineai.main import app
from cineai.routes.admin import get_background_jobs
from cineai.schemas.movie import MovieRecord
from cineai.services.background_jobs import BackgroundJobService
from cineai.utils.dependencies import Dependencies, get_dependencies
from cineai.utils.errors import NotFound
from cineai.utils.tasks import DetachedTaskRunner

SQLALCHEMY_DATABASE_URL = "sqlite://"
ADMIN_TOKEN = "test-admin-token"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = create_session_factory(engine)


def make_movie(imdb_id, title, year=2010, rating=8.0, genre="Drama", **fields):
    return MovieRecord(
        imdb_id=imdb_id,
        title=title,
        year=year,
        genre=genre,
        director=fields.pop("director", "Some Director"),
        actors=fields.pop("actors", "Some Actor"),
        plot=fields.pop("plot", f"Plot of {title}"),
        poster_url=fields.pop("poster_url", f"https://img.example/{imdb_id}.jpg"),
        imdb_rating=rating,
        runtime=fields.pop("runtime", "120 min"),
        language=fields.pop("language", "English"),
        country=fields.pop("country", "USA"),
        **fields
    )


class FakeMetadataClient:
    """
    Stands in for OMDbClient.

    `movies` maps titles to records; `failures` maps titles to the exception
    resolve_title should raise. Anything else is NotFound.
    """

    def __init__(self, movies=None, failures=None, configured=True):
        self.movies = dict(movies or {})
        self.failures = dict(failures or {})
        self.configured = configured
        self.calls = []

    @property
    def is_configured(self):
        return self.configured

    def resolve_title(self, title, year=None):
        self.calls.append(("resolve_title", title, year))
        if title in self.failures:
            raise self.failures[title]
        if title in self.movies:
            return self.movies[title]
        raise NotFound(f"No movies found for '{title}'")

    def fetch_by_title(self, title, year=None, page=1):
        self.calls.append(("fetch_by_title", title, year))
        if title in self.failures:
            raise self.failures[title]
        hits = [movie for name, movie in self.movies.items() if title.lower() in name.lower()]
        if not hits:
            raise NotFound(f"No movies found for '{title}'")
        return hits

    def fetch_by_id(self, imdb_id):
        self.calls.append(("fetch_by_id", imdb_id, None))
        for movie in self.movies.values():
            if movie.imdb_id == imdb_id:
                return movie
        raise NotFound("Incorrect IMDb ID.")


class FakeLLMClient:
    """
    Stands in for GroqClient. `content` is returned as the completion text,
    or raised when it is an exception. An optional barrier makes concurrent
    callers meet inside complete().
    """

    def __init__(self, content="", barrier=None):
        self.content = content
        self.barrier = barrier
        self.calls = []
        self._lock = threading.Lock()

    @property
    def is_configured(self):
        return True

    def complete(self, system_prompt, user_prompt, json_mode=True):
        with self._lock:
            self.calls.append(user_prompt)
        if self.barrier is not None:
            self.barrier.wait(timeout=10)
        if isinstance(self.content, Exception):
            raise self.content
        return self.content

    def check_connection(self):
        return {"success": True, "message": "Groq API connection successful", "details": {"model": "fake"}}


@pytest.fixture
def test_settings():
    return Settings(
        database_url=SQLALCHEMY_DATABASE_URL,
        omdb_api_key="test-omdb-key",
        groq_api_key="test-groq-key",
        enable_background_jobs=False,
        admin_api_token=ADMIN_TOKEN,
    )


@pytest.fixture
def session_factory():
    """Clean in-memory database for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield TestingSessionLocal


@pytest.fixture
def metadata_client():
    return FakeMetadataClient()


@pytest.fixture
def llm_client():
    return FakeLLMClient()


@pytest.fixture
def deps(session_factory, metadata_client, llm_client, test_settings):
    # One worker: the in-memory database is a single shared connection
    runner = DetachedTaskRunner(max_workers=1)
    bundle = Dependencies(
        db=session_factory,
        metadata_client=metadata_client,
        llm_client=llm_client,
        config=test_settings,
        task_runner=runner,
    )
    yield bundle
    runner.shutdown(wait=True)


@pytest.fixture
def client(deps):
    """FastAPI test client wired to the test dependency bundle."""
    jobs = BackgroundJobService(deps)
    app.dependency_overrides[get_dependencies] = lambda: deps
    app.dependency_overrides[get_background_jobs] = lambda: jobs

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.pop(get_dependencies, None)
    app.dependency_overrides.pop(get_background_jobs, None)
