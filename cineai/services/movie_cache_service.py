"""
Movie cache store

Persistence for canonical MovieRecords keyed by IMDb ID. Each call opens its
own session and closes it before returning, so no caller ever holds a pooled
connection across a provider request.

Records have no TTL here: they are overwritten whenever a fresh provider
resolution of the same IMDb ID is upserted.
"""
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from typing import List, Optional
from cineai.database import utcnow
from cineai.models.movie_cache import MovieCache
from cineai.schemas.movie import MovieRecord
import logging

logger = logging.getLogger(__name__)


def _like_pattern(text: str) -> str:
    """Case-insensitive substring pattern with LIKE wildcards escaped"""
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class MovieCacheStore:
    SEARCH_LIMIT = 10

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    # ============================================
    # Reads
    # ============================================

    def find_by_title_substring(self, query: str, limit: int = SEARCH_LIMIT) -> List[MovieRecord]:
        """Case-insensitive title match, best rated first (unrated last)."""
        query = (query or "").strip()
        if not query:
            return []

        db: Session = self._session_factory()
        try:
            rows = (
                db.query(MovieCache)
                .filter(func.lower(MovieCache.title).like(_like_pattern(query), escape="\\"))
                .order_by(MovieCache.imdb_rating.desc().nulls_last(), MovieCache.title.asc())
                .limit(limit)
                .all()
            )
            return [MovieRecord.model_validate(row) for row in rows]
        finally:
            db.close()

    def find_by_id(self, imdb_id: str) -> Optional[MovieRecord]:
        db: Session = self._session_factory()
        try:
            row = db.query(MovieCache).filter(MovieCache.imdb_id == imdb_id).first()
            return MovieRecord.model_validate(row) if row else None
        finally:
            db.close()

    def find_trending_candidates(self, min_rating: float, limit: int) -> List[MovieRecord]:
        """Records rated at least min_rating, by rating then most recently cached."""
        db: Session = self._session_factory()
        try:
            rows = (
                db.query(MovieCache)
                .filter(MovieCache.imdb_rating >= min_rating)
                .order_by(MovieCache.imdb_rating.desc(), MovieCache.cached_at.desc())
                .limit(limit)
                .all()
            )
            return [MovieRecord.model_validate(row) for row in rows]
        finally:
            db.close()

    def find_by_genre(self, genre: str, min_rating: float = 6.0, limit: int = 10) -> List[MovieRecord]:
        db: Session = self._session_factory()
        try:
            rows = (
                db.query(MovieCache)
                .filter(
                    func.lower(MovieCache.genre).like(_like_pattern(genre), escape="\\"),
                    MovieCache.imdb_rating >= min_rating,
                )
                .order_by(MovieCache.imdb_rating.desc())
                .limit(limit)
                .all()
            )
            return [MovieRecord.model_validate(row) for row in rows]
        finally:
            db.close()

    def find_recent_top_rated(self, min_rating: float = 7.0, since_year: int = 2020, limit: int = 10) -> List[MovieRecord]:
        db: Session = self._session_factory()
        try:
            rows = (
                db.query(MovieCache)
                .filter(MovieCache.imdb_rating >= min_rating, MovieCache.year >= since_year)
                .order_by(MovieCache.imdb_rating.desc(), MovieCache.year.desc())
                .limit(limit)
                .all()
            )
            return [MovieRecord.model_validate(row) for row in rows]
        finally:
            db.close()

    def count(self) -> int:
        db: Session = self._session_factory()
        try:
            return db.query(func.count(MovieCache.id)).scalar() or 0
        finally:
            db.close()

    # ============================================
    # Writes
    # ============================================

    def upsert(self, record: MovieRecord) -> MovieRecord:
        """
        Insert the record or overwrite every field of the existing row.

        Idempotent and last-write-wins: when two requests race to insert the
        same IMDb ID, the loser's unique-key violation turns into an update.
        """
        if not record.imdb_id:
            raise ValueError("Cannot cache a movie without an IMDb ID")

        values = record.model_dump(exclude={"cached_at"})
        values["cached_at"] = utcnow()

        db: Session = self._session_factory()
        try:
            entry = self._write(db, values)
            try:
                db.commit()
            except IntegrityError:
                # Concurrent insert of the same imdb_id won; overwrite it
                db.rollback()
                entry = self._write(db, values)
                db.commit()
            logger.debug(f"Cached movie: {entry.title} ({entry.imdb_id})")
            return MovieRecord.model_validate(entry)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _write(db: Session, values: dict) -> MovieCache:
        existing = db.query(MovieCache).filter(MovieCache.imdb_id == values["imdb_id"]).first()
        if existing:
            for key, value in values.items():
                setattr(existing, key, value)
            return existing

        entry = MovieCache(**values)
        db.add(entry)
        return entry
