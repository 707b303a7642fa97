"""
Recommendation cache
Whole AI responses keyed by sha256 of the normalized prompt, with a 24h TTL

Readers ignore expired rows even before they are purged, and never raise:
an unreadable payload or a database hiccup is reported as a miss.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from pydantic import ValidationError
from typing import Any, Callable, List, Optional, Union
import hashlib
import json
import logging

from cineai.database import utcnow
from cineai.models.recommendation_cache import AIRecommendationCache
from cineai.schemas.recommendation import CachedRecommendation, RecommendationSet, RecommendedMovie
from cineai.utils.errors import CacheCorrupt

logger = logging.getLogger(__name__)

DEFAULT_TTL_HOURS = 24
WRAPPER_KEYS = ("items", "recommendations", "data")


def normalize_prompt(prompt: str) -> str:
    return (prompt or "").strip().casefold()


def prompt_hash(prompt: str) -> str:
    """Deterministic cache key: prompts equal after trim + casefold share a slot."""
    return hashlib.sha256(normalize_prompt(prompt).encode("utf-8")).hexdigest()


# ============================================
# Stored payload shapes
# ============================================

@dataclass(frozen=True)
class ItemsPayload:
    """Payload stored as a bare list of items"""
    items: List[Any]


@dataclass(frozen=True)
class WrappedPayload:
    """Payload stored as an object wrapping items/recommendations/data"""
    explanation: str
    items: List[Any] = field(default_factory=list)


@dataclass(frozen=True)
class UnreadablePayload:
    reason: str


CachedPayload = Union[ItemsPayload, WrappedPayload, UnreadablePayload]


def classify_payload(raw: Any) -> CachedPayload:
    """Work out which historical shape a stored payload has."""
    if isinstance(raw, (bytes, bytearray, memoryview)):
        try:
            raw = bytes(raw).decode("utf-8")
        except UnicodeDecodeError:
            return UnreadablePayload("payload bytes are not UTF-8")

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return UnreadablePayload(f"payload string is not JSON: {raw[:40]!r}")

    if isinstance(raw, list):
        return ItemsPayload(items=raw)

    if isinstance(raw, dict):
        for key in WRAPPER_KEYS:
            if isinstance(raw.get(key), list):
                return WrappedPayload(explanation=str(raw.get("explanation") or ""), items=raw[key])
        return UnreadablePayload(f"object without any of {WRAPPER_KEYS}")

    return UnreadablePayload(f"unexpected payload type {type(raw).__name__}")


def normalize_payload(payload: CachedPayload) -> RecommendationSet:
    """
    Canonical {explanation, items} for a classified payload.

    Raises CacheCorrupt for unreadable payloads or items that are not movies.
    """
    if isinstance(payload, UnreadablePayload):
        raise CacheCorrupt(payload.reason)

    explanation = payload.explanation if isinstance(payload, WrappedPayload) else ""
    try:
        items = [RecommendedMovie.model_validate(item) for item in payload.items]
    except ValidationError as e:
        raise CacheCorrupt(f"cached item is not a movie: {e.error_count()} errors")
    return RecommendationSet(explanation=explanation or "AI-generated recommendations", items=items)


class RecommendationCache:
    def __init__(
        self,
        session_factory: sessionmaker,
        ttl_hours: int = DEFAULT_TTL_HOURS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self.ttl = timedelta(hours=ttl_hours)
        self._clock = clock

    def get(self, prompt: str) -> Optional[CachedRecommendation]:
        """Live entry for the prompt, or None (never cached, expired and corrupt all look the same)."""
        key = prompt_hash(prompt)
        db: Session = self._session_factory()
        try:
            entry = (
                db.query(AIRecommendationCache)
                .filter(
                    AIRecommendationCache.prompt_hash == key,
                    AIRecommendationCache.expires_at > self._clock(),
                )
                .first()
            )
            if entry is None:
                return None

            try:
                result = normalize_payload(classify_payload(entry.recommendations))
            except CacheCorrupt as e:
                logger.warning(f"Ignoring unreadable cached recommendations {key[:12]}: {e.detail}")
                return None

            logger.info(f"Returning cached recommendations for prompt hash: {key}")
            return CachedRecommendation(
                prompt_text=entry.user_prompt or prompt,
                result=result,
                created_at=entry.created_at,
                expires_at=entry.expires_at,
            )
        except (SQLAlchemyError, ValueError) as e:
            # ValueError: the driver could not even decode the JSON column
            logger.error(f"Recommendation cache read failed: {str(e)}")
            return None
        finally:
            db.close()

    def put(self, prompt: str, result: RecommendationSet) -> None:
        """Insert or overwrite the entry for this prompt; the last write wins."""
        key = prompt_hash(prompt)
        now = self._clock()
        values = {
            "user_prompt": prompt,
            "recommendations": {
                "explanation": result.explanation,
                "items": [item.model_dump(mode="json") for item in result.items],
            },
            "created_at": now,
            "expires_at": now + self.ttl,
        }

        db: Session = self._session_factory()
        try:
            self._write(db, key, values)
            try:
                db.commit()
            except IntegrityError:
                # Another request inserted the same prompt_hash first
                db.rollback()
                self._write(db, key, values)
                db.commit()
            logger.info(f"Cached recommendations for prompt hash: {key}")
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _write(db: Session, key: str, values: dict) -> None:
        entry = db.query(AIRecommendationCache).filter(AIRecommendationCache.prompt_hash == key).first()
        if entry is None:
            db.add(AIRecommendationCache(prompt_hash=key, **values))
            return
        for name, value in values.items():
            setattr(entry, name, value)

    def purge_expired(self) -> int:
        """Delete rows past expires_at; returns how many were removed."""
        db: Session = self._session_factory()
        try:
            deleted = (
                db.query(AIRecommendationCache)
                .filter(AIRecommendationCache.expires_at <= self._clock())
                .delete(synchronize_session=False)
            )
            db.commit()
            return deleted
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def count_live(self) -> int:
        db: Session = self._session_factory()
        try:
            return (
                db.query(AIRecommendationCache)
                .filter(AIRecommendationCache.expires_at > self._clock())
                .count()
            )
        finally:
            db.close()
