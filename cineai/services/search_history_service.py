from sqlalchemy.orm import Session, sessionmaker
from typing import List
from cineai.models.search_history import SearchHistory, SearchType
import logging

logger = logging.getLogger(__name__)


class SearchHistoryStore:
    """Per-user search log. Recording is best effort; reads and clears are not."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def record(self, user_id: int, query: str, search_type: SearchType = SearchType.TITLE) -> bool:
        """Append one entry; returns False (and logs) instead of raising."""
        db: Session = self._session_factory()
        try:
            db.add(SearchHistory(user_id=user_id, search_query=query[:500], search_type=search_type))
            db.commit()
            return True
        except Exception as e:
            db.rollback()
            logger.error(f"Search history error for user {user_id}: {str(e)}")
            return False
        finally:
            db.close()

    def list_for_user(self, user_id: int, limit: int = 10) -> List[SearchHistory]:
        db: Session = self._session_factory()
        try:
            return (
                db.query(SearchHistory)
                .filter(SearchHistory.user_id == user_id)
                .order_by(SearchHistory.searched_at.desc(), SearchHistory.id.desc())
                .limit(limit)
                .all()
            )
        finally:
            db.close()

    def clear_for_user(self, user_id: int) -> int:
        db: Session = self._session_factory()
        try:
            deleted = db.query(SearchHistory).filter(SearchHistory.user_id == user_id).delete()
            db.commit()
            return deleted
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
