from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from cineai.database import Base, utcnow
import enum


class SearchType(str, enum.Enum):
    TITLE = "title"
    AI_PROMPT = "ai_prompt"
    GENRE_FILTER = "genre_filter"


class SearchHistory(Base):
    """A user's past searches. user_id comes from the auth layer and is not a local FK."""
    __tablename__ = "search_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    search_query = Column(String(500), nullable=False)
    search_type = Column(
        SQLEnum(SearchType, name="search_type", values_callable=lambda e: [m.value for m in e]),
        default=SearchType.TITLE,
        nullable=False
    )
    searched_at = Column(DateTime, default=utcnow, nullable=False, index=True)
