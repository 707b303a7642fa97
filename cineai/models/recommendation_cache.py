"""Cache of whole AI recommendation responses keyed by a hash of the normalized prompt."""
from sqlalchemy import Column, Integer, String, Text, DateTime, JSON
from cineai.database import Base, utcnow


class AIRecommendationCache(Base):
    __tablename__ = "ai_recommendations_cache"

    id = Column(Integer, primary_key=True, index=True)
    prompt_hash = Column(String(64), unique=True, index=True, nullable=False)  # sha256 of normalized prompt
    user_prompt = Column(Text, nullable=False)
    recommendations = Column(JSON)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<AIRecommendationCache(prompt_hash={self.prompt_hash[:12]}, expires_at={self.expires_at})>"
