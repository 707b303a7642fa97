"""
Movie Cache Model for storing OMDb movie data locally
Records are keyed by IMDb ID and overwritten on every fresh resolution
"""
from sqlalchemy import Column, Integer, String, DateTime, Float, Text
from cineai.database import Base, utcnow


class MovieCache(Base):
    """
    Canonical movie record resolved from the OMDb API

    Attributes:
        id: Primary key
        imdb_id: IMDb identifier (unique, the only stable join key)
        title: Movie title
        year: Release year
        genre: Comma-joined genre names ("Action, Sci-Fi")
        director, actors, plot: Free text, may be empty
        poster_url: Poster image URL, never the provider's "N/A" marker
        imdb_rating: IMDb rating (0-10)
        runtime, language, country: Free text
        cached_at: Timestamp of the last write
    """
    __tablename__ = "movies_cache"

    id = Column(Integer, primary_key=True, index=True)
    imdb_id = Column(String(20), unique=True, index=True, nullable=False)

    title = Column(String(255), nullable=False)
    year = Column(Integer, index=True)
    genre = Column(String(255), index=True)
    director = Column(String(255))
    actors = Column(Text)
    plot = Column(Text)
    poster_url = Column(String(500))
    imdb_rating = Column(Float, index=True)
    runtime = Column(String(20))
    language = Column(String(100))
    country = Column(String(100))

    cached_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<MovieCache(imdb_id={self.imdb_id}, title='{self.title}')>"
