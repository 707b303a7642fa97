"""
AI Recommendation Engine
Turns a free-text request into five concrete movie records

Flow:
1. One chat completion asking for strict JSON
2. Strict JSON parse, falling back to heuristic title extraction
3. Reconcile every candidate: cache substring match -> OMDb lookup (cached
   on success) -> non-persisted placeholder
"""
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union
import json
import re
import logging

from cineai.schemas.movie import MovieRecord
from cineai.schemas.recommendation import RecommendedMovie, RecommendationSet
from cineai.services.movie_cache_service import MovieCacheStore
from cineai.services.title_extraction import extract_titles, is_plausible_title
from cineai.utils.dependencies import Dependencies
from cineai.utils.errors import InvalidPrompt, MalformedAIResponse, NotFound, UpstreamUnavailable

logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 500

SYSTEM_PROMPT = """You are a movie recommendation expert. Based on the user's request, recommend exactly 5 movies that match their criteria.

Your response must be valid JSON with this exact structure:
{
  "explanation": "Brief explanation of why these movies were chosen",
  "movies": [
    {"title": "Movie Title 1", "year": 2020, "reason": "Why this movie fits"},
    {"title": "Movie Title 2", "year": 2019, "reason": "Why this movie fits"},
    {"title": "Movie Title 3", "year": 2018, "reason": "Why this movie fits"},
    {"title": "Movie Title 4", "year": 2017, "reason": "Why this movie fits"},
    {"title": "Movie Title 5", "year": 2016, "reason": "Why this movie fits"}
  ]
}

Important rules:
- Only recommend real, well-known movies
- Include the release year if known
- Focus on movies that are widely available
- Give brief reasons for each recommendation
- Must return exactly 5 movies
- Response must be valid JSON only, no extra text"""

DEFAULT_EXPLANATION = "AI-generated recommendations based on your request."
DEFAULT_REASON = "Recommended by AI"


@dataclass
class RecommendationCandidate:
    """One title suggested by the model; never persisted"""
    title: str
    year: Optional[int] = None
    reason: str = DEFAULT_REASON


def validate_prompt(prompt: Optional[str]) -> str:
    """Reject empty and oversized prompts before anything is called or cached."""
    text = (prompt or "").strip()
    if not text:
        raise InvalidPrompt("Prompt is required")
    if len(text) > MAX_PROMPT_LENGTH:
        raise InvalidPrompt(f"Prompt too long. Please keep it under {MAX_PROMPT_LENGTH} characters.")
    return text


def _coerce_year(value) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = re.match(r"\s*(\d{4})", str(value or ""))
    return int(match.group(1)) if match else None


def _load_json(content: str) -> Union[dict, list, None]:
    """
    Strict parse first, then the outermost {...} or [...] block (models like
    to add prose). Returns None only when no JSON object or array is found.
    """
    try:
        parsed = json.loads(content)
        if isinstance(parsed, (dict, list)):
            return parsed
    except ValueError:
        pass

    for opener, closer in (("{", "}"), ("[", "]")):
        start, end = content.find(opener), content.rfind(closer)
        if start == -1 or end <= start:
            continue
        try:
            parsed = json.loads(content[start:end + 1])
        except ValueError:
            continue
        # An embedded array only counts when it holds movie objects
        if isinstance(parsed, dict) or (isinstance(parsed, list) and any(isinstance(m, dict) for m in parsed)):
            return parsed
    return None


class RecommendationEngine:
    MAX_CANDIDATES = 5

    def __init__(self, deps: Dependencies, movie_store: Optional[MovieCacheStore] = None):
        self._llm = deps.llm_client
        self._metadata = deps.metadata_client
        self._store = movie_store or MovieCacheStore(deps.db)

    def recommend(self, prompt: str) -> RecommendationSet:
        """
        Generate recommendations for a free-text prompt.

        Raises:
            InvalidPrompt: empty or longer than 500 characters
            UpstreamUnavailable: the language model call failed
            MalformedAIResponse: no titles could be recovered from the reply
        """
        prompt = validate_prompt(prompt)
        logger.info(f"Generating new AI recommendations for prompt: {prompt[:80]}")

        content = self._llm.complete(SYSTEM_PROMPT, prompt)
        explanation, candidates = self.parse_candidates(content)

        logger.info(f"Fetching details for movies: {[c.title for c in candidates]}")
        items = [self.reconcile(candidate) for candidate in candidates]
        return RecommendationSet(explanation=explanation, items=items)

    # ============================================
    # Parsing
    # ============================================

    def parse_candidates(self, content: str) -> Tuple[str, List[RecommendationCandidate]]:
        """
        Parse model output into (explanation, candidates), keeping the model's order.

        Raises MalformedAIResponse when neither JSON nor fallback extraction
        yields a single title.
        """
        content = content or ""
        parsed = _load_json(content)

        if parsed is not None:
            # A bare array is taken as the movies list itself
            container = parsed if isinstance(parsed, dict) else {}
            movies = parsed if isinstance(parsed, list) else container.get("movies")
            if not isinstance(movies, list):
                movies = container.get("recommendations")
            if not isinstance(movies, list):
                raise MalformedAIResponse("Invalid response format from AI")

            candidates = []
            for movie in movies:
                if isinstance(movie, str):
                    movie = {"title": movie}
                if not isinstance(movie, dict):
                    continue
                title = str(movie.get("title") or "").strip()
                if not title:
                    continue
                candidates.append(RecommendationCandidate(
                    title=title,
                    year=_coerce_year(movie.get("year")),
                    reason=str(movie.get("reason") or DEFAULT_REASON),
                ))
            explanation = str(container.get("explanation") or "AI-generated recommendations")
        else:
            logger.warning("AI response was not valid JSON, attempting text extraction")
            candidates = [
                RecommendationCandidate(title=title)
                for title in extract_titles(content, limit=self.MAX_CANDIDATES)
                if is_plausible_title(title)
            ]
            explanation = DEFAULT_EXPLANATION

        candidates = self._dedupe(candidates)
        if not candidates:
            logger.error(f"Could not extract movie titles from AI response: {content[:200]}")
            raise MalformedAIResponse()
        return explanation, candidates

    def _dedupe(self, candidates: List[RecommendationCandidate]) -> List[RecommendationCandidate]:
        unique, seen = [], set()
        for candidate in candidates:
            key = candidate.title.casefold()
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)
        return unique[:self.MAX_CANDIDATES]

    # ============================================
    # Reconciliation
    # ============================================

    def reconcile(self, candidate: RecommendationCandidate) -> RecommendedMovie:
        """
        Resolve one candidate to a full record, or a placeholder.

        Never raises: one candidate's failure must not sink the others.
        """
        try:
            cached = self._store.find_by_title_substring(candidate.title, limit=1)
            if cached:
                logger.info(f"Found cached movie: {candidate.title}")
                return self._annotate(cached[0], candidate)

            if not self._metadata.is_configured:
                logger.warning(f"OMDb API key not configured, skipping external fetch for: {candidate.title}")
                return self._placeholder(
                    candidate,
                    plot="Plot information unavailable",
                    error="Metadata provider not configured",
                )

            record = self._metadata.resolve_title(candidate.title, candidate.year)
            try:
                record = self._store.upsert(record)
            except Exception as e:
                # The fetched record is still good to return
                logger.error(f"Cache movie error for {record.imdb_id}: {str(e)}")
            logger.info(f"Successfully fetched and cached: {candidate.title}")
            return self._annotate(record, candidate)

        except NotFound:
            logger.info(f"Movie not found in OMDb: {candidate.title}")
            return self._placeholder(candidate, plot="Movie details not available", error="Details not found")
        except UpstreamUnavailable as e:
            logger.warning(f"OMDb unavailable for {candidate.title}: {e.detail}")
            return self._placeholder(candidate, plot="Error fetching movie details", error="Fetch failed")
        except Exception as e:
            logger.error(f"Error fetching details for {candidate.title}: {str(e)}", exc_info=True)
            return self._placeholder(candidate, plot="Error fetching movie details", error="Fetch failed")

    @staticmethod
    def _annotate(record: MovieRecord, candidate: RecommendationCandidate) -> RecommendedMovie:
        data = record.model_dump(exclude={"cached_at"})
        return RecommendedMovie(**data, ai_reason=candidate.reason)

    @staticmethod
    def _placeholder(candidate: RecommendationCandidate, plot: str, error: str) -> RecommendedMovie:
        """Unverified stand-in; returned to the caller but never cached."""
        return RecommendedMovie(
            title=candidate.title,
            year=candidate.year,
            ai_reason=candidate.reason,
            plot=plot,
            poster_url=None,
            genre="Unknown",
            director="Unknown",
            actors="Unknown",
            imdb_rating=None,
            error=error,
        )
