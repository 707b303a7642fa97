import requests
import re
import time
from typing import Callable, Dict, List, Optional
from cineai.config import Settings
from cineai.schemas.movie import MovieRecord
from cineai.utils.errors import NotFound, UpstreamErrorKind, UpstreamUnavailable
import logging

logger = logging.getLogger(__name__)

# OMDb's textual "no value" marker
NOT_AVAILABLE = "N/A"

SERVICE_NAME = "OMDb"


def _clean_text(value) -> Optional[str]:
    """Map missing, blank and "N/A" values to None"""
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == NOT_AVAILABLE:
        return None
    return text


def _parse_year(value) -> Optional[int]:
    """'2010' -> 2010, '2008–2013' -> 2008, 'N/A' -> None"""
    text = _clean_text(value)
    if not text:
        return None
    match = re.match(r"(\d{4})", text)
    return int(match.group(1)) if match else None


def _parse_rating(value) -> Optional[float]:
    text = _clean_text(value)
    if not text:
        return None
    try:
        rating = float(text)
    except ValueError:
        return None
    if not 0.0 <= rating <= 10.0:
        return None
    return round(rating, 1)


def normalize_movie(payload: Dict) -> MovieRecord:
    """
    Convert an OMDb payload (detail object or search summary) into a MovieRecord.

    Every code path that stores or returns provider data goes through here, so
    cached rows have the same shape no matter who wrote them.

    Raises:
        NotFound: payload carries no imdbID (cannot become a canonical record)
    """
    imdb_id = _clean_text(payload.get("imdbID"))
    if not imdb_id:
        raise NotFound("Provider returned a movie without an IMDb ID")

    return MovieRecord(
        imdb_id=imdb_id,
        title=_clean_text(payload.get("Title")) or "Unknown Title",
        year=_parse_year(payload.get("Year")),
        genre=_clean_text(payload.get("Genre")),
        director=_clean_text(payload.get("Director")),
        actors=_clean_text(payload.get("Actors")),
        plot=_clean_text(payload.get("Plot")),
        poster_url=_clean_text(payload.get("Poster")),
        imdb_rating=_parse_rating(payload.get("imdbRating")),
        runtime=_clean_text(payload.get("Runtime")),
        language=_clean_text(payload.get("Language")),
        country=_clean_text(payload.get("Country")),
    )


class OMDbClient:
    """
    Resilient client for the OMDb API

    Transport failures (timeouts, connection errors, 5xx) are retried up to
    max_attempts with linear backoff (backoff_seconds * attempt). A well-formed
    "Response": "False" answer is a NotFound and is never retried.
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://www.omdbapi.com/",
        timeout: float = 5.0,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._session = session or requests.Session()
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings) -> "OMDbClient":
        return cls(
            api_key=settings.omdb_api_key,
            base_url=settings.omdb_base_url,
            timeout=settings.omdb_timeout_seconds,
            max_attempts=settings.omdb_max_attempts,
            backoff_seconds=settings.omdb_backoff_seconds,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _make_request(self, params: Dict) -> Dict:
        """
        Make HTTP request to OMDb.

        Args:
            params: Query parameters (api key is added here)

        Returns:
            JSON payload with Response == "True"

        Raises:
            NotFound: provider answered "Response": "False"
            UpstreamUnavailable: key missing, key rejected, or retries exhausted
        """
        if not self.api_key:
            raise UpstreamUnavailable(SERVICE_NAME, UpstreamErrorKind.NOT_CONFIGURED, "OMDb API key not configured")

        query = {k: v for k, v in params.items() if v is not None}
        query["apikey"] = self.api_key
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self._session.get(self.base_url, params=query, timeout=self.timeout)
            except (requests.Timeout, requests.ConnectionError) as e:
                last_error = e
                logger.warning(f"OMDb transport error (attempt {attempt}/{self.max_attempts}): {str(e)}")
            else:
                if response.status_code >= 500:
                    last_error = requests.HTTPError(f"OMDb returned {response.status_code}")
                    logger.warning(f"OMDb server error {response.status_code} (attempt {attempt}/{self.max_attempts})")
                else:
                    return self._parse_response(response)

            if attempt < self.max_attempts:
                self._sleep(self.backoff_seconds * attempt)

        kind = UpstreamErrorKind.TIMEOUT if isinstance(last_error, requests.Timeout) else UpstreamErrorKind.UNAVAILABLE
        logger.error(f"OMDb unavailable after {self.max_attempts} attempts: {str(last_error)}")
        raise UpstreamUnavailable(SERVICE_NAME, kind)

    @staticmethod
    def _parse_response(response: requests.Response) -> Dict:
        try:
            data = response.json()
        except ValueError:
            data = None

        if not isinstance(data, dict):
            if response.status_code >= 400:
                raise UpstreamUnavailable(SERVICE_NAME, _kind_for_status(response.status_code))
            raise UpstreamUnavailable(SERVICE_NAME, UpstreamErrorKind.UNAVAILABLE, "OMDb returned a non-JSON body")

        if response.status_code in (401, 403):
            # OMDb reports bad keys and exhausted daily quotas as 401
            error = str(data.get("Error", ""))
            kind = UpstreamErrorKind.RATE_LIMITED if "limit" in error.lower() else UpstreamErrorKind.AUTH_FAILED
            raise UpstreamUnavailable(SERVICE_NAME, kind)
        if response.status_code >= 400 and data.get("Response") != "False":
            raise UpstreamUnavailable(SERVICE_NAME, _kind_for_status(response.status_code))

        if data.get("Response") == "False":
            raise NotFound(data.get("Error") or "Movie not found!")

        logger.debug("OMDb request successful")
        return data

    # ============================================
    # Public lookups
    # ============================================

    def fetch_by_title(self, title: str, year: Optional[int] = None, page: int = 1) -> List[MovieRecord]:
        """
        Search movies by title (summary records: title, year, poster, imdb_id).

        Raises NotFound when OMDb has no match.
        """
        data = self._make_request({"s": title, "y": year, "page": page, "type": "movie"})
        records = []
        for item in data.get("Search") or []:
            try:
                records.append(normalize_movie(item))
            except NotFound:
                continue
        if not records:
            raise NotFound(f"No movies found for '{title}'")
        return records

    def fetch_by_id(self, imdb_id: str) -> MovieRecord:
        """Full details for one IMDb ID. Raises NotFound when OMDb has no match."""
        data = self._make_request({"i": imdb_id, "plot": "full"})
        return normalize_movie(data)

    def resolve_title(self, title: str, year: Optional[int] = None) -> MovieRecord:
        """
        Resolve a loosely specified title to one full detail record.

        Searches by title (dropping the year once if the year-qualified search
        finds nothing) and fetches full details for the best hit, so callers
        never persist summary-only records.
        """
        try:
            hits = self.fetch_by_title(title, year)
        except NotFound:
            if year is None:
                raise
            logger.info(f"No OMDb match for '{title}' ({year}), retrying without year")
            hits = self.fetch_by_title(title)

        return self.fetch_by_id(hits[0].imdb_id)


def _kind_for_status(status_code: int) -> UpstreamErrorKind:
    if status_code == 400:
        return UpstreamErrorKind.BAD_REQUEST
    if status_code in (401, 403):
        return UpstreamErrorKind.AUTH_FAILED
    if status_code == 429:
        return UpstreamErrorKind.RATE_LIMITED
    return UpstreamErrorKind.UNAVAILABLE
