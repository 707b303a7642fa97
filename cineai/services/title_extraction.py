"""
Fallback extraction of movie titles from free-form model output

Used when the model ignores the requested JSON format. Each extractor is an
independent strategy; the chain runs them in priority order, keeps distinct
plausible titles, and stops once it has enough. If none of them finds
anything, the first non-empty lines are used verbatim.
"""
from typing import List, Pattern
import re
import logging

logger = logging.getLogger(__name__)

MAX_TITLES = 5
MIN_TITLE_LENGTH = 3
MAX_TITLE_LENGTH = 99

_NUMBERING = re.compile(r"^\d+\.\s*")
_BULLET = re.compile(r"^[-*•]\s*")
_YEAR_IN_PARENS = re.compile(r"\(\d{4}\)")
_PREFIX = re.compile(r"^(Title|Movie):\s*", re.IGNORECASE)
_DISALLOWED_CHARS = re.compile(r"[^\w\s\-:!?&.,']")


def clean_title(raw: str) -> str:
    """Strip numbering, years, Title:/Movie: prefixes and stray punctuation."""
    title = raw.strip()
    title = _NUMBERING.sub("", title)
    title = _YEAR_IN_PARENS.sub("", title).strip()
    title = _PREFIX.sub("", title)
    title = _DISALLOWED_CHARS.sub("", title)
    return re.sub(r"\s{2,}", " ", title).strip()


def is_plausible_title(title: str) -> bool:
    return MIN_TITLE_LENGTH <= len(title) <= MAX_TITLE_LENGTH


class TitleExtractor:
    """Finds candidate title strings matching one regex"""
    name = "base"
    pattern: Pattern = None

    def extract(self, text: str) -> List[str]:
        return [match.group(1) for match in self.pattern.finditer(text)]


class QuotedTitleExtractor(TitleExtractor):
    name = "quoted"
    pattern = re.compile(r'"([^"]+)"')


class NumberedListExtractor(TitleExtractor):
    name = "numbered"
    pattern = re.compile(r"^[ \t]*\d+\.[ \t]*([^\n\r]+)", re.MULTILINE)


class BulletListExtractor(TitleExtractor):
    name = "bulleted"
    pattern = re.compile(r"^[ \t]*[-*•][ \t]*([^\n\r]+)", re.MULTILINE)


class PrefixedLineExtractor(TitleExtractor):
    name = "prefixed"
    pattern = re.compile(r"(?:Title|Movie):\s*([^\n\r]+)", re.IGNORECASE)


class TitleYearExtractor(TitleExtractor):
    name = "title_year"
    # Starts at a capitalised word, never mid-word ("Spider-Man" is not "Man")
    pattern = re.compile(r"(?<![\w'-])([A-Z][\w'&:-]*(?:[ \t]+[\w'&:-]+)*[ \t]*\(\d{4}\))")


DEFAULT_EXTRACTORS = (
    QuotedTitleExtractor(),
    NumberedListExtractor(),
    BulletListExtractor(),
    PrefixedLineExtractor(),
    TitleYearExtractor(),
)


def extract_from_lines(text: str, limit: int = MAX_TITLES) -> List[str]:
    """Last resort: the first non-empty lines, minus list markers."""
    titles: List[str] = []
    for line in text.splitlines():
        candidate = _BULLET.sub("", _NUMBERING.sub("", line.strip())).strip()
        if candidate and is_plausible_title(candidate) and candidate not in titles:
            titles.append(candidate)
        if len(titles) >= limit:
            break
    return titles


def extract_titles(text: str, extractors=DEFAULT_EXTRACTORS, limit: int = MAX_TITLES) -> List[str]:
    """
    Pull up to `limit` distinct movie titles out of free text.

    Example:
        >>> extract_titles('Here are some picks: "Inception" (2010), "Arrival" (2016)')
        ['Inception', 'Arrival']
    """
    if not text or not text.strip():
        return []

    titles: List[str] = []
    seen = set()
    for extractor in extractors:
        for raw in extractor.extract(text):
            title = clean_title(raw)
            key = title.casefold()
            if is_plausible_title(title) and key not in seen:
                seen.add(key)
                titles.append(title)
        if len(titles) >= limit:
            break

    if not titles:
        titles = extract_from_lines(text, limit)

    logger.info(f"Extracted titles: {titles[:limit]}")
    return titles[:limit]
