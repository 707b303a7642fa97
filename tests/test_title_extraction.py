"""
Fallback title extraction tests
"""
from cineai.services.title_extraction import (
    BulletListExtractor,
    NumberedListExtractor,
    QuotedTitleExtractor,
    TitleYearExtractor,
    clean_title,
    extract_titles,
)


def test_quoted_titles_with_years_are_stripped():
    text = 'Here are some picks: "Inception" (2010), "Arrival" (2016)'
    assert extract_titles(text) == ["Inception", "Arrival"]


def test_numbered_list():
    text = "1. The Matrix (1999)\n2. Blade Runner (1982)\n3. Ex Machina (2014)"
    assert extract_titles(text) == ["The Matrix", "Blade Runner", "Ex Machina"]


def test_bulleted_list():
    text = "Try these:\n- Heat\n* Collateral\n• Drive"
    assert extract_titles(text) == ["Heat", "Collateral", "Drive"]


def test_prefixed_lines():
    text = "Title: Zodiac\nMovie: Se7en"
    assert extract_titles(text) == ["Zodiac", "Se7en"]


def test_title_year_pattern():
    text = "my picks: Memento (2000), Prisoners (2013)"
    assert extract_titles(text) == ["Memento", "Prisoners"]


def test_stops_at_five_distinct_titles():
    text = "\n".join(f'"Movie Number {i}"' for i in range(1, 9))
    titles = extract_titles(text)
    assert len(titles) == 5
    assert titles[0] == "Movie Number 1"


def test_duplicates_are_dropped_case_insensitively():
    text = '"Alien" and "ALIEN" and "Aliens"'
    assert extract_titles(text) == ["Alien", "Aliens"]


def test_implausible_lengths_are_skipped():
    text = '"Up" "Heat" "' + "x" * 120 + '"'
    assert extract_titles(text) == ["Heat"]


def test_falls_back_to_first_lines():
    text = "Parasite\nOldboy\nMother"
    assert extract_titles(text) == ["Parasite", "Oldboy", "Mother"]


def test_empty_text_yields_nothing():
    assert extract_titles("") == []
    assert extract_titles("   \n  ") == []


def test_each_extractor_works_alone():
    assert QuotedTitleExtractor().extract('"Jaws"') == ["Jaws"]
    assert NumberedListExtractor().extract("1. Jaws") == ["Jaws"]
    assert BulletListExtractor().extract("- Jaws") == ["Jaws"]
    assert TitleYearExtractor().extract("Jaws (1975)") == ["Jaws (1975)"]


def test_clean_title():
    assert clean_title('3. Title: Schindler\'s List (1993)') == "Schindler's List"
    assert clean_title("Amélie   (2001)") == "Amélie"


def test_hyphens_inside_titles_are_not_bullets():
    text = "1. Spider-Man (2002)\n2. X-Men (2000)"
    assert extract_titles(text) == ["Spider-Man", "X-Men"]


def test_decimal_ratings_in_prose_are_not_numbering():
    text = 'I recommend "Heat" which is rated 8.3 on IMDb.'
    assert extract_titles(text) == ["Heat"]


def test_list_markers_only_count_at_line_start():
    assert NumberedListExtractor().extract("rated 8.3 overall\n  4. Jaws") == ["Jaws"]
    assert BulletListExtractor().extract("Spider-Man\n - Jaws") == ["Jaws"]
    assert TitleYearExtractor().extract("Spider-Man (2002)") == ["Spider-Man (2002)"]
