"""
Schema configuration and input validation tests
"""
from datetime import datetime

import pytest

from cineai.models.search_history import SearchHistory, SearchType
from cineai.schemas.recommendation import SearchHistoryEntry
from cineai.schemas.validation import SafeStringMixin


def test_history_entry_reads_orm_rows():
    row = SearchHistory(
        user_id=1,
        search_query="heist movies",
        search_type=SearchType.AI_PROMPT,
        searched_at=datetime(2024, 5, 1, 12, 0),
    )
    entry = SearchHistoryEntry.model_validate(row)

    assert entry.search_query == "heist movies"
    assert entry.search_type == SearchType.AI_PROMPT
    assert SearchHistoryEntry.model_config["from_attributes"] is True


@pytest.mark.parametrize("text", [
    "emotional = yes",
    "a person = hero, setting = moon",
    "dragon=fire",
])
def test_plain_text_with_equals_signs_passes(text):
    assert SafeStringMixin.validate_no_script(text) == text


@pytest.mark.parametrize("text", [
    "<img src=x onerror=alert(1)>",
    "<body onload = steal()>",
    "<script>alert(1)</script>",
])
def test_markup_with_scripts_is_blocked(text):
    with pytest.raises(ValueError):
        SafeStringMixin.validate_no_script(text)
