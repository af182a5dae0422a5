"""Tests for the record normalizer and source record models."""

import pytest

from apai.citation.normalize import (
    book_page_url,
    normalize,
    normalize_book,
    topic_citation_text,
)
from apai.core.settings import CitationSettings
from apai.search.models import BookRecord, CitationInput, TopicItem


# ── Factories ────────────────────────────────────────────────────────


def _book(**kw):
    defaults = dict(
        title="The Hobbit",
        author_name=["J.R.R. Tolkien"],
        first_publish_year=1937,
        publisher=["George Allen & Unwin", "Houghton Mifflin"],
        key="/works/OL262758W",
    )
    defaults.update(kw)
    return BookRecord(**defaults)


# ── Book Records ─────────────────────────────────────────────────────


def test_normalize_book_full_record():
    result = normalize_book(_book())
    assert result == CitationInput(
        type="book",
        title="The Hobbit",
        authors=["J.R.R. Tolkien"],
        issued_year=1937,
        publisher="George Allen & Unwin",
    )


def test_missing_year_uses_fallback():
    assert normalize_book(_book(first_publish_year=None)).issued_year == 2024


def test_fallback_year_configurable():
    settings = CitationSettings(fallback_year=1999)
    assert normalize_book(_book(first_publish_year=None), settings).issued_year == 1999


def test_missing_publisher():
    assert normalize_book(_book(publisher=[])).publisher == "Unknown Publisher"


def test_missing_authors_is_unattributed():
    assert normalize_book(_book(author_name=[])).authors == []


def test_missing_title_never_empty():
    assert normalize_book(_book(title="")).title == "Untitled"


def test_raw_doc_with_nulls():
    raw = {"title": "Dune", "author_name": None, "publisher": None, "key": "/works/OL1W"}
    result = normalize(raw, "book")
    assert isinstance(result, CitationInput)
    assert result.authors == []
    assert result.publisher == "Unknown Publisher"
    assert result.issued_year == 2024


def test_raw_doc_extra_fields_ignored():
    raw = {"title": "Dune", "edition_count": 12, "language": ["eng"]}
    assert normalize(raw, "book").title == "Dune"


def test_to_csl_uses_literal_names():
    csl = normalize_book(_book()).to_csl()
    assert csl == {
        "type": "book",
        "title": "The Hobbit",
        "author": [{"literal": "J.R.R. Tolkien"}],
        "issued": {"date-parts": [[1937]]},
        "publisher": "George Allen & Unwin",
    }


def test_book_record_is_immutable():
    book = _book()
    with pytest.raises(Exception):
        book.title = "Changed"


def test_book_page_url():
    assert book_page_url(_book()) == "https://openlibrary.org/works/OL262758W"
    assert book_page_url(_book(key=None)) is None


# ── DOI Records ──────────────────────────────────────────────────────


def test_doi_record_passes_through():
    message = {"title": ["A"], "type": "journal-article"}
    assert normalize(message, "doi") is message


# ── Topic Records ────────────────────────────────────────────────────


def test_topic_citation_text():
    item = TopicItem(author="Doe, J.", year="2020", title="Climate futures", publisher="Earth Press")
    assert topic_citation_text(item) == "Doe, J. (2020). Climate futures. Earth Press."


def test_normalize_topic_dict():
    raw = {"author": "Smith, A.", "year": 2018, "title": "Oceans", "publisher": "Blue Books"}
    assert normalize(raw, "topic") == "Smith, A. (2018). Oceans. Blue Books."


def test_topic_item_requires_title():
    with pytest.raises(Exception):
        TopicItem(author="A", year="2020", title="", publisher="P")


def test_unknown_kind():
    with pytest.raises(ValueError):
        normalize({}, "podcast")
