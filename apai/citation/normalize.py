"""Record normalizer: upstream source shapes -> formatter input."""

from collections.abc import Mapping
from typing import Literal

from apai.core.settings import CitationSettings
from apai.search.models import BookRecord, CitationInput, TopicItem

SourceKind = Literal["book", "doi", "topic"]


# ── Public API ───────────────────────────────────────────────────────


def normalize(
    record: Mapping | BookRecord | TopicItem,
    kind: SourceKind,
    settings: CitationSettings | None = None,
) -> CitationInput | Mapping | str:
    """Dispatch on source kind.

    book  -> CitationInput with fallbacks filled in
    doi   -> the bibliographic mapping itself (already a formatter input)
    topic -> plain citation text, bypassing the formatter
    """
    if kind == "book":
        if not isinstance(record, BookRecord):
            record = BookRecord.model_validate(record)
        return normalize_book(record, settings)
    if kind == "doi":
        return record
    if kind == "topic":
        if not isinstance(record, TopicItem):
            record = TopicItem.model_validate(record)
        return topic_citation_text(record)
    raise ValueError(f"Unknown source kind: {kind}")


def normalize_book(record: BookRecord, settings: CitationSettings | None = None) -> CitationInput:
    """Book-search hit -> CitationInput. Never fails on missing fields."""
    settings = settings or CitationSettings()
    return CitationInput(
        type="book",
        title=record.title.strip() or settings.untitled,
        authors=[name for name in record.author_name if name],
        issued_year=record.first_publish_year or settings.fallback_year,
        publisher=record.publisher[0] if record.publisher else settings.unknown_publisher,
    )


def topic_citation_text(item: TopicItem) -> str:
    """``Author (Year). Title. Publisher.`` from AI-supplied strings, verbatim."""
    return f"{item.author} ({item.year}). {item.title}. {item.publisher}."


def book_page_url(record: BookRecord, base: str = "https://openlibrary.org") -> str | None:
    """Catalog page for a book hit, if it carries a key."""
    if not record.key:
        return None
    return f"{base.rstrip('/')}{record.key}"
