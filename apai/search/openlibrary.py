"""Open Library book search client."""

import logging

import httpx
from pydantic import ValidationError

from apai.core.errors import SourceUnavailable
from apai.core.settings import Settings
from apai.search.models import BookRecord

logger = logging.getLogger(__name__)

_SOURCE = "book search"


# ── Public API ───────────────────────────────────────────────────────


async def search_books(
    client: httpx.AsyncClient,
    query: str,
    settings: Settings | None = None,
) -> list[BookRecord]:
    """Search the catalog by title and return the first few hits in order.

    Raises SourceUnavailable on transport errors, non-2xx status or a body
    without a ``docs`` list. An empty list means no matches.
    """
    settings = settings or Settings()
    limit = settings.citation.max_book_results
    logger.info("Book search: %s", query)

    try:
        resp = await client.get(
            settings.services.book_search_url,
            params={"title": query},
            headers=settings.services.headers(),
            timeout=settings.services.request_timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise SourceUnavailable(_SOURCE, str(exc)) from exc

    docs = data.get("docs") if isinstance(data, dict) else None
    if not isinstance(docs, list):
        raise SourceUnavailable(_SOURCE, "response has no 'docs' list")

    books: list[BookRecord] = []
    for doc in docs:
        book = _parse_doc(doc)
        if book:
            books.append(book)
        if len(books) == limit:
            break

    logger.info("Book search returned %d matches, keeping %d", len(docs), len(books))
    return books


# ── Doc → BookRecord ─────────────────────────────────────────────────


def _parse_doc(doc) -> BookRecord | None:
    """Convert one search doc into a BookRecord, or None if unusable."""
    if not isinstance(doc, dict):
        logger.warning("Skipping non-object book doc: %r", doc)
        return None
    try:
        return BookRecord.model_validate(doc)
    except ValidationError as exc:
        logger.warning("Skipping malformed book doc %s: %s", doc.get("key"), exc)
        return None
