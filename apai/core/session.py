"""Session state and user actions for one citation-building session."""

import logging
from typing import Literal, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from apai.agents import topic_suggester
from apai.citation.formatter import format_citation
from apai.citation.normalize import normalize
from apai.core.errors import FormatError, SourceUnavailable
from apai.core.references import ReferenceSet
from apai.core.settings import Settings
from apai.pipeline.aggregate import aggregate
from apai.pipeline.enrich import enrich
from apai.search import crossref, openlibrary, topics
from apai.search.models import BookRecord, DisplayedCitation, EnrichmentResult, TopicItem

logger = logging.getLogger(__name__)

# ── Search Lifecycle ─────────────────────────────────────────────────

STATUSES = ("IDLE", "LOADING", "POPULATED", "FAILED")

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "IDLE": {"LOADING"},
    "LOADING": {"LOADING", "POPULATED", "FAILED", "IDLE"},
    # Terminal until the next trigger, or reset by another search kind
    "POPULATED": {"LOADING", "IDLE"},
    "FAILED": {"LOADING", "IDLE"},
}

KINDS = ("books", "doi", "topic")

ErrorKind = Literal["source_unavailable", "format_error", "invalid_input"]

# ── User-facing Messages ─────────────────────────────────────────────

NO_RESULTS = "No results found."
BOOK_SEARCH_FAILED = "Something went wrong. Try again."
BOOK_FORMAT_FAILED = "Could not format a citation for this book."
DOI_FAILED = "Failed to fetch citation from DOI. Please check the input."
DOI_FORMAT_FAILED = "The DOI record could not be formatted as an APA citation."
TOPIC_FAILED = "Failed to generate citations from AI."


# ── Per-kind State ───────────────────────────────────────────────────


class SearchSlot(BaseModel):
    """Lifecycle and message for one search kind."""

    status: str = "IDLE"
    message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    def transition(self, new_status: str) -> None:
        if new_status not in STATUSES:
            raise ValueError(f"Invalid status: {new_status}")
        allowed = ALLOWED_TRANSITIONS[self.status]
        if new_status not in allowed:
            raise ValueError(
                f"Invalid transition: {self.status} → {new_status} "
                f"(allowed: {allowed or 'none'})"
            )
        self.status = new_status

    def start(self) -> None:
        self._clear()
        self.transition("LOADING")

    def reset(self) -> None:
        self._clear()
        if self.status != "IDLE":
            self.transition("IDLE")

    def fail(self, message: str, error_kind: ErrorKind) -> None:
        self.transition("FAILED")
        self.message = message
        self.error_kind = error_kind

    def _clear(self) -> None:
        self.message = None
        self.error_kind = None


class BookSlot(SearchSlot):
    results: list[BookRecord] = Field(default_factory=list)
    selected: Optional[int] = None
    citation: Optional[DisplayedCitation] = None

    def show(self, results: list[BookRecord]) -> None:
        self.transition("POPULATED")
        self.results = results
        if not results:
            self.message = NO_RESULTS

    def _clear(self) -> None:
        super()._clear()
        self.results = []
        self.selected = None
        self.citation = None


class DoiSlot(SearchSlot):
    citation: Optional[DisplayedCitation] = None

    def show(self, citation: DisplayedCitation) -> None:
        self.transition("POPULATED")
        self.citation = citation

    def _clear(self) -> None:
        super()._clear()
        self.citation = None


class TopicSlot(SearchSlot):
    citations: list[DisplayedCitation] = Field(default_factory=list)

    def show(self, citations: list[DisplayedCitation]) -> None:
        self.transition("POPULATED")
        self.citations = citations

    def _clear(self) -> None:
        super()._clear()
        self.citations = []


class SessionState(BaseModel):
    """Everything the session shows. Only one search kind holds results at a time."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    books: BookSlot = Field(default_factory=BookSlot)
    doi: DoiSlot = Field(default_factory=DoiSlot)
    topic: TopicSlot = Field(default_factory=TopicSlot)
    references: ReferenceSet = Field(default_factory=ReferenceSet)
    generation: int = 0

    @property
    def loading(self) -> bool:
        return any(self.slot(kind).status == "LOADING" for kind in KINDS)

    def slot(self, kind: str) -> SearchSlot:
        if kind not in KINDS:
            raise ValueError(f"Unknown search kind: {kind}")
        return getattr(self, kind)

    def displayed(self) -> list[DisplayedCitation]:
        """Citations currently on screen, whichever search produced them."""
        if self.books.citation:
            return [self.books.citation]
        if self.doi.citation:
            return [self.doi.citation]
        return list(self.topic.citations)


# ── CitationSession ──────────────────────────────────────────────────


class CitationSession:
    """Runs user actions against the upstream services and updates state.

    Use as an async context manager; it owns one shared HTTP client unless
    one is passed in. Every search bumps ``state.generation``; results that
    arrive for an older generation are dropped.
    """

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or Settings()
        self.state = SessionState()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "CitationSession":
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.services.request_timeout,
                headers=self.settings.services.headers(),
                follow_redirects=True,
            )
        return self

    async def __aexit__(self, *exc) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("CitationSession must be entered with 'async with' first")
        return self._client

    # ── Searches ─────────────────────────────────────────────

    async def search_books(self, query: str) -> SessionState:
        """Search books by title; show up to the configured number of hits."""
        if not query.strip():
            return self.state
        token = self._begin("books")

        try:
            books = await openlibrary.search_books(self.client, query, self.settings)
        except SourceUnavailable as exc:
            return self._fail(token, "books", BOOK_SEARCH_FAILED, "source_unavailable", exc)

        if self._is_stale(token, "books"):
            return self.state
        self.state.books.show(books)
        return self.state

    def select_book(self, index: int) -> SessionState:
        """Format the chosen book hit as the displayed citation."""
        slot = self.state.books
        if slot.status != "POPULATED" or not slot.results:
            raise ValueError("No book results to select from")
        if not 0 <= index < len(slot.results):
            raise ValueError(f"Book index out of range: {index} (have {len(slot.results)})")

        slot.selected = index
        record = slot.results[index]
        try:
            text = format_citation(
                normalize(record, "book", self.settings.citation),
                self.settings.citation,
            )
        except FormatError as exc:
            logger.error("Book citation failed for %s: %s", record.key, exc)
            slot.citation = None
            slot.message = BOOK_FORMAT_FAILED
            slot.error_kind = "format_error"
            return self.state

        slot.citation = DisplayedCitation(citation_text=text)
        slot.message = None
        slot.error_kind = None
        return self.state

    async def lookup_doi(self, doi_input: str) -> SessionState:
        """Resolve a DOI (bare or as a doi.org URL) and format it."""
        if not doi_input.strip():
            return self.state
        token = self._begin("doi")

        try:
            doi = crossref.normalize_doi(doi_input)
        except ValueError as exc:
            return self._fail(token, "doi", DOI_FAILED, "invalid_input", exc)

        try:
            message = await crossref.fetch_doi_metadata(self.client, doi, self.settings)
            text = format_citation(normalize(message, "doi"), self.settings.citation)
        except SourceUnavailable as exc:
            return self._fail(token, "doi", DOI_FAILED, "source_unavailable", exc)
        except FormatError as exc:
            return self._fail(token, "doi", DOI_FORMAT_FAILED, "format_error", exc)

        if self._is_stale(token, "doi"):
            return self.state
        self.state.doi.show(DisplayedCitation(citation_text=text))
        return self.state

    async def cite_topic(self, topic: str) -> SessionState:
        """Ask the AI backend for sources on a topic and enrich them with DOIs."""
        if not topic.strip():
            return self.state
        token = self._begin("topic")

        try:
            items = await self._request_topics(topic)
        except SourceUnavailable as exc:
            return self._fail(token, "topic", TOPIC_FAILED, "source_unavailable", exc)
        if self._is_stale(token, "topic"):
            return self.state

        citations = await aggregate(items, self._enrich)

        if self._is_stale(token, "topic"):
            return self.state
        self.state.topic.show(citations)
        return self.state

    # ── References ───────────────────────────────────────────

    def save(self, text: str) -> SessionState:
        self.state.references.save(text)
        return self.state

    def clear_references(self) -> SessionState:
        self.state.references.clear()
        return self.state

    # ── Internals ────────────────────────────────────────────

    async def _request_topics(self, topic: str) -> list[TopicItem]:
        if self.settings.topic.backend == "ollama":
            return await topic_suggester.request_local_topic_citations(topic, self.settings)
        return await topics.request_topic_citations(self.client, topic, self.settings)

    async def _enrich(self, title: str) -> EnrichmentResult:
        return await enrich(self.client, title, self.settings)

    def _begin(self, kind: str) -> int:
        """Start a new generation: load ``kind``, reset the other kinds."""
        self.state.generation += 1
        for name in KINDS:
            slot = self.state.slot(name)
            if name == kind:
                slot.start()
            else:
                slot.reset()
        logger.debug("Generation %d: %s search started", self.state.generation, kind)
        return self.state.generation

    def _is_stale(self, token: int, kind: str) -> bool:
        if token == self.state.generation:
            return False
        logger.info(
            "Discarding stale %s results (generation %d, current %d)",
            kind,
            token,
            self.state.generation,
        )
        return True

    def _fail(self, token: int, kind: str, message: str, error_kind: ErrorKind, exc: Exception) -> SessionState:
        if self._is_stale(token, kind):
            return self.state
        logger.error("%s search failed: %s", kind, exc)
        self.state.slot(kind).fail(message, error_kind)
        return self.state
