"""Shared data models for search, formatting and display."""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ── Source Records ───────────────────────────────────────────────────


class BookRecord(BaseModel):
    """A single book-search hit, as returned by the catalog."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    author_name: list[str] = Field(default_factory=list)
    first_publish_year: Optional[int] = None
    publisher: list[str] = Field(default_factory=list)
    key: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def none_title(cls, v):
        return v or ""

    @field_validator("author_name", "publisher", mode="before")
    @classmethod
    def none_list(cls, v):
        return v or []


class TopicItem(BaseModel):
    """One AI-suggested source: plain strings, ready to be read as prose."""

    model_config = ConfigDict(frozen=True)

    author: str = ""
    year: str = ""
    title: str = Field(min_length=1)
    publisher: str = ""

    @field_validator("author", "year", "publisher", mode="before")
    @classmethod
    def as_text(cls, v):
        if v is None:
            return ""
        if isinstance(v, (int, float)):
            return str(int(v))
        if isinstance(v, (list, tuple)):
            return ", ".join(str(part) for part in v if part)
        return v


# ── Normalized Citation Input ────────────────────────────────────────


class CitationInput(BaseModel):
    """Uniform record fed to the formatting engine."""

    type: Literal["book", "article"]
    title: str = Field(min_length=1)
    authors: list[str] = Field(default_factory=list)
    issued_year: int
    publisher: str

    def to_csl(self) -> dict:
        """CSL-JSON view of this record; author names stay literal."""
        return {
            "type": self.type,
            "title": self.title,
            "author": [{"literal": name} for name in self.authors],
            "issued": {"date-parts": [[self.issued_year]]},
            "publisher": self.publisher,
        }


# ── Display ──────────────────────────────────────────────────────────


class DisplayedCitation(BaseModel):
    """A citation ready to show, copy or save.

    ``preformatted`` marks text assembled from AI-supplied fields rather than
    rendered by the formatter; such text is APA-like, not APA-validated.
    """

    model_config = ConfigDict(frozen=True)

    citation_text: str
    doi_link: Optional[str] = None
    preformatted: bool = False


class EnrichmentResult(BaseModel):
    """Outcome of a per-item link lookup."""

    doi_link: Optional[str] = None
