"""Settings: YAML loader and Pydantic models."""

from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


# ── Upstream Services ────────────────────────────────────────────────


class ServiceSettings(BaseModel):
    """Endpoints and timeouts for the external services."""

    book_search_url: str = "https://openlibrary.org/search.json"
    book_page_base: str = "https://openlibrary.org"
    crossref_url: str = "https://api.crossref.org"
    topic_service_url: str = "https://apai-backend-server.onrender.com/api"
    request_timeout: float = Field(default=15.0, gt=0, description="Seconds per top-level call")
    enrichment_timeout: float = Field(default=10.0, gt=0, description="Seconds per enrichment call")
    user_agent: str = "apai/0.1"
    mailto: Optional[str] = None

    @field_validator("book_search_url", "book_page_base", "crossref_url", "topic_service_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    def headers(self) -> dict[str, str]:
        """Default request headers; mailto joins Crossref's polite pool."""
        agent = self.user_agent
        if self.mailto:
            agent = f"{agent} (mailto:{self.mailto})"
        return {"User-Agent": agent, "Accept": "application/json"}


# ── Citation Output ──────────────────────────────────────────────────


class CitationSettings(BaseModel):
    """Style, fallbacks and limits for formatted citations."""

    template: str = "apa"
    lang: str = "en-US"
    mode: Literal["bibliography", "citation"] = "bibliography"
    fallback_year: int = 2024
    unknown_publisher: str = "Unknown Publisher"
    untitled: str = "Untitled"
    max_book_results: int = Field(default=5, ge=1)

    @field_validator("template")
    @classmethod
    def apa_only(cls, v: str) -> str:
        if v.lower() != "apa":
            raise ValueError(f"Unsupported citation template: {v} (only 'apa')")
        return v.lower()

    @field_validator("lang")
    @classmethod
    def en_us_only(cls, v: str) -> str:
        if v != "en-US":
            raise ValueError(f"Unsupported locale: {v} (only 'en-US')")
        return v


# ── Topic Backend ────────────────────────────────────────────────────


class TopicSettings(BaseModel):
    """Which backend answers cite-by-topic requests."""

    backend: Literal["service", "ollama"] = "service"
    model: str = "qwen3:8b"
    count: int = Field(default=5, ge=1, le=20)


# ── Settings (top-level) ─────────────────────────────────────────────


class Settings(BaseModel):
    """Top-level settings for a citation session."""

    services: ServiceSettings = Field(default_factory=ServiceSettings)
    citation: CitationSettings = Field(default_factory=CitationSettings)
    topic: TopicSettings = Field(default_factory=TopicSettings)


def load_settings(path: str | Path) -> Settings:
    """Load YAML settings from disk and return a validated model."""
    path = Path(path)
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return Settings.model_validate(raw)
