"""Citation formatter: the single bridge from structured records to APA text."""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from apai.citation import apa
from apai.core.errors import FormatError
from apai.core.settings import CitationSettings
from apai.search.models import CitationInput

logger = logging.getLogger(__name__)

Engine = Callable[[Any, str], str]


def format_citation(
    record: CitationInput | Mapping,
    settings: CitationSettings | None = None,
    engine: Engine = apa.render,
) -> str:
    """Format a normalized input or a raw CSL/Crossref record as APA text.

    Any exception raised by the engine is re-raised as FormatError.
    """
    settings = settings or CitationSettings()
    data = record.to_csl() if isinstance(record, CitationInput) else record

    try:
        text = engine(data, settings.mode)
    except Exception as exc:
        logger.warning("Formatter rejected record: %s", exc)
        raise FormatError(f"Could not format citation: {exc}") from exc

    if not isinstance(text, str) or not text.strip():
        raise FormatError("Formatter returned no citation text")
    return text.strip()
