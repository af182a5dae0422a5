"""Aggregate AI topic suggestions into displayable, DOI-enriched citations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from apai.citation.normalize import normalize
from apai.search.models import DisplayedCitation, EnrichmentResult, TopicItem

logger = logging.getLogger(__name__)

Enricher = Callable[[str], Awaitable[EnrichmentResult]]


# ── Public API ───────────────────────────────────────────────────────


async def aggregate(items: Sequence[TopicItem], enricher: Enricher) -> list[DisplayedCitation]:
    """Build citation text for every item, then enrich all of them at once.

    Waits for every enrichment to settle. Output order follows input order.
    A failed enrichment leaves that item's ``doi_link`` as None; it never
    drops the item or fails the batch.
    """
    if not items:
        return []

    texts = [normalize(item, "topic") for item in items]
    settled = await asyncio.gather(
        *(enricher(item.title) for item in items),
        return_exceptions=True,
    )

    citations: list[DisplayedCitation] = []
    for item, text, outcome in zip(items, texts, settled):
        citations.append(
            DisplayedCitation(
                citation_text=text,
                doi_link=_link(item, outcome),
                preformatted=True,
            )
        )

    linked = sum(1 for c in citations if c.doi_link)
    logger.info("Aggregated %d topic citations (%d with DOI links)", len(citations), linked)
    return citations


# ── Helpers ──────────────────────────────────────────────────────────


def _link(item: TopicItem, outcome) -> str | None:
    """DOI link from a settled enrichment, or None if it raised."""
    if isinstance(outcome, asyncio.CancelledError):
        raise outcome
    if isinstance(outcome, BaseException):
        logger.warning("Enrichment raised for %r: %s", item.title, outcome)
        return None
    return outcome.doi_link
