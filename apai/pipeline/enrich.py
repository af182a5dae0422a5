"""Per-item enrichment: attach a DOI link to a citation by title search."""

import asyncio
import logging

import httpx

from apai.core.settings import Settings
from apai.search.crossref import doi_url, search_first_doi
from apai.search.models import EnrichmentResult

logger = logging.getLogger(__name__)


async def enrich(
    client: httpx.AsyncClient,
    title: str,
    settings: Settings | None = None,
) -> EnrichmentResult:
    """Best-effort DOI link for a title.

    Never raises: transport errors, malformed responses and timeouts all
    come back as ``doi_link=None``. Cancellation still propagates.
    """
    settings = settings or Settings()
    try:
        doi = await asyncio.wait_for(
            search_first_doi(client, title, settings),
            timeout=settings.services.enrichment_timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("Enrichment timed out for %r", title)
        return EnrichmentResult()
    except Exception as exc:
        logger.warning("Enrichment failed for %r: %s", title, exc)
        return EnrichmentResult()

    if doi is None:
        logger.debug("No DOI match for %r", title)
        return EnrichmentResult()
    return EnrichmentResult(doi_link=doi_url(doi))
