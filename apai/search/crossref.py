"""Crossref clients: DOI metadata lookup and bibliographic search."""

import logging
from urllib.parse import quote

import httpx

from apai.core.errors import EnrichmentFailure, FormatError, SourceUnavailable
from apai.core.settings import Settings

logger = logging.getLogger(__name__)

_SOURCE = "DOI lookup"
_DOI_MARKER = "doi.org/"


# ── DOI Input ────────────────────────────────────────────────────────


def normalize_doi(value: str) -> str:
    """Strip any ``.../doi.org/`` URL prefix or ``doi:`` scheme from a DOI."""
    candidate = value.strip()
    if _DOI_MARKER in candidate:
        candidate = candidate.split(_DOI_MARKER, 1)[1]
    if candidate.lower().startswith("doi:"):
        candidate = candidate[len("doi:"):]
    candidate = candidate.strip().strip("/")
    if not candidate:
        raise ValueError(f"No DOI found in {value!r}")
    return candidate


def doi_url(doi: str) -> str:
    return f"https://doi.org/{doi}"


# ── DOI Metadata ─────────────────────────────────────────────────────


async def fetch_doi_metadata(
    client: httpx.AsyncClient,
    doi: str,
    settings: Settings | None = None,
):
    """Fetch the bibliographic ``message`` object for a bare DOI.

    Transport errors, non-2xx status and non-JSON bodies raise
    SourceUnavailable. A JSON body that is not an object raises FormatError.
    The message itself is returned unchecked for the formatter to judge.
    """
    settings = settings or Settings()
    url = f"{settings.services.crossref_url}/works/{quote(doi, safe='/')}"
    logger.info("DOI lookup: %s", doi)

    try:
        resp = await client.get(
            url,
            headers=settings.services.headers(),
            timeout=settings.services.request_timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise SourceUnavailable(_SOURCE, str(exc)) from exc

    if not isinstance(data, dict):
        raise FormatError(f"DOI response is not a JSON object: {type(data).__name__}")
    return data.get("message")


# ── Bibliographic Search ─────────────────────────────────────────────


async def search_first_doi(
    client: httpx.AsyncClient,
    title: str,
    settings: Settings | None = None,
) -> str | None:
    """Search journal articles by title and return the first hit's DOI.

    First hit wins; no attempt is made to check that it is the same work.
    """
    settings = settings or Settings()
    resp = await client.get(
        f"{settings.services.crossref_url}/works",
        params={
            "query.bibliographic": title,
            "filter": "type:journal-article",
            "rows": 1,
        },
        headers=settings.services.headers(),
        timeout=settings.services.enrichment_timeout,
    )
    resp.raise_for_status()

    try:
        items = resp.json()["message"]["items"]
    except (ValueError, KeyError, TypeError) as exc:
        raise EnrichmentFailure(f"Unexpected search response for {title!r}: {exc}") from exc
    if not isinstance(items, list):
        raise EnrichmentFailure(f"'items' is not a list for {title!r}")

    if not items:
        return None
    first = items[0]
    doi = first.get("DOI") if isinstance(first, dict) else None
    return doi or None
