"""Tests for the Crossref clients and DOI input handling."""

import httpx
import pytest

from apai.core.errors import EnrichmentFailure, FormatError, SourceUnavailable
from apai.search.crossref import (
    doi_url,
    fetch_doi_metadata,
    normalize_doi,
    search_first_doi,
)

MESSAGE = {"DOI": "10.1/xyz", "title": ["A study"], "type": "journal-article"}


# ── DOI Input ────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "raw",
    [
        "https://doi.org/10.1/xyz",
        "http://dx.doi.org/10.1/xyz",
        "doi.org/10.1/xyz",
        "doi:10.1/xyz",
        "  10.1/xyz  ",
        "10.1/xyz",
    ],
)
def test_normalize_doi(raw):
    assert normalize_doi(raw) == "10.1/xyz"


def test_normalize_doi_keeps_inner_slashes():
    assert normalize_doi("https://doi.org/10.1000/a/b/c") == "10.1000/a/b/c"


def test_normalize_doi_empty():
    with pytest.raises(ValueError):
        normalize_doi("https://doi.org/")


def test_doi_url():
    assert doi_url("10.1/xyz") == "https://doi.org/10.1/xyz"


# ── DOI Metadata ─────────────────────────────────────────────────────


def test_fetch_sends_bare_identifier(run_with):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"status": "ok", "message": MESSAGE})

    message = run_with(handler, lambda c: fetch_doi_metadata(c, normalize_doi("https://doi.org/10.1/xyz")))
    assert message == MESSAGE
    assert seen[0].url.host == "api.crossref.org"
    assert seen[0].url.path == "/works/10.1/xyz"


def test_fetch_not_found(run_with):
    with pytest.raises(SourceUnavailable):
        run_with(lambda r: httpx.Response(404, text="Resource not found."), lambda c: fetch_doi_metadata(c, "10.1/x"))


def test_fetch_network_error(run_with):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(SourceUnavailable):
        run_with(handler, lambda c: fetch_doi_metadata(c, "10.1/x"))


def test_fetch_non_json(run_with):
    with pytest.raises(SourceUnavailable):
        run_with(lambda r: httpx.Response(200, text="not json"), lambda c: fetch_doi_metadata(c, "10.1/x"))


def test_fetch_json_not_object_is_format_error(run_with):
    with pytest.raises(FormatError):
        run_with(lambda r: httpx.Response(200, json=["x"]), lambda c: fetch_doi_metadata(c, "10.1/x"))


def test_fetch_returns_message_unchecked(run_with):
    message = run_with(lambda r: httpx.Response(200, json={"message": "garbage"}), lambda c: fetch_doi_metadata(c, "10.1/x"))
    assert message == "garbage"


# ── Bibliographic Search ─────────────────────────────────────────────


def _items(*dois):
    return {"message": {"items": [{"DOI": d} for d in dois]}}


def test_search_first_hit_wins(run_with):
    doi = run_with(lambda r: httpx.Response(200, json=_items("10.1/first", "10.1/second")), lambda c: search_first_doi(c, "T"))
    assert doi == "10.1/first"


def test_search_query_parameters(run_with):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=_items())

    run_with(handler, lambda c: search_first_doi(c, "Climate & oceans"))
    params = seen[0].url.params
    assert seen[0].url.path == "/works"
    assert params["query.bibliographic"] == "Climate & oceans"
    assert params["filter"] == "type:journal-article"


def test_search_no_items(run_with):
    assert run_with(lambda r: httpx.Response(200, json=_items()), lambda c: search_first_doi(c, "T")) is None


def test_search_item_without_doi(run_with):
    payload = {"message": {"items": [{"title": ["x"]}]}}
    assert run_with(lambda r: httpx.Response(200, json=payload), lambda c: search_first_doi(c, "T")) is None


def test_search_malformed_body(run_with):
    with pytest.raises(EnrichmentFailure):
        run_with(lambda r: httpx.Response(200, json={"status": "ok"}), lambda c: search_first_doi(c, "T"))


def test_search_http_error_propagates(run_with):
    with pytest.raises(httpx.HTTPStatusError):
        run_with(lambda r: httpx.Response(500), lambda c: search_first_doi(c, "T"))
