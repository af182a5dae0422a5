"""Tests for per-item DOI enrichment."""

import asyncio

import httpx

from apai.core.settings import ServiceSettings, Settings
from apai.pipeline.enrich import enrich
from apai.search.models import EnrichmentResult


def _items(*dois):
    return {"message": {"items": [{"DOI": d} for d in dois]}}


def test_first_hit_becomes_doi_link(run_with):
    result = run_with(lambda r: httpx.Response(200, json=_items("10.1/abc", "10.1/def")), lambda c: enrich(c, "T"))
    assert result == EnrichmentResult(doi_link="https://doi.org/10.1/abc")


def test_no_hit(run_with):
    result = run_with(lambda r: httpx.Response(200, json=_items()), lambda c: enrich(c, "T"))
    assert result.doi_link is None


# ── Failures Downgrade to None ───────────────────────────────────────


def test_server_error_downgraded(run_with):
    result = run_with(lambda r: httpx.Response(500), lambda c: enrich(c, "T"))
    assert result.doi_link is None


def test_connection_error_downgraded(run_with):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    assert run_with(handler, lambda c: enrich(c, "T")).doi_link is None


def test_malformed_body_downgraded(run_with):
    result = run_with(lambda r: httpx.Response(200, json={"message": {"items": "nope"}}), lambda c: enrich(c, "T"))
    assert result.doi_link is None


def test_non_json_downgraded(run_with):
    result = run_with(lambda r: httpx.Response(200, text="<html>"), lambda c: enrich(c, "T"))
    assert result.doi_link is None


def test_transport_timeout_downgraded(run_with):
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    assert run_with(handler, lambda c: enrich(c, "T")).doi_link is None


def test_slow_call_bounded_by_timeout(run_with):
    settings = Settings(services=ServiceSettings(enrichment_timeout=0.05))

    async def handler(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json=_items("10.1/late"))

    result = run_with(handler, lambda c: enrich(c, "T", settings))
    assert result.doi_link is None
