"""Tests for the OSV lookup service and its TTL cache."""
import json
from unittest.mock import patch

import httpx
import pytest

from osv_lookup.app.cache import build_cache_key
from osv_lookup.app.models import OSVResult, PackageIdentity
from osv_lookup.app.service import OSVLookupService, infer_ecosystem, parse_osv_response
from src.core.fallback import FallbackProvider


OSV_BODY = {
    "vulns": [
        {
            "id": "GHSA-aaaa",
            "summary": "Prototype pollution",
            "severity": [{"type": "CVSS_V3", "score": "CVSS:3.1/AV:N/AC:L/PR:N/UI:N/S:U/C:H/I:H/A:H"}],
            "database_specific": {"severity": "HIGH"},
            "references": [{"type": "WEB", "url": "https://example.com/advisory"}],
        },
        {
            "id": "GHSA-bbbb",
            "severity": [{"type": "CVSS_V3", "score": 9.8}],
        },
    ]
}


def counting_transport(calls, body=OSV_BODY, status=200):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(json.loads(request.content))
        return httpx.Response(status, json=body)

    return httpx.MockTransport(handler)


class TestParsing:
    def test_parse_response_extracts_records(self):
        result = parse_osv_response(OSV_BODY)
        assert result.vulnerable is True
        assert [vuln.id for vuln in result.vulns] == ["GHSA-aaaa", "GHSA-bbbb"]
        first, second = result.vulns
        assert first.severity == 7.5  # vector string falls back to label
        assert first.url == "https://example.com/advisory"
        assert first.summary == "Prototype pollution"
        assert second.severity == 9.8
        assert result.max_severity == 9.8

    def test_parse_empty_body_is_clean(self):
        assert parse_osv_response({}) == OSVResult()
        assert parse_osv_response(None) == OSVResult()

    def test_records_without_id_are_dropped(self):
        result = parse_osv_response({"vulns": [{"summary": "no id"}]})
        assert result.vulnerable is False

    @pytest.mark.parametrize(
        "name,expected",
        [("lodash", "npm"), ("Django", "PyPI"), ("typing_extensions", "PyPI"), ("zope.interface", "PyPI")],
    )
    def test_infer_ecosystem(self, name, expected):
        assert infer_ecosystem(name) == expected


class TestCache:
    def test_key_is_lowercased_and_qualified(self):
        assert build_cache_key("Flask", "PyPI") == "PyPI:flask"

    def test_entry_expires_lazily(self, cache, fake_clock):
        cache.set("lodash", "npm", OSVResult(), ttl_seconds=10)
        fake_clock.advance(10)
        assert cache.get("lodash", "npm") == OSVResult()
        fake_clock.advance(0.5)
        assert cache.get("lodash", "npm") is None
        assert len(cache) == 0

    def test_ecosystems_do_not_collide(self, cache):
        cache.set("requests", "npm", OSVResult(), ttl_seconds=10)
        assert cache.get("requests", "PyPI") is None


class TestLookupService:
    @pytest.mark.asyncio
    async def test_lookup_posts_name_and_ecosystem(self, settings, cache):
        calls = []
        service = OSVLookupService(cache=cache, settings=settings, transport=counting_transport(calls))

        result = await service.lookup(PackageIdentity(name="lodash", ecosystem="npm"))

        assert result.vulnerable is True
        assert calls == [{"package": {"name": "lodash", "ecosystem": "npm"}}]

    @pytest.mark.asyncio
    async def test_second_lookup_within_ttl_is_served_from_cache(self, settings, cache, fake_clock):
        calls = []
        service = OSVLookupService(cache=cache, settings=settings, transport=counting_transport(calls))

        first = await service.query("lodash", "npm")
        fake_clock.advance(settings.osv_cache_ttl_seconds - 1)
        second = await service.query("lodash", "npm")

        assert first == second
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_lookup_after_ttl_expiry_calls_again(self, settings, cache, fake_clock):
        calls = []
        service = OSVLookupService(cache=cache, settings=settings, transport=counting_transport(calls))

        await service.query("lodash", "npm")
        fake_clock.advance(settings.osv_cache_ttl_seconds + 1)
        await service.query("lodash", "npm")

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_http_error_degrades_to_clean_result_with_short_ttl(self, settings, cache, fake_clock):
        calls = []
        service = OSVLookupService(
            cache=cache, settings=settings, transport=counting_transport(calls, body={}, status=503)
        )

        result = await service.query("lodash", "npm")
        assert result == OSVResult()

        await service.query("lodash", "npm")
        assert len(calls) == 1

        fake_clock.advance(settings.osv_negative_ttl_seconds + 1)
        await service.query("lodash", "npm")
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_timeout_degrades_to_clean_result(self, settings, cache):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        service = OSVLookupService(cache=cache, settings=settings, transport=httpx.MockTransport(handler))
        assert await service.query("lodash", "npm") == OSVResult()

    @pytest.mark.asyncio
    async def test_failure_result_comes_from_fallback_provider(self, settings, cache):
        service = OSVLookupService(cache=cache, settings=settings, transport=counting_transport([], body={}, status=500))

        with patch.object(
            FallbackProvider, "fallback_osv_result", wraps=FallbackProvider.fallback_osv_result
        ) as fallback:
            result = await service.query("lodash", "npm")

        fallback.assert_called_once_with("lodash")
        assert result.vulnerable is False
        assert cache.get("lodash", "npm") == result

    @pytest.mark.asyncio
    async def test_external_calls_disabled_skips_network(self, settings, cache):
        calls = []
        disabled = settings.model_copy(update={"allow_external_calls": False})
        service = OSVLookupService(cache=cache, settings=disabled, transport=counting_transport(calls))

        assert await service.query("lodash", "npm") == OSVResult()
        assert calls == []
        assert len(cache) == 0
