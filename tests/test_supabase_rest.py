"""Tests for the PostgREST client."""

import json

import httpx
import pytest

from cart_whisperer.adapters.database.supabase_rest import SupabaseRestClient, eq, in_
from cart_whisperer.core.errors import UpstreamAppError


def _rest(handler) -> SupabaseRestClient:
    client = httpx.AsyncClient(
        base_url="https://project.supabase.co", transport=httpx.MockTransport(handler)
    )
    return SupabaseRestClient(client, anon_key="anon")


class TestFilters:
    def test_eq(self) -> None:
        assert eq("cart-42") == "eq.cart-42"
        assert eq(True) == "eq.true"

    def test_in_quotes_reserved_characters(self) -> None:
        assert in_(["opened", "clicked"]) == "in.(opened,clicked)"
        assert in_(["a,b", 'say "hi"']) == 'in.("a,b","say \\"hi\\"")'


class TestInsert:
    @pytest.mark.asyncio
    async def test_insert_sends_row_with_keys(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["path"] = request.url.path
            captured["headers"] = request.headers
            captured["body"] = json.loads(request.content)
            return httpx.Response(201)

        rows = await _rest(handler).insert("email_events", {"status": "sent"})

        assert rows == []
        assert captured["path"] == "/rest/v1/email_events"
        assert captured["headers"]["apikey"] == "anon"
        assert captured["headers"]["Authorization"] == "Bearer anon"
        assert captured["headers"]["Prefer"] == "return=minimal"
        assert captured["body"] == {"status": "sent"}

    @pytest.mark.asyncio
    async def test_insert_returning_row(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["Prefer"] == "return=representation"
            return httpx.Response(201, json=[{"id": "tpl-1", "name": "Friendly"}])

        rows = await _rest(handler).insert(
            "ai_prompt_templates", {"name": "Friendly"}, returning=True
        )

        assert rows == [{"id": "tpl-1", "name": "Friendly"}]

    @pytest.mark.asyncio
    async def test_insert_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "relation does not exist"})

        with pytest.raises(UpstreamAppError) as exc_info:
            await _rest(handler).insert("email_events", {})

        assert exc_info.value.code == "database_insert_failed"
        assert exc_info.value.details == {"upstream_status": 404}

    @pytest.mark.asyncio
    async def test_unreachable_database(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamAppError) as exc_info:
            await _rest(handler).insert("email_events", {})

        assert exc_info.value.code == "database_unavailable"


class TestReadsAndWrites:
    @pytest.mark.asyncio
    async def test_select_passes_filters_order_and_limit(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["params"] = dict(request.url.params)
            return httpx.Response(200, json=[{"tracking_id": "t-1"}])

        rows = await _rest(handler).select(
            "email_events",
            filters={"status": eq("sent")},
            columns="tracking_id",
            order="created_at.desc",
            limit=10,
        )

        assert rows == [{"tracking_id": "t-1"}]
        assert captured["method"] == "GET"
        assert captured["params"] == {
            "select": "tracking_id",
            "status": "eq.sent",
            "order": "created_at.desc",
            "limit": "10",
        }

    @pytest.mark.asyncio
    async def test_select_with_non_list_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"rows": []})

        with pytest.raises(UpstreamAppError) as exc_info:
            await _rest(handler).select("carts")

        assert exc_info.value.code == "database_malformed_response"

    @pytest.mark.asyncio
    async def test_update_returns_matched_rows(self) -> None:
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["method"] = request.method
            captured["params"] = dict(request.url.params)
            captured["prefer"] = request.headers["Prefer"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=[])

        rows = await _rest(handler).update(
            "carts", {"recovered": True}, filters={"id": eq("cart-42")}
        )

        assert rows == []
        assert captured == {
            "method": "PATCH",
            "params": {"id": "eq.cart-42"},
            "prefer": "return=representation",
            "body": {"recovered": True},
        }

    @pytest.mark.asyncio
    async def test_delete_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "DELETE"
            return httpx.Response(401, json={"message": "permission denied"})

        with pytest.raises(UpstreamAppError) as exc_info:
            await _rest(handler).delete("ai_prompt_templates", filters={"id": eq("tpl-1")})

        assert exc_info.value.code == "database_delete_failed"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("content_range", "total"), [("0-24/573", 573), ("*/0", 0)])
    async def test_count_reads_content_range(self, content_range: str, total: int) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "HEAD"
            assert request.headers["Prefer"] == "count=exact"
            return httpx.Response(200, headers={"Content-Range": content_range})

        assert await _rest(handler).count("carts", filters={"recovered": eq(True)}) == total

    @pytest.mark.asyncio
    async def test_count_without_total(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, headers={"Content-Range": "0-24/*"})

        with pytest.raises(UpstreamAppError) as exc_info:
            await _rest(handler).count("carts")

        assert exc_info.value.code == "database_malformed_response"
