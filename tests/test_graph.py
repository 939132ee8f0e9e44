"""Tests for the Graph API client: query encoding, pagination, error payloads."""

import asyncio
import json

import httpx
import pytest

from metaops.errors import GraphApiError
from metaops.graph import GraphClient, encode_params


# =============================================================================
# encode_params
# =============================================================================


def test_encode_params():
    out = encode_params(
        {
            "fields": ["spend", "clicks"],
            "breakdowns": [],
            "filtering": [{"field": "campaign.id", "operator": "IN", "value": ["1", "2"]}],
            "time_range": {"since": "2024-01-01", "until": "2024-01-31"},
            "time_increment": 1,
            "use_account_attribution_setting": True,
            "level": None,
        }
    )
    assert out["fields"] == "spend,clicks"
    assert "breakdowns" not in out
    assert "level" not in out
    assert json.loads(out["filtering"]) == [{"field": "campaign.id", "operator": "IN", "value": ["1", "2"]}]
    assert json.loads(out["time_range"]) == {"since": "2024-01-01", "until": "2024-01-31"}
    assert out["time_increment"] == "1"
    assert out["use_account_attribution_setting"] == "true"


def test_error_from_payload_layout():
    payload = {"error": {"message": "Invalid OAuth access token.", "type": "OAuthException", "code": 190, "fbtrace_id": "AbC"}}
    err = GraphApiError.from_payload(payload, 400)
    assert str(err) == "Invalid OAuth access token. | type=OAuthException | code=190 | fbtrace_id=AbC | status=400"
    assert err.status_code == 400
    assert err.payload is payload


def test_error_from_payload_without_details():
    assert str(GraphApiError.from_payload({}, 500)) == "Meta API request failed | status=500"
    assert str(GraphApiError.from_payload({"error": "boom"}, 400)) == "boom | status=400"
    assert str(GraphApiError.from_payload([], 502)) == "Meta API request failed | status=502"


def test_error_code_zero_is_kept():
    err = GraphApiError.from_payload({"error": {"message": "Unknown", "code": 0}}, 500)
    assert str(err) == "Unknown | code=0 | status=500"


# =============================================================================
# GraphClient
# =============================================================================


def _run(handler, fn):
    async def go():
        async with GraphClient("tok", api_version="v20.0", transport=httpx.MockTransport(handler)) as client:
            return await fn(client)

    return asyncio.run(go())


def test_get_sends_token_and_version():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"id": "1", "name": "me"})

    payload = _run(handler, lambda c: c.get("/me", {"fields": ["id", "name"]}))
    assert payload == {"id": "1", "name": "me"}
    assert seen[0].url.path == "/v20.0/me"
    assert seen[0].url.params["access_token"] == "tok"
    assert seen[0].url.params["fields"] == "id,name"


def test_get_all_pages_follows_next_cursor():
    pages = {
        None: {"data": [{"n": 1}, {"n": 2}], "paging": {"next": "https://graph.facebook.com/v20.0/act_1/insights?after=p2&access_token=tok"}},
        "p2": {"data": [{"n": 3}], "paging": {"next": "https://graph.facebook.com/v20.0/act_1/insights?after=p3&access_token=tok"}},
        "p3": {"data": [], "paging": {}},
    }
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json=pages[request.url.params.get("after")])

    rows = _run(handler, lambda c: c.get_all_pages("/act_1/insights", {"level": "ad"}))
    assert rows == [{"n": 1}, {"n": 2}, {"n": 3}]
    assert len(seen) == 3
    # the first request carries our params, the cursor pages carry their own
    assert seen[0].url.params["level"] == "ad"
    assert "level" not in seen[1].url.params


def test_get_all_pages_single_page_without_paging():
    rows = _run(lambda r: httpx.Response(200, json={"data": [{"a": 1}]}), lambda c: c.get_all_pages("/x"))
    assert rows == [{"a": 1}]


def test_http_error_raises_graph_api_error():
    def handler(request):
        return httpx.Response(400, json={"error": {"message": "Bad field", "code": 100}})

    with pytest.raises(GraphApiError) as exc_info:
        _run(handler, lambda c: c.get_all_pages("/act_1/insights"))
    assert exc_info.value.status_code == 400
    assert "Bad field" in str(exc_info.value)
    assert "code=100" in str(exc_info.value)


def test_error_payload_with_ok_status_raises():
    with pytest.raises(GraphApiError):
        _run(lambda r: httpx.Response(200, json={"error": {"message": "nope"}}), lambda c: c.get("/me"))


def test_error_on_later_page_raises():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(200, json={"data": [{"n": 1}], "paging": {"next": "https://graph.facebook.com/v20.0/x?after=2"}})
        return httpx.Response(500, json={"error": {"message": "Service temporarily unavailable"}})

    with pytest.raises(GraphApiError, match="Service temporarily unavailable"):
        _run(handler, lambda c: c.get_all_pages("/x"))


def test_non_json_body_raises():
    with pytest.raises(GraphApiError):
        _run(lambda r: httpx.Response(502, text="<html>bad gateway</html>"), lambda c: c.get("/me"))


def test_post_uses_post_method():
    seen = []

    def handler(request):
        seen.append(request.method)
        return httpx.Response(200, json={"report_run_id": "9"})

    assert _run(handler, lambda c: c.post("/act_1/insights", {"level": "ad"})) == {"report_run_id": "9"}
    assert seen == ["POST"]
