import json

import httpx
import pytest
import requests
from requests.adapters import HTTPAdapter

from limitless_auth import (
    APIError,
    HttpClient,
    HttpxTransport,
    RateLimitError,
    RequestsTransport,
    SessionCarrier,
    SessionCredential,
    Transport,
    TransportError,
)
from limitless_auth.http import extract_error_message
from limitless_auth.transport.base import TransportResponse


BASE_URL = "http://testserver"


def make_client(handler, carrier=None, **kwargs):
    transport = HttpxTransport(BASE_URL, transport=httpx.MockTransport(handler))
    return HttpClient(transport, carrier=carrier or SessionCarrier(), **kwargs)


class Recorder:
    def __init__(self, response=None):
        self.requests = []
        self.response = response or httpx.Response(200, json={"ok": True})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


# ---------------------------------------------------------------------------
# Error message extraction
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("data,expected", [
    ({"message": "Invalid signature"}, "Invalid signature"),
    ({"error": "Forbidden"}, "Forbidden"),
    ({"msg": "slow down"}, "slow down"),
    ({"message": ["price must be positive", "size is required"]}, "price must be positive | size is required"),
    ({"message": [{"field": "price", "reason": "too low", "hint": ""}]}, "field: price, reason: too low"),
    ({"errors": ["a"]}, '["a"]'),
    ("plain text failure", "plain text failure"),
    (None, "fallback"),
    ("", "fallback"),
])
def test_extract_error_message(data, expected):
    assert extract_error_message(data, "fallback") == expected


# ---------------------------------------------------------------------------
# Requests and errors
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_parses_json_and_sends_default_headers():
    recorder = Recorder(httpx.Response(200, json={"markets": [1, 2]}))
    client = make_client(recorder, additional_headers={"X-Client": "tests"})

    assert await client.get("/markets/active") == {"markets": [1, 2]}

    request = recorder.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/markets/active"
    assert request.headers["accept"] == "application/json"
    assert request.headers["x-client"] == "tests"
    # no body, no content type
    assert "content-type" not in request.headers


@pytest.mark.asyncio
async def test_post_serialises_json_body():
    recorder = Recorder(httpx.Response(201, json={"id": "o1"}))
    client = make_client(recorder)

    assert await client.post("/orders", {"price": 0.5}) == {"id": "o1"}

    request = recorder.requests[0]
    assert json.loads(request.content) == {"price": 0.5}
    assert request.headers["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_text_response_returned_as_string():
    client = make_client(Recorder(httpx.Response(200, text="0xabc")))

    assert await client.get("/auth/verify-auth") == "0xabc"


@pytest.mark.asyncio
async def test_empty_response_is_none():
    client = make_client(Recorder(httpx.Response(204)))

    assert await client.delete("/orders/o1") is None


@pytest.mark.asyncio
async def test_non_2xx_raises_api_error_with_details():
    client = make_client(Recorder(httpx.Response(400, json={"message": "Bad price"})))

    with pytest.raises(APIError) as exc:
        await client.post("/orders", {"price": -1})

    assert exc.value.status == 400
    assert exc.value.message == "Bad price"
    assert exc.value.data == {"message": "Bad price"}
    assert exc.value.url == "/orders"
    assert exc.value.method == "POST"
    assert not exc.value.is_auth_error()


@pytest.mark.asyncio
async def test_429_raises_rate_limit_error():
    client = make_client(Recorder(httpx.Response(429, json={"message": "Too many requests"})))

    with pytest.raises(RateLimitError) as exc:
        await client.get("/markets")

    assert exc.value.status == 429
    assert exc.value.message == "Too many requests"


@pytest.mark.asyncio
async def test_error_without_body_uses_status_fallback():
    client = make_client(Recorder(httpx.Response(502)))

    with pytest.raises(APIError, match="Request failed with status code 502"):
        await client.get("/markets")


@pytest.mark.asyncio
async def test_connection_failure_maps_to_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(TransportError) as exc:
        await client.get("/markets")

    assert exc.value.status is None
    assert exc.value.url == "/markets"


@pytest.mark.asyncio
async def test_timeout_maps_to_transport_error():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    client = make_client(handler)

    with pytest.raises(TransportError, match="timed out"):
        await client.get("/markets")


# ---------------------------------------------------------------------------
# Session cookie
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_active_credential_attached_as_cookie():
    recorder = Recorder()
    client = make_client(recorder)
    client.set_session_cookie("tok-1")

    await client.get("/portfolio")
    client.clear_session_cookie()
    await client.get("/portfolio")

    assert recorder.requests[0].headers["cookie"] == "limitless_session=tok-1"
    assert "cookie" not in recorder.requests[1].headers


@pytest.mark.asyncio
async def test_explicit_credential_overrides_carrier_without_swapping_it():
    recorder = Recorder()
    carrier = SessionCarrier(credential=SessionCredential("active"))
    client = make_client(recorder, carrier=carrier)

    await client.get("/auth/verify-auth", credential=SessionCredential("other"))

    assert recorder.requests[0].headers["cookie"] == "limitless_session=other"
    assert carrier.current() == SessionCredential("active")


@pytest.mark.asyncio
async def test_custom_cookie_name():
    recorder = Recorder()
    client = make_client(recorder, carrier=SessionCarrier("sid", SessionCredential("abc")))

    await client.get("/portfolio")

    assert recorder.requests[0].headers["cookie"] == "sid=abc"


@pytest.mark.asyncio
async def test_response_cookies_are_not_replayed_from_a_jar():
    recorder = Recorder(httpx.Response(
        200, json={}, headers={"set-cookie": "limitless_session=leaked; Path=/"}
    ))
    client = make_client(recorder)

    resp = await client.post_with_response("/auth/login", {})
    await client.get("/portfolio")

    assert client.extract_cookies(resp) == {"limitless_session": "leaked"}
    assert "cookie" not in recorder.requests[1].headers


def test_transport_response_cookie_parsing():
    resp = TransportResponse(
        status=200,
        set_cookie=["limitless_session=abc=def; HttpOnly; Path=/", "garbage", "other=1"],
    )

    assert resp.cookies() == {"limitless_session": "abc=def", "other": "1"}


def test_transport_response_invalid_json_falls_back_to_text():
    resp = TransportResponse(status=200, headers={"content-type": "application/json"}, body=b"not json")

    assert resp.parsed() == "not json"


@pytest.mark.asyncio
async def test_client_context_manager_closes_transport():
    closed = []

    class ClosingTransport(HttpxTransport):
        async def aclose(self):
            closed.append(True)
            await super().aclose()

    transport = ClosingTransport(BASE_URL, transport=httpx.MockTransport(Recorder()))
    async with HttpClient(transport) as client:
        await client.get("/markets")

    assert closed == [True]


# ---------------------------------------------------------------------------
# requests transport
# ---------------------------------------------------------------------------

class StubAdapter(HTTPAdapter):
    def __init__(self, status=200, body=b'{"ok": true}', headers=None, error=None):
        super().__init__()
        self.status = status
        self.body = body
        self.headers = headers or {"Content-Type": "application/json"}
        self.error = error
        self.sent = []

    def send(self, request, **kwargs):
        self.sent.append(request)
        if self.error is not None:
            raise self.error
        resp = requests.Response()
        resp.status_code = self.status
        resp.headers.update(self.headers)
        resp._content = self.body
        resp.request = request
        resp.url = request.url
        return resp


def requests_transport(adapter):
    session = requests.Session()
    session.mount("http://", adapter)
    return RequestsTransport(BASE_URL, session=session)


@pytest.mark.asyncio
async def test_requests_transport_round_trip():
    adapter = StubAdapter(headers={
        "Content-Type": "application/json",
        "Set-Cookie": "limitless_session=abc; Path=/",
    })
    client = HttpClient(requests_transport(adapter))

    resp = await client.post_with_response("/auth/login", {"client": "eoa"}, headers={"x-account": "0x1"})

    assert resp.json() == {"ok": True}
    assert resp.cookies() == {"limitless_session": "abc"}
    sent = adapter.sent[0]
    assert sent.url == BASE_URL + "/auth/login"
    assert sent.headers["x-account"] == "0x1"
    assert json.loads(sent.body) == {"client": "eoa"}


@pytest.mark.asyncio
async def test_requests_transport_error_status_raises_api_error():
    client = HttpClient(requests_transport(StubAdapter(status=503, body=b'{"message": "maintenance"}')))

    with pytest.raises(APIError) as exc:
        await client.get("/markets")

    assert exc.value.status == 503
    assert exc.value.message == "maintenance"


@pytest.mark.asyncio
async def test_requests_transport_connection_error():
    client = HttpClient(requests_transport(StubAdapter(error=requests.ConnectionError("refused"))))

    with pytest.raises(TransportError):
        await client.get("/markets")


@pytest.mark.asyncio
async def test_requests_transport_timeout():
    client = HttpClient(requests_transport(StubAdapter(error=requests.Timeout("slow"))))

    with pytest.raises(TransportError, match="timed out"):
        await client.get("/markets")


@pytest.mark.asyncio
async def test_unexpected_transport_exception_becomes_transport_error():
    class BrokenTransport(Transport):
        async def send(self, method, path, headers=None, body=None, timeout=None):
            raise RuntimeError("adapter bug")

    with pytest.raises(TransportError, match="adapter bug") as exc:
        await HttpClient(BrokenTransport()).get("/markets")

    assert exc.value.status is None
    assert exc.value.method == "GET"
