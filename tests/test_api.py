import json
import time

import pytest
from fastapi.testclient import TestClient

from tracky.codec import encode_config
from tracky.main import create_app
from tracky.models import Configuration

LIST_A = "https://lists.example/a.txt"
LIST_B = "https://lists.example/b.txt"
BODY_A = "udp://t1.example:80/announce\nudp://manual.example:1337/announce\n"
BODY_B = "# mirror\nhttps://t2.example/announce\nftp://ignored.example\n"


@pytest.fixture
def client(settings, upstream):
    app = create_app(settings, transport=upstream.transport)
    with TestClient(app) as test_client:
        yield test_client


def test_healthcheck(client) -> None:
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_raw_aggregates_encoded_config(client, upstream) -> None:
    upstream.text(LIST_A, BODY_A)
    upstream.text(LIST_B, BODY_B)
    config = Configuration(
        sources=[LIST_A, LIST_B],
        manual=["udp://manual.example:1337/announce"],
        double_newline=True,
    )

    response = client.get("/api/raw", params={"data": encode_config(config)})

    assert response.status_code == 200
    assert response.text == (
        "udp://manual.example:1337/announce\n\n"
        "udp://t1.example:80/announce\n\n"
        "https://t2.example/announce"
    )
    assert response.headers["content-type"].startswith("text/plain")
    assert response.headers["content-disposition"] == 'inline; filename="trackers_sync.txt"'
    assert response.headers["cache-control"] == "public, max-age=3600"
    assert response.headers["access-control-allow-origin"] == "*"


def test_raw_accepts_comma_separated_urls(client, upstream) -> None:
    upstream.text(LIST_A, BODY_A)

    response = client.get("/api/raw", params={"urls": f"{LIST_A},http://127.0.0.1/secret.txt,ftp://x"})

    assert response.status_code == 200
    assert response.text == "udp://t1.example:80/announce\nudp://manual.example:1337/announce"
    assert [str(request.url) for request in upstream.requests] == [LIST_A]


def test_raw_without_config(client) -> None:
    response = client.get("/api/raw")

    assert response.status_code == 400
    assert response.text == "# Error: No config provided"


def test_raw_with_garbage_payload(client) -> None:
    response = client.get("/api/raw", params={"data": "%%%not-base64%%%"})

    assert response.status_code == 400
    assert response.text == "# Error: Invalid Base64 JSON"


def test_raw_rejects_too_many_sources(client, upstream) -> None:
    config = Configuration(sources=[f"https://lists.example/{i}.txt" for i in range(21)])

    response = client.get("/api/raw", params={"data": encode_config(config)})

    assert response.status_code == 400
    assert "Too many sources" in response.text
    assert upstream.requests == []


def test_raw_drops_failing_sources(client, upstream) -> None:
    upstream.text(LIST_A, "upstream broke", status=500)
    upstream.text(LIST_B, "<html>not a list</html>")
    config = Configuration(sources=[LIST_A, LIST_B], manual=["udp://only.example:80/announce"])

    response = client.get("/api/raw", params={"data": encode_config(config, compress=False)})

    assert response.status_code == 200
    assert response.text == "udp://only.example:80/announce"


def test_raw_returns_after_slow_source_times_out(client, upstream) -> None:
    slow = "https://slow.example/list.txt"
    upstream.hang(slow)
    upstream.text(LIST_A, BODY_A)
    config = Configuration(sources=[slow, LIST_A])
    started = time.monotonic()

    response = client.get("/api/raw", params={"data": encode_config(config)})

    assert response.status_code == 200
    assert response.text == "udp://t1.example:80/announce\nudp://manual.example:1337/announce"
    assert "slow.example" not in response.text
    assert time.monotonic() - started < 3


def test_proxy_single_success(client, upstream) -> None:
    upstream.text(LIST_A, BODY_A)

    response = client.get("/api/proxy", params={"url": LIST_A})

    assert response.status_code == 200
    assert response.text == BODY_A
    assert upstream.requests[0].headers["user-agent"] == "Tracky-App/1.0 (Mozilla/5.0 Compatible)"


@pytest.mark.parametrize(
    ("url", "status", "message"),
    [
        ("not a url", 400, "Invalid URL format"),
        ("ftp://lists.example/a.txt", 403, "Blocked: Only HTTP/HTTPS allowed"),
        ("http://192.168.1.1/a.txt", 403, "Blocked: Access to private networks denied"),
        ("https://lists.example/missing.txt", 502, "Upstream Error: 404"),
    ],
)
def test_proxy_single_failures(client, url: str, status: int, message: str) -> None:
    response = client.get("/api/proxy", params={"url": url})

    assert response.status_code == status
    assert response.text == message


def test_proxy_single_content_and_timeout_failures(client, upstream) -> None:
    upstream.text(LIST_A, "<html>hi</html>")
    upstream.hang(LIST_B)

    invalid = client.get("/api/proxy", params={"url": LIST_A})
    slow = client.get("/api/proxy", params={"url": LIST_B})

    assert invalid.status_code == 422
    assert invalid.text == "Security Block: Content does not look like a tracker list"
    assert slow.status_code == 504
    assert slow.text == "Upstream Timeout"


def test_proxy_missing_url(client) -> None:
    response = client.get("/api/proxy")

    assert response.status_code == 400
    assert response.text == "Missing URL"


@pytest.mark.parametrize(
    ("headers", "status"),
    [
        ({"Origin": "https://evil.example"}, 403),
        ({"Referer": "https://evil.example/page"}, 403),
        ({"Origin": "http://testserver"}, 200),
        ({"Origin": "http://localhost:5173"}, 200),
        ({}, 200),
    ],
)
def test_proxy_origin_guard(client, upstream, headers, status: int) -> None:
    upstream.text(LIST_A, BODY_A)

    response = client.get("/api/proxy", params={"url": LIST_A}, headers=headers)

    assert response.status_code == status
    if status == 403:
        assert response.text == "Unauthorized Proxy Usage"
        assert upstream.requests == []


def _batch_expectations(payload: dict) -> None:
    assert payload[LIST_A] == {"success": True, "content": BODY_A, "status": 200}
    assert payload["http://10.0.0.1/a.txt"] == {
        "success": False,
        "error": "Blocked: Access to private networks denied",
    }
    assert payload["https://lists.example/missing.txt"] == {
        "success": False,
        "status": 404,
        "error": "Upstream Error: 404",
    }


BATCH = [LIST_A, "http://10.0.0.1/a.txt", "https://lists.example/missing.txt"]


def test_proxy_batch_get(client, upstream) -> None:
    upstream.text(LIST_A, BODY_A)

    response = client.get("/api/proxy", params={"urls": json.dumps(BATCH)}, headers={"Origin": "https://evil.example"})

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    _batch_expectations(response.json())


def test_proxy_batch_post(client, upstream) -> None:
    upstream.text(LIST_A, BODY_A)

    response = client.post("/api/proxy", json={"urls": BATCH})

    assert response.status_code == 200
    _batch_expectations(response.json())


def test_proxy_post_single(client, upstream) -> None:
    upstream.text(LIST_A, BODY_A)

    response = client.post("/api/proxy", json={"url": LIST_A})

    assert response.status_code == 200
    assert response.text == BODY_A


@pytest.mark.parametrize("urls", ["not json", '{"url": "x"}', "[1, 2]"])
def test_proxy_batch_bad_urls_param(client, urls: str) -> None:
    response = client.get("/api/proxy", params={"urls": urls})

    assert response.status_code == 400
    assert response.text == "Invalid urls parameter"


def test_proxy_batch_bad_body(client) -> None:
    response = client.post("/api/proxy", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.text == "Invalid request body"


def test_proxy_batch_too_many(client, upstream) -> None:
    urls = [f"https://lists.example/{i}.txt" for i in range(21)]

    response = client.post("/api/proxy", json={"urls": urls})

    assert response.status_code == 400
    assert response.text == "Too many sources (Max 20)"
    assert upstream.requests == []
