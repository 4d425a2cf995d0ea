import httpx
from structlog.testing import capture_logs

from solar_relay.config import get_settings


async def test_metrics_snapshot_counts_requests_and_sessions(api_client, fusion) -> None:
    m1 = await api_client.get("/metrics")
    assert m1.status_code == 200
    payload1 = m1.json()
    assert "counters" in payload1
    assert "latency_ms" in payload1
    assert payload1["sessions"] == 0

    # /metrics itself should NOT affect http_requests_total.
    m1b = await api_client.get("/metrics")
    assert m1b.json()["counters"]["http_requests_total"] == payload1["counters"]["http_requests_total"]

    fusion.on("login", fusion.login_response(cookies=["JSESSIONID=abc"], csrf_token="tok1"))
    login = await api_client.post("/login", json={"username": "alice", "password": "pw1"})
    assert login.status_code == 200

    payload2 = (await api_client.get("/metrics")).json()
    assert payload2["counters"]["http_requests_total"] == payload1["counters"]["http_requests_total"] + 1
    assert payload2["counters"]["upstream_calls_total"] == 1
    assert payload2["counters"]["upstream_failures_total"] == 0
    assert payload2["latency_ms"]["upstream_call_ms"]["count"] == 1
    assert payload2["sessions"] == 1


async def test_upstream_failures_are_counted(api_client, fusion) -> None:
    fusion.on("login", fusion.login_response(cookies=["JSESSIONID=abc"], csrf_token="tok1"))
    await api_client.post("/login", json={"username": "alice", "password": "pw1"})
    fusion.on("getStationList", httpx.Response(504, text="timeout"))

    resp = await api_client.get("/plants/alice")
    assert resp.status_code == 500

    counters = (await api_client.get("/metrics")).json()["counters"]
    assert counters["upstream_calls_total"] == 2
    assert counters["upstream_failures_total"] == 1


async def test_metrics_endpoint_can_be_disabled(api_client, monkeypatch) -> None:
    monkeypatch.setenv("ENABLE_METRICS_ENDPOINT", "false")
    get_settings.cache_clear()

    resp = await api_client.get("/metrics")
    assert resp.status_code == 404


async def test_health_checks_are_not_counted(api_client) -> None:
    before = (await api_client.get("/metrics")).json()["counters"]["http_requests_total"]

    for _ in range(3):
        assert (await api_client.get("/health")).status_code == 200

    after = (await api_client.get("/metrics")).json()["counters"]["http_requests_total"]
    assert after == before


async def test_server_errors_are_logged_at_warning(api_client, fusion) -> None:
    fusion.on("login", fusion.login_response(cookies=["JSESSIONID=abc"], csrf_token="tok1"))
    await api_client.post("/login", json={"username": "alice", "password": "pw1"})
    fusion.on("getStationList", httpx.Response(502, text="bad gateway"))

    with capture_logs() as logs:
        resp = await api_client.get("/plants/alice")

    assert resp.status_code == 500
    [access] = [entry for entry in logs if entry["event"] == "http_request"]
    assert access["log_level"] == "warning"
    assert access["status_code"] == 500
