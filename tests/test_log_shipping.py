import json
import threading
from http.client import RemoteDisconnected

import pytest

from log_shipping import LogShipper, ShipResult


class _FakeResponse:
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def read(self) -> bytes:
        return b'{"ok": true}'


def test_shipping_is_skipped_without_logs_url(settings) -> None:
    shipper = LogShipper(settings)

    assert shipper.submit({"service": "costs", "type": "request"}) == ShipResult.skipped


def test_push_posts_json_to_logs_service(make_settings, monkeypatch) -> None:
    captured = {}

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["method"] = req.get_method()
        captured["body"] = json.loads(req.data.decode("utf-8"))
        captured["timeout"] = timeout
        return _FakeResponse()

    monkeypatch.setattr("log_shipping.urlopen", fake_urlopen)
    shipper = LogShipper(make_settings(logs_service_url="http://logs:3000/"))

    result = shipper.submit({"service": "costs", "type": "request", "statusCode": 200})

    assert result == ShipResult.sent
    assert captured == {
        "url": "http://logs:3000/api/logs",
        "method": "POST",
        "body": {"service": "costs", "type": "request", "statusCode": 200},
        "timeout": 0.5,
    }


def test_unreachable_logs_service_is_reported_not_raised(make_settings) -> None:
    shipper = LogShipper(make_settings(logs_service_url="http://127.0.0.1:9"))

    assert shipper.push({"service": "costs", "type": "request"}) == ShipResult.failed


@pytest.mark.parametrize(
    "error",
    [
        ConnectionResetError("reset by peer"),
        RemoteDisconnected("closed without response"),
    ],
)
def test_dropped_connection_is_reported_not_raised(
    make_settings, monkeypatch, error
) -> None:
    def fake_urlopen(req, timeout):
        raise error

    monkeypatch.setattr("log_shipping.urlopen", fake_urlopen)
    shipper = LogShipper(make_settings(logs_service_url="http://logs:3000"))

    assert shipper.submit({"service": "costs", "type": "request"}) == ShipResult.failed


def test_logs_url_without_scheme_is_reported_not_raised(make_settings) -> None:
    shipper = LogShipper(make_settings(logs_service_url="logs-service"))

    assert shipper.submit({"service": "costs", "type": "request"}) == ShipResult.failed


def test_running_shipper_queues_documents(make_settings, monkeypatch) -> None:
    delivered = threading.Event()
    received = []

    def fake_urlopen(req, timeout):
        received.append(json.loads(req.data.decode("utf-8")))
        delivered.set()
        return _FakeResponse()

    monkeypatch.setattr("log_shipping.urlopen", fake_urlopen)
    shipper = LogShipper(make_settings(logs_service_url="http://logs:3000"))
    shipper.start()
    try:
        result = shipper.submit({"service": "costs", "type": "request"})
        assert delivered.wait(timeout=5)
    finally:
        shipper.stop()

    assert result == ShipResult.queued
    assert received == [{"service": "costs", "type": "request"}]
