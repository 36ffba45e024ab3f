"""Tests for the requests-backed transport."""
import pytest
import requests

from reviewsync.transport import HttpResponse, RequestsTransport, TransportError


class StubResponse:
    status_code = 200
    text = '{"data": true}'


class StubSession:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return StubResponse()


def test_get_returns_status_and_body():
    session = StubSession()
    resp = RequestsTransport(session=session).get("https://example.test/?a=1", timeout=3)
    assert resp == HttpResponse(status_code=200, body='{"data": true}')
    assert session.calls == [("https://example.test/?a=1", 3)]


def test_connection_error_becomes_transport_error():
    transport = RequestsTransport(session=StubSession(requests.ConnectionError("Connection refused")))
    with pytest.raises(TransportError, match="Connection refused"):
        transport.get("https://example.test/")


def test_timeout_becomes_transport_error():
    transport = RequestsTransport(session=StubSession(requests.Timeout()))
    with pytest.raises(TransportError, match="timed out after 2.5s"):
        transport.get("https://example.test/", timeout=2.5)


def test_invalid_url_becomes_transport_error():
    transport = RequestsTransport(session=StubSession(requests.exceptions.InvalidURL("bad url")))
    with pytest.raises(TransportError):
        transport.get("not a url")


def test_default_transport_uses_requests_get(monkeypatch):
    calls = []

    def fake_get(url, timeout=None):
        calls.append((url, timeout))
        return StubResponse()

    monkeypatch.setattr(requests, "get", fake_get)
    transport = RequestsTransport()
    assert transport.session is None
    assert transport.get("https://example.test/", timeout=5).body == '{"data": true}'
    assert calls == [("https://example.test/", 5)]
