"""Tests for Connection."""
from unittest.mock import patch

import httpx

from fideoctl.connection import Connection


def mock_client(handler):
    def factory(self):
        return httpx.Client(transport=httpx.MockTransport(handler), base_url=self.base_url)
    return factory


def test_no_endpoint(settings_store):
    conn = Connection(settings_store)

    assert conn.base_url is None
    assert conn.web_control_url is None
    assert conn.is_running is False


def test_healthy(settings_store):
    settings_store.update(web_control_path="abc12345", local_ip="192.168.1.5", local_port="41234")
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text="OK")

    with patch.object(Connection, "client", mock_client(handler)):
        conn = Connection(settings_store)
        assert conn.is_running is True

    assert seen == ["http://192.168.1.5:41234/health"]
    assert conn.web_control_url == "http://192.168.1.5:41234/abc12345"


def test_unreachable(settings_store):
    settings_store.update(local_port="41234")

    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with patch.object(Connection, "client", mock_client(handler)):
        assert Connection(settings_store).is_running is False


def test_unhealthy_status(settings_store):
    settings_store.update(local_port="41234")

    with patch.object(Connection, "client", mock_client(lambda request: httpx.Response(503))):
        assert Connection(settings_store).is_running is False
