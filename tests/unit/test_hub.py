"""Tests for the sync hub."""
import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from fideoctl.models import Message
from fideoctl.server.hub import ControlPlaneSession, SyncHub, apply_message

DESKTOP = "/home/me/Desktop"


def default_directory():
    return DESKTOP


def msg(type, data=None):
    return Message(type=type, data=data)


class FakeWebSocket:
    """Enough of starlette's WebSocket for ControlPlaneSession."""

    def __init__(self, name, fail=False):
        self.client = None
        self.name = name
        self.fail = fail
        self.sent = []
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("peer went away")
        self.sent.append(text)

    async def close(self):
        self.application_state = WebSocketState.DISCONNECTED


def connect(hub, name, **kwargs):
    session = ControlPlaneSession(FakeWebSocket(name, **kwargs))
    hub.sessions.add(session)
    return session


class TestApplyMessage:
    """Tests for apply_message."""

    def test_add_prepends(self):
        configs = [{"id": "a", "directory": "/x"}]

        result = apply_message(configs, msg("ADD_STREAM_CONFIG", {"id": "b", "directory": "/y"}), default_directory)

        assert len(result) == 2
        assert result[0] == {"id": "b", "directory": "/y"}
        assert configs == [{"id": "a", "directory": "/x"}]

    @pytest.mark.parametrize("data", [{"id": "s1"}, {"id": "s1", "directory": ""}, {"id": "s1", "directory": None}])
    def test_add_fills_missing_directory(self, data):
        result = apply_message([], msg("ADD_STREAM_CONFIG", data), default_directory)

        assert result == [{"id": "s1", "directory": DESKTOP}]

    def test_add_ignores_non_object(self):
        configs = [{"id": "a"}]
        assert apply_message(configs, msg("ADD_STREAM_CONFIG", "oops"), default_directory) is configs

    def test_update_replaces_matching_entry(self):
        configs = [{"id": "a", "title": "old"}, {"id": "b"}]

        result = apply_message(configs, msg("UPDATE_STREAM_CONFIG", {"id": "a", "title": "new"}), default_directory)

        assert result == [{"id": "a", "title": "new"}, {"id": "b"}]

    def test_update_unknown_id_is_noop(self):
        configs = [{"id": "a"}, {"id": "b"}]

        result = apply_message(configs, msg("UPDATE_STREAM_CONFIG", {"id": "zzz"}), default_directory)

        assert result == configs
        assert len(result) == 2

    def test_remove_by_bare_id(self):
        configs = [{"id": "a"}, {"id": "b"}]

        once = apply_message(configs, msg("REMOVE_STREAM_CONFIG", "a"), default_directory)
        twice = apply_message(once, msg("REMOVE_STREAM_CONFIG", "a"), default_directory)

        assert once == [{"id": "b"}]
        assert twice == once

    def test_replace_list(self):
        new_list = [{"id": "x"}, {"id": "y"}]

        assert apply_message([{"id": "a"}], msg("UPDATE_STREAM_CONFIG_LIST", new_list), default_directory) == new_list

    def test_replace_list_requires_list(self):
        configs = [{"id": "a"}]
        assert apply_message(configs, msg("UPDATE_STREAM_CONFIG_LIST", {"id": "x"}), default_directory) is configs

    @pytest.mark.parametrize("type", ["GET_LIVE_URLS", "START_RECORD_STREAM", "SOMETHING_ELSE"])
    def test_pass_through_types_do_not_mutate(self, type):
        configs = [{"id": "a"}]
        assert apply_message(configs, msg(type, "a"), default_directory) is configs


class TestSyncHub:
    """Tests for relaying between sessions."""

    def test_relays_to_everyone_but_sender(self):
        hub = SyncHub(default_directory)
        a, b, c = connect(hub, "a"), connect(hub, "b"), connect(hub, "c")
        raw = '{"type": "REMOVE_STREAM_CONFIG", "data": "s1"}'

        asyncio.run(hub.handle(a, raw))

        assert a.websocket.sent == []
        assert b.websocket.sent == [raw]
        assert c.websocket.sent == [raw]

    def test_relays_unrecognized_types_verbatim(self):
        hub = SyncHub(default_directory)
        a, b = connect(hub, "a"), connect(hub, "b")
        raw = '{"type":"UPDATE_LIVE_URLS","data":["http://x/live.flv"]}'

        asyncio.run(hub.handle(a, raw))

        assert b.websocket.sent == [raw]
        assert hub.configs == []

    def test_add_relays_filled_directory(self):
        hub = SyncHub(default_directory)
        a, b = connect(hub, "a"), connect(hub, "b")

        asyncio.run(hub.handle(a, '{"type": "ADD_STREAM_CONFIG", "data": {"id": "s1"}}'))

        assert hub.configs == [{"id": "s1", "directory": DESKTOP}]
        assert json.loads(b.websocket.sent[0]) == {
            "type": "ADD_STREAM_CONFIG", "data": {"id": "s1", "directory": DESKTOP}
        }

    def test_malformed_frames_are_dropped(self):
        hub = SyncHub(default_directory)
        hub.configs = [{"id": "a"}]
        a, b = connect(hub, "a"), connect(hub, "b")

        asyncio.run(hub.handle(a, "definitely not json"))
        asyncio.run(hub.handle(a, b"\xff\xfe"))

        assert hub.configs == [{"id": "a"}]
        assert b.websocket.sent == []

    def test_bytes_frames_are_decoded(self):
        hub = SyncHub(default_directory)
        a, b = connect(hub, "a"), connect(hub, "b")

        asyncio.run(hub.handle(a, b'{"type": "REMOVE_STREAM_CONFIG", "data": "s1"}'))

        assert b.websocket.sent == ['{"type": "REMOVE_STREAM_CONFIG", "data": "s1"}']

    def test_failing_peer_does_not_block_others(self):
        hub = SyncHub(default_directory)
        a = connect(hub, "a")
        broken = connect(hub, "broken", fail=True)
        b = connect(hub, "b")

        asyncio.run(hub.broadcast("hello", exclude=a))

        assert b.websocket.sent == ["hello"]
        assert broken.websocket.sent == []

    def test_skips_sessions_that_are_not_open(self):
        hub = SyncHub(default_directory)
        closing = connect(hub, "closing")
        closing.websocket.client_state = WebSocketState.DISCONNECTED
        b = connect(hub, "b")

        asyncio.run(hub.broadcast("hello"))

        assert closing.websocket.sent == []
        assert b.websocket.sent == ["hello"]

    def test_close_closes_sessions(self):
        hub = SyncHub(default_directory)
        a, b = connect(hub, "a"), connect(hub, "b")

        asyncio.run(hub.close())

        assert hub.closed
        assert hub.sessions == set()
        assert not a.is_open and not b.is_open
