"""WebSocket hub that holds the stream config list and relays changes between peers."""
import logging
from typing import Any, Callable, Dict, List, Optional, Set, Union

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from ..models import Message, MessageType

logger = logging.getLogger(__name__)


def apply_message(configs: List[Dict[str, Any]], message: Message,
                  default_directory: Callable[[], str]) -> List[Dict[str, Any]]:
    """Apply one envelope to a stream config list.

    Args:
        configs: Current list; never modified
        message: Parsed envelope. ADD payloads without a directory get one
            filled in place so the relayed copy carries it too.
        default_directory: Called for ADD payloads lacking a directory

    Returns:
        The new list (the same object when the message changes nothing)
    """
    kind, data = message.type, message.data

    if kind == MessageType.UPDATE_STREAM_CONFIG_LIST:
        if isinstance(data, list):
            return data
        logger.debug("Ignoring stream config list that is not a list")

    elif kind == MessageType.ADD_STREAM_CONFIG:
        if isinstance(data, dict):
            if not data.get("directory"):
                data["directory"] = default_directory()
            return [data] + configs

    elif kind == MessageType.UPDATE_STREAM_CONFIG:
        if isinstance(data, dict) and "id" in data:
            return [data if _config_id(c) == data.get("id") else c for c in configs]

    elif kind == MessageType.REMOVE_STREAM_CONFIG:
        return [c for c in configs if _config_id(c) != data]

    return configs


def _config_id(config: Any) -> Any:
    return config.get("id") if isinstance(config, dict) else None


class ControlPlaneSession:
    """One connected WebSocket peer."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (self.websocket.client_state == WebSocketState.CONNECTED
                and self.websocket.application_state == WebSocketState.CONNECTED)

    async def send_text(self, text: str) -> None:
        await self.websocket.send_text(text)

    async def close(self) -> None:
        if self.is_open:
            await self.websocket.close()

    def __repr__(self) -> str:
        client = self.websocket.client
        return f"<ControlPlaneSession {client.host}:{client.port}>" if client else "<ControlPlaneSession>"


class SyncHub:
    """Authoritative in-memory stream config list shared by all sessions.

    All state changes happen synchronously between awaits, so a single event
    loop needs no locking around the list.
    """

    def __init__(self, default_directory: Callable[[], str]):
        self.default_directory = default_directory
        self.configs: List[Dict[str, Any]] = []
        self.sessions: Set[ControlPlaneSession] = set()
        self.closed = False

    async def serve(self, websocket: WebSocket) -> None:
        """Run one session from accept to disconnect."""
        await websocket.accept()
        session = ControlPlaneSession(websocket)

        if self.closed:
            await session.close()
            return

        self.sessions.add(session)
        logger.info(f"WebSocket client connected: {session!r}")

        try:
            await session.send_text(Message(type=MessageType.UPDATE_STREAM_CONFIG_LIST,
                                            data=self.configs).to_json())
            while True:
                event = await websocket.receive()
                if event["type"] == "websocket.disconnect":
                    break
                raw = event.get("text")
                await self.handle(session, raw if raw is not None else event.get("bytes") or b"")
        except WebSocketDisconnect:
            pass
        except Exception as e:
            logger.warning(f"WebSocket session {session!r} failed: {e}")
        finally:
            self.sessions.discard(session)
            logger.info(f"WebSocket client disconnected: {session!r}")

    async def handle(self, sender: ControlPlaneSession, raw: Union[str, bytes]) -> None:
        """Apply a frame from `sender` and relay it to every other session.

        Frames that are not UTF-8 JSON objects with a string `type` are
        dropped without a relay and the sender stays connected. Peers never
        see an empty `{}` envelope in place of a malformed frame.
        """
        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                logger.debug("Dropping non UTF-8 frame")
                return

        message = Message.parse(raw)
        if message is None:
            return

        filled = (message.type == MessageType.ADD_STREAM_CONFIG
                  and isinstance(message.data, dict) and not message.data.get("directory"))
        self.configs = apply_message(self.configs, message, self.default_directory)

        await self.broadcast(message.to_json() if filled else raw, exclude=sender)

    async def broadcast(self, text: str, exclude: Optional[ControlPlaneSession] = None) -> None:
        """Send a frame to every open session except `exclude`."""
        for session in list(self.sessions):
            if session is exclude or not session.is_open:
                continue
            try:
                await session.send_text(text)
            except Exception as e:
                logger.debug(f"Failed to relay to {session!r}: {e}")

    async def close(self) -> None:
        """Close every session and refuse new ones."""
        self.closed = True
        for session in list(self.sessions):
            try:
                await session.close()
            except Exception as e:
                logger.debug(f"Error closing {session!r}: {e}")
        self.sessions.clear()
