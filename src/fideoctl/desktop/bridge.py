"""Applies messages from remote browsers to the desktop app."""
import logging
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..models import Message, MessageType, StreamConfig
from .notify import Notice, Notifier, log_notifier
from .streams import StreamConfigStore

logger = logging.getLogger(__name__)

SUCCESS_CODE = 0


class LiveUrlsResult(BaseModel):
    """What the stream fetcher returns for a live URL lookup."""
    code: int
    live_urls: List[str] = Field(default_factory=list)


GetLiveUrls = Callable[..., Awaitable[LiveUrlsResult]]
RecordControl = Callable[[str], Any]


class DesktopBridge:
    """Handler for the desktop peer.

    Stream config changes go to the local store; record/pause signals go to
    the recorder; live URL lookups are answered through `send`.
    """

    def __init__(self, streams: StreamConfigStore,
                 send: Callable[[Message], Awaitable[None]],
                 get_live_urls: Optional[GetLiveUrls] = None,
                 start_record: Optional[RecordControl] = None,
                 pause_record: Optional[RecordControl] = None,
                 notifier: Notifier = log_notifier):
        self.streams = streams
        self.send = send
        self.get_live_urls = get_live_urls
        self.start_record = start_record
        self.pause_record = pause_record
        self.notifier = notifier

    async def __call__(self, message: Message) -> None:
        kind, data = message.type, message.data

        if kind == MessageType.START_RECORD_STREAM:
            if self.start_record is not None:
                self.start_record(data)
        elif kind == MessageType.PAUSE_RECORD_STREAM:
            if self.pause_record is not None:
                self.pause_record(data)
        elif kind == MessageType.REMOVE_STREAM_CONFIG:
            self.streams.remove(data)
        elif kind == MessageType.UPDATE_STREAM_CONFIG:
            config = self._stream_config(data)
            if config is not None:
                self.streams.update(config, config.id)
        elif kind == MessageType.ADD_STREAM_CONFIG:
            config = self._stream_config(data)
            if config is not None:
                self.streams.add(config)
        elif kind == MessageType.GET_LIVE_URLS:
            await self._answer_live_urls(data or {})

    async def _answer_live_urls(self, request: dict) -> None:
        live_urls: List[str] = []
        if self.get_live_urls is not None:
            title = request.get("title", "")
            result = await self.get_live_urls(
                room_url=request.get("roomUrl"),
                proxy=request.get("proxy"),
                cookie=request.get("cookie"),
                title=title,
            )
            if result.code != SUCCESS_CODE:
                self.notifier(Notice(title=title, description=f"Failed to get live URLs (code {result.code})",
                                     destructive=True))
            live_urls = result.live_urls or []

        await self.send(Message(type=MessageType.UPDATE_LIVE_URLS, data=live_urls))

    @staticmethod
    def _stream_config(data: Any) -> Optional[StreamConfig]:
        try:
            return StreamConfig.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid stream config: {e}")
            return None
