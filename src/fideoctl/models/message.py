"""WebSocket message envelope."""
import json
import logging
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    """Envelope types understood by the hub and the desktop peer."""
    UPDATE_STREAM_CONFIG_LIST = "UPDATE_STREAM_CONFIG_LIST"
    ADD_STREAM_CONFIG = "ADD_STREAM_CONFIG"
    UPDATE_STREAM_CONFIG = "UPDATE_STREAM_CONFIG"
    REMOVE_STREAM_CONFIG = "REMOVE_STREAM_CONFIG"
    # Relayed by the hub but only interpreted by peers
    START_RECORD_STREAM = "START_RECORD_STREAM"
    PAUSE_RECORD_STREAM = "PAUSE_RECORD_STREAM"
    GET_LIVE_URLS = "GET_LIVE_URLS"
    UPDATE_LIVE_URLS = "UPDATE_LIVE_URLS"


class Message(BaseModel):
    """A `{type, data}` text frame."""

    type: str = Field(..., description="Message type, usually a MessageType value")
    data: Any = Field(None, description="Type specific payload")

    @classmethod
    def parse(cls, raw: Union[str, bytes]) -> Optional["Message"]:
        """Parse a frame, returning None if it is not a JSON `{type, data}` object."""
        try:
            return cls.model_validate_json(raw)
        except ValidationError as e:
            logger.debug(f"Dropping malformed frame: {e.error_count()} error(s)")
            return None

    def to_json(self) -> str:
        """Serialize to a single-line JSON text frame."""
        return json.dumps({"type": self.type, "data": self.data}, ensure_ascii=False)
