"""Data models shared by the control plane and the desktop side."""
from .message import Message, MessageType
from .stream_config import StreamConfig
from .web_control import ControlPlaneEndpoint, StartResult, WebControlSetting

__all__ = [
    "ControlPlaneEndpoint",
    "Message",
    "MessageType",
    "StartResult",
    "StreamConfig",
    "WebControlSetting",
]
