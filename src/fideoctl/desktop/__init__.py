"""Desktop side of web control: local state, notices and the app's own peer."""
from .bridge import DesktopBridge, LiveUrlsResult
from .notify import Notice, log_notifier
from .peer import DesktopPeer
from .settings import JsonSettingsStore
from .streams import StreamConfigStore

__all__ = [
    "DesktopBridge",
    "DesktopPeer",
    "JsonSettingsStore",
    "LiveUrlsResult",
    "Notice",
    "StreamConfigStore",
    "log_notifier",
]
