"""Keeps the control plane in line with the user's web control toggle."""
import asyncio
import logging
from typing import Optional

from websockets.exceptions import WebSocketException

from .config import Config, get_config
from .desktop import DesktopBridge, DesktopPeer, JsonSettingsStore, Notice, StreamConfigStore, log_notifier
from .desktop.notify import Notifier
from .host import ControlPlaneHost
from .models import Message, MessageType
from .utils import generate_path_token

logger = logging.getLogger(__name__)

DEFAULT_RETRY_STEP = 10.0


class Supervisor:
    """Starts, stops and restarts web control for the desktop app.

    Failed starts are retried after 10s, 20s, 30s and so on until a start
    succeeds or the user turns web control off. Whether to retry is decided
    when the timer fires, so a retry scheduled before the user disabled web
    control does nothing.
    """

    def __init__(self, host: ControlPlaneHost,
                 settings: JsonSettingsStore,
                 streams: StreamConfigStore,
                 peer: Optional[DesktopPeer] = None,
                 notifier: Notifier = log_notifier,
                 retry_step: float = DEFAULT_RETRY_STEP,
                 path_length: int = 8):
        self.host = host
        self.settings = settings
        self.streams = streams
        self.notifier = notifier
        self.retry_step = retry_step
        self.path_length = path_length

        if peer is None:
            peer = DesktopPeer()
            peer.handler = DesktopBridge(streams, peer.send, notifier=notifier)
        self.peer = peer

        self.retry_delay = 0.0
        self._wants_enabled = False
        self._retry_handle: Optional[asyncio.TimerHandle] = None
        self._retry_task: Optional[asyncio.Task] = None
        self._teardown_task: Optional[asyncio.Task] = None

        self.host.add_error_listener(self.handle_fatal_error)

    @classmethod
    def from_config(cls, streams: StreamConfigStore, config: Optional[Config] = None,
                    notifier: Notifier = log_notifier, **bridge_options) -> "Supervisor":
        """Build a supervisor, host and peer from configuration.

        Args:
            streams: The app's stream config list
            config: Configuration; defaults to the process-wide one
            notifier: Receives user visible notices
            **bridge_options: get_live_urls, start_record and pause_record
                collaborators for remote requests
        """
        config = config or get_config()
        peer = DesktopPeer()
        peer.handler = DesktopBridge(streams, peer.send, notifier=notifier, **bridge_options)
        return cls(
            ControlPlaneHost(config),
            JsonSettingsStore(config.control.settings_file),
            streams,
            peer=peer,
            notifier=notifier,
            retry_step=config.control.retry_step,
            path_length=config.control.path_length,
        )

    @property
    def wants_enabled(self) -> bool:
        """Whether the user currently wants web control on."""
        return self._wants_enabled

    @property
    def retry_pending(self) -> bool:
        return self._retry_handle is not None

    async def enable(self, path_token: Optional[str] = None) -> bool:
        """Turn web control on.

        Args:
            path_token: Path to serve under; defaults to the saved one, or a
                freshly generated one if none was saved

        Returns:
            True if the control plane is up; on False a retry is scheduled
        """
        self._wants_enabled = True
        await self._settle_background_tasks()
        self._cancel_retry()
        self.retry_delay = 0.0

        token = path_token or self.settings.setting.web_control_path
        if not token:
            token = generate_path_token(self.path_length)
            logger.info(f"Generated web control path: {token}")
        self.settings.update(web_control_path=token)

        return await self._attempt()

    async def disable(self) -> bool:
        """Turn web control off. Always succeeds."""
        self._wants_enabled = False
        await self._settle_background_tasks()
        self._cancel_retry()
        self.retry_delay = 0.0

        await self._teardown()
        self.notifier(Notice(title="Web control stopped",
                             description="Remote devices can no longer reach this app"))
        return True

    def handle_fatal_error(self, message: str) -> None:
        """Error listener for failures after a successful start."""
        logger.error(f"Web control failed: {message}")
        self._wants_enabled = False
        self._cancel_retry()
        self.notifier(Notice(title="Web control stopped unexpectedly", description=message, destructive=True))
        self._teardown_task = asyncio.get_running_loop().create_task(self._teardown())
        self._teardown_task.add_done_callback(self._log_task_failure)

    async def _attempt(self) -> bool:
        token = self.settings.setting.web_control_path
        self.settings.update(enable_web_control=True)

        result = await self.host.start(token)
        if result.status:
            try:
                await self.peer.connect(f"ws://127.0.0.1:{result.port}")
                await self.peer.send(Message(type=MessageType.UPDATE_STREAM_CONFIG_LIST,
                                             data=self.streams.as_payload()))
            except (OSError, WebSocketException, asyncio.TimeoutError) as e:
                logger.error(f"Desktop peer could not join the control plane: {e}")
                result.status = False

        if not self._wants_enabled:
            # Turned off while this attempt was in flight
            await self._teardown()
            return False

        if not result.status:
            await self._on_start_failed()
            return False

        self.retry_delay = 0.0
        setting = self.settings.update(enable_web_control=True, local_ip=result.local_ip,
                                       local_port=str(result.port))
        logger.info(f"Web control available at {setting.web_control_url}")
        self.notifier(Notice(title="Web control started", description=setting.web_control_url))
        return True

    async def _on_start_failed(self) -> None:
        await self.host.stop()
        await self.peer.close()
        self.settings.update(enable_web_control=False, local_ip="", local_port="")

        self.retry_delay += self.retry_step
        self.notifier(Notice(title="Failed to start web control",
                             description=f"Will retry in {self.retry_delay:g} seconds",
                             destructive=True))
        logger.info(f"Retrying web control start in {self.retry_delay:g}s")
        self._retry_handle = asyncio.get_running_loop().call_later(self.retry_delay, self._fire_retry)

    def _fire_retry(self) -> None:
        self._retry_handle = None
        if not self._wants_enabled or not self.settings.setting.web_control_path:
            logger.debug("Skipping stale web control retry")
            return
        self._retry_task = asyncio.get_running_loop().create_task(self._attempt())
        self._retry_task.add_done_callback(self._log_task_failure)

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None

    async def _settle_background_tasks(self) -> None:
        """Wait for an in-flight retry attempt or fatal-error teardown."""
        current = asyncio.current_task()
        pending = [task for task in (self._retry_task, self._teardown_task)
                   if task is not None and not task.done() and task is not current]
        self._retry_task = self._teardown_task = None
        if pending:
            await asyncio.wait(pending)

    @staticmethod
    def _log_task_failure(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Web control background task failed: {task.exception()!r}")

    async def _teardown(self) -> None:
        await self.host.stop()
        await self.peer.close()
        self.settings.update(enable_web_control=False, local_ip="", local_port="")
