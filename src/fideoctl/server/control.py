"""Lifecycle of one control plane server instance."""
import asyncio
import contextlib
import logging
import socket
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

import uvicorn

from ..models import ControlPlaneEndpoint
from ..utils import get_desktop_dir, get_local_ip
from .hub import SyncHub
from .main import create_app

logger = logging.getLogger(__name__)

SERVER_HOST = "0.0.0.0"
SERVER_PORT = 0  # OS assigned
STARTUP_POLL_INTERVAL = 0.01


class ControlPlaneError(Exception):
    """The control plane could not be started."""


class BindFailure(ControlPlaneError):
    """The listener could not be bound or did not come up."""


class ControlPlaneState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    LISTENING = "listening"
    STOPPED = "stopped"
    FAILED = "failed"


class _EmbeddedServer(uvicorn.Server):
    """uvicorn server that leaves the host application's signal handling alone."""

    def install_signal_handlers(self) -> None:
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


class ControlPlane:
    """HTTP listener plus sync hub, started once and stopped once.

    A started instance cannot be started again; create a new one instead.
    """

    def __init__(self, path_token: str,
                 host: str = SERVER_HOST,
                 port: int = SERVER_PORT,
                 dist_dir: Optional[Union[str, Path]] = None,
                 default_directory: Optional[Callable[[], str]] = None,
                 compress: bool = True,
                 on_error: Optional[Callable[[str], None]] = None):
        """Initialize control plane.

        Args:
            path_token: URL segment the entry page is served under
            host: Interface to bind
            port: Port to bind, 0 for an ephemeral one
            dist_dir: Web bundle directory; None uses the packaged one
            default_directory: Supplies the directory for added stream
                configs that lack one; defaults to the desktop, looked
                up once per start
            compress: Gzip HTTP responses
            on_error: Called with a message if the server dies after start
        """
        self.path_token = path_token
        self.host = host
        self.port = port
        self.dist_dir = dist_dir
        self.compress = compress
        self.on_error = on_error
        self._default_directory = default_directory
        self._desktop_dir: Optional[str] = None
        self.hub = SyncHub(self._directory_for_new_configs)

        self.state = ControlPlaneState.IDLE
        self.endpoint: Optional[ControlPlaneEndpoint] = None
        self._socket: Optional[socket.socket] = None
        self._server: Optional[_EmbeddedServer] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_listening(self) -> bool:
        return self.state == ControlPlaneState.LISTENING

    async def start(self) -> ControlPlaneEndpoint:
        """Bind, start serving and return where we can be reached.

        Raises:
            ControlPlaneError: If this instance was already started, or was
                stopped before it finished starting
            BindFailure: If the listener could not come up
        """
        if self.state != ControlPlaneState.IDLE:
            raise ControlPlaneError(f"Control plane already {self.state.value}")

        self.state = ControlPlaneState.STARTING
        try:
            if self._default_directory is None:
                # xdg-user-dir runs a subprocess; keep it off the event loop
                self._desktop_dir = str(await asyncio.to_thread(get_desktop_dir))
                self._check_not_stopped()

            self._socket = self._bind()
            port = self._socket.getsockname()[1]
            self.endpoint = ControlPlaneEndpoint(port=port, local_ip=get_local_ip(),
                                                 path_token=self.path_token)

            app = create_app(self.endpoint, self.hub, dist_dir=self.dist_dir, compress=self.compress)
            config = uvicorn.Config(app, log_config=None, lifespan="off", access_log=False)
            self._server = _EmbeddedServer(config)
            self._task = asyncio.create_task(self._server.serve(sockets=[self._socket]))

            while not self._server.started:
                await asyncio.sleep(STARTUP_POLL_INTERVAL)
                self._check_not_stopped()
                if self._task.done():
                    raise BindFailure("Control plane server exited during startup")
        except (OSError, BindFailure) as e:
            if self.state == ControlPlaneState.STOPPED:
                raise ControlPlaneError("Control plane stopped during start") from e
            logger.error(f"Failed to start control plane: {e}")
            await self._teardown()
            self.state = ControlPlaneState.FAILED
            if isinstance(e, BindFailure):
                raise
            raise BindFailure(str(e)) from e

        self.state = ControlPlaneState.LISTENING
        self._task.add_done_callback(self._on_server_exit)
        logger.info(f"Control plane listening on {self.host}:{self.endpoint.port} "
                    f"({self.endpoint.http_url})")
        return self.endpoint

    async def stop(self) -> None:
        """Close the hub and the listener. Safe to call any number of times."""
        if self.state == ControlPlaneState.STOPPED:
            return

        previous, self.state = self.state, ControlPlaneState.STOPPED
        if previous != ControlPlaneState.IDLE:
            await self._teardown()
            logger.info("Control plane stopped")

    def _check_not_stopped(self) -> None:
        if self.state == ControlPlaneState.STOPPED:
            raise ControlPlaneError("Control plane stopped during start")

    def _directory_for_new_configs(self) -> str:
        if self._default_directory is not None:
            return self._default_directory()
        return self._desktop_dir or ""

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(128)
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        return sock

    async def _teardown(self) -> None:
        await self.hub.close()

        if self._server is not None:
            self._server.should_exit = True
            self._server.force_exit = True

        task, self._task = self._task, None
        if task is not None and not task.done():
            with contextlib.suppress(Exception, asyncio.CancelledError):
                await task

        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def _on_server_exit(self, task: asyncio.Task) -> None:
        if self.state != ControlPlaneState.LISTENING:
            return

        self.state = ControlPlaneState.FAILED
        if task.cancelled():
            message = "Control plane server was cancelled"
        elif task.exception() is not None:
            message = f"Control plane server crashed: {task.exception()}"
        else:
            message = "Control plane server exited unexpectedly"

        logger.error(message)
        if self._socket is not None:
            self._socket.close()
            self._socket = None
        if self.on_error is not None:
            self.on_error(message)
