"""Owns the single live control plane for the desktop process."""
import asyncio
import logging
from pathlib import Path
from typing import Callable, List, Optional

from .config import Config, get_config
from .models import ControlPlaneEndpoint, StartResult
from .server import SERVER_HOST, SERVER_PORT, ControlPlane, ControlPlaneError
from .utils import get_desktop_dir

logger = logging.getLogger(__name__)

ErrorListener = Callable[[str], None]


class ControlPlaneHost:
    """Starts and stops control planes on behalf of the UI.

    Starting while one is alive stops the old one first, so at most one
    listener is ever bound.
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()
        self._plane: Optional[ControlPlane] = None
        self._error_listeners: List[ErrorListener] = []
        self._lock = asyncio.Lock()

    @property
    def endpoint(self) -> Optional[ControlPlaneEndpoint]:
        """Endpoint of the live control plane, if any."""
        if self._plane is not None and self._plane.is_listening:
            return self._plane.endpoint
        return None

    def add_error_listener(self, listener: ErrorListener) -> None:
        """Register a callback for failures after a successful start."""
        self._error_listeners.append(listener)

    def remove_error_listener(self, listener: ErrorListener) -> None:
        if listener in self._error_listeners:
            self._error_listeners.remove(listener)

    async def start(self, path_token: str) -> StartResult:
        """Start a control plane serving under `path_token`.

        Starts and stops are serialized, so a start never overlaps another
        start or a stop.
        """
        async with self._lock:
            logger.info(f"Starting control plane, path token: {path_token}")

            if self._plane is not None:
                logger.info("Control plane already running, stopping it first")
                await self._stop_plane()

            directory = await asyncio.to_thread(self._default_directory)
            plane = ControlPlane(
                path_token,
                host=SERVER_HOST,
                port=SERVER_PORT,
                dist_dir=self.config.server.dist_dir or None,
                default_directory=lambda: directory,
                compress=self.config.server.compress,
                on_error=self._report_error,
            )
            self._plane = plane

            try:
                endpoint = await plane.start()
            except ControlPlaneError as e:
                logger.error(f"Control plane failed to start: {e}")
                if self._plane is plane:
                    self._plane = None
                return StartResult(status=False)

        logger.info(f"port: {endpoint.port}")
        logger.info(f"localIP: {endpoint.local_ip}")
        return StartResult(status=True, path_token=path_token,
                           port=endpoint.port, local_ip=endpoint.local_ip)

    async def stop(self) -> None:
        """Stop the live control plane, if any."""
        async with self._lock:
            await self._stop_plane()

    async def _stop_plane(self) -> None:
        plane, self._plane = self._plane, None
        if plane is not None:
            await plane.stop()

    def _default_directory(self) -> str:
        if self.config.output.directory:
            return str(Path(self.config.output.directory).expanduser())
        return str(get_desktop_dir())

    def _report_error(self, message: str) -> None:
        for listener in list(self._error_listeners):
            try:
                listener(message)
            except Exception:
                logger.exception("Control plane error listener failed")
