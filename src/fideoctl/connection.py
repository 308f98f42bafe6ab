"""Connection to a running control plane."""
import logging
from typing import Optional

import httpx

from .desktop import JsonSettingsStore
from .models import WebControlSetting

logger = logging.getLogger(__name__)


class Connection:
    """Reaches the control plane recorded in the persisted web control setting."""

    def __init__(self, settings: JsonSettingsStore, timeout: float = 2.0):
        """Initialize connection.

        Args:
            settings: Store holding the last published endpoint
            timeout: Seconds to wait for the health check
        """
        self.settings = settings
        self.timeout = timeout

    @property
    def setting(self) -> WebControlSetting:
        return self.settings.setting

    @property
    def base_url(self) -> Optional[str]:
        """Base URL of the control plane, if one was published."""
        setting = self.setting
        if not setting.local_port:
            return None
        return f"http://{setting.local_ip or '127.0.0.1'}:{setting.local_port}"

    @property
    def web_control_url(self) -> Optional[str]:
        if self.base_url is None:
            return None
        return f"{self.base_url}/{self.setting.web_control_path}"

    @property
    def is_running(self) -> bool:
        """Check if the control plane answers its health check."""
        if self.base_url is None:
            return False
        try:
            with self.client() as client:
                response = client.get("/health")
        except httpx.HTTPError as e:
            logger.debug(f"Health check against {self.base_url} failed: {e}")
            return False
        return response.status_code == 200 and response.text == "OK"

    def client(self) -> httpx.Client:
        """Get HTTP client for the control plane."""
        if self.base_url is None:
            raise RuntimeError("Web control is not running")
        return httpx.Client(base_url=self.base_url, timeout=self.timeout)
