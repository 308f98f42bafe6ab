"""Web control endpoint and persisted state models."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ControlPlaneEndpoint(BaseModel):
    """Where one running control plane can be reached."""

    model_config = ConfigDict(frozen=True)

    port: int = Field(..., description="OS assigned listening port")
    local_ip: str = Field(..., description="LAN address resolved at start")
    path_token: str = Field(..., description="URL segment the entry page lives under")

    @property
    def ws_url(self) -> str:
        return f"ws://{self.local_ip}:{self.port}"

    @property
    def http_url(self) -> str:
        return f"http://{self.local_ip}:{self.port}/{self.path_token}"


class StartResult(BaseModel):
    """Outcome of asking the host to start the control plane."""
    status: bool
    path_token: Optional[str] = None
    port: Optional[int] = None
    local_ip: Optional[str] = None


class WebControlSetting(BaseModel):
    """User facing web control state, as persisted on disk."""

    model_config = ConfigDict(populate_by_name=True)

    enable_web_control: bool = Field(False, alias="enableWebControl")
    web_control_path: str = Field("", alias="webControlPath")
    local_ip: str = Field("", alias="localIP")
    local_port: str = Field("", alias="localPort")

    @property
    def web_control_url(self) -> str:
        """URL to open in a browser, with the same fallbacks the settings sheet shows."""
        ip = self.local_ip or "127.0.0.1"
        port = self.local_port or "8080"
        return f"http://{ip}:{port}/{self.web_control_path}"
