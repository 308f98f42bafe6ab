"""Control plane server: HTTP routes, sync hub and lifecycle."""
from .control import SERVER_HOST, SERVER_PORT, BindFailure, ControlPlane, ControlPlaneError, ControlPlaneState
from .hub import SyncHub

__all__ = ["SERVER_HOST", "SERVER_PORT", "BindFailure", "ControlPlane", "ControlPlaneError",
           "ControlPlaneState", "SyncHub"]
