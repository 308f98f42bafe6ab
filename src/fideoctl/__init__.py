"""Local web control plane for a desktop stream recorder."""

__version__ = "0.1.0"
