"""Utility functions for fideoctl."""
import ipaddress
import logging
import secrets
import socket
import string
import subprocess
from pathlib import Path

import psutil

from . import proc

logger = logging.getLogger(__name__)

LOOPBACK_IP = "127.0.0.1"
PATH_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


def get_local_ip() -> str:
    """
    Find the address remote devices on the LAN can reach us at.

    Walks the host's network interfaces in the order the OS reports them and
    returns the first IPv4 address that is neither 127.0.0.1 nor on a
    loopback interface.

    Returns:
        Dotted-quad IPv4 string, or "127.0.0.1" when nothing qualifies

    Example:
        >>> get_local_ip()
        '192.168.1.23'
    """
    try:
        interfaces = psutil.net_if_addrs()
        stats = psutil.net_if_stats()
    except (OSError, psutil.Error) as e:
        logger.warning(f"Could not enumerate network interfaces: {e}")
        return LOOPBACK_IP

    for name, addresses in interfaces.items():
        nic_stats = stats.get(name)
        if nic_stats is not None and "loopback" in getattr(nic_stats, "flags", ""):
            continue

        for address in addresses:
            if address.family != socket.AF_INET or address.address == LOOPBACK_IP:
                continue
            try:
                if ipaddress.IPv4Address(address.address).is_loopback:
                    continue
            except ValueError:
                continue
            return address.address

    return LOOPBACK_IP


def get_desktop_dir() -> Path:
    """
    Locate the user's desktop directory.

    Asks `xdg-user-dir` where one is installed, otherwise assumes ~/Desktop.

    Returns:
        Path to the desktop directory (not guaranteed to exist)
    """
    try:
        result = proc.run(["xdg-user-dir", "DESKTOP"])
    except (OSError, subprocess.TimeoutExpired):
        result = None

    if result is not None and result.returncode == 0 and result.stdout.strip():
        return Path(result.stdout.strip())

    return Path.home() / "Desktop"


def generate_path_token(length: int = 8) -> str:
    """
    Generate a random web control path token.

    Args:
        length: Number of characters

    Returns:
        Lowercase alphanumeric string, e.g. "k3x9q0ab"
    """
    return "".join(secrets.choice(PATH_TOKEN_ALPHABET) for _ in range(length))
