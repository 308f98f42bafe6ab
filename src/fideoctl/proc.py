"""Process utilities."""
import logging
import subprocess
from typing import List

logger = logging.getLogger(__name__)


def run(cmd: List[str], **kwargs) -> subprocess.CompletedProcess:
    """Run a helper command synchronously with automatic logging.

    Args:
        cmd: Command to run as list of strings
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result

    Raises:
        OSError: If the executable cannot be started (e.g. not installed)
    """
    logger.debug(f"Running: {' '.join(cmd)}")

    kwargs.setdefault('capture_output', True)
    kwargs.setdefault('text', True)
    kwargs.setdefault('timeout', 5)

    try:
        result = subprocess.run(cmd, **kwargs)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug(f"Command could not run: {' '.join(cmd)} - {e}")
        raise

    if result.stderr:
        logger.debug(f"stderr: {result.stderr.strip()}")

    if result.returncode != 0:
        logger.warning(f"Command failed with exit code {result.returncode}: {' '.join(cmd)}")
    else:
        logger.debug(f"Command succeeded: {' '.join(cmd)}")

    return result
