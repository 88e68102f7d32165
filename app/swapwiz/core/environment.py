"""Host environment checks.

Privilege verification and best-effort container detection.
"""

import logging
import os
from pathlib import Path

from swapwiz.core.errors import PrivilegeError

logger = logging.getLogger(__name__)

DOCKERENV = Path("/.dockerenv")
SYSTEMD_CONTAINER = Path("/run/systemd/container")
PID1_ENVIRON = Path("/proc/1/environ")


def is_root() -> bool:
    """Check if the process runs with an effective UID of 0."""
    return os.geteuid() == 0


def require_root() -> None:
    """Ensure the process has administrative privileges.

    Raises:
        PrivilegeError: If the effective UID is not 0.
    """
    if not is_root():
        raise PrivilegeError("Please run as root (e.g., sudo swapwiz)")


def detect_container() -> bool:
    """Detect whether the process runs inside a container.

    Covers Docker, systemd-nspawn and LXC. The result is advisory only:
    swap files may or may not work in such environments.

    Returns:
        True if a container marker was found.
    """
    if DOCKERENV.exists() or SYSTEMD_CONTAINER.exists():
        return True
    try:
        environ = PID1_ENVIRON.read_bytes()
    except OSError as e:
        logger.debug("Cannot read %s: %s", PID1_ENVIRON, e)
        return False
    return any(entry.startswith(b"container=") for entry in environ.split(b"\0"))
