"""Package manager and init system detection.

Both procedures are short heuristic searches over candidate binaries and
paths on the remote host. They return command-template bundles so callers
never hard-code per-platform command strings.
"""
import logging
from typing import Optional

from hostops.errors import BinaryNotFoundError, ConnectorError, DetectionError
from hostops.modules.connector import Connector, OSInfo
from .models import (
    APT,
    DNF,
    SYSTEMD,
    SYSV_DEBIAN,
    SYSV_RHEL,
    YUM,
    OSFamily,
    PackageInfo,
    ServiceInfo,
)

logger = logging.getLogger("hostops.runner.detect")

INIT_SCRIPT_DIR = "/etc/init.d"


def _has_binary(conn: Connector, name: str) -> bool:
    try:
        path = conn.look_path(name)
    except BinaryNotFoundError:
        logger.debug(f"{name} not found")
        return False
    logger.debug(f"Found {name} at {path}")
    return True


def _path_exists(conn: Connector, path: str) -> bool:
    try:
        return conn.stat(path).exists
    except ConnectorError as e:
        logger.debug(f"Could not stat {path}: {e}")
        return False


def detect_package_manager(conn: Connector, os_info: Optional[OSInfo]) -> PackageInfo:
    """Identify the package manager of the host.

    Debian-family hosts always use apt. RHEL-family hosts use dnf if present,
    otherwise yum. Any other host is probed for apt-get, dnf and yum in that
    order.

    Raises:
        DetectionError: if no supported package manager was found
    """
    if os_info is None:
        raise DetectionError("OS facts not available, cannot detect package manager")

    family = OSFamily.from_os_id(os_info.id)
    if family is OSFamily.DEBIAN:
        return APT

    if family is OSFamily.RHEL:
        if _has_binary(conn, "dnf"):
            return DNF
        if _has_binary(conn, "yum"):
            return YUM
        raise DetectionError(f"neither dnf nor yum found for OS ID {os_info.id}")

    for binary, info in (("apt-get", APT), ("dnf", DNF), ("yum", YUM)):
        if _has_binary(conn, binary):
            return info
    raise DetectionError(f"unable to detect a package manager for OS ID {os_info.id}")


def detect_init_system(conn: Connector, os_info: Optional[OSInfo]) -> ServiceInfo:
    """Identify the init system of the host.

    systemd wins whenever systemctl is present. Otherwise an /etc/init.d
    directory (with or without the ``service`` wrapper) means sysvinit, with
    enable/disable templates chosen by OS family.

    Raises:
        DetectionError: if no supported init system was found
    """
    if os_info is None:
        raise DetectionError("OS facts not available, cannot detect init system")

    if _has_binary(conn, "systemctl"):
        return SYSTEMD

    sysv = SYSV_DEBIAN if OSFamily.from_os_id(os_info.id) is OSFamily.DEBIAN else SYSV_RHEL

    if _has_binary(conn, "service") and _path_exists(conn, INIT_SCRIPT_DIR):
        return sysv
    if _path_exists(conn, INIT_SCRIPT_DIR):
        logger.debug(f"service command missing but {INIT_SCRIPT_DIR} exists, assuming sysvinit")
        return sysv

    raise DetectionError(
        f"unable to detect a supported init system (systemd, sysvinit) for OS ID {os_info.id}"
    )
