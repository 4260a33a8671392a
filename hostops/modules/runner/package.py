"""Package management through the detected package manager.

Package commands are not classified for idempotency: apt, yum and dnf already
treat installing an installed package (or removing a missing one) as a
success, so any non-zero exit is a real failure.
"""
import logging
from typing import Optional

from hostops.config import get_config
from hostops.errors import CommandError, ConnectorError, InputError, OperationError
from hostops.modules.connector import Connector, ExecOptions
from .models import Facts, PackageInfo, PackageManagerType

logger = logging.getLogger("hostops.runner.package")

APT_INSTALLED_STATUS = "install ok installed"


def _package_manager(conn: Connector, facts: Optional[Facts]) -> PackageInfo:
    if conn is None:
        raise InputError("connector cannot be None")
    if facts is None or facts.package_manager is None:
        raise InputError("package manager facts are required for package operations")
    if facts.package_manager.type is PackageManagerType.UNKNOWN:
        raise InputError("package manager is unknown, cannot manage packages")
    return facts.package_manager


def _run(conn: Connector, command: str, resource: str, stage: str, sudo: bool = True) -> str:
    logger.debug(f"[package] {command}")
    try:
        stdout, _ = conn.exec(command, ExecOptions(sudo=sudo, timeout=get_config().timeouts.package))
    except ConnectorError as e:
        stderr = getattr(e, 'stderr', '')
        raise OperationError(
            f"{stage} step failed for {resource}: command '{command}' failed: {e}",
            resource=resource,
            command=command,
            stage=stage,
            stderr=stderr,
        ) from e
    return stdout


def install_packages(conn: Connector, facts: Facts, *packages: str) -> None:
    info = _package_manager(conn, facts)
    command = info.format(info.install_cmd, *packages)
    _run(conn, command, ' '.join(packages), 'install')
    logger.info(f"Installed packages with {info.type.value}: {', '.join(packages)}")


def remove_packages(conn: Connector, facts: Facts, *packages: str) -> None:
    info = _package_manager(conn, facts)
    command = info.format(info.remove_cmd, *packages)
    _run(conn, command, ' '.join(packages), 'remove')
    logger.info(f"Removed packages with {info.type.value}: {', '.join(packages)}")


def update_package_cache(conn: Connector, facts: Facts) -> None:
    info = _package_manager(conn, facts)
    _run(conn, info.update_cmd, 'package cache', 'update')
    logger.info(f"Updated {info.type.value} package cache")


def clean_package_cache(conn: Connector, facts: Facts) -> None:
    info = _package_manager(conn, facts)
    _run(conn, info.cache_clean_cmd, 'package cache', 'clean')
    logger.info(f"Cleaned {info.type.value} package cache")


def is_package_installed(conn: Connector, facts: Facts, package: str) -> bool:
    """Report whether a single package is installed.

    ``dpkg-query`` also succeeds for packages that are known but removed, so
    on apt the status text must say the package is installed. ``rpm -q``
    answers with its exit code alone.
    """
    info = _package_manager(conn, facts)
    command = info.format(info.query_cmd, package)
    logger.debug(f"[package] {command}")
    try:
        stdout, _ = conn.exec(command, ExecOptions(timeout=get_config().timeouts.package))
    except CommandError:
        return False
    except ConnectorError as e:
        raise OperationError(
            f"failed to query package {package}: command '{command}' failed: {e}",
            resource=package,
            command=command,
            stage='probe',
        ) from e
    if info.type is PackageManagerType.APT:
        return APT_INSTALLED_STATUS in stdout
    return True
