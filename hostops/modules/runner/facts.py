"""Host fact gathering.

``gather_facts`` identifies the OS, then runs the hostname, hardware and
default-route probes concurrently under a fail-fast join, and finally
detects the package manager and init system.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Union

from hostops.config import HostOpsConfig, get_config
from hostops.errors import (
    ConnectorError,
    FactGatheringError,
    GatherCancelled,
    HostOpsError,
    InputError,
)
from hostops.modules.connector import CancelScope, Connector, ExecOptions, OSInfo
from .detect import detect_init_system, detect_package_manager
from .models import Facts, OSFamily, ProbeCommands, probes_for

logger = logging.getLogger("hostops.runner.facts")

Fragment = Dict[str, Any]


class _Probe:
    """State shared by the concurrent probes of one gather."""

    def __init__(self, conn: Connector, os_info: OSInfo, scope: CancelScope, timeout: float):
        self.conn = conn
        self.os_info = os_info
        self.family = OSFamily.from_os_id(os_info.id)
        self.commands: ProbeCommands = probes_for(self.family)
        self.scope = scope
        self.options = ExecOptions(timeout=timeout, cancel=scope)

    def run(self, command: str) -> str:
        if self.scope.is_set():
            raise GatherCancelled(f"fact gathering cancelled before '{command}'")
        logger.debug(f"[facts] {command}")
        stdout, _ = self.conn.exec(command, self.options)
        return stdout.strip()


def _probe_hostname(probe: _Probe, fragment: Fragment) -> None:
    try:
        hostname = probe.run("hostname -f")
        if not hostname:
            raise ConnectorError("hostname -f returned no output")
    except ConnectorError as e:
        logger.debug(f"hostname -f failed ({e}), falling back to short hostname")
        try:
            hostname = probe.run("hostname")
        except ConnectorError as e2:
            raise HostOpsError(f"failed to get hostname: {e2}") from e2
    fragment['hostname'] = hostname


def _parse_int(output: str, what: str, command: str, os_id: str) -> int:
    try:
        value = int(output.strip())
    except ValueError as e:
        raise HostOpsError(
            f"failed to parse {what} output ('{output}') of '{command}' for {os_id}: {e}"
        ) from e
    if value < 0:
        raise HostOpsError(f"negative {what} value ({value}) reported by '{command}' for {os_id}")
    return value


def _probe_hardware(probe: _Probe, fragment: Fragment) -> None:
    commands = probe.commands
    os_id = probe.os_info.id
    if probe.family is OSFamily.UNKNOWN:
        fragment['warnings'].append(
            f"using default CPU/memory commands for unrecognized OS ID: {os_id}"
        )

    try:
        cpu_output = probe.run(commands.cpu)
    except ConnectorError as e:
        raise HostOpsError(f"failed to exec CPU command '{commands.cpu}' for {os_id}: {e}") from e
    fragment['total_cpu'] = _parse_int(cpu_output, "CPU", commands.cpu, os_id)

    try:
        mem_output = probe.run(commands.memory)
    except ConnectorError as e:
        raise HostOpsError(f"failed to exec memory command '{commands.memory}' for {os_id}: {e}") from e
    fragment['total_memory'] = _parse_int(mem_output, "memory", commands.memory, os_id) // commands.memory_divisor


def _probe_routes(probe: _Probe, fragment: Fragment) -> None:
    commands = probe.commands
    if not commands.ipv4_default and not commands.ipv6_default:
        fragment['warnings'].append(f"no default route detection for OS ID: {probe.os_info.id}")
        return

    for key, command, label in (
        ('ipv4_default', commands.ipv4_default, 'IPv4'),
        ('ipv6_default', commands.ipv6_default, 'IPv6'),
    ):
        if not command:
            continue
        try:
            fragment[key] = probe.run(command)
        except ConnectorError as e:
            fragment['warnings'].append(
                f"failed to get {label} default route ({probe.os_info.id}): {e}. Command: {command}"
            )


PROBES: Dict[str, Callable[[_Probe, Fragment], None]] = {
    'hostname': _probe_hostname,
    'hardware': _probe_hardware,
    'routes': _probe_routes,
}


def _build_facts(os_info: OSInfo, fragments: Dict[str, Fragment], warnings: List[str], **extra: Any) -> Facts:
    values: Dict[str, Any] = {}
    for name in PROBES:
        for key, value in fragments[name].items():
            if key != 'warnings':
                values[key] = value
    return Facts(
        os=os_info,
        kernel=os_info.kernel,
        warnings=tuple(warnings),
        **values,
        **extra,
    )


def gather_facts(
    conn: Connector,
    cancel: Optional[Union[CancelScope, threading.Event]] = None,
    config: Optional[HostOpsConfig] = None,
) -> Facts:
    """Collect a Facts snapshot from the connected host.

    Args:
        conn: Connector for the host
        cancel: Optional cancellation flag; once set, outstanding probes stop
        config: Settings to use instead of the global configuration

    Returns:
        Facts: the host snapshot. Package manager and init system are None
        (with an entry in ``Facts.warnings``) when they could not be detected.

    Raises:
        InputError: if the connector is missing or not connected
        FactGatheringError: if the OS could not be identified or a required
            probe failed; ``.facts`` then holds the partial snapshot
    """
    if conn is None:
        raise InputError("connector cannot be None for gather_facts")
    if not conn.is_connected():
        raise InputError("connector is not connected for gather_facts")

    config = config or get_config()

    try:
        os_info = conn.get_os()
    except HostOpsError as e:
        raise FactGatheringError(f"failed to get OS info: {e}") from e
    if os_info is None:
        raise FactGatheringError("connector returned no OS info")

    scope = CancelScope(parent=cancel)
    probe = _Probe(conn, os_info, scope, config.timeouts.probe)
    fragments: Dict[str, Fragment] = {name: {'warnings': []} for name in PROBES}
    first_error: Optional[BaseException] = None
    failed_probe = ''

    with ThreadPoolExecutor(max_workers=len(PROBES), thread_name_prefix="facts") as executor:
        future_to_probe = {
            executor.submit(fn, probe, fragments[name]): name
            for name, fn in PROBES.items()
        }
        for future in as_completed(future_to_probe):
            name = future_to_probe[future]
            if future.cancelled():
                continue
            error = future.exception()
            if error is None:
                continue
            if first_error is None:
                first_error = error
                failed_probe = name
                scope.cancel()
                for pending in future_to_probe:
                    pending.cancel()
            else:
                logger.debug(f"{name} probe also failed: {error}")

    warnings: List[str] = []
    for name in PROBES:
        warnings.extend(fragments[name]['warnings'])

    if first_error is not None:
        for warning in warnings:
            logger.warning(f"{os_info.id}: {warning}")
        partial = _build_facts(os_info, fragments, warnings)
        raise FactGatheringError(
            f"failed during concurrent fact gathering ({failed_probe}): {first_error}",
            facts=partial,
        ) from first_error

    hostname = fragments['hostname'].get('hostname', '')

    package_manager = None
    try:
        package_manager = detect_package_manager(conn, os_info)
    except HostOpsError as e:
        warnings.append(f"failed to detect package manager ({os_info.id}): {e}")

    init_system = None
    try:
        init_system = detect_init_system(conn, os_info)
    except HostOpsError as e:
        warnings.append(f"failed to detect init system ({os_info.id}): {e}")

    for warning in warnings:
        logger.warning(f"{hostname or os_info.id}: {warning}")

    return _build_facts(
        os_info,
        fragments,
        warnings,
        package_manager=package_manager,
        init_system=init_system,
    )
