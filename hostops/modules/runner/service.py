"""System service management.

Every operation formats the command templates of the init system found by
``gather_facts`` (``Facts.init_system``); nothing here hard-codes systemd or
sysvinit command lines except the enabled-state and force-kill probes, which
have no template.
"""
import logging
import re
import shlex
from typing import Optional

from hostops.config import get_config
from hostops.errors import CommandError, ConnectorError, InputError, OperationError
from hostops.modules.connector import Connector, ExecOptions
from . import lifecycle
from .models import Facts, InitSystemType, OSFamily, ServiceInfo

logger = logging.getLogger("hostops.runner.service")

SYSTEMD_KILL_CMD = "systemctl kill -s SIGKILL %s"
SYSTEMD_IS_ENABLED_CMD = "systemctl is-enabled --quiet %s"
CHKCONFIG_IS_ENABLED_CMD = "chkconfig %s"
RC_LINK_IS_ENABLED_CMD = "ls /etc/rc?.d/S* | grep -qE '/S[0-9]+%s$'"
# service names allowed inside the rc-link grep pattern
RC_LINK_SAFE_NAME = re.compile(r"^[A-Za-z0-9_.+@:-]+$")

# sysvinit status output is free text; negative phrases are checked first
# since "not running" and "inactive" contain the positive keywords.
NEGATIVE_STATUS_KEYWORDS = ("not running", "inactive", "stopped", "dead")
RUNNING_STATUS_KEYWORDS = ("running", "active")


def _init_system(conn: Connector, facts: Optional[Facts], name: str) -> ServiceInfo:
    lifecycle.require(conn, service_name=name)
    if facts is None or facts.init_system is None:
        raise InputError("init system facts are required for service operations")
    if facts.init_system.type is InitSystemType.UNKNOWN:
        raise InputError("init system is unknown, cannot manage services")
    return facts.init_system


def _tool(info: ServiceInfo) -> str:
    return "systemctl" if info.type is InitSystemType.SYSTEMD else "service"


def _timeout() -> float:
    return get_config().timeouts.service


def start_service(conn: Connector, facts: Facts, name: str) -> None:
    """Start a service; starting a running service is a no-op."""
    info = _init_system(conn, facts, name)
    command = info.format(info.start_cmd, name)
    lifecycle.transition(conn, name, command, stage='start', tool=_tool(info), timeout=_timeout())
    logger.info(f"Started service {name}")


def stop_service(conn: Connector, facts: Facts, name: str, grace: float = 0, force: bool = False) -> None:
    """Stop a service.

    With ``force`` on systemd hosts the stop escalates to
    ``systemctl kill -s SIGKILL`` after ``grace`` seconds. sysvinit has no
    forceful stop, so the stop command alone decides there.
    """
    info = _init_system(conn, facts, name)
    graceful = info.format(info.stop_cmd, name)
    forceful = None
    if force and info.type is InitSystemType.SYSTEMD:
        forceful = SYSTEMD_KILL_CMD % shlex.quote(name.strip())
    elif force:
        logger.debug(f"No forceful stop available for {info.type.value}, stopping {name} gracefully only")

    lifecycle.stop(
        conn,
        name,
        graceful,
        forceful=forceful,
        grace=grace,
        tool=_tool(info),
        timeout=_timeout(),
    )
    logger.info(f"Stopped service {name}")


def restart_service(conn: Connector, facts: Facts, name: str) -> None:
    info = _init_system(conn, facts, name)
    command = info.format(info.restart_cmd, name)
    lifecycle.transition(conn, name, command, stage='restart', tool=_tool(info), timeout=_timeout())
    logger.info(f"Restarted service {name}")


def _enablement(conn: Connector, facts: Facts, name: str, enable: bool) -> None:
    info = _init_system(conn, facts, name)
    template = info.enable_cmd if enable else info.disable_cmd
    stage = 'enable' if enable else 'disable'
    if info.type is InitSystemType.SYSV and '%s' not in template:
        raise InputError(f"{stage} command template for sysvinit is not set or invalid: '{template}'")
    command = info.format(template, name)
    lifecycle.transition(conn, name, command, stage=stage, tool=_tool(info), timeout=_timeout())
    logger.info(f"{stage.capitalize()}d service {name}")


def enable_service(conn: Connector, facts: Facts, name: str) -> None:
    _enablement(conn, facts, name, enable=True)


def disable_service(conn: Connector, facts: Facts, name: str) -> None:
    _enablement(conn, facts, name, enable=False)


def _status_says_running(output: str) -> bool:
    text = output.lower()
    if any(keyword in text for keyword in NEGATIVE_STATUS_KEYWORDS):
        return False
    return any(keyword in text for keyword in RUNNING_STATUS_KEYWORDS)


def _probe(conn: Connector, name: str, command: str) -> Optional[str]:
    """Run a state probe; return stdout, or None when it exited non-zero."""
    logger.debug(f"[probe] {command}")
    try:
        stdout, _ = conn.exec(command, ExecOptions(sudo=True, timeout=_timeout()))
    except CommandError as e:
        logger.debug(f"{command} exited with status {e.exit_code}")
        return None
    except ConnectorError as e:
        raise OperationError(
            f"failed to query state of {name}: command '{command}' failed: {e}",
            resource=name,
            command=command,
            stage='probe',
        ) from e
    return stdout


def is_service_active(conn: Connector, facts: Facts, name: str) -> bool:
    """Report whether a service is running.

    systemd answers with the exit code of ``is-active --quiet``. sysvinit
    status scripts are inconsistent about exit codes, so the status output
    must also mention a running keyword and no negative one.

    Raises:
        OperationError: if the status command could not be run at all
    """
    info = _init_system(conn, facts, name)
    command = info.format(info.is_active_cmd, name)
    output = _probe(conn, name, command)
    if output is None:
        return False
    if info.type is InitSystemType.SYSTEMD:
        return True
    return _status_says_running(output)


def is_service_enabled(conn: Connector, facts: Facts, name: str) -> bool:
    """Report whether a service starts at boot."""
    info = _init_system(conn, facts, name)
    service = name.strip()
    if info.type is InitSystemType.SYSTEMD:
        command = SYSTEMD_IS_ENABLED_CMD % shlex.quote(service)
    elif facts.family is OSFamily.RHEL and _has_chkconfig(conn):
        command = CHKCONFIG_IS_ENABLED_CMD % shlex.quote(service)
    else:
        if not RC_LINK_SAFE_NAME.match(service):
            raise InputError(f"invalid service name for rc link lookup: '{service}'")
        command = RC_LINK_IS_ENABLED_CMD % re.sub(r"([.+])", r"\\\1", service)
    return _probe(conn, name, command) is not None


def _has_chkconfig(conn: Connector) -> bool:
    try:
        conn.look_path("chkconfig")
    except ConnectorError:
        return False
    return True


def daemon_reload(conn: Connector, facts: Facts) -> None:
    """Reload init system configuration; a no-op where there is none to reload."""
    if conn is None:
        raise InputError("connector cannot be None")
    if facts is None or facts.init_system is None:
        raise InputError("init system facts are required for daemon-reload")
    info = facts.init_system
    if not info.daemon_reload_cmd:
        logger.debug(f"daemon-reload not applicable for {info.type.value}")
        return
    lifecycle.transition(
        conn,
        'init system',
        info.daemon_reload_cmd,
        stage='daemon-reload',
        tool=_tool(info),
        timeout=_timeout(),
    )
