"""Idempotent lifecycle operations for remote resources.

The same three shapes are used for services, containerd tasks and CRI
pods/containers:

- transition (start, restart, enable, ...): run one command; a no-op
  result is success.
- stop: graceful command, optional fixed grace wait, forceful command.
- remove: direct removal; if the resource is still in use, stop it and retry
  the removal exactly once.

Steps are strictly sequential. Nothing is retained between calls.
"""
import logging
import time
from typing import Callable, Optional

from hostops.errors import ConnectorError, HostOpsError, InputError
from hostops.modules.connector import Connector, ExecOptions
from .result import Classification, classify

logger = logging.getLogger("hostops.runner.lifecycle")


def require(conn: Connector, **identifiers: str) -> None:
    """Validate the connector and identifiers before any remote call."""
    if conn is None:
        raise InputError("connector cannot be None")
    for name, value in identifiers.items():
        if value is None or not str(value).strip():
            raise InputError(f"{name} cannot be empty")


def run_step(
    conn: Connector,
    command: str,
    tool: Optional[str] = None,
    sudo: bool = True,
    timeout: Optional[float] = None,
) -> Classification:
    """Run one command and classify its result."""
    logger.debug(f"[{tool or 'exec'}] {command}")
    try:
        conn.exec(command, ExecOptions(sudo=sudo, timeout=timeout))
    except ConnectorError as e:
        result = classify(e, getattr(e, 'stderr', ''), tool)
        logger.debug(f"[{tool or 'exec'}] {command} -> {result.outcome.value}: {e}")
        return result
    return classify(None, '', tool)


def transition(
    conn: Connector,
    resource: str,
    command: str,
    stage: str = 'start',
    tool: Optional[str] = None,
    timeout: Optional[float] = None,
) -> Classification:
    """Run a single-command transition; raise OperationError only on fatal results."""
    result = run_step(conn, command, tool=tool, timeout=timeout)
    result.raise_for(resource, command, stage=stage)
    if result.noop:
        logger.info(f"{stage} of {resource} was a no-op: {result.stderr.strip()}")
    return result


def stop(
    conn: Connector,
    resource: str,
    graceful: str,
    forceful: Optional[str] = None,
    grace: float = 0,
    tool: Optional[str] = None,
    timeout: Optional[float] = None,
) -> None:
    """Stop a resource with graceful-then-forceful escalation.

    The forceful command is sent even when the graceful one succeeded or
    reported the resource absent, since some tools report "gone" for
    resources that are not fully torn down. ``grace`` is a fixed wait
    between the two commands, not a liveness poll.

    Raises:
        OperationError: if both stages failed (the forceful error is primary),
            or the graceful stage failed and there is no forceful command
    """
    first = run_step(conn, graceful, tool=tool, timeout=timeout)
    if first.noop:
        logger.debug(f"{resource} reported absent by graceful stop, escalating anyway")

    if forceful is None:
        first.raise_for(resource, graceful, stage='graceful')
        return

    if grace > 0:
        logger.debug(f"Waiting {grace}s before forceful stop of {resource}")
        time.sleep(grace)

    second = run_step(conn, forceful, tool=tool, timeout=timeout)
    if second.ok:
        return
    if first.ok:
        logger.debug(f"Forceful stop of {resource} failed after graceful stop succeeded: {second.error}")
        return
    second.raise_for(
        resource,
        forceful,
        stage='forceful',
        note=f"graceful stop also failed: {first.error}",
    )


def remove(
    conn: Connector,
    resource: str,
    command: str,
    stop_fn: Callable[[], None],
    tool: Optional[str] = None,
    timeout: Optional[float] = None,
) -> None:
    """Remove a resource, stopping it and retrying once if it is in use.

    Raises:
        OperationError: stage ``direct`` for a removal failure that is not an
            in-use conflict (or when stopping the resource failed), stage
            ``retry`` when the single retry after stopping failed
    """
    first = run_step(conn, command, tool=tool, timeout=timeout)
    if first.ok:
        return
    if not first.in_use:
        first.raise_for(resource, command, stage='direct')

    logger.info(f"{resource} is still in use, stopping it before retrying removal")
    try:
        stop_fn()
    except HostOpsError as e:
        first.raise_for(resource, command, stage='direct', note=f"stop before retry failed: {e}")

    retry = run_step(conn, command, tool=tool, timeout=timeout)
    retry.raise_for(resource, command, stage='retry')
