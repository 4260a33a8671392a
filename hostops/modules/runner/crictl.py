"""CRI pod sandbox, container and image operations via ``crictl``.

Pods have no forceful stop: ``crictl stopp`` is the only stage. Containers
escalate from ``crictl stop --timeout N`` to ``crictl stop --timeout 0``.
"""
import logging
import shlex

from hostops.config import get_config
from hostops.modules.connector import Connector
from . import lifecycle

logger = logging.getLogger("hostops.runner.crictl")

TOOL = "crictl"


def _timeout(extra: float = 0) -> float:
    return get_config().timeouts.crictl + extra


def crictl_stop_pod(conn: Connector, pod_id: str) -> None:
    lifecycle.require(conn, pod_id=pod_id)
    lifecycle.stop(conn, pod_id, f"crictl stopp {shlex.quote(pod_id)}", tool=TOOL, timeout=_timeout())
    logger.info(f"Stopped pod {pod_id}")


def crictl_remove_pod(conn: Connector, pod_id: str) -> None:
    """Remove a pod sandbox, stopping it and retrying once if it is still running."""
    lifecycle.require(conn, pod_id=pod_id)
    lifecycle.remove(
        conn,
        pod_id,
        f"crictl rmp {shlex.quote(pod_id)}",
        stop_fn=lambda: crictl_stop_pod(conn, pod_id),
        tool=TOOL,
        timeout=_timeout(),
    )
    logger.info(f"Removed pod {pod_id}")


def crictl_start_container(conn: Connector, container_id: str) -> None:
    lifecycle.require(conn, container_id=container_id)
    lifecycle.transition(
        conn,
        container_id,
        f"crictl start {shlex.quote(container_id)}",
        stage='start',
        tool=TOOL,
        timeout=_timeout(),
    )
    logger.info(f"Started container {container_id}")


def crictl_stop_container(conn: Connector, container_id: str, grace: int = 0) -> None:
    """Stop a container, giving it ``grace`` seconds before it is killed.

    The runtime itself waits out ``grace`` inside the first ``crictl stop``,
    so there is no additional client-side wait.
    """
    lifecycle.require(conn, container_id=container_id)
    grace = max(int(grace), 0)
    lifecycle.stop(
        conn,
        container_id,
        f"crictl stop --timeout {grace} {shlex.quote(container_id)}",
        forceful=f"crictl stop --timeout 0 {shlex.quote(container_id)}",
        tool=TOOL,
        timeout=_timeout(grace),
    )
    logger.info(f"Stopped container {container_id}")


def crictl_remove_container(conn: Connector, container_id: str, force: bool = False) -> None:
    lifecycle.require(conn, container_id=container_id)
    flag = "-f " if force else ""
    command = f"crictl rm {flag}{shlex.quote(container_id)}"
    lifecycle.remove(
        conn,
        container_id,
        command,
        stop_fn=lambda: crictl_stop_container(conn, container_id, grace=0),
        tool=TOOL,
        timeout=_timeout(),
    )
    logger.info(f"Removed container {container_id}")


def crictl_remove_image(conn: Connector, image: str) -> None:
    lifecycle.require(conn, image=image)
    lifecycle.transition(conn, image, f"crictl rmi {shlex.quote(image)}", stage='remove', tool=TOOL, timeout=_timeout())
    logger.info(f"Removed image {image}")
