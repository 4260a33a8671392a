"""containerd task, container and image operations via ``ctr``."""
import logging
import shlex

from hostops.config import get_config
from hostops.modules.connector import Connector
from . import lifecycle

logger = logging.getLogger("hostops.runner.containerd")

TOOL = "ctr"


def _ctr(namespace: str, args: str) -> str:
    return f"ctr -n {shlex.quote(namespace.strip())} {args}"


def _timeout() -> float:
    return get_config().timeouts.ctr


def ctr_start_container(conn: Connector, namespace: str, container_id: str) -> None:
    """Start the task of an existing container in the background."""
    lifecycle.require(conn, namespace=namespace, container_id=container_id)
    command = _ctr(namespace, f"task start -d {shlex.quote(container_id)}")
    lifecycle.transition(conn, container_id, command, stage='start', tool=TOOL, timeout=_timeout())
    logger.info(f"Started task {container_id} in namespace {namespace}")


def ctr_stop_container(conn: Connector, namespace: str, container_id: str, grace: float = 0) -> None:
    """Stop a container task: SIGTERM, wait ``grace`` seconds, then SIGKILL.

    A task that is already gone is reported as stopped.
    """
    lifecycle.require(conn, namespace=namespace, container_id=container_id)
    lifecycle.stop(
        conn,
        container_id,
        _ctr(namespace, f"task kill -s SIGTERM {shlex.quote(container_id)}"),
        forceful=_ctr(namespace, f"task kill -s SIGKILL {shlex.quote(container_id)}"),
        grace=grace,
        tool=TOOL,
        timeout=_timeout() + grace,
    )
    logger.info(f"Stopped task {container_id} in namespace {namespace}")


def ctr_remove_container(conn: Connector, namespace: str, container_id: str) -> None:
    """Remove a container, killing its task first if it still has one."""
    lifecycle.require(conn, namespace=namespace, container_id=container_id)
    lifecycle.remove(
        conn,
        container_id,
        _ctr(namespace, f"containers rm {shlex.quote(container_id)}"),
        stop_fn=lambda: ctr_stop_container(conn, namespace, container_id, grace=0),
        tool=TOOL,
        timeout=_timeout(),
    )
    logger.info(f"Removed container {container_id} from namespace {namespace}")


def ctr_remove_image(conn: Connector, namespace: str, image: str) -> None:
    lifecycle.require(conn, namespace=namespace, image=image)
    command = _ctr(namespace, f"images rm {shlex.quote(image)}")
    lifecycle.transition(conn, image, command, stage='remove', tool=TOOL, timeout=_timeout())
    logger.info(f"Removed image {image} from namespace {namespace}")
