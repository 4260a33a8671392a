"""Container commands for containerd (``ctr``) and CRI (``crictl``) runtimes."""
import typer

from hostops.commands.common import (
    HostOption,
    KeyOption,
    PortOption,
    UserOption,
    connect,
    console,
    reporting_errors,
)
from hostops.modules.runner import containerd, crictl

app = typer.Typer(help="Manage containers and images.")

RuntimeOption = typer.Option("crictl", "--runtime", "-r", help="Container tool: crictl or ctr")
NamespaceOption = typer.Option("k8s.io", "--namespace", "-n", help="containerd namespace (ctr only)")


def _check_runtime(runtime: str) -> None:
    if runtime not in ("ctr", "crictl"):
        raise typer.BadParameter("runtime must be 'ctr' or 'crictl'", param_hint="--runtime")


@app.command("start")
def start(
    container_id: str = typer.Argument(..., help="Container ID"),
    runtime: str = RuntimeOption,
    namespace: str = NamespaceOption,
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Start a container."""
    _check_runtime(runtime)
    with reporting_errors(), connect(host, user, key, port) as conn:
        if runtime == "ctr":
            containerd.ctr_start_container(conn, namespace, container_id)
        else:
            crictl.crictl_start_container(conn, container_id)
    console.print(f"✅ Container {container_id} started on {host}")


@app.command("stop")
def stop(
    container_id: str = typer.Argument(..., help="Container ID"),
    grace: int = typer.Option(0, "--grace", help="Seconds to wait before killing the container"),
    runtime: str = RuntimeOption,
    namespace: str = NamespaceOption,
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Stop a container, killing it after the grace period."""
    _check_runtime(runtime)
    with reporting_errors(), connect(host, user, key, port) as conn:
        if runtime == "ctr":
            containerd.ctr_stop_container(conn, namespace, container_id, grace=grace)
        else:
            crictl.crictl_stop_container(conn, container_id, grace=grace)
    console.print(f"✅ Container {container_id} stopped on {host}")


@app.command("rm")
def remove(
    container_id: str = typer.Argument(..., help="Container ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Force removal (crictl only)"),
    runtime: str = RuntimeOption,
    namespace: str = NamespaceOption,
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Remove a container, stopping it first if it is still running."""
    _check_runtime(runtime)
    with reporting_errors(), connect(host, user, key, port) as conn:
        if runtime == "ctr":
            containerd.ctr_remove_container(conn, namespace, container_id)
        else:
            crictl.crictl_remove_container(conn, container_id, force=force)
    console.print(f"🗑️  Container {container_id} removed on {host}")


@app.command("rmi")
def remove_image(
    image: str = typer.Argument(..., help="Image reference"),
    runtime: str = RuntimeOption,
    namespace: str = NamespaceOption,
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Remove an image."""
    _check_runtime(runtime)
    with reporting_errors(), connect(host, user, key, port) as conn:
        if runtime == "ctr":
            containerd.ctr_remove_image(conn, namespace, image)
        else:
            crictl.crictl_remove_image(conn, image)
    console.print(f"🗑️  Image {image} removed on {host}")
