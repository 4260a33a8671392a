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
from hostops.modules.runner import crictl

app = typer.Typer(help="Manage CRI pod sandboxes.")


@app.command("stop")
def stop(
    pod_id: str = typer.Argument(..., help="Pod sandbox ID"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Stop a pod sandbox."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        crictl.crictl_stop_pod(conn, pod_id)
    console.print(f"✅ Pod {pod_id} stopped on {host}")


@app.command("rm")
def remove(
    pod_id: str = typer.Argument(..., help="Pod sandbox ID"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Remove a pod sandbox, stopping it first if needed."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        crictl.crictl_remove_pod(conn, pod_id)
    console.print(f"🗑️  Pod {pod_id} removed on {host}")
