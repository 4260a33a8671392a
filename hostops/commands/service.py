import typer

from hostops.commands.common import (
    HostOption,
    KeyOption,
    PortOption,
    UserOption,
    connect,
    console,
    host_facts,
    reporting_errors,
)
from hostops.modules.runner import service as ops

app = typer.Typer(help="Manage system services.")


@app.command("start")
def start(
    name: str = typer.Argument(..., help="Service name"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Start a service."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        ops.start_service(conn, host_facts(conn), name)
    console.print(f"✅ Service {name} started on {host}")


@app.command("stop")
def stop(
    name: str = typer.Argument(..., help="Service name"),
    grace: float = typer.Option(0, "--grace", help="Seconds to wait before a forced kill"),
    force: bool = typer.Option(False, "--force", help="Kill the service if it does not stop (systemd only)"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Stop a service."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        ops.stop_service(conn, host_facts(conn), name, grace=grace, force=force)
    console.print(f"✅ Service {name} stopped on {host}")


@app.command("restart")
def restart(
    name: str = typer.Argument(..., help="Service name"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Restart a service."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        ops.restart_service(conn, host_facts(conn), name)
    console.print(f"✅ Service {name} restarted on {host}")


@app.command("enable")
def enable(
    name: str = typer.Argument(..., help="Service name"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Enable a service at boot."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        ops.enable_service(conn, host_facts(conn), name)
    console.print(f"✅ Service {name} enabled on {host}")


@app.command("disable")
def disable(
    name: str = typer.Argument(..., help="Service name"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Disable a service at boot."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        ops.disable_service(conn, host_facts(conn), name)
    console.print(f"✅ Service {name} disabled on {host}")


@app.command("status")
def status(
    name: str = typer.Argument(..., help="Service name"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Show whether a service is active and enabled."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        facts = host_facts(conn)
        active = ops.is_service_active(conn, facts, name)
        enabled = ops.is_service_enabled(conn, facts, name)
    console.print(f"📡 {name} on {host}: {'active' if active else 'inactive'}, {'enabled' if enabled else 'disabled'}")


@app.command("daemon-reload")
def daemon_reload(
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Reload init system configuration."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        ops.daemon_reload(conn, host_facts(conn))
    console.print(f"✅ Init system configuration reloaded on {host}")
