from typing import List

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
from hostops.modules.runner import package as ops

app = typer.Typer(help="Manage packages with the host's package manager.")


@app.command("install")
def install(
    packages: List[str] = typer.Argument(..., help="Packages to install"),
    update: bool = typer.Option(False, "--update", help="Update the package cache first"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Install packages."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        facts = host_facts(conn)
        if update:
            ops.update_package_cache(conn, facts)
        ops.install_packages(conn, facts, *packages)
    console.print(f"📦 Installed {', '.join(packages)} on {host}")


@app.command("remove")
def remove(
    packages: List[str] = typer.Argument(..., help="Packages to remove"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Remove packages."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        ops.remove_packages(conn, host_facts(conn), *packages)
    console.print(f"🗑️  Removed {', '.join(packages)} on {host}")


@app.command("status")
def status(
    package: str = typer.Argument(..., help="Package name"),
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Show whether a package is installed."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        installed = ops.is_package_installed(conn, host_facts(conn), package)
    console.print(f"📦 {package} on {host}: {'installed' if installed else 'not installed'}")
    if not installed:
        raise typer.Exit(code=1)


@app.command("clean")
def clean(
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
):
    """Clean the package cache."""
    with reporting_errors(), connect(host, user, key, port) as conn:
        ops.clean_package_cache(conn, host_facts(conn))
    console.print(f"🧹 Package cache cleaned on {host}")
