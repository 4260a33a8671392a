"""Options and helpers shared by the hostops commands."""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich.console import Console

from hostops.errors import FactGatheringError, HostOpsError
from hostops.modules.runner import Facts, gather_facts
from hostops.modules.ssh import SSHConnector

logger = logging.getLogger("hostops.commands")

console = Console()
err_console = Console(stderr=True)

HostOption = typer.Option(..., "--host", "-H", help="Host to connect to")
UserOption = typer.Option(None, "--user", "-u", help="SSH user (default: configured user)")
KeyOption = typer.Option(None, "--key", "-i", help="SSH private key (default: configured key)")
PortOption = typer.Option(None, "--port", "-p", help="SSH port (default: configured port)")


@contextmanager
def connect(host: str, user: Optional[str], key: Optional[str], port: Optional[int]) -> Iterator[SSHConnector]:
    """Open an SSH connector for the duration of a command."""
    conn = SSHConnector(host, username=user, key_path=key, port=port)
    conn.connect()
    try:
        yield conn
    finally:
        conn.close()


def host_facts(conn: SSHConnector) -> Facts:
    facts = gather_facts(conn)
    for warning in facts.warnings:
        err_console.print(f"[yellow]⚠️  {warning}[/yellow]")
    return facts


@contextmanager
def reporting_errors() -> Iterator[None]:
    """Turn hostops errors into a red message and exit status 1."""
    try:
        yield
    except FactGatheringError as e:
        err_console.print(f"[red]❌ Fact gathering failed:[/red] {e}")
        if e.facts is not None:
            logger.debug(f"Partial facts: {e.facts.to_dict()}")
        raise typer.Exit(code=1) from e
    except HostOpsError as e:
        err_console.print(f"[red]❌ {e}[/red]")
        raise typer.Exit(code=1) from e
