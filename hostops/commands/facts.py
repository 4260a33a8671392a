import json

import typer
import yaml

from hostops.commands.common import (
    HostOption,
    KeyOption,
    PortOption,
    UserOption,
    connect,
    host_facts,
    reporting_errors,
)

app = typer.Typer()


@app.callback(invoke_without_command=True)
def facts(
    host: str = HostOption,
    user: str = UserOption,
    key: str = KeyOption,
    port: int = PortOption,
    output: str = typer.Option("yaml", "--output", "-o", help="Output format: yaml or json"),
):
    """Gather and print facts about a host."""
    if output not in ("yaml", "json"):
        raise typer.BadParameter("output must be 'yaml' or 'json'", param_hint="--output")

    with reporting_errors(), connect(host, user, key, port) as conn:
        data = host_facts(conn).to_dict()

    if output == "json":
        typer.echo(json.dumps(data, indent=2))
    else:
        typer.echo(yaml.safe_dump(data, default_flow_style=False, sort_keys=False))
