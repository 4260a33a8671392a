import logging
import sys

import typer

from hostops.commands import container, facts, package, pod, service
from hostops.config import get_config
from hostops.logging import setup_logger

app = typer.Typer(help="hostops - host facts and idempotent lifecycle operations over SSH.")

app.add_typer(facts.app, name="facts", help="Gather and print facts about a host.")
app.add_typer(service.app, name="service")
app.add_typer(container.app, name="container")
app.add_typer(pod.app, name="pod")
app.add_typer(package.app, name="package")


def setup_logging(debug_mode: bool = False) -> logging.Logger:
    """Configure the hostops logger; logs go to stderr so command output stays parseable."""
    level = logging.DEBUG if debug_mode else None
    return setup_logger("hostops", level=level, config=get_config().logging, stream=sys.stderr)


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
    config: str = typer.Option(None, "--config", "-c", help="Path to a hostops YAML config file"),
):
    """hostops - host facts and idempotent lifecycle operations over SSH."""
    if config:
        get_config(config)
    logger = setup_logging(debug)
    if debug:
        logger.debug("Debug mode enabled")


if __name__ == "__main__":
    app()
