"""Exception hierarchy for hostops."""
from typing import Any, Optional


class HostOpsError(RuntimeError):
    """Base class for all hostops errors."""
    pass


class InputError(HostOpsError, ValueError):
    """Invalid caller input, raised before any remote call is made."""
    pass


class ConnectorError(HostOpsError):
    """The connector could not run a command (transport failure)."""
    pass


class CommandError(ConnectorError):
    """A remote command ran but exited with a non-zero status."""

    def __init__(self, command: str, exit_code: int, stdout: str = "", stderr: str = ""):
        self.command = command
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        detail = stderr.strip() or stdout.strip()
        message = f"command '{command}' exited with status {exit_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class BinaryNotFoundError(ConnectorError, LookupError):
    """A binary could not be found in the remote PATH."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"executable '{name}' not found in PATH")


class GatherCancelled(HostOpsError):
    """Fact gathering was cancelled before a probe could run."""
    pass


class FactGatheringError(HostOpsError):
    """Fact gathering failed.

    ``facts`` holds whatever was collected before the failure (``None`` if
    the OS could not be identified), so callers may still use partial data.
    """

    def __init__(self, message: str, facts: Optional[Any] = None):
        super().__init__(message)
        self.facts = facts


class DetectionError(HostOpsError):
    """A capability (package manager, init system) could not be detected."""
    pass


class OperationError(HostOpsError):
    """A state-changing remote operation failed.

    ``stage`` names the step of the operation that failed, e.g. ``graceful``
    or ``forceful`` for a stop, ``direct`` or ``retry`` for a removal.
    """

    def __init__(
        self,
        message: str,
        resource: str = "",
        command: str = "",
        stage: str = "",
        stderr: str = "",
    ):
        self.resource = resource
        self.command = command
        self.stage = stage
        self.stderr = stderr
        super().__init__(message)
