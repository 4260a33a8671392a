"""
Connector contract consumed by the runner.

A connector is a handle to one remote machine. Implementations only have to
provide ``is_connected`` and ``exec``; binary lookup, stat, OS identification
and file access are built on top of ``exec`` here so every transport gets
them for free.
"""
import logging
import shlex
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from hostops.errors import BinaryNotFoundError, CommandError, ConnectorError, InputError

logger = logging.getLogger("hostops.connector")


class CancelScope:
    """Cancellation flag shared by a group of remote calls.

    A scope may be chained to a parent (another scope or a
    ``threading.Event``); it reports cancelled when either is set.
    """

    def __init__(self, parent: Optional[Union["CancelScope", threading.Event]] = None):
        self._event = threading.Event()
        self._parent = parent

    def cancel(self) -> None:
        self._event.set()

    def is_set(self) -> bool:
        if self._event.is_set():
            return True
        return self._parent is not None and self._parent.is_set()

    def child(self) -> "CancelScope":
        return CancelScope(parent=self)


@dataclass(frozen=True)
class ExecOptions:
    """Options for a single remote command."""
    sudo: bool = False
    timeout: Optional[float] = None
    cancel: Optional[CancelScope] = None


@dataclass(frozen=True)
class OSInfo:
    """Operating system identity as reported by the connector."""
    id: str
    version_id: str = ""
    pretty_name: str = ""
    kernel: str = ""
    arch: str = ""


@dataclass(frozen=True)
class StatResult:
    exists: bool
    is_dir: bool = False


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse the KEY=value lines of /etc/os-release."""
    values: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, _, value = line.partition('=')
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]
        values[key.strip()] = value
    return values


class Connector(ABC):
    """Handle to a single remote machine."""

    @abstractmethod
    def is_connected(self) -> bool:
        """Return True if the connector can run commands."""

    @abstractmethod
    def exec(self, command: str, options: Optional[ExecOptions] = None) -> Tuple[str, str]:
        """Run a shell command and return ``(stdout, stderr)``.

        Raises:
            CommandError: the command exited with a non-zero status
            ConnectorError: the command could not be run at all
        """

    def close(self) -> None:
        pass

    def look_path(self, name: str) -> str:
        """Return the remote path of ``name``; raise BinaryNotFoundError if absent."""
        if not name or not name.strip():
            raise InputError("binary name cannot be empty")
        try:
            stdout, _ = self.exec(f"command -v {shlex.quote(name)}")
        except CommandError:
            raise BinaryNotFoundError(name) from None
        path = stdout.strip()
        if not path:
            raise BinaryNotFoundError(name)
        return path

    def stat(self, path: str) -> StatResult:
        if not path:
            raise InputError("path cannot be empty")
        q = shlex.quote(path)
        stdout, _ = self.exec(
            f"if [ -d {q} ]; then echo dir; elif [ -e {q} ]; then echo file; else echo missing; fi"
        )
        kind = stdout.strip()
        if kind == 'dir':
            return StatResult(exists=True, is_dir=True)
        if kind == 'file':
            return StatResult(exists=True, is_dir=False)
        return StatResult(exists=False)

    def get_os(self) -> OSInfo:
        """Identify the remote operating system.

        Linux hosts are identified from /etc/os-release, Darwin hosts from
        ``sw_vers``. Kernel release and machine architecture come from uname.
        """
        kernel_name = self.exec("uname -s")[0].strip()
        kernel = self.exec("uname -r")[0].strip()
        arch = self.exec("uname -m")[0].strip()

        if kernel_name == 'Darwin':
            try:
                version = self.exec("sw_vers -productVersion")[0].strip()
            except CommandError:
                version = ""
            return OSInfo(
                id='darwin',
                version_id=version,
                pretty_name=f"macOS {version}".strip(),
                kernel=kernel,
                arch=arch,
            )

        try:
            release = parse_os_release(self.exec("cat /etc/os-release")[0])
        except CommandError as e:
            raise ConnectorError(f"unable to read /etc/os-release: {e}") from e
        os_id = release.get('ID', '').lower()
        if not os_id:
            os_id = kernel_name.lower() or 'unknown'
        return OSInfo(
            id=os_id,
            version_id=release.get('VERSION_ID', ''),
            pretty_name=release.get('PRETTY_NAME', ''),
            kernel=kernel,
            arch=arch,
        )

    def read_file(self, path: str, sudo: bool = False) -> str:
        if not path:
            raise InputError("path cannot be empty")
        stdout, _ = self.exec(f"cat {shlex.quote(path)}", ExecOptions(sudo=sudo))
        return stdout

    def write_file(self, path: str, content: str, sudo: bool = False) -> None:
        if not path:
            raise InputError("path cannot be empty")
        command = f"printf '%s' {shlex.quote(content)} | tee {shlex.quote(path)} > /dev/null"
        self.exec(command, ExecOptions(sudo=sudo))
        logger.debug(f"Wrote {len(content)} bytes to {path}")
