"""
SSH connector using the native OpenSSH client.

Each command runs in its own ``ssh`` subprocess. Exit status 255 is
reserved by ssh for connection failures; those are retried with exponential
backoff, while any other non-zero status is the remote command's own and is
raised as a CommandError straight away.
"""
import logging
import shlex
import subprocess
import threading
import time
from typing import Dict, List, Optional, Tuple

from tenacity import (
    retry_if_exception_type,
    Retrying,
    stop_after_attempt,
    wait_exponential,
)

from hostops.config import SSHConfig, get_config
from hostops.errors import CommandError, ConnectorError
from hostops.modules.connector import CancelScope, Connector, ExecOptions

logger = logging.getLogger("hostops.ssh")

SSH_TRANSPORT_EXIT = 255
CONNECTION_TEST_MARKER = "HOSTOPS_SSH_TEST_CONNECTION_SUCCESS"
# how often a running command checks its cancel scope
POLL_INTERVAL = 0.2


class SSHTransportError(ConnectorError):
    """ssh could not reach or authenticate to the host."""
    pass


class SSHConnector(Connector):
    """Connector for one host over OpenSSH."""

    def __init__(
        self,
        host: str,
        username: Optional[str] = None,
        key_path: Optional[str] = None,
        port: Optional[int] = None,
        config: Optional[SSHConfig] = None,
    ):
        """Initialize the connector; call ``connect`` before running commands.

        Args:
            host: Remote host to connect to
            username: Username for authentication (default: configured user)
            key_path: Path to SSH private key (default: configured key)
            port: SSH port (default: configured port)
            config: SSH settings to use instead of the global configuration
        """
        self.config = config or get_config().ssh
        self.host = host
        self.username = username or self.config.user
        self.key_path = key_path or self.config.key_path
        self.port = port or self.config.port
        self._connected = False

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @property
    def target(self) -> str:
        return f"{self.username}@{self.host}"

    def _ssh_argv(self) -> List[str]:
        argv = [
            'ssh',
            '-T',
            '-o', 'BatchMode=yes',
            '-o', 'StrictHostKeyChecking=no',
            '-o', 'UserKnownHostsFile=/dev/null',
            '-o', 'LogLevel=ERROR',
            '-o', 'ServerAliveInterval=5',
            '-o', 'ServerAliveCountMax=3',
            '-o', f'ConnectTimeout={self.config.connect_timeout}',
            '-p', str(self.port),
        ]
        if self.key_path:
            argv.extend(['-i', self.key_path])
        argv.append(self.target)
        return argv

    def _remote_command(self, command: str, sudo: bool) -> str:
        if sudo and self.username != 'root':
            return f"sudo -n bash -c {shlex.quote(command)}"
        return command

    def connect(self) -> None:
        """Verify that the host accepts a non-interactive login.

        Raises:
            ConnectorError: if the test command did not succeed
        """
        logger.info(f"Testing SSH connection to {self.target}:{self.port}")
        try:
            stdout, _ = self._exec_with_retry(
                f"echo {CONNECTION_TEST_MARKER}",
                ExecOptions(timeout=self.config.connect_timeout + 20),
            )
        except ConnectorError as e:
            raise ConnectorError(f"SSH test connection to {self.host} failed: {e}") from e
        if CONNECTION_TEST_MARKER not in stdout:
            raise ConnectorError(f"SSH test connection to {self.host} returned unexpected output")
        self._connected = True
        logger.info(f"SSH connection to {self.target} established")

    def is_connected(self) -> bool:
        return self._connected

    def close(self) -> None:
        self._connected = False

    def exec(self, command: str, options: Optional[ExecOptions] = None) -> Tuple[str, str]:
        if not self._connected:
            raise ConnectorError(f"not connected to {self.host}")
        return self._exec_with_retry(command, options or ExecOptions())

    def _exec_with_retry(self, command: str, options: ExecOptions) -> Tuple[str, str]:
        retrying = Retrying(
            stop=stop_after_attempt(max(self.config.retry_attempts, 1)),
            wait=wait_exponential(multiplier=self.config.retry_delay, max=30),
            retry=retry_if_exception_type(SSHTransportError),
            before_sleep=lambda state: logger.debug(
                f"SSH transport to {self.host} failed (attempt {state.attempt_number}), retrying"
            ),
            reraise=True,
        )
        return retrying(self._exec_once, command, options)

    def _exec_once(self, command: str, options: ExecOptions) -> Tuple[str, str]:
        argv = self._ssh_argv() + [self._remote_command(command, options.sudo)]
        timeout = options.timeout or self.config.command_timeout
        logger.debug(f"[{self.host}] {command}")

        try:
            proc = subprocess.Popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise ConnectorError(f"failed to start ssh for {self.host}: {e}") from e

        stdout, stderr = self._wait(proc, command, timeout, options.cancel)

        if proc.returncode == SSH_TRANSPORT_EXIT:
            raise SSHTransportError(
                f"ssh to {self.target}:{self.port} failed: {stderr.strip() or 'connection error'}"
            )
        if proc.returncode != 0:
            raise CommandError(command, proc.returncode, stdout, stderr)
        return stdout, stderr

    def _wait(
        self,
        proc: subprocess.Popen,
        command: str,
        timeout: float,
        cancel: Optional[CancelScope],
    ) -> Tuple[str, str]:
        deadline = time.monotonic() + timeout
        while True:
            if cancel is not None and cancel.is_set():
                proc.kill()
                proc.communicate()
                raise ConnectorError(f"command '{command}' on {self.host} was cancelled")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                proc.kill()
                proc.communicate()
                raise ConnectorError(f"command '{command}' on {self.host} timed out after {timeout} seconds")
            try:
                return proc.communicate(timeout=min(POLL_INTERVAL, remaining))
            except subprocess.TimeoutExpired:
                continue


class ConnectionPool:
    """Thread-safe cache of connected SSHConnectors keyed by user@host:port."""

    def __init__(self):
        self.connections: Dict[str, SSHConnector] = {}
        self.lock = threading.RLock()

    def get_connection(
        self,
        host: str,
        username: Optional[str] = None,
        key_path: Optional[str] = None,
        port: Optional[int] = None,
    ) -> SSHConnector:
        """Return a connected SSHConnector, reusing a live one when possible.

        The lock only guards the dictionary. Liveness checks and new
        connections run without it, so one slow host does not block callers
        of every other host.
        """
        conn = SSHConnector(host, username=username, key_path=key_path, port=port)
        connection_id = f"{conn.target}:{conn.port}"

        with self.lock:
            existing = self.connections.get(connection_id)
        if existing is not None and existing.is_connected():
            try:
                existing.exec("true", ExecOptions(timeout=10))
                return existing
            except ConnectorError as e:
                logger.debug(f"Connection test failed for {connection_id}, reconnecting: {e}")
                existing.close()
                with self.lock:
                    if self.connections.get(connection_id) is existing:
                        del self.connections[connection_id]

        logger.debug(f"Creating new SSH connection to {connection_id}")
        conn.connect()
        with self.lock:
            current = self.connections.get(connection_id)
            if current is not None and current is not existing and current.is_connected():
                # another caller connected first
                conn.close()
                return current
            self.connections[connection_id] = conn
            return conn

    def close_all(self) -> None:
        with self.lock:
            for conn in self.connections.values():
                conn.close()
            self.connections.clear()


# Global instance
ssh_pool = ConnectionPool()


def get_ssh_pool() -> ConnectionPool:
    """Get the global SSH connection pool."""
    return ssh_pool
