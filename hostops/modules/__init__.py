"""
Remote host modules.
"""
from .connector import CancelScope, Connector, ExecOptions, OSInfo, StatResult
from .ssh import ConnectionPool, SSHConnector, get_ssh_pool

__all__ = [
    'CancelScope',
    'Connector',
    'ExecOptions',
    'OSInfo',
    'StatResult',
    'ConnectionPool',
    'SSHConnector',
    'get_ssh_pool',
]
