import logging
from typing import Callable

import pytest

from hostops.config import HostOpsConfig, SSHConfig, TimeoutConfig, set_config
from hostops.modules.runner.models import APT, SYSTEMD, Facts
from hostops.tests.fakes import UBUNTU, FakeConnector


@pytest.fixture(autouse=True)
def test_config():
    """Use default settings with short timeouts and no transport retry delay."""
    config = HostOpsConfig(
        ssh=SSHConfig(user='deploy', key_path=None, port=22, retry_attempts=3, retry_delay=0),
        timeouts=TimeoutConfig(probe=5, service=10, ctr=10, crictl=10, package=30),
    )
    set_config(config)
    yield config
    set_config(None)
    logging.getLogger("hostops").handlers.clear()


@pytest.fixture
def make_conn() -> Callable[..., FakeConnector]:
    return FakeConnector


@pytest.fixture
def ubuntu_facts() -> Facts:
    return Facts(
        os=UBUNTU,
        hostname='node1.example.com',
        kernel=UBUNTU.kernel,
        total_cpu=4,
        total_memory=8000,
        package_manager=APT,
        init_system=SYSTEMD,
    )
