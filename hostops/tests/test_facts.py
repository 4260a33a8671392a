import threading
import time

import pytest

from hostops.errors import ConnectorError, FactGatheringError, GatherCancelled, InputError
from hostops.modules.connector import OSInfo
from hostops.modules.runner.facts import gather_facts
from hostops.modules.runner.models import APT, DARWIN_PROBES, LINUX_PROBES, SYSTEMD, YUM
from hostops.tests.fakes import CENTOS, DARWIN, UBUNTU, Failure, FakeConnector


def linux_responses(**overrides):
    responses = {
        "hostname -f": "node1.example.com\n",
        LINUX_PROBES.cpu: "4\n",
        LINUX_PROBES.memory: "8192000\n",
        LINUX_PROBES.ipv4_default: "10.0.0.5\n",
        LINUX_PROBES.ipv6_default: "2001:db8::5\n",
    }
    responses.update(overrides)
    return responses


def test_ubuntu_end_to_end():
    conn = FakeConnector(
        linux_responses(**{LINUX_PROBES.ipv6_default: Failure("RTNETLINK answers: Network is unreachable", 2)}),
        binaries={"systemctl"},
        os_info=UBUNTU,
    )

    facts = gather_facts(conn)

    assert facts.os == UBUNTU
    assert facts.kernel == UBUNTU.kernel
    assert facts.hostname == "node1.example.com"
    assert facts.total_cpu == 4
    assert facts.total_memory == 8000
    assert facts.ipv4_default == "10.0.0.5"
    assert facts.ipv6_default == ""
    assert facts.package_manager is APT
    assert facts.init_system is SYSTEMD
    assert len(facts.warnings) == 1
    assert "IPv6 default route" in facts.warnings[0]
    # debian family never probes for a package manager binary
    assert conn.lookups == ["systemctl"]


def test_probes_run_unprivileged_with_probe_timeout(test_config):
    conn = FakeConnector(linux_responses(), binaries={"systemctl"})
    gather_facts(conn)
    for _, options in conn.calls:
        assert options.sudo is False
        assert options.timeout == test_config.timeouts.probe


def test_hostname_falls_back_to_short_name():
    conn = FakeConnector(
        linux_responses(**{"hostname -f": Failure("hostname: Name or service not known"), "hostname": "node1\n"}),
        binaries={"systemctl"},
    )
    assert gather_facts(conn).hostname == "node1"


def test_darwin_memory_is_normalized_to_mib():
    conn = FakeConnector(
        {
            "hostname -f": "mac.local\n",
            DARWIN_PROBES.cpu: "10\n",
            DARWIN_PROBES.memory: "17179869184\n",
            DARWIN_PROBES.ipv4_default: "192.168.1.20\n",
        },
        os_info=DARWIN,
    )
    facts = gather_facts(conn)
    assert facts.total_cpu == 10
    assert facts.total_memory == 16384
    assert facts.ipv4_default == "192.168.1.20"
    assert facts.ipv6_default == ""
    # no package manager or init system on a bare mac; both are warnings
    assert facts.package_manager is None
    assert facts.init_system is None
    assert any("package manager" in w for w in facts.warnings)
    assert any("init system" in w for w in facts.warnings)


def test_unknown_os_uses_linux_hardware_commands():
    conn = FakeConnector(
        linux_responses(),
        binaries={"systemctl", "apt-get"},
        os_info=OSInfo(id="gentoo", kernel="6.6.0"),
    )
    facts = gather_facts(conn)
    assert facts.total_memory == 8000
    assert facts.ipv4_default == ""
    assert facts.package_manager is APT
    assert any("unrecognized OS ID: gentoo" in w for w in facts.warnings)
    assert any("no default route detection" in w for w in facts.warnings)
    assert LINUX_PROBES.ipv4_default not in conn.commands


def test_gather_is_deterministic():
    first = gather_facts(FakeConnector(linux_responses(), binaries={"systemctl"}))
    second = gather_facts(FakeConnector(linux_responses(), binaries={"systemctl"}))
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_failed_probe_returns_partial_facts():
    hostname_done = threading.Event()

    def hostname(command):
        hostname_done.set()
        return "node1.example.com\n"

    def nproc(command):
        hostname_done.wait(5)
        return Failure("nproc: command not available", 126)

    conn = FakeConnector(
        linux_responses(**{"hostname -f": hostname, LINUX_PROBES.cpu: nproc}),
        binaries={"systemctl"},
    )

    with pytest.raises(FactGatheringError) as excinfo:
        gather_facts(conn)

    partial = excinfo.value.facts
    assert partial is not None
    assert partial.hostname == "node1.example.com"
    assert partial.total_cpu == 0
    assert partial.package_manager is None
    assert "hardware" in str(excinfo.value)
    # detection never runs after a failed fan-out
    assert conn.lookups == []


def test_unparsable_cpu_output_is_an_error():
    conn = FakeConnector(linux_responses(**{LINUX_PROBES.cpu: "four\n"}), binaries={"systemctl"})
    with pytest.raises(FactGatheringError) as excinfo:
        gather_facts(conn)
    assert "failed to parse CPU output" in str(excinfo.value)


def test_os_failure_has_no_partial_facts():
    conn = FakeConnector(os_error=ConnectorError("unable to read /etc/os-release"))
    with pytest.raises(FactGatheringError) as excinfo:
        gather_facts(conn)
    assert excinfo.value.facts is None
    assert conn.calls == []


def test_cancelled_gather_stops_before_remote_calls():
    cancel = threading.Event()
    cancel.set()
    conn = FakeConnector(linux_responses(), binaries={"systemctl"})

    with pytest.raises(FactGatheringError) as excinfo:
        gather_facts(conn, cancel=cancel)

    assert isinstance(excinfo.value.__cause__, GatherCancelled)
    assert excinfo.value.facts is not None
    assert conn.calls == []


@pytest.mark.parametrize("conn", [None, FakeConnector(connected=False)])
def test_requires_connected_connector(conn):
    with pytest.raises(InputError):
        gather_facts(conn)


def test_centos_package_manager_falls_back_to_yum():
    conn = FakeConnector(linux_responses(), binaries={"systemctl", "yum"}, os_info=CENTOS)
    facts = gather_facts(conn)
    assert facts.package_manager is YUM
    assert conn.lookups[:2] == ["dnf", "yum"]


def test_missing_package_manager_is_a_warning():
    conn = FakeConnector(linux_responses(), binaries={"systemctl"}, os_info=CENTOS)
    facts = gather_facts(conn)
    assert facts.package_manager is None
    assert facts.init_system is SYSTEMD
    assert any("failed to detect package manager" in w for w in facts.warnings)


def test_hardware_failure_cancels_running_siblings():
    ipv4_started = threading.Event()
    released = []

    def ipv4(command):
        ipv4_started.set()
        options = next(o for c, o in conn.calls if c == command)
        deadline = time.monotonic() + 5
        while not options.cancel.is_set() and time.monotonic() < deadline:
            time.sleep(0.01)
        released.append(options.cancel.is_set())
        return "10.0.0.5\n"

    def nproc(command):
        ipv4_started.wait(5)
        return Failure("nproc: command not available", 126)

    conn = FakeConnector(
        linux_responses(**{LINUX_PROBES.ipv4_default: ipv4, LINUX_PROBES.cpu: nproc}),
        binaries={"systemctl"},
    )

    with pytest.raises(FactGatheringError) as excinfo:
        gather_facts(conn)

    assert released == [True]
    assert "hardware" in str(excinfo.value)
    partial = excinfo.value.facts
    assert partial is not None
    assert partial.ipv4_default == "10.0.0.5"
    assert partial.ipv6_default == ""
    # route gathering stopped before its next remote call
    assert LINUX_PROBES.ipv6_default not in conn.commands
    assert conn.lookups == []
