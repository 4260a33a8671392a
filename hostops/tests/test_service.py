import dataclasses

import pytest

from hostops.errors import ConnectorError, InputError, OperationError
from hostops.modules.runner import service
from hostops.modules.runner.models import SYSV_DEBIAN, SYSV_RHEL
from hostops.tests.fakes import CENTOS, Failure, FakeConnector


@pytest.fixture
def sysv_debian(ubuntu_facts):
    return dataclasses.replace(ubuntu_facts, init_system=SYSV_DEBIAN)


@pytest.fixture
def sysv_rhel(ubuntu_facts):
    return dataclasses.replace(ubuntu_facts, os=CENTOS, init_system=SYSV_RHEL)


def test_start_formats_systemd_template(ubuntu_facts):
    conn = FakeConnector({"systemctl start nginx": ""})
    service.start_service(conn, ubuntu_facts, "nginx")
    assert conn.commands == ["systemctl start nginx"]
    assert conn.calls[0][1].sudo is True


def test_start_of_missing_unit_is_noop(ubuntu_facts):
    conn = FakeConnector({"systemctl start ghost": Failure("Failed to start ghost.service: Unit ghost.service not found.", 5)})
    service.start_service(conn, ubuntu_facts, "ghost")


def test_stop_of_unloaded_unit_is_noop(ubuntu_facts):
    conn = FakeConnector({"systemctl stop ghost": Failure("Failed to stop ghost.service: Unit ghost.service not loaded.", 5)})
    service.stop_service(conn, ubuntu_facts, "ghost")


def test_forced_stop_escalates_to_kill_on_systemd(ubuntu_facts):
    conn = FakeConnector({"systemctl stop nginx": Failure("Job for nginx.service canceled."), "systemctl kill -s SIGKILL nginx": ""})
    service.stop_service(conn, ubuntu_facts, "nginx", force=True)
    assert conn.commands == ["systemctl stop nginx", "systemctl kill -s SIGKILL nginx"]


def test_forced_stop_on_sysv_is_single_stage(sysv_debian):
    conn = FakeConnector({"service nginx stop": ""})
    service.stop_service(conn, sysv_debian, "nginx", force=True)
    assert conn.commands == ["service nginx stop"]


def test_restart_failure_raises(ubuntu_facts):
    conn = FakeConnector({"systemctl restart nginx": Failure("Job for nginx.service failed because the control process exited")})
    with pytest.raises(OperationError) as excinfo:
        service.restart_service(conn, ubuntu_facts, "nginx")
    assert excinfo.value.stage == "restart"
    assert excinfo.value.resource == "nginx"


def test_enable_and_disable_use_family_templates(sysv_debian, sysv_rhel):
    conn = FakeConnector({"update-rc.d nginx defaults": "", "chkconfig nginx off": ""})
    service.enable_service(conn, sysv_debian, "nginx")
    service.disable_service(conn, sysv_rhel, "nginx")
    assert conn.commands == ["update-rc.d nginx defaults", "chkconfig nginx off"]


def test_enable_requires_placeholder_on_sysv(sysv_debian):
    facts = dataclasses.replace(sysv_debian, init_system=dataclasses.replace(SYSV_DEBIAN, enable_cmd=""))
    conn = FakeConnector()
    with pytest.raises(InputError):
        service.enable_service(conn, facts, "nginx")
    assert conn.calls == []


def test_systemd_active_is_exit_code(ubuntu_facts):
    conn = FakeConnector({
        "systemctl is-active --quiet nginx": "",
        "systemctl is-active --quiet ghost": Failure("", 3),
    })
    assert service.is_service_active(conn, ubuntu_facts, "nginx") is True
    assert service.is_service_active(conn, ubuntu_facts, "ghost") is False


@pytest.mark.parametrize("output,expected", [
    (" * nginx is running\n", True),
    ("Active: active (running)\n", True),
    (" * nginx is not running\n", False),
    ("nginx is stopped\n", False),
    ("nginx dead but pid file exists\n", False),
    ("status unknown\n", False),
])
def test_sysv_active_inspects_output(sysv_debian, output, expected):
    conn = FakeConnector({"service nginx status": output})
    assert service.is_service_active(conn, sysv_debian, "nginx") is expected


def test_sysv_active_non_zero_exit_is_inactive(sysv_debian):
    conn = FakeConnector({"service nginx status": Failure("", 3, " * nginx is running")})
    assert service.is_service_active(conn, sysv_debian, "nginx") is False


def test_active_transport_error_raises(ubuntu_facts):
    conn = FakeConnector({"systemctl is-active --quiet nginx": ConnectorError("ssh: connection refused")})
    with pytest.raises(OperationError):
        service.is_service_active(conn, ubuntu_facts, "nginx")


def test_enabled_systemd(ubuntu_facts):
    conn = FakeConnector({"systemctl is-enabled --quiet nginx": ""})
    assert service.is_service_enabled(conn, ubuntu_facts, "nginx") is True


def test_enabled_rhel_uses_chkconfig(sysv_rhel):
    conn = FakeConnector({"chkconfig nginx": Failure("", 1)}, binaries={"chkconfig"})
    assert service.is_service_enabled(conn, sysv_rhel, "nginx") is False
    assert conn.commands == ["chkconfig nginx"]


def test_enabled_falls_back_to_rc_links(sysv_debian, sysv_rhel):
    command = "ls /etc/rc?.d/S* | grep -qE '/S[0-9]+nginx$'"
    conn = FakeConnector({command: ""})
    assert service.is_service_enabled(conn, sysv_debian, "nginx") is True
    # chkconfig missing on a RHEL host
    assert service.is_service_enabled(conn, sysv_rhel, "nginx") is True
    assert conn.commands == [command, command]


def test_daemon_reload(ubuntu_facts, sysv_debian):
    conn = FakeConnector({"systemctl daemon-reload": ""})
    service.daemon_reload(conn, ubuntu_facts)
    service.daemon_reload(conn, sysv_debian)
    assert conn.commands == ["systemctl daemon-reload"]


@pytest.mark.parametrize("facts_init", [None, "missing"])
def test_operations_require_init_system(ubuntu_facts, facts_init):
    facts = None if facts_init is None else dataclasses.replace(ubuntu_facts, init_system=None)
    conn = FakeConnector()
    for operation in (service.start_service, service.restart_service, service.is_service_active):
        with pytest.raises(InputError):
            operation(conn, facts, "nginx")
    assert conn.calls == []


def test_operations_require_service_name(ubuntu_facts):
    with pytest.raises(InputError):
        service.start_service(FakeConnector(), ubuntu_facts, " ")


def test_service_names_are_shell_quoted(ubuntu_facts, sysv_rhel):
    conn = FakeConnector({
        "systemctl start 'nginx; reboot'": "",
        "systemctl stop 'a b'": "",
        "systemctl kill -s SIGKILL 'a b'": "",
        "chkconfig '$(id)'": "",
    }, binaries={"chkconfig"})
    service.start_service(conn, ubuntu_facts, "nginx; reboot")
    service.stop_service(conn, ubuntu_facts, "a b", force=True)
    assert service.is_service_enabled(conn, sysv_rhel, "$(id)") is True
    assert conn.commands == [
        "systemctl start 'nginx; reboot'",
        "systemctl stop 'a b'",
        "systemctl kill -s SIGKILL 'a b'",
        "chkconfig '$(id)'",
    ]


def test_rc_link_lookup_escapes_name(sysv_debian):
    command = r"ls /etc/rc?.d/S* | grep -qE '/S[0-9]+php7\.4-fpm$'"
    conn = FakeConnector({command: Failure("", 1)})
    assert service.is_service_enabled(conn, sysv_debian, "php7.4-fpm") is False
    assert conn.commands == [command]


def test_rc_link_lookup_rejects_unsafe_name(sysv_debian):
    conn = FakeConnector()
    with pytest.raises(InputError):
        service.is_service_enabled(conn, sysv_debian, "x'; reboot; echo '")
    assert conn.calls == []
