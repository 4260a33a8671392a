import pytest

from hostops.errors import BinaryNotFoundError, CommandError, ConnectorError, InputError
from hostops.modules.connector import CancelScope, Connector, parse_os_release

OS_RELEASE = '''NAME="Ubuntu"
VERSION_ID="22.04"
# comment
ID=ubuntu
PRETTY_NAME='Ubuntu 22.04.4 LTS'
'''


class ScriptedConnector(Connector):
    """Connector that only implements exec, to exercise the built-in helpers."""

    def __init__(self, responses):
        self.responses = responses
        self.commands = []

    def is_connected(self):
        return True

    def exec(self, command, options=None):
        self.commands.append(command)
        response = self.responses.get(command)
        if response is None:
            raise CommandError(command, 1, stderr="failed")
        return response, ''


def test_parse_os_release():
    values = parse_os_release(OS_RELEASE)
    assert values['ID'] == 'ubuntu'
    assert values['VERSION_ID'] == '22.04'
    assert values['PRETTY_NAME'] == 'Ubuntu 22.04.4 LTS'
    assert '# comment' not in values


def test_get_os_linux():
    conn = ScriptedConnector({
        "uname -s": "Linux\n",
        "uname -r": "5.15.0-105-generic\n",
        "uname -m": "x86_64\n",
        "cat /etc/os-release": OS_RELEASE,
    })
    os_info = conn.get_os()
    assert os_info.id == 'ubuntu'
    assert os_info.version_id == '22.04'
    assert os_info.kernel == '5.15.0-105-generic'
    assert os_info.arch == 'x86_64'


def test_get_os_darwin():
    conn = ScriptedConnector({
        "uname -s": "Darwin\n",
        "uname -r": "23.4.0\n",
        "uname -m": "arm64\n",
        "sw_vers -productVersion": "14.4\n",
    })
    os_info = conn.get_os()
    assert os_info.id == 'darwin'
    assert os_info.version_id == '14.4'
    assert "cat /etc/os-release" not in conn.commands


def test_get_os_without_os_release_fails():
    conn = ScriptedConnector({"uname -s": "Linux", "uname -r": "6.1", "uname -m": "x86_64"})
    with pytest.raises(ConnectorError):
        conn.get_os()


def test_look_path():
    conn = ScriptedConnector({"command -v systemctl": "/usr/bin/systemctl\n"})
    assert conn.look_path("systemctl") == "/usr/bin/systemctl"
    with pytest.raises(BinaryNotFoundError) as excinfo:
        conn.look_path("dnf")
    assert excinfo.value.name == "dnf"
    with pytest.raises(InputError):
        conn.look_path(" ")


@pytest.mark.parametrize("output,exists,is_dir", [
    ("dir\n", True, True),
    ("file\n", True, False),
    ("missing\n", False, False),
])
def test_stat(output, exists, is_dir):
    q = "/etc/init.d"
    command = f"if [ -d {q} ]; then echo dir; elif [ -e {q} ]; then echo file; else echo missing; fi"
    result = ScriptedConnector({command: output}).stat(q)
    assert result.exists is exists
    assert result.is_dir is is_dir


def test_cancel_scope_follows_parent():
    parent = CancelScope()
    child = parent.child()
    assert not child.is_set()
    parent.cancel()
    assert child.is_set()
    child.cancel()
    assert not CancelScope().is_set()
