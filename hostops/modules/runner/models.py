"""Data models for host facts and management capabilities."""
from dataclasses import asdict, dataclass, field
import shlex
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from hostops.errors import InputError
from hostops.modules.connector import OSInfo


class OSFamily(str, Enum):
    """Operating system families the runner knows how to probe."""
    DEBIAN = 'debian'
    RHEL = 'rhel'
    LINUX = 'linux'
    DARWIN = 'darwin'
    UNKNOWN = 'unknown'

    @classmethod
    def from_os_id(cls, os_id: str) -> 'OSFamily':
        return _FAMILY_BY_ID.get((os_id or '').strip().lower(), cls.UNKNOWN)

    @property
    def is_linux(self) -> bool:
        return self in (OSFamily.DEBIAN, OSFamily.RHEL, OSFamily.LINUX)


_FAMILY_BY_ID = {
    'ubuntu': OSFamily.DEBIAN,
    'debian': OSFamily.DEBIAN,
    'raspbian': OSFamily.DEBIAN,
    'linuxmint': OSFamily.DEBIAN,
    'centos': OSFamily.RHEL,
    'rhel': OSFamily.RHEL,
    'fedora': OSFamily.RHEL,
    'almalinux': OSFamily.RHEL,
    'rocky': OSFamily.RHEL,
    'linux': OSFamily.LINUX,
    'darwin': OSFamily.DARWIN,
}


@dataclass(frozen=True)
class ProbeCommands:
    """Commands used to probe hardware and routes on one OS family."""
    cpu: str
    memory: str
    # divides the memory command's output down to MiB
    memory_divisor: int
    ipv4_default: str = ''
    ipv6_default: str = ''


LINUX_PROBES = ProbeCommands(
    cpu="nproc",
    memory="grep MemTotal /proc/meminfo | awk '{print $2}'",
    memory_divisor=1024,
    ipv4_default="ip -4 route get 8.8.8.8 | awk '{print $7}' | head -n1",
    ipv6_default="ip -6 route get 2001:4860:4860::8888 | awk '{print $10}' | head -n1",
)

DARWIN_PROBES = ProbeCommands(
    cpu="sysctl -n hw.ncpu",
    memory="sysctl -n hw.memsize",
    memory_divisor=1024 * 1024,
    ipv4_default="ipconfig getifaddr $(route -n get default | awk '/interface:/{print $2}')",
)

# Unknown systems get the Linux hardware probes but no route probes.
FALLBACK_PROBES = ProbeCommands(
    cpu=LINUX_PROBES.cpu,
    memory=LINUX_PROBES.memory,
    memory_divisor=LINUX_PROBES.memory_divisor,
)


def probes_for(family: OSFamily) -> ProbeCommands:
    if family.is_linux:
        return LINUX_PROBES
    if family is OSFamily.DARWIN:
        return DARWIN_PROBES
    return FALLBACK_PROBES


class PackageManagerType(str, Enum):
    UNKNOWN = 'unknown'
    APT = 'apt'
    YUM = 'yum'
    DNF = 'dnf'


@dataclass(frozen=True)
class PackageInfo:
    """Package manager command templates; ``%s`` receives shell-quoted package names."""
    type: PackageManagerType
    update_cmd: str
    install_cmd: str
    remove_cmd: str
    query_cmd: str
    cache_clean_cmd: str

    def format(self, template: str, *packages: str) -> str:
        names = [p.strip() for p in packages if p and p.strip()]
        if not names:
            raise InputError("at least one package name is required")
        return template % ' '.join(shlex.quote(n) for n in names)


APT = PackageInfo(
    type=PackageManagerType.APT,
    update_cmd="apt-get update -y",
    install_cmd="apt-get install -y %s",
    remove_cmd="apt-get remove -y %s",
    query_cmd="dpkg-query -W -f='${Status}' %s",
    cache_clean_cmd="apt-get clean",
)

YUM = PackageInfo(
    type=PackageManagerType.YUM,
    update_cmd="yum update -y",
    install_cmd="yum install -y %s",
    remove_cmd="yum remove -y %s",
    query_cmd="rpm -q %s",
    cache_clean_cmd="yum clean all",
)

DNF = PackageInfo(
    type=PackageManagerType.DNF,
    update_cmd="dnf update -y",
    install_cmd="dnf install -y %s",
    remove_cmd="dnf remove -y %s",
    query_cmd="rpm -q %s",
    cache_clean_cmd="dnf clean all",
)


class InitSystemType(str, Enum):
    UNKNOWN = 'unknown'
    SYSTEMD = 'systemd'
    SYSV = 'sysvinit'


@dataclass(frozen=True)
class ServiceInfo:
    """Init system command templates; ``%s`` receives the shell-quoted service name."""
    type: InitSystemType
    start_cmd: str
    stop_cmd: str
    enable_cmd: str
    disable_cmd: str
    restart_cmd: str
    is_active_cmd: str
    daemon_reload_cmd: str = ''

    def format(self, template: str, service_name: str) -> str:
        if not service_name or not service_name.strip():
            raise InputError("service name cannot be empty")
        return template % shlex.quote(service_name.strip())


SYSTEMD = ServiceInfo(
    type=InitSystemType.SYSTEMD,
    start_cmd="systemctl start %s",
    stop_cmd="systemctl stop %s",
    enable_cmd="systemctl enable %s",
    disable_cmd="systemctl disable %s",
    restart_cmd="systemctl restart %s",
    is_active_cmd="systemctl is-active --quiet %s",
    daemon_reload_cmd="systemctl daemon-reload",
)

SYSV_RHEL = ServiceInfo(
    type=InitSystemType.SYSV,
    start_cmd="service %s start",
    stop_cmd="service %s stop",
    enable_cmd="chkconfig %s on",
    disable_cmd="chkconfig %s off",
    restart_cmd="service %s restart",
    is_active_cmd="service %s status",
)

SYSV_DEBIAN = ServiceInfo(
    type=InitSystemType.SYSV,
    start_cmd=SYSV_RHEL.start_cmd,
    stop_cmd=SYSV_RHEL.stop_cmd,
    enable_cmd="update-rc.d %s defaults",
    disable_cmd="update-rc.d -f %s remove",
    restart_cmd=SYSV_RHEL.restart_cmd,
    is_active_cmd=SYSV_RHEL.is_active_cmd,
)


@dataclass(frozen=True)
class Facts:
    """Snapshot of a host, built once per gather and never mutated."""
    os: OSInfo
    hostname: str = ''
    kernel: str = ''
    total_cpu: int = 0
    total_memory: int = 0  # MiB
    ipv4_default: str = ''
    ipv6_default: str = ''
    package_manager: Optional[PackageInfo] = None
    init_system: Optional[ServiceInfo] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def family(self) -> OSFamily:
        return OSFamily.from_os_id(self.os.id)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['warnings'] = list(self.warnings)
        data['family'] = self.family.value
        for key in ('package_manager', 'init_system'):
            if data[key] is not None:
                data[key]['type'] = data[key]['type'].value
        return data
