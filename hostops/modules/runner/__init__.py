"""
Host fact gathering and idempotent lifecycle operations.
"""
from .containerd import (
    ctr_remove_container,
    ctr_remove_image,
    ctr_start_container,
    ctr_stop_container,
)
from .crictl import (
    crictl_remove_container,
    crictl_remove_image,
    crictl_remove_pod,
    crictl_start_container,
    crictl_stop_container,
    crictl_stop_pod,
)
from .detect import detect_init_system, detect_package_manager
from .facts import gather_facts
from .models import Facts, InitSystemType, OSFamily, PackageInfo, PackageManagerType, ServiceInfo
from .package import (
    clean_package_cache,
    install_packages,
    is_package_installed,
    remove_packages,
    update_package_cache,
)
from .result import Classification, Outcome, classify
from .service import (
    daemon_reload,
    disable_service,
    enable_service,
    is_service_active,
    is_service_enabled,
    restart_service,
    start_service,
    stop_service,
)

__all__ = [
    'Classification',
    'Facts',
    'InitSystemType',
    'OSFamily',
    'Outcome',
    'PackageInfo',
    'PackageManagerType',
    'ServiceInfo',
    'classify',
    'clean_package_cache',
    'crictl_remove_container',
    'crictl_remove_image',
    'crictl_remove_pod',
    'crictl_start_container',
    'crictl_stop_container',
    'crictl_stop_pod',
    'ctr_remove_container',
    'ctr_remove_image',
    'ctr_start_container',
    'ctr_stop_container',
    'daemon_reload',
    'detect_init_system',
    'detect_package_manager',
    'disable_service',
    'enable_service',
    'gather_facts',
    'install_packages',
    'is_package_installed',
    'is_service_active',
    'is_service_enabled',
    'remove_packages',
    'restart_service',
    'start_service',
    'stop_service',
    'update_package_cache',
]
