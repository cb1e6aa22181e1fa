"""
Addons Module
Namespaces, service accounts, manifests and Helm charts
"""

from .functions import (
    apply_config_file,
    create_kubernetes_provider,
    create_namespace,
    create_service_account,
    install_chart,
)

__all__ = [
    "apply_config_file",
    "create_kubernetes_provider",
    "create_namespace",
    "create_service_account",
    "install_chart",
]
