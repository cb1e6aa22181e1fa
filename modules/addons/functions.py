"""
Addons Module Functions
Kubernetes namespaces, service accounts, manifests and Helm charts for an EKS cluster
"""

import pulumi
import pulumi_kubernetes as k8s
from typing import Any, Dict

from stackgraph import ResourceKind
from modules.registry import register


def create_kubernetes_provider(name: str, kubeconfig: 'pulumi.Output[str]') -> k8s.Provider:
    """
    Create Kubernetes provider for EKS cluster

    Args:
        name: Cluster resource name
        kubeconfig: Cluster kubeconfig as JSON string

    Returns:
        Kubernetes provider instance
    """
    return k8s.Provider(
        f"{name}-eksProvider",
        kubeconfig=kubeconfig
    )


@register(ResourceKind.NAMESPACE)
def create_namespace(name: str, namespace: str, k8s_provider: k8s.Provider,
                     labels: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create namespace

    Args:
        name: Logical resource name
        namespace: Namespace name in the cluster
        k8s_provider: Kubernetes provider of the cluster
        labels: Additional labels

    Returns:
        Dict with namespace resource and outputs
    """
    ns = k8s.core.v1.Namespace(
        name,
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=namespace,
            labels={
                **(labels or {}),
                "managed-by": "pulumi"
            }
        ),
        opts=pulumi.ResourceOptions(provider=k8s_provider)
    )

    return {
        "namespace": ns,
        "name": ns.metadata.name
    }


@register(ResourceKind.SERVICE_ACCOUNT)
def create_service_account(name: str, service_account: str, namespace: str, k8s_provider: k8s.Provider,
                           annotations: Dict[str, Any] = None) -> Dict[str, Any]:
    account = k8s.core.v1.ServiceAccount(
        name,
        metadata=k8s.meta.v1.ObjectMetaArgs(
            name=service_account,
            namespace=namespace,
            annotations=annotations or {}
        ),
        opts=pulumi.ResourceOptions(provider=k8s_provider)
    )

    return {
        "service_account": account,
        "name": account.metadata.name,
        "namespace": namespace
    }


@register(ResourceKind.CHART_INSTALL)
def install_chart(name: str, chart: str, repo: str, namespace: str, k8s_provider: k8s.Provider,
                  values: Dict[str, Any] = None, version: str = None,
                  resource_prefix: str = None) -> Dict[str, Any]:
    """
    Install Helm chart

    Args:
        name: Logical resource name
        chart: Chart name in the repository
        repo: Chart repository URL
        namespace: Target namespace
        k8s_provider: Kubernetes provider of the cluster
        values: Chart values
        version: Chart version, latest when omitted
        resource_prefix: Prefix for the rendered resources' logical names

    Returns:
        Dict with chart resource and outputs
    """
    release = k8s.helm.v3.Chart(
        name,
        k8s.helm.v3.ChartOpts(
            chart=chart,
            version=version,
            namespace=namespace,
            fetch_opts=k8s.helm.v3.FetchOpts(repo=repo),
            values=values or {},
            resource_prefix=resource_prefix
        ),
        opts=pulumi.ResourceOptions(provider=k8s_provider)
    )

    return {
        "chart": release,
        "namespace": namespace,
        "resources": release.resources
    }


@register(ResourceKind.CONFIG_FILE)
def apply_config_file(name: str, file: str, k8s_provider: k8s.Provider,
                      resource_prefix: str = None) -> Dict[str, Any]:
    config_file = k8s.yaml.ConfigFile(
        name,
        file=file,
        resource_prefix=resource_prefix,
        opts=pulumi.ResourceOptions(provider=k8s_provider)
    )

    return {
        "config_file": config_file,
        "resources": config_file.resources
    }
