"""
EKS Module Functions
Creates the EKS control plane and worker node groups
"""

import json
import pulumi
import pulumi_eks as eks
from typing import Any, Dict, List

from stackgraph import ResourceKind
from modules.registry import register
from modules.addons.functions import create_kubernetes_provider


def _kubeconfig_json(config: Any) -> str:
    if isinstance(config, str):
        return config
    return json.dumps(config)


@register(ResourceKind.CLUSTER)
def create_cluster(name: str, vpc_id: str, subnet_ids: List[str], instance_roles: List[Any] = None,
                   skip_default_node_group: bool = True, create_oidc_provider: bool = True,
                   tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create EKS cluster and a Kubernetes provider bound to it

    Args:
        name: Cluster resource name
        vpc_id: VPC ID
        subnet_ids: List of subnet IDs
        instance_roles: Node roles to register with the cluster auth
        skip_default_node_group: Do not create the default node group
        create_oidc_provider: Create the IAM OIDC provider for service account roles
        tags: Additional tags

    Returns:
        Dict with cluster resource, kubeconfig and Kubernetes provider
    """
    tags = tags or {}

    cluster = eks.Cluster(
        name,
        vpc_id=vpc_id,
        subnet_ids=subnet_ids,
        instance_roles=instance_roles,
        skip_default_node_group=skip_default_node_group,
        create_oidc_provider=create_oidc_provider,
        tags={
            **tags,
            "Name": name,
            "Module": "eks"
        }
    )

    kubeconfig = cluster.kubeconfig.apply(_kubeconfig_json)

    return {
        "cluster": cluster,
        "core": cluster.core,
        "name": cluster.eks_cluster.name,
        "kubeconfig": kubeconfig,
        "k8s_provider": create_kubernetes_provider(name, kubeconfig)
    }


@register(ResourceKind.NODE_GROUP)
def create_node_group(name: str, cluster: Any, instance_type: str, desired_capacity: int,
                      min_size: int, max_size: int, k8s_provider: Any = None, instance_profile: Any = None,
                      labels: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create self-managed node group for fixed compute

    Args:
        name: Node group resource name
        cluster: Cluster core data
        instance_type: EC2 instance type
        desired_capacity: Desired number of nodes
        min_size: Minimum number of nodes
        max_size: Maximum number of nodes
        k8s_provider: Kubernetes provider of the cluster
        instance_profile: Instance profile of the node role
        labels: Kubernetes node labels

    Returns:
        Dict with node group resource
    """
    opts = None
    if k8s_provider is not None:
        opts = pulumi.ResourceOptions(providers={"kubernetes": k8s_provider})

    node_group = eks.NodeGroupV2(
        name,
        cluster=cluster,
        instance_type=instance_type,
        desired_capacity=desired_capacity,
        min_size=min_size,
        max_size=max_size,
        instance_profile=instance_profile,
        labels=labels,
        opts=opts
    )

    return {
        "node_group": node_group
    }
