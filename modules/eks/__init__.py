"""
EKS Module
Cluster control plane and node groups
"""

from .functions import create_cluster, create_node_group

__all__ = ["create_cluster", "create_node_group"]
