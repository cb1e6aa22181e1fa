"""
Pulumi modules for the EKS stack graph
Each function module registers the resource kinds it can declare
"""

from .provider import PulumiProvider
from .registry import get_handler, register, registered_kinds
from .vpc import lookup_default_network

__all__ = [
    "PulumiProvider",
    "get_handler",
    "register",
    "registered_kinds",
    "lookup_default_network",
]
