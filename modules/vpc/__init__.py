"""
VPC Module
Default network lookup shared by all environments
"""

from .functions import lookup_default_network, lookup_default_vpc, lookup_subnet_ids

__all__ = ["lookup_default_network", "lookup_default_vpc", "lookup_subnet_ids"]
