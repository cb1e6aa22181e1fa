"""
EKS cluster declarations
Shared context and per-environment graphs
"""

from .context import SharedContext, build_shared_context
from .environment import declare_environment, declare_node_role
from .inputs import load_manifest, load_policy_document

__all__ = [
    "SharedContext",
    "build_shared_context",
    "declare_environment",
    "declare_node_role",
    "load_manifest",
    "load_policy_document",
]
