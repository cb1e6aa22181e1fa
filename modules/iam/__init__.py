"""
IAM Module for EKS
Worker node roles, policy attachments, instance profiles and customer managed policies
"""

from .functions import (
    assume_role_policy,
    attach_role_policy,
    create_instance_profile,
    create_policy,
    create_role,
    worker_policy_attachment_names,
)

__all__ = [
    "assume_role_policy",
    "attach_role_policy",
    "create_instance_profile",
    "create_policy",
    "create_role",
    "worker_policy_attachment_names",
]
