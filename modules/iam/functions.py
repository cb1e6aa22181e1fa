"""
IAM Module Functions
Declares worker node roles, managed policy attachments, instance profiles and policies
"""

import json
import pulumi_aws as aws
from typing import Any, Dict, List

from stackgraph import ResourceKind
from modules.registry import register


def assume_role_policy(service: str = "ec2.amazonaws.com") -> str:
    """
    Build the trust policy letting an AWS service assume a role

    Args:
        service: Service principal

    Returns:
        JSON policy document
    """
    return json.dumps({
        "Version": "2012-10-17",
        "Statement": [{
            "Action": ["sts:AssumeRole"],
            "Effect": "Allow",
            "Principal": {"Service": service},
        }],
    })


@register(ResourceKind.ROLE)
def create_role(name: str, assume_role_policy: str, role_name: str = None,
                tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create IAM role

    Args:
        name: Logical resource name
        assume_role_policy: Trust policy document
        role_name: Physical role name, defaults to the logical name
        tags: Additional tags

    Returns:
        Dict with role resource and outputs
    """
    tags = tags or {}

    role = aws.iam.Role(
        name,
        name=role_name or name,
        assume_role_policy=assume_role_policy,
        tags={
            **tags,
            "Name": role_name or name,
            "Module": "iam"
        }
    )

    return {
        "role": role,
        "name": role.name,
        "arn": role.arn
    }


@register(ResourceKind.POLICY_ATTACHMENT)
def attach_role_policy(name: str, role: Any, policy_arn: str) -> Dict[str, Any]:
    attachment = aws.iam.RolePolicyAttachment(
        name,
        policy_arn=policy_arn,
        role=role
    )

    return {
        "attachment": attachment,
        "policy_arn": policy_arn
    }


@register(ResourceKind.INSTANCE_PROFILE)
def create_instance_profile(name: str, role: Any, tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create instance profile wrapping a node role

    Args:
        name: Profile name
        role: Role name (or role resource)
        tags: Additional tags

    Returns:
        Dict with instance profile resource and outputs
    """
    tags = tags or {}

    instance_profile = aws.iam.InstanceProfile(
        name,
        name=name,
        role=role,
        tags={
            **tags,
            "Name": name,
            "Module": "iam"
        }
    )

    return {
        "instance_profile": instance_profile,
        "name": instance_profile.name,
        "arn": instance_profile.arn
    }


@register(ResourceKind.POLICY)
def create_policy(name: str, policy: str, description: str = "", path: str = "/",
                  tags: Dict[str, str] = None) -> Dict[str, Any]:
    """
    Create customer managed IAM policy

    Args:
        name: Logical resource name, the physical name is generated from it
        policy: JSON policy document
        description: Policy description
        path: IAM path
        tags: Additional tags

    Returns:
        Dict with policy resource and outputs
    """
    tags = tags or {}

    iam_policy = aws.iam.Policy(
        name,
        path=path,
        description=description,
        policy=policy,
        tags={
            **tags,
            "Name": name,
            "Module": "iam"
        }
    )

    return {
        "policy": iam_policy,
        "arn": iam_policy.arn,
        "name": iam_policy.name
    }


def worker_policy_attachment_names(role_name: str, policy_arns: List[str]) -> List[str]:
    return [f"{role_name}-policy-{i}" for i in range(len(policy_arns))]
