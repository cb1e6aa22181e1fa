"""
VPC Module Functions
Looks up the default VPC and its subnets shared by every environment
"""

import pulumi
import pulumi_aws as aws
from typing import Any, Dict

from modules.resource_utils import retry_with_backoff


def lookup_default_vpc() -> str:
    return aws.ec2.get_vpc(default=True).id


def lookup_subnet_ids(vpc_id: str) -> list:
    """
    List subnets of a VPC

    Args:
        vpc_id: VPC ID

    Returns:
        Sorted subnet IDs
    """
    subnets = aws.ec2.get_subnets(
        filters=[aws.ec2.GetSubnetsFilterArgs(
            name="vpc-id",
            values=[vpc_id]
        )]
    )
    return sorted(subnets.ids)


def lookup_default_network(max_retries: int = 3, initial_delay: float = 1.0) -> Dict[str, Any]:
    """
    Read back the default VPC and its subnets

    Args:
        max_retries: Retries per lookup
        initial_delay: Initial backoff delay in seconds

    Returns:
        Dict with vpc_id and subnet_ids
    """
    vpc_id = retry_with_backoff(lookup_default_vpc, max_retries, initial_delay)
    subnet_ids = retry_with_backoff(lambda: lookup_subnet_ids(vpc_id), max_retries, initial_delay)
    if not subnet_ids:
        raise ValueError(f"Default VPC {vpc_id} has no subnets")

    pulumi.log.info(f"Using default VPC {vpc_id} with {len(subnet_ids)} subnets")
    return {
        "vpc_id": vpc_id,
        "subnet_ids": subnet_ids
    }
