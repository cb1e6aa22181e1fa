"""
Read-only context shared by every environment graph
"""

import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Tuple

import pulumi

from clusters.inputs import load_manifest, load_policy_document
from modules.vpc import lookup_default_network


@dataclass(frozen=True)
class SharedContext:
    vpc_id: str
    subnet_ids: Tuple[str, ...]
    elb_policy_document: str
    elb_crd_file: str


def build_shared_context(config, base_dir: str = ".",
                         network_lookup: Callable[..., Dict[str, Any]] = lookup_default_network) -> SharedContext:
    """
    Load the static input files, then look up the default network once

    Args:
        config: Stack configuration
        base_dir: Directory relative input file names are resolved against
        network_lookup: Function returning vpc_id and subnet_ids

    Returns:
        Immutable context passed to every environment's declaration

    Raises:
        InputFileError: An input file is missing or malformed
    """
    policy_document = load_policy_document(os.path.join(base_dir, config.elb_policy_file))
    crd_file = load_manifest(os.path.join(base_dir, config.elb_crd_file))

    network = network_lookup(max_retries=config.lookup_retries)
    pulumi.log.debug(f"Shared context: vpc {network['vpc_id']}, subnets {network['subnet_ids']}")

    return SharedContext(
        vpc_id=network["vpc_id"],
        subnet_ids=tuple(network["subnet_ids"]),
        elb_policy_document=policy_document,
        elb_crd_file=crd_file,
    )
