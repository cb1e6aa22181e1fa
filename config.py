"""
Configuration management for the EKS stack graph
"""

import pulumi
from typing import Dict, FrozenSet

from stackgraph import ResourceKind

DEFAULT_WORKER_POLICY_ARNS = [
    "arn:aws:iam::aws:policy/AmazonEKSWorkerNodePolicy",
    "arn:aws:iam::aws:policy/AmazonEKS_CNI_Policy",
    "arn:aws:iam::aws:policy/AmazonEC2ContainerRegistryReadOnly",
]


class Config:
    """Centralized configuration management for the EKS deployment"""

    def __init__(self):
        self.config = pulumi.Config()

        # Deployment targets, one cluster each
        self.environments = self.config.get_object("environments") or ["test", "prod"]

        # Node Configuration
        self.node_instance_type = self.config.get("node_instance_type") or "t2.small"
        self.node_desired_capacity = self.config.get_int("node_desired_capacity") or 3
        node_min_size = self.config.get_int("node_min_size")
        self.node_min_size = 1 if node_min_size is None else node_min_size
        self.node_max_size = self.config.get_int("node_max_size") or 3
        self.worker_policy_arns = self.config.get_object("worker_policy_arns") or list(DEFAULT_WORKER_POLICY_ARNS)

        # Static input files
        self.elb_policy_file = self.config.get("elb_policy_file") or "elb-policy.json"
        self.elb_crd_file = self.config.get("elb_crd_file") or "aws-elb-crd.yaml"

        # Chart repositories and versions
        self.argo_helm_repo = self.config.get("argo_helm_repo") or "https://argoproj.github.io/argo-helm"
        self.eks_charts_repo = self.config.get("eks_charts_repo") or "https://aws.github.io/eks-charts"
        self.argo_cd_version = self.config.get("argo_cd_version")
        self.argo_rollouts_version = self.config.get("argo_rollouts_version")
        self.aws_lb_controller_version = self.config.get("aws_lb_controller_version")
        self.aws_lb_controller_image_tag = self.config.get("aws_lb_controller_image_tag") or "v2.3.0"

        # Execution
        self.best_effort_kind_names = self.config.get_object("best_effort_kinds") or ["PolicyAttachment"]
        self.lookup_retries = self.config.get_int("lookup_retries") or 3

        # Additional tags
        self.additional_tags = self.config.get_object("tags") or {}

        self.validate()

    def validate(self) -> None:
        """Reject configuration that cannot produce a valid graph"""
        if not self.environments:
            raise ValueError("At least one environment must be configured")
        if any(not isinstance(env, str) or not env.strip() for env in self.environments):
            raise ValueError(f"Environment names must be non-empty strings: {self.environments}")
        if len(set(self.environments)) != len(self.environments):
            raise ValueError(f"Environment names must be unique: {self.environments}")
        if not (self.node_min_size <= self.node_desired_capacity <= self.node_max_size):
            raise ValueError("Invalid node count configuration: min <= desired <= max must be true")
        # raises ValueError on unknown kinds
        self.best_effort_kinds

    @property
    def common_tags(self) -> Dict[str, str]:
        """Get common tags for all resources"""
        base_tags = {
            "Project": "eks-stack-graph",
            "ManagedBy": "pulumi",
        }
        base_tags.update(self.additional_tags)
        return base_tags

    @property
    def best_effort_kinds(self) -> FrozenSet[ResourceKind]:
        """Resource kinds whose failure does not abort an environment"""
        try:
            return frozenset(ResourceKind(name) for name in self.best_effort_kind_names)
        except ValueError as e:
            valid = ", ".join(kind.value for kind in ResourceKind)
            raise ValueError(f"Invalid best_effort_kinds {self.best_effort_kind_names}; valid kinds: {valid}") from e

    def environment_tags(self, environment: str) -> Dict[str, str]:
        return {**self.common_tags, "Environment": environment}


def get_config() -> Config:
    """Get the global configuration instance"""
    return Config()
