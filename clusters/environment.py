"""
EKS environment graph
One isomorphic graph per deployment target, parameterized by the environment name
"""

from typing import Dict

from stackgraph import ResourceGraph, ResourceKind, StateExporter

from clusters.context import SharedContext
from modules.iam import assume_role_policy, worker_policy_attachment_names

LB_CONTROLLER_ACCOUNT = "aws-load-balancer-controller"


def declare_node_role(graph: ResourceGraph, env: str, config) -> Dict[str, object]:
    """
    Per node group IAM: the role, its managed policy attachments and the instance profile

    Returns:
        Dict with the role and instance profile nodes
    """
    tags = config.environment_tags(env)
    role_name = f"{env}-node-role"

    role = graph.declare(role_name, ResourceKind.ROLE, {
        "role_name": role_name,
        "assume_role_policy": assume_role_policy("ec2.amazonaws.com"),
        "tags": tags,
    })

    attachment_names = worker_policy_attachment_names(role_name, config.worker_policy_arns)
    for attachment_name, policy_arn in zip(attachment_names, config.worker_policy_arns):
        graph.declare(attachment_name, ResourceKind.POLICY_ATTACHMENT, {
            "role": role.ref("name"),
            "policy_arn": policy_arn,
        })

    instance_profile = graph.declare(f"{env}-instance-profile", ResourceKind.INSTANCE_PROFILE, {
        "role": role.ref("name"),
        "tags": tags,
    })

    return {
        "role": role,
        "instance_profile": instance_profile
    }


def declare_environment(env: str, shared: SharedContext, config,
                        exporter: StateExporter = None) -> ResourceGraph:
    """
    Declare the full resource graph of one environment

    Args:
        env: Environment name, substituted into every resource name
        shared: Network lookup and input files shared by all environments
        config: Stack configuration
        exporter: Receives the environment's kubeconfig export

    Returns:
        The environment's resource graph
    """
    graph = ResourceGraph(env, best_effort_kinds=config.best_effort_kinds)
    tags = config.environment_tags(env)

    node_iam = declare_node_role(graph, env, config)

    elb_policy = graph.declare(f"{env}-AWSLoadBalancerControllerIAMPolicy", ResourceKind.POLICY, {
        "policy": shared.elb_policy_document,
        "description": "AWSLoadBalancerControllerIAMPolicy",
        "path": "/",
        "tags": tags,
    })

    # Control plane; the node role is registered with the cluster auth
    cluster = graph.declare(f"{env}-aws-demo", ResourceKind.CLUSTER, {
        "vpc_id": shared.vpc_id,
        "subnet_ids": list(shared.subnet_ids),
        "instance_roles": [node_iam["role"].ref("role")],
        "skip_default_node_group": True,
        "create_oidc_provider": True,
        "tags": tags,
    })
    k8s_provider = cluster.ref("k8s_provider")

    # Fixed compute
    graph.declare(f"{env}-aws-demo-ng1", ResourceKind.NODE_GROUP, {
        "cluster": cluster.ref("core"),
        "instance_type": config.node_instance_type,
        "desired_capacity": config.node_desired_capacity,
        "min_size": config.node_min_size,
        "max_size": config.node_max_size,
        "instance_profile": node_iam["instance_profile"].ref("instance_profile"),
        "k8s_provider": k8s_provider,
    })

    argocd_ns = graph.declare(f"{env}-argocd-ns", ResourceKind.NAMESPACE, {
        "namespace": "argocd",
        "k8s_provider": k8s_provider,
    })

    graph.declare(f"{env}-argo-cd", ResourceKind.CHART_INSTALL, {
        "chart": "argo-cd",
        "repo": config.argo_helm_repo,
        "version": config.argo_cd_version,
        "namespace": "argocd",
        "resource_prefix": env,
        "values": {"server": {"service": {"type": "LoadBalancer"}}},
        "k8s_provider": k8s_provider,
    }, depends_on=[argocd_ns])

    graph.declare(f"{env}-argo-rollouts", ResourceKind.CHART_INSTALL, {
        "chart": "argo-rollouts",
        "repo": config.argo_helm_repo,
        "version": config.argo_rollouts_version,
        "namespace": "argocd",
        "resource_prefix": env,
        "values": {"dashboard": {"enabled": "true"}},
        "k8s_provider": k8s_provider,
    }, depends_on=[argocd_ns])

    graph.declare(f"{env}-app-ns", ResourceKind.NAMESPACE, {
        "namespace": f"{env}-app",
        "k8s_provider": k8s_provider,
    })

    service_account = graph.declare(f"{env}-iam-serviceaccount", ResourceKind.SERVICE_ACCOUNT, {
        "service_account": LB_CONTROLLER_ACCOUNT,
        "namespace": "kube-system",
        "annotations": {"eks.amazonaws.com/role-arn": elb_policy.ref("arn")},
        "k8s_provider": k8s_provider,
    })

    elb_crd = graph.declare(f"{env}-elb-crd", ResourceKind.CONFIG_FILE, {
        "file": shared.elb_crd_file,
        "resource_prefix": env,
        "k8s_provider": k8s_provider,
    })

    graph.declare(f"{env}-aws-elb", ResourceKind.CHART_INSTALL, {
        "chart": "aws-load-balancer-controller",
        "repo": config.eks_charts_repo,
        "version": config.aws_lb_controller_version,
        "namespace": "kube-system",
        "resource_prefix": env,
        "values": {
            "clusterName": cluster.ref("name"),
            "serviceAccount": {"create": False, "name": LB_CONTROLLER_ACCOUNT},
            "image": {"tag": config.aws_lb_controller_image_tag},
        },
        "k8s_provider": k8s_provider,
    }, depends_on=[service_account, elb_crd])

    if exporter is not None:
        exporter.export(f"{env}-kubeconfig", cluster.ref("kubeconfig"), environment=env)

    return graph
