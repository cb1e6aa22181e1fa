"""
EKS clusters per environment
Declares one resource graph per environment and applies it through Pulumi
"""
import os

import pulumi
from config import get_config
from clusters import build_shared_context, declare_environment
from modules import PulumiProvider
from stackgraph import StateExporter, failed_environments, run_environments

# Configuration
config = get_config()

# 1. Input files and shared network lookup (read-only, shared by all environments)
shared = build_shared_context(config, base_dir=os.path.dirname(os.path.abspath(__file__)))

# 2. One graph per environment
exporter = StateExporter()
graphs = [declare_environment(env, shared, config, exporter) for env in config.environments]

# 3. Plan every environment, then apply each plan
results = run_environments(graphs, PulumiProvider())

# 4. Exports of environments that completed
succeeded = [env for env, result in results.items() if result.ok]
exporter.publish(pulumi.export, environments=succeeded)
pulumi.export("environments", {env: result.to_dict() for env, result in results.items()})

failed = failed_environments(results)
if failed:
    first = results[failed[0]]
    raise first.error or Exception(f"Environment {failed[0]} did not complete")
