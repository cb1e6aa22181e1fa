"""
Environment runner
Plans every environment before any provider call, then executes each plan independently
"""

import asyncio
from typing import Dict, Iterable, List, Optional

import pulumi

from .engine import ExecutionResult, ProviderCapability, execute, execute_async
from .nodes import ResourceGraph
from .resolver import ExecutionPlan, resolve_plan


def plan_environments(graphs: Iterable[ResourceGraph]) -> List[ExecutionPlan]:
    """
    Resolve the plan of every environment

    Plan-time errors propagate from here, so a malformed graph in any
    environment stops the run before anything is applied.
    """
    graphs = list(graphs)
    environments = [graph.environment for graph in graphs]
    duplicates = sorted({env for env in environments if environments.count(env) > 1})
    if duplicates:
        raise ValueError(f"Environments declared more than once: {', '.join(duplicates)}")

    plans = [resolve_plan(graph) for graph in graphs]
    for plan in plans:
        pulumi.log.debug(f"[{plan.environment}] plan: {', '.join(plan.names)}")
    return plans


def run_environments(graphs: Iterable[ResourceGraph], capability: ProviderCapability,
                     cancel=None) -> Dict[str, ExecutionResult]:
    """Execute environments one after another; a failure in one never stops the others"""
    results = {}
    for plan in plan_environments(graphs):
        results[plan.environment] = execute(plan, capability, cancel)
    return results


async def run_environments_async(graphs: Iterable[ResourceGraph], capability: ProviderCapability,
                                 cancel=None,
                                 max_concurrency: Optional[int] = None) -> Dict[str, ExecutionResult]:
    """Execute environments concurrently; results keep the declared environment order"""
    plans = plan_environments(graphs)
    results = await asyncio.gather(
        *(execute_async(plan, capability, cancel, max_concurrency) for plan in plans))
    return {plan.environment: result for plan, result in zip(plans, results)}


def failed_environments(results: Dict[str, ExecutionResult]) -> List[str]:
    return [environment for environment, result in results.items() if not result.ok]
