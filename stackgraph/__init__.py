"""
Declarative resource graph for Pulumi stacks
Declare nodes, resolve them into a plan, execute the plan through a provider capability
"""

from .errors import (
    CycleDetectedError,
    DuplicateExportError,
    DuplicateNameError,
    ExecutionStateError,
    InputFileError,
    PlanError,
    ProviderError,
    SelfDependencyError,
    StackGraphError,
    UnresolvedReferenceError,
)
from .values import Literal, Reference
from .nodes import NodeState, ResourceGraph, ResourceKind, ResourceNode
from .resolver import ExecutionPlan, resolve_plan
from .engine import ExecutionResult, ProviderCapability, execute, execute_async
from .exporter import StateExporter
from .runner import failed_environments, plan_environments, run_environments, run_environments_async

__all__ = [
    "CycleDetectedError",
    "DuplicateExportError",
    "DuplicateNameError",
    "ExecutionStateError",
    "InputFileError",
    "PlanError",
    "ProviderError",
    "SelfDependencyError",
    "StackGraphError",
    "UnresolvedReferenceError",
    "Literal",
    "Reference",
    "NodeState",
    "ResourceGraph",
    "ResourceKind",
    "ResourceNode",
    "ExecutionPlan",
    "resolve_plan",
    "ExecutionResult",
    "ProviderCapability",
    "execute",
    "execute_async",
    "StateExporter",
    "failed_environments",
    "plan_environments",
    "run_environments",
    "run_environments_async",
]
