"""
Execution engine
Walks an ExecutionPlan and applies each node through a provider capability
"""

import asyncio
import inspect
from typing import Any, Awaitable, Dict, List, Mapping, Optional, Protocol, Set, Union

import pulumi

from .errors import ExecutionStateError, ProviderError, StackGraphError, UnresolvedReferenceError
from .nodes import NodeState, ResourceKind, ResourceNode
from .resolver import ExecutionPlan
from .values import resolve_value


ProviderOutputs = Mapping[str, Any]


class ProviderCapability(Protocol):
    """
    External system that performs create/read/update for a resource kind

    `apply` returns the outputs of the resource, or an awaitable of them.
    Failures are raised, preferably as ProviderError. Idempotence and retries
    are the capability's responsibility.
    """

    def apply(self, kind: ResourceKind, inputs: Dict[str, Any],
              name: str) -> Union[ProviderOutputs, Awaitable[ProviderOutputs]]:
        ...


class ExecutionResult:
    """Outcome of executing one environment's plan"""

    def __init__(self, environment: str):
        self.environment = environment
        self.executed: List[str] = []
        self.failed: Optional[str] = None
        self.error: Optional[StackGraphError] = None
        self.best_effort_failures: Dict[str, StackGraphError] = {}
        self.concurrent_failures: Dict[str, StackGraphError] = {}
        self.skipped: List[str] = []
        self.cancelled = False

    @property
    def ok(self) -> bool:
        return self.failed is None and not self.cancelled

    @property
    def failures(self) -> Dict[str, StackGraphError]:
        failures = dict(self.best_effort_failures)
        if self.failed is not None:
            failures[self.failed] = self.error
        failures.update(self.concurrent_failures)
        return failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "environment": self.environment,
            "executed": list(self.executed),
            "failed": self.failed,
            "error": str(self.error) if self.error else None,
            "best_effort_failures": {name: str(error) for name, error in self.best_effort_failures.items()},
            "concurrent_failures": {name: str(error) for name, error in self.concurrent_failures.items()},
            "skipped": list(self.skipped),
            "cancelled": self.cancelled,
        }

    def __repr__(self):
        return (f"ExecutionResult({self.environment}: executed={self.executed}, failed={self.failed}, "
                f"best_effort_failures={list(self.best_effort_failures)}, skipped={self.skipped})")


def _is_cancelled(cancel) -> bool:
    return cancel is not None and cancel.is_set()


def _check_fresh(plan: ExecutionPlan) -> None:
    for node in plan:
        if node.state is not NodeState.DECLARED:
            raise ExecutionStateError(node.name, node.state.value)


def _is_blocked(node: ResourceNode, blocked: Set[str]) -> bool:
    return any(dependency.name in blocked for dependency in node.dependencies)


def _start(node: ResourceNode) -> Dict[str, Any]:
    node.transition(NodeState.READY)
    inputs = {key: resolve_value(value) for key, value in node.inputs.items()}
    node.transition(NodeState.EXECUTING)
    pulumi.log.debug(f"[{node.environment}] applying {node.kind.value} {node.name}")
    return inputs


def _as_error(node: ResourceNode, exc: Exception) -> StackGraphError:
    if isinstance(exc, (ProviderError, UnresolvedReferenceError)):
        return exc
    error = ProviderError(node.kind.value, node.name, str(exc) or type(exc).__name__, cause=exc)
    error.__cause__ = exc
    return error


def _finish(node: ResourceNode, outputs: Any) -> None:
    if outputs is not None and not isinstance(outputs, Mapping):
        raise ProviderError(node.kind.value, node.name,
                            f"provider returned {type(outputs).__name__} instead of a mapping of outputs")
    node.complete(outputs)


def _record_failure(result: ExecutionResult, node: ResourceNode, error: StackGraphError,
                    blocked: Set[str]) -> bool:
    """Mark the node failed; returns True when the failure aborts the plan"""
    node.transition(NodeState.FAILED)
    if node.best_effort:
        pulumi.log.warn(f"[{node.environment}] best-effort resource {node.name} failed: {error}")
        result.best_effort_failures[node.name] = error
        blocked.add(node.name)
        return False
    pulumi.log.error(f"[{node.environment}] {node.name} failed, aborting remaining resources: {error}")
    if result.failed is None:
        result.failed = node.name
        result.error = error
    else:
        # another call was in flight when the plan was aborted
        result.concurrent_failures[node.name] = error
    return True


def _skip(result: ExecutionResult, node: ResourceNode, blocked: Set[str]) -> None:
    pulumi.log.warn(f"[{node.environment}] skipping {node.name}: a best-effort dependency failed")
    result.skipped.append(node.name)
    blocked.add(node.name)


def execute(plan: ExecutionPlan, capability: ProviderCapability, cancel=None) -> ExecutionResult:
    """
    Execute a plan one node at a time, in plan order

    Args:
        plan: Plan produced by resolve_plan
        capability: Provider capability applying each node
        cancel: Optional event; once set, no further nodes are started

    Returns:
        ExecutionResult with the executed, failed and skipped nodes

    Raises:
        ExecutionStateError: A node of the plan was already executed
    """
    _check_fresh(plan)
    result = ExecutionResult(plan.environment)
    blocked: Set[str] = set()
    pulumi.log.info(f"[{plan.environment}] executing {len(plan)} resources")

    for position, node in enumerate(plan.nodes):
        if _is_cancelled(cancel):
            pulumi.log.warn(f"[{plan.environment}] cancelled, {len(plan) - position} resources not started")
            result.cancelled = True
            result.skipped.extend(remaining.name for remaining in plan.nodes[position:])
            break
        if _is_blocked(node, blocked):
            _skip(result, node, blocked)
            continue

        try:
            inputs = _start(node)
            outputs = capability.apply(node.kind, inputs, node.name)
            if inspect.isawaitable(outputs):
                if hasattr(outputs, "close"):
                    outputs.close()
                raise ProviderError(node.kind.value, node.name,
                                    "provider returned an awaitable; use execute_async")
            _finish(node, outputs)
        except Exception as exc:
            if _record_failure(result, node, _as_error(node, exc), blocked):
                result.skipped.extend(remaining.name for remaining in plan.nodes[position + 1:])
                break
            continue
        result.executed.append(node.name)

    return result


async def _apply_async(node: ResourceNode, capability: ProviderCapability) -> Optional[StackGraphError]:
    try:
        inputs = _start(node)
        outputs = capability.apply(node.kind, inputs, node.name)
        if inspect.isawaitable(outputs):
            outputs = await outputs
        _finish(node, outputs)
    except Exception as exc:
        return _as_error(node, exc)
    return None


async def execute_async(plan: ExecutionPlan, capability: ProviderCapability, cancel=None,
                        max_concurrency: Optional[int] = None) -> ExecutionResult:
    """
    Execute a plan, starting independent nodes concurrently

    A node starts only once every dependency is Executed. After a fatal failure
    or cancellation no new node is started, while provider calls already in
    flight are awaited to completion.

    Args:
        plan: Plan produced by resolve_plan
        capability: Provider capability; apply may return an awaitable
        cancel: Optional event; once set, no further nodes are started
        max_concurrency: Upper bound on in-flight provider calls, at least 1 (None means unbounded)

    Returns:
        ExecutionResult with the executed, failed and skipped nodes

    Raises:
        ValueError: max_concurrency is below 1
        ExecutionStateError: A node of the plan was already executed
    """
    if max_concurrency is not None and max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
    _check_fresh(plan)
    result = ExecutionResult(plan.environment)
    blocked: Set[str] = set()
    pending: List[ResourceNode] = list(plan.nodes)
    running: Dict[asyncio.Future, ResourceNode] = {}
    stopped = False
    pulumi.log.info(f"[{plan.environment}] executing {len(plan)} resources concurrently")

    while True:
        if not stopped and _is_cancelled(cancel):
            pulumi.log.warn(f"[{plan.environment}] cancelled, {len(pending)} resources not started")
            result.cancelled = True
            stopped = True

        if not stopped:
            for node in list(pending):
                if max_concurrency is not None and len(running) >= max_concurrency:
                    break
                if _is_blocked(node, blocked):
                    pending.remove(node)
                    _skip(result, node, blocked)
                elif all(dependency.executed for dependency in node.dependencies):
                    pending.remove(node)
                    running[asyncio.ensure_future(_apply_async(node, capability))] = node

        if not running:
            break

        done, _ = await asyncio.wait(list(running), return_when=asyncio.FIRST_COMPLETED)
        for task in sorted(done, key=lambda t: running[t].index):
            node = running.pop(task)
            error = task.result()
            if error is None:
                result.executed.append(node.name)
            elif _record_failure(result, node, error, blocked):
                stopped = True

    result.skipped.extend(node.name for node in pending)
    return result
