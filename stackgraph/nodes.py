"""
Resource node model
Each environment owns one ResourceGraph; node names are unique within it
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from .errors import DuplicateNameError, SelfDependencyError, UnresolvedReferenceError
from .values import Reference, freeze_value, iter_references


class ResourceKind(str, Enum):
    ROLE = "Role"
    POLICY = "Policy"
    POLICY_ATTACHMENT = "PolicyAttachment"
    INSTANCE_PROFILE = "InstanceProfile"
    CLUSTER = "Cluster"
    NODE_GROUP = "NodeGroup"
    NAMESPACE = "Namespace"
    SERVICE_ACCOUNT = "ServiceAccount"
    CHART_INSTALL = "ChartInstall"
    CONFIG_FILE = "ConfigFile"


class NodeState(str, Enum):
    DECLARED = "Declared"
    READY = "Ready"
    EXECUTING = "Executing"
    EXECUTED = "Executed"
    FAILED = "Failed"


# Side resources whose failure should not abort the rest of the environment
DEFAULT_BEST_EFFORT_KINDS: FrozenSet[ResourceKind] = frozenset({ResourceKind.POLICY_ATTACHMENT})

_TRANSITIONS = {
    NodeState.DECLARED: {NodeState.READY},
    NodeState.READY: {NodeState.EXECUTING, NodeState.FAILED},
    NodeState.EXECUTING: {NodeState.EXECUTED, NodeState.FAILED},
    NodeState.EXECUTED: set(),
    NodeState.FAILED: set(),
}


class ResourceNode:
    """One declared infrastructure object. Created through ResourceGraph.declare."""

    def __init__(self, name: str, kind: ResourceKind, inputs: Mapping[str, Any],
                 environment: str, index: int, best_effort: bool = False):
        self.name = name
        self.kind = ResourceKind(kind)
        self.inputs = freeze_value(dict(inputs))
        self.environment = environment
        self.index = index
        self.best_effort = best_effort
        self.state = NodeState.DECLARED
        self._outputs: Dict[str, Any] = {}
        self._depends_on: List["ResourceNode"] = []

    @property
    def outputs(self) -> Mapping[str, Any]:
        return MappingProxyType(self._outputs)

    @property
    def depends_on(self) -> List["ResourceNode"]:
        """Explicit dependencies, in the order they were added"""
        return list(self._depends_on)

    @property
    def references(self) -> List["ResourceNode"]:
        """Nodes referenced from inputs (implicit dependencies), first occurrence order"""
        seen = []
        for value in self.inputs.values():
            for reference in iter_references(value):
                if not any(node is reference.node for node in seen):
                    seen.append(reference.node)
        return seen

    @property
    def dependencies(self) -> List["ResourceNode"]:
        """Explicit and implicit dependencies combined, without duplicates"""
        combined = []
        for node in self._depends_on + self.references:
            if not any(existing is node for existing in combined):
                combined.append(node)
        return combined

    @property
    def executed(self) -> bool:
        return self.state is NodeState.EXECUTED

    def ref(self, key: str) -> Reference:
        return Reference(self, key)

    def output(self, key: str) -> Any:
        if not self.executed:
            raise UnresolvedReferenceError(
                f"Output '{key}' of '{self.name}' is not available before it executes",
                name=self.name, key=key)
        if key not in self._outputs:
            raise UnresolvedReferenceError(
                f"'{self.name}' has no output '{key}' (available: {', '.join(sorted(self._outputs)) or 'none'})",
                name=self.name, key=key)
        return self._outputs[key]

    def transition(self, state: NodeState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise ValueError(f"Invalid transition for '{self.name}': {self.state.value} -> {state.value}")
        self.state = state

    def complete(self, outputs: Optional[Mapping[str, Any]]) -> None:
        self._outputs = dict(outputs or {})
        self.transition(NodeState.EXECUTED)

    def _add_dependency(self, node: "ResourceNode") -> None:
        if not any(existing is node for existing in self._depends_on):
            self._depends_on.append(node)

    def __repr__(self):
        return f"ResourceNode({self.environment}/{self.name}, {self.kind.value}, {self.state.value})"


class ResourceGraph:
    """
    Desired-state graph of a single environment

    Args:
        environment: Deployment target name, e.g. "test" or "prod"
        best_effort_kinds: Kinds whose failure is recorded but does not abort the plan
    """

    def __init__(self, environment: str, best_effort_kinds: Optional[Iterable[ResourceKind]] = None):
        self.environment = environment
        if best_effort_kinds is None:
            best_effort_kinds = DEFAULT_BEST_EFFORT_KINDS
        self.best_effort_kinds = frozenset(ResourceKind(kind) for kind in best_effort_kinds)
        self._nodes: Dict[str, ResourceNode] = {}

    def declare(self, name: str, kind: ResourceKind, inputs: Optional[Mapping[str, Any]] = None,
                depends_on: Iterable[ResourceNode] = (), best_effort: Optional[bool] = None) -> ResourceNode:
        """
        Declare a resource node

        Args:
            name: Logical resource name, unique within this environment
            kind: Resource kind
            inputs: Literal values and references to other nodes' outputs
            depends_on: Explicit dependencies in addition to the ones implied by references
            best_effort: Override the kind default for best-effort execution

        Returns:
            The declared node

        Raises:
            DuplicateNameError: The name already exists in this environment
        """
        if name in self._nodes:
            raise DuplicateNameError(name, self.environment)
        kind = ResourceKind(kind)
        if best_effort is None:
            best_effort = kind in self.best_effort_kinds
        node = ResourceNode(name, kind, inputs or {}, self.environment, len(self._nodes), best_effort)
        self._nodes[name] = node
        for dependency in depends_on:
            self.add_dependency(node, dependency)
        return node

    def add_dependency(self, node: ResourceNode, depends_on: ResourceNode) -> None:
        if depends_on is node:
            raise SelfDependencyError(node.name)
        node._add_dependency(depends_on)

    def get(self, name: str) -> ResourceNode:
        return self._nodes[name]

    def contains(self, node: ResourceNode) -> bool:
        return self._nodes.get(node.name) is node

    @property
    def nodes(self) -> List[ResourceNode]:
        """Nodes in declaration order"""
        return list(self._nodes.values())

    def __len__(self):
        return len(self._nodes)

    def __iter__(self):
        return iter(self._nodes.values())

    def __repr__(self):
        return f"ResourceGraph({self.environment}, {len(self)} nodes)"
