"""
Dependency resolver
Orders a ResourceGraph topologically with a three-colour depth-first traversal
"""

from typing import Dict, Iterator, List, Tuple

from .errors import CycleDetectedError, UnresolvedReferenceError
from .nodes import ResourceGraph, ResourceNode

_WHITE, _GRAY, _BLACK = 0, 1, 2


class ExecutionPlan:
    """Ordered nodes of one environment; every node comes after all of its dependencies"""

    def __init__(self, graph: ResourceGraph, nodes: Tuple[ResourceNode, ...]):
        self.graph = graph
        self.nodes = nodes

    @property
    def environment(self) -> str:
        return self.graph.environment

    @property
    def names(self) -> List[str]:
        return [node.name for node in self.nodes]

    def __iter__(self):
        return iter(self.nodes)

    def __len__(self):
        return len(self.nodes)

    def __repr__(self):
        return f"ExecutionPlan({self.environment}: {', '.join(self.names)})"


def _check_membership(graph: ResourceGraph, node: ResourceNode) -> None:
    for dependency in node.depends_on:
        if not graph.contains(dependency):
            raise UnresolvedReferenceError(
                f"'{node.name}' depends on '{dependency.name}' which is not declared "
                f"in environment '{graph.environment}'",
                name=dependency.name)
    for dependency in node.references:
        if not graph.contains(dependency):
            raise UnresolvedReferenceError(
                f"'{node.name}' references '{dependency.name}' which is not declared "
                f"in environment '{graph.environment}'",
                name=dependency.name)


def _sorted_dependencies(node: ResourceNode) -> Iterator[ResourceNode]:
    return iter(sorted(node.dependencies, key=lambda n: n.index))


def resolve_plan(graph: ResourceGraph) -> ExecutionPlan:
    """
    Compute the execution plan of a graph

    Roots and siblings are visited in declaration order, so the same graph
    always produces the same plan.

    Args:
        graph: Declared resource graph

    Returns:
        ExecutionPlan in topological order

    Raises:
        UnresolvedReferenceError: A node depends on a node outside the graph
        CycleDetectedError: The dependency edges contain a cycle
    """
    for node in graph:
        _check_membership(graph, node)

    colour: Dict[str, int] = {node.name: _WHITE for node in graph}
    order: List[ResourceNode] = []
    path: List[ResourceNode] = []

    def visit(root: ResourceNode) -> None:
        # explicit stack of (node, remaining dependencies); long chains must not hit the recursion limit
        colour[root.name] = _GRAY
        path.append(root)
        stack: List[Tuple[ResourceNode, Iterator[ResourceNode]]] = [(root, _sorted_dependencies(root))]
        while stack:
            node, dependencies = stack[-1]
            for dependency in dependencies:
                state = colour[dependency.name]
                if state == _GRAY:
                    start = next(i for i, member in enumerate(path) if member is dependency)
                    raise CycleDetectedError([member.name for member in path[start:]] + [dependency.name])
                if state == _WHITE:
                    colour[dependency.name] = _GRAY
                    path.append(dependency)
                    stack.append((dependency, _sorted_dependencies(dependency)))
                    break
            else:
                stack.pop()
                path.pop()
                colour[node.name] = _BLACK
                order.append(node)

    for node in graph:
        if colour[node.name] == _WHITE:
            visit(node)

    return ExecutionPlan(graph, tuple(order))
