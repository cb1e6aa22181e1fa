"""
Input values for resource nodes
A value is either a literal or a deferred reference to another node's output
"""

from types import MappingProxyType
from typing import Any, Iterator, Mapping, TYPE_CHECKING

if TYPE_CHECKING:
    from .nodes import ResourceNode


class Literal:
    """Explicit literal value. Bare Python values in inputs are treated the same way."""

    __slots__ = ("value",)

    def __init__(self, value: Any):
        self.value = value

    def __eq__(self, other):
        return isinstance(other, Literal) and other.value == self.value

    def __hash__(self):
        return hash(("literal", repr(self.value)))

    def __repr__(self):
        return f"Literal({self.value!r})"


class Reference:
    """
    Deferred reference to an output of another node

    The value becomes available only after the referenced node has executed.
    Declaring an input with a reference creates an implicit dependency edge.
    """

    __slots__ = ("node", "key")

    def __init__(self, node: "ResourceNode", key: str):
        self.node = node
        self.key = key

    def resolve(self) -> Any:
        return self.node.output(self.key)

    def __eq__(self, other):
        return isinstance(other, Reference) and other.node is self.node and other.key == self.key

    def __hash__(self):
        return hash((id(self.node), self.key))

    def __repr__(self):
        return f"Reference({self.node.name}.{self.key})"


class FrozenList(tuple):
    """List input after declaration; resolves back to a list"""

    def __repr__(self):
        return f"FrozenList({list(self)!r})"


def freeze_value(value: Any) -> Any:
    """
    Copy a value into a read-only structure

    Dicts become read-only mappings and lists become FrozenList, at every
    nesting level, so later changes to the caller's objects never reach a
    declared node. References and other objects are kept as they are.
    """
    if isinstance(value, Literal):
        return Literal(freeze_value(value.value))
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze_value(item) for key, item in value.items()})
    if isinstance(value, (list, FrozenList)):
        return FrozenList(freeze_value(item) for item in value)
    if isinstance(value, tuple):
        return tuple(freeze_value(item) for item in value)
    return value


def iter_references(value: Any) -> Iterator[Reference]:
    """Yield every reference nested inside a value (mappings, lists, tuples, literals)"""
    if isinstance(value, Reference):
        yield value
    elif isinstance(value, Literal):
        yield from iter_references(value.value)
    elif isinstance(value, Mapping):
        for item in value.values():
            yield from iter_references(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from iter_references(item)


def resolve_value(value: Any) -> Any:
    """
    Replace every reference inside a value with the referenced output

    Args:
        value: Literal, reference, or a nested structure containing them

    Returns:
        Plain value with the same shape; frozen mappings and lists come back as dict and list

    Raises:
        UnresolvedReferenceError: A referenced node has not executed yet
    """
    if isinstance(value, Reference):
        return value.resolve()
    if isinstance(value, Literal):
        return resolve_value(value.value)
    if isinstance(value, Mapping):
        return {key: resolve_value(item) for key, item in value.items()}
    if isinstance(value, (list, FrozenList)):
        return [resolve_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(resolve_value(item) for item in value)
    return value
