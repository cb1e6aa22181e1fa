"""
Maps a resource kind to the function that declares it
"""

from typing import Any, Callable, Dict, List

from stackgraph import ResourceKind

Handler = Callable[..., Dict[str, Any]]

_REGISTRY: Dict[ResourceKind, Handler] = {}


def register(kind: ResourceKind):
    def deco(fn: Handler):
        _REGISTRY[ResourceKind(kind)] = fn
        return fn
    return deco


def get_handler(kind: ResourceKind) -> Handler:
    kind = ResourceKind(kind)
    if kind not in _REGISTRY:
        raise KeyError(f"No handler registered for resource kind '{kind.value}'")
    return _REGISTRY[kind]


def registered_kinds() -> List[ResourceKind]:
    return list(_REGISTRY)
