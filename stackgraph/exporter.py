"""
State exporter
Records named stack outputs in declaration order
"""

from typing import Any, Callable, Iterable, List, Optional, Tuple

import pulumi

from .errors import DuplicateExportError, UnresolvedReferenceError
from .values import resolve_value


class StateExporter:
    """Named outputs for external consumption, e.g. one kubeconfig per environment"""

    def __init__(self):
        self._entries: List[Tuple[str, Any, Optional[str]]] = []
        self._names = set()

    def export(self, name: str, value: Any, environment: Optional[str] = None) -> None:
        """
        Record a named output

        Args:
            name: Output name, unique across the run
            value: Literal value or reference to a node output
            environment: Environment the output belongs to, if any

        Raises:
            DuplicateExportError: The name was already exported
        """
        if name in self._names:
            raise DuplicateExportError(name)
        self._names.add(name)
        self._entries.append((name, value, environment))

    @property
    def names(self) -> List[str]:
        return [name for name, _, _ in self._entries]

    def _selected(self, environments: Optional[Iterable[str]]) -> List[Tuple[str, Any, Optional[str]]]:
        selected = None if environments is None else set(environments)
        return [
            entry for entry in self._entries
            if selected is None or entry[2] is None or entry[2] in selected
        ]

    def items(self, environments: Optional[Iterable[str]] = None) -> List[Tuple[str, Any]]:
        """
        Resolved (name, value) pairs in declaration order, optionally limited to some environments

        Raises:
            UnresolvedReferenceError: A referenced node did not execute
        """
        return [(name, resolve_value(value)) for name, value, _ in self._selected(environments)]

    def publish(self, sink: Callable[[str, Any], None] = None,
                environments: Optional[Iterable[str]] = None) -> List[str]:
        """
        Hand every resolved output to a sink, pulumi.export by default

        Outputs whose references cannot be resolved, e.g. a kubeconfig of a
        cluster skipped after a best-effort failure, are left out with a warning.

        Returns:
            Names of the published outputs
        """
        sink = sink or pulumi.export
        published = []
        for name, value, _ in self._selected(environments):
            try:
                resolved = resolve_value(value)
            except UnresolvedReferenceError as e:
                pulumi.log.warn(f"Not publishing {name}: {e}")
                continue
            sink(name, resolved)
            published.append(name)
        pulumi.log.info(f"Published {len(published)} outputs")
        return published

    def __len__(self):
        return len(self._entries)
