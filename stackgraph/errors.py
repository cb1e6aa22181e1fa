"""
Error taxonomy for the stack graph
Plan-time errors are raised before any provider call, apply-time errors while executing
"""

from typing import List, Optional


class StackGraphError(Exception):
    """Base class for every error raised by the stack graph"""


class PlanError(StackGraphError):
    """Raised while building or ordering the graph. Always fatal to the whole run."""


class DuplicateNameError(PlanError):
    def __init__(self, name: str, environment: str):
        super().__init__(f"Resource '{name}' is already declared in environment '{environment}'")
        self.name = name
        self.environment = environment


class SelfDependencyError(PlanError):
    def __init__(self, name: str):
        super().__init__(f"Resource '{name}' cannot depend on itself")
        self.name = name


class CycleDetectedError(PlanError):
    def __init__(self, cycle: List[str]):
        super().__init__(f"Dependency cycle detected: {' -> '.join(cycle)}")
        self.cycle = cycle


class UnresolvedReferenceError(PlanError):
    def __init__(self, message: str, name: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message)
        self.name = name
        self.key = key


class InputFileError(PlanError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid input file {path}: {reason}")
        self.path = path
        self.reason = reason


class ProviderError(StackGraphError):
    """
    Raised by a provider capability while applying a resource

    Args:
        kind: Resource kind that was being applied
        name: Logical resource name
        message: What went wrong
        cause: Underlying exception, if any
    """

    def __init__(self, kind: str, name: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{kind} '{name}': {message}")
        self.kind = kind
        self.name = name
        self.cause = cause


class ExecutionStateError(StackGraphError):
    def __init__(self, name: str, state: str):
        super().__init__(f"Resource '{name}' is in state {state} and cannot be executed again")
        self.name = name
        self.state = state


class DuplicateExportError(StackGraphError):
    def __init__(self, name: str):
        super().__init__(f"Output '{name}' is already exported")
        self.name = name
