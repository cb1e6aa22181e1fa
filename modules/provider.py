"""
Pulumi-backed provider capability
Declares the Pulumi resource behind each node kind and hands its outputs back to the engine
"""

import pulumi
from typing import Any, Dict

from stackgraph import ProviderError, ResourceKind
from modules.registry import get_handler

# Importing the function modules registers their handlers
from modules.iam import functions as _iam  # noqa: F401
from modules.eks import functions as _eks  # noqa: F401
from modules.addons import functions as _addons  # noqa: F401


class PulumiProvider:
    """Provider capability that declares resources in the running Pulumi program"""

    def apply(self, kind: ResourceKind, inputs: Dict[str, Any], name: str) -> Dict[str, Any]:
        kind = ResourceKind(kind)
        try:
            handler = get_handler(kind)
        except KeyError as e:
            raise ProviderError(kind.value, name, str(e)) from e

        pulumi.log.debug(f"Declaring {kind.value} {name}")
        try:
            return handler(name, **inputs)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(kind.value, name, str(e) or type(e).__name__, cause=e) from e
