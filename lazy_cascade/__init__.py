"""lazy-cascade: cascade version bumps through a uv workspace.

When a workspace package is released, every package that depends on it
(directly or transitively) needs a new version too, with its dependency
pins, the shared uv.lock and its changelog updated to match.
"""

from .errors import ConfigurationError, LazyCascadeError
from .models import CascadeResult, CompositeMutation, MutationInstruction, MutationKind
from .pipeline import CascadeOrchestrator, apply_mutations, run_cascade
from .versions import VersionMap

__all__ = [
    "CascadeOrchestrator",
    "CascadeResult",
    "CompositeMutation",
    "ConfigurationError",
    "LazyCascadeError",
    "MutationInstruction",
    "MutationKind",
    "VersionMap",
    "apply_mutations",
    "run_cascade",
]
