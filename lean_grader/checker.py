"""
Narrow interface to the proof-checking engine.

The grading core asks only three questions of the compiled terms: are two
types identical, does a proof contain an unproved placeholder, and which
axioms does a declaration depend on. `StructuralChecker` answers them from
the data exported by the Lean toolchain.
"""

from typing import Any, Protocol

from .axioms import collect_axioms
from .config import INCOMPLETE_PROOF_MARKER
from .models import Declaration, Environment


# Binder names and binder info do not change the meaning of a statement
ERASED_KEYS = frozenset({"binder", "info"})


class ProofChecker(Protocol):
    def types_equal(self, expected: Declaration, actual: Declaration) -> bool: ...

    def has_incomplete_marker(self, declaration: Declaration) -> bool: ...

    def transitive_axioms(self, environment: Environment, name: str) -> frozenset[str]: ...


def canonical_type(node: Any) -> Any:
    """
    Reduce an exported type tree to the parts that decide its meaning.

    Bound variables are de Bruijn indices in the exported tree, so dropping
    binder names leaves alpha-equivalent statements identical. Metadata
    wrappers are unwrapped. Anything that is not a tree node is returned
    unchanged.

    Args:
        node: Expression tree as produced by the exporter.

    Returns:
        The same tree without binder names, binder info or metadata nodes.
    """
    if isinstance(node, list):
        return [canonical_type(item) for item in node]
    if not isinstance(node, dict):
        return node
    if node.get("kind") == "mdata":
        return canonical_type(node.get("expr"))
    return {
        key: canonical_type(value)
        for key, value in node.items()
        if key not in ERASED_KEYS
    }


class StructuralChecker:
    """
    Proof checker backed by exported Lean terms.

    Types are compared structurally after `canonical_type`, so renamed bound
    variables are accepted while statements that are only definitionally
    equal are rejected.
    """

    def types_equal(self, expected: Declaration, actual: Declaration) -> bool:
        if expected.type is None or actual.type is None:
            return False
        try:
            return canonical_type(expected.type) == canonical_type(actual.type)
        except RecursionError:
            return False

    def has_incomplete_marker(self, declaration: Declaration) -> bool:
        return declaration.has_sorry or INCOMPLETE_PROOF_MARKER in declaration.references

    def transitive_axioms(self, environment: Environment, name: str) -> frozenset[str]:
        return collect_axioms(environment, name)
