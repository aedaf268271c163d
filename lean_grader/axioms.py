"""
Axiom validation for submitted proofs.

Computes the transitive set of axioms a declaration depends on, following
every reference through the exported dependency graph across module
boundaries, and checks it against the course whitelist.
"""

from collections.abc import Callable, Iterable

from .config import VALID_AXIOMS
from .models import DeclarationKind, Environment


def collect_axioms(environment: Environment, name: str) -> frozenset[str]:
    """
    Collect every axiom reachable from a declaration.

    Walks the dependency graph with an explicit worklist and a visited set,
    so mutually recursive declarations terminate and each declaration is
    expanded at most once. References that the environment does not
    contain are skipped.

    Args:
        environment: Environment the declaration was compiled into.
        name: Declaration to start from.

    Returns:
        Names of all axioms the declaration depends on.
    """
    axioms: set[str] = set()
    visited: set[str] = set()
    worklist: list[str] = [name]

    while worklist:
        current = worklist.pop()
        if current in visited:
            continue
        visited.add(current)

        declaration = environment.lookup(current)
        if declaration is None:
            continue

        if declaration.kind is DeclarationKind.AXIOM:
            axioms.add(current)

        worklist.extend(ref for ref in declaration.references if ref not in visited)

    return frozenset(axioms)


class AxiomValidator:
    """
    Checks a declaration's transitive axioms against a whitelist.

    An empty axiom set always passes; a single axiom outside the whitelist
    fails, however many whitelisted axioms are also used.
    """

    def __init__(
        self,
        whitelist: Iterable[str] = VALID_AXIOMS,
        closure: Callable[[Environment, str], frozenset[str]] | None = None,
    ) -> None:
        """
        Initialize the validator.

        Args:
            whitelist: Axiom names accepted for credit.
            closure: Function computing the transitive axioms of a
                declaration. Defaults to `collect_axioms`.
        """
        self.whitelist = frozenset(whitelist)
        self.closure = closure or collect_axioms

    def unexpected_axioms(self, environment: Environment, name: str) -> frozenset[str]:
        """Axioms used by `name` that are not on the whitelist."""
        return self.closure(environment, name) - self.whitelist

    def validate(self, environment: Environment, name: str) -> bool:
        """Return True if `name` depends only on whitelisted axioms."""
        return not self.unexpected_axioms(environment, name)
