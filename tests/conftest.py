from typing import Any

import pytest

from lean_grader.models import Declaration, DeclarationKind, Environment


def const(name: str) -> dict:
    return {"kind": "const", "name": name, "levels": []}


def app(fn: dict, *args: dict) -> dict:
    node = fn
    for arg in args:
        node = {"kind": "app", "fn": node, "arg": arg}
    return node


def forall(binder: str, type: dict, body: dict, info: str = "default") -> dict:
    return {"kind": "forallE", "binder": binder, "info": info, "type": type, "body": body}


def bvar(idx: int) -> dict:
    return {"kind": "bvar", "idx": idx}


def nat(value: int) -> dict:
    return {"kind": "lit", "nat": value}


NAT = const("Nat")
# 1 + 1 = 2
EASY_TYPE = app(
    const("Eq"), NAT, app(const("HAdd.hAdd"), NAT, NAT, NAT, nat(1), nat(1)), nat(2)
)
# ∀ n : Nat, n + 0 = n
HARD_TYPE = forall(
    "n", NAT, app(const("Eq"), NAT, app(const("HAdd.hAdd"), NAT, NAT, NAT, bvar(0), nat(0)), bvar(0))
)


def make_declaration(
    name: str,
    type: Any = None,
    kind: DeclarationKind = DeclarationKind.THEOREM,
    module: str = "Assignment",
    references: tuple[str, ...] = (),
    has_sorry: bool = False,
    points: float | None = None,
    internal: bool = False,
) -> Declaration:
    return Declaration(
        name=name,
        module=module,
        kind=kind,
        type=type,
        references=references,
        has_sorry=has_sorry,
        points=points,
        internal=internal,
    )


def make_axiom(name: str, module: str = "Init.Core") -> Declaration:
    return make_declaration(name, kind=DeclarationKind.AXIOM, module=module)


def library_declarations() -> list[Declaration]:
    """Imported declarations shared by the reference and the submission."""
    return [
        make_axiom("propext"),
        make_axiom("Quot.sound"),
        make_axiom("Classical.choice"),
        make_axiom("sorryAx", module="Init.Prelude"),
        make_declaration(
            "Nat.add_zero",
            module="Init.Core",
            references=("propext",),
        ),
    ]


@pytest.fixture
def reference() -> Environment:
    """Reference sheet with two exercises, a helper and an auxiliary lemma."""
    declarations = library_declarations() + [
        make_declaration("easy", type=EASY_TYPE, references=("propext",), points=2.0),
        make_declaration("helper", type=const("Type"), kind=DeclarationKind.DEFINITION),
        make_declaration("hard", type=HARD_TYPE, references=("Nat.add_zero",), points=3.0),
        make_declaration("hard._proof_1", type=const("True"), internal=True, points=1.0),
    ]
    return Environment.from_declarations("Assignment", declarations)


@pytest.fixture
def submission() -> Environment:
    """Submission that solves both exercises with whitelisted axioms only."""
    declarations = library_declarations() + [
        make_declaration(
            "easy", type=EASY_TYPE, module="Submission", references=("propext", "Quot.sound")
        ),
        make_declaration(
            "hard", type=HARD_TYPE, module="Submission", references=("Nat.add_zero",)
        ),
    ]
    return Environment.from_declarations("Submission", declarations)


def replace_declaration(environment: Environment, declaration: Declaration) -> Environment:
    """Copy of `environment` with one declaration added or replaced."""
    declarations = dict(environment.declarations)
    declarations[declaration.name] = declaration
    return Environment.from_declarations(
        environment.module, list(declarations.values()), list(environment.modules)
    )
