"""
Grading orchestrator.

Derives the exercise list from the reference sheet and grades each
exercise against the submission, in reference declaration order.
"""

from collections.abc import Mapping

from .axioms import AxiomValidator
from .checker import ProofChecker
from .config import NO_EXERCISES_MESSAGE
from .errors import ConfigurationError
from .matcher import verify_exercise
from .models import Declaration, Environment, ExerciseResult, ExerciseSpec


def is_internal_name(name: str) -> bool:
    """
    Check whether a name was generated by the compiler.

    Lean marks auxiliary declarations with a name component starting with
    an underscore (e.g. `foo._proof_1`, `_private.Assignment.0.bar`).
    """
    return any(part.startswith("_") for part in name.split("."))


def _is_internal(declaration: Declaration) -> bool:
    return declaration.internal or is_internal_name(declaration.name)


def collect_exercises(
    reference: Environment,
    module_name: str,
    points: Mapping[str, float] | None = None,
) -> list[ExerciseSpec]:
    """
    List the gradable exercises of a reference module.

    Args:
        reference: Compiled reference sheet.
        module_name: Module holding the reference declarations.
        points: Point annotations by declaration name. Defaults to the
            annotations exported with the reference environment.

    Returns:
        Exercises in declaration order. May be empty.

    Raises:
        ConfigurationError: If the module is not part of the environment.
    """
    if not reference.has_module(module_name):
        raise ConfigurationError(f"Module {module_name} not found in the reference environment")

    if points is None:
        points = reference.point_annotations()

    exercises: list[ExerciseSpec] = []
    for declaration in reference.module_declarations(module_name):
        if _is_internal(declaration):
            continue
        if declaration.name not in points:
            continue
        exercises.append(ExerciseSpec(name=declaration.name, points=points[declaration.name]))

    return exercises


def grade_exercises(
    reference: Environment,
    submission: Environment,
    module_name: str,
    points: Mapping[str, float] | None = None,
    checker: ProofChecker | None = None,
    validator: AxiomValidator | None = None,
) -> list[ExerciseResult]:
    """
    Grade every annotated exercise of the reference module.

    Args:
        reference: Compiled reference sheet.
        submission: Compiled or degraded submission environment.
        module_name: Module holding the reference declarations.
        points: Point annotations by declaration name.
        checker: Proof checker passed to the matcher.
        validator: Axiom validator passed to the matcher.

    Returns:
        One ExerciseResult per exercise, in declaration order.

    Raises:
        ConfigurationError: If the module is missing or has no annotated
            declarations.
    """
    results: list[ExerciseResult] = []

    for exercise in collect_exercises(reference, module_name, points):
        result = verify_exercise(exercise, reference, submission, checker, validator)
        results.append(result)

    if not results:
        raise ConfigurationError(NO_EXERCISES_MESSAGE)

    return results
