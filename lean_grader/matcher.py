"""
Declaration matcher and verifier.

Decides pass or fail for one exercise by comparing the submitted
declaration with the reference declaration of the same name.
"""

from .axioms import AxiomValidator
from .checker import ProofChecker, StructuralChecker
from .config import (
    AXIOM_VIOLATION_MESSAGE,
    INCOMPLETE_MESSAGE,
    MISSING_MESSAGE,
    PASSED_MESSAGE,
    TYPE_MISMATCH_MESSAGE,
)
from .errors import ConfigurationError
from .models import Environment, ExerciseResult, ExerciseSpec, ExerciseStatus


def verify_exercise(
    exercise: ExerciseSpec,
    reference: Environment,
    submission: Environment,
    checker: ProofChecker | None = None,
    validator: AxiomValidator | None = None,
) -> ExerciseResult:
    """
    Grade a single exercise.

    Checks run in a fixed order and the first failing one decides the
    result:

    1. The declaration must exist in the submission.
    2. Its proof must not contain sorry anywhere in the term.
    3. Its type must be structurally identical to the reference type.
    4. It may depend only on whitelisted axioms.

    Args:
        exercise: Exercise to grade.
        reference: Compiled reference sheet.
        submission: Compiled (or degraded) submission environment.
        checker: Proof checker used for type and sorry checks.
        validator: Axiom validator. Defaults to one using `checker`'s
            axiom closure and the course whitelist.

    Returns:
        ExerciseResult for this exercise.

    Raises:
        ConfigurationError: If the exercise is not declared in the reference.
    """
    checker = checker or StructuralChecker()
    validator = validator or AxiomValidator(closure=checker.transitive_axioms)

    expected = reference.lookup(exercise.name)
    if expected is None:
        raise ConfigurationError(
            f"Exercise {exercise.name} is not declared in the reference sheet"
        )

    submitted = submission.lookup(exercise.name)
    if submitted is None:
        return _failed(exercise, ExerciseStatus.FAILED_MISSING, MISSING_MESSAGE)

    if checker.has_incomplete_marker(submitted):
        return _failed(exercise, ExerciseStatus.FAILED_INCOMPLETE, INCOMPLETE_MESSAGE)

    if not checker.types_equal(expected, submitted):
        return _failed(exercise, ExerciseStatus.FAILED_TYPE_MISMATCH, TYPE_MISMATCH_MESSAGE)

    unexpected = validator.unexpected_axioms(submission, exercise.name)
    if unexpected:
        print(f"    {exercise.name} uses unexpected axioms: {', '.join(sorted(unexpected))}")
        return _failed(exercise, ExerciseStatus.FAILED_AXIOM_VIOLATION, AXIOM_VIOLATION_MESSAGE)

    return ExerciseResult(
        name=exercise.name,
        status=ExerciseStatus.PASSED,
        score=exercise.points,
        max_score=exercise.points,
        output=PASSED_MESSAGE,
    )


def _failed(exercise: ExerciseSpec, status: ExerciseStatus, message: str) -> ExerciseResult:
    return ExerciseResult(
        name=exercise.name,
        status=status,
        score=0.0,
        max_score=exercise.points,
        output=message,
    )
