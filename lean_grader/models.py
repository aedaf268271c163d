"""
Pydantic models for the Lean Grader.

Defines compiled environments as exported from the Lean toolchain,
per-exercise grading results, and the JSON documents consumed by the
hosting grading platform.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .config import OUTPUT_FORMAT


class DeclarationKind(str, Enum):
    """Kind of constant as reported by the Lean kernel."""

    AXIOM = "axiom"
    DEFINITION = "definition"
    THEOREM = "theorem"
    OPAQUE = "opaque"
    QUOTIENT = "quot"
    INDUCTIVE = "inductive"
    CONSTRUCTOR = "constructor"
    RECURSOR = "recursor"


class Declaration(BaseModel):
    """
    A named constant inside a compiled environment.

    Attributes:
        name: Fully qualified declaration name.
        module: Module the declaration was defined in.
        kind: Kernel kind of the declaration.
        type: Elaborated type as an expression tree of JSON objects, one
            per `Expr` node keyed by "kind". Only exported for declarations
            of the graded module.
        references: Constants referenced directly by the type or proof term.
        has_sorry: Whether the exporter found a sorry anywhere in the term.
        points: Point value attached by the course annotation, if any.
        internal: Whether the name was generated by the compiler.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Fully qualified declaration name")
    module: str | None = Field(default=None, description="Defining module")
    kind: DeclarationKind = Field(..., description="Kernel declaration kind")
    type: Any = Field(default=None, description="Elaborated type expression tree")
    references: tuple[str, ...] = Field(
        default=(), description="Constants referenced by type and value"
    )
    has_sorry: bool = Field(default=False, description="Whether the term contains sorry")
    points: float | None = Field(default=None, ge=0, description="Annotated point value")
    internal: bool = Field(default=False, description="Compiler-generated declaration")


class EnvironmentKind(str, Enum):
    """Whether an environment came from a successful build."""

    COMPILED = "compiled"
    DEGRADED = "degraded"


class Environment(BaseModel):
    """
    Read-only snapshot of a compiled Lean environment.

    A degraded environment stands in for a submission that failed to build:
    it holds only what the reference sheet imports, so every exercise
    lookup misses without any special casing by the caller.

    Attributes:
        kind: Compiled or degraded.
        module: Name of the main module this environment was exported for.
        modules: All modules loaded into the environment.
        declarations: Declarations keyed by name, in export order.
    """

    model_config = ConfigDict(frozen=True)

    kind: EnvironmentKind = Field(default=EnvironmentKind.COMPILED)
    module: str = Field(..., description="Main module name")
    modules: tuple[str, ...] = Field(default=(), description="Loaded modules")
    declarations: dict[str, Declaration] = Field(default_factory=dict)

    @classmethod
    def from_declarations(
        cls,
        module: str,
        declarations: list[Declaration],
        modules: list[str] | None = None,
        kind: EnvironmentKind = EnvironmentKind.COMPILED,
    ) -> "Environment":
        """
        Build an environment from an ordered list of declarations.

        Args:
            module: Main module name.
            declarations: Declarations in export order.
            modules: Loaded module names. Defaults to the modules seen in
                the declarations, main module included.
            kind: Compiled or degraded.

        Returns:
            Environment keyed by declaration name.
        """
        if modules is None:
            modules = [module]
            for declaration in declarations:
                if declaration.module and declaration.module not in modules:
                    modules.append(declaration.module)
        return cls(
            kind=kind,
            module=module,
            modules=tuple(modules),
            declarations={d.name: d for d in declarations},
        )

    @property
    def is_degraded(self) -> bool:
        return self.kind is EnvironmentKind.DEGRADED

    def lookup(self, name: str) -> Declaration | None:
        """Return the declaration called `name`, or None if absent."""
        return self.declarations.get(name)

    def has_module(self, module: str) -> bool:
        return module in self.modules

    def module_declarations(self, module: str) -> list[Declaration]:
        """Declarations defined in `module`, in declaration order."""
        return [d for d in self.declarations.values() if d.module == module]

    def point_annotations(self) -> dict[str, float]:
        """Map every annotated declaration name to its point value."""
        return {
            d.name: d.points for d in self.declarations.values() if d.points is not None
        }

    def degraded(self) -> "Environment":
        """
        Fallback environment holding only this environment's imports.

        Returns:
            Degraded copy without any declaration of the main module.
        """
        return Environment(
            kind=EnvironmentKind.DEGRADED,
            module=self.module,
            modules=tuple(m for m in self.modules if m != self.module),
            declarations={
                name: d for name, d in self.declarations.items() if d.module != self.module
            },
        )


class ExerciseSpec(BaseModel):
    """
    A point-annotated reference declaration to be graded.

    Attributes:
        name: Qualified declaration name.
        points: Points awarded when the exercise passes.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Qualified declaration name")
    points: float = Field(..., ge=0, description="Points for this exercise")


class ExerciseStatus(str, Enum):
    """Terminal state of one exercise."""

    PASSED = "passed"
    FAILED_MISSING = "failed_missing"
    FAILED_INCOMPLETE = "failed_incomplete"
    FAILED_TYPE_MISMATCH = "failed_type_mismatch"
    FAILED_AXIOM_VIOLATION = "failed_axiom_violation"
    FAILED_BUILD_ERROR = "failed_build_error"

    @property
    def passed(self) -> bool:
        return self is ExerciseStatus.PASSED


class ExerciseResult(BaseModel):
    """
    Grading outcome for a single exercise.

    Attributes:
        name: Exercise (declaration) name.
        status: Terminal status.
        score: Points earned; the full value if passed, 0.0 otherwise.
        max_score: Points available.
        output: Human-readable explanation.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Exercise name")
    status: ExerciseStatus = Field(..., description="Terminal status")
    score: float = Field(..., ge=0, description="Points earned")
    max_score: float = Field(..., ge=0, description="Points available")
    output: str = Field(..., description="Explanation shown to the student")


class GradingReport(BaseModel):
    """
    Final grading report for one submission.

    Attributes:
        results: One result per exercise, in reference declaration order.
        summary: Free text such as build warnings.
        output_format: Format tag for `summary` and result outputs.
    """

    model_config = ConfigDict(frozen=True)

    results: tuple[ExerciseResult, ...] = Field(..., min_length=1)
    summary: str = Field(default="", description="Build and placement warnings")
    output_format: str = Field(default=OUTPUT_FORMAT)

    @property
    def total_score(self) -> float:
        return sum(r.score for r in self.results)

    @property
    def max_score(self) -> float:
        return sum(r.max_score for r in self.results)


class BuildResult(BaseModel):
    """
    Result of one invocation of the Lean build toolchain.

    Attributes:
        success: Whether the build finished without errors.
        errors: Compiler error lines.
        log: Combined stdout and stderr.
        timed_out: Whether the build exceeded its time limit.
    """

    success: bool = Field(..., description="Whether the build succeeded")
    errors: list[str] = Field(default_factory=list, description="Compiler error lines")
    log: str = Field(default="", description="Combined compiler output")
    timed_out: bool = Field(default=False, description="Whether the build timed out")


class ReportEntry(BaseModel):
    """One entry of the `tests` array in results.json."""

    score: float
    output: str
    name: str
    status: Literal["passed", "failed"]


class ResultsDocument(BaseModel):
    """results.json written after a complete grading run."""

    tests: list[ReportEntry]
    output: str
    output_format: str = OUTPUT_FORMAT


class FatalDocument(BaseModel):
    """results.json written in place of a report when grading cannot proceed."""

    output: str
    score: float = 0.0
    output_format: str = OUTPUT_FORMAT
