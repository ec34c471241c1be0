"""Satisfiability checking: the mock prover, its checker and configuration."""

from .checker import (
    Category,
    CheckResult,
    FailureKind,
    FailureLocation,
    Satisfied,
    VerifyFailure,
    Violations,
    check,
    check_gate,
    check_instances,
    check_lookup,
    check_permutation,
    equivalence_classes,
    format_failures,
)
from .config import CheckerConfig
from .mock_prover import Circuit, MockProver, measure_rows, min_k, run_check

__all__ = [
    # Checker
    "Category",
    "CheckResult",
    "FailureKind",
    "FailureLocation",
    "Satisfied",
    "VerifyFailure",
    "Violations",
    "check",
    "check_gate",
    "check_instances",
    "check_lookup",
    "check_permutation",
    "equivalence_classes",
    "format_failures",
    # Configuration
    "CheckerConfig",
    # Mock prover
    "Circuit",
    "MockProver",
    "measure_rows",
    "min_k",
    "run_check",
]
