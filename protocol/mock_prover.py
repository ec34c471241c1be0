"""Mock prover: configure, synthesize and check a circuit without proving.

A circuit is a class with three hooks:

    class MyCircuit(Circuit):
        @classmethod
        def configure(cls, meta: ConstraintSystem) -> MyConfig: ...
        def synthesize(self, config: MyConfig, layouter: Layouter) -> None: ...
        def without_witnesses(self) -> "MyCircuit": ...

configure() declares columns, gates and lookups once. synthesize() fills the
witness through the layouter. without_witnesses() returns a copy whose
private inputs are Value.unknown(); it is synthesized in shape-only mode to
measure how many rows the circuit needs.

Usage:
    prover = MockProver.run(4, circuit, [public_inputs])
    result = prover.verify()
    if not result.is_satisfied:
        print(result)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

import numpy as np

from constraints.columns import ColumnKind
from constraints.system import ConstraintSystem
from primitives.errors import SynthesisError
from primitives.field import FF
from witness.grid import WitnessGrid
from witness.layouter import Assembly, Layouter
from .checker import CheckResult, check, format_failures
from .config import CheckerConfig

logger = logging.getLogger(__name__)


class Circuit(ABC):
    """Base class for circuits checked by MockProver."""

    @classmethod
    @abstractmethod
    def configure(cls, meta: ConstraintSystem) -> Any:
        """Declare columns, gates and lookups; return the circuit's config."""

    @abstractmethod
    def synthesize(self, config: Any, layouter: Layouter) -> None:
        """Assign the witness through `layouter`."""

    @abstractmethod
    def without_witnesses(self) -> "Circuit":
        """Copy of this circuit with every private input unknown."""


def _normalize_instances(cs: ConstraintSystem, instances: Sequence) -> List[Sequence]:
    """One value sequence per instance column.

    A flat sequence of scalars is accepted when the circuit has exactly one
    instance column.
    """
    n_columns = cs.registry.count(ColumnKind.INSTANCE)
    instances = list(instances)
    if n_columns == 1 and instances and all(np.ndim(v) == 0 for v in instances):
        instances = [instances]
    if instances and len(instances) != n_columns:
        raise SynthesisError(
            f"circuit has {n_columns} instance columns but {len(instances)} public input vectors were given"
        )
    return instances + [[] for _ in range(n_columns - len(instances))]


class MockProver:
    """Result of configuring and synthesizing a circuit at a fixed size.

    Attributes:
        k: log2 of the grid height
        cs: Frozen constraint system
        assembly: Grid, regions, copies and instance bindings
        config: Checker parameters used by verify()
    """

    def __init__(self, k: int, cs: ConstraintSystem, assembly: Assembly, config: CheckerConfig):
        self.k = k
        self.cs = cs
        self.assembly = assembly
        self.config = config

    @property
    def grid(self) -> WitnessGrid:
        return self.assembly.grid

    @classmethod
    def run(
        cls,
        k: int,
        circuit: Circuit,
        instances: Sequence = (),
        config: Optional[CheckerConfig] = None,
        field: type = FF,
    ) -> "MockProver":
        """Configure and synthesize `circuit` on a grid of height 2^k.

        Args:
            k: log2 of the grid height
            circuit: Circuit with known private inputs
            instances: Public inputs, one sequence per instance column (or a
                flat sequence for a single instance column); missing rows
                are zero
            config: Checker parameters (defaults to CheckerConfig())
            field: galois prime field class for all values

        Returns:
            MockProver ready for verify()

        Raises:
            ConfigurationError: configure() made an invalid declaration
            SynthesisError: synthesis failed (shadowing, row out of range,
                unknown or poisoned value, ...)
        """
        cs = ConstraintSystem(field)
        circuit_config = type(circuit).configure(cs)
        cs.freeze()

        grid = WitnessGrid(field, k)
        layouter = Layouter(cs, grid, _normalize_instances(cs, instances))
        circuit.synthesize(circuit_config, layouter)
        assembly = layouter.finish()
        logger.debug("synthesized %s at k=%d: %d regions, %d rows used",
                     type(circuit).__name__, k, len(assembly.regions), assembly.next_row)
        return cls(k, cs, assembly, config or CheckerConfig())

    def verify(self) -> CheckResult:
        """Check every gate, lookup, copy and instance constraint."""
        return check(self.cs, self.assembly, self.config)

    def assert_satisfied(self) -> None:
        """Raise AssertionError listing every failure if the witness is invalid."""
        result = self.verify()
        if not result.is_satisfied:
            raise AssertionError(
                f"circuit is not satisfied ({len(result.failures)} failures):\n"
                + format_failures(result.failures, result.truncated)
            )


def run_check(
    circuit: Circuit,
    k: int,
    public_inputs: Sequence = (),
    config: Optional[CheckerConfig] = None,
) -> CheckResult:
    """Synthesize `circuit` at size 2^k and return Satisfied() or Violations(...)."""
    return MockProver.run(k, circuit, public_inputs, config).verify()


# --- Sizing ---

def measure_rows(circuit: Circuit, field: type = FF) -> int:
    """Rows needed by `circuit`: regions, constants and lookup tables.

    Synthesizes circuit.without_witnesses() in shape-only mode, so no witness
    value is computed.
    """
    cs = ConstraintSystem(field)
    circuit_config = type(circuit).configure(cs)
    cs.freeze()
    n_instances = cs.registry.count(ColumnKind.INSTANCE)
    layouter = Layouter(cs, None, [[] for _ in range(n_instances)])
    circuit.without_witnesses().synthesize(circuit_config, layouter)
    assembly = layouter.finish()
    return max(assembly.next_row, assembly.table_height)


def min_k(circuit: Circuit, field: type = FF) -> int:
    """Smallest k whose grid height 2^k fits `circuit`."""
    rows = measure_rows(circuit, field)
    return (max(rows, 1) - 1).bit_length()
