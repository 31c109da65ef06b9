# src/tabletfuzz/fuzz/__init__.py
"""Single-row consistency fuzzing: generator, executor, oracle and harness.

Import patterns:
    from tabletfuzz.fuzz import FuzzHarness, OperationExecutor, generate_test_case
"""

from tabletfuzz.fuzz.executor import OperationExecutor, encode_value
from tabletfuzz.fuzz.generator import (
    IMPLICIT_COMMIT_OPS,
    SequenceGenerator,
    TabletModelState,
    check_sequence_legal,
    dump_test_case,
    generate_test_case,
    legal_ops,
    parse_test_case,
    precondition_failure,
    transition,
)
from tabletfuzz.fuzz.harness import FuzzHarness
from tabletfuzz.fuzz.oracle import ABSENT_ROW, RowOracle
from tabletfuzz.fuzz.runner import FuzzRunReport, draw_seed, run_fuzz
from tabletfuzz.fuzz.scenarios import SCENARIOS, Scenario, get_scenario

__all__ = [
    "ABSENT_ROW",
    "IMPLICIT_COMMIT_OPS",
    "SCENARIOS",
    "FuzzHarness",
    "FuzzRunReport",
    "OperationExecutor",
    "RowOracle",
    "Scenario",
    "SequenceGenerator",
    "TabletModelState",
    "check_sequence_legal",
    "draw_seed",
    "dump_test_case",
    "encode_value",
    "generate_test_case",
    "get_scenario",
    "legal_ops",
    "parse_test_case",
    "precondition_failure",
    "run_fuzz",
    "transition",
]
