# tests/property/__init__.py
"""Property-based tests for tabletfuzz.

Test categories:
- test_generator_properties: sequence legality, termination, determinism
- test_tablet_state_machine: stateful runs of the reference tablet against the oracle
- test_fuzz_run_properties: whole generated cases against fresh clusters
"""
