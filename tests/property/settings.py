# tests/property/settings.py
"""Standardized Hypothesis settings profiles for property tests.

Provides consistent test intensity across all property test modules.
Import these instead of using inline @settings(max_examples=...).

Usage:
    from tests.property.settings import STANDARD_SETTINGS

    @given(seed=seeds)
    @STANDARD_SETTINGS
    def test_something(seed):
        ...

Tiers:
- DETERMINISM_SETTINGS: 500 examples - generator/model purity checks
- STATE_MACHINE_SETTINGS: 200 examples - Stateful tests against the engine
- STANDARD_SETTINGS: 100 examples - Regular property tests
- SLOW_SETTINGS: 50 examples - Full fuzz runs (database-backed cluster)
- QUICK_SETTINGS: 20 examples - Fast validation tests
"""

from hypothesis import settings

# Same seed must always give the same case; cheap, so run many
DETERMINISM_SETTINGS = settings(max_examples=500)

# Stateful tests need enough steps to explore rowset layering
STATE_MACHINE_SETTINGS = settings(max_examples=200, stateful_step_count=60)

# Standard property tests - good balance of coverage and speed
STANDARD_SETTINGS = settings(max_examples=100)

# Each example starts a cluster and runs a whole case
SLOW_SETTINGS = settings(max_examples=50)

# Quick validation tests
QUICK_SETTINGS = settings(max_examples=20)
