# tests/conftest.py
"""Shared test fixtures.

Cluster fixtures:
- cluster: a started MiniCluster (in-memory store) with the default table
- executor: an OperationExecutor bound to that cluster's row 1
- harness: a FuzzHarness driving that executor

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator

import pytest
import structlog
from hypothesis import Phase, Verbosity, settings

from tabletfuzz.core.config import ClusterSettings
from tabletfuzz.engine.cluster import MiniCluster
from tabletfuzz.fuzz.executor import OperationExecutor
from tabletfuzz.fuzz.harness import FuzzHarness

TABLE_NAME = "table"

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    """Undo configure_logging() calls made by a test (CLI tests make many)."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


# =============================================================================
# Cluster fixtures
# =============================================================================


@pytest.fixture
def cluster_settings() -> ClusterSettings:
    return ClusterSettings(table_name=TABLE_NAME)


@pytest.fixture
def cluster(cluster_settings: ClusterSettings) -> Iterator[MiniCluster]:
    """Started cluster hosting one empty table."""
    with MiniCluster(cluster_settings) as started:
        started.create_table(cluster_settings.table_name)
        yield started


@pytest.fixture
def executor(cluster: MiniCluster) -> OperationExecutor:
    return OperationExecutor(cluster, TABLE_NAME)


@pytest.fixture
def harness(executor: OperationExecutor) -> FuzzHarness:
    return FuzzHarness(executor)
