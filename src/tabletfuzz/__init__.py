# src/tabletfuzz/__init__.py
"""
tabletfuzz: Randomized single-row consistency fuzzing for tablet storage.

Generates legal operation sequences against one row, replays them through a
tablet client and checks every point lookup against an in-memory oracle.
"""

__version__ = "0.1.0"
