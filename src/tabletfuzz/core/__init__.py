# src/tabletfuzz/core/__init__.py
"""Core infrastructure: logging and configuration."""
