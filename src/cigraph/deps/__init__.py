"""Dependency mismatch analysis."""

from cigraph.deps.mismatches import compute_dependency_mismatches, recompute_dependency_mismatches

__all__ = ["compute_dependency_mismatches", "recompute_dependency_mismatches"]
