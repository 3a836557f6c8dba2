"""Solver engine.

Exact rational data model (variables, goal rows, tableau), the per-priority
continuous search, branch-and-bound for integrality, and the lexicographic
coordinator that locks each solved priority.

Deterministic and single-threaded.
"""
