"""
CircusRing - Property-Based Testing Suite

Property-based testing using Hypothesis to check registry bookkeeping
invariants under arbitrary operation sequences.
"""
