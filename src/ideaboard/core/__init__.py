"""Idea aggregation and lifecycle engine."""
