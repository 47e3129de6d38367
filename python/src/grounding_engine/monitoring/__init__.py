"""Prometheus metrics for grounding validation."""
