"""Grounding validation services."""
