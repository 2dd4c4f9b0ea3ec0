"""Defect inventory and triage tooling."""

__version__ = "0.3.0"
