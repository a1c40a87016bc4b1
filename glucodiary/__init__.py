"""Glucose self-monitoring data layer for gestational diabetes."""

__version__ = "0.1.0"
