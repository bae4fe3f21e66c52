"""Appointment booking backend with a rule-based availability engine."""

__version__ = "0.1.0"
