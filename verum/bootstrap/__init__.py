"""Startup wiring for the Verum engine."""
