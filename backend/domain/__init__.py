"""
backend.domain — Canonical data models, enumerations and errors.

This package defines the source-of-truth types shared across every layer
of the game backend. Nothing in here should import from other backend
sub-packages (only stdlib).
"""
