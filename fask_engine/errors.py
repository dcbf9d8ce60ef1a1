"""
Error types raised by the orientation engine.

- NumericalError      → singular / degenerate regression design (recovered locally)
- InvalidGraphError   → the skeleton collaborator returned nothing usable (fatal)
- ConfigurationError  → parameter outside its domain (fatal, raised before any data work)
"""
from __future__ import annotations


class FaskError(Exception):
    """Base class for all engine errors."""


class NumericalError(FaskError):
    """Regression design is singular or ill-conditioned; the subset is inconclusive."""


class InvalidGraphError(FaskError):
    """No usable initial graph could be obtained."""


class ConfigurationError(FaskError, ValueError):
    """A configuration value is outside its allowed range."""
