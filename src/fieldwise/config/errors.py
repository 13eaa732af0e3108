"""Errors raised while assembling settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Settings cannot be used as given."""


class ValidationError(ConfigurationError):
    """A threshold, level or request value is out of range or unparsable."""
