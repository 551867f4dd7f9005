"""
Core exceptions for the archfolio system.

This module provides all exception classes used throughout archfolio,
organized with a clear inheritance hierarchy.
"""

# Base exceptions
from .base import (
    ArchfolioError,
    ConfigurationError,
    ConfigStateError,
    ConfigConcurrencyError
)

# Configuration exceptions
from .config import (
    ConfigValidationError,
    SourceLoadError,
    SourceNotFoundError,
    UnsupportedFormatError,
    MissingEnvironmentVariableError,
    InvalidPathError
)

__all__ = [
    # Base exceptions
    'ArchfolioError',
    'ConfigurationError',
    'ConfigStateError',
    'ConfigConcurrencyError',

    # Configuration exceptions
    'ConfigValidationError',
    'SourceLoadError',
    'SourceNotFoundError',
    'UnsupportedFormatError',
    'MissingEnvironmentVariableError',
    'InvalidPathError'
]
