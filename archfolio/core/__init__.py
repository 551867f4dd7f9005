"""
Core module for the archfolio system.

This module provides the foundational components used throughout the system:
- Exception classes for configuration resolution
- Enum definitions for sources, environments, changes and manager states
"""

from .exceptions import *
from .enums import *

__all__ = []

# Extend __all__ with imported items
from .exceptions import __all__ as exceptions_all
from .enums import __all__ as enums_all

__all__.extend(exceptions_all)
__all__.extend(enums_all)
