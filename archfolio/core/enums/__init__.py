"""
Core enums for the archfolio system.
"""

from .config import (
    SourceType,
    Environment,
    ChangeKind,
    ManagerState
)

__all__ = [
    'SourceType',
    'Environment',
    'ChangeKind',
    'ManagerState'
]
