"""
Core configuration management components.

This module provides the foundational components for configuration resolution:
- ConfigValidator: Validation framework for configuration data
- SourceLoader: Source descriptors, loading and caching
- ConfigurationManager: Live configuration, updates and change notification
"""

from .validator import ConfigValidator, SchemaValidator, BusinessValidator, ValidationError, ValidationResult
from .tree import ConfigChange, deep_merge, detect_changes, get_path, set_path
from .provider import ConfigSource, CacheEntry, SourceCache, SourceLoader, SourceLoadReport
from .watcher import FileWatcher
from .manager import ConfigurationManager, ManagerOptions, LoadedConfig

__all__ = [
    # Validators
    'ConfigValidator',
    'SchemaValidator',
    'BusinessValidator',
    'ValidationError',
    'ValidationResult',

    # Trees
    'ConfigChange',
    'deep_merge',
    'detect_changes',
    'get_path',
    'set_path',

    # Sources
    'ConfigSource',
    'CacheEntry',
    'SourceCache',
    'SourceLoader',
    'SourceLoadReport',

    # Manager
    'FileWatcher',
    'ConfigurationManager',
    'ManagerOptions',
    'LoadedConfig'
]
