"""
Configuration enums for the archfolio system.
"""

from enum import Enum


class SourceType(Enum):
    """Origins a configuration document can be loaded from."""
    FILE = "file"
    URL = "url"
    ENVIRONMENT = "environment"
    DEFAULT = "default"


class Environment(Enum):
    """Deployment environments."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"

    @classmethod
    def parse(cls, value, fallback: "Environment" = None) -> "Environment":
        """Map loose names such as 'dev' or 'prod' onto an Environment."""
        if isinstance(value, cls):
            return value
        aliases = {
            'dev': cls.DEVELOPMENT,
            'develop': cls.DEVELOPMENT,
            'stage': cls.STAGING,
            'prod': cls.PRODUCTION,
            'testing': cls.TEST,
        }
        name = str(value or '').strip().lower()
        if name in aliases:
            return aliases[name]
        try:
            return cls(name)
        except ValueError:
            if fallback is not None:
                return fallback
            raise


class ChangeKind(Enum):
    """Kinds of structural change between two configuration snapshots."""
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


class ManagerState(Enum):
    """Lifecycle of a configuration manager."""
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    VALID = "valid"
    INVALID = "invalid"
    RELOADING = "reloading"
    DESTROYED = "destroyed"
