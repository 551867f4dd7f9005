"""
Configuration-specific exceptions for the archfolio system.
"""

from typing import List, Optional

from .base import ConfigurationError


class ConfigValidationError(ConfigurationError):
    """Raised when a candidate configuration fails schema validation."""

    def __init__(self, errors: List, operation: Optional[str] = None):
        self.errors = list(errors)
        self.operation = operation
        lines = "; ".join(str(error) for error in self.errors) or "unknown error"
        super().__init__(
            config_key=operation,
            reason=f"validation failed with {len(self.errors)} error(s): {lines}"
        )


class SourceLoadError(ConfigurationError):
    """Raised when a configuration source cannot be read or parsed."""

    def __init__(self, source_key: str, reason: str):
        self.source_key = source_key
        super().__init__(config_key=source_key, reason=reason)


class SourceNotFoundError(SourceLoadError):
    """Raised when a file source does not exist."""

    def __init__(self, source_key: str):
        super().__init__(source_key, "file not found")


class UnsupportedFormatError(SourceLoadError):
    """Raised for configuration files with an extension the loader cannot parse."""

    def __init__(self, source_key: str, extension: str):
        self.extension = extension
        super().__init__(source_key, f"unsupported config file format: '{extension or '<none>'}'")


class MissingEnvironmentVariableError(ConfigurationError):
    """Raised when a variable marked as required is not set."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(config_key=name, reason="required environment variable is not set")


class InvalidPathError(ConfigurationError):
    """Raised when a key path does not exist in the configuration schema."""

    def __init__(self, path: str, segment: str = None):
        self.path = path
        self.segment = segment
        reason = "path is not declared in the configuration schema"
        if segment:
            reason += f" (unknown segment '{segment}')"
        super().__init__(config_key=path, reason=reason)
