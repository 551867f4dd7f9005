"""
Base exception classes for the archfolio system.
"""


class ArchfolioError(Exception):
    """Base exception for all archfolio errors."""
    pass


class ConfigurationError(ArchfolioError):
    """Base exception for configuration errors."""

    def __init__(self, config_key: str = None, config_value: str = None, reason: str = None):
        self.config_key = config_key
        self.config_value = config_value
        self.reason = reason
        message = "Configuration error"
        if config_key:
            message += f" for '{config_key}'"
        if config_value:
            message += f" with value '{config_value}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ConfigStateError(ArchfolioError):
    """Raised when an operation is not allowed in the manager's current state."""

    def __init__(self, current_state: str, operation: str = None, required_state: str = None):
        self.current_state = current_state
        self.operation = operation
        self.required_state = required_state

        message = f"Configuration manager is in state '{current_state}'"
        if operation:
            message += f" but operation '{operation}' is not allowed"
        if required_state:
            message += f" (requires state '{required_state}')"
        super().__init__(message)


class ConfigConcurrencyError(ArchfolioError):
    """Raised when the live configuration moved on since the caller last read it."""

    def __init__(self, operation: str, expected_version: int = None, actual_version: int = None):
        self.operation = operation
        self.expected_version = expected_version
        self.actual_version = actual_version
        message = f"Concurrent modification during '{operation}'"
        if expected_version is not None:
            message += f": expected version {expected_version}, live version is {actual_version}"
        super().__init__(message)
