"""
Configuration validation framework.

This module provides validation capabilities for configuration data: a small
declarative field language, a schema validator that walks a candidate tree and
reports every mismatch in one pass, and a rule-based validator for
cross-field consistency checks.
"""

import copy
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union
from urllib.parse import urlparse

from archfolio.logger import get_archfolio_logger


EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
HEX_COLOR_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')

_MISSING = object()


class ValidationError(Exception):
    """A single validation failure located by its dotted path."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        self.message = message
        self.field = field
        self.value = value
        super().__init__(message)

    @property
    def path(self) -> str:
        return self.field or ""

    def as_tuple(self) -> Tuple[str, str]:
        return (self.path, self.message)

    def __str__(self):
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message

    def __eq__(self, other):
        if not isinstance(other, ValidationError):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __hash__(self):
        return hash(self.as_tuple())


class ValidationResult:
    """Result of configuration validation."""

    def __init__(self, is_valid: bool = True, errors: Optional[List[ValidationError]] = None,
                 data: Any = None):
        self.is_valid = is_valid
        self.errors = errors or []
        self.data = data

    @property
    def success(self) -> bool:
        return self.is_valid

    def add_error(self, error: ValidationError):
        """Add a validation error."""
        self.errors.append(error)
        self.is_valid = False

    def messages(self) -> List[str]:
        return [str(error) for error in self.errors]

    def __bool__(self):
        return self.is_valid


class FieldType(Enum):
    """Leaf and container kinds understood by the schema validator."""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ENUM = "enum"
    URL = "url"
    EMAIL = "email"
    COLOR = "color"
    LIST = "list"
    MAPPING = "mapping"


@dataclass(frozen=True)
class Field:
    """Declarative description of one schema field."""
    kind: FieldType
    required: bool = True
    default: Any = _MISSING
    choices: Tuple[str, ...] = ()
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    items: Any = None
    schema: Optional[Dict[str, Any]] = None

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING

    def default_value(self) -> Any:
        return copy.deepcopy(self.default)


Schema = Dict[str, Union[Field, Dict[str, Any]]]


# Field constructors, so schemas read like declarations

def string(required: bool = True, min_length: int = None, max_length: int = None,
           default: Any = _MISSING) -> Field:
    return Field(FieldType.STRING, required=required, min_length=min_length,
                 max_length=max_length, default=default)


def number(required: bool = True, minimum: float = None, maximum: float = None,
           default: Any = _MISSING) -> Field:
    return Field(FieldType.NUMBER, required=required, minimum=minimum,
                 maximum=maximum, default=default)


def integer(required: bool = True, minimum: int = None, maximum: int = None,
            default: Any = _MISSING) -> Field:
    return Field(FieldType.INTEGER, required=required, minimum=minimum,
                 maximum=maximum, default=default)


def boolean(required: bool = True, default: Any = _MISSING) -> Field:
    return Field(FieldType.BOOLEAN, required=required, default=default)


def enum(*choices: str, required: bool = True, default: Any = _MISSING) -> Field:
    return Field(FieldType.ENUM, required=required, choices=tuple(choices), default=default)


def url(required: bool = True, default: Any = _MISSING) -> Field:
    return Field(FieldType.URL, required=required, default=default)


def email(required: bool = True, default: Any = _MISSING) -> Field:
    return Field(FieldType.EMAIL, required=required, default=default)


def color(required: bool = True, default: Any = _MISSING) -> Field:
    return Field(FieldType.COLOR, required=required, default=default)


def list_of(items: Any, required: bool = True, min_length: int = None,
            max_length: int = None, default: Any = _MISSING) -> Field:
    return Field(FieldType.LIST, required=required, items=items, min_length=min_length,
                 max_length=max_length, default=default)


def mapping_of(items: Any, required: bool = True, default: Any = _MISSING) -> Field:
    return Field(FieldType.MAPPING, required=required, items=items, default=default)


def obj(schema: Dict[str, Any], required: bool = True, default: Any = _MISSING) -> Field:
    return Field(FieldType.OBJECT, required=required, schema=schema, default=default)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "list"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def is_url(value: Any) -> bool:
    if not isinstance(value, str) or not value or any(ch.isspace() for ch in value):
        return False
    parsed = urlparse(value)
    if not parsed.scheme:
        return False
    return bool(parsed.netloc) or parsed.scheme in ('mailto', 'tel', 'data')


def is_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_PATTERN.match(value))


def is_hex_color(value: Any) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR_PATTERN.match(value))


class ConfigValidator(ABC):
    """Abstract base class for configuration validators."""

    def __init__(self, domain: str):
        self.domain = domain
        self.logger = get_archfolio_logger().bind(component=f"ConfigValidator_{domain}")

    @abstractmethod
    def validate(self, config: Dict[str, Any]) -> ValidationResult:
        """Validate configuration data."""
        pass


class SchemaValidator(ConfigValidator):
    """
    Schema-based configuration validator.

    Walks the declared shape, checks every field, fills declared defaults for
    absent optional fields and keeps unknown extra fields untouched. Errors do
    not short-circuit: siblings are still checked so one pass surfaces all of
    them. `validate` never raises.
    """

    def __init__(self, domain: str, schema: Schema):
        super().__init__(domain)
        self.schema = schema

    def validate(self, config: Any) -> ValidationResult:
        """Validate configuration against schema."""
        result = ValidationResult()

        try:
            if not isinstance(config, dict):
                result.add_error(ValidationError(
                    f"must be an object, got {_type_name(config)}", field="", value=config
                ))
            else:
                result.data = self._validate_dict(config, self.schema, result)
        except Exception as e:
            self.logger.exception("Schema validation crashed", error=str(e))
            result.add_error(ValidationError(f"Schema validation failed: {str(e)}"))

        if not result.is_valid:
            self.logger.debug("Schema validation failed", errors=len(result.errors))
        return result

    def _validate_dict(self, config: Dict[str, Any], schema: Schema, result: ValidationResult,
                       path: str = "") -> Dict[str, Any]:
        """Recursively validate dictionary against schema."""
        validated = dict(config)

        for key, spec in schema.items():
            full_path = f"{path}.{key}" if path else key
            value = config.get(key)

            if value is None:
                if isinstance(spec, Field) and spec.has_default:
                    validated[key] = self._validate_value(spec.default_value(), spec, result, full_path)
                elif isinstance(spec, dict) or spec.required:
                    result.add_error(ValidationError("Missing required field", field=full_path))
                continue

            validated[key] = self._validate_value(value, spec, result, full_path)

        return validated

    def _validate_value(self, value: Any, spec: Union[Field, Dict[str, Any]],
                        result: ValidationResult, path: str) -> Any:
        if isinstance(spec, dict):
            spec = obj(spec)

        kind = spec.kind

        if kind is FieldType.OBJECT:
            if not isinstance(value, dict):
                return self._mismatch(result, path, "an object", value)
            return self._validate_dict(value, spec.schema or {}, result, path)

        if kind is FieldType.LIST:
            if not isinstance(value, list):
                return self._mismatch(result, path, "a list", value)
            self._check_length(value, spec, result, path, unit="item")
            if spec.items is None:
                return list(value)
            return [
                self._validate_value(item, spec.items, result, f"{path}.{index}")
                for index, item in enumerate(value)
            ]

        if kind is FieldType.MAPPING:
            if not isinstance(value, dict):
                return self._mismatch(result, path, "an object", value)
            if spec.items is None:
                return dict(value)
            return {
                key: self._validate_value(item, spec.items, result, f"{path}.{key}")
                for key, item in value.items()
            }

        if kind is FieldType.BOOLEAN:
            if not isinstance(value, bool):
                return self._mismatch(result, path, "a boolean", value)
            return value

        if kind in (FieldType.NUMBER, FieldType.INTEGER):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return self._mismatch(result, path, "a number", value)
            if kind is FieldType.INTEGER and not float(value).is_integer():
                return self._mismatch(result, path, "an integer", value)
            if spec.minimum is not None and value < spec.minimum:
                result.add_error(ValidationError(f"must be >= {spec.minimum}", field=path, value=value))
            if spec.maximum is not None and value > spec.maximum:
                result.add_error(ValidationError(f"must be <= {spec.maximum}", field=path, value=value))
            return value

        # Every remaining kind is string shaped
        if not isinstance(value, str):
            return self._mismatch(result, path, "a string", value)

        if kind is FieldType.ENUM and value not in spec.choices:
            result.add_error(ValidationError(
                f"must be one of {', '.join(spec.choices)}", field=path, value=value
            ))
        elif kind is FieldType.URL and not is_url(value):
            result.add_error(ValidationError("must be a valid URL", field=path, value=value))
        elif kind is FieldType.EMAIL and not is_email(value):
            result.add_error(ValidationError("must be a valid email address", field=path, value=value))
        elif kind is FieldType.COLOR and not is_hex_color(value):
            result.add_error(ValidationError("must be a hex color like #1a2b3c", field=path, value=value))
        elif kind is FieldType.STRING:
            self._check_length(value, spec, result, path, unit="character")

        return value

    @staticmethod
    def _check_length(value, spec: Field, result: ValidationResult, path: str, unit: str):
        if spec.min_length is not None and len(value) < spec.min_length:
            result.add_error(ValidationError(
                f"must contain at least {spec.min_length} {unit}(s)", field=path, value=value
            ))
        if spec.max_length is not None and len(value) > spec.max_length:
            result.add_error(ValidationError(
                f"must contain at most {spec.max_length} {unit}(s)", field=path, value=value
            ))

    @staticmethod
    def _mismatch(result: ValidationResult, path: str, expected: str, value: Any) -> Any:
        result.add_error(ValidationError(
            f"must be {expected}, got {_type_name(value)}", field=path, value=value
        ))
        return value


class BusinessValidator(ConfigValidator):
    """Rule-based validator for cross-field consistency checks."""

    def __init__(self, domain: str, validation_rules: List[Callable[[Dict[str, Any]], Any]]):
        super().__init__(domain)
        self.validation_rules = validation_rules

    def validate(self, config: Dict[str, Any]) -> ValidationResult:
        """Validate configuration using business rules."""
        result = ValidationResult(data=config)

        for rule in self.validation_rules:
            try:
                rule_result = rule(config)
                if isinstance(rule_result, ValidationResult):
                    if not rule_result.is_valid:
                        result.errors.extend(rule_result.errors)
                        result.is_valid = False
                elif rule_result is False:
                    result.add_error(ValidationError(f"Business rule {rule.__name__} failed"))
            except Exception as e:
                result.add_error(ValidationError(f"Business rule {rule.__name__} raised exception: {str(e)}"))

        return result
