"""
Typed key paths into the configuration tree.

A `ConfigPath` is validated against the schema when it is built, so a typo
such as `theme.primaryColour` fails at the call site with `InvalidPathError`
instead of silently falling back to a default at lookup time.

    >>> from archfolio.config.paths import P, ConfigPath
    >>> str(P.theme.fonts.primary)
    'theme.fonts.primary'
    >>> ConfigPath.parse("portfolio.projects.0.title")
    ConfigPath('portfolio.projects.0.title')
"""

from typing import Any, Iterator, Sequence, Tuple, Union

from archfolio.core.exceptions import InvalidPathError

from .core.validator import Field, FieldType
from .schema import CONFIG_SCHEMA


def _child_spec(spec: Any, segment: str, full_path: str) -> Any:
    if isinstance(spec, Field) and spec.kind is FieldType.OBJECT:
        spec = spec.schema or {}

    if isinstance(spec, dict):
        if segment not in spec:
            raise InvalidPathError(full_path, segment)
        return spec[segment]

    if isinstance(spec, Field) and spec.kind is FieldType.LIST:
        if not segment.isdigit():
            raise InvalidPathError(full_path, segment)
        return spec.items

    if isinstance(spec, Field) and spec.kind is FieldType.MAPPING:
        return spec.items

    # Leaf fields have no children
    raise InvalidPathError(full_path, segment)


class ConfigPath:
    """
    Schema-checked path into the configuration.

    Attribute access and indexing build child paths. Internal state is kept
    on underscored attributes so any configuration key (including `items`)
    can be used as an attribute name.
    """

    __slots__ = ('_segments', '_spec')

    def __init__(self, segments: Tuple[str, ...] = (), spec: Any = None):
        object.__setattr__(self, '_segments', tuple(segments))
        object.__setattr__(self, '_spec', CONFIG_SCHEMA if spec is None else spec)

    @classmethod
    def parse(cls, path: Union[str, Sequence[str], "ConfigPath"], schema: Any = None) -> "ConfigPath":
        """Build a path from a dotted string or segment sequence, validating every segment."""
        if isinstance(path, ConfigPath):
            return path
        segments = split_path(path)
        node = cls((), schema)
        for segment in segments:
            node = node._child(segment)
        return node

    def _child(self, segment: Any) -> "ConfigPath":
        segment = str(segment)
        segments = self._segments + (segment,)
        spec = _child_spec(self._spec, segment, ".".join(segments))
        return ConfigPath(segments, spec)

    def __getattr__(self, name: str) -> "ConfigPath":
        if name.startswith('_'):
            raise AttributeError(name)
        return self._child(name)

    def __getitem__(self, key: Union[int, str]) -> "ConfigPath":
        return self._child(key)

    def __setattr__(self, name, value):
        raise AttributeError("ConfigPath is immutable")

    def __iter__(self) -> Iterator[str]:
        return iter(self._segments)

    def __len__(self) -> int:
        return len(self._segments)

    def __str__(self) -> str:
        return ".".join(self._segments)

    def __repr__(self) -> str:
        return f"ConfigPath('{self}')"

    def __eq__(self, other) -> bool:
        if isinstance(other, ConfigPath):
            return self._segments == other._segments
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._segments)


# Root of the typed path builder
P = ConfigPath()


def split_path(path: Union[str, Sequence[str], ConfigPath, None]) -> Tuple[str, ...]:
    """Normalise a dotted string, segment sequence or ConfigPath into segments."""
    if path is None:
        return ()
    if isinstance(path, ConfigPath):
        return tuple(path)
    if isinstance(path, str):
        return tuple(segment for segment in path.split('.') if segment)
    return tuple(str(segment) for segment in path)


def validate_path(path: Union[str, Sequence[str], ConfigPath]) -> ConfigPath:
    """Return the ConfigPath for `path`, raising InvalidPathError if it is not declared."""
    return ConfigPath.parse(path)
