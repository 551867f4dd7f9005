"""
Configuration source loading.

This module provides the source descriptors, the time-bounded source cache
and the loader that turns a source into a configuration dict.
"""

import copy
import importlib.util
import json
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
import yaml

from archfolio.core.enums import SourceType
from archfolio.core.exceptions import SourceLoadError, SourceNotFoundError, UnsupportedFormatError
from archfolio.logger import get_archfolio_logger

from ..defaults import get_default_config
from ..environment import EnvironmentAdapter

DEFAULT_TTL_MILLIS = 300_000
DEFAULT_HTTP_TIMEOUT = 10

JSON_EXTENSIONS = ('.json',)
YAML_EXTENSIONS = ('.yaml', '.yml')
PYTHON_EXTENSIONS = ('.py',)


@dataclass
class ConfigSource:
    """
    A place configuration can be loaded from.

    Sources are merged in ascending `priority`; when two sources define the
    same path the higher priority wins.
    """
    type: SourceType
    locator: Optional[str] = None
    priority: int = 0
    cacheable: bool = False
    ttl_millis: int = DEFAULT_TTL_MILLIS
    optional: bool = False

    def __post_init__(self):
        if not isinstance(self.type, SourceType):
            self.type = SourceType(self.type)

    @property
    def cache_key(self) -> str:
        return self.locator or self.type.value

    @classmethod
    def file(cls, path: str, priority: int = 10, **kwargs) -> "ConfigSource":
        return cls(SourceType.FILE, str(path), priority, **kwargs)

    @classmethod
    def url(cls, address: str, priority: int = 10, **kwargs) -> "ConfigSource":
        return cls(SourceType.URL, address, priority, **kwargs)

    @classmethod
    def environment(cls, priority: int = 100) -> "ConfigSource":
        return cls(SourceType.ENVIRONMENT, None, priority)

    @classmethod
    def default(cls, priority: int = 0) -> "ConfigSource":
        return cls(SourceType.DEFAULT, None, priority)

    def describe(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'locator': self.locator,
            'priority': self.priority,
        }


@dataclass
class CacheEntry:
    """A cached source document and the moment it was captured."""
    value: Dict[str, Any]
    captured_at_millis: float
    ttl_millis: int
    source_key: str

    def is_fresh(self, now_millis: float) -> bool:
        return now_millis - self.captured_at_millis < self.ttl_millis


def _now_millis() -> float:
    return time.time() * 1000


class SourceCache:
    """
    Process-local cache of loaded source documents.

    Parameters
    ----------
    clock : callable, optional
        Returns the current time in milliseconds
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or _now_millis
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the cached document, or None when absent or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if not entry.is_fresh(self._clock()):
                del self._entries[key]
                self.misses += 1
                return None
            self.hits += 1
            return copy.deepcopy(entry.value)

    def put(self, key: str, value: Dict[str, Any], ttl_millis: int = DEFAULT_TTL_MILLIS):
        with self._lock:
            self._entries[key] = CacheEntry(
                value=copy.deepcopy(value),
                captured_at_millis=self._clock(),
                ttl_millis=ttl_millis,
                source_key=key,
            )

    def invalidate(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self, key: Optional[str] = None):
        """Drop one entry, or every entry when `key` is omitted."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'size': len(self._entries),
                'keys': sorted(self._entries),
                'hits': self.hits,
                'misses': self.misses,
            }

    def __contains__(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and entry.is_fresh(self._clock())


@dataclass
class SourceLoadReport:
    """Outcome of loading a batch of sources."""
    loaded: List[Tuple[ConfigSource, Dict[str, Any]]] = field(default_factory=list)
    failed: List[Tuple[ConfigSource, str]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def configs(self) -> List[Dict[str, Any]]:
        return [config for _, config in self.loaded]

    @property
    def sources(self) -> List[ConfigSource]:
        return [source for source, _ in self.loaded]

    @property
    def all_failed(self) -> bool:
        return not self.loaded and bool(self.failed)


class SourceLoader:
    """
    Loads configuration documents from files, URLs, the environment and the
    built-in defaults.

    Parameters
    ----------
    environment : EnvironmentAdapter, optional
        Used for environment sources
    cache : SourceCache, optional
        Cache for cacheable sources
    session : requests.Session, optional
        HTTP session for URL sources
    base_dir : str or Path, optional
        Directory relative file locators resolve against, the CWD by default
    """

    def __init__(self, environment: Optional[EnvironmentAdapter] = None,
                 cache: Optional[SourceCache] = None,
                 session: Optional[requests.Session] = None,
                 base_dir: Optional[str] = None,
                 timeout: float = DEFAULT_HTTP_TIMEOUT,
                 max_workers: int = 4):
        self.environment = environment or EnvironmentAdapter()
        self.cache = cache if cache is not None else SourceCache()
        self.session = session or requests.Session()
        self.base_dir = Path(base_dir) if base_dir else None
        self.timeout = timeout
        self.max_workers = max_workers
        self.logger = get_archfolio_logger().bind(component="SourceLoader")

    def resolve_path(self, locator: str) -> Path:
        path = Path(locator)
        if path.is_absolute():
            return path
        return (self.base_dir or Path.cwd()) / path

    def load_from_source(self, source: ConfigSource) -> Dict[str, Any]:
        """
        Load one source, honouring the cache.

        Raises:
            SourceLoadError: The source could not be read, parsed, or did not
                contain a mapping
        """
        key = source.cache_key
        if source.cacheable:
            cached = self.cache.get(key)
            if cached is not None:
                self.logger.debug("Source cache hit", source=key)
                return cached

        if source.type is SourceType.FILE:
            config = self._load_file(source)
        elif source.type is SourceType.URL:
            config = self._load_url(source)
        elif source.type is SourceType.ENVIRONMENT:
            config = self.environment.to_config_overlay()
        elif source.type is SourceType.DEFAULT:
            config = get_default_config()
        else:
            raise SourceLoadError(key, f"unknown source type '{source.type}'")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise SourceLoadError(key, f"document must be a mapping, got {type(config).__name__}")

        if source.cacheable:
            self.cache.put(key, config, source.ttl_millis)
        return config

    def _load_file(self, source: ConfigSource) -> Any:
        if not source.locator:
            raise SourceLoadError(source.cache_key, "file source has no path")

        path = self.resolve_path(source.locator)
        extension = path.suffix.lower()
        if extension not in JSON_EXTENSIONS + YAML_EXTENSIONS + PYTHON_EXTENSIONS:
            raise UnsupportedFormatError(source.locator, extension)
        if not path.is_file():
            raise SourceNotFoundError(source.locator)

        if extension in PYTHON_EXTENSIONS:
            return self._load_python(source.locator, path)

        try:
            text = path.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise SourceLoadError(source.locator, f"cannot read file: {e}") from e

        if extension in JSON_EXTENSIONS:
            try:
                return json.loads(text)
            except json.JSONDecodeError as e:
                raise SourceLoadError(source.locator, f"invalid JSON: {e}") from e

        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise SourceLoadError(source.locator, f"invalid YAML: {e}") from e

    @staticmethod
    def _load_python(locator: str, path: Path) -> Any:
        # Not registered in sys.modules, so every uncached load executes the file again
        spec = importlib.util.spec_from_file_location(f"archfolio_config_{path.stem}", path)
        if spec is None or spec.loader is None:
            raise SourceLoadError(locator, "cannot import python config")
        module = importlib.util.module_from_spec(spec)

        try:
            spec.loader.exec_module(module)
            for attribute in ('CONFIG', 'config'):
                if hasattr(module, attribute):
                    value = getattr(module, attribute)
                    return value() if callable(value) else value
        except Exception as e:
            raise SourceLoadError(locator, f"python config raised {type(e).__name__}: {e}") from e
        raise SourceLoadError(locator, "python config must define CONFIG or config")

    def _load_url(self, source: ConfigSource) -> Any:
        if not source.locator:
            raise SourceLoadError(source.cache_key, "url source has no address")

        try:
            response = self.session.get(source.locator, timeout=self.timeout)
        except requests.RequestException as e:
            raise SourceLoadError(source.locator, f"request failed: {e}") from e

        if not response.ok:
            raise SourceLoadError(source.locator, f"HTTP {response.status_code}: {response.reason}")

        try:
            return response.json()
        except ValueError as e:
            raise SourceLoadError(source.locator, f"response is not valid JSON: {e}") from e

    def load_all(self, sources: List[ConfigSource]) -> SourceLoadReport:
        """
        Load every source and return the successes in ascending priority.

        File and URL sources are read concurrently; ordering is decided after
        every outcome has been gathered, never by completion order. A failing
        source is logged and skipped. A missing optional file contributes an
        empty layer.
        """
        report = SourceLoadReport()
        ordered = sorted(enumerate(sources), key=lambda pair: (pair[1].priority, pair[0]))

        priorities = [source.priority for source in sources]
        duplicates = sorted({p for p in priorities if priorities.count(p) > 1})
        for priority in duplicates:
            message = f"Multiple sources share priority {priority}; declaration order decides"
            self.logger.warning("Duplicate source priority", priority=priority)
            report.warnings.append(message)

        outcomes: Dict[int, Tuple[Optional[Dict[str, Any]], Optional[Exception]]] = {}
        remote = [(index, source) for index, source in ordered
                  if source.type in (SourceType.FILE, SourceType.URL)]
        local = [(index, source) for index, source in ordered
                 if source.type not in (SourceType.FILE, SourceType.URL)]

        if remote:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(remote))) as executor:
                futures = {index: executor.submit(self.load_from_source, source) for index, source in remote}
                for index, future in futures.items():
                    outcomes[index] = self._outcome(future.result)
        for index, source in local:
            outcomes[index] = self._outcome(lambda source=source: self.load_from_source(source))

        for index, source in ordered:
            config, error = outcomes[index]
            if error is None:
                report.loaded.append((source, config))
            elif isinstance(error, SourceNotFoundError) and source.optional:
                self.logger.debug("Optional source not found", source=source.cache_key)
                report.loaded.append((source, {}))
            else:
                self.logger.warning("Failed to load configuration source",
                                    source=source.cache_key, type=source.type.value, error=str(error))
                report.failed.append((source, str(error)))
                report.warnings.append(f"Failed to load {source.type.value} source '{source.cache_key}': {error}")

        return report

    @staticmethod
    def _outcome(call: Callable[[], Dict[str, Any]]) -> Tuple[Optional[Dict[str, Any]], Optional[Exception]]:
        try:
            return call(), None
        except SourceLoadError as e:
            return None, e
