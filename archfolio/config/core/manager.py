"""
Configuration manager.

Owns the live site configuration: runs the resolution pipeline
(load, merge, template, validate), serves lookups, applies runtime updates
with rollback, notifies listeners about changes and drives hot reload.
"""

import copy
import dataclasses
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from archfolio.core.enums import Environment, ManagerState, SourceType
from archfolio.core.exceptions import (
    ConfigConcurrencyError, ConfigStateError, ConfigValidationError
)
from archfolio.logger import get_archfolio_logger

from ..defaults import get_default_config
from ..environment import EnvironmentAdapter
from ..paths import ConfigPath, split_path
from ..presets import get_preset
from ..schema import check_consistency, validate_config
from ..template import TemplateEngine, create_template_context
from .provider import ConfigSource, SourceLoader
from .tree import ConfigChange, deep_merge, detect_changes, get_path, set_path, strip_paths
from .validator import ValidationError
from .watcher import FileWatcher

PathLike = Union[str, Sequence[str], ConfigPath, None]
ChangeListener = Callable[[Dict[str, Any], Dict[str, Any], List[ConfigChange]], None]

# Removed from exports
SENSITIVE_PATHS = [
    ('analytics', 'googleAnalytics'),
    ('analytics', 'googleTagManager'),
    ('analytics', 'hotjar'),
    ('analytics', 'mixpanel'),
    ('analytics', 'customTracking'),
    ('chatbot', 'apiEndpoint'),
    ('contact', 'mapApiKey'),
]

_MISSING = object()


@dataclass
class ManagerOptions:
    """
    Options for a ConfigurationManager.

    When `sources` is omitted the preset for `environment` decides the
    sources, the template switch and the custom variables. An explicit
    `enable_templates` always wins over the preset.
    """
    sources: Optional[List[ConfigSource]] = None
    environment: Optional[Union[Environment, str]] = None
    enable_cache: bool = True
    enable_templates: Optional[bool] = None
    enable_validation: bool = True
    apply_tier_defaults: bool = True
    custom_variables: Dict[str, Any] = field(default_factory=dict)
    hot_reload: bool = False
    poll_interval: float = 1.0
    config_dir: str = "config"
    strict_paths: bool = False


@dataclass(frozen=True)
class LoadedConfig:
    """Result of one resolution pass; replaced, never mutated."""
    config: Dict[str, Any]
    sources: List[ConfigSource]
    load_timestamp: datetime
    is_valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    version: int = 0


class ConfigurationManager:
    """
    Live configuration with thread-safe reads and serialized writes.

    Every writer (initialize, reload, set, update_config) holds one re-entrant
    lock and bumps `version`. Callers that read, compute and then write can
    pass `expected_version` to detect that another writer got in between.
    Listeners run on the writer's thread while the lock is held.

    Parameters
    ----------
    options : ManagerOptions, optional
        Sources and processing switches
    loader : SourceLoader, optional
        Source loader; one sharing `environment` is created when omitted
    environment : EnvironmentAdapter, optional
        Process variable access
    template_engine : TemplateEngine, optional
        Template resolver
    """

    def __init__(self, options: Optional[ManagerOptions] = None,
                 loader: Optional[SourceLoader] = None,
                 environment: Optional[EnvironmentAdapter] = None,
                 template_engine: Optional[TemplateEngine] = None):
        self.options = options or ManagerOptions()
        self.environment = environment or (loader.environment if loader else EnvironmentAdapter())
        self.loader = loader or SourceLoader(self.environment)
        self.templates = template_engine or TemplateEngine()
        self.logger = get_archfolio_logger().bind(component="ConfigurationManager")

        self._lock = threading.RLock()
        self._state = ManagerState.UNINITIALIZED
        self._loaded: Optional[LoadedConfig] = None
        self._raw: Optional[Dict[str, Any]] = None
        self._version = 0
        self._listeners: List[ChangeListener] = []
        self._sources: List[ConfigSource] = []
        self._process_templates = True
        self._custom_variables: Dict[str, Any] = {}
        self._watcher: Optional[FileWatcher] = None

    # Accessors

    @property
    def state(self) -> ManagerState:
        return self._state

    @property
    def version(self) -> int:
        return self._version

    @property
    def is_loaded(self) -> bool:
        return self._loaded is not None

    @property
    def loaded_config(self) -> LoadedConfig:
        with self._lock:
            self._require_loaded("loaded_config")
            return self._loaded

    @property
    def config(self) -> Dict[str, Any]:
        """Deep copy of the live configuration tree."""
        with self._lock:
            self._require_loaded("config")
            return copy.deepcopy(self._loaded.config)

    @property
    def raw_config(self) -> Dict[str, Any]:
        """Deep copy of the merged tree before template resolution and validation."""
        with self._lock:
            self._require_loaded("raw_config")
            return copy.deepcopy(self._raw)

    @property
    def sources(self) -> List[ConfigSource]:
        return list(self._sources)

    @property
    def tier(self) -> Environment:
        if self.options.environment is not None:
            return Environment.parse(self.options.environment)
        return self.environment.environment_name()

    def _require_loaded(self, operation: str):
        if self._state is ManagerState.DESTROYED:
            raise ConfigStateError(self._state.value, operation)
        if self._loaded is None:
            raise ConfigStateError(self._state.value, operation, required_state="loaded")

    def _segments(self, path: PathLike) -> Tuple[str, ...]:
        if isinstance(path, str) and path and self.options.strict_paths:
            return tuple(ConfigPath.parse(path))
        return split_path(path)

    # Resolution pipeline

    def _plan(self, tier: Environment) -> Tuple[List[ConfigSource], bool, Dict[str, Any]]:
        if self.options.sources is not None:
            sources = list(self.options.sources)
            process_templates = True
            custom = {}
        else:
            preset = get_preset(tier, self.options.config_dir)
            sources = preset.sources
            process_templates = preset.process_templates
            custom = dict(preset.custom_variables)

        if self.options.enable_templates is not None:
            process_templates = self.options.enable_templates
        if not self.options.enable_cache:
            sources = [dataclasses.replace(source, cacheable=False) for source in sources]

        custom.update(self.options.custom_variables)
        return sources, process_templates, custom

    def _tier_overlay(self, tier: Environment) -> Dict[str, Any]:
        overlay = self.environment.tier_defaults(tier)
        if tier is not Environment.TEST:
            overlay.setdefault('deployment', {})['environment'] = tier.value
        return overlay

    def _build(self) -> Tuple[LoadedConfig, Dict[str, Any]]:
        """Run load, merge, template and validate. Returns the result and the untemplated tree."""
        tier = self.tier
        sources, self._process_templates, self._custom_variables = self._plan(tier)
        self._sources = sources
        now = datetime.now(timezone.utc)

        report = self.loader.load_all(sources)
        warnings = list(report.warnings)

        if not report.loaded:
            errors = [ValidationError("No configuration source could be loaded; using built-in defaults")]
            errors.extend(ValidationError(reason, field=source.cache_key) for source, reason in report.failed)
            self.logger.error("All configuration sources failed", sources=len(sources))
            fallback = get_default_config()
            loaded = LoadedConfig(fallback, [], now, False, errors, warnings)
            return loaded, copy.deepcopy(fallback)

        layers: List[Dict[str, Any]] = []
        overlay_at = 0
        for source, config in report.loaded:
            layers.append(config)
            if source.type is SourceType.DEFAULT:
                overlay_at = len(layers)
        if self.options.apply_tier_defaults:
            layers.insert(overlay_at, self._tier_overlay(tier))

        raw = deep_merge(*layers)
        config, errors, process_warnings = self._process(
            raw, self._process_templates, self.options.enable_validation
        )
        warnings.extend(process_warnings)

        loaded = LoadedConfig(config, report.sources, now, not errors, errors, warnings)
        return loaded, raw

    def _process(self, tree: Dict[str, Any], process_templates: bool,
                 validate: bool) -> Tuple[Dict[str, Any], List[ValidationError], List[str]]:
        warnings: List[str] = []

        if process_templates:
            context = create_template_context(
                tree,
                env=self.environment.public_variables(),
                runtime=self.environment.runtime_info(self.tier),
                custom_vars=self._custom_variables,
            )
            unresolved: List[str] = []
            tree = self.templates.resolve_tree(tree, context, unresolved)
            warnings.extend(f"Unresolved template expression '{{{{{expression}}}}}'" for expression in unresolved)

        errors: List[ValidationError] = []
        if validate:
            result = validate_config(tree)
            if result.is_valid:
                tree = result.data
                warnings.extend(check_consistency(tree).messages())
            else:
                errors = list(result.errors)

        return tree, errors, warnings

    def _store(self, loaded: LoadedConfig, raw: Dict[str, Any]) -> LoadedConfig:
        self._version += 1
        self._loaded = dataclasses.replace(loaded, version=self._version)
        self._raw = raw
        self._state = ManagerState.VALID if loaded.is_valid else ManagerState.INVALID
        return self._loaded

    # Lifecycle

    def initialize(self) -> LoadedConfig:
        """Resolve the configuration for the first time. Calling it again is a no-op."""
        with self._lock:
            if self._state is ManagerState.DESTROYED:
                raise ConfigStateError(self._state.value, "initialize")
            if self._loaded is not None:
                return self._loaded

            self._state = ManagerState.LOADING
            try:
                loaded, raw = self._build()
            except Exception:
                self._state = ManagerState.UNINITIALIZED
                raise
            result = self._store(loaded, raw)

            self.logger.info(
                "Configuration initialized",
                environment=self.tier.value,
                sources=len(result.sources),
                valid=result.is_valid,
                errors=len(result.errors),
                warnings=len(result.warnings),
            )
            for error in result.errors:
                self.logger.error("Configuration error", path=error.path, message=error.message)

        if self.options.hot_reload:
            self.enable_hot_reload()
        return result

    def reload(self) -> LoadedConfig:
        """Re-run the pipeline and notify listeners about what changed."""
        with self._lock:
            if self._state is ManagerState.DESTROYED:
                raise ConfigStateError(self._state.value, "reload")
            if self._loaded is None:
                return self.initialize()

            previous = self._loaded
            self._state = ManagerState.RELOADING
            try:
                loaded, raw = self._build()
            except Exception:
                self._state = ManagerState.VALID if previous.is_valid else ManagerState.INVALID
                raise
            result = self._store(loaded, raw)

            self.logger.info("Configuration reloaded", version=result.version, valid=result.is_valid)
            self._notify(previous.config, result.config)
            return result

    def destroy(self):
        """Stop watching and drop listeners and state. The manager cannot be reused."""
        self.disable_hot_reload()
        with self._lock:
            self._listeners.clear()
            self._loaded = None
            self._raw = None
            self._sources = []
            self._state = ManagerState.DESTROYED
        self.logger.info("Configuration manager destroyed")

    # Reads

    def get(self, path: PathLike = None, default: Any = None) -> Any:
        """
        Look up a value by dotted path or ConfigPath.

        Numeric segments index lists. Any missing segment returns `default`.
        """
        with self._lock:
            self._require_loaded("get")
            value = get_path(self._loaded.config, self._segments(path), _MISSING)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def has(self, path: PathLike) -> bool:
        return self.get(path, _MISSING) is not _MISSING

    # Writes

    def set(self, path: PathLike, value: Any, merge: bool = False,
            process_templates: Optional[bool] = None, validate: Optional[bool] = None,
            notify: bool = True, expected_version: Optional[int] = None) -> LoadedConfig:
        """
        Store `value` at `path` and re-run templates and validation.

        On validation failure nothing changes and ConfigValidationError is
        raised with every error. An empty path targets the whole tree.
        """
        segments = self._segments(path)
        return self._apply(
            lambda tree: set_path(tree, segments, value, merge=merge),
            "set", process_templates, validate, notify, expected_version,
        )

    def update_config(self, partial: Dict[str, Any], merge: bool = True,
                      process_templates: Optional[bool] = None, validate: Optional[bool] = None,
                      notify: bool = True, expected_version: Optional[int] = None) -> LoadedConfig:
        """Apply several sections at once; with `merge=False` top-level sections are replaced."""
        if merge:
            transform = lambda tree: deep_merge(tree, partial)
        else:
            transform = lambda tree: {**tree, **copy.deepcopy(partial)}
        return self._apply(transform, "update_config", process_templates, validate, notify, expected_version)

    def _apply(self, transform: Callable[[Dict[str, Any]], Dict[str, Any]], operation: str,
               process_templates: Optional[bool], validate: Optional[bool],
               notify: bool, expected_version: Optional[int]) -> LoadedConfig:
        if process_templates is None:
            process_templates = self._process_templates
        if validate is None:
            validate = self.options.enable_validation

        with self._lock:
            self._require_loaded(operation)
            if expected_version is not None and expected_version != self._version:
                raise ConfigConcurrencyError(operation, expected_version, self._version)

            previous = self._loaded
            new_raw = transform(self._raw)
            # The untemplated tree is kept so values derived through templates follow their inputs
            candidate = new_raw if process_templates else transform(previous.config)
            config, errors, warnings = self._process(candidate, process_templates, validate)

            if errors:
                self.logger.warning("Configuration update rejected, keeping previous state",
                                    operation=operation, errors=len(errors))
                raise ConfigValidationError(errors, operation=operation)

            is_valid = True if validate else previous.is_valid
            loaded = dataclasses.replace(
                previous,
                config=config,
                is_valid=is_valid,
                errors=[] if validate else list(previous.errors),
                warnings=warnings,
                load_timestamp=datetime.now(timezone.utc),
            )
            result = self._store(loaded, new_raw)
            self.logger.debug("Configuration updated", operation=operation, version=result.version)

            if notify:
                self._notify(previous.config, result.config)
            return result

    # Change notification

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, old: Dict[str, Any], new: Dict[str, Any]):
        changes = detect_changes(old, new)
        if not changes:
            return

        self.logger.debug("Configuration changed", changes=len(changes), listeners=len(self._listeners))
        for listener in list(self._listeners):
            try:
                listener(copy.deepcopy(new), copy.deepcopy(old), list(changes))
            except Exception as e:
                self.logger.exception("Configuration listener failed", error=str(e))

    # Hot reload

    def watched_files(self) -> List[Path]:
        return [
            self.loader.resolve_path(source.locator)
            for source in self._sources
            if source.type is SourceType.FILE and source.locator
        ]

    def enable_hot_reload(self, interval: Optional[float] = None) -> bool:
        """Start polling file sources; a change invalidates their cache entries and reloads."""
        with self._lock:
            self._require_loaded("enable_hot_reload")
            if self._watcher is not None and self._watcher.is_running():
                return False
            self._watcher = FileWatcher(
                self.watched_files(),
                self._on_files_changed,
                interval if interval is not None else self.options.poll_interval,
            )
            return self._watcher.start()

    def disable_hot_reload(self):
        watcher, self._watcher = self._watcher, None
        if watcher is not None:
            watcher.stop()

    @property
    def hot_reload_enabled(self) -> bool:
        return self._watcher is not None and self._watcher.is_running()

    def _on_files_changed(self, changed: List[Path]):
        changed = set(changed)
        for source in self._sources:
            if source.type is SourceType.FILE and self.loader.resolve_path(source.locator) in changed:
                self.loader.cache.invalidate(source.cache_key)
        self.reload()

    # Export and cache

    def export(self, include_sensitive: bool = False) -> Dict[str, Any]:
        """Copy of the live tree without credentials, plus load metadata."""
        with self._lock:
            loaded = self.loaded_config
            config = copy.deepcopy(loaded.config) if include_sensitive else strip_paths(loaded.config, SENSITIVE_PATHS)
            return {
                'config': config,
                'metadata': {
                    'loadTimestamp': loaded.load_timestamp.isoformat(),
                    'sources': [source.describe() for source in loaded.sources],
                    'isValid': loaded.is_valid,
                    'errors': [str(error) for error in loaded.errors],
                    'warnings': list(loaded.warnings),
                    'version': loaded.version,
                },
            }

    def cache_stats(self) -> Dict[str, Any]:
        return self.loader.cache.stats()

    def clear_cache(self, key: Optional[str] = None):
        self.loader.cache.clear(key)
