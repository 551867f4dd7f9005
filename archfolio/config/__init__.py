"""
Site configuration resolution.

This module provides the configuration pipeline with:
- Schema definitions and validation
- Environment variable access and per-tier defaults
- Template variable resolution
- Layered sources, presets and caching
- The live configuration manager with hot reload
"""

# Core infrastructure
from .core import (
    ConfigValidator, SchemaValidator, BusinessValidator, ValidationError, ValidationResult,
    ConfigChange, deep_merge, detect_changes,
    ConfigSource, SourceCache, SourceLoader, SourceLoadReport,
    FileWatcher, ConfigurationManager, ManagerOptions, LoadedConfig
)

from .schema import CONFIG_SCHEMA, validate_config, check_consistency, get_config_schema
from .paths import ConfigPath, P, validate_path
from .environment import EnvironmentAdapter, tier_defaults
from .template import TemplateEngine, TemplateContext, create_template_context, extract_variables
from .defaults import DEFAULT_CONFIG, get_default_config, generate_starter_config
from .presets import SourcePreset, get_preset, list_available_presets
from .files import write_document, merge_config_files, backup_config


def create_manager(environment=None, sources=None, **options) -> ConfigurationManager:
    """Build and initialize a ConfigurationManager in one call."""
    manager = ConfigurationManager(ManagerOptions(sources=sources, environment=environment, **options))
    manager.initialize()
    return manager
