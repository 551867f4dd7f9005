"""
Source presets per deployment environment.

Each preset lists the layered sources for one environment along with the
template switch and the custom template variables used for that tier.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from archfolio.core.enums import Environment

from .core.provider import ConfigSource

CONFIG_BASENAME = "archfolio"
PRODUCTION_TTL_MILLIS = 600_000


@dataclass
class SourcePreset:
    """Sources and processing switches for one environment."""
    name: str
    sources: List[ConfigSource]
    process_templates: bool = True
    validate: bool = True
    custom_variables: Dict[str, Any] = field(default_factory=dict)


def _file(config_dir: str, suffix: str, priority: int, **kwargs) -> ConfigSource:
    name = f"{CONFIG_BASENAME}.{suffix}.json" if suffix else f"{CONFIG_BASENAME}.json"
    return ConfigSource.file(str(Path(config_dir) / name), priority, **kwargs)


def get_development_preset(config_dir: str = "config") -> SourcePreset:
    """Development preset: uncached base, tier and local files, then the environment."""
    return SourcePreset(
        name=Environment.DEVELOPMENT.value,
        sources=[
            ConfigSource.default(0),
            _file(config_dir, "", 10),
            _file(config_dir, "dev", 20, optional=True),
            _file(config_dir, "local", 30, optional=True),
            ConfigSource.environment(40),
        ],
        custom_variables={'environment': 'development', 'debug': True},
    )


def get_production_preset(config_dir: str = "config") -> SourcePreset:
    """Production preset: cached base and tier files, then the environment."""
    return SourcePreset(
        name=Environment.PRODUCTION.value,
        sources=[
            ConfigSource.default(0),
            _file(config_dir, "", 10, cacheable=True, ttl_millis=PRODUCTION_TTL_MILLIS),
            _file(config_dir, "prod", 20, optional=True, cacheable=True, ttl_millis=PRODUCTION_TTL_MILLIS),
            ConfigSource.environment(30),
        ],
        custom_variables={'environment': 'production', 'debug': False},
    )


def get_test_preset(config_dir: str = "config") -> SourcePreset:
    """Test preset: templates are disabled so fixtures stay predictable."""
    return SourcePreset(
        name=Environment.TEST.value,
        sources=[
            ConfigSource.default(0),
            _file(config_dir, "test", 10, optional=True),
            ConfigSource.environment(20),
        ],
        process_templates=False,
        custom_variables={'environment': 'test', 'debug': True},
    )


_PRESETS = {
    Environment.DEVELOPMENT: get_development_preset,
    # Staging builds read the production files
    Environment.STAGING: get_production_preset,
    Environment.PRODUCTION: get_production_preset,
    Environment.TEST: get_test_preset,
}


def get_preset(environment, config_dir: str = "config",
               extra_sources: Optional[List[ConfigSource]] = None) -> SourcePreset:
    """
    Get the source preset for an environment.

    Args:
        environment: Environment or its name ('development', 'prod', ...)
        config_dir: Directory holding the layered configuration files
        extra_sources: Sources appended after the preset's own

    Raises:
        ValueError: If the environment is not recognised
    """
    try:
        environment = Environment.parse(environment)
    except ValueError:
        raise ValueError(
            f"Unknown preset: {environment}. Available presets: {list_available_presets()}"
        )

    preset = _PRESETS[environment](config_dir)
    if extra_sources:
        preset.sources.extend(extra_sources)
    return preset


def list_available_presets() -> List[str]:
    """List all available source presets."""
    return [environment.value for environment in _PRESETS]
