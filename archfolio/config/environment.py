"""
Environment variable handling.

Reads process variables with fallbacks and type coercion, builds the
environment configuration overlay and supplies the per-tier defaults.

Variables whose name starts with `ARCHFOLIO_PUBLIC_` are public: they may be
exposed to templates and to the presentation layer. Every other variable is
private (credentials, outbound mail settings). The split is a naming
convention that callers are trusted to respect; nothing here enforces it.
"""

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from archfolio import __version__
from archfolio.core.enums import Environment
from archfolio.core.exceptions import MissingEnvironmentVariableError
from archfolio.logger import get_archfolio_logger

PUBLIC_PREFIX = 'ARCHFOLIO_PUBLIC_'
ENVIRONMENT_VARIABLE = 'ARCHFOLIO_ENV'
FEATURE_PREFIX = 'FEATURE_'

TRUTHY_VALUES = ('true', '1', 'yes', 'on')

# Variable name -> config path for the environment overlay
PUBLIC_VARIABLES = {
    'SITE_URL': ('seo', 'siteUrl'),
    'GA_ID': ('analytics', 'googleAnalytics'),
    'GTM_ID': ('analytics', 'googleTagManager'),
    'HOTJAR_ID': ('analytics', 'hotjar'),
    'MIXPANEL_ID': ('analytics', 'mixpanel'),
    'GOOGLE_MAPS_API_KEY': ('contact', 'mapApiKey'),
}

PRIVATE_VARIABLES = {
    'CONTACT_EMAIL': ('contact', 'email'),
    'CONTACT_FORM_ENDPOINT': ('contact', 'formEndpoint'),
    'CHATBOT_API_ENDPOINT': ('chatbot', 'apiEndpoint'),
    'CHATBOT_MODEL': ('chatbot', 'model'),
    'DEPLOY_PLATFORM': ('deployment', 'platform'),
}

TIER_DEFAULTS = {
    Environment.DEVELOPMENT: {
        'build': {
            'generateSitemap': False,
            'generateRobots': False,
            'optimizeImages': False,
            'minifyCSS': False,
            'minifyJS': False,
            'enableCaching': False,
        },
        'features': {
            'analytics': False,
            'lazyLoading': False,
            'animations': True,
        },
    },
    Environment.STAGING: {
        'build': {
            'generateSitemap': True,
            'generateRobots': False,
            'optimizeImages': True,
            'minifyCSS': False,
            'minifyJS': False,
            'enableCaching': False,
        },
        'features': {
            'analytics': False,
            'lazyLoading': True,
            'animations': True,
        },
    },
    Environment.PRODUCTION: {
        'build': {
            'generateSitemap': True,
            'generateRobots': True,
            'optimizeImages': True,
            'minifyCSS': True,
            'minifyJS': True,
            'enableCaching': True,
        },
        'features': {
            'analytics': True,
            'lazyLoading': True,
            'animations': True,
        },
    },
}


def tier_defaults(environment: Environment) -> Dict[str, Any]:
    """Defaults overlay for a deployment tier; test runs use the development tier."""
    environment = Environment.parse(environment, Environment.DEVELOPMENT)
    tier = TIER_DEFAULTS.get(environment, TIER_DEFAULTS[Environment.DEVELOPMENT])
    return json.loads(json.dumps(tier))


class EnvironmentAdapter:
    """
    Typed access to process variables.

    Parameters
    ----------
    environ : Mapping[str, str], optional
        Variable source, `os.environ` when omitted
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ
        self.logger = get_archfolio_logger().bind(component="EnvironmentAdapter")

    def read(self, name: str, fallback: Optional[str] = None, required: bool = False) -> Optional[str]:
        """Return a variable, or `fallback` when it is unset or empty."""
        value = self._environ.get(name) or fallback
        if required and not value:
            raise MissingEnvironmentVariableError(name)
        return value

    def read_public(self, name: str, fallback: Optional[str] = None, required: bool = False) -> Optional[str]:
        """Read a public variable; `name` is given without the public prefix."""
        return self.read(f"{PUBLIC_PREFIX}{name}", fallback, required)

    def read_private(self, name: str, fallback: Optional[str] = None, required: bool = False) -> Optional[str]:
        """Read a server/build-only variable."""
        return self.read(name, fallback, required)

    def read_bool(self, name: str, fallback: bool = False) -> bool:
        value = self.read(name)
        if not value:
            return fallback
        return value.strip().lower() in TRUTHY_VALUES

    def read_number(self, name: str, fallback: Optional[float] = None) -> Optional[float]:
        value = self.read(name)
        if not value:
            return fallback
        try:
            number = float(value)
        except ValueError:
            return fallback
        if number != number or number in (float('inf'), float('-inf')):
            return fallback
        return int(number) if number.is_integer() and '.' not in value else number

    def read_list(self, name: str, fallback: Optional[List[str]] = None, separator: str = ',') -> List[str]:
        value = self.read(name)
        if not value:
            return list(fallback or [])
        return [item.strip() for item in value.split(separator) if item.strip()]

    def read_json(self, name: str, fallback: Any = None) -> Any:
        value = self.read(name)
        if not value:
            return fallback
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            self.logger.warning("Failed to parse JSON environment variable", variable=name, error=str(e))
            return fallback

    def public_variables(self) -> Dict[str, str]:
        """Every public variable, keyed by its full name."""
        return {
            name: value for name, value in self._environ.items()
            if name.startswith(PUBLIC_PREFIX)
        }

    def environment_name(self, fallback: Environment = Environment.DEVELOPMENT) -> Environment:
        value = self.read(ENVIRONMENT_VARIABLE)
        if not value:
            return fallback
        environment = Environment.parse(value, fallback)
        if environment.value != value.strip().lower():
            self.logger.debug("Normalised environment name", raw=value, environment=environment.value)
        return environment

    def tier_defaults(self, environment: Optional[Environment] = None) -> Dict[str, Any]:
        return tier_defaults(environment or self.environment_name())

    def is_feature_enabled(self, feature: str) -> bool:
        """Feature switch from `FEATURE_<NAME>`."""
        return self.read_bool(f"{FEATURE_PREFIX}{feature.upper()}")

    def to_config_overlay(self) -> Dict[str, Any]:
        """
        Assemble a configuration-shaped dict from the known variables.

        Only variables that are set contribute, so the overlay never blanks
        out values coming from lower-priority sources.
        """
        overlay: Dict[str, Any] = {}

        def put(path, value):
            section, key = path
            overlay.setdefault(section, {})[key] = value

        for name, path in PUBLIC_VARIABLES.items():
            value = self.read_public(name)
            if value:
                put(path, value)

        for name, path in PRIVATE_VARIABLES.items():
            value = self.read_private(name)
            if value:
                put(path, value)

        environment = self.read(ENVIRONMENT_VARIABLE)
        if environment:
            tier = Environment.parse(environment, Environment.DEVELOPMENT)
            if tier is not Environment.TEST:
                put(('deployment', 'environment'), tier.value)

        for name in self._environ:
            if name.startswith(FEATURE_PREFIX) and len(name) > len(FEATURE_PREFIX):
                feature = self._feature_key(name[len(FEATURE_PREFIX):])
                put(('features', feature), self.read_bool(name))

        return overlay

    @staticmethod
    def _feature_key(raw: str) -> str:
        # FEATURE_DARK_MODE -> darkMode
        parts = [part for part in raw.lower().split('_') if part]
        if not parts:
            return raw.lower()
        return parts[0] + ''.join(part.capitalize() for part in parts[1:])

    def mail_settings(self) -> Dict[str, Any]:
        """Outbound mail settings. Private: never merged into the site configuration."""
        return {
            'host': self.read_private('EMAIL_HOST'),
            'port': self.read_number('EMAIL_PORT', 587),
            'user': self.read_private('EMAIL_USER'),
            'password': self.read_private('EMAIL_PASS'),
        }

    def runtime_info(self, environment: Optional[Environment] = None) -> Dict[str, Any]:
        environment = environment or self.environment_name()
        now = datetime.now(timezone.utc)
        return {
            'environment': environment.value,
            'isDevelopment': environment is Environment.DEVELOPMENT,
            'isStaging': environment is Environment.STAGING,
            'isProduction': environment is Environment.PRODUCTION,
            'isTest': environment is Environment.TEST,
            'buildTime': self.read('BUILD_TIME', now.isoformat()),
            'version': self.read('ARCHFOLIO_VERSION', __version__),
            'currentYear': now.year,
        }
