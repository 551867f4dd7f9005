"""
Site configuration schema definitions.

This module declares the shape of the full configuration tree and the
cross-field consistency rules applied after a resolution pass.
"""

import copy
from datetime import date
from typing import Any, Dict

from .core.validator import (
    SchemaValidator, BusinessValidator, ValidationError, ValidationResult,
    boolean, color, email, enum, integer, list_of, mapping_of, number, obj, string, url
)


PERSONAL_SCHEMA = {
    'name': string(min_length=1),
    'title': string(min_length=1),
    'email': email(),
    'phone': string(required=False),
    'location': string(min_length=1),
    'website': url(required=False),
    'linkedIn': url(required=False),
    'github': url(required=False),
    'bio': string(min_length=10),
    'avatar': url(required=False),
}

SOCIAL_SCHEMA = {
    network: url(required=False)
    for network in ('linkedin', 'github', 'twitter', 'instagram', 'behance', 'dribbble', 'facebook')
}

SEO_SCHEMA = {
    'title': string(min_length=1, max_length=60),
    'description': string(min_length=50, max_length=160),
    'keywords': list_of(string(), min_length=3),
    'author': string(min_length=1),
    'siteName': string(min_length=1),
    'siteUrl': url(),
    'locale': string(required=False, default='en-US'),
    'ogImage': url(required=False),
    'twitterCard': enum('summary', 'summary_large_image', required=False,
                        default='summary_large_image'),
}

THEME_SCHEMA = {
    'primaryColor': color(),
    'secondaryColor': color(),
    'accentColor': color(),
    'backgroundColor': color(),
    'textColor': color(),
    'fonts': {
        'primary': string(min_length=1),
        'secondary': string(min_length=1),
        'mono': string(min_length=1),
    },
    'customCSS': string(required=False),
}

FEATURE_DEFAULTS = {
    'blog': True,
    'chatbot': False,
    'contact': True,
    'portfolio': True,
    'experience': True,
    'education': True,
    'skills': True,
    'analytics': False,
    'darkMode': False,
    'animations': True,
    'lazyLoading': True,
}

FEATURES_SCHEMA = {
    name: boolean(required=False, default=value) for name, value in FEATURE_DEFAULTS.items()
}

PROJECT_SCHEMA = {
    'id': string(min_length=1),
    'title': string(min_length=1),
    'description': string(min_length=10),
    'category': string(min_length=1),
    'imageUrl': url(),
    'galleryImages': list_of(url(), required=False),
    'technologies': list_of(string(), required=False),
    'client': string(required=False),
    'year': integer(minimum=1900, maximum=date.today().year + 10),
    'featured': boolean(required=False, default=False),
    'url': url(required=False),
    'githubUrl': url(required=False),
    'status': enum('completed', 'in-progress', 'concept', required=False, default='completed'),
}

EXPERIENCE_SCHEMA = {
    'id': string(min_length=1),
    'company': string(min_length=1),
    'position': string(min_length=1),
    'location': string(min_length=1),
    'startDate': string(min_length=1),
    'endDate': string(required=False),
    'current': boolean(required=False, default=False),
    'description': string(min_length=10),
    'achievements': list_of(string(), required=False),
    'technologies': list_of(string(), required=False),
}

EDUCATION_SCHEMA = {
    'id': string(min_length=1),
    'institution': string(min_length=1),
    'degree': string(min_length=1),
    'field': string(min_length=1),
    'location': string(min_length=1),
    'startDate': string(min_length=1),
    'endDate': string(required=False),
    'current': boolean(required=False, default=False),
    'gpa': number(required=False, minimum=0, maximum=4),
    'honors': list_of(string(), required=False),
    'description': string(required=False),
}

SKILL_SCHEMA = {
    'name': string(min_length=1),
    'level': integer(minimum=1, maximum=100),
    'category': string(min_length=1),
    'icon': string(required=False),
}

BLOG_SCHEMA = {
    'enabled': boolean(required=False, default=True),
    'postsPerPage': integer(required=False, minimum=1, maximum=50, default=10),
    'featuredPostsLimit': integer(required=False, minimum=1, maximum=20, default=3),
    'categories': list_of(string(), required=False, default=[]),
    'showReadTime': boolean(required=False, default=True),
    'showAuthor': boolean(required=False, default=True),
    'enableComments': boolean(required=False, default=False),
}

CONTACT_SCHEMA = {
    'enabled': boolean(required=False, default=True),
    'showForm': boolean(required=False, default=True),
    'formEndpoint': url(required=False),
    'email': email(required=False),
    'showEmail': boolean(required=False, default=True),
    'showPhone': boolean(required=False, default=True),
    'showSocial': boolean(required=False, default=True),
    'mapEnabled': boolean(required=False, default=False),
    'mapApiKey': string(required=False),
    'officeAddress': string(required=False),
}

CHATBOT_SCHEMA = {
    'enabled': boolean(required=False, default=False),
    'name': string(min_length=1),
    'avatar': url(required=False),
    'welcomeMessage': string(min_length=1),
    'responses': mapping_of(list_of(string()), required=False, default={}),
    'apiEndpoint': url(required=False),
    'model': string(required=False),
}

ANALYTICS_SCHEMA = {
    key: string(required=False)
    for key in ('googleAnalytics', 'googleTagManager', 'hotjar', 'mixpanel', 'customTracking')
}

DEPLOYMENT_SCHEMA = {
    'platform': enum('vercel', 'netlify', 'github-pages', 'aws', 'custom',
                     required=False, default='vercel'),
    'basePath': string(required=False),
    'assetPrefix': string(required=False),
    'customDomain': url(required=False),
    'environment': enum('development', 'staging', 'production',
                        required=False, default='development'),
}

BUILD_SCHEMA = {
    'generateSitemap': boolean(required=False, default=True),
    'generateRobots': boolean(required=False, default=True),
    'optimizeImages': boolean(required=False, default=True),
    'minifyCSS': boolean(required=False, default=True),
    'minifyJS': boolean(required=False, default=True),
    'enableCaching': boolean(required=False, default=False),
}

# Site configuration schema
CONFIG_SCHEMA = {
    # Core configuration
    'personal': PERSONAL_SCHEMA,
    'social': SOCIAL_SCHEMA,
    'seo': SEO_SCHEMA,
    'theme': THEME_SCHEMA,
    'features': FEATURES_SCHEMA,

    # Content configuration
    'portfolio': {
        'enabled': boolean(required=False, default=True),
        'projects': list_of(PROJECT_SCHEMA, required=False, default=[]),
        'categoriesFilter': boolean(required=False, default=True),
        'projectsPerPage': integer(required=False, minimum=1, maximum=50, default=12),
    },
    'experience': {
        'enabled': boolean(required=False, default=True),
        'items': list_of(EXPERIENCE_SCHEMA, required=False, default=[]),
    },
    'education': {
        'enabled': boolean(required=False, default=True),
        'items': list_of(EDUCATION_SCHEMA, required=False, default=[]),
    },
    'skills': {
        'enabled': boolean(required=False, default=True),
        'items': list_of(SKILL_SCHEMA, required=False, default=[]),
        'showLevels': boolean(required=False, default=True),
        'groupByCategory': boolean(required=False, default=True),
    },
    'blog': BLOG_SCHEMA,
    'contact': CONTACT_SCHEMA,
    'chatbot': CHATBOT_SCHEMA,

    # Technical configuration
    'analytics': ANALYTICS_SCHEMA,
    'deployment': DEPLOYMENT_SCHEMA,

    # Build configuration
    'build': BUILD_SCHEMA,
}


def validate_config(config: Any) -> ValidationResult:
    """
    Validate a full configuration tree.

    Args:
        config: Candidate configuration tree

    Returns:
        ValidationResult with the coerced tree on `data` and every
        path-qualified error on `errors`
    """
    return SchemaValidator("site", CONFIG_SCHEMA).validate(config)


def get_config_schema() -> Dict[str, Any]:
    """Get the site configuration schema."""
    return copy.copy(CONFIG_SCHEMA)


# Consistency rules. They report advisories rather than hard schema errors.

def _analytics_enabled_without_keys(config: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()
    analytics = config.get('analytics') or {}
    if (config.get('features') or {}).get('analytics') and not any(analytics.values()):
        result.add_error(ValidationError(
            "analytics feature is enabled but no tracking id is configured", field="features.analytics"
        ))
    return result


def _contact_form_without_endpoint(config: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()
    contact = config.get('contact') or {}
    if contact.get('enabled') and contact.get('showForm') and not contact.get('formEndpoint'):
        result.add_error(ValidationError(
            "contact form is shown but no form endpoint is configured", field="contact.formEndpoint"
        ))
    return result


def _past_positions_without_end_date(config: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()
    for section in ('experience', 'education'):
        items = (config.get(section) or {}).get('items') or []
        for index, item in enumerate(items):
            if isinstance(item, dict) and not item.get('current') and not item.get('endDate'):
                result.add_error(ValidationError(
                    "entry is not current but has no end date", field=f"{section}.items.{index}.endDate"
                ))
    return result


def _duplicate_ids(config: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()
    for path, key in (('portfolio.projects', 'id'), ('experience.items', 'id'),
                      ('education.items', 'id'), ('skills.items', 'name')):
        section, field_name = path.split('.')
        seen = set()
        for item in (config.get(section) or {}).get(field_name) or []:
            ident = item.get(key) if isinstance(item, dict) else None
            if ident is None:
                continue
            if ident in seen:
                result.add_error(ValidationError(f"duplicate {key} '{ident}'", field=path))
            seen.add(ident)
    return result


CONSISTENCY_RULES = [
    _analytics_enabled_without_keys,
    _contact_form_without_endpoint,
    _past_positions_without_end_date,
    _duplicate_ids,
]


def check_consistency(config: Dict[str, Any]) -> ValidationResult:
    """Run the cross-field consistency rules over a resolved tree."""
    return BusinessValidator("site", CONSISTENCY_RULES).validate(config)
