"""
Built-in configuration baseline and the starter document.

`DEFAULT_CONFIG` is the lowest-priority layer of every resolution pass and
the fallback returned when no source can be loaded at all. It is complete
enough to validate on its own.
"""

import copy
from datetime import date
from typing import Any, Dict

from .environment import PUBLIC_PREFIX
from .schema import FEATURE_DEFAULTS


DEFAULT_CONFIG: Dict[str, Any] = {
    'personal': {
        'name': 'Your Name',
        'title': 'Architect',
        'email': 'your.email@example.com',
        'location': 'Your Location',
        'bio': 'Professional architect with expertise in sustainable design.',
    },
    'social': {},
    'seo': {
        'title': 'Architect Portfolio',
        'description': 'Professional architect portfolio showcasing innovative designs.',
        'keywords': ['architect', 'portfolio', 'design'],
        'author': 'Your Name',
        'siteName': 'Architect Portfolio',
        'siteUrl': 'https://yoursite.com',
        'locale': 'en-US',
        'twitterCard': 'summary_large_image',
    },
    'theme': {
        'primaryColor': '#8a7855',
        'secondaryColor': '#d4af37',
        'accentColor': '#b87333',
        'backgroundColor': '#ffffff',
        'textColor': '#1b1811',
        'fonts': {
            'primary': 'Inter',
            'secondary': 'Playfair Display',
            'mono': 'JetBrains Mono',
        },
    },
    'features': dict(FEATURE_DEFAULTS),
    'portfolio': {
        'enabled': True,
        'projects': [],
        'categoriesFilter': True,
        'projectsPerPage': 12,
    },
    'experience': {
        'enabled': True,
        'items': [],
    },
    'education': {
        'enabled': True,
        'items': [],
    },
    'skills': {
        'enabled': True,
        'items': [],
        'showLevels': True,
        'groupByCategory': True,
    },
    'blog': {
        'enabled': True,
        'postsPerPage': 10,
        'featuredPostsLimit': 3,
        'categories': [],
        'showReadTime': True,
        'showAuthor': True,
        'enableComments': False,
    },
    'contact': {
        'enabled': True,
        'showForm': True,
        'showEmail': True,
        'showPhone': True,
        'showSocial': True,
        'mapEnabled': False,
    },
    'chatbot': {
        'enabled': False,
        'name': 'Assistant',
        'welcomeMessage': 'Hello! How can I help you today?',
        'responses': {},
    },
    'analytics': {},
    'deployment': {
        'platform': 'vercel',
        'environment': 'development',
    },
    'build': {
        'generateSitemap': True,
        'generateRobots': True,
        'optimizeImages': True,
        'minifyCSS': True,
        'minifyJS': True,
        'enableCaching': False,
    },
}


def get_default_config() -> Dict[str, Any]:
    """Return a private deep copy of the built-in baseline."""
    return copy.deepcopy(DEFAULT_CONFIG)


def generate_starter_config(include_examples: bool = True) -> Dict[str, Any]:
    """
    Build the starter document written by `archfolio generate`.

    The document starts from the built-in baseline so that it validates on
    its own, and relies on template variables so that name, title and site
    URL are entered once.
    """
    site_url = f"{{{{env.{PUBLIC_PREFIX}SITE_URL}}}}"
    starter = get_default_config()
    starter['personal'] = {
        'name': 'Your Name',
        'title': 'Your Title',
        'email': 'your.email@example.com',
        'location': 'Your Location',
        'bio': 'Your professional bio goes here. Describe your practice, focus and the work you are proud of.',
        'website': site_url,
    }
    starter['seo'].update({
        'title': '{{personal.name}} - {{personal.title}}',
        'description': '{{personal.bio|truncate:155}}',
        'author': '{{personal.name}}',
        'siteName': '{{personal.name}} Portfolio',
        'siteUrl': site_url,
    })

    if include_examples:
        starter['portfolio']['projects'] = [
            {
                'id': 'example-project',
                'title': 'Example Project',
                'description': 'This is an example project. Replace with your own projects.',
                'category': 'Example Category',
                'imageUrl': 'https://images.unsplash.com/photo-1486406146926-c627a92ad1ab?w=800&h=600&fit=crop',
                'year': date.today().year,
                'featured': True,
                'status': 'completed',
                'technologies': ['Technology 1', 'Technology 2'],
            },
        ]
        starter['experience']['items'] = [
            {
                'id': 'example-job',
                'company': 'Example Company',
                'position': 'Example Position',
                'location': 'City, State',
                'startDate': '2020-01',
                'current': True,
                'description': 'Description of your role and responsibilities.',
                'achievements': ['Achievement 1', 'Achievement 2'],
                'technologies': ['Technology 1', 'Technology 2'],
            },
        ]

    return starter
