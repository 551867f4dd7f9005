"""
Consumer bindings over the live configuration.

Presentation code reads resolved values through these views:
- Portfolio projects, grouped and filtered
- Experience and education timelines
- Skills grouped by category
- Feature switches, theme and site metadata
"""

from .base import SectionBinding, parse_date
from .facade import ConfigBindings
from .features import FeaturesBinding
from .portfolio import PortfolioBinding
from .site import AnalyticsBinding, ContactBinding, ThemeBinding, site_metadata
from .skills import SkillsBinding
from .timeline import TimelineBinding, timeline_sort_key

__all__ = [
    'ConfigBindings',
    'SectionBinding',
    'PortfolioBinding',
    'TimelineBinding',
    'SkillsBinding',
    'FeaturesBinding',
    'ThemeBinding',
    'ContactBinding',
    'AnalyticsBinding',
    'site_metadata',
    'parse_date',
    'timeline_sort_key',
]
