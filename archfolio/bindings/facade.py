"""
Single entry point for presentation code reading the live configuration.
"""

from typing import Any, Dict

from archfolio.config.core.manager import ConfigurationManager

from .base import SectionBinding
from .features import FeaturesBinding
from .portfolio import PortfolioBinding
from .site import AnalyticsBinding, ContactBinding, ThemeBinding, site_metadata
from .skills import SkillsBinding
from .timeline import TimelineBinding


class ConfigBindings:
    """
    Section views over an explicitly passed ConfigurationManager.

        manager = ConfigurationManager(ManagerOptions(environment="production"))
        manager.initialize()
        bindings = ConfigBindings(manager)
        bindings.portfolio.featured_projects()
    """

    def __init__(self, manager: ConfigurationManager):
        self.manager = manager
        self.portfolio = PortfolioBinding(manager)
        self.experience = TimelineBinding(manager, "experience")
        self.education = TimelineBinding(manager, "education")
        self.skills = SkillsBinding(manager)
        self.features = FeaturesBinding(manager)
        self.theme = ThemeBinding(manager)
        self.contact = ContactBinding(manager)
        self.analytics = AnalyticsBinding(manager)
        self.blog = SectionBinding(manager, "blog")
        self.chatbot = SectionBinding(manager, "chatbot")

    def personal(self) -> Dict[str, Any]:
        return self.manager.get("personal", {})

    def seo(self) -> Dict[str, Any]:
        return self.manager.get("seo", {})

    def site_metadata(self) -> Dict[str, Any]:
        return site_metadata(self.manager)
