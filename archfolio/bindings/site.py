"""
Read helpers for site metadata, theming and the smaller sections.
"""

import copy
from typing import Any, Dict, Optional

from archfolio.config.core.manager import LoadedConfig
from archfolio.config.defaults import DEFAULT_CONFIG

from .base import SectionBinding


class ThemeBinding(SectionBinding):
    """Theme colours and fonts."""

    section = "theme"

    def update_color(self, key: str, color: str) -> LoadedConfig:
        return self.manager.set(self.path(key), color)

    def update_font(self, key: str, font: str) -> LoadedConfig:
        return self.manager.set(self.path("fonts", key), font)

    def reset(self) -> LoadedConfig:
        return self.manager.set(self.section, copy.deepcopy(DEFAULT_CONFIG["theme"]))


class ContactBinding(SectionBinding):

    section = "contact"

    def flags(self) -> Dict[str, bool]:
        contact = self.config()
        return {
            key: bool(contact.get(key, False))
            for key in ("enabled", "showForm", "showEmail", "showPhone", "showSocial", "mapEnabled")
        }


class AnalyticsBinding(SectionBinding):

    section = "analytics"

    def is_enabled(self) -> bool:
        """Analytics run only when the feature switch is on."""
        return self.manager.get("features.analytics", False) is True

    def tracking_id(self, provider: str) -> Optional[str]:
        return self.get(provider)


def site_metadata(manager) -> Dict[str, Any]:
    """Page metadata derived from the personal and seo sections."""
    seo = manager.get("seo", {})
    personal = manager.get("personal", {})
    return {
        "title": seo.get("title"),
        "description": seo.get("description"),
        "keywords": list(seo.get("keywords") or []),
        "author": seo.get("author") or personal.get("name"),
        "siteName": seo.get("siteName"),
        "url": seo.get("siteUrl"),
        "locale": seo.get("locale"),
        "image": seo.get("ogImage") or personal.get("avatar"),
        "twitterCard": seo.get("twitterCard"),
    }
