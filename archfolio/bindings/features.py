"""
Feature switch bindings.
"""

from typing import List

from .base import SectionBinding


class FeaturesBinding(SectionBinding):
    """Boolean switches under `features`."""

    section = "features"

    def is_enabled(self, name: str) -> bool:
        """Unknown features are off."""
        return self.get(name, default=False) is True

    def enabled(self) -> List[str]:
        return [name for name, value in self.config().items() if value is True]
